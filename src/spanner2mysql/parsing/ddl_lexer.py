"""Lexer for Spanner DDL."""

from __future__ import annotations

from typing import Iterator

import ply.lex as lex

from spanner2mysql.errors import LexError


class DDLLexer:
    """Lexer for tokenizing Spanner CREATE DATABASE/TABLE/INDEX statements."""

    # Reserved keywords, matched case-insensitively
    reserved = {
        "CREATE": "CREATE",
        "DATABASE": "DATABASE",
        "TABLE": "TABLE",
        "INDEX": "INDEX",
        "UNIQUE": "UNIQUE",
        "NULL_FILTERED": "NULL_FILTERED",
        "ON": "ON",
        "STORING": "STORING",
        "INTERLEAVE": "INTERLEAVE",
        "IN": "IN",
        "PARENT": "PARENT",
        "DELETE": "DELETE",
        "CASCADE": "CASCADE",
        "NO": "NO",
        "ACTION": "ACTION",
        "PRIMARY": "PRIMARY",
        "KEY": "KEY",
        "ASC": "ASC",
        "DESC": "DESC",
        "NOT": "NOT",
        "NULL": "NULL",
        "OPTIONS": "OPTIONS",
        "ALLOW_COMMIT_TIMESTAMP": "ALLOW_COMMIT_TIMESTAMP",
        "TRUE": "TRUE",
        "ARRAY": "ARRAY",
        "BOOL": "BOOL",
        "INT64": "INT64",
        "FLOAT64": "FLOAT64",
        "NUMERIC": "NUMERIC",
        "STRING": "STRING",
        "BYTES": "BYTES",
        "JSON": "JSON",
        "DATE": "DATE",
        "TIMESTAMP": "TIMESTAMP",
        "MAX": "MAX",
    }

    # Token list
    tokens = [
        "IDENTIFIER",
        "HEX_LITERAL",
        "DECIMAL_LITERAL",
        "LPAREN",
        "RPAREN",
        "LT",
        "GT",
        "COMMA",
        "SEMICOLON",
        "EQUALS",
    ] + sorted(set(reserved.values()))

    # Simple tokens
    t_LPAREN = r"\("
    t_RPAREN = r"\)"
    t_LT = r"<"
    t_GT = r">"
    t_COMMA = r","
    t_SEMICOLON = r";"
    t_EQUALS = r"="

    # Ignored characters (spaces, tabs, carriage returns)
    t_ignore = " \t\r"

    def __init__(self) -> None:
        self.lexer: lex.Lexer = None  # type: ignore

    def t_COMMENT(self, t: lex.LexToken) -> None:
        r"--[^\n]*"
        # Line comment, dropped

    def t_HEX_LITERAL(self, t: lex.LexToken) -> lex.LexToken:
        r"[+-]?0[xX][0-9a-fA-F]+"
        t.value = int(t.value, 16)
        return t

    def t_DECIMAL_LITERAL(self, t: lex.LexToken) -> lex.LexToken:
        r"[+-]?\d+"
        t.value = int(t.value)
        return t

    def t_QUOTED_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"`[A-Za-z][A-Za-z0-9_]*`"
        # Backticks allow a reserved word to be used as a name
        t.type = "IDENTIFIER"
        t.value = t.value[1:-1]
        return t

    def t_IDENTIFIER(self, t: lex.LexToken) -> lex.LexToken:
        r"[A-Za-z][A-Za-z0-9_]*"
        # Check if it's a reserved word
        t.type = self.reserved.get(t.value.upper(), "IDENTIFIER")
        return t

    def t_NEWLINE(self, t: lex.LexToken) -> None:
        r"\n+"
        t.lexer.lineno += len(t.value)

    def t_error(self, t: lex.LexToken) -> None:
        raise LexError(t.value[0], t.lexpos)

    def build(self, **kwargs) -> None:  # type: ignore
        """Build the lexer."""
        self.lexer = lex.lex(module=self, **kwargs)

    def input(self, data: str) -> None:
        """Set the input string to tokenize."""
        self.lexer.input(data)
        self.lexer.lineno = 1

    def token(self) -> lex.LexToken | None:
        """Return the next token, or None at end of input."""
        return self.lexer.token()

    def iter_tokens(self, data: str) -> Iterator[lex.LexToken]:
        """Lazily yield the tokens of *data*, starting from the beginning."""
        self.input(data)
        while True:
            tok = self.token()
            if tok is None:
                return
            yield tok

    def tokenize(self, data: str) -> list[lex.LexToken]:
        """Tokenize the input and return all tokens."""
        return list(self.iter_tokens(data))
