"""Parsing module for Spanner DDL."""

from spanner2mysql.parsing.ddl_lexer import DDLLexer
from spanner2mysql.parsing.ddl_parser import DDLParser, parse_ddl

__all__ = [
    "DDLLexer",
    "DDLParser",
    "parse_ddl",
]
