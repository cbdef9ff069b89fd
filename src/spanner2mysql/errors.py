"""Exceptions raised while parsing and converting DDL."""

from __future__ import annotations


class LexError(SyntaxError):
    """An unrecognized character in the DDL source."""

    def __init__(self, character: str, position: int) -> None:
        super().__init__(f"Illegal character '{character}' at position {position}")
        self.character = character
        self.position = position


class ParseError(SyntaxError):
    """The token stream does not match the DDL grammar."""

    def __init__(self, message: str, statement: str | None = None, position: int | None = None) -> None:
        text = message
        if statement:
            text = f"{text} in {statement}"
        if position is not None:
            text = f"{text} (position {position})"
        super().__init__(text)
        self.statement = statement
        self.position = position


class ConversionError(ValueError):
    """Base class for errors raised while converting a table."""

    def __init__(self, message: str, table_name: str | None = None) -> None:
        if table_name is not None:
            message = f"{message} (table '{table_name}')"
        super().__init__(message)
        self.table_name = table_name


class UnsupportedTypeError(ConversionError):
    """A column type has no MySQL equivalent."""


class InvalidKeyError(ConversionError):
    """A key references a missing, nullable or unbounded column."""


class InvalidInterleaveError(ConversionError):
    """An interleaved table has no usable parent."""
