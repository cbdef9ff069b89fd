"""spanner2mysql - Convert Cloud Spanner DDL into MySQL DDL."""

from spanner2mysql.converter import HEADER, convert, get_mysql_create_tables, get_mysql_type
from spanner2mysql.errors import (
    ConversionError,
    InvalidInterleaveError,
    InvalidKeyError,
    LexError,
    ParseError,
    UnsupportedTypeError,
)
from spanner2mysql.parsing import DDLParser, parse_ddl
from spanner2mysql.types import (
    ArrayType,
    Cluster,
    Column,
    CreateIndexStatement,
    CreateTableStatement,
    DDStatements,
    KeyOrder,
    KeyPart,
    OnDelete,
    ScalarTag,
    ScalarType,
)

__all__ = [
    # Main API
    "convert",
    "get_mysql_create_tables",
    "get_mysql_type",
    "parse_ddl",
    "DDLParser",
    "HEADER",
    # Errors
    "LexError",
    "ParseError",
    "ConversionError",
    "UnsupportedTypeError",
    "InvalidKeyError",
    "InvalidInterleaveError",
    # Statements
    "DDStatements",
    "CreateTableStatement",
    "CreateIndexStatement",
    "Column",
    "KeyPart",
    "KeyOrder",
    "Cluster",
    "OnDelete",
    "ScalarTag",
    "ScalarType",
    "ArrayType",
]

__version__ = "0.1.0"
