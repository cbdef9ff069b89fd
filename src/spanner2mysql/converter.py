"""Convert parsed Spanner DDL into MySQL CREATE TABLE statements."""

from __future__ import annotations

import logging

from spanner2mysql.errors import (
    InvalidInterleaveError,
    InvalidKeyError,
    UnsupportedTypeError,
)
from spanner2mysql.parsing import parse_ddl
from spanner2mysql.types import (
    ArrayType,
    Column,
    ColumnType,
    CreateIndexStatement,
    CreateTableStatement,
    DDStatements,
    KeyPart,
    ScalarTag,
    ScalarType,
)

logger = logging.getLogger(__name__)

# Header text
HEADER = "-- Auto-generated by jackup. DO NOT EDIT!\n--\n\n"

# MySQL can only index TEXT/BLOB columns through a fixed prefix length
PSEUDO_KEY_LENGTH = 255

# Longest STRING(n) still emitted as VARCHAR(n)
MAX_VARCHAR_LENGTH = 256

# Index names longer than this are dropped and left to MySQL to generate
MAX_IDENTIFIER_LENGTH = 255

# Scalar types that MySQL stores without a bounded length
UNBOUNDED_TYPES = frozenset({"TEXT", "BLOB"})

# STRING is handled separately since its target depends on the length
MYSQL_TYPES: dict[ScalarTag, str] = {
    ScalarTag.BOOL: "TINYINT(1)",
    ScalarTag.INT64: "BIGINT",
    ScalarTag.FLOAT64: "DOUBLE",
    ScalarTag.BYTES: "BLOB",
    ScalarTag.DATE: "DATE",
    ScalarTag.TIMESTAMP: "TIMESTAMP",
}


def quote(identifier: str) -> str:
    """Quote a MySQL identifier with backticks."""
    return "`" + identifier.replace("`", "``") + "`"


def get_mysql_type(column_type: ColumnType) -> str:
    """Return the MySQL column type for a Spanner column type.

    Raises:
        UnsupportedTypeError: For arrays and scalar types without a mapping.
    """
    if isinstance(column_type, ArrayType):
        raise UnsupportedTypeError(f"Array type {column_type} is not supported")
    if not isinstance(column_type, ScalarType):
        raise UnsupportedTypeError(f"Unknown column type {column_type!r}")

    if column_type.tag is ScalarTag.STRING:
        if column_type.is_unbounded or column_type.length > MAX_VARCHAR_LENGTH:
            return "TEXT"
        return f"VARCHAR({column_type.length})"

    mysql_type = MYSQL_TYPES.get(column_type.tag)
    if mysql_type is None:
        raise UnsupportedTypeError(f"Type {column_type} has no MySQL equivalent")
    return mysql_type


def _column_type(table: CreateTableStatement, column: Column) -> str:
    try:
        return get_mysql_type(column.type)
    except UnsupportedTypeError as e:
        raise UnsupportedTypeError(f"Column '{column.name}': {e}", table.table_name) from e


def _key_names(table: CreateTableStatement, keys: tuple[KeyPart, ...], what: str) -> list[str]:
    """Quote each key column, adding a prefix length to unbounded ones."""
    names = []
    for key_part in keys:
        column = table.get_column(key_part.column_name)
        if column is None:
            raise InvalidKeyError(
                f"{what} references unknown column '{key_part.column_name}'", table.table_name
            )
        name = quote(column.name)
        if _column_type(table, column) in UNBOUNDED_TYPES:
            name += f"({PSEUDO_KEY_LENGTH})"
        names.append(name)
    return names


def get_columns(table: CreateTableStatement) -> list[str]:
    """Return one column definition line per column."""
    lines = []
    for column in table.columns:
        mysql_type = _column_type(table, column)
        nullability = "NOT NULL" if column.not_null else "NULL"
        line = f"  {quote(column.name)} {mysql_type} {nullability}"
        # TIMESTAMP doesn't allow an implicit default value when NOT NULL
        if mysql_type == "TIMESTAMP" and column.not_null:
            line += " DEFAULT CURRENT_TIMESTAMP"
        lines.append(line)
    return lines


def get_primary_key(table: CreateTableStatement) -> str:
    """Return the PRIMARY KEY clause for *table*.

    Raises:
        InvalidKeyError: If a key column is missing or nullable.
    """
    for key_part in table.primary_key:
        column = table.get_column(key_part.column_name)
        if column is not None and not column.not_null:
            raise InvalidKeyError(
                f"Primary key column '{column.name}' must be NOT NULL", table.table_name
            )
    names = _key_names(table, table.primary_key, "Primary key")
    return f"  PRIMARY KEY ({', '.join(names)})"


def get_relation(
    child: CreateTableStatement, tables: dict[str, CreateTableStatement]
) -> str | None:
    """Return a FOREIGN KEY clause derived from the child's interleave, if any.

    The key is the first child column, in declaration order, whose name
    and type both match a column of the parent.

    Raises:
        InvalidInterleaveError: If the parent is unknown or shares no column.
        InvalidKeyError: If the shared column is unbounded in MySQL.
    """
    parent_name = child.cluster.parent_table
    if parent_name is None:
        return None

    parent = tables.get(parent_name)
    if parent is None:
        raise InvalidInterleaveError(
            f"Interleaved in unknown parent table '{parent_name}'", child.table_name
        )

    key_column = None
    for column in child.columns:
        parent_column = parent.get_column(column.name)
        if parent_column is not None and parent_column.type == column.type:
            key_column = column
            break

    if key_column is None:
        raise InvalidInterleaveError(
            f"No column shared with parent table '{parent_name}'", child.table_name
        )

    if _column_type(child, key_column) in UNBOUNDED_TYPES:
        raise InvalidKeyError(
            f"Foreign key column '{key_column.name}' has an unbounded type", child.table_name
        )

    name = quote(key_column.name)
    return f"  FOREIGN KEY ({name}) REFERENCES {quote(parent.table_name)} ({name})"


def get_indexes(table: CreateTableStatement, indexes: list[CreateIndexStatement]) -> list[str]:
    """Return inline UNIQUE/INDEX clauses for *indexes*, all declared on *table*."""
    clauses = []
    for index in indexes:
        if index.storing:
            logger.warning(
                "Index %s: dropping STORING columns %s (no MySQL equivalent)",
                index.index_name,
                ", ".join(sorted(index.storing)),
            )
        keys = ", ".join(_key_names(table, index.keys, f"Index '{index.index_name}'"))
        if index.unique:
            clauses.append(f"  UNIQUE ({keys})")
        elif len(index.index_name) > MAX_IDENTIFIER_LENGTH:
            logger.warning(
                "Index name %s... is too long for MySQL, leaving it unnamed",
                index.index_name[:32],
            )
            clauses.append(f"  INDEX ({keys})")
        else:
            clauses.append(f"  INDEX {quote(index.index_name)} ({keys})")
    return clauses


def convert_table(
    table: CreateTableStatement,
    tables: dict[str, CreateTableStatement],
    indexes: list[CreateIndexStatement],
) -> str:
    """Return the MySQL CREATE TABLE block for one table."""
    defs = get_columns(table)
    defs.append(get_primary_key(table))

    # Convert interleave to foreign key
    relation = get_relation(table, tables)
    if relation is not None:
        defs.append(relation)

    defs.extend(get_indexes(table, indexes))

    logger.debug("Converted table %s (%d definitions)", table.table_name, len(defs))
    return f"CREATE TABLE {quote(table.table_name)} (\n" + ",\n".join(defs) + "\n);\n"


def get_mysql_create_tables(statements: DDStatements) -> str:
    """Convert every table in *statements* into one MySQL document.

    Any conversion error aborts the whole document; no partial output is
    returned.

    Raises:
        ConversionError: A subclass describing the first table that failed.
    """
    tables = statements.tables_by_name()
    for index in statements.indexes:
        if index.table_name not in tables:
            raise InvalidKeyError(
                f"Index '{index.index_name}' is declared on an unknown table", index.table_name
            )

    blocks = []
    for table in statements.tables:
        blocks.append(convert_table(table, tables, statements.indexes_for(table.table_name)))

    return HEADER + "".join(blocks)


def convert(source: str) -> str:
    """Parse Spanner DDL source text and return MySQL DDL text."""
    return get_mysql_create_tables(parse_ddl(source))
