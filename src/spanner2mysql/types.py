"""Intermediate representation for parsed Spanner DDL."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ScalarTag(Enum):
    """Scalar column types of the Spanner DDL dialect."""

    BOOL = "BOOL"
    INT64 = "INT64"
    FLOAT64 = "FLOAT64"
    NUMERIC = "NUMERIC"
    STRING = "STRING"
    BYTES = "BYTES"
    JSON = "JSON"
    DATE = "DATE"
    TIMESTAMP = "TIMESTAMP"

    @property
    def has_length(self) -> bool:
        """Return whether this type takes a length argument."""
        return self in (ScalarTag.STRING, ScalarTag.BYTES)


# Length sentinel for STRING(MAX) / BYTES(MAX)
MAX_LENGTH = "MAX"


@dataclass(frozen=True)
class ScalarType:
    """A non-composite column type, e.g. INT64 or STRING(100)."""

    tag: ScalarTag
    length: int | str | None = None  # positive int or MAX_LENGTH

    @property
    def is_unbounded(self) -> bool:
        return self.length == MAX_LENGTH

    def __str__(self) -> str:
        if self.length is None:
            return self.tag.value
        return f"{self.tag.value}({self.length})"


@dataclass(frozen=True)
class ArrayType:
    """ARRAY<scalar>. Arrays never nest."""

    element: ScalarType

    def __str__(self) -> str:
        return f"ARRAY<{self.element}>"


ColumnType = Union[ScalarType, ArrayType]


@dataclass(frozen=True)
class Column:
    """A column definition inside CREATE TABLE."""

    name: str
    type: ColumnType
    not_null: bool = False
    # Value of OPTIONS (allow_commit_timestamp = ...); None when absent or null
    allow_commit_timestamp: bool | None = None


class KeyOrder(Enum):
    ASCENDING = "ASC"
    DESCENDING = "DESC"
    UNSPECIFIED = ""


@dataclass(frozen=True)
class KeyPart:
    """One column of a primary key or index key."""

    column_name: str
    order: KeyOrder = KeyOrder.UNSPECIFIED


class OnDelete(Enum):
    CASCADE = "CASCADE"
    NO_ACTION = "NO ACTION"
    NONE = ""


@dataclass(frozen=True)
class Cluster:
    """INTERLEAVE IN PARENT clause. parent_table is None for top-level tables."""

    parent_table: str | None = None
    on_delete: OnDelete = OnDelete.NONE


@dataclass(frozen=True)
class CreateDatabaseStatement:
    database_name: str


@dataclass(frozen=True)
class CreateTableStatement:
    """A parsed CREATE TABLE statement."""

    table_name: str
    columns: tuple[Column, ...]
    primary_key: tuple[KeyPart, ...]
    cluster: Cluster = field(default_factory=Cluster)

    def get_column(self, name: str) -> Column | None:
        """Return the column called *name*, or None."""
        for column in self.columns:
            if column.name == name:
                return column
        return None


@dataclass(frozen=True)
class CreateIndexStatement:
    """A parsed CREATE INDEX statement."""

    index_name: str
    table_name: str
    keys: tuple[KeyPart, ...]
    unique: bool = False
    null_filtered: bool = False
    storing: frozenset[str] = frozenset()
    interleave_in: str | None = None


@dataclass(frozen=True)
class DDStatements:
    """A whole parsed DDL document.

    Tables and indexes keep their source order. Lookups across tables
    (interleave parents, index targets) go through this object.
    """

    tables: tuple[CreateTableStatement, ...] = ()
    indexes: tuple[CreateIndexStatement, ...] = ()
    databases: tuple[CreateDatabaseStatement, ...] = ()

    def tables_by_name(self) -> dict[str, CreateTableStatement]:
        """Return a name -> table mapping over all tables."""
        return {table.table_name: table for table in self.tables}

    def indexes_for(self, table_name: str) -> list[CreateIndexStatement]:
        """Return the indexes declared on *table_name*, in source order."""
        return [index for index in self.indexes if index.table_name == table_name]
