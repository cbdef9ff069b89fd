"""Parser for Spanner DDL."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import ply.yacc as yacc

from spanner2mysql.errors import ParseError
from spanner2mysql.parsing.ddl_lexer import DDLLexer
from spanner2mysql.types import (
    MAX_LENGTH,
    ArrayType,
    Cluster,
    Column,
    CreateDatabaseStatement,
    CreateIndexStatement,
    CreateTableStatement,
    DDStatements,
    KeyOrder,
    KeyPart,
    OnDelete,
    ScalarTag,
    ScalarType,
)

# Token that follows CREATE -> statement kind reported in errors
_STATEMENT_KINDS = {
    "DATABASE": "CREATE DATABASE",
    "TABLE": "CREATE TABLE",
    "INDEX": "CREATE INDEX",
    "UNIQUE": "CREATE INDEX",
    "NULL_FILTERED": "CREATE INDEX",
}


@dataclass
class ColumnSpec:
    """A parsed column with the offsets needed for validation."""

    column: Column
    position: int
    length_position: int | None = None  # offset of an explicit STRING/BYTES length


@dataclass
class TableSpec:
    """A CREATE TABLE statement before validation."""

    name: str
    position: int
    columns: list[ColumnSpec]
    key: list[tuple[KeyPart, int]]
    cluster: Cluster


@dataclass
class IndexSpec:
    """A CREATE INDEX statement before validation."""

    statement: CreateIndexStatement
    position: int


class DDLParser:
    """Parser for Spanner CREATE DATABASE, CREATE TABLE and CREATE INDEX statements."""

    tokens = DDLLexer.tokens

    def __init__(self) -> None:
        self.lexer = DDLLexer()
        self.lexer.build()
        self._scanner = DDLLexer()
        self._scanner.build()
        self.parser: yacc.LRParser = None  # type: ignore
        self._source = ""

    # -- Document ----------------------------------------------------------

    def p_ddl(self, p: yacc.YaccProduction) -> None:
        """ddl : statement_list
               | statement_list SEMICOLON"""
        p[0] = p[1]

    def p_ddl_empty(self, p: yacc.YaccProduction) -> None:
        """ddl : empty"""
        p[0] = []

    def p_statement_list_single(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement"""
        p[0] = [p[1]]

    def p_statement_list_multiple(self, p: yacc.YaccProduction) -> None:
        """statement_list : statement_list SEMICOLON statement"""
        p[0] = p[1]
        p[0].append(p[3])

    def p_statement(self, p: yacc.YaccProduction) -> None:
        """statement : create_database
                     | create_table
                     | create_index"""
        p[0] = p[1]

    def p_empty(self, p: yacc.YaccProduction) -> None:
        """empty :"""
        p[0] = None

    def p_name(self, p: yacc.YaccProduction) -> None:
        """name : IDENTIFIER
                | DATABASE
                | TABLE
                | INDEX
                | UNIQUE
                | NULL_FILTERED
                | STORING
                | INTERLEAVE
                | PARENT
                | DELETE
                | CASCADE
                | ACTION
                | PRIMARY
                | KEY
                | OPTIONS
                | ALLOW_COMMIT_TIMESTAMP
                | BOOL
                | INT64
                | FLOAT64
                | NUMERIC
                | STRING
                | BYTES
                | JSON
                | DATE
                | TIMESTAMP
                | MAX"""
        # Non-reserved keywords double as names
        p[0] = p[1]
        p.set_lexpos(0, p.lexpos(1))

    # -- CREATE DATABASE ---------------------------------------------------

    def p_create_database(self, p: yacc.YaccProduction) -> None:
        """create_database : CREATE DATABASE name"""
        p[0] = CreateDatabaseStatement(database_name=p[3])

    # -- CREATE TABLE ------------------------------------------------------

    def p_create_table(self, p: yacc.YaccProduction) -> None:
        """create_table : CREATE TABLE name LPAREN column_defs RPAREN primary_key_list cluster"""
        p[0] = TableSpec(
            name=p[3],
            position=p.lexpos(3),
            columns=p[5],
            key=p[7],
            cluster=p[8],
        )

    def p_column_defs(self, p: yacc.YaccProduction) -> None:
        """column_defs : column_def_list
                       | column_def_list COMMA"""
        p[0] = p[1]

    def p_column_defs_empty(self, p: yacc.YaccProduction) -> None:
        """column_defs : empty"""
        p[0] = []

    def p_column_def_list_single(self, p: yacc.YaccProduction) -> None:
        """column_def_list : column_def"""
        p[0] = [p[1]]

    def p_column_def_list_multiple(self, p: yacc.YaccProduction) -> None:
        """column_def_list : column_def_list COMMA column_def"""
        p[0] = p[1] + [p[3]]

    def p_column_def(self, p: yacc.YaccProduction) -> None:
        """column_def : name column_type not_null options"""
        column_type, length_position = p[2]
        column = Column(name=p[1], type=column_type, not_null=p[3], allow_commit_timestamp=p[4])
        p[0] = ColumnSpec(column=column, position=p.lexpos(1), length_position=length_position)

    def p_not_null(self, p: yacc.YaccProduction) -> None:
        """not_null : NOT NULL
                    | empty"""
        p[0] = len(p) == 3

    def p_options(self, p: yacc.YaccProduction) -> None:
        """options : OPTIONS LPAREN ALLOW_COMMIT_TIMESTAMP EQUALS TRUE RPAREN"""
        p[0] = True

    def p_options_null(self, p: yacc.YaccProduction) -> None:
        """options : OPTIONS LPAREN ALLOW_COMMIT_TIMESTAMP EQUALS NULL RPAREN
                   | empty"""
        p[0] = None

    # -- Types -------------------------------------------------------------
    # Types travel as (type, offset of explicit length or None)

    def p_column_type_scalar(self, p: yacc.YaccProduction) -> None:
        """column_type : scalar_type"""
        p[0] = p[1]

    def p_column_type_array(self, p: yacc.YaccProduction) -> None:
        """column_type : ARRAY LT scalar_type GT"""
        element, length_position = p[3]
        p[0] = (ArrayType(element=element), length_position)

    def p_scalar_type(self, p: yacc.YaccProduction) -> None:
        """scalar_type : BOOL
                       | INT64
                       | FLOAT64
                       | NUMERIC
                       | JSON
                       | DATE
                       | TIMESTAMP"""
        p[0] = (ScalarType(tag=ScalarTag(p.slice[1].type)), None)

    def p_scalar_type_sized(self, p: yacc.YaccProduction) -> None:
        """scalar_type : STRING LPAREN length RPAREN
                       | BYTES LPAREN length RPAREN"""
        length, length_position = p[3]
        p[0] = (ScalarType(tag=ScalarTag(p.slice[1].type), length=length), length_position)

    def p_length_max(self, p: yacc.YaccProduction) -> None:
        """length : MAX"""
        p[0] = (MAX_LENGTH, None)

    def p_length_int(self, p: yacc.YaccProduction) -> None:
        """length : DECIMAL_LITERAL
                  | HEX_LITERAL"""
        p[0] = (p[1], p.lexpos(1))

    # -- Keys and interleave -----------------------------------------------

    def p_primary_key_list_single(self, p: yacc.YaccProduction) -> None:
        """primary_key_list : primary_key"""
        p[0] = p[1]

    def p_primary_key_list_multiple(self, p: yacc.YaccProduction) -> None:
        """primary_key_list : primary_key_list primary_key"""
        p[0] = p[1] + p[2]

    def p_primary_key(self, p: yacc.YaccProduction) -> None:
        """primary_key : PRIMARY KEY LPAREN key_part_list RPAREN"""
        p[0] = p[4]

    def p_key_part_list_single(self, p: yacc.YaccProduction) -> None:
        """key_part_list : key_part"""
        p[0] = [p[1]]

    def p_key_part_list_multiple(self, p: yacc.YaccProduction) -> None:
        """key_part_list : key_part_list COMMA key_part"""
        p[0] = p[1] + [p[3]]

    def p_key_part(self, p: yacc.YaccProduction) -> None:
        """key_part : name
                    | name ASC
                    | name DESC"""
        order = KeyOrder.UNSPECIFIED
        if len(p) == 3:
            order = KeyOrder.ASCENDING if p.slice[2].type == "ASC" else KeyOrder.DESCENDING
        p[0] = (KeyPart(column_name=p[1], order=order), p.lexpos(1))

    def p_cluster(self, p: yacc.YaccProduction) -> None:
        """cluster : INTERLEAVE IN PARENT name on_delete
                   | COMMA INTERLEAVE IN PARENT name on_delete"""
        p[0] = Cluster(parent_table=p[len(p) - 2], on_delete=p[len(p) - 1])

    def p_cluster_empty(self, p: yacc.YaccProduction) -> None:
        """cluster : empty"""
        p[0] = Cluster()

    def p_on_delete_cascade(self, p: yacc.YaccProduction) -> None:
        """on_delete : ON DELETE CASCADE"""
        p[0] = OnDelete.CASCADE

    def p_on_delete_no_action(self, p: yacc.YaccProduction) -> None:
        """on_delete : ON DELETE NO ACTION"""
        p[0] = OnDelete.NO_ACTION

    def p_on_delete_empty(self, p: yacc.YaccProduction) -> None:
        """on_delete : empty"""
        p[0] = OnDelete.NONE

    # -- CREATE INDEX ------------------------------------------------------

    def p_create_index(self, p: yacc.YaccProduction) -> None:
        """create_index : CREATE index_prefix name ON name LPAREN key_part_list RPAREN storing index_interleave"""
        unique, null_filtered = p[2]
        statement = CreateIndexStatement(
            index_name=p[3],
            table_name=p[5],
            keys=tuple(key_part for key_part, _ in p[7]),
            unique=unique,
            null_filtered=null_filtered,
            storing=frozenset(p[9]),
            interleave_in=p[10],
        )
        p[0] = IndexSpec(statement=statement, position=p.lexpos(3))

    def p_index_prefix(self, p: yacc.YaccProduction) -> None:
        """index_prefix : INDEX
                        | UNIQUE INDEX
                        | NULL_FILTERED INDEX
                        | UNIQUE NULL_FILTERED INDEX"""
        words = {p.slice[i].type for i in range(1, len(p))}
        p[0] = ("UNIQUE" in words, "NULL_FILTERED" in words)

    def p_storing(self, p: yacc.YaccProduction) -> None:
        """storing : STORING LPAREN name_list RPAREN"""
        p[0] = p[3]

    def p_storing_empty(self, p: yacc.YaccProduction) -> None:
        """storing : empty"""
        p[0] = []

    def p_name_list_single(self, p: yacc.YaccProduction) -> None:
        """name_list : name"""
        p[0] = [p[1]]

    def p_name_list_multiple(self, p: yacc.YaccProduction) -> None:
        """name_list : name_list COMMA name"""
        p[0] = p[1] + [p[3]]

    def p_index_interleave(self, p: yacc.YaccProduction) -> None:
        """index_interleave : COMMA INTERLEAVE IN name"""
        p[0] = p[4]

    def p_index_interleave_empty(self, p: yacc.YaccProduction) -> None:
        """index_interleave : empty"""
        p[0] = None

    # -- Errors ------------------------------------------------------------

    def p_error(self, p: yacc.YaccProduction) -> None:
        if p:
            position = p.lexpos
            raise ParseError(
                f"Syntax error at '{p.value}'", self._statement_kind(position), position
            )
        position = len(self._source)
        raise ParseError(
            "Syntax error at end of input", self._statement_kind(position), position
        )

    def _statement_kind(self, position: int) -> str | None:
        """Return the kind of statement being parsed at *position*, if any."""
        kind: str | None = None
        after_create = False
        for tok in self._scanner.iter_tokens(self._source):
            if tok.lexpos >= position:
                break
            if tok.type == "CREATE":
                kind = "CREATE"
                after_create = True
            elif after_create:
                kind = _STATEMENT_KINDS.get(tok.type, kind)
                after_create = False
            elif tok.type == "SEMICOLON":
                kind = None
        return kind

    # -- Entry points ------------------------------------------------------

    def build(self, **kwargs: Any) -> None:
        """Build the parser."""
        self.parser = yacc.yacc(module=self, start="ddl", **kwargs)

    def parse(self, data: str) -> DDStatements:
        """Parse a DDL document and return its validated statements."""
        if self.parser is None:
            self.build(debug=False, write_tables=False)

        self._source = data
        self.lexer.lexer.lineno = 1

        # Parse into specs
        specs = self.parser.parse(data, lexer=self.lexer.lexer)
        if specs is None:
            specs = []

        # Validate specs into statements
        return self._resolve_specs(specs)

    def _resolve_specs(
        self, specs: list[CreateDatabaseStatement | TableSpec | IndexSpec]
    ) -> DDStatements:
        """Check name uniqueness and lengths, raising ParseError on the first violation."""
        tables: list[CreateTableStatement] = []
        indexes: list[CreateIndexStatement] = []
        databases: list[CreateDatabaseStatement] = []
        table_names: set[str] = set()
        index_names: set[str] = set()

        for spec in specs:
            if isinstance(spec, TableSpec):
                if spec.name in table_names:
                    raise ParseError(f"Duplicate table '{spec.name}'", "CREATE TABLE", spec.position)
                table_names.add(spec.name)
                tables.append(self._resolve_table(spec))
            elif isinstance(spec, IndexSpec):
                name = spec.statement.index_name
                if name in index_names:
                    raise ParseError(f"Duplicate index '{name}'", "CREATE INDEX", spec.position)
                index_names.add(name)
                indexes.append(spec.statement)
            else:
                databases.append(spec)

        return DDStatements(
            tables=tuple(tables),
            indexes=tuple(indexes),
            databases=tuple(databases),
        )

    def _resolve_table(self, spec: TableSpec) -> CreateTableStatement:
        columns: list[Column] = []
        seen: set[str] = set()
        for column_spec in spec.columns:
            column = column_spec.column
            if column.name in seen:
                raise ParseError(
                    f"Duplicate column '{column.name}'", "CREATE TABLE", column_spec.position
                )
            seen.add(column.name)

            scalar = column.type.element if isinstance(column.type, ArrayType) else column.type
            if column_spec.length_position is not None and scalar.length <= 0:
                raise ParseError(
                    f"Length must be positive, got {scalar.length}",
                    "CREATE TABLE",
                    column_spec.length_position,
                )
            columns.append(column)

        # Repeated PRIMARY KEY clauses are concatenated in order
        key: list[KeyPart] = []
        seen = set()
        for key_part, position in spec.key:
            if key_part.column_name in seen:
                raise ParseError(
                    f"Column '{key_part.column_name}' repeated in primary key",
                    "CREATE TABLE",
                    position,
                )
            seen.add(key_part.column_name)
            key.append(key_part)

        return CreateTableStatement(
            table_name=spec.name,
            columns=tuple(columns),
            primary_key=tuple(key),
            cluster=spec.cluster,
        )


_parser = DDLParser()


def parse_ddl(data: str) -> DDStatements:
    """Parse a DDL document with the shared module-level parser."""
    return _parser.parse(data)
