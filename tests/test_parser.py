"""Tests for the DDL lexer and parser."""

import pytest

from spanner2mysql.errors import LexError, ParseError
from spanner2mysql.parsing import DDLParser, parse_ddl
from spanner2mysql.parsing.ddl_lexer import DDLLexer
from spanner2mysql.types import (
    MAX_LENGTH,
    ArrayType,
    Cluster,
    KeyOrder,
    KeyPart,
    OnDelete,
    ScalarTag,
    ScalarType,
)

USERS = """
CREATE TABLE Users (
  id INT64 NOT NULL,
  name STRING(100),
  bio STRING(MAX),
  created_at TIMESTAMP NOT NULL OPTIONS (allow_commit_timestamp = true),
) PRIMARY KEY (id)
"""


class TestDDLLexer:
    """Tests for the DDL lexer."""

    def test_tokenize_create_table(self):
        """Test tokenizing the start of a CREATE TABLE statement."""
        lexer = DDLLexer()
        lexer.build()

        tokens = lexer.tokenize("CREATE TABLE Users (")
        token_types = [t.type for t in tokens]

        assert token_types == ["CREATE", "TABLE", "IDENTIFIER", "LPAREN"]

    def test_keywords_case_insensitive(self):
        """Test that keywords match in any case but identifiers keep theirs."""
        lexer = DDLLexer()
        lexer.build()

        tokens = lexer.tokenize("create Table myUsers")

        assert [t.type for t in tokens] == ["CREATE", "TABLE", "IDENTIFIER"]
        assert tokens[2].value == "myUsers"

    def test_tokenize_sized_type(self):
        """Test tokenizing STRING(MAX) and ARRAY<INT64>."""
        lexer = DDLLexer()
        lexer.build()

        tokens = lexer.tokenize("STRING(MAX) ARRAY<INT64>")
        token_types = [t.type for t in tokens]

        assert token_types == ["STRING", "LPAREN", "MAX", "RPAREN", "ARRAY", "LT", "INT64", "GT"]

    def test_decimal_literal(self):
        """Test signed decimal literals."""
        lexer = DDLLexer()
        lexer.build()

        tokens = lexer.tokenize("42 -12")

        assert [t.type for t in tokens] == ["DECIMAL_LITERAL", "DECIMAL_LITERAL"]
        assert [t.value for t in tokens] == [42, -12]

    def test_hex_literal(self):
        """Test hex literals, with and without sign."""
        lexer = DDLLexer()
        lexer.build()

        tokens = lexer.tokenize("0x1F +0x10")

        assert [t.type for t in tokens] == ["HEX_LITERAL", "HEX_LITERAL"]
        assert [t.value for t in tokens] == [31, 16]

    def test_quoted_identifier(self):
        """Test that backticks turn a reserved word into an identifier."""
        lexer = DDLLexer()
        lexer.build()

        tokens = lexer.tokenize("`Key` KEY")

        assert [t.type for t in tokens] == ["IDENTIFIER", "KEY"]
        assert tokens[0].value == "Key"

    def test_comments_ignored(self):
        """Test that -- comments are not tokenized."""
        lexer = DDLLexer()
        lexer.build()

        tokens = lexer.tokenize("-- a comment\nCREATE -- another\nTABLE")

        assert [t.type for t in tokens] == ["CREATE", "TABLE"]

    def test_iter_tokens_restarts(self):
        """Test that iterating twice yields the same tokens from the start."""
        lexer = DDLLexer()
        lexer.build()

        first = [t.type for t in lexer.iter_tokens("CREATE DATABASE db")]
        second = [t.type for t in lexer.iter_tokens("CREATE DATABASE db")]

        assert first == second == ["CREATE", "DATABASE", "IDENTIFIER"]

    def test_illegal_character(self):
        """Test error on illegal character, with its offset."""
        lexer = DDLLexer()
        lexer.build()

        with pytest.raises(LexError) as exc_info:
            lexer.tokenize("CREATE TABLE Users @")

        assert exc_info.value.position == 19
        assert "at position 19" in str(exc_info.value)

    def test_lex_error_is_syntax_error(self):
        """Test that LexError can be caught as SyntaxError."""
        lexer = DDLLexer()
        lexer.build()

        with pytest.raises(SyntaxError):
            lexer.tokenize("$")


class TestCreateTable:
    """Tests for parsing CREATE TABLE."""

    def test_parse_columns(self):
        """Test parsing column names, types and nullability."""
        ddl = DDLParser().parse(USERS)

        assert len(ddl.tables) == 1
        table = ddl.tables[0]
        assert table.table_name == "Users"
        assert [c.name for c in table.columns] == ["id", "name", "bio", "created_at"]
        assert table.columns[0].type == ScalarType(ScalarTag.INT64)
        assert table.columns[0].not_null is True
        assert table.columns[1].type == ScalarType(ScalarTag.STRING, 100)
        assert table.columns[1].not_null is False
        assert table.columns[2].type.length == MAX_LENGTH
        assert table.columns[2].type.is_unbounded

    def test_parse_options(self):
        """Test parsing allow_commit_timestamp options."""
        ddl = parse_ddl(USERS)

        assert ddl.tables[0].get_column("created_at").allow_commit_timestamp is True
        assert ddl.tables[0].get_column("id").allow_commit_timestamp is None

    def test_parse_options_null(self):
        """Test that allow_commit_timestamp = null is accepted."""
        ddl = parse_ddl(
            "CREATE TABLE T (ts TIMESTAMP OPTIONS (allow_commit_timestamp = null)) PRIMARY KEY (ts)"
        )

        assert ddl.tables[0].columns[0].allow_commit_timestamp is None

    def test_parse_primary_key(self):
        """Test parsing a single-column primary key."""
        ddl = parse_ddl(USERS)

        assert ddl.tables[0].primary_key == (KeyPart("id"),)
        assert ddl.tables[0].cluster == Cluster()

    def test_parse_key_order(self):
        """Test ASC/DESC on key parts."""
        ddl = parse_ddl("CREATE TABLE T (a INT64, b INT64, c INT64) PRIMARY KEY (a ASC, b DESC, c)")

        assert ddl.tables[0].primary_key == (
            KeyPart("a", KeyOrder.ASCENDING),
            KeyPart("b", KeyOrder.DESCENDING),
            KeyPart("c", KeyOrder.UNSPECIFIED),
        )

    def test_multiple_primary_key_clauses(self):
        """Test that repeated PRIMARY KEY clauses are concatenated in order."""
        ddl = parse_ddl("CREATE TABLE T (a INT64, b INT64) PRIMARY KEY (b) PRIMARY KEY (a)")

        assert [k.column_name for k in ddl.tables[0].primary_key] == ["b", "a"]

    def test_repeated_key_column(self):
        """Test error when a column appears twice across primary key clauses."""
        with pytest.raises(ParseError) as exc_info:
            parse_ddl("CREATE TABLE T (a INT64) PRIMARY KEY (a) PRIMARY KEY (a)")

        assert exc_info.value.statement == "CREATE TABLE"

    def test_parse_array(self):
        """Test parsing an ARRAY column type."""
        ddl = parse_ddl("CREATE TABLE T (id INT64 NOT NULL, tags ARRAY<STRING(MAX)>) PRIMARY KEY (id)")

        assert ddl.tables[0].columns[1].type == ArrayType(ScalarType(ScalarTag.STRING, MAX_LENGTH))

    def test_nested_array_rejected(self):
        """Test that arrays of arrays are a syntax error."""
        with pytest.raises(ParseError):
            parse_ddl("CREATE TABLE T (id INT64, x ARRAY<ARRAY<INT64>>) PRIMARY KEY (id)")

    def test_all_scalar_types(self):
        """Test parsing every scalar type."""
        ddl = parse_ddl("""
        CREATE TABLE T (
          a BOOL, b INT64, c FLOAT64, d NUMERIC, e STRING(10), f BYTES(MAX),
          g JSON, h DATE, i TIMESTAMP
        ) PRIMARY KEY (a)
        """)

        tags = [c.type.tag for c in ddl.tables[0].columns]
        assert tags == [
            ScalarTag.BOOL, ScalarTag.INT64, ScalarTag.FLOAT64, ScalarTag.NUMERIC,
            ScalarTag.STRING, ScalarTag.BYTES, ScalarTag.JSON, ScalarTag.DATE,
            ScalarTag.TIMESTAMP,
        ]

    def test_hex_length(self):
        """Test a hex literal length."""
        ddl = parse_ddl("CREATE TABLE T (s STRING(0x10)) PRIMARY KEY (s)")

        assert ddl.tables[0].columns[0].type.length == 16

    def test_zero_length_rejected(self):
        """Test that STRING(0) is a syntax error."""
        with pytest.raises(ParseError):
            parse_ddl("CREATE TABLE T (s STRING(0)) PRIMARY KEY (s)")

    def test_lowercase_keywords(self):
        """Test that keywords are case-insensitive."""
        ddl = parse_ddl("create table t (id int64 not null) primary key (id)")

        assert ddl.tables[0].table_name == "t"
        assert ddl.tables[0].columns[0].not_null is True

    def test_quoted_reserved_name(self):
        """Test a backtick-quoted reserved word as a column name."""
        ddl = parse_ddl("CREATE TABLE T (`Null` INT64 NOT NULL) PRIMARY KEY (`Null`)")

        assert ddl.tables[0].columns[0].name == "Null"
        assert ddl.tables[0].primary_key[0].column_name == "Null"

    def test_empty_column_list(self):
        """Test that a table may declare no columns."""
        ddl = parse_ddl("CREATE TABLE T () PRIMARY KEY (id)")

        assert ddl.tables[0].columns == ()

    def test_duplicate_column(self):
        """Test error on a column declared twice."""
        with pytest.raises(ParseError) as exc_info:
            parse_ddl("CREATE TABLE T (a INT64, a STRING(1)) PRIMARY KEY (a)")

        assert "Duplicate column 'a'" in str(exc_info.value)
        assert exc_info.value.position == 25

    def test_duplicate_table(self):
        """Test error on a table declared twice."""
        with pytest.raises(ParseError) as exc_info:
            parse_ddl(
                "CREATE TABLE T (a INT64) PRIMARY KEY (a);\n"
                "CREATE TABLE T (a INT64) PRIMARY KEY (a)"
            )

        assert "Duplicate table 'T'" in str(exc_info.value)

    def test_duplicate_table_after_valid_table(self):
        """Test that a duplicate fails the document instead of dropping the tables."""
        source = (
            "CREATE TABLE A (id INT64 NOT NULL) PRIMARY KEY (id);"
            "CREATE TABLE A (x INT64 NOT NULL) PRIMARY KEY (x)"
        )

        with pytest.raises(ParseError) as exc_info:
            parse_ddl(source)

        assert exc_info.value.statement == "CREATE TABLE"
        assert exc_info.value.position == source.rindex("A (x")

    def test_zero_length_position(self):
        """Test the offset reported for a zero length."""
        with pytest.raises(ParseError) as exc_info:
            parse_ddl("CREATE TABLE T (s STRING(0)) PRIMARY KEY (s)")

        assert exc_info.value.statement == "CREATE TABLE"
        assert exc_info.value.position == 25

    def test_negative_length_rejected(self):
        """Test that a negative hex length is a syntax error."""
        with pytest.raises(ParseError):
            parse_ddl("CREATE TABLE T (b BYTES(-0x1)) PRIMARY KEY (b)")

    def test_zero_length_in_array_rejected(self):
        """Test that the element length of an ARRAY is checked too."""
        with pytest.raises(ParseError):
            parse_ddl("CREATE TABLE T (id INT64, s ARRAY<BYTES(0)>) PRIMARY KEY (id)")

    def test_invalid_option(self):
        """Test that only true/null are accepted for allow_commit_timestamp."""
        with pytest.raises(ParseError):
            parse_ddl(
                "CREATE TABLE T (ts TIMESTAMP OPTIONS (allow_commit_timestamp = false)) PRIMARY KEY (ts)"
            )


class TestKeywordNames:
    """Tests for non-reserved keywords used as names."""

    def test_keyword_column_names(self):
        """Test columns named after types and clause keywords."""
        ddl = parse_ddl("""
        CREATE TABLE T (
          Id INT64 NOT NULL,
          Date DATE,
          Key STRING(10),
          Timestamp TIMESTAMP,
          Json JSON,
          Max INT64,
        ) PRIMARY KEY (Id)
        """)

        columns = ddl.tables[0].columns
        assert [c.name for c in columns] == ["Id", "Date", "Key", "Timestamp", "Json", "Max"]
        assert columns[1].type == ScalarType(ScalarTag.DATE)
        assert columns[2].type == ScalarType(ScalarTag.STRING, 10)

    def test_keyword_table_and_key_names(self):
        """Test a table and key part named with keywords."""
        ddl = parse_ddl("CREATE TABLE Action (Parent INT64 NOT NULL) PRIMARY KEY (Parent DESC)")

        assert ddl.tables[0].table_name == "Action"
        assert ddl.tables[0].primary_key == (KeyPart("Parent", KeyOrder.DESCENDING),)

    def test_keyword_interleave_parent(self):
        """Test interleaving in a table named with a keyword."""
        ddl = parse_ddl("CREATE TABLE C (id INT64) PRIMARY KEY (id), INTERLEAVE IN PARENT Table")

        assert ddl.tables[0].cluster.parent_table == "Table"

    def test_keyword_index_names(self):
        """Test index, table, key and STORING names that are keywords."""
        ddl = parse_ddl("CREATE INDEX Index ON Action (Key) STORING (Date), INTERLEAVE IN Parent")

        index = ddl.indexes[0]
        assert index.index_name == "Index"
        assert index.table_name == "Action"
        assert index.keys == (KeyPart("Key"),)
        assert index.storing == frozenset({"Date"})
        assert index.interleave_in == "Parent"

    def test_keyword_database_name(self):
        """Test a database named with a keyword."""
        assert parse_ddl("CREATE DATABASE Database").databases[0].database_name == "Database"

    def test_keyword_name_position(self):
        """Test that duplicate keyword names report their own offset."""
        source = "CREATE TABLE T (Date DATE, Date DATE) PRIMARY KEY (Date)"

        with pytest.raises(ParseError) as exc_info:
            parse_ddl(source)

        assert exc_info.value.position == source.index("Date DATE)")

    def test_reserved_word_rejected(self):
        """Test that reserved words still need backticks."""
        with pytest.raises(ParseError):
            parse_ddl("CREATE TABLE T (Null INT64) PRIMARY KEY (Null)")


class TestInterleave:
    """Tests for parsing INTERLEAVE IN PARENT."""

    def test_interleave_with_comma(self):
        """Test the comma-separated cluster clause with ON DELETE CASCADE."""
        ddl = parse_ddl("""
        CREATE TABLE Orders (
          user_id INT64 NOT NULL,
          id INT64 NOT NULL,
        ) PRIMARY KEY (user_id, id DESC),
          INTERLEAVE IN PARENT Users ON DELETE CASCADE
        """)

        cluster = ddl.tables[0].cluster
        assert cluster.parent_table == "Users"
        assert cluster.on_delete == OnDelete.CASCADE

    def test_interleave_no_action(self):
        """Test the cluster clause without a comma and ON DELETE NO ACTION."""
        ddl = parse_ddl(
            "CREATE TABLE C (id INT64) PRIMARY KEY (id) INTERLEAVE IN PARENT P ON DELETE NO ACTION"
        )

        assert ddl.tables[0].cluster == Cluster("P", OnDelete.NO_ACTION)

    def test_interleave_without_on_delete(self):
        """Test the cluster clause without ON DELETE."""
        ddl = parse_ddl("CREATE TABLE C (id INT64) PRIMARY KEY (id), INTERLEAVE IN PARENT P")

        assert ddl.tables[0].cluster == Cluster("P", OnDelete.NONE)


class TestCreateIndex:
    """Tests for parsing CREATE INDEX."""

    def test_parse_index(self):
        """Test parsing a plain index."""
        ddl = parse_ddl("CREATE INDEX UsersByName ON Users (name, id DESC)")

        assert len(ddl.indexes) == 1
        index = ddl.indexes[0]
        assert index.index_name == "UsersByName"
        assert index.table_name == "Users"
        assert index.keys == (KeyPart("name"), KeyPart("id", KeyOrder.DESCENDING))
        assert index.unique is False
        assert index.null_filtered is False
        assert index.storing == frozenset()
        assert index.interleave_in is None

    def test_parse_full_index(self):
        """Test UNIQUE NULL_FILTERED with STORING and INTERLEAVE IN."""
        ddl = parse_ddl(
            "CREATE UNIQUE NULL_FILTERED INDEX Idx ON Songs (title) "
            "STORING (album, length), INTERLEAVE IN Singers"
        )

        index = ddl.indexes[0]
        assert index.unique is True
        assert index.null_filtered is True
        assert index.storing == frozenset({"album", "length"})
        assert index.interleave_in == "Singers"

    def test_duplicate_index(self):
        """Test error on an index declared twice."""
        with pytest.raises(ParseError) as exc_info:
            parse_ddl("CREATE INDEX I ON T (a); CREATE INDEX I ON T (b)")

        assert exc_info.value.statement == "CREATE INDEX"

    def test_missing_on(self):
        """Test the statement kind reported for a malformed index."""
        with pytest.raises(ParseError) as exc_info:
            parse_ddl("CREATE INDEX Idx Users (id)")

        assert exc_info.value.statement == "CREATE INDEX"
        assert exc_info.value.position == 17


class TestDocument:
    """Tests for whole documents."""

    def test_empty_document(self):
        """Test that an empty document has no statements."""
        ddl = parse_ddl("")

        assert ddl.tables == ()
        assert ddl.indexes == ()

    def test_comment_only_document(self):
        """Test that a document of comments has no statements."""
        assert parse_ddl("-- nothing here\n").tables == ()

    def test_create_database(self):
        """Test parsing CREATE DATABASE."""
        ddl = parse_ddl("CREATE DATABASE music")

        assert ddl.databases[0].database_name == "music"
        assert ddl.tables == ()

    def test_multiple_statements_keep_order(self):
        """Test that statements are split by semicolons and keep source order."""
        ddl = parse_ddl("""
        CREATE DATABASE music;
        CREATE TABLE B (id INT64) PRIMARY KEY (id);
        CREATE INDEX BIdx ON B (id);
        CREATE TABLE A (id INT64) PRIMARY KEY (id);
        """)

        assert [t.table_name for t in ddl.tables] == ["B", "A"]
        assert [i.index_name for i in ddl.indexes] == ["BIdx"]

    def test_indexes_for_table(self):
        """Test selecting the indexes of one table in source order."""
        ddl = parse_ddl("CREATE INDEX A1 ON A (id); CREATE INDEX B1 ON B (id); CREATE INDEX A2 ON A (x)")

        assert [i.index_name for i in ddl.indexes_for("A")] == ["A1", "A2"]

    def test_parser_reusable(self):
        """Test that one parser can parse several documents."""
        parser = DDLParser()
        parser.parse("CREATE TABLE T (id INT64) PRIMARY KEY (id)")
        ddl = parser.parse("CREATE TABLE T (id INT64) PRIMARY KEY (id)")

        assert ddl.tables[0].table_name == "T"

    def test_syntax_error_at_token(self):
        """Test the position and statement kind of a bad token."""
        with pytest.raises(ParseError) as exc_info:
            parse_ddl("CREATE TABLE Users (id INT65 NOT NULL) PRIMARY KEY (id)")

        assert exc_info.value.statement == "CREATE TABLE"
        assert exc_info.value.position == 23
        assert "Syntax error at 'INT65'" in str(exc_info.value)

    def test_syntax_error_at_end(self):
        """Test a statement cut short."""
        source = "CREATE TABLE Users (id INT64 NOT NULL) PRIMARY KEY"

        with pytest.raises(ParseError) as exc_info:
            parse_ddl(source)

        assert exc_info.value.statement == "CREATE TABLE"
        assert exc_info.value.position == len(source)
        assert "end of input" in str(exc_info.value)

    def test_missing_primary_key(self):
        """Test that a table without PRIMARY KEY is a syntax error."""
        with pytest.raises(ParseError):
            parse_ddl("CREATE TABLE T (id INT64)")

    def test_unsupported_statement(self):
        """Test that statements other than CREATE are rejected."""
        with pytest.raises(ParseError) as exc_info:
            parse_ddl("DROP TABLE T")

        assert exc_info.value.statement is None

    def test_missing_semicolon(self):
        """Test that two statements need a separator."""
        with pytest.raises(ParseError):
            parse_ddl("CREATE DATABASE a CREATE DATABASE b")

    def test_lex_error_propagates(self):
        """Test that lexer errors abort the parse."""
        with pytest.raises(LexError):
            parse_ddl("CREATE TABLE T$ (id INT64) PRIMARY KEY (id)")
