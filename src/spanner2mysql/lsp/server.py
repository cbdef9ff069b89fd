"""Spanner DDL Language Server — diagnostics, completion, hover via pygls."""

from __future__ import annotations

import re

from lsprotocol import types
from pygls.lsp.server import LanguageServer

from spanner2mysql.converter import get_mysql_create_tables, get_mysql_type
from spanner2mysql.errors import ConversionError, LexError, ParseError
from spanner2mysql.parsing import DDLParser
from spanner2mysql.types import ScalarTag, ScalarType

# ---------------------------------------------------------------------------
# Static data
# ---------------------------------------------------------------------------

SCALAR_TYPES: dict[str, str] = {
    "BOOL": "Boolean",
    "INT64": "Signed 64-bit integer",
    "FLOAT64": "64-bit IEEE 754 float",
    "NUMERIC": "Exact decimal, 38 digits of precision (not convertible)",
    "STRING": "Variable-length Unicode string, STRING(n) or STRING(MAX)",
    "BYTES": "Variable-length binary string, BYTES(n) or BYTES(MAX)",
    "JSON": "JSON document (not convertible)",
    "DATE": "Calendar date",
    "TIMESTAMP": "Point in time with nanosecond precision",
}

KEYWORDS: dict[str, str] = {
    "create": "Start a CREATE DATABASE, TABLE or INDEX statement",
    "database": "Declare a database (ignored by the converter)",
    "table": "Declare a table",
    "index": "Declare a secondary index, converted to an inline INDEX clause",
    "unique": "Unique index, converted to an inline UNIQUE clause",
    "null_filtered": "Skip rows with NULL keys (ignored by the converter)",
    "storing": "Extra columns copied into the index (dropped by the converter)",
    "interleave": "Co-locate rows with a parent table, converted to a FOREIGN KEY",
    "parent": "Names the parent table of an interleaved table",
    "primary": "Used with 'primary key'",
    "key": "Primary key clause, key columns must be NOT NULL",
    "array": "ARRAY<scalar> column type (not convertible)",
    "options": "Column options, e.g. allow_commit_timestamp",
    "max": "Unbounded length for STRING or BYTES",
    "cascade": "Delete child rows along with the parent row",
}

# Regex to find declared table names in source
_TABLE_RE = re.compile(r"\bcreate\s+table\s+`?([A-Za-z][A-Za-z0-9_]*)`?", re.IGNORECASE)

# ---------------------------------------------------------------------------
# Helpers (module-level so they are easy to unit-test)
# ---------------------------------------------------------------------------


def lexpos_to_position(source: str, lexpos: int) -> types.Position:
    """Convert a character offset into an LSP ``Position(line, character)``."""
    line = source.count("\n", 0, lexpos)
    last_nl = source.rfind("\n", 0, lexpos)
    character = lexpos if last_nl == -1 else lexpos - last_nl - 1
    return types.Position(line=line, character=character)


def _find_tables(source: str) -> list[str]:
    """Return table names declared in *source*."""
    return [m.group(1) for m in _TABLE_RE.finditer(source)]


def _find_table_offset(source: str, table_name: str | None) -> int | None:
    """Return the offset of the CREATE TABLE statement for *table_name*."""
    if table_name is None:
        return None
    for m in _TABLE_RE.finditer(source):
        if m.group(1) == table_name:
            return m.start()
    return None


def _word_at_position(line_text: str, character: int) -> str:
    """Return the contiguous identifier-like word surrounding *character*."""
    if character < 0 or character >= len(line_text):
        return ""
    ch = line_text[character]
    if not (ch.isalnum() or ch == "_"):
        return ""
    # Scan left
    left = character
    while left > 0 and (line_text[left - 1].isalnum() or line_text[left - 1] == "_"):
        left -= 1
    # Scan right
    right = character
    while right < len(line_text) and (line_text[right].isalnum() or line_text[right] == "_"):
        right += 1
    return line_text[left:right]


def _hover_text(word: str) -> str | None:
    """Return Markdown hover text for a type or keyword, or None."""
    upper = word.upper()
    if upper in SCALAR_TYPES:
        text = f"**{upper}** — {SCALAR_TYPES[upper]}"
        tag = ScalarTag(upper)
        if tag.has_length:
            return text
        try:
            return f"{text}\n\nMySQL: `{get_mysql_type(ScalarType(tag=tag))}`"
        except ConversionError:
            return text
    lower = word.lower()
    if lower in KEYWORDS:
        return f"**{upper}** — {KEYWORDS[lower]}"
    return None


def check_source(source: str) -> types.Diagnostic | None:
    """Parse and convert *source*, returning a diagnostic for the first error."""
    try:
        get_mysql_create_tables(_parser.parse(source))
    except (LexError, ParseError) as exc:
        offset = exc.position
        message = str(exc)
    except ConversionError as exc:
        offset = _find_table_offset(source, exc.table_name)
        message = str(exc)
    else:
        return None

    if offset is not None:
        start = lexpos_to_position(source, offset)
    else:
        # Fallback: start of document
        start = types.Position(line=0, character=0)
    end = types.Position(line=start.line, character=start.character + 1)
    return types.Diagnostic(
        range=types.Range(start=start, end=end),
        severity=types.DiagnosticSeverity.Error,
        source="spanner2mysql",
        message=message,
    )


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------

server = LanguageServer("spanner2mysql-language-server", "0.1.0")
_parser = DDLParser()


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
def did_open(params: types.DidOpenTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
def did_change(params: types.DidChangeTextDocumentParams) -> None:
    _validate_document(params.text_document.uri)


def _validate_document(uri: str) -> None:
    doc = server.workspace.get_text_document(uri)
    diagnostic = check_source(doc.source)
    diagnostics = [diagnostic] if diagnostic is not None else []
    server.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(
    types.TEXT_DOCUMENT_COMPLETION,
    types.CompletionOptions(trigger_characters=[" "]),
)
def completions(params: types.CompletionParams) -> types.CompletionList:
    doc = server.workspace.get_text_document(params.text_document.uri)
    items: list[types.CompletionItem] = []

    for name, desc in SCALAR_TYPES.items():
        items.append(
            types.CompletionItem(
                label=name,
                kind=types.CompletionItemKind.TypeParameter,
                detail=desc,
            )
        )
    for name in _find_tables(doc.source):
        items.append(
            types.CompletionItem(
                label=name,
                kind=types.CompletionItemKind.Class,
                detail="Table",
            )
        )

    return types.CompletionList(is_incomplete=False, items=items)


@server.feature(types.TEXT_DOCUMENT_HOVER)
def hover(params: types.HoverParams) -> types.Hover | None:
    doc = server.workspace.get_text_document(params.text_document.uri)
    if params.position.line >= len(doc.lines):
        return None
    word = _word_at_position(doc.lines[params.position.line], params.position.character)
    if not word:
        return None

    content = _hover_text(word)
    if content is None:
        return None
    return types.Hover(
        contents=types.MarkupContent(
            kind=types.MarkupKind.Markdown,
            value=content,
        )
    )


def main() -> None:
    server.start_io()


if __name__ == "__main__":
    main()
