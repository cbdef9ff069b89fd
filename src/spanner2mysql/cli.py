"""Command-line converter from Spanner DDL to MySQL DDL."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from spanner2mysql.converter import convert
from spanner2mysql.errors import ConversionError


def read_source(path: Path | None) -> str:
    """Read DDL from *path*, or from stdin when path is None or '-'."""
    if path is None or str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


def write_output(text: str, path: Path | None) -> None:
    """Write converted DDL to *path*, or to stdout when path is None or '-'."""
    if path is None or str(path) == "-":
        sys.stdout.write(text)
    else:
        path.write_text(text, encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Convert Cloud Spanner CREATE TABLE/INDEX statements into MySQL DDL"
    )
    parser.add_argument(
        "input",
        type=Path,
        nargs="?",
        default=None,
        help="Spanner DDL file to convert (default: stdin)",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="File to write MySQL DDL to (default: stdout)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log each converted table",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Only report errors",
    )

    args = parser.parse_args(argv)

    level = logging.WARNING
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", stream=sys.stderr)

    if args.input is not None and str(args.input) != "-" and not args.input.exists():
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1

    try:
        converted = convert(read_source(args.input))
    except (SyntaxError, ConversionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    write_output(converted, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
