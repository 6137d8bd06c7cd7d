#!/usr/bin/env python3
"""
Lint attribute list files.

Each non-blank line that is not a ``//`` comment is parsed as the body of
one attribute list, e.g. ``big, magic = b"PK", count(len)``.

Usage:
    metaparse-lint FILE [FILE ...]
    metaparse-lint --attrs struct FILE
    metaparse-lint --attrs packet.yaml FILE
    metaparse-lint --list --attrs field
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from .meta_attrs import AttrSet, parse_attributes
from .meta_config import ConfigError, resolve_attr_set
from .meta_cursor import ParseError
from .meta_lexer import LexerError

logger = logging.getLogger(__name__)


def lint_line(text: str, attrs: AttrSet) -> Optional[Tuple[int, int, str]]:
    """Parse one attribute list body; return (line, column, message) on error."""
    try:
        nodes = parse_attributes(text, attrs)
    except (ParseError, LexerError) as e:
        return e.line, e.column, e.message
    logger.debug("Parsed %d attribute(s): %s", len(nodes),
                 ", ".join(node.keyword.ident for node in nodes))
    return None


def lint_source(source: str, attrs: AttrSet) -> List[Tuple[int, int, str]]:
    """Lint every attribute line of ``source``; positions are file positions."""
    errors = []
    for lineno, text in enumerate(source.splitlines(), start=1):
        stripped = text.strip()
        if not stripped or stripped.startswith('//'):
            continue
        error = lint_line(text, attrs)
        if error is not None:
            line, column, message = error
            # The line is parsed alone, so its own line numbers start at 1
            errors.append((lineno + line - 1, column, message))
    return errors


def lint_file(path: Path, attrs: AttrSet) -> int:
    """Lint a single file. Returns the number of errors."""
    try:
        source = path.read_text()
    except OSError as e:
        print(f"{path}: error: {e.strerror or e}")
        return 1

    errors = lint_source(source, attrs)
    for line, column, message in errors:
        print(f"{path}:{line}:{column}: error: {message}")

    if not errors:
        logger.info("%s: OK", path)
    return len(errors)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Lint attribute list files."
    )
    parser.add_argument(
        "files",
        nargs="*",
        help="Files to lint"
    )
    parser.add_argument(
        "--attrs",
        default="field",
        help="Attribute set: 'struct', 'field' or a YAML definition file (default: field)"
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List the keywords of the attribute set and exit"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Show debug logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        attrs = resolve_attr_set(args.attrs)
    except (ConfigError, FileNotFoundError) as e:
        print(f"error: {e}")
        return 2

    if args.list:
        for ident in attrs.keywords():
            print(ident)
        return 0

    if not args.files:
        parser.print_help()
        return 1

    total_errors = 0
    for name in args.files:
        total_errors += lint_file(Path(name), attrs)

    if total_errors:
        print(f"\n{total_errors} error(s)")

    return 1 if total_errors else 0


if __name__ == "__main__":
    sys.exit(main())
