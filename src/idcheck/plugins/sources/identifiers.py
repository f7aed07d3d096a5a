"""Identifier list sources: a file, or piped standard input.

Lines are stripped and blank lines skipped. Duplicates are kept; each
occurrence is validated and reported on its own.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import IO

from idcheck.contracts.errors import InputSourceError


def parse_identifiers(lines: Iterable[str]) -> list[str]:
    """Strip each line and drop the blank ones, preserving order."""
    return [stripped for stripped in (line.strip() for line in lines) if stripped]


def read_identifiers(path: Path, *, encoding: str = "utf-8") -> list[str]:
    """Read identifiers from a text file, one per line.

    Raises:
        InputSourceError: If the file is missing, unreadable or not
            valid text in the given encoding.
    """
    try:
        with open(path, encoding=encoding) as f:
            return parse_identifiers(f)
    except (OSError, UnicodeDecodeError) as e:
        raise InputSourceError(f"Cannot read input file {path}: {e}") from e


def read_identifiers_from_stream(stream: IO[str]) -> list[str]:
    """Read identifiers from an open text stream until EOF.

    Raises:
        InputSourceError: If reading the stream fails.
    """
    try:
        return parse_identifiers(stream.read().splitlines())
    except (OSError, UnicodeDecodeError) as e:
        raise InputSourceError(f"Cannot read piped input: {e}") from e


def stdin_is_piped(stream: IO[str]) -> bool:
    """True when the stream is a pipe or file rather than a terminal."""
    try:
        return not stream.isatty()
    except (AttributeError, ValueError):
        # Detached or closed stream
        return False
