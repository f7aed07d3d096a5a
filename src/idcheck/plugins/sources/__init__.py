"""Input sources for identifier lists."""

from idcheck.plugins.sources.identifiers import (
    parse_identifiers,
    read_identifiers,
    read_identifiers_from_stream,
    stdin_is_piped,
)

__all__ = [
    "parse_identifiers",
    "read_identifiers",
    "read_identifiers_from_stream",
    "stdin_is_piped",
]
