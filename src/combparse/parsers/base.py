"""Line grammar Protocol: the typed grammars implement this."""
from __future__ import annotations

from typing import Any, Iterator, Protocol, runtime_checkable


@runtime_checkable
class LineGrammar(Protocol):
    """Protocol for line-oriented grammars; duck-typed, no inheritance required."""

    def parse_line(self, line: str) -> Any | None:
        """Parse a single line. Returns None for blank lines, raises ParseError otherwise."""
        ...

    def parse_file(self, path: str) -> Iterator[Any]:
        """Stream-parse a file line by line."""
        ...

    @property
    def name(self) -> str:
        """Grammar name ('json', 'nginx')."""
        ...
