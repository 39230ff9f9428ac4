"""Immutable input cursor threaded through every parser.

A cursor is the full input text plus an offset. Parsers never mutate it:
they return a new cursor on success, so a failed attempt leaves the caller's
cursor exactly where it was and alternation can backtrack by reusing it.
"""
from __future__ import annotations

from dataclasses import dataclass

# How much unconsumed input is echoed back in failure messages
_SNIPPET_LEN = 24


@dataclass(frozen=True)
class Cursor:
    text: str
    offset: int = 0

    @property
    def at_end(self) -> bool:
        return self.offset >= len(self.text)

    @property
    def remaining(self) -> str:
        return self.text[self.offset:]

    def startswith(self, literal: str) -> bool:
        return self.text.startswith(literal, self.offset)

    def advance(self, n: int) -> Cursor:
        return Cursor(self.text, min(self.offset + n, len(self.text)))

    def find(self, needle: str) -> int:
        """Offset of the next ``needle`` relative to the cursor, or -1."""
        idx = self.text.find(needle, self.offset)
        return -1 if idx < 0 else idx - self.offset

    def snippet(self) -> str:
        rest = self.text[self.offset:self.offset + _SNIPPET_LEN]
        if self.offset + _SNIPPET_LEN < len(self.text):
            rest += "…"
        return rest

    def __repr__(self) -> str:
        return f"Cursor(offset={self.offset}, rest={self.snippet()!r})"
