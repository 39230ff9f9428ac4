"""Parse outcomes: an explicit ``Success | Failure`` sum type.

Every parser returns one of these two values instead of raising. Exceptions
only appear at the public entry points, where a ``Failure`` is wrapped into a
``combparse.errors.ParseError``.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Generic, TypeVar, Union

from .cursor import Cursor

T = TypeVar("T")


class FailureKind(str, Enum):
    """Failure tiers.

    TOKEN: an expected literal or character class was not found.
    CONVERSION: a token was matched but is not a known enum literal.
    FORMAT: a token was matched but its content is malformed or out of
    range, e.g. a timestamp, a numeric width or the nesting depth.
    """

    TOKEN = "token"
    CONVERSION = "conversion"
    FORMAT = "format"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T
    cursor: Cursor


@dataclass(frozen=True)
class Failure:
    expected: str
    offset: int
    remaining: str
    kind: FailureKind = FailureKind.TOKEN
    context: tuple[str, ...] = field(default=())
    detail: str = ""

    @classmethod
    def at(
        cls,
        cursor: Cursor,
        expected: str,
        kind: FailureKind = FailureKind.TOKEN,
        detail: str = "",
    ) -> Failure:
        return cls(
            expected=expected,
            offset=cursor.offset,
            remaining=cursor.snippet(),
            kind=kind,
            detail=detail,
        )

    def within(self, label: str) -> Failure:
        """Return a copy with ``label`` pushed onto the front of the context trail."""
        return replace(self, context=(label, *self.context))

    def __str__(self) -> str:
        where = " > ".join(self.context)
        prefix = f"[{where}] " if where else ""
        if self.kind is FailureKind.TOKEN:
            msg = f"{prefix}expected {self.expected} at offset {self.offset}"
        else:
            msg = f"{prefix}{self.kind.value} error in {self.expected} at offset {self.offset}"
        if self.detail:
            msg += f": {self.detail}"
        return f"{msg} (remaining: {self.remaining!r})"


ParseResult = Union[Success[T], Failure]
