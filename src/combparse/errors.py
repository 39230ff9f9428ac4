"""Public exception raised by the grammar entry points."""
from __future__ import annotations

from .core.result import Failure, FailureKind


class ParseError(ValueError):
    """A parse call failed.

    Wraps the lowest-level ``Failure`` so callers can inspect where and why
    (``offset``, ``kind``, ``failure.context``) or just print the message.
    """

    def __init__(self, message: str, failure: Failure) -> None:
        super().__init__(message)
        self.failure = failure

    def __reduce__(self):
        return (type(self), (str(self), self.failure))

    @property
    def kind(self) -> FailureKind:
        return self.failure.kind

    @property
    def offset(self) -> int:
        return self.failure.offset

    @classmethod
    def wrap(cls, what: str, failure: Failure) -> ParseError:
        return cls(f"Failed to parse {what}: {failure}", failure)
