"""Count parsed records by a field value."""
from __future__ import annotations

from collections import Counter as _Counter
from enum import Enum
from typing import Any


def field_value(record: Any, name: str) -> Any:
    """Look up ``name`` as a mapping key or an attribute; None if absent."""
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


class Counter:
    """Count occurrences of a field value across records."""

    def __init__(self, field: str) -> None:
        self._field = field
        self._counts: _Counter[str] = _Counter()

    def add(self, record: Any) -> None:
        value = field_value(record, self._field)
        if value is None:
            key = "unknown"
        elif isinstance(value, Enum):
            key = str(value.value)
        else:
            key = str(value)
        self._counts[key] += 1

    def top(self, n: int = 10) -> list[tuple[str, int]]:
        return self._counts.most_common(n)

    @property
    def total(self) -> int:
        return sum(self._counts.values())
