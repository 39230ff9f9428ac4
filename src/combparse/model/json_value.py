"""Typed JSON value tree.

``JsonValue`` is a closed union of frozen dataclasses; ``Number`` is itself a
union of ``Int`` and ``Float``. Arrays hold a tuple and objects a read-only
mapping, so a parsed tree cannot be mutated after construction.

Object equality ignores key order. Duplicate keys are resolved last write
wins when the object is built; that is the model's policy, not an error.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Union

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class Int:
    value: int

    def __post_init__(self) -> None:
        if not INT64_MIN <= self.value <= INT64_MAX:
            raise ValueError(f"{self.value} does not fit in a signed 64-bit integer")


@dataclass(frozen=True)
class Float:
    value: float


Number = Union[Int, Float]


@dataclass(frozen=True)
class JsonNull:
    pass


@dataclass(frozen=True)
class JsonBool:
    value: bool


@dataclass(frozen=True)
class JsonNumber:
    value: Number


@dataclass(frozen=True)
class JsonString:
    value: str


@dataclass(frozen=True)
class JsonArray:
    items: tuple[JsonValue, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __getitem__(self, index: int) -> JsonValue:
        return self.items[index]


@dataclass(frozen=True, eq=False)
class JsonObject:
    members: Mapping[str, JsonValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "members", MappingProxyType(dict(self.members)))

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, JsonValue]]) -> JsonObject:
        """Build an object from key/value pairs; a repeated key keeps its last value."""
        return cls(dict(pairs))

    def __reduce__(self):
        # mappingproxy cannot be pickled; rebuild from a plain dict
        return (JsonObject, (dict(self.members),))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, JsonObject):
            return NotImplemented
        return dict(self.members) == dict(other.members)

    def __len__(self) -> int:
        return len(self.members)

    def __getitem__(self, key: str) -> JsonValue:
        return self.members[key]

    def __contains__(self, key: object) -> bool:
        return key in self.members

    def __repr__(self) -> str:
        return f"JsonObject(members={dict(self.members)!r})"


JsonValue = Union[JsonNull, JsonBool, JsonNumber, JsonString, JsonArray, JsonObject]


def to_python(value: JsonValue) -> Any:
    """Convert a value tree into plain ``None``/``bool``/``int``/``float``/``str``/``list``/``dict``."""
    if isinstance(value, JsonNull):
        return None
    if isinstance(value, (JsonBool, JsonString)):
        return value.value
    if isinstance(value, JsonNumber):
        return value.value.value
    if isinstance(value, JsonArray):
        return [to_python(item) for item in value.items]
    if isinstance(value, JsonObject):
        return {key: to_python(item) for key, item in value.members.items()}
    raise TypeError(f"not a JSON value: {value!r}")
