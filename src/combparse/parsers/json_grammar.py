"""JSON value grammar built from the core combinators.

    value  := null | bool | number | string | array | object
    number := "-"? digits ("." digits)?
    string := '"' <anything but '"'>* '"'
    array  := "[" (value ("," value)*)? "]"
    object := "{" string ":" value ("," string ":" value)* "}"

Whitespace is allowed around every punctuation mark. Deliberate limits:
strings are taken verbatim (no escape decoding), there is no exponent
notation, and ``{}`` is rejected because an object needs at least one pair
while ``[]`` is accepted.
"""
from __future__ import annotations

import logging
from typing import Any, Iterator

from ..core.combinators import (
    Parser,
    alt,
    delimited,
    digit1,
    eof,
    lazy,
    literal,
    multispace0,
    opt,
    separated,
    separated_pair,
    seq,
    take_until,
    ws,
)
from ..core.cursor import Cursor
from ..core.result import Failure, FailureKind, ParseResult, Success
from ..errors import ParseError
from ..model.json_value import (
    INT64_MAX,
    Float,
    Int,
    JsonArray,
    JsonBool,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
    JsonValue,
    Number,
)

logger = logging.getLogger(__name__)


def _int64_digits(digits: str) -> str:
    if int(digits) > INT64_MAX:
        raise ValueError(f"{digits} does not fit in a signed 64-bit integer")
    return digits


_sign = opt("-").map(lambda s: s is not None)
_int_part = digit1.try_map(_int64_digits, FailureKind.FORMAT, "integer")
_dot = literal(".")


def _fraction(cursor: Cursor) -> ParseResult[str | None]:
    # A '.' commits to a fractional part: "1." is an error, not Int(1) + "."
    dot = _dot(cursor)
    if isinstance(dot, Failure):
        return Success(None, cursor)
    frac = digit1(dot.cursor)
    if isinstance(frac, Failure):
        return frac.within("fraction")
    return frac


def _build_number(parts: tuple[bool, str, str | None]) -> Number:
    negative, int_digits, frac_digits = parts
    if frac_digits is None:
        n = int(int_digits)
        return Int(-n if negative else n)
    # Concatenate the digit runs and let float() round once.
    f = float(f"{int_digits}.{frac_digits}")
    return Float(-f if negative else f)


parse_null: Parser[JsonNull] = literal("null").value(JsonNull())
parse_bool: Parser[bool] = alt(literal("true").value(True), literal("false").value(False))
parse_number: Parser[Number] = Parser(
    seq(_sign, _int_part, Parser(_fraction, "fraction")).map(_build_number), "number"
)
parse_string: Parser[str] = delimited('"', take_until('"', name="closing '\"'"), '"').context("string")

parse_value: Parser[JsonValue] = lazy(lambda: _value)

parse_array: Parser[tuple[JsonValue, ...]] = delimited(
    ws("["),
    separated(parse_value, ws(","), min_count=0),
    ws("]"),
).map(tuple).context("array")

_member = separated_pair(parse_string, ws(":"), parse_value)

parse_object: Parser[JsonObject] = delimited(
    ws("{"),
    separated(_member, ws(","), min_count=1),
    ws("}"),
).map(JsonObject.from_pairs).context("object")

_value: Parser[JsonValue] = alt(
    Parser(parse_null, "null"),
    Parser(parse_bool.map(JsonBool), "boolean"),
    Parser(parse_number.map(JsonNumber), "number"),
    Parser(parse_string.map(JsonString), "string"),
    Parser(parse_array.map(JsonArray), "array"),
    Parser(parse_object, "object"),
)

_document = delimited(multispace0, parse_value, seq(multispace0, eof()))


def parse_json(text: str) -> JsonValue:
    """Parse exactly one JSON document.

    Surrounding whitespace is allowed; anything else after the value is an
    error. Raises ``ParseError`` on failure.
    """
    try:
        res = _document(Cursor(text))
    except RecursionError:
        failure = Failure(
            expected="document",
            offset=0,
            remaining=Cursor(text).snippet(),
            kind=FailureKind.FORMAT,
            detail="nesting exceeds the interpreter recursion limit",
        )
        raise ParseError.wrap("JSON", failure) from None
    if isinstance(res, Failure):
        logger.debug("JSON parse failed: %s", res)
        raise ParseError.wrap("JSON", res)
    return res.value


class JsonGrammar:
    """Line-oriented adapter: one JSON document per line (NDJSON)."""

    @property
    def name(self) -> str:
        return "json"

    def parse_line(self, line: str) -> JsonValue | None:
        """Parse one line. Blank lines return None; malformed lines raise ParseError."""
        line = line.strip()
        if not line:
            return None
        return parse_json(line)

    def parse_file(self, path: str) -> Iterator[Any]:
        with open(path, encoding="utf-8", errors="replace") as f:
            for line in f:
                value = self.parse_line(line)
                if value is not None:
                    yield value
