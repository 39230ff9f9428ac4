"""Grammar-independent parser combinators.

A ``Parser[T]`` wraps a function ``Cursor -> Success[T] | Failure``. The
primitives below build bigger parsers out of smaller ones without knowing
anything about the grammar they end up in.

Usage::

    from combparse.core.combinators import delimited, digit1, separated, ws

    numbers = delimited(ws("["), separated(digit1.map(int), ws(",")), ws("]"))
    result = numbers.parse("[1, 2, 3]")   # Success(value=[1, 2, 3], ...)
"""
from __future__ import annotations

from typing import Any, Callable, Generic, TypeVar, Union

from .cursor import Cursor
from .result import Failure, FailureKind, ParseResult, Success

T = TypeVar("T")
U = TypeVar("U")

ASCII_DIGITS = frozenset("0123456789")
_SPACE = frozenset(" \t")
_MULTISPACE = frozenset(" \t\r\n")


class Parser(Generic[T]):
    """A named parsing step.

    Calling a parser with a cursor returns ``Success`` carrying the value and
    the advanced cursor, or ``Failure`` describing what was expected where.
    The input cursor is never modified.
    """

    __slots__ = ("_fn", "name")

    def __init__(self, fn: Callable[[Cursor], ParseResult[T]], name: str = "parser") -> None:
        self._fn = fn
        self.name = name

    def __call__(self, cursor: Cursor) -> ParseResult[T]:
        return self._fn(cursor)

    def parse(self, text: str) -> ParseResult[T]:
        """Run the parser from the start of ``text`` (does not require EOF)."""
        return self(Cursor(text))

    # ------------------------------------------------------------------
    # Value transformation
    # ------------------------------------------------------------------

    def map(self, fn: Callable[[T], U]) -> Parser[U]:
        def run(cursor: Cursor) -> ParseResult[U]:
            res = self(cursor)
            if isinstance(res, Failure):
                return res
            return Success(fn(res.value), res.cursor)

        return Parser(run, self.name)

    def value(self, constant: U) -> Parser[U]:
        return self.map(lambda _: constant)

    def try_map(
        self,
        fn: Callable[[T], U],
        kind: FailureKind = FailureKind.CONVERSION,
        expected: str | None = None,
    ) -> Parser[U]:
        """Like ``map`` but a ``ValueError`` from ``fn`` becomes a failure of ``kind``.

        The failure is reported at the offset where the converted token began.
        """
        label = expected or self.name

        def run(cursor: Cursor) -> ParseResult[U]:
            res = self(cursor)
            if isinstance(res, Failure):
                return res
            try:
                converted = fn(res.value)
            except ValueError as exc:
                return Failure.at(cursor, label, kind, detail=str(exc))
            return Success(converted, res.cursor)

        return Parser(run, label)

    def context(self, label: str) -> Parser[T]:
        """Name this step and push ``label`` onto the context of any failure."""

        def run(cursor: Cursor) -> ParseResult[T]:
            res = self(cursor)
            if isinstance(res, Failure):
                return res.within(label)
            return res

        return Parser(run, label)

    def __or__(self, other: Parser[U]) -> Parser[Union[T, U]]:
        return alt(self, other)

    def __repr__(self) -> str:
        return f"<Parser {self.name}>"


ParserLike = Union[Parser[Any], str]


def _as_parser(p: ParserLike) -> Parser[Any]:
    return literal(p) if isinstance(p, str) else p


# ── Leaf matchers ────────────────────────────────────────────────────────────


def literal(text: str) -> Parser[str]:
    """Match ``text`` verbatim."""
    expected = repr(text)

    def run(cursor: Cursor) -> ParseResult[str]:
        if cursor.startswith(text):
            return Success(text, cursor.advance(len(text)))
        return Failure.at(cursor, expected)

    return Parser(run, expected)


def take_while(
    pred: Callable[[str], bool],
    min_len: int = 0,
    name: str = "characters",
) -> Parser[str]:
    """Consume the longest run of characters satisfying ``pred``."""

    def run(cursor: Cursor) -> ParseResult[str]:
        text = cursor.text
        end = cursor.offset
        while end < len(text) and pred(text[end]):
            end += 1
        if end - cursor.offset < min_len:
            return Failure.at(cursor, name)
        return Success(text[cursor.offset:end], Cursor(text, end))

    return Parser(run, name)


def take_till(stops: str, min_len: int = 0, name: str | None = None) -> Parser[str]:
    """Consume characters up to (not including) any character in ``stops``."""
    stop_set = frozenset(stops)
    label = name or f"characters other than {stops!r}"
    return take_while(lambda c: c not in stop_set, min_len, label)


def take_until(needle: str, min_len: int = 0, name: str | None = None) -> Parser[str]:
    """Consume everything before the next ``needle``; fail if it never occurs."""
    label = name or f"text terminated by {needle!r}"

    def run(cursor: Cursor) -> ParseResult[str]:
        idx = cursor.find(needle)
        if idx < 0 or idx < min_len:
            return Failure.at(cursor, label)
        return Success(cursor.text[cursor.offset:cursor.offset + idx], cursor.advance(idx))

    return Parser(run, label)


digit1: Parser[str] = take_while(lambda c: c in ASCII_DIGITS, 1, "digit")
space0: Parser[str] = take_while(lambda c: c in _SPACE, 0, "spaces")
multispace0: Parser[str] = take_while(lambda c: c in _MULTISPACE, 0, "whitespace")


def eof() -> Parser[None]:
    def run(cursor: Cursor) -> ParseResult[None]:
        if cursor.at_end:
            return Success(None, cursor)
        return Failure.at(cursor, "end of input")

    return Parser(run, "end of input")


# ── Composition ─────────────────────────────────────────────────────────────


def seq(*parsers: ParserLike) -> Parser[tuple[Any, ...]]:
    """Run every parser in order; the first failure fails the whole sequence."""
    steps = [_as_parser(p) for p in parsers]

    def run(cursor: Cursor) -> ParseResult[tuple[Any, ...]]:
        values = []
        current = cursor
        for step in steps:
            res = step(current)
            if isinstance(res, Failure):
                return res
            values.append(res.value)
            current = res.cursor
        return Success(tuple(values), current)

    return Parser(run, " ".join(s.name for s in steps))


def alt(*parsers: ParserLike) -> Parser[Any]:
    """Ordered choice: the first alternative that succeeds wins.

    When every alternative fails, the failure points at the offset where
    matching was attempted and lists what each alternative expected; the
    deepest alternative failure, if any got past that offset, is kept as
    detail. A semantic failure from an alternative that did match its token
    is surfaced as-is instead of being folded into that list.
    """
    options = [_as_parser(p) for p in parsers]
    expected = " or ".join(o.name for o in options)

    def run(cursor: Cursor) -> ParseResult[Any]:
        deepest: Failure | None = None
        for option in options:
            res = option(cursor)
            if isinstance(res, Success):
                return res
            if res.kind is not FailureKind.TOKEN:
                return res
            if res.offset > cursor.offset and (deepest is None or res.offset > deepest.offset):
                deepest = res
        detail = f"deepest: {deepest}" if deepest is not None else ""
        return Failure.at(cursor, expected, detail=detail)

    return Parser(run, expected)


def opt(parser: ParserLike) -> Parser[Any]:
    """Return the inner value, or ``None`` without consuming input."""
    inner = _as_parser(parser)

    def run(cursor: Cursor) -> ParseResult[Any]:
        res = inner(cursor)
        if isinstance(res, Failure):
            return Success(None, cursor)
        return res

    return Parser(run, f"optional {inner.name}")


def preceded(first: ParserLike, second: ParserLike) -> Parser[Any]:
    return seq(first, second).map(lambda pair: pair[1])


def terminated(first: ParserLike, second: ParserLike) -> Parser[Any]:
    return seq(first, second).map(lambda pair: pair[0])


def delimited(open_: ParserLike, inner: ParserLike, close: ParserLike) -> Parser[Any]:
    """Match ``open_``, then ``inner``, then ``close``; keep only the inner value."""
    return seq(open_, inner, close).map(lambda triple: triple[1])


def separated_pair(left: ParserLike, sep: ParserLike, right: ParserLike) -> Parser[tuple[Any, Any]]:
    return seq(left, sep, right).map(lambda triple: (triple[0], triple[2]))


def separated(
    item: ParserLike,
    sep: ParserLike,
    min_count: int = 0,
    exact: int | None = None,
) -> Parser[list[Any]]:
    """Repeat ``item`` interleaved with ``sep``.

    With ``exact`` set, exactly that many items are required. Otherwise at
    least ``min_count`` (0 or 1) are, and repetition stops at the first
    separator-then-item step that fails; the cursor is rewound to before that
    separator, so a trailing separator is left for the caller to reject.
    """
    item_p = _as_parser(item)
    sep_p = _as_parser(sep)
    if exact is not None:
        label = f"{exact} x {item_p.name} separated by {sep_p.name}"
    else:
        label = f"{item_p.name} separated by {sep_p.name}"

    def run(cursor: Cursor) -> ParseResult[list[Any]]:
        first = item_p(cursor)
        if isinstance(first, Failure):
            if exact is None and min_count == 0 and first.kind is FailureKind.TOKEN:
                return Success([], cursor)
            return first
        values = [first.value]
        current = first.cursor
        while exact is None or len(values) < exact:
            sep_res = sep_p(current)
            if isinstance(sep_res, Failure):
                if exact is not None:
                    return sep_res
                break
            next_res = item_p(sep_res.cursor)
            if isinstance(next_res, Failure):
                if exact is not None or next_res.kind is not FailureKind.TOKEN:
                    return next_res
                break
            if next_res.cursor.offset == current.offset:
                # Neither separator nor item consumed input; stop rather than spin.
                break
            values.append(next_res.value)
            current = next_res.cursor
        return Success(values, current)

    return Parser(run, label)


def ws(parser: ParserLike) -> Parser[Any]:
    """Surround ``parser`` with optional whitespace (spaces, tabs, newlines)."""
    inner = _as_parser(parser)
    return Parser(delimited(multispace0, inner, multispace0), inner.name)


def lazy(factory: Callable[[], Parser[T]]) -> Parser[T]:
    """Defer building a parser until first use, for self-recursive grammars."""
    resolved: list[Parser[T]] = []

    def run(cursor: Cursor) -> ParseResult[T]:
        if not resolved:
            resolved.append(factory())
        return resolved[0](cursor)

    return Parser(run, "value")
