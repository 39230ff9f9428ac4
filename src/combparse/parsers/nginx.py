"""NGINX combined log format parser.

    $remote_addr - $remote_user [$time_local] "$request" $status
    $body_bytes_sent "$http_referer" "$http_user_agent"

Example::

    93.180.71.3 - - [17/May/2015:08:05:32 +0000] "GET /downloads/product_1 HTTP/1.1" 304 0 "-" "Debian APT-HTTP/1.3 (0.8.16~exp12ubuntu10.21)"

Fields are parsed strictly left to right, each followed by a run of spaces or tabs.
The first field that fails aborts the line; a record is only built once every
field has parsed. The identity/user fields must be the literal ``- -``.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from ipaddress import IPv4Address
from typing import Callable, Iterator

from ..core.combinators import (
    Parser,
    delimited,
    digit1,
    eof,
    literal,
    separated,
    seq,
    space0,
    take_till,
    take_until,
    terminated,
)
from ..core.cursor import Cursor
from ..core.result import Failure, FailureKind
from ..errors import ParseError
from ..model.nginx_record import HttpMethod, HttpVersion, NginxLogRecord

TIME_LOCAL_FORMAT = "%d/%b/%Y:%H:%M:%S %z"

# strptime's %z also takes "Z" and "+00:00"; time_local is always ' ±hhmm'
_ZONE_RE = re.compile(r" [+-]\d{4}\Z")

UINT8_MAX = 2 ** 8 - 1
UINT16_MAX = 2 ** 16 - 1
UINT64_MAX = 2 ** 64 - 1


def _unsigned(limit: int, what: str) -> Callable[[str], int]:
    def convert(digits: str) -> int:
        value = int(digits)
        if value > limit:
            raise ValueError(f"{what} {digits} exceeds {limit}")
        return value

    return convert


def _to_utc(raw: str) -> datetime:
    if not _ZONE_RE.search(raw):
        raise ValueError(f"{raw!r} does not end with a '+hhmm' or '-hhmm' offset")
    local = datetime.strptime(raw, TIME_LOCAL_FORMAT)
    try:
        return local.astimezone(timezone.utc)
    except OverflowError as exc:
        # the UTC instant falls outside year 1..9999
        raise ValueError(f"{raw!r} is out of range in UTC: {exc}") from None


def field(parser: Parser) -> Parser:
    """A log field: the token itself followed by any spaces."""
    return Parser(terminated(parser, space0), parser.name)


# ── Scalar fields ────────────────────────────────────────────────────────────

octet = digit1.try_map(_unsigned(UINT8_MAX, "octet"), FailureKind.FORMAT, "octet")

ipv4: Parser[IPv4Address] = separated(octet, ".", exact=4).map(
    lambda octets: IPv4Address(bytes(octets))
)

identity = literal("- - ")

timestamp: Parser[datetime] = delimited(
    "[", take_till("]", name="timestamp text"), "]"
).try_map(_to_utc, FailureKind.FORMAT, "timestamp")

method: Parser[HttpMethod] = take_till(' \t"', 1, "method").try_map(
    HttpMethod, FailureKind.CONVERSION, "method"
)
request_path: Parser[str] = take_till(" \t", 1, "path")
http_version: Parser[HttpVersion] = take_till(' \t"', 1, "protocol version").try_map(
    HttpVersion, FailureKind.CONVERSION, "protocol version"
)

request: Parser[tuple[HttpMethod, str, HttpVersion]] = delimited(
    '"',
    seq(field(method), field(request_path), field(http_version)),
    '"',
)

status = digit1.try_map(_unsigned(UINT16_MAX, "status"), FailureKind.FORMAT, "status")
size = digit1.try_map(_unsigned(UINT64_MAX, "size"), FailureKind.FORMAT, "size")

quoted: Parser[str] = delimited('"', take_until('"', 1, "quoted text"), '"')


def _build_record(fields: tuple) -> NginxLogRecord:
    addr, _, ts, (verb, url, version), code, nbytes, referer, agent, _ = fields
    return NginxLogRecord(
        address=addr,
        timestamp=ts,
        method=verb,
        path=url,
        http_version=version,
        status=code,
        size=nbytes,
        referer=referer,
        user_agent=agent,
    )


log_line: Parser[NginxLogRecord] = seq(
    field(ipv4).context("address"),
    identity.context("identity"),
    field(timestamp).context("timestamp"),
    field(request).context("request"),
    field(status).context("status"),
    field(size).context("size"),
    field(quoted).context("referer"),
    field(quoted).context("user_agent"),
    eof(),
).map(_build_record)


def parse_nginx_log(line: str) -> NginxLogRecord:
    """Parse one complete combined-format line. Raises ``ParseError``."""
    res = log_line(Cursor(line))
    if isinstance(res, Failure):
        raise ParseError.wrap("log", res)
    return res.value


class NginxGrammar:
    """Typed parser for NGINX combined access logs."""

    @property
    def name(self) -> str:
        return "nginx"

    def parse_line(self, line: str) -> NginxLogRecord | None:
        """Parse one line. Blank lines return None; malformed lines raise ParseError."""
        line = line.strip()
        if not line:
            return None
        return parse_nginx_log(line)

    def parse_file(self, path: str) -> Iterator[NginxLogRecord]:
        with open(path, encoding="utf-8", errors="replace") as f:
            for line in f:
                record = self.parse_line(line)
                if record is not None:
                    yield record
