"""Typed NGINX combined-log record."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from ipaddress import IPv4Address
from typing import Any


class HttpMethod(str, Enum):
    """Request verbs accepted in the request line.

    Lookup is by literal value: ``HttpMethod("GET")``. Anything else raises
    ``ValueError``; there is no fallback member.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"
    CONNECT = "CONNECT"
    TRACE = "TRACE"
    PATCH = "PATCH"


class HttpVersion(str, Enum):
    HTTP_1_0 = "HTTP/1.0"
    HTTP_1_1 = "HTTP/1.1"
    HTTP_2_0 = "HTTP/2.0"
    HTTP_3_0 = "HTTP/3.0"


@dataclass(frozen=True)
class NginxLogRecord:
    """One fully parsed access-log line. Every field is always populated."""

    address: IPv4Address
    timestamp: datetime
    method: HttpMethod
    path: str
    http_version: HttpVersion
    status: int
    size: int
    referer: str
    user_agent: str

    def as_dict(self) -> dict[str, Any]:
        """Flatten to JSON-friendly scalars (used by the table/JSON outputs)."""
        return {
            "address": str(self.address),
            "timestamp": self.timestamp.isoformat(),
            "method": self.method.value,
            "path": self.path,
            "http_version": self.http_version.value,
            "status": self.status,
            "size": self.size,
            "referer": self.referer,
            "user_agent": self.user_agent,
        }
