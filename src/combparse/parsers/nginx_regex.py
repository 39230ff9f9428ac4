"""Regex shortcut for NGINX combined log lines.

Returns the raw field strings without any typing or validation: the octets,
timestamp, verb and version are whatever the line says. Use
``combparse.parsers.nginx`` when the values matter; this one exists for
quick greps and as a cross-check of the typed grammar.
"""
from __future__ import annotations

import re

_COMBINED_RE = re.compile(
    r'^(?P<addr>\S+)\s+'            # client IP
    r'\S+\s+\S+\s+'                 # ident, user
    r'\[(?P<datetime>[^\]]+)\]\s+'  # [timestamp]
    r'"(?P<method>\S+)\s+'          # "METHOD
    r'(?P<url>\S+)\s+'              # /path
    r'(?P<protocol>[^"]+)"\s+'      # HTTP/x.x"
    r'(?P<status>\d+)\s+'           # status code
    r'(?P<body_bytes>\d+)\s+'       # bytes sent
    r'"(?P<referer>[^"]+)"\s+'      # referer
    r'"(?P<user_agent>[^"]+)"$'     # user-agent
)


class NginxRegexParser:
    """Split a combined log line into untyped string fields."""

    @property
    def name(self) -> str:
        return "nginx-regex"

    def parse_line(self, line: str) -> dict[str, str] | None:
        line = line.strip()
        if not line:
            return None
        m = _COMBINED_RE.match(line)
        if not m:
            return None
        return m.groupdict()
