"""Pick a grammar from a sample line."""
from __future__ import annotations

import re

from .base import LineGrammar
from .json_grammar import JsonGrammar
from .nginx import NginxGrammar

# Combined log: dotted quad, identity fields, then [timestamp
_NGINX_RE = re.compile(r"^\d{1,3}(?:\.\d{1,3}){3}\s+\S+\s+\S+\s+\[")

_JSON_OPENERS = ("{", "[", '"', "-", "t", "f", "n") + tuple("0123456789")

GRAMMARS: dict[str, type] = {
    "json": JsonGrammar,
    "nginx": NginxGrammar,
}


def detect_format(line: str) -> str | None:
    """Return 'nginx' or 'json' for a sample line, or None if neither fits.

    The NGINX check runs first because a log line also starts with a digit.
    """
    line = line.strip()
    if not line:
        return None
    if _NGINX_RE.match(line):
        return "nginx"
    if line.startswith(_JSON_OPENERS):
        return "json"
    return None


def get_grammar(name: str) -> LineGrammar:
    try:
        return GRAMMARS[name]()
    except KeyError:
        raise ValueError(f"unknown grammar {name!r} (choose from {', '.join(sorted(GRAMMARS))})") from None


def grammar_for_file(path: str, hint: str = "auto") -> LineGrammar:
    """Resolve ``hint`` to a grammar, sniffing the first non-blank line for 'auto'.

    The detected grammar is locked in for the whole file.
    """
    if hint != "auto":
        return get_grammar(hint)
    with open(path, encoding="utf-8", errors="replace") as f:
        for raw_line in f:
            if raw_line.strip():
                fmt = detect_format(raw_line)
                if fmt is None:
                    raise ValueError(f"cannot detect the format of {path}")
                return get_grammar(fmt)
    return get_grammar("json")
