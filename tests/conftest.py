"""Shared pytest fixtures for combparse tests."""
from __future__ import annotations

from pathlib import Path

import pytest

SAMPLE_LINE = (
    '93.180.71.3 - - [17/May/2015:08:05:32 +0000] "GET /downloads/product_1 HTTP/1.1" '
    '304 0 "-" "Debian APT-HTTP/1.3 (0.8.16~exp12ubuntu10.21)"'
)


@pytest.fixture()
def tmp_log_file(tmp_path: Path):
    """Return a factory that creates temporary input files."""

    def _make(lines: list[str], name: str = "test.log") -> Path:
        p = tmp_path / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def sample_line() -> str:
    return SAMPLE_LINE


@pytest.fixture()
def nginx_log_lines() -> list[str]:
    return [
        SAMPLE_LINE,
        '10.0.0.1 - - [01/Aug/2025:10:00:01 +0000] "POST /api/v1/jobs HTTP/2.0" 201 1024 '
        '"https://example.com/" "curl/8.4.0"',
        '192.168.1.2 - - [01/Aug/2025:10:00:02 +0200] "GET /missing HTTP/1.1" 404 128 '
        '"-" "Mozilla/5.0 (X11; Linux x86_64)"',
    ]


@pytest.fixture()
def bad_nginx_line() -> str:
    return (
        '10.0.0.300 - - [01/Aug/2025:10:00:03 +0000] "GET / HTTP/1.1" 200 5 "-" "curl/8.4.0"'
    )


@pytest.fixture()
def json_document() -> str:
    return """{
        "name": "John Doe",
        "age": 30,
        "is_student": false,
        "marks": [90.0, -80.0, 85.1],
        "address": {
            "city": "New York",
            "zip": 10001
        }
    }"""
