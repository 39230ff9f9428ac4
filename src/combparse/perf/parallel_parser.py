"""Batch and multiprocessing line parsing.

The grammars parse one line per call and share no state, so a file can be
split into byte ranges and parsed by independent worker processes.

Strategy:
    1. Split the file into N byte-range chunks (one per worker).
    2. Each worker parses its chunk with the requested grammar and returns
       the parsed values plus the number of skipped lines.
    3. Results are merged in order by the main process.

Usage::

    from combparse.perf.parallel_parser import parse_file_parallel

    records = parse_file_parallel("access.log", "nginx", workers=8)
    print(f"Parsed {len(records):,} records")
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from multiprocessing import Pool
from typing import Any, Iterable, Iterator

from ..config import settings
from ..errors import ParseError
from ..parsers.auto_detect import get_grammar
from ..parsers.base import LineGrammar

logger = logging.getLogger(__name__)

ON_ERROR_CHOICES = ("skip", "abort")

# (path, start_byte, end_byte, grammar name, on_error)
_Chunk = tuple[str, int, int, str, str]


@dataclass
class BatchStats:
    """Running tally for one batch."""

    parsed: int = 0
    skipped: int = 0
    errors: list[tuple[int, str]] = field(default_factory=list)


def _check_policy(on_error: str) -> None:
    if on_error not in ON_ERROR_CHOICES:
        raise ValueError(f"on_error must be one of {ON_ERROR_CHOICES}, got {on_error!r}")


def parse_lines(
    lines: Iterable[str],
    grammar: LineGrammar,
    on_error: str = "skip",
    stats: BatchStats | None = None,
) -> Iterator[Any]:
    """Yield parsed values for each non-blank line.

    ``on_error="skip"`` logs and drops lines that fail to parse;
    ``on_error="abort"`` re-raises the first ``ParseError``.
    """
    _check_policy(on_error)
    for lineno, line in enumerate(lines, start=1):
        try:
            value = grammar.parse_line(line)
        except ParseError as exc:
            if on_error == "abort":
                raise
            logger.warning("Skipping line %d: %s", lineno, exc)
            if stats is not None:
                stats.skipped += 1
                stats.errors.append((lineno, str(exc)))
            continue
        if value is None:
            continue
        if stats is not None:
            stats.parsed += 1
        yield value


def _parse_chunk(args: _Chunk) -> tuple[list[Any], int]:
    """Worker function: parse lines in [start_byte, end_byte) from path."""
    path, start, end, grammar_name, on_error = args
    grammar = get_grammar(grammar_name)
    results: list[Any] = []
    skipped = 0

    with open(path, "rb") as fh:
        # Align to the next newline boundary if we're mid-line
        if start > 0:
            fh.seek(start - 1)
            if fh.read(1) != b"\n":
                fh.readline()
        else:
            fh.seek(0)

        while fh.tell() < end:
            line_start = fh.tell()
            raw = fh.readline()
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace")
            try:
                value = grammar.parse_line(line)
            except ParseError as exc:
                if on_error == "abort":
                    raise
                logger.warning("Skipping line at byte %d: %s", line_start, exc)
                skipped += 1
                continue
            if value is not None:
                results.append(value)

    return results, skipped


def _split_file(path: str, n_chunks: int, grammar_name: str, on_error: str) -> list[_Chunk]:
    """Divide a file into n_chunks byte ranges."""
    size = os.path.getsize(path)
    if size == 0:
        return []
    chunk_size = max(size // n_chunks, 1)
    chunks: list[_Chunk] = []
    start = 0
    for i in range(n_chunks):
        end = start + chunk_size if i < n_chunks - 1 else size
        chunks.append((path, start, min(end, size), grammar_name, on_error))
        start = end
        if start >= size:
            break
    return chunks


def parse_file_parallel(
    path: str,
    grammar_name: str,
    workers: int | None = None,
    on_error: str = "skip",
    stats: BatchStats | None = None,
) -> list[Any]:
    """Parse a line-oriented file using multiprocessing.

    Args:
        path:         Path to the input file.
        grammar_name: 'json' (NDJSON) or 'nginx'.
        workers:      Number of worker processes. Falls back to
                      settings.max_workers, then os.cpu_count().
        on_error:     'skip' or 'abort' (see ``parse_lines``).
        stats:        Optional tally updated with parsed/skipped counts.

    Returns:
        Ordered list of parsed values.
    """
    _check_policy(on_error)
    n = workers or settings.max_workers or os.cpu_count() or 4
    chunks = _split_file(path, n, grammar_name, on_error)
    if not chunks:
        return []

    if len(chunks) == 1:
        # Single chunk: skip multiprocessing overhead
        results = [_parse_chunk(chunks[0])]
    else:
        with Pool(processes=min(n, len(chunks))) as pool:
            results = pool.map(_parse_chunk, chunks)

    values = [value for chunk_values, _ in results for value in chunk_values]
    if stats is not None:
        stats.parsed += len(values)
        stats.skipped += sum(skipped for _, skipped in results)
    logger.debug("Parsed %d values from %s across %d chunk(s)", len(values), path, len(chunks))
    return values
