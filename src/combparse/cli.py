"""combparse CLI: entry point.

Commands:
    combparse json   <file>   Parse a JSON document and show its value tree
    combparse nginx  <file>   Parse an NGINX combined access log
    combparse stats  <file>   Count access-log records by a field
    combparse check  <file>   Validate every line, report the failures
"""
from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import settings
from .errors import ParseError
from .model.json_value import to_python
from .parsers.nginx import NginxGrammar
from .perf.parallel_parser import ON_ERROR_CHOICES, BatchStats, parse_file_parallel, parse_lines

console = Console()
err_console = Console(stderr=True)


# ── Helpers ─────────────────────────────────────────────────────────────────


def _status_colour(status: int) -> str:
    if status >= 500:
        return "red"
    if status >= 400:
        return "yellow"
    if status >= 300:
        return "cyan"
    return "green"


def _fail(exc: Exception) -> None:
    err_console.print(f"[red]{escape(str(exc))}[/red]")
    sys.exit(1)


def _load_records(file: Path, on_error: str, workers: int, stats: BatchStats) -> list[Any]:
    """Parse an access log sequentially, or across processes when workers != 1."""
    try:
        if workers != 1:
            n = workers if workers > 0 else settings.max_workers
            return parse_file_parallel(str(file), "nginx", workers=n, on_error=on_error, stats=stats)
        with file.open(encoding="utf-8", errors="replace") as fh:
            return list(parse_lines(fh, NginxGrammar(), on_error=on_error, stats=stats))
    except ParseError as exc:
        _fail(exc)
    return []


def _report_skipped(stats: BatchStats) -> None:
    if stats.skipped:
        err_console.print(f"[yellow]Skipped {stats.skipped} unparseable line(s).[/yellow]")


# ── CLI root ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version="0.1.0", prog_name="combparse")
@click.option("--log-level", default=None, help="Logging level (default: COMBPARSE_LOG_LEVEL or WARNING).")
def main(log_level: str | None) -> None:
    """combparse: combinator-based JSON and NGINX access-log parsing."""
    logging.basicConfig(
        level=(log_level or settings.log_level).upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )


# ── json ─────────────────────────────────────────────────────────────────────


@main.command("json")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output", "-o", "output_fmt", default="tree",
    type=click.Choice(["tree", "json"], case_sensitive=False),
    help="Render as a typed tree or re-serialise as JSON.",
    show_default=True,
)
def json_cmd(file: Path, output_fmt: str) -> None:
    """Parse FILE as a single JSON document.

    \b
    Examples:
      combparse json config.json
      combparse json config.json --output json
    """
    from .parsers.json_grammar import parse_json
    from .visualization.tables import print_json_tree

    try:
        value = parse_json(file.read_text(encoding="utf-8"))
    except ParseError as exc:
        _fail(exc)
        return

    if output_fmt == "json":
        click.echo(json.dumps(to_python(value), indent=2))
    else:
        print_json_tree(value, title=file.name)


# ── nginx ────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--output", "-o", "output_fmt", default="table",
    type=click.Choice(["table", "stream", "json"], case_sensitive=False),
    help="Output format.",
    show_default=True,
)
@click.option(
    "--on-error", default=None,
    type=click.Choice(list(ON_ERROR_CHOICES), case_sensitive=False),
    help="What to do with unparseable lines (default: COMBPARSE_ON_ERROR or skip).",
)
@click.option("--limit", "-n", default=0, type=int, help="Max records to display (0 = all).")
@click.option("--fields", default="", help="Comma-separated fields to include in table output.")
@click.option("--workers", "-w", default=1, type=int, help="Parallel workers (0 = COMBPARSE_MAX_WORKERS).")
def nginx(
    file: Path,
    output_fmt: str,
    on_error: str | None,
    limit: int,
    fields: str,
    workers: int,
) -> None:
    """Parse an NGINX combined access log.

    \b
    Examples:
      combparse nginx access.log
      combparse nginx access.log --output json --limit 100
      combparse nginx access.log --on-error abort
      combparse nginx huge.log --workers 0
    """
    from .visualization.tables import print_records_table

    stats = BatchStats()
    records = _load_records(file, on_error or settings.on_error, workers, stats)
    if limit:
        records = records[:limit]
    rows = [r.as_dict() for r in records]

    if output_fmt == "json":
        for row in rows:
            click.echo(json.dumps(row))
    elif output_fmt == "table":
        selected = [f.strip() for f in fields.split(",") if f.strip()] or None
        print_records_table(rows, fields=selected, title=file.name, max_rows=settings.table_max_rows)
    else:
        for record in records:
            colour = _status_colour(record.status)
            console.print(
                f"[dim]{record.timestamp.isoformat()}[/dim] {record.address} "
                f"{record.method.value:7} {escape(record.path)} "
                f"[{colour}]{record.status}[/{colour}] ({record.size} B)"
            )

    _report_skipped(stats)
    err_console.print(f"[dim]Parsed {len(rows)} records from {file.name}[/dim]")


# ── stats ────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--by", "-b", default="status", help="Record field to count by.", show_default=True)
@click.option("--top", "-t", default=10, type=int, help="Show top N values.", show_default=True)
@click.option("--chart", "-c", is_flag=True, help="Show ASCII bar chart.")
@click.option("--workers", "-w", default=1, type=int, help="Parallel workers (0 = COMBPARSE_MAX_WORKERS).")
def stats(file: Path, by: str, top: int, chart: bool, workers: int) -> None:
    """Show record counts per field value for an access log.

    \b
    Examples:
      combparse stats access.log
      combparse stats access.log --by method --chart
      combparse stats access.log --by address --top 5
    """
    from .aggregators.counter import Counter
    from .visualization.tables import print_bar_chart, print_counter_table

    batch = BatchStats()
    records = _load_records(file, "skip", workers, batch)
    counter = Counter(field=by)
    for record in records:
        counter.add(record)

    console.print(f"\n[bold]File:[/bold] {file.name}  [bold]Total records:[/bold] {counter.total}")
    top_counts = counter.top(top)
    if chart:
        print_bar_chart(top_counts, title=f"Distribution by '{by}'", width=40)
    else:
        print_counter_table(top_counts, title=f"Top {top} by '{by}'", value_col=by.title(), count_col="Count")
    _report_skipped(batch)


# ── check ────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--format", "-f", "fmt", default=None,
    type=click.Choice(["auto", "json", "nginx"], case_sensitive=False),
    help="Line grammar (default: COMBPARSE_DEFAULT_FORMAT or auto-detect).",
)
@click.option(
    "--cross-check", is_flag=True, default=False,
    help="For access logs, also report whether each failing line matches the loose regex shape.",
)
def check(file: Path, fmt: str | None, cross_check: bool) -> None:
    """Validate every line of FILE and list the ones that fail.

    JSON files are checked as NDJSON (one document per line). Exits with
    status 1 if any line fails.

    \b
    Examples:
      combparse check access.log
      combparse check events.ndjson --format json
      combparse check access.log --cross-check
    """
    from .parsers.auto_detect import grammar_for_file
    from .parsers.nginx_regex import NginxRegexParser

    try:
        grammar = grammar_for_file(str(file), hint=fmt or settings.default_format)
    except ValueError as exc:
        _fail(exc)
        return

    batch = BatchStats()
    with file.open(encoding="utf-8", errors="replace") as fh:
        lines = fh.readlines()
    for _ in parse_lines(lines, grammar, on_error="skip", stats=batch):
        pass

    # The regex only knows the combined layout
    regex = NginxRegexParser() if cross_check and grammar.name == "nginx" else None

    if batch.errors:
        tbl = Table(title=f"{file.name}: {grammar.name} failures", box=box.ROUNDED)
        tbl.add_column("Line", justify="right", style="cyan")
        tbl.add_column("Error", overflow="fold")
        if regex is not None:
            tbl.add_column("Regex", style="magenta")
        for lineno, message in batch.errors:
            row = [str(lineno), escape(message)]
            if regex is not None:
                row.append("match" if regex.parse_line(lines[lineno - 1]) else "no match")
            tbl.add_row(*row)
        console.print(tbl)

    console.print(
        f"[dim]{grammar.name}: {batch.parsed} ok, {batch.skipped} failed in {file.name}[/dim]"
    )
    if batch.errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
