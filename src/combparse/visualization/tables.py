"""Rich-powered table, tree and bar chart rendering for parse results."""
from __future__ import annotations

from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from ..model.json_value import (
    Float,
    JsonArray,
    JsonBool,
    JsonNull,
    JsonNumber,
    JsonObject,
    JsonString,
    JsonValue,
)

_console = Console()

RECORD_COLUMNS = [
    "address", "timestamp", "method", "path", "http_version", "status", "size",
]


def _status_style(status: Any) -> str:
    if not isinstance(status, int):
        return ""
    if status >= 500:
        return "red"
    if status >= 400:
        return "yellow"
    return ""


def print_records_table(
    rows: list[dict[str, Any]],
    fields: list[str] | None = None,
    title: str = "Log records",
    max_rows: int = 100,
) -> None:
    """Render flattened log records as a Rich table.

    Args:
        rows:      ``NginxLogRecord.as_dict()`` results.
        fields:    Columns to display. Defaults to ``RECORD_COLUMNS``.
        title:     Table title shown in the header.
        max_rows:  Hard cap; longer inputs are truncated with a notice.
    """
    if not rows:
        _console.print("[yellow]No records to display.[/yellow]")
        return

    cols = fields or RECORD_COLUMNS
    table = Table(title=title, box=box.ROUNDED, show_lines=False)
    for col in cols:
        table.add_column(col, overflow="fold", max_width=60)

    for row in rows[:max_rows]:
        table.add_row(*[escape(str(row.get(c, ""))) for c in cols], style=_status_style(row.get("status")))

    _console.print(table)
    if len(rows) > max_rows:
        _console.print(
            f"[dim]... and {len(rows) - max_rows} more rows (use --limit to adjust)[/dim]"
        )


def print_counter_table(
    counts: list[tuple[str, int]],
    title: str = "Top values",
    value_col: str = "Value",
    count_col: str = "Count",
) -> None:
    """Render a Counter.top() result as a Rich table."""
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("#", style="dim", width=4)
    table.add_column(value_col)
    table.add_column(count_col, justify="right", style="cyan")

    for rank, (value, count) in enumerate(counts, start=1):
        table.add_row(str(rank), value, str(count))

    _console.print(table)


def print_bar_chart(
    counts: list[tuple[str, int]],
    title: str = "Distribution",
    width: int = 40,
) -> None:
    """Print an ASCII bar chart, each bar scaled to the largest value."""
    if not counts:
        _console.print("[yellow]No data for chart.[/yellow]")
        return

    max_val = max(v for _, v in counts) or 1
    max_label = max(len(k) for k, _ in counts)

    _console.print(f"\n[bold]{title}[/bold]")
    for label, value in counts:
        bar = "█" * int(value / max_val * width)
        pct = value / max_val * 100
        _console.print(
            f"  {label:<{max_label}}  [green]{bar:<{width}}[/green]"
            f"  [cyan]{value:>6}[/cyan] [dim]({pct:.1f}%)[/dim]"
        )
    _console.print()


def _scalar_label(value: JsonValue) -> str:
    if isinstance(value, JsonNull):
        return "[dim]null[/dim]"
    if isinstance(value, JsonBool):
        return f"[magenta]{'true' if value.value else 'false'}[/magenta]"
    if isinstance(value, JsonNumber):
        kind = "float" if isinstance(value.value, Float) else "int"
        return f"[cyan]{value.value.value}[/cyan] [dim]({kind})[/dim]"
    if isinstance(value, JsonString):
        return f"[green]{escape(repr(value.value))}[/green]"
    raise TypeError(f"not a scalar JSON value: {value!r}")


def _add_node(parent: Tree, label: str, value: JsonValue) -> None:
    if isinstance(value, JsonArray):
        node = parent.add(f"{label}[bold]array[/bold] [dim]({len(value)})[/dim]")
        for i, item in enumerate(value.items):
            _add_node(node, f"[dim]{i}:[/dim] ", item)
    elif isinstance(value, JsonObject):
        node = parent.add(f"{label}[bold]object[/bold] [dim]({len(value)})[/dim]")
        for key, item in value.members.items():
            _add_node(node, f"[blue]{escape(key)}[/blue]: ", item)
    else:
        parent.add(f"{label}{_scalar_label(value)}")


def json_tree(value: JsonValue, title: str = "document") -> Tree:
    """Build a Rich tree showing every node of a JSON value with its variant."""
    root = Tree(f"[bold]{title}[/bold]")
    _add_node(root, "", value)
    return root


def print_json_tree(value: JsonValue, title: str = "document") -> None:
    _console.print(json_tree(value, title))
