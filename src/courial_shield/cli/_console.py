"""Consoles and renderers shared by the courial-shield commands.

Human-readable output (verdicts, tables) goes to stderr; ``--json`` output
goes to stdout so it can be piped.
"""

import json as json_mod
from typing import Any, Iterable

import typer
from rich.console import Console
from rich.table import Table

console = Console(stderr=True)

# Resolves sys.stdout at print time, so CliRunner captures it
stdout_console = Console()


def _status(mark: str, style: str, msg: str) -> None:
    console.print(f"[{style}]{mark}[/{style}] {msg}")


def print_ok(msg: str) -> None:
    _status("✓", "green", msg)


def print_err(msg: str) -> None:
    _status("✗", "red", msg)


def print_warn(msg: str) -> None:
    _status("!", "yellow", msg)


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, (dict, list)):
        return json_mod.dumps(value, ensure_ascii=False, default=str)
    return str(value)


def output_result(data: dict, *, ctx: typer.Context, title: str = "") -> None:
    """Print one record: JSON on stdout with ``--json``, else a field/value table."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=data)
        return

    table = Table(title=title or None, show_header=False, box=None, pad_edge=False)
    table.add_column("field", style="bold")
    table.add_column("value")
    for key, value in data.items():
        table.add_row(key, _cell(value))
    console.print(table)


def output_table(
    rows: list[dict], *, ctx: typer.Context, title: str = "", columns: Iterable[str] | None = None
) -> None:
    """Print a list of records as a JSON array or a Rich table."""
    if ctx.obj.get("json"):
        stdout_console.print_json(data=rows)
        return

    if not rows:
        console.print("[dim]Nothing to show[/dim]")
        return

    cols = list(columns) if columns else list(rows[0].keys())
    table = Table(title=title or None)
    for col in cols:
        table.add_column(col)
    for row in rows:
        table.add_row(*[_cell(row.get(c)) for c in cols])
    console.print(table)
