from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ..grid import TableGrid
from ..status import StatusLevel

_STATUS_STYLE: dict[StatusLevel, str] = {
    StatusLevel.ERROR: "bold red",
    StatusLevel.WARN: "yellow",
    StatusLevel.SUCCESS: "green",
    StatusLevel.INFO: "cyan",
}


def status_style(level: StatusLevel | None) -> str:
    if level is None:
        return ""
    return _STATUS_STYLE[level]


def render_validation_report(console: Console, grid: TableGrid) -> None:
    messages = grid.messages()

    console.print()
    console.print(Text("Validation failed", style="bold red"))
    console.print(
        f"rows={grid.row_count()} marked_cells={len(messages)}",
        style="dim",
    )

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Row", style="cyan", justify="right", no_wrap=True)
    table.add_column("Column", style="white", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Message", style="white")

    for row_index, key, level, message in messages:
        column = grid.column(key)
        table.add_row(
            str(row_index),
            escape(column.title if column is not None else key),
            Text(level.value, style=status_style(level)),
            escape(message) if message else "",
        )

    console.print(table)


def render_change_summary(
    console: Console,
    changes: Sequence[dict[str, Any]],
    *,
    always_include: Sequence[str] = (),
) -> None:
    edited = [
        (idx, {k: v for k, v in change.items() if k not in always_include})
        for idx, change in enumerate(changes)
    ]
    edited = [(idx, change) for idx, change in edited if change]

    console.print(Text("Changes", style="bold"))
    console.print(f"rows={len(changes)} edited_rows={len(edited)}", style="dim")
    if not edited:
        return

    table = Table(show_header=True, header_style="bold", box=None)
    table.add_column("Row", style="cyan", justify="right", no_wrap=True)
    table.add_column("Column", style="white", no_wrap=True)
    table.add_column("New value", style="green")

    for idx, change in edited:
        for key, value in change.items():
            table.add_row(str(idx), escape(key), escape(str(value)))

    console.print(table)
