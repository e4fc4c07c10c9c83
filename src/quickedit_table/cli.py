from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .document import TableDocument, load_edits, load_table_document
from .errors import ConfigError
from .grid import TableGrid
from .quickedit import QuickEdit
from .ui.report import render_change_summary, render_validation_report
from .ui.session_textual import run_quickedit_session

app = typer.Typer(
    add_completion=False,
    invoke_without_command=True,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_document_or_exit(path: Path) -> TableDocument:
    try:
        return load_table_document(path)
    except ConfigError as exc:
        typer.echo(f"Invalid table document: {exc}", err=True)
        raise typer.Exit(2) from exc


def _write_changes(changes: list[dict[str, Any]], *, output: Path | None) -> None:
    text = json.dumps(changes, indent=2, sort_keys=True, default=str) + "\n"
    if output is None:
        typer.echo(text, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    typer.echo(str(output), err=True)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log edit-mode lifecycle and validation details to stderr.",
    ),
) -> None:
    if version:
        typer.echo(f"quickedit-table {__version__}")
        raise typer.Exit(0)
    _configure_logging(verbose)


@app.command()
def check(
    document_path: Path = typer.Argument(  # noqa: B008
        ...,
        metavar="DOCUMENT",
        help="Table document (JSON: columns, records, changes_always_include).",
    ),
    edits_path: Path | None = typer.Option(  # noqa: B008
        None,
        "--edits",
        help='JSON list of field edits: [{"row": 0, "key": "age", "value": "42"}].',
    ),
    output: Path | None = typer.Option(  # noqa: B008
        None,
        "--output",
        "-o",
        help="Write the change list here instead of stdout.",
    ),
) -> None:
    """Apply edits in edit mode, validate, and emit the per-row changes."""

    console = Console(stderr=True)
    document = _load_document_or_exit(document_path)
    edits = []
    if edits_path is not None:
        try:
            edits = load_edits(edits_path)
        except ConfigError as exc:
            typer.echo(f"Invalid edits: {exc}", err=True)
            raise typer.Exit(2) from exc

    grid: TableGrid = document.build_grid()
    quick_edit = QuickEdit(grid, changes_always_include=document.changes_always_include)
    quick_edit.start()
    for edit in edits:
        if not grid.set_field_value(edit.row, edit.key, edit.value):
            typer.echo(
                f"No editable field at row {edit.row} column {edit.key!r}",
                err=True,
            )
            raise typer.Exit(2)

    changes = quick_edit.get_changes()
    if changes is False:
        render_validation_report(console, grid)
        raise typer.Exit(1)

    render_change_summary(
        console,
        changes,
        always_include=document.changes_always_include,
    )
    _write_changes(changes, output=output)


@app.command()
def edit(
    document_path: Path = typer.Argument(  # noqa: B008
        ...,
        metavar="DOCUMENT",
        help="Table document (JSON: columns, records, changes_always_include).",
    ),
    output: Path | None = typer.Option(  # noqa: B008
        None,
        "--output",
        "-o",
        help="Write the change list here instead of stdout.",
    ),
) -> None:
    """Open the table in a full-screen session (E edit, Ctrl+S save, Esc cancel)."""

    document = _load_document_or_exit(document_path)
    changes = run_quickedit_session(document)
    if changes is None:
        typer.echo("No changes saved.", err=True)
        raise typer.Exit(0)
    _write_changes(changes, output=output)
