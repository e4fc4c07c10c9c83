from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rich.markup import escape

from .models import CellContent, CellContext, Column, FieldKind, FieldSpec, Formatter, RenderContext


def field_text(value: Any) -> str:
    """Text an editable field starts with; only None renders empty (zero stays "0")."""

    if value is None:
        return ""
    return str(value)


def copy_down_requested(ctx: CellContext) -> bool:
    """True for the first data row of a column configured with ``copy_down``."""

    edit_config = ctx.column.edit_config
    return (
        edit_config is not None
        and edit_config.copy_down
        and ctx.row_index == 0
        and ctx.context is RenderContext.DATA_ROW
    )


def display_formatter(ctx: CellContext) -> CellContent:
    if ctx.value is None:
        return ""
    return escape(str(ctx.value))


def email_formatter(ctx: CellContext) -> CellContent:
    if not ctx.value:
        return ""
    address = escape(str(ctx.value))
    return f"[link=mailto:{address}]{address}[/link]"


def link_formatter(ctx: CellContext) -> CellContent:
    if not ctx.value:
        return ""
    url = escape(str(ctx.value))
    return f"[link={url}]{url}[/link]"


def readonly_email_formatter(ctx: CellContext) -> CellContent:
    """Email address without the link; use as a column's read-only edit-mode formatter."""

    return escape(str(ctx.value or ""))


def readonly_link_formatter(ctx: CellContext) -> CellContent:
    """URL without the link; use as a column's read-only edit-mode formatter."""

    return escape(str(ctx.value or ""))


def text_formatter(ctx: CellContext) -> CellContent:
    return FieldSpec(
        kind=FieldKind.TEXT,
        value=field_text(ctx.value),
        copy_down=copy_down_requested(ctx),
    )


def textarea_formatter(ctx: CellContext) -> CellContent:
    return FieldSpec(
        kind=FieldKind.MULTILINE,
        value=field_text(ctx.value),
        copy_down=copy_down_requested(ctx),
    )


def choice_formatter(options: Iterable[Any]) -> Formatter:
    """Build a formatter rendering a pull-down with the given options.

    The empty option is always offered first so ``yiv-required`` can fire.
    """

    choices = tuple(dict.fromkeys(["", *(field_text(opt) for opt in options)]))

    def _format(ctx: CellContext) -> CellContent:
        return FieldSpec(
            kind=FieldKind.CHOICE,
            value=field_text(ctx.value),
            options=choices,
            copy_down=copy_down_requested(ctx),
        )

    return _format


def edit_mode_formatter(column: Column) -> Formatter:
    """Formatter a column uses on data rows while edit mode is active."""

    edit_config = column.edit_config
    if edit_config is not None and edit_config.formatter is not None:
        return edit_config.formatter
    if column.readonly_formatter is not None:
        return column.readonly_formatter
    return text_formatter


def select_formatter(
    context: RenderContext,
    edit: Formatter,
    original: Formatter | None,
) -> Formatter:
    if context is RenderContext.DATA_ROW:
        return edit
    return original if original is not None else display_formatter


def wrap_formatter(edit: Formatter, original: Formatter | None) -> Formatter:
    def _wrapped(ctx: CellContext) -> CellContent:
        return select_formatter(ctx.context, edit, original)(ctx)

    return _wrapped


FORMATTERS: dict[str, Formatter] = {
    "display": display_formatter,
    "email": email_formatter,
    "link": link_formatter,
    "readonly_email": readonly_email_formatter,
    "readonly_link": readonly_link_formatter,
    "text": text_formatter,
    "textarea": textarea_formatter,
}


def resolve_formatter(name: str, *, options: Iterable[Any] | None = None) -> Formatter | None:
    """Look up a formatter by configuration name (``choice`` needs ``options``)."""

    key = name.strip().lower()
    if key == "choice":
        return choice_formatter(options or ())
    return FORMATTERS.get(key)
