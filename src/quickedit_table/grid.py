from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from .errors import ConfigError
from .formatters import display_formatter
from .host import KeyHandler
from .models import CellContext, Column, Field, FieldKind, FieldSpec, RenderContext
from .status import StatusLevel

logger = logging.getLogger(__name__)


@dataclass(slots=True, eq=False)
class RenderedCell:
    column_key: str
    text: str = ""
    field: Field | None = None
    copy_down: bool = False
    status: StatusLevel | None = None
    message: str = ""


@dataclass(slots=True, eq=False)
class RenderedRow:
    index: int
    cells: list[RenderedCell] = field(default_factory=list)
    status: StatusLevel | None = None


class GridListener(Protocol):
    """Callbacks for a front end drawing a TableGrid. Must not raise."""

    def grid_rendered(self) -> None: ...

    def grid_status_changed(self) -> None: ...

    def grid_focus(self, field: Field) -> None: ...

    def grid_scroll(self, row_index: int) -> None: ...


def _sort_key(value: Any) -> tuple[int, Any]:
    if value is None:
        return (2, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (0, value)
    return (1, str(value))


class TableGrid:
    """In-memory table host: renders records through column formatters.

    Data rows are rendered with ``RenderContext.DATA_ROW``; the optional footer
    (a summary record) with ``RenderContext.OTHER``.
    """

    def __init__(
        self,
        columns: Iterable[Column],
        records: Iterable[Mapping[str, Any]],
        *,
        footer: Mapping[str, Any] | None = None,
    ) -> None:
        self._columns = list(columns)
        self._by_key: dict[str, Column] = {}
        for column in self._columns:
            if column.key in self._by_key:
                raise ConfigError(f"Duplicate column key: {column.key!r}")
            self._by_key[column.key] = column
        self.records: list[dict[str, Any]] = [dict(record) for record in records]
        self.footer = dict(footer) if footer is not None else None
        self.rows: list[RenderedRow] = []
        self.footer_row: RenderedRow | None = None
        self.edit_marker = False
        self.focused: Field | None = None
        self.last_scrolled_row: int | None = None
        self.listener: GridListener | None = None
        self._key_bindings: list[tuple[frozenset[str], KeyHandler]] = []
        self.render()

    # -- configuration ---------------------------------------------------

    @property
    def columns(self) -> Sequence[Column]:
        return self._columns

    def column(self, key: str) -> Column | None:
        return self._by_key.get(key)

    def record(self, row_index: int) -> Mapping[str, Any] | None:
        if 0 <= row_index < len(self.records):
            return self.records[row_index]
        return None

    # -- rendering -------------------------------------------------------

    def _render_cell(
        self,
        column: Column,
        record: Mapping[str, Any],
        *,
        row_index: int,
        context: RenderContext,
    ) -> RenderedCell:
        formatter = column.formatter or display_formatter
        content = formatter(
            CellContext(
                column=column,
                value=record.get(column.key),
                record=record,
                row_index=row_index,
                context=context,
            )
        )
        cell = RenderedCell(column_key=column.key)
        if isinstance(content, FieldSpec):
            if context is not RenderContext.DATA_ROW:
                # Only data rows own fields; show the value as plain text.
                cell.text = content.value
                return cell
            cell.field = Field(
                kind=content.kind,
                column_key=column.key,
                row_index=row_index,
                value=content.value,
                options=content.options,
            )
            cell.copy_down = content.copy_down
        else:
            cell.text = str(content)
        return cell

    def render(self) -> None:
        self.rows = [
            RenderedRow(
                index=idx,
                cells=[
                    self._render_cell(
                        column, record, row_index=idx, context=RenderContext.DATA_ROW
                    )
                    for column in self._columns
                ],
            )
            for idx, record in enumerate(self.records)
        ]
        self.footer_row = None
        if self.footer is not None:
            self.footer_row = RenderedRow(
                index=-1,
                cells=[
                    self._render_cell(
                        column, self.footer, row_index=-1, context=RenderContext.OTHER
                    )
                    for column in self._columns
                ],
            )
        self.focused = None
        logger.debug("Rendered %d rows x %d columns", len(self.rows), len(self._columns))
        if self.listener is not None:
            self.listener.grid_rendered()

    def sort_by(self, key: str, *, reverse: bool = False) -> bool:
        """Sort records by a sortable column and re-render; False when not allowed."""

        column = self.column(key)
        if column is None or not column.sortable:
            return False
        self.records.sort(key=lambda record: _sort_key(record.get(key)), reverse=reverse)
        self.render()
        return True

    # -- fields ----------------------------------------------------------

    def row_count(self) -> int:
        return len(self.rows)

    def fields(self, kind: FieldKind | None = None) -> list[Field]:
        return [
            cell.field
            for row in self.rows
            for cell in row.cells
            if cell.field is not None and (kind is None or cell.field.kind is kind)
        ]

    def row_fields(self, row_index: int) -> list[Field]:
        if not 0 <= row_index < len(self.rows):
            return []
        return [cell.field for cell in self.rows[row_index].cells if cell.field is not None]

    def cell_for(self, field: Field) -> RenderedCell | None:
        if not 0 <= field.row_index < len(self.rows):
            return None
        for cell in self.rows[field.row_index].cells:
            if cell.field is field:
                return cell
        return None

    def cell_index(self, field: Field) -> int | None:
        if not 0 <= field.row_index < len(self.rows):
            return None
        for idx, cell in enumerate(self.rows[field.row_index].cells):
            if cell.field is field:
                return idx
        return None

    def field_at(self, row_index: int, cell_index: int) -> Field | None:
        if not 0 <= row_index < len(self.rows):
            return None
        cells = self.rows[row_index].cells
        if not 0 <= cell_index < len(cells):
            return None
        return cells[cell_index].field

    def field_for(self, row_index: int, key: str) -> Field | None:
        for candidate in self.row_fields(row_index):
            if candidate.column_key == key:
                return candidate
        return None

    def set_field_value(self, row_index: int, key: str, value: str) -> bool:
        target = self.field_for(row_index, key)
        if target is None:
            return False
        target.value = value
        return True

    # -- status markers --------------------------------------------------

    def row_status(self, row_index: int) -> StatusLevel | None:
        if not 0 <= row_index < len(self.rows):
            return None
        return self.rows[row_index].status

    def set_row_status(self, row_index: int, level: StatusLevel) -> None:
        if not 0 <= row_index < len(self.rows):
            return
        self.rows[row_index].status = level
        if self.listener is not None:
            self.listener.grid_status_changed()

    def cell_status(self, field: Field) -> StatusLevel | None:
        cell = self.cell_for(field)
        return cell.status if cell is not None else None

    def set_cell_status(self, field: Field, level: StatusLevel, message: str | None) -> None:
        cell = self.cell_for(field)
        if cell is None:
            return
        cell.status = level
        if message is not None:
            cell.message = message
        if self.listener is not None:
            self.listener.grid_status_changed()

    def clear_statuses(self) -> None:
        for row in self.rows:
            row.status = None
            for cell in row.cells:
                cell.status = None
                cell.message = ""
        if self.listener is not None:
            self.listener.grid_status_changed()

    def messages(self) -> list[tuple[int, str, StatusLevel, str]]:
        """(row, column key, level, message) for every marked cell."""

        out: list[tuple[int, str, StatusLevel, str]] = []
        for row in self.rows:
            for cell in row.cells:
                if cell.status is not None:
                    out.append((row.index, cell.column_key, cell.status, cell.message))
        return out

    # -- focus / scrolling / keys ------------------------------------------

    def scroll_row_into_view(self, row_index: int) -> None:
        self.last_scrolled_row = row_index
        if self.listener is not None:
            self.listener.grid_scroll(row_index)

    def focus_field(self, field: Field) -> None:
        self.focused = field
        if self.listener is not None:
            self.listener.grid_focus(field)

    def set_edit_marker(self, active: bool) -> None:
        self.edit_marker = active

    def bind_keys(self, keys: Sequence[str], handler: KeyHandler) -> Callable[[], None]:
        binding = (frozenset(keys), handler)
        self._key_bindings.append(binding)

        def _detach() -> None:
            if binding in self._key_bindings:
                self._key_bindings.remove(binding)

        return _detach

    def handle_key(self, field: Field, key: str) -> bool:
        """Dispatch a key pressed on ``field``; True when a handler consumed it."""

        for keys, handler in list(self._key_bindings):
            if key in keys and handler(field, key):
                return True
        return False

    @property
    def has_key_bindings(self) -> bool:
        return bool(self._key_bindings)
