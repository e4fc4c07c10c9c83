from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol

from .models import Column, Field, FieldKind
from .status import StatusLevel

KeyHandler = Callable[[Field, str], bool]


class TableHost(Protocol):
    """Rendering side of an edit session.

    QuickEdit never builds widgets itself. It reads column configuration, asks the
    host to re-render, enumerates the fields the host produced and writes status
    markers back. Implementations must be fast and must not raise for lookups of
    fields that are no longer rendered (return None instead).
    """

    @property
    def columns(self) -> Sequence[Column]:
        """Columns in display order."""

    def column(self, key: str) -> Column | None:
        """Column by key, or None."""

    def record(self, row_index: int) -> Mapping[str, Any] | None:
        """Backing record of a data row."""

    def row_count(self) -> int:
        """Number of rendered data rows."""

    def fields(self, kind: FieldKind | None = None) -> list[Field]:
        """Rendered fields in document order, optionally of one kind."""

    def row_fields(self, row_index: int) -> list[Field]:
        """Rendered fields of one data row, in cell order."""

    def cell_index(self, field: Field) -> int | None:
        """Index of the cell holding ``field`` within its row, or None."""

    def field_at(self, row_index: int, cell_index: int) -> Field | None:
        """Field rendered at the given position, or None."""

    def row_status(self, row_index: int) -> StatusLevel | None: ...

    def set_row_status(self, row_index: int, level: StatusLevel) -> None: ...

    def cell_status(self, field: Field) -> StatusLevel | None: ...

    def set_cell_status(self, field: Field, level: StatusLevel, message: str | None) -> None:
        """Set the cell marker; ``message=None`` keeps the current message text."""

    def clear_statuses(self) -> None:
        """Remove every row/cell marker and cell message."""

    def scroll_row_into_view(self, row_index: int) -> None: ...

    def focus_field(self, field: Field) -> None:
        """Move input focus to ``field`` and select its contents."""

    def set_edit_marker(self, active: bool) -> None:
        """Presentation hook: mark the container as being in edit mode."""

    def bind_keys(self, keys: Sequence[str], handler: KeyHandler) -> Callable[[], None]:
        """Route key presses on fields to ``handler``; returns a detach callable."""

    def render(self) -> None:
        """Re-render every row with the current column formatters."""


class QuickEditObserver(Protocol):
    """Receiver for banner-level notifications (e.g. an error summary bar)."""

    def clear_error_notification(self) -> None: ...

    def notify_errors(self) -> None: ...


class NullObserver:
    def clear_error_notification(self) -> None:
        return None

    def notify_errors(self) -> None:
        return None
