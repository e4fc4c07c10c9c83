from __future__ import annotations

import logging

from .host import TableHost
from .models import Field

logger = logging.getLogger(__name__)

NAVIGATION_KEYS: tuple[str, ...] = ("ctrl+up", "ctrl+down")


def sibling_field(host: TableHost, field: Field, direction: int) -> Field | None:
    """Field in the same cell position of the previous (<0) or next (>0) row."""

    cell_index = host.cell_index(field)
    if cell_index is None:
        return None
    row_index = field.row_index + (-1 if direction < 0 else 1)
    if not 0 <= row_index < host.row_count():
        return None
    return host.field_at(row_index, cell_index)


def move_focus(host: TableHost, field: Field, key: str) -> bool:
    """Handle Ctrl+Up/Ctrl+Down on a field; True when focus moved."""

    if key not in NAVIGATION_KEYS:
        return False
    target = sibling_field(host, field, -1 if key == "ctrl+up" else +1)
    if target is None:
        return False
    host.focus_field(target)
    return True


def copy_down(host: TableHost, field: Field) -> int:
    """Copy a field's value into the same column of every following row.

    Returns the number of fields written. An empty source value is a no-op.
    """

    value = field.value.strip()
    if not value:
        return 0
    cell_index = host.cell_index(field)
    if cell_index is None:
        return 0

    written = 0
    for row_index in range(field.row_index + 1, host.row_count()):
        target = host.field_at(row_index, cell_index)
        if target is not None:
            target.value = value
            written += 1
    logger.debug("Copied %r down column %s into %d fields", value, field.column_key, written)
    return written
