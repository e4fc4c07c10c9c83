from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Literal

from .errors import ConfigError
from .formatters import edit_mode_formatter, wrap_formatter
from .host import NullObserver, QuickEditObserver, TableHost
from .models import FIELD_KIND_ORDER, Column, EditConfig, Field, FieldKind, ModeState
from .navigation import NAVIGATION_KEYS, move_focus
from .rules import check_rules
from .status import StatusLevel, coerce_status, status_takes_precedence

logger = logging.getLogger(__name__)

Change = dict[str, Any]


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """Everything a custom field predicate may need, passed explicitly."""

    quick_edit: QuickEdit
    host: TableHost
    column: Column
    record: Mapping[str, Any] | None

    def display_message(
        self,
        field: Field,
        message: str | None,
        level: StatusLevel | str = StatusLevel.ERROR,
        scroll: bool = True,
    ) -> None:
        self.quick_edit.display_message(field, message, level, scroll)


def _normalize_always_include(keys: Iterable[str]) -> tuple[str, ...]:
    if isinstance(keys, (str, bytes)) or not isinstance(keys, (list, tuple)):
        raise ConfigError("changes_always_include must be a list of column keys")
    for key in keys:
        if not isinstance(key, str):
            raise ConfigError(f"changes_always_include entries must be strings: {key!r}")
    return tuple(keys)


def _original_text(value: Any) -> str:
    # Only real emptiness compares as "", so 0 stays "0".
    if value is None or value == "":
        return ""
    return str(value)


class QuickEdit:
    """Edit mode for a table: every cell of configured columns becomes a field.

    Call ``start()`` to switch the host into edit mode and ``get_changes()`` to
    validate and collect the edited values. ``cancel()`` leaves edit mode and
    discards every edit, so collect the changes first.
    """

    def __init__(
        self,
        host: TableHost,
        *,
        changes_always_include: Iterable[str] = (),
        observer: QuickEditObserver | None = None,
    ) -> None:
        self.host = host
        self.changes_always_include = _normalize_always_include(changes_always_include)
        self.observer: QuickEditObserver = observer or NullObserver()
        self.has_messages = False
        self._state: ModeState | None = None

    @property
    def is_active(self) -> bool:
        return self._state is not None

    # -- mode ----------------------------------------------------------------

    def start(self) -> bool:
        """Switch to edit mode. Returns False (and changes nothing) if already active."""

        if self._state is not None:
            logger.warning("QuickEdit.start() called while edit mode is already active")
            return False

        self.observer.clear_error_notification()

        columns = self.host.columns
        state = ModeState(saved_sortable=[], saved_formatters={})
        for column in columns:
            state.saved_sortable.append(column.sortable)
            column.sortable = False

            if not column.takes_part_in_edit_mode:
                continue
            edit_fmt = edit_mode_formatter(column)
            state.saved_formatters[column.key] = column.formatter
            column.formatter = wrap_formatter(edit_fmt, column.formatter)

        state.detach_navigation = self.host.bind_keys(NAVIGATION_KEYS, self._on_navigation_key)
        self._state = state
        self.has_messages = False
        self.host.set_edit_marker(True)
        logger.debug(
            "Edit mode started: %d columns, %d editable",
            len(columns),
            len(state.saved_formatters),
        )
        self.host.render()
        return True

    def cancel(self) -> bool:
        """Leave edit mode and restore column state. THIS DISCARDS ALL EDITS."""

        state = self._state
        if state is None:
            logger.warning("QuickEdit.cancel() called while edit mode is not active")
            return False

        self.observer.clear_error_notification()

        for column, sortable in zip(self.host.columns, state.saved_sortable, strict=False):
            column.sortable = sortable
        for key, formatter in state.saved_formatters.items():
            column = self.host.column(key)
            if column is not None:
                column.formatter = formatter

        if state.detach_navigation is not None:
            state.detach_navigation()
        self._state = None
        self.has_messages = False
        self.host.set_edit_marker(False)
        logger.debug("Edit mode cancelled")
        self.host.render()
        return True

    def _on_navigation_key(self, field: Field, key: str) -> bool:
        return move_focus(self.host, field, key)

    # -- validation ------------------------------------------------------------

    def clear_messages(self) -> None:
        self.has_messages = False
        self.observer.clear_error_notification()
        self.host.clear_statuses()

    def display_message(
        self,
        field: Field,
        message: str | None,
        level: StatusLevel | str,
        scroll: bool = True,
    ) -> None:
        """Show a message on a field unless a higher-precedence one is already shown.

        Row and cell markers are checked independently. An empty ``message`` sets
        the status without replacing the cell's message text.
        """

        status = coerce_status(level)
        if status is None:
            logger.debug("Ignoring message with unknown status %r", level)
            return
        if self.host.cell_index(field) is None:
            return

        row_index = field.row_index
        if status_takes_precedence(self.host.row_status(row_index), status):
            if not self.has_messages and scroll:
                self.host.scroll_row_into_view(row_index)
            self.host.set_row_status(row_index, status)
            self.has_messages = True

        if status_takes_precedence(self.host.cell_status(field), status):
            self.host.set_cell_status(field, status, message or None)
            self.has_messages = True

    def _validate_field(self, field: Field) -> bool:
        column = self.host.column(field.column_key)
        if column is None or column.edit_config is None:
            return True
        edit_config: EditConfig = column.edit_config
        validation = edit_config.validation
        if validation is None:
            return True

        messages = validation.messages
        result = check_rules(
            field.value,
            validation.rule_set,
            messages,
            choice=field.kind is FieldKind.CHOICE,
        )
        if result.error is not None:
            self.display_message(field, result.error, StatusLevel.ERROR)
            return False

        pattern = validation.pattern
        if result.keep_going and pattern is not None and pattern.search(field.value) is None:
            self.display_message(field, messages.get("regex"), StatusLevel.ERROR)
            return False

        if validation.predicate is not None:
            ctx = ValidationContext(
                quick_edit=self,
                host=self.host,
                column=column,
                record=self.host.record(field.row_index),
            )
            if not validation.predicate(field, ctx):
                return False
        return True

    def validate(self) -> bool:
        """Validate every rendered field; True when all of them pass."""

        self.clear_messages()
        status = True
        for kind in FIELD_KIND_ORDER:
            for field in self.host.fields(kind):
                # Check every field, even after a failure.
                status = self._validate_field(field) and status

        if not status:
            self.observer.notify_errors()
        logger.info("Validation %s", "passed" if status else "failed")
        return status

    # -- changes ---------------------------------------------------------------

    def get_changes(self) -> list[Change] | Literal[False]:
        """Validate, then return one sparse change dict per row (False on failure).

        Keys listed in ``changes_always_include`` are always present, carrying the
        record's current value rather than the field value.
        """

        if not self.validate():
            return False

        changes: list[Change] = []
        for row_index in range(self.host.row_count()):
            record = self.host.record(row_index) or {}
            change: Change = {}
            changes.append(change)

            for field in self.host.row_fields(row_index):
                key = field.column_key
                column = self.host.column(key)
                if column is None:
                    continue
                edit_config = column.edit_config
                original = record.get(key)
                value = field.value.strip()
                if edit_config is not None and edit_config.changed is not None:
                    changed = edit_config.changed(original, value)
                else:
                    changed = value != _original_text(original)
                if changed:
                    change[key] = value

            for key in self.changes_always_include:
                change[key] = record.get(key)

        logger.info(
            "Collected changes for %d rows (%d with edits)",
            len(changes),
            sum(1 for change in changes if set(change) - set(self.changes_always_include)),
        )
        return changes
