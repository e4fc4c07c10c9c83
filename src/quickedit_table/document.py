from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from .errors import ConfigError, RuleSyntaxError
from .formatters import resolve_formatter
from .grid import TableGrid
from .models import ChangedPredicate, Column, EditConfig, Formatter, ValidationSpec
from .rules import MESSAGE_KINDS


def numeric_changed(original: Any, new: str) -> bool:
    """Compare as numbers so "7.0" vs 7 is unchanged; falls back to text."""

    old_text = "" if original is None else str(original).strip()
    if not old_text or not new:
        return old_text != new
    try:
        return Decimal(old_text) != Decimal(new)
    except InvalidOperation:
        return old_text != new


def casefold_changed(original: Any, new: str) -> bool:
    old_text = "" if original is None else str(original)
    return old_text.casefold() != new.casefold()


CHANGED_PREDICATES: dict[str, ChangedPredicate] = {
    "numeric": numeric_changed,
    "casefold": casefold_changed,
}


@dataclass(slots=True)
class TableDocument:
    columns: list[Column]
    records: list[dict[str, Any]]
    footer: dict[str, Any] | None = None
    changes_always_include: list[str] = field(default_factory=list)

    def build_grid(self) -> TableGrid:
        return TableGrid(self.columns, self.records, footer=self.footer)


@dataclass(frozen=True, slots=True)
class FieldEdit:
    row: int
    key: str
    value: str


def _formatter(raw: object, *, where: str, options: object = None) -> Formatter | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ConfigError(f"{where}: formatter must be a name")
    if options is not None and not isinstance(options, list):
        raise ConfigError(f"{where}: options must be a list")
    fmt = resolve_formatter(raw, options=options)
    if fmt is None:
        raise ConfigError(f"{where}: unknown formatter {raw!r}")
    return fmt


def _validation(raw: object, *, where: str) -> ValidationSpec | None:
    if raw is None:
        return None
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: validation must be an object")
    css = raw.get("css", "")
    if not isinstance(css, str):
        raise ConfigError(f"{where}: validation.css must be a string")
    messages = raw.get("messages") or {}
    if not isinstance(messages, dict):
        raise ConfigError(f"{where}: validation.messages must be an object")
    unknown = sorted(set(messages) - set(MESSAGE_KINDS))
    if unknown:
        raise ConfigError(f"{where}: unknown message kinds {unknown}")
    regex = raw.get("regex")
    if regex is not None and not isinstance(regex, str):
        raise ConfigError(f"{where}: validation.regex must be a string")
    try:
        return ValidationSpec(
            rules=css,
            messages={str(k): str(v) for k, v in messages.items()},
            regex=regex,
        )
    except RuleSyntaxError as exc:
        raise ConfigError(f"{where}: {exc}") from exc
    except re.error as exc:
        raise ConfigError(f"{where}: invalid regex {regex!r} ({exc})") from exc


def _edit_config(raw: object, *, where: str) -> EditConfig | None:
    if raw is None:
        return None
    if raw is True:
        return EditConfig()
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: quick_edit must be an object")
    changed_name = raw.get("changed")
    changed: ChangedPredicate | None = None
    if changed_name is not None:
        changed = CHANGED_PREDICATES.get(str(changed_name))
        if changed is None:
            raise ConfigError(f"{where}: unknown changed comparator {changed_name!r}")
    return EditConfig(
        formatter=_formatter(raw.get("formatter"), where=where, options=raw.get("options")),
        changed=changed,
        validation=_validation(raw.get("validation"), where=f"{where}.validation"),
        copy_down=bool(raw.get("copy_down", False)),
    )


def _column(raw: object, *, index: int) -> Column:
    if not isinstance(raw, dict):
        raise ConfigError(f"columns[{index}] must be an object")
    key = raw.get("key")
    if not isinstance(key, str) or not key:
        raise ConfigError(f"columns[{index}]: key must be a non-empty string")
    where = f"column {key!r}"
    return Column(
        key=key,
        label=str(raw.get("label") or ""),
        formatter=_formatter(raw.get("formatter"), where=where),
        sortable=bool(raw.get("sortable", False)),
        edit_config=_edit_config(raw.get("quick_edit"), where=f"{where}.quick_edit"),
        readonly_formatter=_formatter(raw.get("readonly_formatter"), where=where),
    )


def parse_table_document(data: object) -> TableDocument:
    if not isinstance(data, dict):
        raise ConfigError("Table document must be a JSON object")
    columns_raw = data.get("columns")
    if not isinstance(columns_raw, list):
        raise ConfigError("Table document needs a 'columns' list")
    columns = [_column(raw, index=idx) for idx, raw in enumerate(columns_raw)]
    keys = [column.key for column in columns]
    if len(set(keys)) != len(keys):
        raise ConfigError("Column keys must be unique")

    records_raw = data.get("records", [])
    if not isinstance(records_raw, list) or not all(isinstance(r, dict) for r in records_raw):
        raise ConfigError("'records' must be a list of objects")

    footer = data.get("footer")
    if footer is not None and not isinstance(footer, dict):
        raise ConfigError("'footer' must be an object")

    always = data.get("changes_always_include", [])
    if not isinstance(always, list) or not all(isinstance(k, str) for k in always):
        raise ConfigError("'changes_always_include' must be a list of strings")

    return TableDocument(
        columns=columns,
        records=[dict(r) for r in records_raw],
        footer=dict(footer) if footer is not None else None,
        changes_always_include=list(always),
    )


def load_table_document(path: Path) -> TableDocument:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    return parse_table_document(data)


def parse_edits(data: object) -> list[FieldEdit]:
    if not isinstance(data, list):
        raise ConfigError("Edits must be a JSON list")
    edits: list[FieldEdit] = []
    for idx, item in enumerate(data):
        if not isinstance(item, Mapping):
            raise ConfigError(f"edits[{idx}] must be an object")
        row = item.get("row")
        key = item.get("key")
        value = item.get("value")
        if not isinstance(row, int) or isinstance(row, bool) or row < 0:
            raise ConfigError(f"edits[{idx}]: row must be a non-negative integer")
        if not isinstance(key, str):
            raise ConfigError(f"edits[{idx}]: key must be a string")
        edits.append(FieldEdit(row=row, key=key, value="" if value is None else str(value)))
    return edits


def load_edits(path: Path) -> list[FieldEdit]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
    return parse_edits(data)
