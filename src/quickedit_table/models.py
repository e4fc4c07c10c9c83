from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, cast

from .rules import Rule, RuleSet, parse_rule_classes

if TYPE_CHECKING:
    from .quickedit import ValidationContext


class FieldKind(str, Enum):
    TEXT = "text"
    MULTILINE = "multiline"
    CHOICE = "choice"


# Validation visits fields one kind at a time, in this order.
FIELD_KIND_ORDER: tuple[FieldKind, ...] = (FieldKind.TEXT, FieldKind.MULTILINE, FieldKind.CHOICE)


class RenderContext(Enum):
    """Which kind of row a formatter is rendering."""

    DATA_ROW = "data_row"
    OTHER = "other"


@dataclass(slots=True, eq=False)
class Field:
    """Editable element bound to one (row, column) pair while edit mode is active."""

    kind: FieldKind
    column_key: str
    row_index: int
    value: str
    options: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class FieldSpec:
    """What an editable formatter asks the host to render."""

    kind: FieldKind
    value: str
    options: tuple[str, ...] = ()
    copy_down: bool = False


CellContent = str | FieldSpec


@dataclass(frozen=True, slots=True)
class CellContext:
    column: Column
    value: Any
    record: Mapping[str, Any] | None
    row_index: int
    context: RenderContext


Formatter = Callable[[CellContext], CellContent]
ChangedPredicate = Callable[[Any, str], bool]
FieldPredicate = Callable[[Field, "ValidationContext"], bool]


@dataclass(slots=True)
class ValidationSpec:
    """Validation for every field of a column.

    ``rules`` accepts a RuleSet, rule descriptors, or the `yiv-*` class string.
    ``regex`` accepts a pattern string or a compiled pattern. There is no default
    message for ``regex``; configure ``messages["regex"]`` alongside it.
    """

    rules: RuleSet | str | Iterable[Rule] = field(default_factory=RuleSet)
    predicate: FieldPredicate | None = None
    messages: dict[str, str] = field(default_factory=dict)
    regex: re.Pattern[str] | str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.rules, str):
            self.rules = parse_rule_classes(self.rules)
        elif not isinstance(self.rules, RuleSet):
            self.rules = RuleSet.from_rules(self.rules)
        if isinstance(self.regex, str):
            self.regex = re.compile(self.regex)

    @property
    def rule_set(self) -> RuleSet:
        return cast(RuleSet, self.rules)

    @property
    def pattern(self) -> re.Pattern[str] | None:
        return cast("re.Pattern[str] | None", self.regex)


@dataclass(slots=True)
class EditConfig:
    formatter: Formatter | None = None
    changed: ChangedPredicate | None = None
    validation: ValidationSpec | None = None
    copy_down: bool = False


@dataclass(slots=True, eq=False)
class Column:
    key: str
    label: str = ""
    formatter: Formatter | None = None
    sortable: bool = False
    edit_config: EditConfig | None = None
    readonly_formatter: Formatter | None = None

    @property
    def title(self) -> str:
        return self.label or self.key

    @property
    def takes_part_in_edit_mode(self) -> bool:
        return self.edit_config is not None or self.readonly_formatter is not None


@dataclass(slots=True)
class ModeState:
    """Column state saved by ``QuickEdit.start`` and consumed by ``cancel``."""

    saved_sortable: list[bool]
    saved_formatters: dict[str, Formatter | None]
    detach_navigation: Callable[[], None] | None = None
