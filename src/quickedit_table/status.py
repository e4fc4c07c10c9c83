from __future__ import annotations

from enum import Enum


class StatusLevel(str, Enum):
    """Status shown on a row or cell, highest precedence first."""

    ERROR = "error"
    WARN = "warn"
    SUCCESS = "success"
    INFO = "info"

    @property
    def css_class(self) -> str:
        return f"quickedit-has{self.value}"


STATUS_ORDER: tuple[StatusLevel, ...] = (
    StatusLevel.ERROR,
    StatusLevel.WARN,
    StatusLevel.SUCCESS,
    StatusLevel.INFO,
)


def coerce_status(level: StatusLevel | str | None) -> StatusLevel | None:
    if level is None or isinstance(level, StatusLevel):
        return level
    try:
        return StatusLevel(str(level).strip().lower())
    except ValueError:
        return None


def status_precedence(level: StatusLevel | str | None) -> int:
    """Position in STATUS_ORDER; unknown levels rank below every known one."""

    status = coerce_status(level)
    if status is None:
        return len(STATUS_ORDER)
    return STATUS_ORDER.index(status)


def status_takes_precedence(
    current: StatusLevel | str | None,
    new: StatusLevel | str | None,
) -> bool:
    # Equal precedence never overwrites.
    if not current:
        return True
    return status_precedence(new) < status_precedence(current)
