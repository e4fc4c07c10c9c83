from __future__ import annotations


class QuickEditError(Exception):
    """Base class for quickedit-table configuration errors."""


class ConfigError(QuickEditError, ValueError):
    """Raised when a table document or plugin option is malformed."""


class RuleSyntaxError(QuickEditError, ValueError):
    """Raised when a validation rule class cannot be parsed.

    Only configuration is checked eagerly; field values never raise, they are
    reported through cell and row status instead.
    """
