from __future__ import annotations

from .errors import ConfigError, QuickEditError, RuleSyntaxError
from .grid import TableGrid
from .models import Column, EditConfig, Field, FieldKind, RenderContext, ValidationSpec
from .quickedit import QuickEdit, ValidationContext
from .status import StatusLevel

__version__ = "0.1.0"

__all__ = [
    "Column",
    "ConfigError",
    "EditConfig",
    "Field",
    "FieldKind",
    "QuickEdit",
    "QuickEditError",
    "RenderContext",
    "RuleSyntaxError",
    "StatusLevel",
    "TableGrid",
    "ValidationContext",
    "ValidationSpec",
    "__version__",
]
