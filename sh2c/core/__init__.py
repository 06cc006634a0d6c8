"""Core utilities package"""

from .config import Settings, get_settings
from .diagnostics import FAILURE_EXIT_CODE, Diagnostic, Diagnostics
from .errors import (
    Sh2cError,
    StructuralError,
    TranslationError,
    UnsupportedConstructError,
    UnsupportedOperatorError,
)
from .logging import get_logger, setup_logging

__all__ = [
    "Settings",
    "get_settings",
    "setup_logging",
    "get_logger",
    "Diagnostic",
    "Diagnostics",
    "FAILURE_EXIT_CODE",
    "Sh2cError",
    "TranslationError",
    "StructuralError",
    "UnsupportedConstructError",
    "UnsupportedOperatorError",
]
