"""
Leveled diagnostic sink.

Collects (level, message) pairs, forwards them to the ``sh2c`` logger and
raises the aggregate exit status once an error-level message is seen.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .logging import ROOT_LOGGER, get_logger

FAILURE_EXIT_CODE = 2

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


@dataclass
class Diagnostic:
    level: str
    message: str


@dataclass
class Diagnostics:
    """Diagnostic collector shared by one translation run."""

    logger: logging.Logger = field(default_factory=lambda: get_logger(ROOT_LOGGER))
    records: list[Diagnostic] = field(default_factory=list)
    exit_status: int = 0

    def report(self, level: str, message: str) -> None:
        """
        Record a diagnostic.

        Args:
            level: One of debug, info, warning, error, fatal
            message: Human readable message

        Raises:
            ValueError: If the level is unknown
        """
        try:
            levelno = LEVELS[level]
        except KeyError:
            raise ValueError(f"unknown diagnostic level: {level!r}") from None

        self.records.append(Diagnostic(level, message))
        self.logger.log(levelno, message)
        if levelno >= logging.ERROR:
            self.exit_status = FAILURE_EXIT_CODE

    def info(self, message: str) -> None:
        self.report("info", message)

    def warning(self, message: str) -> None:
        self.report("warning", message)

    def error(self, message: str) -> None:
        self.report("error", message)

    @property
    def errors(self) -> list[Diagnostic]:
        return [record for record in self.records if LEVELS[record.level] >= logging.ERROR]

    @property
    def failed(self) -> bool:
        return self.exit_status != 0
