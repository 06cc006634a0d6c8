"""Mutable state for one translation run."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..core.config import Settings, get_settings
from ..core.diagnostics import Diagnostics
from ..core.errors import TranslationError
from .blocks import BlockTracker
from .c_syntax import CExpression, c_identifier


class TranslationContext:
    """
    Everything the emitters share while walking a script.

    Holds the output body lines, the block tracker that sets their
    indentation, the runtime helpers and shell variables the program needs,
    a counter for unique C names and the errors recorded so far. A context
    is created per translation; nothing here is process-wide.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        diagnostics: Optional[Diagnostics] = None,
    ):
        self.settings = settings or get_settings()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.blocks = BlockTracker(unit=self.settings.INDENT_UNIT, base_depth=1)
        self.lines: List[str] = []
        self.helpers: Set[str] = set()
        self.variables: Dict[str, str] = {}
        self.errors: List[TranslationError] = []
        self._counter = 0

    @property
    def prefix(self) -> str:
        return self.blocks.prefix

    def emit(self, text: str, indent: int = 0) -> None:
        """Append one body line at the current depth plus ``indent`` levels."""
        self.lines.append(self.prefix + self.settings.INDENT_UNIT * indent + text)

    def emit_lines(self, lines: Iterable[Tuple[int, str]]) -> None:
        for indent, text in lines:
            self.emit(text, indent)

    def use_helper(self, *names: str) -> None:
        self.helpers.update(names)

    def declare(self, name: str) -> str:
        """Register a shell variable and return its C identifier."""
        identifier = self.variables.get(name)
        if identifier is None:
            identifier = c_identifier(name)
            self.variables[name] = identifier
            self.use_helper("import_env")
        return identifier

    def declare_all(self, names: Iterable[str]) -> None:
        for name in names:
            self.declare(name)

    def next_id(self) -> int:
        self._counter += 1
        return self._counter

    def record_error(
        self, error: TranslationError, statement: Optional[str] = None, index: Optional[int] = None
    ) -> None:
        """Keep an error and report it; translation carries on."""
        if statement is not None and error.statement is None:
            error.at(statement, index)
        elif index is not None and error.index is None:
            error.at(error.statement, index)
        self.errors.append(error)
        self.diagnostics.error(error.message)

    def apply(self, expression: CExpression, statement: Optional[str] = None,
              index: Optional[int] = None) -> str:
        """Take in a translated expression's requirements and return its code."""
        self.declare_all(expression.variables)
        self.use_helper(*expression.helpers)
        if expression.error is not None:
            self.record_error(expression.error, statement, index)
        return expression.code

    @property
    def variable_list(self) -> List[Tuple[str, str]]:
        return list(self.variables.items())
