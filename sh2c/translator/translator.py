"""
Shell-to-C translation pipeline.

    segment -> classify -> emit (per statement) -> assemble

:class:`ShellTranslator` runs the pipeline over script text and returns a
:class:`TranslationResult`; :func:`convert_shell_file` wraps it for files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple

from ..core.config import Settings, get_settings
from ..core.diagnostics import Diagnostics
from ..core.errors import TranslationError
from ..core.logging import get_logger
from .classifier import Statement, classify_all
from .context import TranslationContext
from .emitters import StatementEmitter
from .runtime import render_program
from .segmenter import segment

logger = get_logger(__name__)


@dataclass
class TranslationResult:
    """Result of translating one script."""

    code: str
    """Complete C program"""

    statements: List[Statement] = field(default_factory=list)
    """Classified statements in source order"""

    errors: List[TranslationError] = field(default_factory=list)
    """Errors recorded while translating; the code is still complete"""

    helpers: Set[str] = field(default_factory=set)
    """Runtime helpers requested by the body (before dependency expansion)"""

    variables: List[Tuple[str, str]] = field(default_factory=list)
    """(shell name, C identifier) pairs in first-use order"""

    depth: int = 0
    """Block depth reached at end of input, before auto-closing"""

    diagnostics: Optional[Diagnostics] = None

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise the first recorded error, if any."""
        if self.errors:
            raise self.errors[0]


class ShellTranslator:
    """Translate shell scripts into standalone C programs."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def translate(self, source: str, diagnostics: Optional[Diagnostics] = None) -> TranslationResult:
        """
        Translate script text.

        Args:
            source: Shell script text
            diagnostics: Sink for error reports; a fresh one by default

        Returns:
            TranslationResult with the generated program
        """
        context = TranslationContext(self.settings, diagnostics)
        emitter = StatementEmitter(context)

        statements = classify_all(segment(source))
        logger.debug("classified %d statements", len(statements))

        for statement in statements:
            emitter.emit(statement)

        depth = context.blocks.depth
        emitter.close_open_blocks()

        code = render_program(
            context.lines,
            context.variable_list,
            context.helpers,
            indent_unit=self.settings.INDENT_UNIT,
            variable_size=self.settings.VARIABLE_BUFFER_SIZE,
            shell_path=self.settings.SHELL_PATH,
        )
        return TranslationResult(
            code=code,
            statements=statements,
            errors=list(context.errors),
            helpers=set(context.helpers),
            variables=context.variable_list,
            depth=depth,
            diagnostics=context.diagnostics,
        )


def translate_script(source: str, settings: Optional[Settings] = None) -> TranslationResult:
    """Translate script text with a one-off translator."""
    return ShellTranslator(settings).translate(source)


def convert_shell_file(
    source_path: str | Path,
    *,
    output_path: str | Path | None = None,
    overwrite: bool = True,
    encoding: str = "utf-8",
    translator: ShellTranslator | None = None,
    diagnostics: Diagnostics | None = None,
) -> tuple[Path, TranslationResult]:
    """Translate a shell script file and write the C program (``output.c`` by default)."""

    script_path = Path(source_path)
    if not script_path.exists():
        raise FileNotFoundError(f"shell script not found: {script_path}")

    translator = translator or ShellTranslator()
    result = translator.translate(script_path.read_text(encoding=encoding), diagnostics)

    output = Path(output_path) if output_path else Path(translator.settings.OUTPUT_PATH)
    if output.exists() and not overwrite:
        raise FileExistsError(f"Refusing to overwrite existing file: {output}")

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(result.code, encoding=encoding)
    logger.debug("wrote %s", output)
    return output, result
