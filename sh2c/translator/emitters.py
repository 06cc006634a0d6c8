"""
Per-construct statement emitters.

:class:`StatementEmitter` turns one classified :class:`Statement` into C
lines on the :class:`TranslationContext`. Handlers are looked up by
statement kind; a handler that raises :class:`TranslationError` leaves an
inert ``// UNTRANSLATED`` marker in the output and the error is recorded,
so translation always continues with the next statement.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Tuple

from ..core.errors import StructuralError, TranslationError, UnsupportedConstructError
from ..core.logging import get_logger
from .arithmetic import translate_arithmetic
from .c_syntax import c_comment, c_string, escape_format
from .classifier import Statement, StatementKind
from .conditions import translate_condition
from .context import TranslationContext
from .interpolation import LAST_BACKGROUND_PID, LAST_STATUS, Interpolation, build_interpolation, strip_quotes
from .segmenter import split_top_level

logger = get_logger(__name__)

UNTRANSLATED_MARKER = "// UNTRANSLATED:"

_BRACKET_CONDITIONS = (
    re.compile(r"^\[\[\s*(.*?)\s*\]\]$", re.DOTALL),
    re.compile(r"^\[\s*(.*?)\s*\]$", re.DOTALL),
    re.compile(r"^test(?:\s+(.*))?$", re.DOTALL),
)
_ARITHMETIC_EXPANSION = re.compile(r"\$\(\((.*?)\)\)", re.DOTALL)
_WORD = re.compile(r"""(?:"[^"]*"|'[^']*'|[^\s"'])+""")

Lines = List[Tuple[int, str]]


def format_arguments(interpolation: Interpolation, newline: bool = False) -> str:
    """
    Render printf-family arguments for an interpolation.

    Literal text always goes through ``"%s"`` so it is never read as a
    format string.
    """
    suffix = "\n" if newline else ""
    if interpolation.literal:
        return f"{c_string('%s' + suffix)}, {c_string(interpolation.format)}"
    return ", ".join([c_string(interpolation.format + suffix)] + interpolation.arguments)


def _echo_text(text: str) -> str:
    """Quote removal and word joining for echo arguments."""
    unquoted, quote = strip_quotes(text)
    if quote and quote not in unquoted:
        return text
    return " ".join(re.sub(r"[\"']", "", word) for word in _WORD.findall(text))


class StatementEmitter:
    """Emit C for classified statements into a translation context."""

    def __init__(self, context: TranslationContext):
        self.context = context
        self._statement: Optional[Statement] = None
        self.handlers: Dict[StatementKind, Callable[[Statement], None]] = {
            StatementKind.PIPELINE: self._emit_pipeline,
            StatementKind.ECHO: self._emit_echo,
            StatementKind.ARITHMETIC_ASSIGNMENT: self._emit_arithmetic_assignment,
            StatementKind.COMMAND_SUBSTITUTION: self._emit_command_substitution,
            StatementKind.EXPR: self._emit_expr,
            StatementKind.TEST: self._emit_test,
            StatementKind.CD: self._emit_cd,
            StatementKind.IF: self._emit_if,
            StatementKind.THEN: self._emit_then,
            StatementKind.ELSE: self._emit_else,
            StatementKind.FI: self._emit_close,
            StatementKind.FOR: self._emit_for,
            StatementKind.DONE: self._emit_close,
            StatementKind.BACKGROUND: self._emit_background,
            StatementKind.ASSIGNMENT: self._emit_assignment,
            StatementKind.INFORMATIONAL: self._emit_informational,
            StatementKind.VARIABLE_REFERENCE: self._emit_variable_reference,
            StatementKind.UNTRANSLATED: self._emit_untranslated,
        }

    @property
    def settings(self):
        return self.context.settings

    def emit(self, statement: Statement) -> None:
        """Dispatch one statement; errors become markers and diagnostics."""
        handler = self.handlers[statement.kind]
        self._statement = statement
        try:
            handler(statement)
        except TranslationError as exc:
            self.context.record_error(exc, statement.text, statement.index)
            self.mark_untranslated(statement.text)

    def mark_untranslated(self, text: str) -> None:
        self.context.emit(f"{UNTRANSLATED_MARKER} {c_comment(text)}")

    def close_open_blocks(self) -> None:
        """Close blocks still open at end of input so the output compiles."""
        while not self.context.blocks.balanced:
            self.context.blocks.pop("EOF")
            self.context.emit("}  // UNTRANSLATED: block closed at end of input")
            error = StructuralError("EOF", "block not closed at end of input")
            self.context.record_error(error)

    # helpers

    def _interpolate(self, text: str, keep_escapes: bool = False) -> Interpolation:
        interpolation = build_interpolation(text, keep_escapes)
        self.context.declare_all(interpolation.variables)
        return interpolation

    def _expression(self, expression) -> str:
        statement = self._statement
        return self.context.apply(expression, statement.text, statement.index)

    def _condition(self, text: str) -> str:
        return self._expression(translate_condition(text))

    def _arithmetic(self, text: str) -> str:
        return self._expression(translate_arithmetic(text))

    def _text_into(
        self, buffer: str, size: int, text: str, shell: bool = False
    ) -> Tuple[Lines, str]:
        """
        Lines that build text into a char buffer, and the C expression to use.

        Literal text needs no buffer; the expression is then a string literal.
        """
        interpolation = self._interpolate(text, keep_escapes=shell)
        if interpolation.literal:
            return [], c_string(interpolation.format)
        return [
            (1, f"char {buffer}[{size}];"),
            (1, f"snprintf({buffer}, sizeof({buffer}), {format_arguments(interpolation)});"),
        ], buffer

    def _emit_scoped(self, setup: Lines, body: List[str]) -> None:
        """Emit body lines, wrapped in a block when setup lines are needed."""
        if not setup:
            for line in body:
                self.context.emit(line)
            return
        self.context.emit("{")
        self.context.emit_lines(setup)
        for line in body:
            self.context.emit(line, 1)
        self.context.emit("}")

    def _print(self, text: str, newline: bool = True) -> None:
        interpolation = self._interpolate(text)
        call = f"printf({format_arguments(interpolation, newline)})"
        self.context.emit(f"{LAST_STATUS} = {call} < 0 ? 1 : 0;")

    def _assign_text(self, name: str, text: str, verbatim: bool = False) -> None:
        target = self.context.declare(name)
        if verbatim:
            self.context.emit(f'snprintf({target}, sizeof({target}), "%s", {c_string(text)});')
            return
        interpolation = self._interpolate(text)
        arguments = format_arguments(interpolation)
        if target not in interpolation.arguments:
            self.context.emit(f"snprintf({target}, sizeof({target}), {arguments});")
            return
        # The target is also a source; format into a scratch copy first
        size = self.settings.VARIABLE_BUFFER_SIZE
        self.context.emit_lines([
            (0, "{"),
            (1, f"char sh2c_tmp[{size}];"),
            (1, f"snprintf(sh2c_tmp, sizeof(sh2c_tmp), {arguments});"),
            (1, f"strcpy({target}, sh2c_tmp);"),
            (0, "}"),
        ])

    def _condition_text(self, condition: str) -> Optional[str]:
        """The test expression inside ``[ ]``/``[[ ]]``/``test``, or None."""
        negated = False
        if condition.startswith("! "):
            negated = True
            condition = condition[2:].strip()
        for pattern in _BRACKET_CONDITIONS:
            match = pattern.match(condition)
            if match:
                inner = match.group(1) or ""
                return f"! {inner}" if negated else inner
        return None

    # handlers

    def _emit_echo(self, statement: Statement) -> None:
        text = statement.group("text")
        newline = True
        if text == "-n" or text.startswith("-n "):
            newline = False
            text = text[2:].strip()

        text = _echo_text(text)
        unquoted, quote = strip_quotes(text)
        if quote != "'" and _ARITHMETIC_EXPANSION.search(unquoted):
            self._print_arithmetic(unquoted, newline)
            return
        self._print(text, newline)

    def _print_arithmetic(self, text: str, newline: bool) -> None:
        """Print text whose ``$((...))`` expansions become ``%d`` arguments."""
        formats: List[str] = []
        arguments: List[str] = []

        def add_text(piece: str) -> None:
            if not piece:
                return
            interpolation = self._interpolate(piece)
            if interpolation.literal:
                formats.append(escape_format(interpolation.format))
            else:
                formats.append(interpolation.format)
            arguments.extend(interpolation.arguments)

        position = 0
        for match in _ARITHMETIC_EXPANSION.finditer(text):
            add_text(text[position:match.start()])
            formats.append("%d")
            arguments.append(self._arithmetic(match.group(1)))
            position = match.end()
        add_text(text[position:])

        suffix = "\n" if newline else ""
        call = ", ".join([c_string("".join(formats) + suffix)] + arguments)
        self.context.emit(f"{LAST_STATUS} = printf({call}) < 0 ? 1 : 0;")

    def _emit_arithmetic_assignment(self, statement: Statement) -> None:
        code = self._arithmetic(statement.group("expression"))
        target = self.context.declare(statement.group("name"))
        self.context.emit_lines([
            (0, "{"),
            (1, f"int sh2c_value = {code};"),
            (1, f'snprintf({target}, sizeof({target}), "%d", sh2c_value);'),
            (0, "}"),
        ])

    def _emit_command_substitution(self, statement: Statement) -> None:
        target = self.context.declare(statement.group("name"))
        setup, command = self._text_into(
            "sh2c_command",
            self.settings.COMMAND_BUFFER_SIZE,
            statement.group("command").strip(),
            shell=True,
        )
        self.context.emit("{")
        self.context.emit_lines(setup)
        self.context.emit_lines([
            (1, "fflush(NULL);"),
            (1, f'FILE* sh2c_pipe = popen({command}, "r");'),
            (1, "if (sh2c_pipe == NULL) {"),
            (2, f"{target}[0] = '\\0';"),
            (2, f"{LAST_STATUS} = 127;"),
            (1, "} else {"),
            (2, f"size_t sh2c_length = fread({target}, 1, sizeof({target}) - 1, sh2c_pipe);"),
            (2, f"{target}[sh2c_length] = '\\0';"),
            (2, f"while (sh2c_length > 0 && {target}[sh2c_length - 1] == '\\n') {{"),
            (3, f"{target}[--sh2c_length] = '\\0';"),
            (2, "}"),
            (2, "char sh2c_drain[256];"),
            (2, "while (fread(sh2c_drain, 1, sizeof(sh2c_drain), sh2c_pipe) > 0) {"),
            (2, "}"),
            (2, "int sh2c_status = pclose(sh2c_pipe);"),
            (2, f"{LAST_STATUS} = sh2c_status != -1 && WIFEXITED(sh2c_status) ? WEXITSTATUS(sh2c_status) : 127;"),
            (1, "}"),
            (0, "}"),
        ])

    def _emit_expr(self, statement: Statement) -> None:
        expression = statement.group("expression")
        expression = expression.replace("\\*", "*").replace("'*'", "*").replace('"*"', "*")
        code = self._arithmetic(expression)
        self.context.emit_lines([
            (0, "{"),
            (1, f"int sh2c_value = {code};"),
            (1, 'printf("%d\\n", sh2c_value);'),
            (1, f"{LAST_STATUS} = sh2c_value == 0;"),
            (0, "}"),
        ])

    def _emit_test(self, statement: Statement) -> None:
        code = self._condition(statement.group("condition"))
        self.context.emit(f"{LAST_STATUS} = !({code});")

    def _emit_cd(self, statement: Statement) -> None:
        directory = statement.group("directory").strip() or "$HOME"
        setup, path = self._text_into("sh2c_path", self.settings.VARIABLE_BUFFER_SIZE, directory)
        self._emit_scoped(setup, [f"{LAST_STATUS} = chdir({path}) == 0 ? 0 : 1;"])

    def _emit_if(self, statement: Statement) -> None:
        condition = statement.group("condition").strip()
        test = self._condition_text(condition)
        if test is not None:
            self.context.emit(f"{LAST_STATUS} = !({self._condition(test)});")
        else:
            # Any other command: its exit status decides the branch
            self.context.use_helper("run_command")
            setup, command = self._text_into(
                "sh2c_command", self.settings.COMMAND_BUFFER_SIZE, condition, shell=True
            )
            self._emit_scoped(setup, [f"{LAST_STATUS} = sh2c_run_command({command});"])
        self.context.emit(f"if ({LAST_STATUS} == 0) {{")
        self.context.blocks.push()

    def _emit_then(self, statement: Statement) -> None:
        logger.debug("absorbed '%s'", statement.text)

    def _emit_else(self, statement: Statement) -> None:
        self.context.blocks.pop("else")
        self.context.emit("} else {")
        self.context.blocks.push()

    def _emit_close(self, statement: Statement) -> None:
        self.context.blocks.pop(statement.text)
        self.context.emit("}")

    def _emit_for(self, statement: Statement) -> None:
        loop_variable = self.context.declare(statement.group("name"))
        block_id = self.context.next_id()
        items = f"sh2c_items_{block_id}"
        index = f"sh2c_index_{block_id}"
        size = self.settings.VARIABLE_BUFFER_SIZE

        initializers = []
        for position, word in enumerate(_WORD.findall(statement.group("words"))):
            unquoted, quote = strip_quotes(word)
            if quote == "'":
                initializers.append(c_string(unquoted))
                continue
            buffer = f"sh2c_item_{block_id}_{position}"
            setup, value = self._text_into(buffer, size, word.replace('"', ""))
            for _, line in setup:
                self.context.emit(line)
            initializers.append(value)

        count = len(initializers)
        self.context.emit(f"const char* {items}[] = {{ {', '.join(initializers) or 'NULL'} }};")
        self.context.emit(f"for (size_t {index} = 0; {index} < {count}; ++{index}) {{")
        self.context.blocks.push()
        self.context.emit(f'snprintf({loop_variable}, sizeof({loop_variable}), "%s", {items}[{index}]);')

    def _emit_background(self, statement: Statement) -> None:
        self.context.use_helper("background")
        setup, command = self._text_into(
            "sh2c_command",
            self.settings.COMMAND_BUFFER_SIZE,
            statement.group("command").strip(),
            shell=True,
        )
        self._emit_scoped(setup, [f"{LAST_BACKGROUND_PID} = sh2c_run_background({command});"])
        self.context.emit(f"{LAST_STATUS} = 0;")

    def _emit_assignment(self, statement: Statement) -> None:
        value, quote = strip_quotes(statement.group("value"))
        if quote == "'":
            self._assign_text(statement.group("name"), value, verbatim=True)
        else:
            self._assign_text(statement.group("name"), value)

    def _emit_informational(self, statement: Statement) -> None:
        if not self.settings.RUN_INFORMATIONAL_BUILTINS:
            self._print(f"'{statement.group('builtin')}'")
            return
        self.context.use_helper("run_command")
        setup, command = self._text_into(
            "sh2c_command", self.settings.COMMAND_BUFFER_SIZE, statement.text, shell=True
        )
        self._emit_scoped(setup, [f"{LAST_STATUS} = sh2c_run_command({command});"])

    def _emit_variable_reference(self, statement: Statement) -> None:
        interpolation = self._interpolate(statement.group("text"))
        self.context.emit(f"printf({format_arguments(interpolation, newline=True)});")

    def _emit_pipeline(self, statement: Statement) -> None:
        self.context.use_helper("pipe_chain")
        stages = split_top_level(statement.text, "|")
        count = len(stages)
        size = self.settings.COMMAND_BUFFER_SIZE

        interpolations = [self._interpolate(stage, keep_escapes=True) for stage in stages]
        dynamic = any(not interpolation.literal for interpolation in interpolations)

        lines: Lines = [(0, "{")]
        if dynamic:
            lines.append((1, f"char sh2c_stage_buffers[{count}][{size}];"))
        lines.append((1, f"const char* sh2c_stages[{count}];"))
        lines.append((1, f"int sh2c_pipestatus[{count}];"))
        if dynamic:
            lines.append((1, "bool sh2c_overflow = false;"))
        for position, interpolation in enumerate(interpolations):
            if interpolation.literal:
                lines.append((1, f"sh2c_stages[{position}] = {c_string(interpolation.format)};"))
                continue
            buffer = f"sh2c_stage_buffers[{position}]"
            lines.extend([
                (1, f"if (snprintf({buffer}, sizeof({buffer}), {format_arguments(interpolation)})"
                    f" >= (int) sizeof({buffer})) {{"),
                (2, "sh2c_overflow = true;"),
                (1, "}"),
                (1, f"sh2c_stages[{position}] = {buffer};"),
            ])

        run = [
            f"int sh2c_rc = sh2c_execute_pipe_chain({count}, sh2c_stages, sh2c_pipestatus);",
            f"{LAST_STATUS} = sh2c_rc < 0 ? 127 : sh2c_rc;",
        ]
        if dynamic:
            lines.extend([
                (1, "if (sh2c_overflow) {"),
                (2, 'fprintf(stderr, "sh2c: pipeline stage too long\\n");'),
                (2, f"{LAST_STATUS} = 1;"),
                (1, "} else {"),
            ])
            lines.extend((2, line) for line in run)
            lines.append((1, "}"))
        else:
            lines.extend((1, line) for line in run)
        lines.append((0, "}"))
        self.context.emit_lines(lines)

    def _emit_untranslated(self, statement: Statement) -> None:
        raise UnsupportedConstructError(statement.text)
