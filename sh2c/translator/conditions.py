"""
Test-condition translation.

Maps the body of ``[ ... ]`` / ``test ...`` to one side-effect-free C
boolean expression::

    -f "$path"      ->  sh2c_is_reg(path)
    "$a" = hello    ->  strcmp(a, "hello") == 0
    $n -gt 3        ->  atoi(n) > atoi("3")

Numeric operators coerce both operands with ``atoi``, so non-numeric text
compares as zero. Unsupported forms translate to a constant false and carry
an :class:`UnsupportedOperatorError` for the caller to record.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..core.errors import UnsupportedOperatorError
from .c_syntax import CExpression, c_comment, c_string
from .interpolation import resolve_reference

UNARY_OPERATORS = {
    "-n": "strlen({0}) > 0",
    "-z": "strlen({0}) == 0",
    "-e": "sh2c_file_exists({0})",
    "-f": "sh2c_is_reg({0})",
    "-d": "sh2c_is_dir({0})",
}

UNARY_HELPERS = {
    "-e": "file_exists",
    "-f": "is_reg",
    "-d": "is_dir",
}

STRING_OPERATORS = {
    "=": "==",
    "==": "==",
    "!=": "!=",
}

NUMERIC_OPERATORS = {
    "-eq": "==",
    "-ne": "!=",
    "-gt": ">",
    "-lt": "<",
    "-ge": ">=",
    "-le": "<=",
}

_WORD = re.compile(r'(?:"[^"]*"?|[^\s"])+')


class OperandKind(str, Enum):
    VARIABLE = "variable"
    SPECIAL = "special"
    LITERAL = "literal"


class Operand(BaseModel):
    """One side of a test: a variable, ``$?``/``$!`` or a literal word."""

    model_config = ConfigDict(frozen=True)

    kind: OperandKind
    text: str
    """Literal text, or the shell name of the variable"""

    identifier: Optional[str] = None
    """C storage for variables and pseudo-variables"""

    @classmethod
    def from_word(cls, word: str) -> "Operand":
        reference = resolve_reference(word)
        if reference is None:
            return cls(kind=OperandKind.LITERAL, text=word)
        kind = OperandKind.SPECIAL if reference.special else OperandKind.VARIABLE
        return cls(kind=kind, text=reference.name, identifier=reference.identifier)

    def as_string(self) -> str:
        if self.kind is OperandKind.VARIABLE:
            return self.identifier
        if self.kind is OperandKind.SPECIAL:
            return f"sh2c_itoa({self.identifier})"
        return c_string(self.text)

    def as_integer(self) -> str:
        if self.kind is OperandKind.SPECIAL:
            return self.identifier
        return f"atoi({self.as_string()})"

    def string_helpers(self) -> FrozenSet[str]:
        return frozenset({"itoa"}) if self.kind is OperandKind.SPECIAL else frozenset()

    @property
    def variables(self) -> List[str]:
        return [self.text] if self.kind is OperandKind.VARIABLE else []


class Condition(BaseModel):
    """A parsed test expression."""

    model_config = ConfigDict(frozen=True)

    source: str
    words: Tuple[str, ...]
    negated: bool = False

    @property
    def arity(self) -> int:
        return len(self.words)

    @property
    def operator(self) -> Optional[str]:
        if self.arity == 2:
            return self.words[0]
        if self.arity == 3:
            return self.words[1]
        return None

    @property
    def operands(self) -> Tuple[Operand, ...]:
        if self.arity == 1:
            return (Operand.from_word(self.words[0]),)
        if self.arity == 2:
            return (Operand.from_word(self.words[1]),)
        if self.arity == 3:
            return (Operand.from_word(self.words[0]), Operand.from_word(self.words[2]))
        return ()


def split_words(expression: str) -> List[str]:
    """Split on whitespace, keeping double-quoted runs whole and unquoted."""
    return [word.replace('"', "") for word in _WORD.findall(expression)]


def _is_binary(words: List[str]) -> bool:
    return len(words) == 3 and (words[1] in STRING_OPERATORS or words[1] in NUMERIC_OPERATORS)


def parse_condition(expression: str) -> Condition:
    raw = _WORD.findall(expression)
    words = split_words(expression)
    negated = False
    # A quoted "!" is an operand; so is a bare one in `! = x`
    if len(words) > 1 and raw[0] == "!" and not _is_binary(words):
        negated = True
        words = words[1:]
    return Condition(source=expression.strip(), words=tuple(words), negated=negated)


def render_condition(condition: Condition) -> CExpression:
    """Render a parsed condition as a C boolean expression."""
    operands = condition.operands
    variables = [name for operand in operands for name in operand.variables]
    operator = condition.operator

    if condition.arity == 1:
        (operand,) = operands
        result = CExpression(
            f"strlen({operand.as_string()}) > 0", variables, operand.string_helpers()
        )
    elif condition.arity == 2 and operator in UNARY_OPERATORS:
        (operand,) = operands
        helpers = operand.string_helpers()
        if operator in UNARY_HELPERS:
            helpers = helpers | {UNARY_HELPERS[operator]}
        result = CExpression(
            UNARY_OPERATORS[operator].format(operand.as_string()), variables, helpers
        )
    elif condition.arity == 3 and operator in STRING_OPERATORS:
        left, right = operands
        result = CExpression(
            f"strcmp({left.as_string()}, {right.as_string()}) {STRING_OPERATORS[operator]} 0",
            variables,
            left.string_helpers() | right.string_helpers(),
        )
    elif condition.arity == 3 and operator in NUMERIC_OPERATORS:
        left, right = operands
        result = CExpression(
            f"{left.as_integer()} {NUMERIC_OPERATORS[operator]} {right.as_integer()}",
            variables,
        )
    elif condition.arity in (2, 3):
        error = UnsupportedOperatorError(operator, condition.source)
        return CExpression(f"0 /* unsupported test op: {c_comment(operator)} */", error=error)
    else:
        error = UnsupportedOperatorError(
            "", condition.source,
            message=f"unsupported test expression: '{condition.source}'",
        )
        return CExpression("0 /* unsupported test expression */", error=error)

    if condition.negated:
        result.code = f"!({result.code})"
    return result


def translate_condition(expression: str) -> CExpression:
    """Translate a test expression stripped of its brackets or ``test``."""
    return render_condition(parse_condition(expression))
