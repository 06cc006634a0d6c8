"""
Arithmetic-expansion translation.

The body of ``$((...))`` (or the arguments of ``expr``) is tokenized with a
small Lark grammar and rebuilt as a C integer expression in which every
variable operand is coerced with ``atoi``::

    x + 2 * $y     ->  atoi(x) + 2 * atoi(y)
    ($? + 1) % 2   ->  (sh2c_last_status + 1) % 2

The grammar only recognises tokens; it does not check precedence or
parenthesis balance, so a malformed body gives a malformed C expression.
"""

from __future__ import annotations

from typing import List

from lark import Lark, Transformer, v_args
from lark.exceptions import UnexpectedInput

from ..core.errors import UnsupportedOperatorError
from .c_syntax import CExpression, c_identifier
from .interpolation import PSEUDO_VARIABLES, resolve_reference

ARITHMETIC_OPERATORS = ("+", "-", "*", "/", "%", "^")

ARITHMETIC_GRAMMAR = r"""
    start: _token*

    _token: SPECIAL
          | VARIABLE
          | NAME
          | NUMBER
          | OPERATOR
          | LPAR
          | RPAR

    SPECIAL: "$?" | "$!"
    VARIABLE: /\$[A-Za-z_][A-Za-z0-9_]*/ | /\$\{[A-Za-z_][A-Za-z0-9_]*\}/
    NAME: /[A-Za-z_][A-Za-z0-9_]*/
    NUMBER: /[0-9]+/
    OPERATOR: /[-+*\/%^]/
    LPAR: "("
    RPAR: ")"

    %import common.WS
    %ignore WS
"""

_arithmetic_parser = Lark(ARITHMETIC_GRAMMAR, parser="lalr", lexer="basic")


@v_args(inline=True)
class _ArithmeticToC(Transformer):
    """Rewrite arithmetic tokens into C fragments."""

    def __init__(self) -> None:
        super().__init__()
        self.variables: List[str] = []

    def _variable(self, name: str) -> str:
        self.variables.append(name)
        return f"atoi({c_identifier(name)})"

    def SPECIAL(self, token):
        return PSEUDO_VARIABLES[str(token)]

    def VARIABLE(self, token):
        return self._variable(resolve_reference(str(token)).name)

    def NAME(self, token):
        return self._variable(str(token))

    def NUMBER(self, token):
        return str(token)

    def OPERATOR(self, token):
        return f" {token} "

    def LPAR(self, token):
        return "("

    def RPAR(self, token):
        return ")"

    def start(self, *parts):
        return " ".join("".join(parts).split())


def translate_arithmetic(expression: str) -> CExpression:
    """
    Translate an arithmetic-expansion body to a C int expression.

    Args:
        expression: Text between ``$((`` and ``))``

    Returns:
        CExpression; on unrecognised characters the code is ``0`` and the
        error is an UnsupportedOperatorError naming the offending text
    """
    if not expression.strip():
        return CExpression("0")

    try:
        tree = _arithmetic_parser.parse(expression)
    except UnexpectedInput as exc:
        operator = getattr(exc, "char", None) or expression
        error = UnsupportedOperatorError(
            operator,
            expression,
            message=f"unsupported arithmetic operator: '{operator}' in expression: '{expression}'",
        )
        return CExpression("0", error=error)

    transformer = _ArithmeticToC()
    code = transformer.transform(tree)
    return CExpression(code or "0", variables=list(dict.fromkeys(transformer.variables)))
