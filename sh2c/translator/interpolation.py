"""
Variable interpolation for shell text.

Turns text such as ``"Hello $name, status ${code} / $?"`` into a printf
format string and the ordered list of C arguments that fill it::

    fmt:  Hello %s, status %s / %d
    args: name, code, sh2c_last_status

Named variables become ``%s`` placeholders; the two pseudo-variables
``$?`` and ``$!`` are ints and become ``%d``. Literal segments of the
format are percent-escaped so user text can never act as a conversion
specifier. Text without any reference is returned unformatted and flagged
as literal; callers must print it through ``"%s"`` rather than use it as a
format string.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .c_syntax import c_identifier, escape_format

LAST_STATUS = "sh2c_last_status"
LAST_BACKGROUND_PID = "sh2c_last_bg_pid"

PSEUDO_VARIABLES = {
    "$?": LAST_STATUS,
    "$!": LAST_BACKGROUND_PID,
}

REFERENCE_PATTERN = r"\$[A-Za-z_][A-Za-z0-9_]*|\$\{[A-Za-z_][A-Za-z0-9_]*\}|\$\?|\$!"

# Greedy prefix, so the match found is the rightmost reference
_RIGHTMOST_REFERENCE = re.compile(rf"(.*)({REFERENCE_PATTERN})", re.DOTALL)
_WHOLE_REFERENCE = re.compile(rf"^(?:{REFERENCE_PATTERN})$")


@dataclass(frozen=True)
class Reference:
    """A resolved variable reference."""

    name: str
    """Shell name (``HOME``) or the pseudo-variable itself (``$?``)"""

    identifier: str
    """C expression naming the storage"""

    special: bool = False
    """True for ``$?`` and ``$!``, which are ints"""

    @property
    def placeholder(self) -> str:
        return "%d" if self.special else "%s"


@dataclass
class Interpolation:
    """Result of interpolating one text fragment."""

    format: str
    """printf format (percent-escaped) or, when literal, the plain text"""

    references: List[Reference] = field(default_factory=list)
    """References in left-to-right textual order"""

    @property
    def literal(self) -> bool:
        return not self.references

    @property
    def arguments(self) -> List[str]:
        return [ref.identifier for ref in self.references]

    @property
    def variables(self) -> List[str]:
        """Shell variable names (pseudo-variables excluded)."""
        return [ref.name for ref in self.references if not ref.special]


def resolve_reference(token: str) -> Optional[Reference]:
    """Resolve a single ``$NAME``, ``${NAME}``, ``$?`` or ``$!`` token."""
    if not _WHOLE_REFERENCE.match(token):
        return None
    if token in PSEUDO_VARIABLES:
        return Reference(token, PSEUDO_VARIABLES[token], special=True)
    name = token[1:]
    if name.startswith("{"):
        name = name[1:-1]
    return Reference(name, c_identifier(name))


def strip_quotes(text: str) -> Tuple[str, str]:
    """
    Remove one layer of surrounding quotes.

    Returns:
        (unquoted text, quote character or "")
    """
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return text[1:-1], text[0]
    return text, ""


def _escaped(head: str) -> bool:
    """True when head ends in an odd number of backslashes."""
    return (len(head) - len(head.rstrip("\\"))) % 2 == 1


def build_interpolation(text: str, keep_escapes: bool = False) -> Interpolation:
    """
    Resolve variable references inside text.

    References are matched from the rightmost one inward; each resolved
    reference is prepended to the argument list so the final list follows
    the textual order of the references. A reference written ``\\$NAME`` is
    literal text: the backslash is dropped, or kept when ``keep_escapes`` is
    set because the text is handed to the shell.

    Args:
        text: Arbitrary text fragment, possibly quoted
        keep_escapes: Leave ``\\$`` escapes in place for the shell

    Returns:
        Interpolation with a format string and ordered references
    """
    unquoted, quote = strip_quotes(text)
    if quote == "'":
        return Interpolation(unquoted)

    remaining = unquoted
    pieces: List[Union[str, Reference]] = []

    match = _RIGHTMOST_REFERENCE.match(remaining)
    while match:
        head, token = match.group(1), match.group(2)
        tail = remaining[match.end():]
        if _escaped(head):
            backslash = "\\" if keep_escapes else ""
            pieces.insert(0, backslash + token + tail)
            remaining = head[:-1]
        else:
            pieces[0:0] = [resolve_reference(token), tail]
            remaining = head
        match = _RIGHTMOST_REFERENCE.match(remaining)
    pieces.insert(0, remaining)

    references = [piece for piece in pieces if isinstance(piece, Reference)]
    if not references:
        return Interpolation("".join(pieces))
    return Interpolation(
        "".join(
            piece.placeholder if isinstance(piece, Reference) else escape_format(piece)
            for piece in pieces
        ),
        references,
    )
