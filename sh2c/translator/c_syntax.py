"""
C source helpers shared by the emitters.

String literal escaping, printf format escaping, comment sanitising and
mapping of shell variable names onto C identifiers that cannot collide
with keywords, libc names or the generated program's own symbols.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, FrozenSet, List, Optional

if TYPE_CHECKING:
    from ..core.errors import TranslationError

GENERATED_PREFIX = "sh2c_"

C_KEYWORDS = frozenset({
    "auto", "break", "case", "char", "const", "continue", "default", "do",
    "double", "else", "enum", "extern", "float", "for", "goto", "if",
    "inline", "int", "long", "register", "restrict", "return", "short",
    "signed", "sizeof", "static", "struct", "switch", "typedef", "union",
    "unsigned", "void", "volatile", "while", "_Bool", "_Complex",
    "_Imaginary", "bool", "true", "false",
})

# Library symbols referenced by generated code; a local variable with one
# of these names would shadow the function inside main().
RESERVED_NAMES = frozenset({
    "main", "printf", "fprintf", "snprintf", "perror", "fflush", "fread",
    "popen", "pclose", "strcmp", "strlen", "strcpy", "memcpy", "atoi",
    "chdir", "getenv", "stdout", "stderr", "stdin", "errno", "NULL", "EOF",
    "FILE", "size_t", "ssize_t", "pid_t",
})


@dataclass
class CExpression:
    """A translated C expression and what it needs from the program."""

    code: str
    variables: List[str] = field(default_factory=list)
    helpers: FrozenSet[str] = frozenset()
    error: Optional[TranslationError] = None


_C_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\n": "\\n",
    "\t": "\\t",
    "\r": "\\r",
    "?": "\\?",  # keeps trigraph sequences inert
}


def c_identifier(name: str) -> str:
    """Map a shell variable name onto a safe C identifier."""
    if name in C_KEYWORDS or name in RESERVED_NAMES or name.startswith(GENERATED_PREFIX):
        return f"{GENERATED_PREFIX}var_{name}"
    return name


def escape_c_string(text: str) -> str:
    """Escape text for use between the quotes of a C string literal."""
    return "".join(_C_ESCAPES.get(ch, ch) for ch in text)


def c_string(text: str) -> str:
    """Return text as a quoted C string literal."""
    return f'"{escape_c_string(text)}"'


def escape_format(text: str) -> str:
    """Escape literal text so printf-style formatting prints it verbatim."""
    return text.replace("%", "%%")


def c_comment(text: str) -> str:
    """Make text safe to embed in a ``/* */`` or ``//`` comment."""
    text = re.sub(r"[\r\n]+", " ", text).replace("*/", "* /")
    # A trailing backslash would splice the next source line into a // comment
    return text.strip().rstrip("\\").rstrip()
