"""
Statement segmentation for shell scripts.

The Pygments Bash lexer tells us which ``;``, ``|`` and newline characters
are real separators and which sit inside quotes, comments or ``$(...)``
substitutions. Segmentation produces one candidate statement per record,
with block keywords (``then``, ``else``, ``fi``, ``do``, ``done``) isolated
onto their own records so the classifier never has to split compound
one-liners itself.
"""

from __future__ import annotations

import re
from typing import Any, Iterator, List, Tuple

from pygments.lexers import get_lexer_by_name
from pygments.token import Token

BLOCK_KEYWORDS = ("then", "else", "fi", "do", "done")

_LEADING_KEYWORD = re.compile(r"^(then|else|fi|done|do)(?:\s+(.*))?$", re.DOTALL)

_bash_lexer = get_lexer_by_name("bash")


def _tokens(text: str) -> Iterator[Tuple[Any, str, int]]:
    """
    Yield (token type, value, substitution depth) triples.

    Depth counts the ``$(`` / ``$((`` / backtick substitutions enclosing the
    token; the opening and closing markers are reported at the outer depth.
    """
    depth = 0
    in_backticks = False
    for _, ttype, value in _bash_lexer.get_tokens_unprocessed(text):
        if ttype in Token.Literal.String.Backtick:
            if in_backticks:
                depth -= 1
                in_backticks = False
                yield ttype, value, depth
            else:
                yield ttype, value, depth
                depth += 1
                in_backticks = True
            continue
        if ttype in Token.Keyword and value.startswith("$("):
            yield ttype, value, depth
            depth += 1
            continue
        if ttype in Token.Keyword and value in (")", "))") and depth:
            depth -= 1
        yield ttype, value, depth


def _isolate_keywords(record: str) -> List[str]:
    """Split leading block keywords off a record."""
    parts: List[str] = []
    rest = record.strip()
    while rest:
        match = _LEADING_KEYWORD.match(rest)
        if not match:
            parts.append(rest)
            break
        parts.append(match.group(1))
        rest = (match.group(2) or "").strip()
    return parts


def segment(source: str) -> List[str]:
    """
    Split raw script text into one candidate statement per record.

    Args:
        source: Shell script text

    Returns:
        Non-empty, stripped statements in source order
    """
    text = source.replace("\r\n", "\n")
    if not text.endswith("\n"):
        text += "\n"

    raw: List[str] = []
    current: List[str] = []

    def flush() -> None:
        raw.append("".join(current))
        current.clear()

    for ttype, value, depth in _tokens(text):
        if depth == 0:
            if ttype in Token.Comment:
                flush()
                continue
            if ttype in Token.Punctuation and value == ";":
                flush()
                continue
            if "\n" in value and (ttype in Token.Text.Whitespace or ttype is Token.Text):
                head, _, tail = value.partition("\n")
                current.append(head)
                flush()
                current.append(tail.replace("\n", " "))
                continue
        if ttype in Token.Literal.String.Escape and value == "\\\n":
            # line continuation
            current.append(" ")
            continue
        current.append(value)
    flush()

    records: List[str] = []
    for record in raw:
        records.extend(_isolate_keywords(record))
    return records


def split_top_level(text: str, separator: str) -> List[str]:
    """
    Split a statement on an unquoted, unsubstituted punctuation separator.

    ``split_top_level("ls | wc -l", "|")`` gives ``["ls", "wc -l"]``; the
    ``||`` operator and separators inside quotes or ``$(...)`` are left alone.

    Args:
        text: One statement
        separator: Single punctuation character, ``|`` or ``;``

    Returns:
        Stripped pieces; a single-element list when there is no separator
    """
    pieces: List[str] = []
    current: List[str] = []
    for ttype, value, depth in _tokens(text):
        if depth == 0 and ttype in Token.Punctuation and value == separator:
            pieces.append("".join(current).strip())
            current.clear()
            continue
        current.append(value)
    pieces.append("".join(current).strip())
    return pieces
