"""
Statement classification.

Every segmented record is matched against an ordered rule table; the first
rule that matches decides the statement's kind. Named groups captured by
the rule travel with the statement so emitters never re-parse it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Tuple, Union

from .interpolation import REFERENCE_PATTERN
from .segmenter import split_top_level

INFORMATIONAL_BUILTINS = ("ls", "pwd", "whoami", "date")

_NAME = r"[A-Za-z_][A-Za-z0-9_]*"


class StatementKind(str, Enum):
    PIPELINE = "pipeline"
    ECHO = "echo"
    ARITHMETIC_ASSIGNMENT = "arithmetic_assignment"
    COMMAND_SUBSTITUTION = "command_substitution"
    EXPR = "expr"
    TEST = "test"
    CD = "cd"
    IF = "if"
    THEN = "then"
    ELSE = "else"
    FI = "fi"
    FOR = "for"
    DONE = "done"
    BACKGROUND = "background"
    ASSIGNMENT = "assignment"
    INFORMATIONAL = "informational"
    VARIABLE_REFERENCE = "variable_reference"
    UNTRANSLATED = "untranslated"


@dataclass
class Statement:
    """One classified statement."""

    text: str
    kind: StatementKind
    index: int = 0
    groups: Dict[str, str] = field(default_factory=dict)

    def group(self, name: str, default: str = "") -> str:
        value = self.groups.get(name)
        return default if value is None else value


def _is_pipeline(text: str) -> Optional[Dict[str, str]]:
    if len(split_top_level(text, "|")) > 1:
        return {}
    return None


def _rule(pattern: str) -> Pattern[str]:
    return re.compile(pattern, re.DOTALL)


Matcher = Union[Pattern[str], Callable[[str], Optional[Dict[str, str]]]]

RULES: Tuple[Tuple[StatementKind, Matcher], ...] = (
    (StatementKind.PIPELINE, _is_pipeline),
    (StatementKind.ECHO, _rule(r"^echo(?:\s+(?P<text>.*))?$")),
    (StatementKind.ARITHMETIC_ASSIGNMENT, _rule(rf'^(?P<name>{_NAME})=("?)\$\(\((?P<expression>.*)\)\)\2$')),
    (StatementKind.COMMAND_SUBSTITUTION, _rule(rf'^(?P<name>{_NAME})="?\$\((?!\()(?P<command>.*)\)"?$')),
    (StatementKind.COMMAND_SUBSTITUTION, _rule(rf'^(?P<name>{_NAME})="?`(?P<command>[^`]*)`"?$')),
    (StatementKind.EXPR, _rule(r"^expr\s+(?P<expression>.+)$")),
    (StatementKind.TEST, _rule(r"^\[\[\s*(?P<condition>.*?)\s*\]\]$")),
    (StatementKind.TEST, _rule(r"^\[\s*(?P<condition>.*?)\s*\]$")),
    (StatementKind.TEST, _rule(r"^test(?:\s+(?P<condition>.*))?$")),
    (StatementKind.CD, _rule(r"^cd(?:\s+(?P<directory>.*))?$")),
    (StatementKind.IF, _rule(r"^if\s+(?P<condition>.+)$")),
    (StatementKind.THEN, _rule(r"^(?P<keyword>then|do)$")),
    (StatementKind.ELSE, _rule(r"^else$")),
    (StatementKind.FI, _rule(r"^fi$")),
    (StatementKind.FOR, _rule(rf"^for\s+(?P<name>{_NAME})\s+in(?:\s+(?P<words>.*))?$")),
    (StatementKind.DONE, _rule(r"^done$")),
    (StatementKind.BACKGROUND, _rule(r"^(?P<command>.*?[^\s&].*?)\s*(?<!&)&$")),
    (StatementKind.ASSIGNMENT, _rule(rf"""^(?P<name>{_NAME})=(?P<value>"[^"]*"|'[^']*'|[^\s"';&|]*)$""")),
    (
        StatementKind.INFORMATIONAL,
        _rule(rf"^(?P<builtin>{'|'.join(INFORMATIONAL_BUILTINS)})(?:\s+(?P<arguments>.*))?$"),
    ),
    (StatementKind.VARIABLE_REFERENCE, _rule(rf"^(?=.*(?:{REFERENCE_PATTERN}))(?P<text>.*)$")),
)


def normalize(text: str) -> str:
    """Trim whitespace and trailing semicolons."""
    text = text.strip()
    while text.endswith(";"):
        text = text[:-1].rstrip()
    return text


def classify(text: str, index: int = 0) -> Optional[Statement]:
    """
    Classify one statement.

    Args:
        text: One segmented record
        index: Position of the record in the script

    Returns:
        The classified statement, or None for empty and comment-only text
    """
    text = normalize(text)
    if not text or text.startswith("#"):
        return None

    for kind, matcher in RULES:
        if isinstance(matcher, re.Pattern):
            match = matcher.match(text)
            groups = match.groupdict() if match else None
        else:
            groups = matcher(text)
        if groups is not None:
            return Statement(text, kind, index, {k: v for k, v in groups.items() if v is not None})

    return Statement(text, StatementKind.UNTRANSLATED, index)


def classify_all(records: Iterable[str]) -> List[Statement]:
    statements = []
    for index, record in enumerate(records):
        statement = classify(record, index)
        if statement is not None:
            statements.append(statement)
    return statements
