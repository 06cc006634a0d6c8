"""
sh2c translator - shell script to C program translator

Segments a shell script into statements, classifies each one and emits
equivalent C, then assembles a standalone program with the process
runtime helpers it needs.
"""

from .classifier import Statement, StatementKind, classify
from .executor import CompilationError, ExecutionResult, ProgramRunner
from .segmenter import segment
from .translator import ShellTranslator, TranslationResult, convert_shell_file, translate_script

__all__ = [
    "ShellTranslator",
    "TranslationResult",
    "convert_shell_file",
    "translate_script",
    "segment",
    "classify",
    "Statement",
    "StatementKind",
    "ProgramRunner",
    "ExecutionResult",
    "CompilationError",
]
