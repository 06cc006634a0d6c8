"""
Shared pytest fixtures for the sh2c test suite.

This module provides:
- Settings isolated from any ``.env`` file
- A translator and a ``translate`` helper taking dedented script text
- A compile-and-run helper for end-to-end tests (skipped without a C compiler)
"""

import textwrap

import pytest

from sh2c.core.config import Settings
from sh2c.core.diagnostics import Diagnostics
from sh2c.translator.executor import ProgramRunner, find_compiler
from sh2c.translator.translator import ShellTranslator


@pytest.fixture
def settings():
    """Default settings, ignoring any .env file."""
    return Settings(_env_file=None)


@pytest.fixture
def translator(settings):
    return ShellTranslator(settings)


@pytest.fixture
def translate(translator):
    """Translate a (dedented) script and return the TranslationResult."""
    def _translate(source: str):
        return translator.translate(textwrap.dedent(source), Diagnostics())
    return _translate


@pytest.fixture
def runner(settings):
    """ProgramRunner for the configured compiler; skips when none is installed."""
    if find_compiler(settings) is None:
        pytest.skip(f"C compiler '{settings.C_COMPILER}' not available")
    return ProgramRunner(settings)


@pytest.fixture
def run_script(translate, runner, tmp_path):
    """Translate, compile and run a script with tmp_path as working directory."""
    def _run(source: str, env=None):
        result = translate(source)
        return runner.execute(result.code, cwd=tmp_path, env=env)
    return _run
