"""
Compile-and-run harness for generated programs.

Builds the C source with the system compiler in a temporary directory and
runs the binary in a subprocess with a timeout, capturing its output.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from ..core.config import Settings, get_settings
from ..core.errors import Sh2cError
from ..core.logging import get_logger

logger = get_logger(__name__)

COMPILE_FLAGS = ("-std=c99", "-Wall", "-o")


class CompilationError(Sh2cError):
    """Raised when the C compiler rejects a generated program"""

    def __init__(self, message: str, stderr: str = ""):
        self.stderr = stderr
        super().__init__(message, {"stderr": stderr})


@dataclass
class ExecutionResult:
    """Outcome of running a compiled program."""

    returncode: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    compiler_warnings: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out


def find_compiler(settings: Optional[Settings] = None) -> Optional[str]:
    """Path of the configured C compiler, or None when it is not installed."""
    settings = settings or get_settings()
    return shutil.which(settings.C_COMPILER)


class ProgramRunner:
    """Compile generated C and run it."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def compile(self, code: str, workdir: Path) -> tuple[Path, str]:
        """
        Compile C source into workdir.

        Args:
            code: Complete C program
            workdir: Directory for the source and the binary

        Returns:
            (binary path, compiler stderr)

        Raises:
            CompilationError: If no compiler is available or compilation fails
        """
        compiler = find_compiler(self.settings)
        if compiler is None:
            raise CompilationError(f"C compiler not found: {self.settings.C_COMPILER}")

        source = workdir / "program.c"
        binary = workdir / "program"
        source.write_text(code, encoding="utf-8")

        try:
            completed = subprocess.run(
                [compiler, str(source), *COMPILE_FLAGS, str(binary)],
                capture_output=True,
                text=True,
                timeout=self.settings.COMPILE_TIMEOUT,
            )
        except subprocess.TimeoutExpired as exc:
            raise CompilationError(
                f"compilation timed out after {self.settings.COMPILE_TIMEOUT} seconds"
            ) from exc

        if completed.returncode != 0:
            raise CompilationError("compilation failed", completed.stderr)
        if completed.stderr:
            logger.debug("compiler output:\n%s", completed.stderr)
        return binary, completed.stderr

    def run(
        self,
        binary: Path,
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        stdin: str | None = None,
    ) -> ExecutionResult:
        try:
            completed = subprocess.run(
                [str(binary)],
                capture_output=True,
                text=True,
                input=stdin,
                cwd=cwd,
                env=dict(env) if env is not None else None,
                timeout=self.settings.RUN_TIMEOUT,
            )
        except subprocess.TimeoutExpired as exc:
            return ExecutionResult(
                returncode=-1,
                stdout=_text(exc.stdout),
                stderr=_text(exc.stderr),
                timed_out=True,
            )
        return ExecutionResult(completed.returncode, completed.stdout, completed.stderr)

    def execute(
        self,
        code: str,
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        stdin: str | None = None,
    ) -> ExecutionResult:
        """Compile code in a scratch directory and run the binary."""
        with tempfile.TemporaryDirectory(prefix="sh2c-") as scratch:
            binary, warnings = self.compile(code, Path(scratch))
            result = self.run(binary, cwd=cwd, env=env, stdin=stdin)
            result.compiler_warnings = warnings
            return result


def _text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
