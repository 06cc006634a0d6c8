"""Command line interface for sh2c."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ..core.config import get_settings
from ..core.diagnostics import Diagnostics
from ..core.logging import setup_logging
from .translator import ShellTranslator, convert_shell_file

PROG = "sh2c"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="Translate a shell script into a standalone C program.",
    )
    parser.add_argument(
        "source",
        type=Path,
        help="Path to the shell script to translate.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Destination for the generated C file (default: output.c, or SH2C_OUTPUT_PATH).",
    )
    parser.add_argument(
        "--stdout",
        action="store_true",
        help="Write the generated program to standard output instead of a file.",
    )
    parser.add_argument(
        "--no-overwrite",
        dest="overwrite",
        action="store_false",
        help="Refuse to replace an existing output file.",
    )
    parser.add_argument(
        "--encoding",
        default="utf-8",
        help="Encoding to use when reading and writing files (default: utf-8).",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Diagnostic verbosity (default: SH2C_LOG_LEVEL or INFO).",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress informational output.",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    if args.log_level:
        settings = settings.model_copy(update={"LOG_LEVEL": args.log_level})
    logger = setup_logging(settings, prog=PROG)
    diagnostics = Diagnostics(logger=logger)
    translator = ShellTranslator(settings)

    try:
        if args.stdout:
            source = args.source.read_text(encoding=args.encoding)
            result = translator.translate(source, diagnostics)
            sys.stdout.write(result.code)
            written_path = None
        else:
            written_path, result = convert_shell_file(
                args.source,
                output_path=args.output,
                overwrite=args.overwrite,
                encoding=args.encoding,
                translator=translator,
                diagnostics=diagnostics,
            )
    except (FileNotFoundError, FileExistsError, IsADirectoryError, PermissionError) as exc:
        diagnostics.report("fatal", str(exc))
        return 1
    except UnicodeDecodeError as exc:
        diagnostics.report("fatal", f"cannot decode {args.source}: {exc}")
        return 1

    if written_path is not None and not args.quiet:
        diagnostics.info(f"wrote {written_path}")

    return diagnostics.exit_status


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
