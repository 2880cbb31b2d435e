"""The ``hongdown`` command.

Formats Markdown files in the house style::

    hongdown README.md            # print the formatted text
    hongdown --write docs/*.md    # rewrite files in place
    hongdown --check --diff       # CI: show what would change, exit 1 if any
    cat notes.md | hongdown --stdin

Without file arguments the ``include``/``exclude`` globs of the nearest
``.hongdown.toml`` select the files.  Every file is formatted independently:
a file that cannot be read or parsed is reported and the run continues.
"""

from __future__ import annotations

import argparse
import difflib
import logging
import sys
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TextIO

from hongdown.api import format_with_warnings
from hongdown.config import ProjectConfig, discover_config, load_config
from hongdown.errors import HongdownConfigError, HongdownError
from hongdown.models import FormatWarning
from hongdown.observability import get_logger

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_USAGE_ERROR = 2

STDIN_NAME = "<stdin>"

logger = logging.getLogger("hongdown.cli")


@dataclass
class FileOutcome:
    """Result of formatting one input.

    Attributes
    ----------
    name:
        Path as given on the command line, or ``<stdin>``.
    original:
        The text that was read.
    formatted:
        The formatted text; ``None`` when formatting failed.
    warnings:
        Warnings reported by the formatter.
    error:
        Why the input could not be formatted.
    """

    name: str
    original: str = ""
    formatted: str | None = None
    warnings: list[FormatWarning] = field(default_factory=list)
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.formatted is not None and self.formatted != self.original


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------

def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hongdown",
        description="Format Markdown files in a consistent, opinionated style.",
    )
    parser.add_argument(
        "files",
        nargs="*",
        metavar="FILE",
        help="Markdown files to format (default: the include globs of .hongdown.toml)",
    )

    mode = parser.add_argument_group("output mode")
    mode.add_argument(
        "--write", "-w", action="store_true",
        help="Rewrite files in place",
    )
    mode.add_argument(
        "--check", "-c", action="store_true",
        help="Exit with status 1 if any file would be reformatted",
    )
    mode.add_argument(
        "--diff", "-d", action="store_true",
        help="Print a unified diff of the changes",
    )
    mode.add_argument(
        "--stdin", action="store_true",
        help="Read the document from standard input",
    )

    options = parser.add_argument_group("options")
    options.add_argument(
        "--line-width", type=_positive_int, metavar="N",
        help="Override the configured line width",
    )
    options.add_argument(
        "--config", type=Path, metavar="PATH",
        help="Use this configuration file instead of searching for .hongdown.toml",
    )
    options.add_argument(
        "--jobs", "-j", type=_positive_int, default=1, metavar="N",
        help="Number of files to format concurrently (default: 1)",
    )
    options.add_argument(
        "--verbose", "-v", action="store_true",
        help="Log structured debug output to stderr",
    )
    return parser


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def _load_project(args: argparse.Namespace) -> ProjectConfig:
    if args.config is not None:
        project = load_config(args.config)
    else:
        project = discover_config(Path.cwd()) or ProjectConfig()
    if args.line_width is not None:
        project.options = replace(project.options, line_width=args.line_width)
    return project


def _format_text(name: str, text: str, project: ProjectConfig) -> FileOutcome:
    outcome = FileOutcome(name=name, original=text)
    try:
        result = format_with_warnings(text, project.options)
    except HongdownError as exc:
        outcome.error = exc.message
        logger.debug(
            "formatting failed",
            extra={"extra_fields": {"op": "format_file", "path": name, "error_code": exc.code}},
        )
        return outcome
    outcome.formatted = result.output
    outcome.warnings = result.warnings
    return outcome


def _format_file(path: str, project: ProjectConfig) -> FileOutcome:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        return FileOutcome(name=path, error=f"cannot read file: {exc}")
    return _format_text(path, text, project)


def unified_diff(outcome: FileOutcome) -> str:
    """Unified diff from the original to the formatted text."""
    return "".join(difflib.unified_diff(
        outcome.original.splitlines(keepends=True),
        (outcome.formatted or "").splitlines(keepends=True),
        fromfile=f"{outcome.name} (original)",
        tofile=f"{outcome.name} (formatted)",
    ))


def _report(
    outcome: FileOutcome,
    args: argparse.Namespace,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    """Print or write one outcome; return its exit status."""
    if outcome.error is not None:
        print(f"{outcome.name}: error: {outcome.error}", file=stderr)
        return EXIT_ERROR
    for warning in outcome.warnings:
        print(f"{outcome.name}:{warning.line}: warning: {warning.message}", file=stderr)
    assert outcome.formatted is not None

    status = EXIT_SUCCESS
    if args.diff and outcome.changed:
        stdout.write(unified_diff(outcome))
    if args.check and outcome.changed:
        print(f"would reformat {outcome.name}", file=stderr)
        status = EXIT_ERROR
    if args.write and outcome.changed and outcome.name != STDIN_NAME:
        try:
            Path(outcome.name).write_text(outcome.formatted, encoding="utf-8")
        except OSError as exc:
            print(f"{outcome.name}: error: cannot write file: {exc}", file=stderr)
            return EXIT_ERROR
    if not (args.write or args.check or args.diff) or (
        args.write and outcome.name == STDIN_NAME
    ):
        stdout.write(outcome.formatted)
    return status


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main(
    argv: Sequence[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Run the command and return its exit status.

    The streams default to the process's standard streams; tests pass
    :class:`io.StringIO` objects instead.
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    args = build_parser().parse_args(argv)

    if args.verbose:
        get_logger("hongdown", level=logging.DEBUG, stream=stderr)

    try:
        project = _load_project(args)
    except HongdownConfigError as exc:
        print(f"error: {exc.message}", file=stderr)
        return EXIT_USAGE_ERROR

    if args.stdin:
        if args.files:
            print("error: --stdin cannot be combined with file arguments", file=stderr)
            return EXIT_USAGE_ERROR
        outcome = _format_text(STDIN_NAME, stdin.read(), project)
        return _report(outcome, args, stdout, stderr)

    files = list(args.files) or [str(path) for path in project.collect_files()]
    if not files:
        print("error: no input files (pass FILE arguments or set include in .hongdown.toml)", file=stderr)
        return EXIT_USAGE_ERROR

    with ThreadPoolExecutor(max_workers=args.jobs) as pool:
        outcomes = list(pool.map(lambda path: _format_file(path, project), files))

    status = EXIT_SUCCESS
    for outcome in outcomes:
        status = max(status, _report(outcome, args, stdout, stderr))
    logger.debug(
        "run finished",
        extra={"extra_fields": {
            "op": "cli",
            "files": len(outcomes),
            "changed": sum(outcome.changed for outcome in outcomes),
            "failed": sum(outcome.error is not None for outcome in outcomes),
        }},
    )
    return status
