"""Fenced code blocks: info strings, fences and external formatters.

External formatters are ordinary programs that read code on standard input
and write the formatted code to standard output, for example
``["ruff", "format", "-"]`` or ``["deno", "fmt", "--ext=ts", "-"]``.
:func:`run_formatter` runs one synchronously and maps every way it can fail
onto :class:`~hongdown.errors.HongdownFormatterError`.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass

from hongdown.config import FormatterCommand
from hongdown.errors import ErrorCode, HongdownFormatterError
from hongdown.serializer.escape import longest_run

NO_FORMAT_KEYWORD = "hongdown-no-format"
"""Info-string word that keeps a block away from its external formatter."""


@dataclass(frozen=True)
class CodeInfo:
    """A parsed info string.

    Attributes
    ----------
    language:
        The first word of the info string (or the configured default).
    info:
        The full, trimmed info string to write after the fence.
    skip_format:
        The info string contains :data:`NO_FORMAT_KEYWORD`.
    """

    language: str
    info: str
    skip_format: bool = False


def parse_info(info: str, default_language: str = "") -> CodeInfo:
    """Split a fence info string into language, output info and flags.

    >>> parse_info("python hongdown-no-format")
    CodeInfo(language='python', info='python hongdown-no-format', skip_format=True)
    >>> parse_info("", default_language="text")
    CodeInfo(language='text', info='text', skip_format=False)
    """
    trimmed = info.strip()
    if not trimmed:
        return CodeInfo(default_language, default_language)
    words = trimmed.split()
    return CodeInfo(words[0], trimmed, NO_FORMAT_KEYWORD in words)


def choose_fence(content: str, info: str, fence_char: str, min_length: int) -> str:
    """Return a fence that cannot collide with *content*.

    The fence is one longer than the longest run of *fence_char* anywhere
    in the content, and never shorter than *min_length*.  Backtick fences
    cannot carry an info string containing a backtick, so tildes are used
    instead in that case.
    """
    if fence_char == "`" and "`" in info:
        fence_char = "~"
    length = max(min_length, longest_run(content, fence_char) + 1)
    return fence_char * length


# ---------------------------------------------------------------------------
# External formatter
# ---------------------------------------------------------------------------

def run_formatter(formatter: FormatterCommand, code: str, language: str = "") -> str:
    """Pipe *code* through an external formatter and return its output.

    Parameters
    ----------
    formatter:
        The program to run and its timeout.
    code:
        Source text written to the program's standard input.
    language:
        Only used to enrich error context.

    Raises
    ------
    HongdownFormatterError
        With code ``FORMATTER_NOT_FOUND`` when the program cannot be
        started, ``FORMATTER_TIMEOUT`` when it is killed after the timeout,
        and ``FORMATTER_ERROR`` for a non-zero exit status or output that
        is not valid UTF-8.
    """
    context = {
        "command": list(formatter.command),
        "language": language,
        "timeout": formatter.timeout,
    }
    try:
        completed = subprocess.run(
            formatter.command,
            input=code.encode("utf-8"),
            capture_output=True,
            timeout=formatter.timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        raise HongdownFormatterError(
            f"formatter {formatter.command[0]!r} not found",
            code=ErrorCode.FORMATTER_NOT_FOUND,
            context=context,
            cause=exc,
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise HongdownFormatterError(
            f"formatter timed out after {formatter.timeout:g}s",
            code=ErrorCode.FORMATTER_TIMEOUT,
            context=context,
            cause=exc,
        ) from exc
    except OSError as exc:
        raise HongdownFormatterError(
            f"failed to start formatter: {exc}",
            code=ErrorCode.FORMATTER_NOT_FOUND,
            context=context,
            cause=exc,
        ) from exc

    if completed.returncode != 0:
        stderr = completed.stderr.decode("utf-8", errors="replace").strip()
        message = f"formatter exited with code {completed.returncode}"
        if stderr:
            message = f"{message}: {stderr}"
        raise HongdownFormatterError(
            message,
            context={**context, "returncode": completed.returncode, "stderr": stderr},
        )
    try:
        return completed.stdout.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise HongdownFormatterError(
            f"formatter output is not valid UTF-8: {exc}",
            context=context,
            cause=exc,
        ) from exc
