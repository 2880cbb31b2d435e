"""Library entry points.

Usage::

    from hongdown import FormatOptions, format_with_warnings

    result = format_with_warnings(text, FormatOptions(line_width=72))
    for warning in result.warnings:
        print(warning.line, warning.message)
    text = result.output
"""

from __future__ import annotations

import logging
import time

from hongdown.config import FormatOptions
from hongdown.models import FormatResult, WarningCode
from hongdown.observability import resolve_metrics
from hongdown.parser import parse_document
from hongdown.serializer import serialize

logger = logging.getLogger("hongdown")


def format_with_warnings(text: str, options: FormatOptions | None = None) -> FormatResult:
    """Format a Markdown document and report what could not be resolved.

    Parameters
    ----------
    text:
        The Markdown source.  ``\\r\\n`` and ``\\r`` line endings are
        normalized to ``\\n``.
    options:
        Style options.  Defaults to the house style.

    Returns
    -------
    FormatResult
        The formatted text plus warnings ordered by source line.

    Raises
    ------
    HongdownParseError
        If the document cannot be parsed.
    """
    if options is None:
        options = FormatOptions()
    metrics = resolve_metrics(options.metrics)

    t0 = time.monotonic()
    document = parse_document(text)
    result = serialize(document, options)
    elapsed_ms = (time.monotonic() - t0) * 1000

    metrics.increment("hongdown.documents_formatted_total")
    metrics.timing("hongdown.format_duration_ms", elapsed_ms)
    for warning in result.warnings:
        metrics.increment(
            "hongdown.warnings_total", tags={"code": WarningCode(warning.code).value}
        )
    logger.debug(
        "document formatted",
        extra={"extra_fields": {
            "op": "format",
            "input_chars": len(text),
            "output_chars": len(result.output),
            "warnings": len(result.warnings),
            "duration_ms": round(elapsed_ms, 3),
        }},
    )
    return result


def format_markdown(text: str, options: FormatOptions | None = None) -> str:
    """Format a Markdown document and return only the formatted text."""
    return format_with_warnings(text, options).output
