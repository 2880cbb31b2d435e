"""hongdown: Markdown formatter with an opinionated house style.

Public re-exports
-----------------

* **Formatting:** :func:`format_markdown`, :func:`format_with_warnings`
* **Configuration:** :class:`FormatOptions`, :class:`FormatterCommand`,
  :func:`load_config`, :func:`discover_config`
* **Errors:** Every :class:`HongdownError` subclass and :class:`ErrorCode`
* **Models:** :class:`FormatResult`, :class:`FormatWarning` and the enums

Usage::

    from hongdown import FormatOptions, format_markdown

    text = format_markdown("Hello\\n=====\\n\\n* one\\n* two\\n")
    text = format_markdown(text, FormatOptions(line_width=72))
"""

from __future__ import annotations

# ── Formatting ──────────────────────────────────────────────────────────
from hongdown.api import format_markdown, format_with_warnings

# ── Configuration ───────────────────────────────────────────────────────
from hongdown.config import (
    CONFIG_FILE_NAME,
    FormatOptions,
    FormatterCommand,
    ProjectConfig,
    discover_config,
    load_config,
)

# ── Errors ──────────────────────────────────────────────────────────────
from hongdown.errors import (
    ErrorCode,
    HongdownConfigError,
    HongdownError,
    HongdownFormatterError,
    HongdownParseError,
)

# ── Models ──────────────────────────────────────────────────────────────
from hongdown.models import (
    Directive,
    FormatResult,
    FormatWarning,
    SkipMode,
    WarningCode,
)

__version__ = "0.3.0"

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Formatting
    "format_markdown",
    "format_with_warnings",
    # Configuration
    "CONFIG_FILE_NAME",
    "FormatOptions",
    "FormatterCommand",
    "ProjectConfig",
    "discover_config",
    "load_config",
    # Errors
    "ErrorCode",
    "HongdownConfigError",
    "HongdownError",
    "HongdownFormatterError",
    "HongdownParseError",
    # Models
    "Directive",
    "FormatResult",
    "FormatWarning",
    "SkipMode",
    "WarningCode",
]
