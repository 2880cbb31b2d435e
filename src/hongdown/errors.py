"""Error hierarchy for hongdown.

Every public error class inherits from :class:`HongdownError`.  Each carries
a machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Only configuration and parse failures ever reach a caller of
:func:`hongdown.format_markdown`.  Formatter failures are raised by the
subprocess runner and converted to warnings by the serializer, so a broken
external tool never aborts a document.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error hongdown can raise."""

    CONFIG_ERROR = "CONFIG_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    FORMATTER_ERROR = "FORMATTER_ERROR"
    FORMATTER_TIMEOUT = "FORMATTER_TIMEOUT"
    FORMATTER_NOT_FOUND = "FORMATTER_NOT_FOUND"
    IO_ERROR = "IO_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class HongdownError(Exception):
    """Base exception for all hongdown errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------

class HongdownConfigError(HongdownError, ValueError):
    """An option is out of range, malformed, or conflicts with another.

    Context keys: ``field``, ``value``, and ``path`` when the option came
    from a configuration file.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CONFIG_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Parse errors
# ---------------------------------------------------------------------------

class HongdownParseError(HongdownError):
    """The Markdown parser failed to build a document tree.

    Context keys: ``path`` (when formatting a file).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.PARSE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# External formatter errors
# ---------------------------------------------------------------------------

class HongdownFormatterError(HongdownError):
    """An external code formatter failed, timed out, or could not start.

    The ``code`` distinguishes the three outcomes:
    :attr:`ErrorCode.FORMATTER_ERROR` (non-zero exit or undecodable output),
    :attr:`ErrorCode.FORMATTER_TIMEOUT` and
    :attr:`ErrorCode.FORMATTER_NOT_FOUND`.

    Context keys: ``command``, ``language``, ``returncode``, ``stderr``,
    ``timeout``.
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.FORMATTER_ERROR,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )
