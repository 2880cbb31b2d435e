"""Public data models for hongdown.

Result and warning types returned by :func:`hongdown.format_with_warnings`
plus the small enums shared between the serializer and its helpers.  All
types are plain dataclasses or enums with no behaviour beyond what is
needed for structural equality.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SkipMode(str, Enum):
    """Directive-driven state that suspends reformatting."""

    NONE = "none"
    """Normal formatting."""

    NEXT_BLOCK = "next_block"
    """The next sibling block is copied verbatim, then formatting resumes."""

    UNTIL_SECTION = "until_section"
    """Blocks are copied verbatim until a heading of level 1 or 2."""

    DISABLED = "disabled"
    """Blocks are copied verbatim until an explicit enable directive."""


class Directive(str, Enum):
    """Formatting directives recognised inside HTML comments."""

    DISABLE_NEXT_LINE = "hongdown-disable-next-line"
    DISABLE_NEXT_SECTION = "hongdown-disable-next-section"
    DISABLE_FILE = "hongdown-disable-file"
    DISABLE = "hongdown-disable"
    ENABLE = "hongdown-enable"
    PROPER_NOUNS = "hongdown-proper-nouns"
    COMMON_NOUNS = "hongdown-common-nouns"


class WarningCode(str, Enum):
    """Machine-readable codes attached to :class:`FormatWarning`."""

    UNDEFINED_REFERENCE = "UNDEFINED_REFERENCE"
    FORMATTER_FAILED = "FORMATTER_FAILED"
    UNESCAPED_TABLE_PIPE = "UNESCAPED_TABLE_PIPE"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class FormatWarning:
    """A non-fatal issue found while formatting a document.

    Attributes
    ----------
    line:
        1-indexed source line the warning refers to.
    message:
        A human-readable description of the issue.
    code:
        A :class:`WarningCode` value.
    """

    line: int
    message: str
    code: str = WarningCode.UNDEFINED_REFERENCE

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


@dataclass
class FormatResult:
    """Formatted text plus the warnings collected while producing it.

    Attributes
    ----------
    output:
        The canonical formatted document.
    warnings:
        Ordered list of :class:`FormatWarning` objects.
    """

    output: str
    warnings: list[FormatWarning] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """``True`` when no warnings were produced."""
        return not self.warnings
