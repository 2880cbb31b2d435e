"""Fail-soft access to the original source text.

The serializer copies original text verbatim for directive-disabled ranges
and a few constructs the parser does not model.  Spans come from the
parser's source map and are trusted only loosely: any degenerate or
out-of-range span yields ``None`` so the caller can fall back to normal
re-rendering instead of crashing.
"""

from __future__ import annotations


class SourceLines:
    """The input document split into lines (1-indexed access).

    Parameters
    ----------
    text:
        The complete source document.
    """

    __slots__ = ("lines", "ends_with_newline")

    def __init__(self, text: str) -> None:
        self.lines: list[str] = text.split("\n")
        if self.lines and self.lines[-1] == "":
            self.lines.pop()
        self.ends_with_newline: bool = text.endswith("\n")

    def __len__(self) -> int:
        return len(self.lines)

    def line(self, number: int) -> str | None:
        """Return line *number* (1-indexed) or ``None`` if out of range."""
        if 1 <= number <= len(self.lines):
            return self.lines[number - 1]
        return None

    def span(self, start_line: int, end_line: int) -> str | None:
        """Return lines *start_line* through *end_line* joined with ``\\n``."""
        return extract_source(self.lines, start_line, end_line)

    def tail(self, start_line: int) -> str | None:
        """Return everything from *start_line* to the end of the document."""
        return extract_source(self.lines, start_line, len(self.lines))


def extract_source(lines: list[str], start_line: int, end_line: int) -> str | None:
    """Slice 1-indexed inclusive line range out of *lines*.

    Returns ``None`` when the range is empty, reversed, or falls outside
    the document.
    """
    if start_line < 1 or end_line < start_line or end_line > len(lines):
        return None
    return "\n".join(lines[start_line - 1 : end_line])
