"""Terminal display width of text.

Line wrapping, setext underlines and table columns all measure text the
way a monospace terminal renders it: East Asian wide characters and most
emoji take two columns, combining marks take none.  :func:`display_width`
wraps :func:`wcwidth.wcswidth` and falls back to per-character widths when
the string contains non-printable characters (``wcswidth`` returns ``-1``
for those).
"""

from __future__ import annotations

from functools import lru_cache

from wcwidth import wcswidth, wcwidth


@lru_cache(maxsize=4096)
def display_width(text: str) -> int:
    """Return the number of terminal columns *text* occupies.

    Control characters count as zero columns rather than poisoning the
    whole measurement.
    """
    width = wcswidth(text)
    if width >= 0:
        return width
    return sum(max(wcwidth(ch), 0) for ch in text)


def pad_to_width(text: str, width: int, align: str = "left") -> str:
    """Pad *text* with spaces to *width* display columns.

    Parameters
    ----------
    text:
        The cell or label to pad.  Never truncated.
    width:
        Target width in display columns.
    align:
        ``"left"``, ``"right"`` or ``"center"``.  Centering puts the odd
        extra space on the right.
    """
    missing = width - display_width(text)
    if missing <= 0:
        return text
    if align == "right":
        return " " * missing + text
    if align == "center":
        left = missing // 2
        return " " * left + text + " " * (missing - left)
    return text + " " * missing
