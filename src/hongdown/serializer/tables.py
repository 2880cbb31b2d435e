"""Table layout.

Cells arrive fully rendered (emphasis, links and code spans already in
Markdown form).  :func:`render_table` pads them into aligned columns::

    | Name   | Value |
    | ------ | ----: |
    | width  |    80 |

Column widths are display widths, so rows containing wide characters still
line up in a terminal.
"""

from __future__ import annotations

from collections.abc import Sequence

from hongdown.serializer.escape import escape_table_cell
from hongdown.serializer.wrap import code_span_end
from hongdown.utils import display_width, pad_to_width

MIN_COLUMN_WIDTH = 3


def column_widths(rows: Sequence[Sequence[str]], columns: int) -> list[int]:
    widths = [MIN_COLUMN_WIDTH] * columns
    for row in rows:
        for index, cell in enumerate(row[:columns]):
            widths[index] = max(widths[index], display_width(cell))
    return widths


def delimiter_cell(alignment: str, width: int) -> str:
    """The delimiter-row cell encoding *alignment* in *width* columns."""
    if alignment == "left":
        return ":" + "-" * (width - 1)
    if alignment == "right":
        return "-" * (width - 1) + ":"
    if alignment == "center":
        return ":" + "-" * (width - 2) + ":"
    return "-" * width


def _format_row(cells: Sequence[str], widths: Sequence[int]) -> str:
    padded = [
        pad_to_width(cells[index] if index < len(cells) else "", width)
        for index, width in enumerate(widths)
    ]
    return "| " + " | ".join(padded) + " |"


def render_table(rows: Sequence[Sequence[str]], alignments: Sequence[str]) -> list[str]:
    """Lay out a table.

    Parameters
    ----------
    rows:
        Rendered cell content per row, header row first.  Unescaped pipes
        are escaped here.
    alignments:
        One of ``"left"``, ``"right"``, ``"center"`` or ``""`` per column.

    Returns
    -------
    list[str]
        Output lines without trailing newlines: the header, the delimiter
        row, then the body rows.
    """
    if not rows:
        return []
    columns = max(len(alignments), max(len(row) for row in rows))
    alignments = list(alignments) + [""] * (columns - len(alignments))
    escaped = [[escape_table_cell(cell) for cell in row] for row in rows]
    widths = column_widths(escaped, columns)
    lines = [_format_row(escaped[0], widths)]
    lines.append(
        "| "
        + " | ".join(delimiter_cell(alignments[i], widths[i]) for i in range(columns))
        + " |"
    )
    lines.extend(_format_row(row, widths) for row in escaped[1:])
    return lines


# ---------------------------------------------------------------------------
# Source checks
# ---------------------------------------------------------------------------

def find_unescaped_pipes(row: str) -> list[int]:
    """Offsets of unescaped ``|`` characters inside code spans of *row*.

    Such a pipe still separates cells, so the code span is cut in two and
    the row gains a column.

    >>> find_unescaped_pipes('| `a` | `"x" | "y"` |')
    [13]
    """
    offsets: list[int] = []
    i = 0
    n = len(row)
    while i < n:
        ch = row[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "`":
            end = code_span_end(row, i)
            if end is None:
                while i < n and row[i] == "`":
                    i += 1
                continue
            j = i
            while j < end:
                if row[j] == "\\":
                    j += 2
                    continue
                if row[j] == "|":
                    offsets.append(j)
                j += 1
            i = end
            continue
        i += 1
    return offsets
