"""Character escaping for running text and code-span delimiters.

Text nodes reach the serializer with their Markdown escapes already
resolved, so every character that could be read back as markup has to be
escaped again on the way out.  Escapes the author wrote explicitly are
carried separately (as raw text nodes) and never pass through here.
"""

from __future__ import annotations

import re

_ALWAYS_ESCAPED = frozenset("*[]`\\")

_BACKTICK_RUN_RE = re.compile(r"`+")
_CODE_NEWLINE_RE = re.compile(r"[ \t]*\n[ \t]*")
_WHITESPACE_RE = re.compile(r"\s+")


def escape_text(text: str, before: str = "", after: str = "") -> str:
    """Escape markup-significant characters in *text*.

    ``*``, ``[``, ``]``, backtick and backslash are always escaped.  An
    underscore is escaped unless it sits strictly between two alphanumeric
    characters, so ``snake_case`` and ``ALL_CAPS`` stay readable.

    Parameters
    ----------
    text:
        Literal text of a single text node.
    before, after:
        The characters adjacent to *text* in the rendered paragraph, used
        to decide underscores at the edges.  Empty when the neighbour is
        not plain text.
    """
    if not text:
        return text
    out: list[str] = []
    last = len(text) - 1
    for i, ch in enumerate(text):
        if ch in _ALWAYS_ESCAPED:
            out.append("\\" + ch)
        elif ch == "_":
            prev = text[i - 1] if i > 0 else before[-1:]
            nxt = text[i + 1] if i < last else after[:1]
            if prev.isalnum() and nxt.isalnum():
                out.append(ch)
            else:
                out.append("\\_")
        else:
            out.append(ch)
    return "".join(out)


def escape_table_cell(text: str) -> str:
    """Escape literal pipes in already-rendered cell content."""
    return re.sub(r"(?<!\\)\|", r"\\|", text)


def longest_run(text: str, char: str) -> int:
    """Length of the longest run of *char* in *text*."""
    best = 0
    current = 0
    for ch in text:
        if ch == char:
            current += 1
            if current > best:
                best = current
        else:
            current = 0
    return best


def code_span(literal: str, raw: str | None = None) -> str:
    """Render an inline code span.

    When the original delimited source is known it is reused with interior
    line breaks collapsed to single spaces; otherwise the shortest backtick
    fence longer than any backtick run inside *literal* is chosen, padded
    with a space when the literal starts or ends with a backtick.
    """
    if raw is not None and raw.startswith("`") and raw.endswith("`"):
        return _CODE_NEWLINE_RE.sub(" ", raw)
    runs = [len(m.group(0)) for m in _BACKTICK_RUN_RE.finditer(literal)]
    fence = "`" * (max(runs, default=0) + 1)
    stripped_by_parser = (
        literal.startswith(" ") and literal.endswith(" ") and literal.strip(" ") != ""
    )
    if literal.startswith("`") or literal.endswith("`") or stripped_by_parser:
        return f"{fence} {literal} {fence}"
    return f"{fence}{literal}{fence}"


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run (including line breaks) to one space."""
    return _WHITESPACE_RE.sub(" ", text).strip()
