"""Line wrapping for prose.

The serializer renders a block's inline content into a single string in
which

* ``"\\n"`` marks a hard line break (rendered as two trailing spaces), and
* :data:`SOFT_BREAK` marks a line break the author typed in the source.

:func:`wrap_text` keeps the author's short lines exactly as written and only
rewraps from the first line that no longer fits.  Inline code spans, link
and image constructs and footnote references are atomic: they are never
split even when they are wider than the line.

Widths are terminal display widths (see :func:`hongdown.utils.display_width`).
"""

from __future__ import annotations

import re

from hongdown.utils import display_width

SOFT_BREAK = "\x00"
"""In-band marker for a soft line break."""

HARD_BREAK_SUFFIX = "  "

# A token that, placed first on a line, would be read back as block syntax
# (a list marker, heading, quote, setext underline, fence, HTML block,
# description or footnote definition) rather than as paragraph text.
_LINE_START_HAZARD_RE = re.compile(
    r"""^(?:
        [-+*]
      | \#{1,6}
      | >.*
      | \d{1,9}[.)]
      | =+
      | -+
      | `{3,}.*
      | ~{3,}.*
      | [:~]
      | \[\^[^\]]+\]:.*
    )$""",
    re.VERBOSE,
)
_HTML_START_RE = re.compile(r"^<[A-Za-z!?/]")
_AUTOLINK_RE = re.compile(r"^<[A-Za-z][A-Za-z0-9+.\-]{1,31}:[^<>\s]*>")


def is_line_start_hazard(token: str) -> bool:
    """Whether *token* must not begin a continuation line."""
    if _LINE_START_HAZARD_RE.match(token):
        return True
    return bool(_HTML_START_RE.match(token)) and not _AUTOLINK_RE.match(token)


# ---------------------------------------------------------------------------
# Tokenizer
# ---------------------------------------------------------------------------

def code_span_end(text: str, pos: int) -> int | None:
    """Return the end of the code span opening at *pos*, if it closes."""
    run = pos
    while run < len(text) and text[run] == "`":
        run += 1
    size = run - pos
    i = run
    while i < len(text):
        if text[i] == "`":
            j = i
            while j < len(text) and text[j] == "`":
                j += 1
            if j - i == size:
                return j
            i = j
        else:
            i += 1
    return None


def _skip_brackets(text: str, pos: int) -> int | None:
    """Return the end of the bracket construct opening at *pos*.

    Nested brackets and backslash escapes are honoured, and an immediately
    following ``(...)`` destination is part of the construct.
    """
    depth = 0
    i = pos
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "`":
            end = code_span_end(text, i)
            if end is not None:
                i = end
                continue
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                i += 1
                if i < n and text[i] == "(":
                    return _skip_parens(text, i)
                return i
        i += 1
    return None


def _skip_parens(text: str, pos: int) -> int:
    depth = 0
    in_quote = False
    i = pos
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            in_quote = not in_quote
        elif not in_quote:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    return i + 1
        i += 1
    return n


def tokenize(text: str) -> list[tuple[str, str]]:
    """Split *text* into ``(token, following_spaces)`` pairs.

    Runs of spaces separate tokens and are kept so that double spaces
    survive.  Code spans and bracket constructs may contain spaces but are
    returned as one token.
    """
    tokens: list[tuple[str, str]] = []
    current: list[str] = []
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == " ":
            j = i
            while j < n and text[j] == " ":
                j += 1
            if current:
                tokens.append(("".join(current), text[i:j]))
                current = []
            i = j
            continue
        if ch == "\\" and i + 1 < n:
            current.append(text[i : i + 2])
            i += 2
            continue
        end: int | None = None
        if ch == "`":
            end = code_span_end(text, i)
            if end is None:
                # Unmatched run: consume it whole so a later run of the same
                # length is not mistaken for a closing delimiter.
                j = i
                while j < n and text[j] == "`":
                    j += 1
                end = j
        elif ch == "[":
            end = _skip_brackets(text, i)
        if end is not None:
            current.append(text[i:end])
            i = end
            continue
        current.append(ch)
        i += 1
    if current:
        tokens.append(("".join(current), ""))
    return tokens


# ---------------------------------------------------------------------------
# Greedy wrap
# ---------------------------------------------------------------------------

def wrap_segment(
    text: str,
    first_prefix: str,
    continuation_prefix: str,
    max_width: int,
) -> list[str]:
    """Greedy-wrap one run of text that holds no break markers.

    The first token on a line is always placed, even when it overflows,
    and tokens that would be read as block syntax at the start of a line
    stay on the previous line.
    """
    lines: list[str] = []
    prefix = first_prefix
    current = ""
    current_width = display_width(prefix)
    pending_spaces = ""
    for token, spaces in tokenize(text):
        token_width = display_width(token)
        if not current:
            current = token
            current_width += token_width
        else:
            candidate_width = current_width + display_width(pending_spaces) + token_width
            if candidate_width <= max_width or is_line_start_hazard(token):
                current += pending_spaces + token
                current_width = candidate_width
            else:
                lines.append(prefix + current)
                prefix = continuation_prefix
                current = token
                current_width = display_width(prefix) + token_width
        pending_spaces = spaces
    if current or not lines:
        lines.append(prefix + current)
    return lines


def _starts_with_hazard(line: str) -> bool:
    tokens = tokenize(line)
    return bool(tokens) and is_line_start_hazard(tokens[0][0])


def _wrap_soft_lines(
    segment: str,
    first_prefix: str,
    continuation_prefix: str,
    max_width: int,
) -> list[str]:
    originals = segment.split(SOFT_BREAK)
    out: list[str] = []
    for index, original in enumerate(originals):
        line = original.strip(" ")
        prefix = first_prefix if not out else continuation_prefix
        hazard = bool(out) and _starts_with_hazard(line)
        if not hazard and display_width(prefix) + display_width(line) <= max_width:
            out.append(prefix + line)
            continue
        if hazard:
            # Rewrap from the previous line so the hazard stays behind it.
            out.pop()
            index -= 1
            prefix = first_prefix if not out else continuation_prefix
        merged = " ".join(part.strip(" ") for part in originals[index:])
        out.extend(wrap_segment(merged, prefix, continuation_prefix, max_width))
        break
    return out


def wrap_text(
    text: str,
    first_prefix: str = "",
    continuation_prefix: str = "",
    max_width: int = 80,
) -> str:
    """Wrap inline content to *max_width* display columns.

    Parameters
    ----------
    text:
        Rendered inline content with ``"\\n"`` hard breaks and
        :data:`SOFT_BREAK` soft breaks.
    first_prefix:
        Written before the first output line.
    continuation_prefix:
        Written before every other output line.
    max_width:
        Target width including the prefixes.

    Returns
    -------
    str
        The wrapped lines joined with ``"\\n"``, without a trailing newline.
        Hard breaks end their line with two spaces.
    """
    lines: list[str] = []
    segments = text.split("\n")
    for index, segment in enumerate(segments):
        prefix = first_prefix if index == 0 else continuation_prefix
        wrapped = _wrap_soft_lines(segment, prefix, continuation_prefix, max_width)
        if index < len(segments) - 1:
            wrapped[-1] = wrapped[-1].rstrip(" ") + HARD_BREAK_SUFFIX
        lines.extend(wrapped)
    return "\n".join(lines)
