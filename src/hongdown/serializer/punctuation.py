"""SmartyPants-style punctuation.

Straight quotes become curly quotes, three dots become an ellipsis and
configurable dash patterns become en and em dashes.  The transform runs
over the plain text nodes of one block at a time; quote pairing state is
carried across the text nodes of the block by :class:`SmartPunctuation`
so that a quote opened before an emphasis span is closed after it.

Only characters produced by straight text are touched.  Backslash escapes,
entities, code spans and link text are left alone, which keeps reference
labels stable and lets authors opt out with ``\\"``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hongdown.config import FormatOptions

LEFT_DOUBLE_QUOTE = "“"
RIGHT_DOUBLE_QUOTE = "”"
LEFT_SINGLE_QUOTE = "‘"
RIGHT_SINGLE_QUOTE = "’"
ELLIPSIS = "…"
EN_DASH = "–"
EM_DASH = "—"

_OPENING_NEIGHBOURS = frozenset("([{" + LEFT_DOUBLE_QUOTE + LEFT_SINGLE_QUOTE)
_CLOSING_NEIGHBOURS = frozenset(".,;:!?)]}")

# Words that start with an elided letter: 'tis, 'twas, 'em ...
_LEADING_CONTRACTIONS = frozenset({
    "tis", "twas", "twere", "twill", "em", "n", "cause", "til", "bout", "round",
})


def _suggests_open(prev: str) -> bool:
    return prev == "" or prev.isspace() or prev in _OPENING_NEIGHBOURS


def _suggests_close(nxt: str) -> bool:
    return nxt == "" or nxt.isspace() or nxt in _CLOSING_NEIGHBOURS


def _is_opening(prev: str, nxt: str, expecting_open: bool) -> bool:
    opens = _suggests_open(prev)
    closes = _suggests_close(nxt)
    if opens and not closes:
        return True
    if closes and not opens:
        return False
    return expecting_open


def replace_dashes(text: str, pattern: str, replacement: str,
                   before: str = "", after: str = "") -> str:
    """Replace every occurrence of *pattern* with *replacement*.

    A single-character pattern (``-``) only fires when it stands alone
    between whitespace, so hyphenated words survive.
    """
    if not pattern or pattern not in text:
        return text
    if len(pattern) > 1:
        return text.replace(pattern, replacement)
    out: list[str] = []
    last = len(text) - 1
    for i, ch in enumerate(text):
        if ch == pattern:
            prev = text[i - 1] if i > 0 else before[-1:]
            nxt = text[i + 1] if i < last else after[:1]
            if (prev == "" or prev.isspace()) and (nxt == "" or nxt.isspace()):
                out.append(replacement)
                continue
        out.append(ch)
    return "".join(out)


def replace_ellipses(text: str) -> str:
    """``...`` becomes an ellipsis; ``....`` becomes an ellipsis and a period."""
    return text.replace("...", ELLIPSIS)


class SmartPunctuation:
    """Punctuation transform for the text nodes of one block.

    Parameters
    ----------
    options:
        Supplies the punctuation toggles and dash patterns.
    """

    def __init__(self, options: FormatOptions) -> None:
        self.options = options
        self._double_expect_open = True
        self._single_expect_open = True

    @property
    def enabled(self) -> bool:
        o = self.options
        return bool(
            o.curly_double_quotes
            or o.curly_single_quotes
            or o.curly_apostrophes
            or o.ellipsis
            or o.en_dash
            or o.em_dash
        )

    def transform(self, text: str, before: str = "", after: str = "") -> str:
        """Transform one text node.

        *before* and *after* are the characters rendered immediately around
        the node (empty at the edges of the block).
        """
        o = self.options
        if o.em_dash:
            text = replace_dashes(text, o.em_dash, EM_DASH, before, after)
        if o.en_dash:
            text = replace_dashes(text, o.en_dash, EN_DASH, before, after)
        if o.ellipsis:
            text = replace_ellipses(text)
        if o.curly_double_quotes and '"' in text:
            text = self._double_quotes(text, before, after)
        if "'" in text:
            text = self._single_quotes(text, before, after)
        return text

    # ------------------------------------------------------------------
    # Quotes
    # ------------------------------------------------------------------

    def _double_quotes(self, text: str, before: str, after: str) -> str:
        out: list[str] = []
        last = len(text) - 1
        for i, ch in enumerate(text):
            if ch != '"':
                out.append(ch)
                continue
            prev = text[i - 1] if i > 0 else before[-1:]
            nxt = text[i + 1] if i < last else after[:1]
            if _is_opening(prev, nxt, self._double_expect_open):
                out.append(LEFT_DOUBLE_QUOTE)
                self._double_expect_open = False
            else:
                out.append(RIGHT_DOUBLE_QUOTE)
                self._double_expect_open = True
        return "".join(out)

    def _single_quotes(self, text: str, before: str, after: str) -> str:
        o = self.options
        apostrophe = RIGHT_SINGLE_QUOTE if o.curly_apostrophes else "'"
        out: list[str] = []
        last = len(text) - 1
        for i, ch in enumerate(text):
            if ch != "'":
                out.append(ch)
                continue
            prev = text[i - 1] if i > 0 else before[-1:]
            nxt = text[i + 1] if i < last else after[:1]

            # don't, it's, O'Brien
            if prev.isalnum() and nxt.isalnum():
                out.append(apostrophe)
                continue
            if not prev.isalnum() and _starts_elision(text, i + 1, after):
                out.append(apostrophe)
                continue
            if not o.curly_single_quotes:
                out.append(apostrophe)
                continue

            opening = _is_opening(prev, nxt, self._single_expect_open)
            if not opening and prev.isalnum() and self._single_expect_open:
                # Trailing possessive (the students' books) with no open quote.
                out.append(apostrophe)
            elif opening:
                out.append(LEFT_SINGLE_QUOTE)
                self._single_expect_open = False
            else:
                out.append(RIGHT_SINGLE_QUOTE)
                self._single_expect_open = True
        return "".join(out)


def _starts_elision(text: str, start: int, after: str) -> bool:
    """Whether the word at *start* is a decade ('80s) or leading contraction."""
    rest = text[start:] if start < len(text) else after
    if rest[:1].isdigit():
        return True
    word = []
    for ch in rest:
        if not ch.isalpha():
            break
        word.append(ch.lower())
    return "".join(word) in _LEADING_CONTRACTIONS


def transform_punctuation(text: str, options: FormatOptions) -> str:
    """Apply the punctuation transform to a standalone piece of text."""
    return SmartPunctuation(options).transform(text)
