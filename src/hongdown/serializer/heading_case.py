"""Sentence-case normalization for heading text.

Only the first word of a heading keeps an initial capital; every other word
is lowercased unless it is

* entirely uppercase (``API``, ``README``),
* an acronym (``PRs``, ``U.S.``, ``Ph.D.``),
* the pronoun *I* and its contractions,
* a proper noun from the user's list or the built-in table
  (:mod:`hongdown.serializer.proper_nouns`), unless the user listed it as
  a common noun.

Code spans are copied verbatim.  Quoted passages are sentence-cased on
their own only when they start with a capital letter.  Words following a
colon, semicolon or dash keep the capitalization the author gave them.

The text handed to :func:`to_sentence_case` is rendered Markdown.  Callers
protect constructs that must not change case (links, HTML, entities) by
substituting placeholders of the form ``"\\x01<n>\\x01"``.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from hongdown.serializer.proper_nouns import PROPER_NOUN_INDEX, PROPER_NOUNS
from hongdown.serializer.wrap import code_span_end

PROTECTED_MARK = "\x01"
_NOUN_MARK = "\ufffd"
_OPAQUE_MARKS = (PROTECTED_MARK, _NOUN_MARK)

_DELIMITERS = frozenset(":;—–")
_PERIOD_ACRONYM_RE = re.compile(r"^(?:[A-Z][a-z]?\.){2,}\W*$")
_APOSTROPHES = "'’"


class _Nouns:
    """Proper- and common-noun lookups for one conversion."""

    def __init__(self, proper: Sequence[str], common: Sequence[str]) -> None:
        self.common = {noun.lower() for noun in common}
        self.user: dict[str, str] = {}
        for noun in proper:
            self.user.setdefault(noun.lower(), noun)
        multiword = [
            noun for noun in (*PROPER_NOUNS, *proper)
            if " " in noun and noun.lower() not in self.common
        ]
        multiword.sort(key=len, reverse=True)
        self.multiword = [(noun, _multiword_pattern(noun)) for noun in multiword]

    def lookup(self, core: str) -> str | None:
        key = core.lower().replace("’", "'")
        if key in self.common:
            return None
        if key in self.user:
            return self.user[key]
        return PROPER_NOUN_INDEX.get(key)


def _multiword_pattern(noun: str) -> re.Pattern[str]:
    body = re.escape(noun.lower())
    body = body.replace("'", "['’]").replace(r"\ ", r"\s+")
    return re.compile(
        rf"(?<![^\W_]){body}(?![^\W_])(?P<possessive>['’]s(?![^\W_]))?",
        re.IGNORECASE,
    )


class _Cursor:
    """Tracks whether the next word is the first word of the heading."""

    __slots__ = ("first",)

    def __init__(self) -> None:
        self.first = True


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def to_sentence_case(
    text: str,
    user_proper_nouns: Sequence[str] = (),
    common_nouns: Sequence[str] = (),
) -> str:
    """Convert heading *text* to sentence case.

    Parameters
    ----------
    text:
        Rendered heading content.
    user_proper_nouns:
        Extra proper nouns, checked before the built-in table.  Entries
        containing spaces are matched as a unit.
    common_nouns:
        Words that must never be treated as proper nouns.

    Examples
    --------
    >>> to_sentence_case("Using Github Actions")
    'Using GitHub Actions'
    >>> to_sentence_case("The HTTP API For Python")
    'The HTTP API for Python'
    """
    if not text:
        return ""
    return _convert(text, _Nouns(user_proper_nouns, common_nouns), _Cursor())


def _convert(text: str, nouns: _Nouns, cursor: _Cursor) -> str:
    out: list[str] = []
    for kind, content in _tokenize(text):
        if kind == "code":
            out.append(content)
            cursor.first = False
        elif kind == "quote":
            out.append(_process_quote(content, nouns))
            cursor.first = False
        else:
            out.append(_process_text(content, nouns, cursor))
    return "".join(out)


# ---------------------------------------------------------------------------
# Tokenizing: code spans, quoted passages, plain text
# ---------------------------------------------------------------------------

def _tokenize(text: str) -> list[tuple[str, str]]:
    tokens: list[tuple[str, str]] = []
    start = 0
    i = 0
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == "`":
            end = code_span_end(text, i)
            if end is not None:
                if start < i:
                    tokens.extend(_tokenize_quotes(text[start:i]))
                tokens.append(("code", text[i:end]))
                start = i = end
                continue
        i += 1
    if start < len(text):
        tokens.extend(_tokenize_quotes(text[start:]))
    return tokens


def _normalize_quotes(text: str) -> str:
    """Map straight quotes to the curly quote they stand for.

    Apostrophes stay straight.  The result has the same length as *text*
    so positions carry over to the original.
    """
    out: list[str] = []
    open_single = False
    n = len(text)
    for i, ch in enumerate(text):
        prev = text[i - 1] if i > 0 else ""
        nxt = text[i + 1] if i + 1 < n else ""
        opens = (prev == "" or prev.isspace() or prev in "([") and nxt.isalnum()
        if ch == "'":
            if prev.isalpha() and (nxt.isalpha() or (nxt == "" and not open_single)):
                out.append("'")
            elif prev.isalpha() and nxt.isspace() and not open_single:
                out.append("'")
            elif re.match(r"\d\ds", text[i + 1 : i + 4]) and not prev.isalnum():
                out.append("'")
            elif opens:
                out.append("‘")
                open_single = True
            else:
                out.append("’")
                open_single = False
        elif ch == '"':
            out.append("“" if opens else "”")
        else:
            out.append(ch)
    return "".join(out)


def _find_close(norm: str, start: int, closing: str) -> int:
    for j in range(start, len(norm)):
        if norm[j] != closing:
            continue
        # An apostrophe inside a single-quoted passage (‘it’s’).
        if closing == "’" and j + 1 < len(norm) and norm[j + 1].isalpha() and (
            j > 0 and norm[j - 1].isalpha()
        ):
            continue
        return j
    return -1


def _tokenize_quotes(text: str) -> list[tuple[str, str]]:
    norm = _normalize_quotes(text)
    tokens: list[tuple[str, str]] = []
    start = 0
    i = 0
    while i < len(norm):
        ch = norm[i]
        if ch in "“‘":
            closing = "”" if ch == "“" else "’"
            end = _find_close(norm, i + 1, closing)
            if end != -1:
                if start < i:
                    tokens.append(("text", text[start:i]))
                tokens.append(("quote", text[i : end + 1]))
                start = i = end + 1
                continue
        i += 1
    if start < len(text):
        tokens.append(("text", text[start:]))
    return tokens


def _process_quote(quoted: str, nouns: _Nouns) -> str:
    opening, inner, closing = quoted[0], quoted[1:-1], quoted[-1]
    first_alpha = next((c for c in inner if c.isalpha()), "")
    if not first_alpha.isupper():
        return quoted
    return opening + _convert(inner, nouns, _Cursor()) + closing


# ---------------------------------------------------------------------------
# Words
# ---------------------------------------------------------------------------

def _process_text(text: str, nouns: _Nouns, cursor: _Cursor) -> str:
    text, replacements = _protect_multiword(text, nouns)
    out: list[str] = []
    word: list[str] = []
    after_delimiter = False

    def flush() -> None:
        nonlocal after_delimiter
        if not word:
            return
        current = "".join(word)
        word.clear()
        if cursor.first:
            capitalize = True
        elif after_delimiter:
            first_alpha = next((c for c in current if c.isalpha()), "")
            capitalize = first_alpha.isupper()
        else:
            capitalize = False
        out.append(_process_word(current, capitalize, nouns))
        cursor.first = False
        after_delimiter = False

    for ch in text:
        if ch.isspace():
            flush()
            out.append(ch)
        elif ch in _DELIMITERS:
            flush()
            out.append(ch)
            after_delimiter = True
        else:
            word.append(ch)
    flush()
    result = "".join(out)
    for placeholder, canonical in replacements:
        result = result.replace(placeholder, canonical)
    return result


def _protect_multiword(text: str, nouns: _Nouns) -> tuple[str, list[tuple[str, str]]]:
    replacements: list[tuple[str, str]] = []

    for canonical, pattern in nouns.multiword:
        def substitute(match: re.Match[str], canonical: str = canonical) -> str:
            placeholder = f"{_NOUN_MARK}{len(replacements)}{_NOUN_MARK}"
            replacements.append((placeholder, canonical + (match.group("possessive") or "")))
            return placeholder

        text = pattern.sub(substitute, text)
    return text, replacements


def _process_word(word: str, capitalize: bool, nouns: _Nouns) -> str:
    if "-" in word or "/" in word:
        canonical = _find_proper_noun(word, nouns)
        if canonical is not None:
            return canonical
        separator = "-" if "-" in word else "/"
        parts = word.split(separator)
        processed = [_process_simple(parts[0], capitalize, nouns)]
        processed.extend(_process_simple(part, False, nouns) for part in parts[1:])
        return separator.join(processed)
    return _process_simple(word, capitalize, nouns)


def _process_simple(word: str, capitalize: bool, nouns: _Nouns) -> str:
    if not word or any(mark in word for mark in _OPAQUE_MARKS):
        return word
    letters = [c for c in word if c.isalpha()]
    if letters and all(c.isupper() for c in letters):
        return word
    if _is_acronym(word):
        return word
    pronoun = _first_person(word)
    if pronoun is not None:
        return pronoun
    canonical = _find_proper_noun(word, nouns)
    if canonical is not None:
        return canonical
    if capitalize:
        return _capitalize_first(word)
    return word.lower()


def _split_punctuation(word: str) -> tuple[str, str, str]:
    start = 0
    while start < len(word) and not word[start].isalnum():
        start += 1
    end = len(word)
    while end > start and not word[end - 1].isalnum():
        end -= 1
    return word[:start], word[start:end], word[end:]


def _is_acronym(word: str) -> bool:
    _, core, trailing = _split_punctuation(word)
    if len(core) >= 2 and core[0].isupper() and core[1].isupper():
        return True
    return bool(_PERIOD_ACRONYM_RE.match(core + trailing))


def _first_person(word: str) -> str | None:
    leading, core, trailing = _split_punctuation(word)
    if core.lower() == "i":
        return f"{leading}I{trailing}"
    if len(core) >= 3 and core[0] in "iI" and core[1] in _APOSTROPHES:
        return f"{leading}I{core[1]}{core[2:].lower()}{trailing}"
    return None


def _find_proper_noun(word: str, nouns: _Nouns) -> str | None:
    possessive = ""
    body = word
    for suffix in ("'s", "’s"):
        if body.endswith(suffix) and len(body) > 2:
            body, possessive = body[:-2], suffix
            break
    leading, core, trailing = _split_punctuation(body)
    if not any(c.isalpha() for c in core):
        return None
    canonical = nouns.lookup(core)
    if canonical is None:
        # Entries like "Node.js" or "C++" keep their punctuation.
        canonical = nouns.lookup(core + trailing)
        if canonical is None:
            return None
        trailing = ""
    return f"{leading}{canonical}{trailing}{possessive}"


def _capitalize_first(word: str) -> str:
    for i, ch in enumerate(word):
        if ch.isalpha():
            return word[:i] + ch.upper() + word[i + 1 :].lower()
    return word
