"""Formatting directives embedded in HTML comments.

A directive is an HTML block whose whole content is one comment::

    <!-- hongdown-disable-next-line -->
    <!-- hongdown-proper-nouns: Hongdown, Fedify -->

The toggle directives move the serializer between the
:class:`~hongdown.models.SkipMode` states; the noun directives extend the
sentence-case noun lists for the rest of the document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from hongdown.models import Directive, SkipMode

_COMMENT_RE = re.compile(r"^<!--\s*(?P<body>.*?)\s*-->$", re.DOTALL)
_NOUN_DIRECTIVE_RE = re.compile(
    r"^(?P<name>hongdown-proper-nouns|hongdown-common-nouns)\s*:\s*(?P<words>.*)$",
    re.DOTALL,
)

_TOGGLES = {
    Directive.DISABLE_NEXT_LINE.value: Directive.DISABLE_NEXT_LINE,
    Directive.DISABLE_NEXT_SECTION.value: Directive.DISABLE_NEXT_SECTION,
    Directive.DISABLE_FILE.value: Directive.DISABLE_FILE,
    Directive.DISABLE.value: Directive.DISABLE,
    Directive.ENABLE.value: Directive.ENABLE,
}


@dataclass(frozen=True)
class ParsedDirective:
    """A recognised directive comment.

    Attributes
    ----------
    directive:
        Which directive it is.
    words:
        The nouns listed by a ``hongdown-proper-nouns`` or
        ``hongdown-common-nouns`` directive; empty for toggles.
    """

    directive: Directive
    words: tuple[str, ...] = field(default=())

    @property
    def is_toggle(self) -> bool:
        return self.directive not in (Directive.PROPER_NOUNS, Directive.COMMON_NOUNS)


def parse_directive(html: str) -> ParsedDirective | None:
    """Recognise a directive in the literal of an HTML block.

    Returns ``None`` unless the trimmed block is exactly one comment whose
    content is a directive keyword.

    >>> parse_directive("<!-- hongdown-disable -->").directive.value
    'hongdown-disable'
    >>> parse_directive("<!-- hongdown-disable --> trailing") is None
    True
    """
    match = _COMMENT_RE.match(html.strip())
    if match is None:
        return None
    body = match.group("body")
    if "-->" in body:
        return None
    toggle = _TOGGLES.get(body)
    if toggle is not None:
        return ParsedDirective(toggle)
    nouns = _NOUN_DIRECTIVE_RE.match(body)
    if nouns is None:
        return None
    words = tuple(
        word.strip() for word in nouns.group("words").split(",") if word.strip()
    )
    return ParsedDirective(Directive(nouns.group("name")), words)


def next_skip_mode(current: SkipMode, directive: Directive) -> SkipMode:
    """Skip mode in effect after *directive*.

    ``hongdown-enable`` only closes a ``hongdown-disable`` span; inside a
    disabled span every other directive is inert.
    """
    if current is SkipMode.DISABLED:
        return SkipMode.NONE if directive is Directive.ENABLE else current
    if directive is Directive.DISABLE_NEXT_LINE:
        return SkipMode.NEXT_BLOCK
    if directive is Directive.DISABLE_NEXT_SECTION:
        return SkipMode.UNTIL_SECTION
    if directive in (Directive.DISABLE, Directive.DISABLE_FILE):
        return SkipMode.DISABLED
    if directive is Directive.ENABLE:
        return SkipMode.NONE
    return current


def is_directive_comment(html: str) -> bool:
    return parse_directive(html) is not None
