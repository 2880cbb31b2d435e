"""Reference-link bookkeeping.

Links rendered in reference style leave a pending definition behind.
:class:`ReferenceTracker` collects those definitions per section and hands
them back when the serializer reaches a section boundary or the end of the
document.  :class:`FootnoteQueue` does the same for footnote definitions.

:func:`detect_reference_style` inspects a link's original source text to
find out how the author wrote it, so the serializer can preserve the
choice.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from markdown_it.common.utils import normalizeReference

from hongdown.parser.nodes import Node
from hongdown.serializer.escape import normalize_whitespace

_NUMERIC_LABEL_RE = re.compile(r"^#?(\d+)$")


# ---------------------------------------------------------------------------
# Source inspection
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ReferenceStyle:
    """How a link or image was written in the source.

    Attributes
    ----------
    kind:
        ``"inline"``, ``"full"``, ``"collapsed"`` or ``"shortcut"``.
    text:
        Whitespace-normalized source text between the outer brackets.
    label:
        The explicit label of a full reference; the text otherwise.
    """

    kind: str
    text: str = ""
    label: str = ""

    @property
    def is_reference(self) -> bool:
        return self.kind != "inline"


def _matching_bracket(source: str, start: int) -> int:
    depth = 0
    i = start
    while i < len(source):
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            depth += 1
        elif ch == "]":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def detect_reference_style(source: str) -> ReferenceStyle:
    """Classify the original text of a link or image.

    >>> detect_reference_style("[Rust](https://www.rust-lang.org/)").kind
    'inline'
    >>> detect_reference_style("[the docs][docs]")
    ReferenceStyle(kind='full', text='the docs', label='docs')
    """
    body = source[1:] if source.startswith("!") else source
    if not body.startswith("["):
        return ReferenceStyle("inline")
    close = _matching_bracket(body, 0)
    if close == -1:
        return ReferenceStyle("inline")
    text = normalize_whitespace(body[1:close])
    rest = body[close + 1 :]
    if rest.startswith("("):
        return ReferenceStyle("inline", text)
    if rest.startswith("["):
        label_end = _matching_bracket(rest, 0)
        if label_end != -1:
            label = normalize_whitespace(rest[1:label_end])
            if label:
                return ReferenceStyle("full", text, label)
            return ReferenceStyle("collapsed", text, text)
    return ReferenceStyle("shortcut", text, text)


def is_numeric_label(label: str) -> bool:
    return _NUMERIC_LABEL_RE.match(label) is not None


def order_labels(labels: Iterable[str]) -> list[str]:
    """Order reference labels for output.

    Labels keep their insertion order unless at least two of them are
    numeric (``1``, ``#42``); then named labels come first in insertion
    order, followed by the numeric ones in ascending numeric order.
    """
    labels = list(labels)
    numeric = [label for label in labels if is_numeric_label(label)]
    if len(numeric) < 2:
        return labels
    named = [label for label in labels if not is_numeric_label(label)]
    numeric.sort(key=lambda label: int(_NUMERIC_LABEL_RE.match(label).group(1)))
    return named + numeric


def format_destination(url: str) -> str:
    """Render a link destination, bracketing it when it needs to be."""
    if not url or any(ch.isspace() for ch in url) or "<" in url or ">" in url or (
        url.count("(") != url.count(")")
    ):
        escaped = url.replace("\\", "\\\\").replace("<", "\\<").replace(">", "\\>")
        return f"<{escaped}>"
    return url


def format_title(title: str) -> str:
    if not title:
        return ""
    escaped = title.replace("\\", "\\\\").replace('"', '\\"')
    return f' "{escaped}"'


def format_definition(label: str, url: str, title: str = "") -> str:
    """Render one ``[label]: url "title"`` line."""
    return f"[{label}]: {format_destination(url)}{format_title(title)}"


# ---------------------------------------------------------------------------
# Pending link definitions
# ---------------------------------------------------------------------------

@dataclass
class PendingReference:
    label: str
    url: str
    title: str
    line: int


class ReferenceTracker:
    """Definitions earned by rendered links, waiting for a flush point.

    Labels are compared the way the Markdown parser compares them: case-
    and whitespace-insensitively.  The first spelling seen is the one
    written out.
    """

    def __init__(self) -> None:
        self._pending: dict[str, PendingReference] = {}
        self._emitted: dict[str, tuple[str, str]] = {}

    def __len__(self) -> int:
        return len(self._pending)

    @staticmethod
    def key(label: str) -> str:
        return normalizeReference(label)

    def add(self, label: str, url: str, title: str = "", line: int = 0) -> None:
        """Queue a definition; a label that was already written is ignored."""
        key = self.key(label)
        if not key or key in self._emitted:
            return
        pending = self._pending.get(key)
        if pending is None:
            self._pending[key] = PendingReference(label, url, title, line)
            return
        pending.url = url
        pending.title = title
        pending.line = min(pending.line, line)

    def target(self, label: str) -> tuple[str, str] | None:
        """``(url, title)`` the label currently resolves to, if any."""
        key = self.key(label)
        pending = self._pending.get(key)
        if pending is not None:
            return pending.url, pending.title
        return self._emitted.get(key)

    def mark_emitted(self, label: str, url: str = "", title: str = "") -> None:
        """Record a definition that reached the output some other way."""
        key = self.key(label)
        if key:
            self._pending.pop(key, None)
            self._emitted.setdefault(key, (url, title))

    def is_emitted(self, label: str) -> bool:
        return self.key(label) in self._emitted

    def take(self, before_line: int | None = None) -> list[PendingReference]:
        """Remove and return the definitions to write now.

        Parameters
        ----------
        before_line:
            Only definitions first used on a source line before this one are
            taken.  ``None`` takes everything.
        """
        keys = [
            key for key, ref in self._pending.items()
            if before_line is None or ref.line < before_line
        ]
        if not keys:
            return []
        by_label = {self._pending[key].label: key for key in keys}
        taken: list[PendingReference] = []
        for label in order_labels(by_label):
            ref = self._pending.pop(by_label[label])
            self._emitted[by_label[label]] = (ref.url, ref.title)
            taken.append(ref)
        return taken


# ---------------------------------------------------------------------------
# Footnote definitions
# ---------------------------------------------------------------------------

class FootnoteQueue:
    """Footnote definitions waiting to be placed.

    A definition belongs to the section in which its footnote is first
    referenced.  Definitions that are never referenced stay in the section
    where they were written.  Within a section they keep the order in which
    they were added, except that two or more numeric names are sorted the
    way :func:`order_labels` sorts reference labels.
    """

    def __init__(self, first_reference_lines: dict[str, int] | None = None) -> None:
        self._first_reference = dict(first_reference_lines or {})
        self._pending: list[tuple[int, str, Node]] = []

    def __len__(self) -> int:
        return len(self._pending)

    def reference_line(self, name: str, default: int) -> int:
        return self._first_reference.get(name, default)

    def add(self, name: str, definition: Node, definition_line: int) -> None:
        line = self.reference_line(name, definition_line)
        self._pending.append((line, name, definition))

    def take(self, before_line: int | None = None) -> list[Node]:
        """Remove and return definitions referenced before *before_line*."""
        ready = [
            entry for entry in self._pending
            if before_line is None or entry[0] < before_line
        ]
        if not ready:
            return []
        self._pending = [entry for entry in self._pending if entry not in ready]
        names = order_labels(dict.fromkeys(entry[1] for entry in ready))
        rank = {name: index for index, name in enumerate(names)}
        ready.sort(key=lambda entry: rank[entry[1]])
        return [entry[2] for entry in ready]
