"""Document tree consumed by the serializer.

The tree is a closed sum type: a single :class:`Node` dataclass tagged by
:class:`NodeKind`, with the handful of per-kind attributes stored as plain
fields.  It is built once by :mod:`hongdown.parser.adapter` and treated as
read-only afterwards.

Source positions are 1-indexed and inclusive.  Block nodes span whole
lines (``start_col`` is 1, ``end_col`` is 0 meaning "end of line"); inline
nodes carry the line they start on.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class NodeKind(str, Enum):
    """Every node type the serializer knows how to render."""

    # ── Blocks ──────────────────────────────────────────────────────────
    DOCUMENT = "document"
    FRONT_MATTER = "front_matter"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    THEMATIC_BREAK = "thematic_break"
    LIST = "list"
    ITEM = "item"
    CODE_BLOCK = "code_block"
    BLOCK_QUOTE = "block_quote"
    ALERT = "alert"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    DESCRIPTION_LIST = "description_list"
    DESCRIPTION_ITEM = "description_item"
    DESCRIPTION_TERM = "description_term"
    DESCRIPTION_DETAILS = "description_details"
    HTML_BLOCK = "html_block"
    FOOTNOTE_DEFINITION = "footnote_definition"
    LINK_DEFINITION = "link_definition"

    # ── Inlines ─────────────────────────────────────────────────────────
    TEXT = "text"
    EMPH = "emph"
    STRONG = "strong"
    STRIKETHROUGH = "strikethrough"
    CODE = "code"
    LINK = "link"
    IMAGE = "image"
    SOFT_BREAK = "soft_break"
    LINE_BREAK = "line_break"
    HTML_INLINE = "html_inline"
    FOOTNOTE_REFERENCE = "footnote_reference"


BLOCK_KINDS: frozenset[NodeKind] = frozenset({
    NodeKind.FRONT_MATTER,
    NodeKind.HEADING,
    NodeKind.PARAGRAPH,
    NodeKind.THEMATIC_BREAK,
    NodeKind.LIST,
    NodeKind.CODE_BLOCK,
    NodeKind.BLOCK_QUOTE,
    NodeKind.ALERT,
    NodeKind.TABLE,
    NodeKind.DESCRIPTION_LIST,
    NodeKind.HTML_BLOCK,
    NodeKind.FOOTNOTE_DEFINITION,
    NodeKind.LINK_DEFINITION,
})


@dataclass
class SourcePos:
    """1-indexed, inclusive source span."""

    start_line: int
    start_col: int = 1
    end_line: int = 0
    end_col: int = 0

    def __post_init__(self) -> None:
        if self.end_line < self.start_line:
            self.end_line = self.start_line


@dataclass
class LinkDefinition:
    """A ``[label]: url "title"`` line found in the source."""

    label: str
    url: str
    title: str = ""
    line: int = 0


@dataclass
class Node:
    """One node of the document tree.

    Only the attributes relevant to a node's :attr:`kind` are meaningful;
    the rest keep their defaults.

    Attributes
    ----------
    kind:
        The node type.
    children:
        Owned child nodes in document order.
    pos:
        Source span, or ``None`` for synthesized nodes.
    literal:
        Text of ``TEXT``/``CODE``/``HTML_*`` nodes, code of ``CODE_BLOCK``,
        raw content of ``FRONT_MATTER``.
    raw:
        Verbatim source of the node when it must be reproduced exactly:
        the backslash escape or entity of a ``TEXT`` node, the original
        ``[...](...)`` text of a ``LINK``/``IMAGE``, the original
        backtick-delimited text of a ``CODE`` span.
    level:
        Heading level.
    info:
        Full info string of a ``CODE_BLOCK``.
    fenced:
        ``False`` for indented code blocks.
    url, title:
        Destination and title of ``LINK``, ``IMAGE`` and ``LINK_DEFINITION``.
    autolink:
        The link was written as ``<url>``.
    name:
        Footnote label, alert type (``NOTE``, ``TIP``...), or the label of
        a ``LINK_DEFINITION`` as written.
    ordered, start, tight:
        ``LIST`` attributes.
    checked:
        Task state of an ``ITEM`` (``None`` when not a task item).
    alignments:
        Per-column alignment of a ``TABLE``: ``"left"``, ``"right"``,
        ``"center"`` or ``""``.
    is_header:
        ``TABLE_ROW`` is the header row.
    delimiter:
        Emphasis delimiter (``*``/``_``) as written, or the bullet character
        (``-``/``*``/``+``) or number delimiter (``.``/``)``) of a ``LIST``.
    """

    kind: NodeKind
    children: list[Node] = field(default_factory=list)
    pos: SourcePos | None = None
    literal: str = ""
    raw: str | None = None
    level: int = 0
    info: str = ""
    fenced: bool = True
    url: str = ""
    title: str = ""
    autolink: bool = False
    name: str = ""
    ordered: bool = False
    start: int = 1
    tight: bool = True
    checked: bool | None = None
    alignments: list[str] = field(default_factory=list)
    is_header: bool = False
    delimiter: str = ""

    # ------------------------------------------------------------------
    # Convenience accessors
    # ------------------------------------------------------------------

    @property
    def start_line(self) -> int:
        return self.pos.start_line if self.pos is not None else 0

    @property
    def end_line(self) -> int:
        return self.pos.end_line if self.pos is not None else 0

    @property
    def is_block(self) -> bool:
        return self.kind in BLOCK_KINDS

    def walk(self) -> Iterator[Node]:
        """Yield this node and all descendants in document order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def text_content(self) -> str:
        """Concatenate the literal text of all descendant inline nodes."""
        parts: list[str] = []
        for node in self.walk():
            if node.kind in (NodeKind.TEXT, NodeKind.CODE):
                parts.append(node.literal)
            elif node.kind in (NodeKind.SOFT_BREAK, NodeKind.LINE_BREAK):
                parts.append(" ")
        return "".join(parts)


@dataclass
class Document:
    """A parsed document: the root node plus document-wide tables.

    Attributes
    ----------
    root:
        The ``DOCUMENT`` node.
    source:
        The exact text that was parsed.
    definitions:
        Link reference definitions by normalized label, in source order.
    footnote_labels:
        Labels of every footnote definition in the source.
    """

    root: Node
    source: str
    definitions: dict[str, LinkDefinition] = field(default_factory=dict)
    footnote_labels: set[str] = field(default_factory=set)
