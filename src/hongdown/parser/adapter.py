"""Build the document tree with markdown-it-py.

markdown-it produces a flat token stream; :class:`TreeBuilder` folds it
into the :class:`~hongdown.parser.nodes.Node` tree the serializer walks.

The parser is configured for the dialect hongdown formats:

* CommonMark with raw HTML,
* GFM tables, strikethrough, task lists and alerts,
* footnotes, description lists and YAML/TOML front matter
  (:mod:`mdit_py_plugins`).

Links are never rewritten: :meth:`HongdownParser.normalizeLink` is the
identity and every destination validates, so URLs reach the serializer as
the author wrote them.  The link, image, code-span, autolink and
footnote-reference rules are wrapped so that each token they produce
remembers its original source text and the line it started on.
"""

from __future__ import annotations

import logging
import re
from bisect import bisect_left
from collections.abc import Callable, Sequence
from functools import lru_cache, partial

from markdown_it import MarkdownIt
from markdown_it.common.utils import normalizeReference
from markdown_it.rules_inline import StateInline, autolink, backtick, image, link
from markdown_it.token import Token
from mdit_py_plugins.deflist import deflist_plugin
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.footnote.index import footnote_ref
from mdit_py_plugins.front_matter import front_matter_plugin

from hongdown.errors import HongdownParseError
from hongdown.parser.nodes import Document, LinkDefinition, Node, NodeKind, SourcePos
from hongdown.utils import SourceLines

logger = logging.getLogger("hongdown.parser")

_NEWLINE_RE = re.compile(r"\r\n?")
_QUOTED_BLANK_RE = re.compile(r"^[ \t>]*$")
_ALIGN_RE = re.compile(r"text-align:\s*(left|right|center)")

InlineRule = Callable[[StateInline, bool], bool]


# ---------------------------------------------------------------------------
# Parser configuration
# ---------------------------------------------------------------------------

class HongdownParser(MarkdownIt):
    """A :class:`~markdown_it.MarkdownIt` that leaves link targets alone."""

    def validateLink(self, url: str) -> bool:  # noqa: N802
        return True

    def normalizeLink(self, url: str) -> str:  # noqa: N802
        return url

    def normalizeLinkText(self, link: str) -> str:  # noqa: N802
        return link


@lru_cache(maxsize=16)
def _newline_offsets(text: str) -> tuple[int, ...]:
    """Positions of the newlines in an inline source, in order."""
    return tuple(index for index, char in enumerate(text) if char == "\n")


def _record_source(rule: InlineRule, token_type: str) -> InlineRule:
    """Wrap an inline rule so its main token records where it came from.

    The token's ``meta`` gains ``source`` (the exact text the rule
    consumed), ``line_offset`` and ``end_offset`` (newlines in the inline
    content before the start and the end of that text).
    """

    def wrapped(state: StateInline, silent: bool) -> bool:
        start = state.pos
        first = len(state.tokens)
        if not rule(state, silent):
            return False
        if silent:
            return True
        newlines = _newline_offsets(state.src)
        for token in state.tokens[first:]:
            if token.type == token_type:
                token.meta = {
                    **(token.meta or {}),
                    "source": state.src[start : state.pos],
                    "line_offset": bisect_left(newlines, start),
                    "end_offset": bisect_left(newlines, state.pos),
                }
                break
        return True

    return wrapped


def build_parser() -> HongdownParser:
    """Create a parser configured for the hongdown dialect."""
    md = HongdownParser(
        "commonmark",
        {
            "html": True,
            "alerts": True,
            "tasklists": True,
            "inline_definitions": True,
        },
    )
    md.enable(["table", "strikethrough"])
    # Escapes and entities must stay separate tokens.
    md.disable("text_join")
    md.use(front_matter_plugin)
    md.use(footnote_plugin, inline=False, move_to_end=False, always_match_refs=True)
    md.use(deflist_plugin)

    ruler = md.inline.ruler
    ruler.at("link", _record_source(link, "link_open"))
    ruler.at("image", _record_source(image, "image"))
    ruler.at("backticks", _record_source(backtick, "code_inline"))
    ruler.at("autolink", _record_source(autolink, "link_open"))
    ruler.at(
        "footnote_ref",
        _record_source(partial(footnote_ref, always_match=True), "footnote_ref"),
    )
    return md


def normalize_source(text: str) -> str:
    """Apply the newline and NUL normalization markdown-it performs."""
    return _NEWLINE_RE.sub("\n", text).replace("\x00", "\ufffd")


# ---------------------------------------------------------------------------
# Token stream -> tree
# ---------------------------------------------------------------------------

_CONTAINERS: dict[str, NodeKind] = {
    "blockquote_open": NodeKind.BLOCK_QUOTE,
    "alert_open": NodeKind.ALERT,
    "footnote_reference_open": NodeKind.FOOTNOTE_DEFINITION,
    "list_item_open": NodeKind.ITEM,
}

_INLINE_CONTAINERS: dict[str, NodeKind] = {
    "em_open": NodeKind.EMPH,
    "strong_open": NodeKind.STRONG,
    "s_open": NodeKind.STRIKETHROUGH,
}


def _matching_close(tokens: Sequence[Token], index: int) -> int:
    """Index of the token closing the one opened at *index*."""
    depth = 0
    for position in range(index, len(tokens)):
        depth += tokens[position].nesting
        if depth == 0:
            return position
    return len(tokens) - 1


class TreeBuilder:
    """Fold a markdown-it token stream into a :class:`Node` tree.

    Parameters
    ----------
    source:
        Normalized source text the tokens were produced from.  Used to
        trim trailing blank lines off block spans.
    """

    def __init__(self, source: str) -> None:
        self._lines = SourceLines(source)
        self._quote_depth = 0

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------

    def _is_blank(self, number: int) -> bool:
        line = self._lines.line(number)
        if line is None or not line.strip():
            return True
        return self._quote_depth > 0 and _QUOTED_BLANK_RE.match(line) is not None

    def _span(self, token: Token) -> SourcePos | None:
        if not token.map:
            return None
        start = token.map[0] + 1
        end = max(token.map[1], start)
        while end > start and self._is_blank(end):
            end -= 1
        return SourcePos(start, 1, end, 0)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def build(self, tokens: Sequence[Token]) -> Node:
        children, _ = self._blocks(tokens, 0, len(tokens))
        end = len(self._lines)
        return Node(NodeKind.DOCUMENT, children=children, pos=SourcePos(1, 1, end, 0))

    def _blocks(self, tokens: Sequence[Token], start: int, stop: int) -> tuple[list[Node], int]:
        """Convert the block tokens in ``tokens[start:stop]``."""
        nodes: list[Node] = []
        i = start
        while i < stop:
            node, i = self._block(tokens, i)
            if node is not None:
                nodes.append(node)
        return nodes, i

    def _block(self, tokens: Sequence[Token], i: int) -> tuple[Node | None, int]:
        token = tokens[i]
        kind = token.type
        if kind == "paragraph_open":
            node = Node(NodeKind.PARAGRAPH, pos=self._span(token))
            node.children = self._inline(tokens[i + 1])
            return node, i + 3
        if kind == "heading_open":
            node = Node(NodeKind.HEADING, pos=self._span(token), level=int(token.tag[1:]))
            node.children = self._inline(tokens[i + 1])
            return node, i + 3
        if kind in ("fence", "code_block"):
            return Node(
                NodeKind.CODE_BLOCK,
                pos=self._span(token),
                literal=token.content,
                info=token.info.strip() if kind == "fence" else "",
                fenced=kind == "fence",
            ), i + 1
        if kind == "html_block":
            return Node(NodeKind.HTML_BLOCK, pos=self._span(token), literal=token.content), i + 1
        if kind == "hr":
            return Node(NodeKind.THEMATIC_BREAK, pos=self._span(token)), i + 1
        if kind == "front_matter":
            return Node(NodeKind.FRONT_MATTER, pos=self._span(token), literal=token.content), i + 1
        if kind == "definition":
            meta = token.meta or {}
            return Node(
                NodeKind.LINK_DEFINITION,
                pos=self._span(token),
                name=meta.get("label", ""),
                url=meta.get("url", ""),
                title=meta.get("title", "") or "",
            ), i + 1
        if kind in ("bullet_list_open", "ordered_list_open"):
            return self._list(tokens, i)
        if kind == "table_open":
            return self._table(tokens, i)
        if kind == "dl_open":
            return self._description_list(tokens, i)
        if kind in _CONTAINERS:
            return self._container(tokens, i)
        # Anything else (stray inline or close tokens) carries no content.
        return None, i + 1

    def _container(self, tokens: Sequence[Token], i: int) -> tuple[Node, int]:
        token = tokens[i]
        close = _matching_close(tokens, i)
        node = Node(_CONTAINERS[token.type], pos=self._span(token))
        start = i + 1
        quoted = node.kind in (NodeKind.BLOCK_QUOTE, NodeKind.ALERT)
        if node.kind is NodeKind.ALERT:
            node.name = token.info or (token.meta or {}).get("kind", "NOTE")
            # The generated title paragraph has no source of its own.
            if start < close and tokens[start].type == "alert_title_open":
                start += 3
        elif node.kind is NodeKind.FOOTNOTE_DEFINITION:
            node.name = (token.meta or {}).get("label", "")
        elif node.kind is NodeKind.ITEM:
            checked = (token.meta or {}).get("checked")
            node.checked = None if checked is None else bool(checked)
        if quoted:
            self._quote_depth += 1
        try:
            node.children, _ = self._blocks(tokens, start, close)
        finally:
            if quoted:
                self._quote_depth -= 1
        return node, close + 1

    def _list(self, tokens: Sequence[Token], i: int) -> tuple[Node, int]:
        token = tokens[i]
        close = _matching_close(tokens, i)
        ordered = token.type == "ordered_list_open"
        start_attr = token.attrGet("start")
        node = Node(
            NodeKind.LIST,
            pos=self._span(token),
            ordered=ordered,
            start=int(start_attr) if start_attr is not None else 1,
            delimiter=token.markup,
        )
        node.children, _ = self._blocks(tokens, i + 1, close)
        node.tight = self._list_is_tight(tokens, i, close, node)
        return node, close + 1

    def _list_is_tight(
        self, tokens: Sequence[Token], i: int, close: int, node: Node
    ) -> bool:
        level = tokens[i].level + 2
        for token in tokens[i + 1 : close]:
            if token.type == "paragraph_open" and token.level == level:
                return token.hidden
        # No paragraphs to go by: look for blank lines between the items.
        items = node.children
        for previous, current in zip(items, items[1:]):
            if current.start_line - previous.end_line > 1:
                return False
        return True

    def _table(self, tokens: Sequence[Token], i: int) -> tuple[Node, int]:
        close = _matching_close(tokens, i)
        node = Node(NodeKind.TABLE, pos=self._span(tokens[i]))
        row: Node | None = None
        in_head = False
        j = i + 1
        while j < close:
            token = tokens[j]
            if token.type == "thead_open":
                in_head = True
            elif token.type == "thead_close":
                in_head = False
            elif token.type == "tr_open":
                row = Node(NodeKind.TABLE_ROW, pos=self._span(token), is_header=in_head)
                node.children.append(row)
            elif token.type in ("th_open", "td_open") and row is not None:
                if in_head:
                    match = _ALIGN_RE.search(token.attrGet("style") or "")
                    node.alignments.append(match.group(1) if match else "")
                cell = Node(NodeKind.TABLE_CELL, pos=row.pos)
                if j + 1 < close and tokens[j + 1].type == "inline":
                    cell.children = self._inline(tokens[j + 1])
                row.children.append(cell)
            j += 1
        return node, close + 1

    def _description_list(self, tokens: Sequence[Token], i: int) -> tuple[Node, int]:
        close = _matching_close(tokens, i)
        node = Node(NodeKind.DESCRIPTION_LIST, pos=self._span(tokens[i]))
        item: Node | None = None
        j = i + 1
        while j < close:
            token = tokens[j]
            if token.type == "dt_open":
                item = Node(NodeKind.DESCRIPTION_ITEM, pos=self._span(token))
                term = Node(NodeKind.DESCRIPTION_TERM, pos=self._span(token))
                term.children = self._inline(tokens[j + 1])
                item.children.append(term)
                node.children.append(item)
                j = _matching_close(tokens, j) + 1
            elif token.type == "dd_open":
                dd_close = _matching_close(tokens, j)
                details = Node(NodeKind.DESCRIPTION_DETAILS, pos=self._span(token))
                details.children, _ = self._blocks(tokens, j + 1, dd_close)
                if item is None:
                    item = Node(NodeKind.DESCRIPTION_ITEM, pos=details.pos)
                    node.children.append(item)
                item.children.append(details)
                if item.pos is not None and details.pos is not None:
                    item.pos.end_line = details.end_line
                j = dd_close + 1
            else:
                j += 1
        return node, close + 1

    # ------------------------------------------------------------------
    # Inlines
    # ------------------------------------------------------------------

    def _inline(self, token: Token) -> list[Node]:
        base = token.map[0] + 1 if token.map else 0
        return self._inlines(token.children or [], base)

    def _inlines(self, tokens: Sequence[Token], base: int) -> list[Node]:
        root: list[Node] = []
        stack: list[tuple[Node, int | None]] = []
        line = base

        def append(node: Node) -> None:
            (stack[-1][0].children if stack else root).append(node)

        for token in tokens:
            meta = token.meta or {}
            if "line_offset" in meta:
                line = base + meta["line_offset"]
            pos = SourcePos(line)
            kind = token.type
            if kind == "text":
                append(Node(NodeKind.TEXT, pos=pos, literal=token.content))
            elif kind == "text_special":
                append(Node(NodeKind.TEXT, pos=pos, literal=token.content, raw=token.markup))
            elif kind == "softbreak":
                append(Node(NodeKind.SOFT_BREAK, pos=pos))
                line += 1
            elif kind == "hardbreak":
                append(Node(NodeKind.LINE_BREAK, pos=pos))
                line += 1
            elif kind == "code_inline":
                append(Node(NodeKind.CODE, pos=pos, literal=token.content, raw=meta.get("source")))
                line = base + meta.get("end_offset", line - base)
            elif kind == "html_inline":
                append(Node(NodeKind.HTML_INLINE, pos=pos, literal=token.content))
                line += token.content.count("\n")
            elif kind == "footnote_ref":
                append(Node(NodeKind.FOOTNOTE_REFERENCE, pos=pos, name=meta.get("label", "")))
            elif kind == "image":
                node = Node(
                    NodeKind.IMAGE,
                    pos=pos,
                    url=str(token.attrGet("src") or ""),
                    title=str(token.attrGet("title") or ""),
                    raw=meta.get("source"),
                )
                node.children = self._inlines(token.children or [], line)
                append(node)
                line = base + meta.get("end_offset", line - base)
            elif kind == "link_open":
                node = Node(
                    NodeKind.LINK,
                    pos=pos,
                    url=str(token.attrGet("href") or ""),
                    title=str(token.attrGet("title") or ""),
                    autolink=token.markup == "autolink",
                    raw=meta.get("source"),
                )
                append(node)
                stack.append((node, meta.get("end_offset")))
            elif kind in _INLINE_CONTAINERS:
                node = Node(_INLINE_CONTAINERS[kind], pos=pos, delimiter=token.markup)
                append(node)
                stack.append((node, None))
            elif token.nesting == -1 and stack:
                _, end_offset = stack.pop()
                if end_offset is not None:
                    line = base + end_offset
        return root


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

_PARSER: HongdownParser | None = None


def _parser() -> HongdownParser:
    global _PARSER
    if _PARSER is None:
        _PARSER = build_parser()
    return _PARSER


def collect_definitions(root: Node) -> dict[str, LinkDefinition]:
    """Link reference definitions by normalized label; the first one wins."""
    definitions: dict[str, LinkDefinition] = {}
    for node in root.walk():
        if node.kind is not NodeKind.LINK_DEFINITION:
            continue
        key = normalizeReference(node.name)
        if key and key not in definitions:
            definitions[key] = LinkDefinition(node.name, node.url, node.title, node.start_line)
    return definitions


def parse_document(text: str) -> Document:
    """Parse *text* into a :class:`Document`.

    Raises
    ------
    HongdownParseError
        If markdown-it fails on the input.
    """
    source = normalize_source(text)
    try:
        tokens = _parser().parse(source, {})
    except Exception as exc:
        raise HongdownParseError(f"failed to parse document: {exc}", cause=exc) from exc
    root = TreeBuilder(source).build(tokens)
    document = Document(
        root=root,
        source=source,
        definitions=collect_definitions(root),
        footnote_labels={
            node.name for node in root.walk() if node.kind is NodeKind.FOOTNOTE_DEFINITION
        },
    )
    logger.debug(
        "document parsed",
        extra={"extra_fields": {
            "op": "parse",
            "tokens": len(tokens),
            "blocks": len(root.children),
        }},
    )
    return document
