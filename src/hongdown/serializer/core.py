"""Document tree to canonical Markdown.

:class:`Serializer` walks a :class:`~hongdown.parser.Document` once and
returns the formatted text.  Every block renderer returns its output as a
list of lines without prefixes; containers (block quotes, list items,
description details, footnote definitions) prefix the lines of their
children.  The document walk then joins the top-level chunks with the
blank-line policy of the house style:

* one blank line between blocks,
* two blank lines before a level-2 heading unless a heading precedes it,
* exactly the original lines between two blocks copied verbatim.

Link reference definitions and footnote definitions are collected while
rendering and written out at section boundaries (before every level-2 and
level-3 heading) and at the end of the document.

Usage::

    from hongdown.config import FormatOptions
    from hongdown.parser import parse_document
    from hongdown.serializer import Serializer

    serializer = Serializer(parse_document(text), FormatOptions())
    output = serializer.serialize()
    warnings = serializer.warnings
"""

from __future__ import annotations

import bisect
import logging
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace

from markdown_it.common.utils import normalizeReference

from hongdown.config import FormatOptions, FormatterCommand
from hongdown.errors import ErrorCode, HongdownFormatterError
from hongdown.models import Directive, FormatResult, FormatWarning, SkipMode, WarningCode
from hongdown.observability import resolve_metrics
from hongdown.parser.nodes import Document, Node, NodeKind
from hongdown.utils import SourceLines, display_width

from .code_format import choose_fence, parse_info, run_formatter
from .context import Context
from .directives import next_skip_mode, parse_directive
from .escape import code_span, escape_text, normalize_whitespace
from .heading_case import PROTECTED_MARK, to_sentence_case
from .punctuation import SmartPunctuation
from .references import (
    FootnoteQueue,
    ReferenceStyle,
    ReferenceTracker,
    detect_reference_style,
    format_definition,
    format_destination,
    format_title,
)
from .tables import find_unescaped_pipes, render_table
from .wrap import SOFT_BREAK, is_line_start_hazard, tokenize, wrap_text

logger = logging.getLogger("hongdown.serializer")

_EXTERNAL_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]{1,31}:[^<>\s]*$")
_ATX_CLOSING_RE = re.compile(r"(?:^|[ \t])(#+)[ \t]*$")
_UNESCAPED_BRACKET_RE = re.compile(r"(?<!\\)[\[\]]")
_UNDEFINED_REFERENCE_RE = re.compile(
    r"\[([^\[\]\x02]+)\](?:\[([^\[\]\x02]*)\])?(?!\()"
)
_LOOSE_DEFINITION_RE = re.compile(r"^\s*\[([^\]]+)\]:\s*\S")

# Marks text the undefined-reference scan must not look into.
_OPAQUE = "\x02"

# Blocks whose inline children are scanned for undefined references.
_INLINE_HOSTS = frozenset({
    NodeKind.PARAGRAPH,
    NodeKind.HEADING,
    NodeKind.TABLE_CELL,
    NodeKind.DESCRIPTION_TERM,
})


@dataclass
class _Chunk:
    """One top-level piece of output and what it came from."""

    lines: list[str]
    kind: NodeKind | None = None
    level: int = 0
    verbatim: bool = False
    start: int = 0
    end: int = 0


@dataclass
class _Walk:
    """Mutable state of the top-level document walk."""

    chunks: list[_Chunk] = field(default_factory=list)
    mode: SkipMode = SkipMode.NONE
    previous: Node | None = None


class Serializer:
    """Formats one parsed document.

    A serializer is single-use: construct it per document, call
    :meth:`serialize` once, then read :attr:`warnings`.

    Parameters
    ----------
    document:
        The parsed document, including its source text.
    options:
        Style options.
    """

    def __init__(self, document: Document, options: FormatOptions) -> None:
        self.document = document
        self.options = options
        self.source = SourceLines(document.source)
        self.warnings: list[FormatWarning] = []
        self.references = ReferenceTracker()
        self.footnotes = FootnoteQueue(_first_footnote_references(document.root))
        self.proper_nouns: list[str] = list(options.proper_nouns)
        self.common_nouns: list[str] = list(options.common_nouns)
        self._metrics = resolve_metrics(options.metrics)
        self._used_markers: dict[int, str] = {}
        self._loose_labels: set[str] = set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        """Render the document and return the formatted text.

        The result ends with exactly one newline, or is empty when the
        document has no content.
        """
        blocks = self.document.root.children
        deferred_from = _trailing_comment_start(blocks)
        walk = _Walk()
        finished = False
        for node in blocks[:deferred_from]:
            if not self._visit(node, walk):
                finished = True
                break
        if not finished:
            self._finish(walk, blocks[deferred_from:])
        self.warnings.sort(key=lambda warning: warning.line)
        return _join(walk.chunks, self.source)

    # ------------------------------------------------------------------
    # Document walk
    # ------------------------------------------------------------------

    def _visit(self, node: Node, walk: _Walk) -> bool:
        """Handle one top-level block; ``False`` stops the walk."""
        if node.kind is NodeKind.HTML_BLOCK:
            directive = parse_directive(node.literal)
            if directive is not None:
                if directive.is_toggle:
                    return self._toggle(node, directive.directive, walk)
                if walk.mode is not SkipMode.DISABLED:
                    target = (
                        self.proper_nouns
                        if directive.directive is Directive.PROPER_NOUNS
                        else self.common_nouns
                    )
                    target.extend(directive.words)
                walk.chunks.append(self._verbatim_chunk(node))
                walk.previous = node
                return True

        if (
            walk.mode is SkipMode.UNTIL_SECTION
            and node.kind is NodeKind.HEADING
            and node.level <= 2
        ):
            self._set_mode(walk, SkipMode.NONE, node.start_line, "section")

        if walk.mode is not SkipMode.NONE:
            walk.chunks.append(self._verbatim_chunk(node))
            walk.previous = node
            if walk.mode is SkipMode.NEXT_BLOCK:
                self._set_mode(walk, SkipMode.NONE, node.end_line, "block")
            return True

        if node.kind is NodeKind.HEADING and node.level in (2, 3):
            self._flush(walk, node.start_line)
        if node.kind is NodeKind.LINK_DEFINITION:
            return True
        if node.kind is NodeKind.FOOTNOTE_DEFINITION:
            self.footnotes.add(node.name, node, node.start_line)
            return True

        self._scan_undefined(node)
        lines = self._render_block(node, self._root_context(), walk.previous)
        if lines:
            walk.chunks.append(_Chunk(
                lines, node.kind, node.level, start=node.start_line, end=node.end_line,
            ))
            walk.previous = node
        return True

    def _toggle(self, node: Node, directive: Directive, walk: _Walk) -> bool:
        self._flush(walk, node.start_line)
        if directive is Directive.DISABLE_FILE:
            self._flush(walk, None)
            tail = self.source.tail(node.start_line)
            lines = tail.split("\n") if tail is not None else node.literal.rstrip("\n").split("\n")
            walk.chunks.append(_Chunk(
                lines, NodeKind.HTML_BLOCK, verbatim=True,
                start=node.start_line, end=len(self.source),
            ))
            self._set_mode(walk, SkipMode.DISABLED, node.start_line, directive.value)
            return False
        self._set_mode(
            walk, next_skip_mode(walk.mode, directive), node.start_line, directive.value,
        )
        walk.chunks.append(self._verbatim_chunk(node))
        walk.previous = node
        return True

    def _set_mode(self, walk: _Walk, mode: SkipMode, line: int, reason: str) -> None:
        if mode is walk.mode:
            return
        logger.debug(
            "skip mode changed",
            extra={"extra_fields": {
                "op": "directive",
                "line": line,
                "reason": reason,
                "from": walk.mode.value,
                "to": mode.value,
            }},
        )
        walk.mode = mode

    def _finish(self, walk: _Walk, trailing: Sequence[Node]) -> None:
        for definition in self.document.definitions.values():
            if not self.references.is_emitted(definition.label):
                self.references.add(
                    definition.label, definition.url, definition.title, definition.line,
                )
        self._flush(walk, None)
        for node in trailing:
            walk.chunks.append(_Chunk(
                node.literal.rstrip("\n").split("\n"),
                NodeKind.HTML_BLOCK,
                start=node.start_line,
                end=node.end_line,
            ))

    def _flush(self, walk: _Walk, before_line: int | None) -> None:
        """Write out footnotes, then link definitions, used before *before_line*."""
        notes = self.footnotes.take(before_line)
        if notes:
            walk.chunks.append(_Chunk(self._render_footnotes(notes), NodeKind.FOOTNOTE_DEFINITION))
        references = self.references.take(before_line)
        if references:
            walk.chunks.append(_Chunk(
                [format_definition(ref.label, ref.url, ref.title) for ref in references],
                NodeKind.LINK_DEFINITION,
            ))

    def _verbatim_chunk(self, node: Node) -> _Chunk:
        span = self.source.span(node.start_line, node.end_line)
        if span is None:
            lines = self._render_block(node, self._root_context())
            return _Chunk(lines, node.kind, node.level, start=node.start_line, end=node.end_line)
        for child in node.walk():
            if child.kind is NodeKind.LINK_DEFINITION:
                self.references.mark_emitted(child.name, child.url, child.title)
        return _Chunk(
            span.split("\n"), node.kind, node.level,
            verbatim=True, start=node.start_line, end=node.end_line,
        )

    def _root_context(self) -> Context:
        return Context(width=self.options.line_width)

    def _render_footnotes(self, notes: Sequence[Node]) -> list[str]:
        lines: list[str] = []
        spacious = False
        for note in notes:
            rendered = self._render_footnote_definition(note, self._root_context())
            current = len(note.children) > 1
            if lines and (spacious or current):
                lines.append("")
            lines.extend(rendered)
            spacious = current
        return lines

    # ------------------------------------------------------------------
    # Reference definitions
    # ------------------------------------------------------------------

    def _track(self, label: str, node: Node) -> None:
        """Queue the definition a reference-style link or image relies on."""
        self.references.add(label, node.url, node.title, node.start_line)

    def _can_shortcut(self, text: str, node: Node) -> bool:
        """Whether an inline link may become the shortcut reference ``[text]``."""
        if not text.strip() or "\n" in text or text.startswith("^"):
            return False
        if _UNESCAPED_BRACKET_RE.search(text):
            return False
        key = normalizeReference(text)
        if not key:
            return False
        target = (node.url, node.title)
        queued = self.references.target(text)
        if queued is not None and queued != target:
            return False
        defined = self.document.definitions.get(key)
        return defined is None or (defined.url, defined.title) == target

    # ------------------------------------------------------------------
    # Warnings
    # ------------------------------------------------------------------

    def _warn(self, line: int, message: str, code: WarningCode) -> None:
        self.warnings.append(FormatWarning(line, message, code))

    def _scan_undefined(self, block: Node) -> None:
        """Warn about bracketed text that looks like an unresolved reference."""
        for node in block.walk():
            if node.kind not in _INLINE_HOSTS:
                continue
            if node.kind is NodeKind.PARAGRAPH and self._is_abbreviation(node):
                continue
            text, offsets, lines = _flatten_inline(node.children, node.start_line)
            for match in _UNDEFINED_REFERENCE_RE.finditer(text):
                label = match.group(2) or match.group(1)
                if label.startswith(("^", "!")):
                    continue
                if normalizeReference(label) in self._loose_labels:
                    continue
                index = max(bisect.bisect_right(offsets, match.start()) - 1, 0)
                line = lines[index] if lines else node.start_line
                self._warn(line, f"undefined reference link [{label}]", WarningCode.UNDEFINED_REFERENCE)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def _render_block(self, node: Node, ctx: Context, previous: Node | None = None) -> list[str]:
        """Render one block to unprefixed lines."""
        if node.kind is NodeKind.LIST:
            return self._render_list(node, ctx, previous)
        if node.kind is NodeKind.THEMATIC_BREAK:
            return self._render_thematic_break(node, ctx, previous)
        renderer = _BLOCK_RENDERERS.get(node.kind)
        if renderer is None:
            return []
        return renderer(self, node, ctx)

    def _render_children(
        self,
        children: Sequence[Node],
        ctx: Context,
        *,
        tight: bool = False,
        item: bool = False,
        lead: str = "",
    ) -> list[str]:
        """Render sibling blocks inside a container.

        Siblings are separated by a blank line, except in tight list items.
        *lead* is written before the first line of the first child.
        """
        lines: list[str] = []
        previous: Node | None = None
        for child in children:
            child_ctx = ctx
            if lead and previous is None and child.kind is NodeKind.PARAGRAPH:
                child_ctx = replace(ctx, lead=lead)
            rendered = self._render_block(child, child_ctx, previous)
            if not rendered:
                continue
            if previous is None:
                if lead and child.kind is not NodeKind.PARAGRAPH:
                    rendered[0] = lead + rendered[0]
            elif item and tight:
                if previous.kind in (NodeKind.BLOCK_QUOTE, NodeKind.ALERT) and (
                    child.kind is NodeKind.PARAGRAPH
                ):
                    # Keeps the paragraph from continuing the quote lazily.
                    lines.append(">")
            elif item and child.kind is NodeKind.LIST and (
                child.start_line - previous.end_line <= 1
            ):
                pass
            else:
                lines.append("")
            lines.extend(rendered)
            previous = child
        return lines

    def _render_paragraph(self, node: Node, ctx: Context) -> list[str]:
        if ctx.top_level and self._is_abbreviation(node):
            span = self.source.span(node.start_line, node.end_line)
            if span is not None:
                for line in span.split("\n"):
                    match = _LOOSE_DEFINITION_RE.match(line)
                    if match:
                        self._loose_labels.add(normalizeReference(match.group(1)))
                return span.split("\n")
        text = _InlineWriter(self).render(node.children)
        return wrap_text(text, ctx.lead, "", ctx.width).split("\n")

    def _is_abbreviation(self, node: Node) -> bool:
        span = self.source.span(node.start_line, node.end_line)
        if span is None:
            return False
        trimmed = span.strip()
        return trimmed.startswith("*[") and "]:" in trimmed

    def _render_heading(self, node: Node, ctx: Context) -> list[str]:
        text = self._heading_text(node)
        level = node.level
        setext = self.options.setext_h1 if level == 1 else self.options.setext_h2
        if level <= 2 and setext and _setext_safe(text):
            underline = ("=" if level == 1 else "-") * display_width(text)
            return [text, underline]
        match = _ATX_CLOSING_RE.search(text)
        if match is not None:
            text = text[: match.start(1)] + "\\" + text[match.start(1) :]
        hashes = "#" * level
        return [f"{hashes} {text}" if text else hashes]

    def _heading_text(self, node: Node) -> str:
        writer = _InlineWriter(self, protect=self.options.sentence_case)
        text = writer.render(node.children)
        text = text.replace(SOFT_BREAK, " ").replace("\n", " ").strip()
        if not self.options.sentence_case:
            return text
        text = to_sentence_case(text, self.proper_nouns, self.common_nouns)
        for index, original in enumerate(writer.protected):
            text = text.replace(f"{PROTECTED_MARK}{index}{PROTECTED_MARK}", original, 1)
        return text

    def _render_thematic_break(
        self, node: Node, ctx: Context, previous: Node | None = None
    ) -> list[str]:
        leading = " " * self.options.thematic_break_leading_spaces
        if ctx.indented or (
            previous is not None and previous.kind is NodeKind.DESCRIPTION_LIST
        ):
            # After a description list, leading spaces would put the rule
            # inside the last details.
            leading = ""
        return [leading + self.options.thematic_break_style]

    def _render_code_block(self, node: Node, ctx: Context) -> list[str]:
        o = self.options
        code_info = parse_info(node.info, o.default_language)
        code = node.literal
        formatter = o.formatters.get(code_info.language) if code_info.language else None
        if formatter is not None and not code_info.skip_format:
            code = self._format_code(node, formatter, code, code_info.language)
        body = code[:-1] if code.endswith("\n") else code
        fence = choose_fence(body, code_info.info, o.fence_char, o.min_fence_length)
        separator = " " if code_info.info and o.space_after_fence else ""
        lines = [fence + separator + code_info.info]
        if code:
            lines.extend(body.split("\n"))
        lines.append(fence)
        return lines

    def _format_code(
        self, node: Node, formatter: FormatterCommand, code: str, language: str
    ) -> str:
        tags = {"language": language}
        self._metrics.increment("hongdown.formatter_runs_total", tags=tags)
        try:
            formatted = run_formatter(formatter, code, language)
        except HongdownFormatterError as exc:
            self._metrics.increment(
                "hongdown.formatter_failures_total",
                tags={**tags, "code": ErrorCode(exc.code).value},
            )
            logger.warning(
                "code formatter failed",
                extra={"extra_fields": {
                    "op": "format_code",
                    "language": language,
                    "line": node.start_line,
                    "error_code": exc.code,
                }},
            )
            self._warn(
                node.start_line,
                f"formatter for {language!r} failed: {exc.message}",
                WarningCode.FORMATTER_FAILED,
            )
            return code
        if formatted and not formatted.endswith("\n"):
            formatted += "\n"
        return formatted

    def _render_html_block(self, node: Node, ctx: Context) -> list[str]:
        return node.literal.rstrip("\n").split("\n")

    def _render_front_matter(self, node: Node, ctx: Context) -> list[str]:
        span = self.source.span(node.start_line, node.end_line)
        if span is not None:
            return span.split("\n")
        return ["---", *node.literal.rstrip("\n").split("\n"), "---"]

    def _render_block_quote(self, node: Node, ctx: Context) -> list[str]:
        inner = ctx.nested(2, list_depth=0, indented=False)
        lines: list[str] = []
        if node.kind is NodeKind.ALERT:
            lines.append(f"[!{node.name}]")
            if node.children and node.children[0].start_line > node.start_line + 1:
                lines.append("")
        lines.extend(self._render_children(node.children, inner))
        if not lines:
            return [">"]
        return [f"> {line}" if line else ">" for line in lines]

    def _render_list(self, node: Node, ctx: Context, previous: Node | None = None) -> list[str]:
        depth = ctx.list_depth + 1
        markers = self._list_markers(node, depth, previous)
        if not markers:
            return []
        leading = max(len(marker) - len(marker.lstrip(" ")) for marker in markers)
        shift = 0
        if ctx.item_width:
            o = self.options
            indent_width = o.ordered_indent_width if node.ordered else o.unordered_indent_width
            shift = max(0, min(indent_width - ctx.item_width, 3 - leading))
        pad = " " * shift
        # A blank line before a code block or quote inside an item makes the
        # whole list loose.
        tight = node.tight and not any(_needs_blank_line(item) for item in node.children)
        lines: list[str] = []
        for index, (item, marker) in enumerate(zip(node.children, markers)):
            if index and not tight:
                lines.append("")
            for line in self._render_item(item, ctx, marker, depth, tight, shift):
                lines.append(pad + line if line else line)
        return lines

    def _list_markers(self, node: Node, depth: int, previous: Node | None) -> list[str]:
        o = self.options
        count = len(node.children)
        follows = (
            previous is not None
            and previous.kind is NodeKind.LIST
            and previous.ordered == node.ordered
        )
        used = self._used_markers.get(id(previous), previous.delimiter) if follows else ""
        if not node.ordered:
            bullet = o.unordered_marker
            if used == bullet:
                # Two adjacent lists with one bullet would merge.
                bullet = "*" if bullet == "-" else "-"
            self._used_markers[id(node)] = bullet
            marker = (
                " " * o.unordered_leading_spaces
                + bullet
                + " " * max(o.unordered_trailing_spaces, 1)
            )
            return [marker] * count
        delimiter = o.odd_level_marker if depth % 2 else o.even_level_marker
        if used == delimiter:
            delimiter = ")" if delimiter == "." else "."
        self._used_markers[id(node)] = delimiter
        numbers = [str(node.start + index) for index in range(count)]
        number_width = max((len(number) for number in numbers), default=1)
        width = max(o.ordered_indent_width, number_width + 2)
        markers = []
        for number in numbers:
            label = number.rjust(number_width) if o.ordered_pad == "start" else number
            markers.append((label + delimiter).ljust(width))
        return markers

    def _render_item(
        self, item: Node, ctx: Context, marker: str, depth: int, tight: bool, shift: int
    ) -> list[str]:
        width = display_width(marker)
        inner = ctx.nested(width + shift, list_depth=depth, item_width=width, indented=True)
        task = ""
        if item.checked is not None:
            task = "[x] " if item.checked else "[ ] "
        body = self._render_children(item.children, inner, tight=tight, item=True, lead=task)
        if not body:
            return [marker + task if task else marker.rstrip()]
        indent = " " * width
        rest = [indent + line if line else line for line in body[1:]]
        first = item.children[0] if item.children else None
        if not body[0] or (first is not None and first.kind is NodeKind.THEMATIC_BREAK):
            head = indent + body[0] if body[0] else ""
            return [marker.rstrip(), head, *rest]
        return [marker + body[0], *rest]

    def _render_table(self, node: Node, ctx: Context) -> list[str]:
        broken_rows = []
        for row in node.children:
            line = self.source.line(row.start_line)
            if line is not None and find_unescaped_pipes(line):
                broken_rows.append(row.start_line)
        for line_number in broken_rows:
            self._warn(
                line_number,
                "unescaped pipe inside a code span splits the table cell; escape it as \\|",
                WarningCode.UNESCAPED_TABLE_PIPE,
            )
        if broken_rows and ctx.top_level:
            span = self.source.span(node.start_line, node.end_line)
            if span is not None:
                return span.split("\n")
        writer = _InlineWriter(self)
        rows = [
            [
                writer.render(cell.children).replace(SOFT_BREAK, " ").replace("\n", " ").strip()
                for cell in row.children
            ]
            for row in node.children
        ]
        return render_table(rows, node.alignments)

    def _render_description_list(self, node: Node, ctx: Context) -> list[str]:
        lines: list[str] = []
        for item in node.children:
            if lines:
                lines.append("")
            for child in item.children:
                if child.kind is NodeKind.DESCRIPTION_TERM:
                    term = _InlineWriter(self).render(child.children)
                    lines.append(term.replace(SOFT_BREAK, " ").replace("\n", " ").strip())
                elif child.kind is NodeKind.DESCRIPTION_DETAILS:
                    lines.extend(self._render_details(child, ctx))
        return lines

    def _render_details(self, node: Node, ctx: Context) -> list[str]:
        inner = ctx.nested(4, list_depth=0, indented=True)
        body = self._render_children(node.children, inner)
        if not body:
            return []
        first = body[0]
        if node.children[0].kind is NodeKind.LIST:
            # The marker already follows ":   " on the first line.
            first = first.lstrip(" ")
        return [":   " + first, *("    " + line if line else line for line in body[1:])]

    def _render_footnote_definition(self, node: Node, ctx: Context) -> list[str]:
        label = f"[^{node.name}]:"
        children = node.children
        if not children:
            return [label]
        inner = ctx.nested(4, list_depth=0, indented=True)
        first = children[0]
        if first.kind is NodeKind.PARAGRAPH:
            prefix = label + " "
            text = _InlineWriter(self).render(first.children)
            lines = wrap_text(
                text, prefix, " " * display_width(prefix), ctx.width
            ).split("\n")
        else:
            lines = [label, *_indent(self._render_block(first, inner), 4)]
        if len(children) > 1:
            lines.append("")
            lines.extend(_indent(self._render_children(children[1:], inner), 4))
        return lines


# ---------------------------------------------------------------------------
# Inline content
# ---------------------------------------------------------------------------

class _InlineWriter:
    """Renders the inline content of one block to a single string.

    The string holds :data:`~hongdown.serializer.wrap.SOFT_BREAK` for the
    author's line breaks and ``"\\n"`` for hard breaks; wrapping happens
    afterwards.

    Parameters
    ----------
    serializer:
        Supplies options, the reference tracker and document definitions.
    protect:
        Replace constructs whose case must survive sentence-casing with
        placeholders; the originals are kept in :attr:`protected`.
    """

    def __init__(self, serializer: Serializer, *, protect: bool = False) -> None:
        self._serializer = serializer
        self._punctuation = SmartPunctuation(serializer.options)
        self._smart = self._punctuation.enabled
        self._protect = protect
        self.protected: list[str] = []

    def render(self, nodes: Sequence[Node]) -> str:
        out: list[str] = []
        self._write(nodes, out)
        return "".join(out)

    def _emit(self, out: list[str], text: str) -> None:
        if not self._protect:
            out.append(text)
            return
        index = len(self.protected)
        self.protected.append(text)
        out.append(f"{PROTECTED_MARK}{index}{PROTECTED_MARK}")

    def _write(self, nodes: Sequence[Node], out: list[str]) -> None:
        for index, node in enumerate(nodes):
            previous = nodes[index - 1] if index else None
            following = nodes[index + 1] if index + 1 < len(nodes) else None
            kind = node.kind
            if kind is NodeKind.TEXT:
                self._text(node, previous, following, out)
            elif kind is NodeKind.SOFT_BREAK:
                out.append(SOFT_BREAK)
            elif kind is NodeKind.LINE_BREAK:
                out.append("\n")
            elif kind is NodeKind.CODE:
                out.append(code_span(node.literal, node.raw))
            elif kind in (NodeKind.EMPH, NodeKind.STRONG, NodeKind.STRIKETHROUGH):
                delimiter = node.delimiter or _DEFAULT_DELIMITERS[kind]
                out.append(delimiter)
                self._write(node.children, out)
                out.append(delimiter)
            elif kind is NodeKind.HTML_INLINE:
                self._emit(out, node.literal.replace("\n", SOFT_BREAK))
            elif kind is NodeKind.FOOTNOTE_REFERENCE:
                self._emit(out, f"[^{node.name}]")
            elif kind is NodeKind.LINK:
                self._emit(out, self._link(node, following))
            elif kind is NodeKind.IMAGE:
                self._emit(out, self._image(node))

    def _text(
        self, node: Node, previous: Node | None, following: Node | None, out: list[str]
    ) -> None:
        if node.raw is not None:
            self._emit(out, node.raw)
            return
        text = node.literal
        if self._smart:
            last = next((part[-1] for part in reversed(out) if part), "")
            text = self._punctuation.transform(text, last, _leading_char(following))
        before = previous.literal[-1:] if _is_text(previous) else ""
        after = following.literal[:1] if _is_text(following) else ""
        out.append(escape_text(text, before, after))

    # ------------------------------------------------------------------
    # Links and images
    # ------------------------------------------------------------------

    def _link_text(self, node: Node) -> str:
        protect = self._protect
        self._protect = False
        try:
            inner: list[str] = []
            self._write(node.children, inner)
        finally:
            self._protect = protect
        return "".join(inner).replace(SOFT_BREAK, " ")

    def _link(self, node: Node, following: Node | None) -> str:
        serializer = self._serializer
        raw = node.raw or ""
        if node.autolink:
            return raw or f"<{node.url}>"
        style = detect_reference_style(raw) if raw else ReferenceStyle("inline")
        if style.is_reference:
            serializer._track(style.label, node)
            for child in node.walk():
                if child is not node and child.kind is NodeKind.IMAGE and child.raw:
                    image_style = detect_reference_style(child.raw)
                    if image_style.is_reference:
                        serializer._track(image_style.label, child)
            return normalize_whitespace(raw)
        if _is_autolink_candidate(node):
            return f"<{node.url}>"
        text = self._link_text(node)
        has_image = any(child.kind is NodeKind.IMAGE for child in node.children)
        if (
            not has_image
            and _EXTERNAL_URL_RE.match(node.url)
            and serializer._can_shortcut(text, node)
        ):
            serializer.references.add(text, node.url, node.title, node.start_line)
            if _continues_link(following):
                return f"[{text}][]"
            return f"[{text}]"
        return f"[{text}]({format_destination(node.url)}{format_title(node.title)})"

    def _image(self, node: Node) -> str:
        raw = node.raw
        if raw:
            style = detect_reference_style(raw)
            if style.is_reference:
                self._serializer._track(style.label, node)
            return normalize_whitespace(raw)
        alt = escape_text(node.text_content())
        return f"![{alt}]({format_destination(node.url)}{format_title(node.title)})"


# ---------------------------------------------------------------------------
# Block renderer dispatch table
# ---------------------------------------------------------------------------

_BlockRenderer = Callable[[Serializer, Node, Context], list[str]]

_BLOCK_RENDERERS: dict[NodeKind, _BlockRenderer] = {
    NodeKind.PARAGRAPH: Serializer._render_paragraph,
    NodeKind.HEADING: Serializer._render_heading,
    NodeKind.CODE_BLOCK: Serializer._render_code_block,
    NodeKind.HTML_BLOCK: Serializer._render_html_block,
    NodeKind.FRONT_MATTER: Serializer._render_front_matter,
    NodeKind.BLOCK_QUOTE: Serializer._render_block_quote,
    NodeKind.ALERT: Serializer._render_block_quote,
    NodeKind.TABLE: Serializer._render_table,
    NodeKind.DESCRIPTION_LIST: Serializer._render_description_list,
    NodeKind.FOOTNOTE_DEFINITION: Serializer._render_footnote_definition,
    # LIST and THEMATIC_BREAK are handled in _render_block, LINK_DEFINITION
    # renders nothing.
}

_DEFAULT_DELIMITERS: dict[NodeKind, str] = {
    NodeKind.EMPH: "*",
    NodeKind.STRONG: "**",
    NodeKind.STRIKETHROUGH: "~~",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def serialize(document: Document, options: FormatOptions | None = None) -> FormatResult:
    """Format *document* and collect the warnings raised on the way."""
    serializer = Serializer(document, options or FormatOptions())
    output = serializer.serialize()
    return FormatResult(output, serializer.warnings)


def _join(chunks: Sequence[_Chunk], source: SourceLines) -> str:
    lines: list[str] = []
    previous: _Chunk | None = None
    for chunk in chunks:
        if previous is not None:
            lines.extend(_separator(previous, chunk, source))
        lines.extend(chunk.lines)
        previous = chunk
    if not lines:
        return ""
    return "\n".join(lines).rstrip("\n") + "\n"


def _separator(previous: _Chunk, chunk: _Chunk, source: SourceLines) -> list[str]:
    if previous.verbatim and chunk.verbatim and previous.end and chunk.start:
        gap = chunk.start - previous.end - 1
        if gap <= 0:
            return []
        between = source.span(previous.end + 1, chunk.start - 1)
        return between.split("\n") if between is not None else [""] * gap
    if previous.kind is NodeKind.FRONT_MATTER:
        return [""]
    if (
        chunk.kind is NodeKind.HEADING
        and chunk.level == 2
        and previous.kind is not NodeKind.HEADING
    ):
        return ["", ""]
    return [""]


def _indent(lines: Sequence[str], width: int) -> list[str]:
    pad = " " * width
    return [pad + line if line else line for line in lines]


def _needs_blank_line(item: Node) -> bool:
    """Whether a list item holds a code block or quote after its first child."""
    return any(
        child.kind in (NodeKind.CODE_BLOCK, NodeKind.BLOCK_QUOTE, NodeKind.ALERT)
        for child in item.children[1:]
    )


def _trailing_comment_start(blocks: Sequence[Node]) -> int:
    """Index of the run of plain HTML comments that ends the document."""
    index = len(blocks)
    while index > 0:
        node = blocks[index - 1]
        literal = node.literal.strip()
        if (
            node.kind is not NodeKind.HTML_BLOCK
            or not literal.startswith("<!--")
            or not literal.endswith("-->")
            or parse_directive(literal) is not None
        ):
            break
        index -= 1
    return index


def _first_footnote_references(root: Node) -> dict[str, int]:
    lines: dict[str, int] = {}
    for node in root.walk():
        if node.kind is NodeKind.FOOTNOTE_REFERENCE and node.name:
            line = node.start_line
            if node.name not in lines or line < lines[node.name]:
                lines[node.name] = line
    return lines


def _setext_safe(text: str) -> bool:
    """Whether *text* reads back as the same heading above an underline."""
    if not text or text.startswith("<") or "|" in text:
        return False
    tokens = tokenize(text)
    return bool(tokens) and not is_line_start_hazard(tokens[0][0])


def _is_text(node: Node | None) -> bool:
    return node is not None and node.kind is NodeKind.TEXT


def _leading_char(node: Node | None) -> str:
    """First character *node* renders as (close enough for punctuation)."""
    if node is None:
        return ""
    kind = node.kind
    if kind is NodeKind.TEXT:
        return (node.raw if node.raw is not None else node.literal)[:1]
    if kind in (NodeKind.SOFT_BREAK, NodeKind.LINE_BREAK):
        return " "
    if kind in _DEFAULT_DELIMITERS:
        return (node.delimiter or _DEFAULT_DELIMITERS[kind])[:1]
    if kind is NodeKind.CODE:
        return "`"
    if kind is NodeKind.IMAGE:
        return "!"
    if kind is NodeKind.HTML_INLINE or (kind is NodeKind.LINK and node.autolink):
        return "<"
    return "["


def _continues_link(following: Node | None) -> bool:
    """Whether ``[text]`` followed by *following* would read as more link syntax."""
    if following is None:
        return False
    if following.kind is NodeKind.TEXT:
        return (following.raw if following.raw is not None else following.literal)[:1] in ("(", ":")
    if following.kind is NodeKind.LINK:
        return not following.autolink
    return following.kind is NodeKind.FOOTNOTE_REFERENCE


def _is_autolink_candidate(node: Node) -> bool:
    if node.title or not node.children:
        return False
    if any(child.kind is not NodeKind.TEXT for child in node.children):
        return False
    return node.text_content() == node.url and _SCHEME_RE.match(node.url) is not None


def _flatten_inline(nodes: Sequence[Node], line: int) -> tuple[str, list[int], list[int]]:
    """Plain text of *nodes* for the undefined-reference scan.

    Returns the text plus parallel lists of character offsets and the
    source line each offset starts on.  Escapes, code, links and other
    constructs become :data:`_OPAQUE` so brackets inside them never match.
    """
    parts: list[str] = []
    offsets: list[int] = []
    lines: list[int] = []
    length = 0

    def visit(children: Sequence[Node]) -> None:
        nonlocal length
        for node in children:
            if node.kind is NodeKind.TEXT:
                piece = node.literal if node.raw is None else _OPAQUE
            elif node.kind in (NodeKind.SOFT_BREAK, NodeKind.LINE_BREAK):
                piece = " "
            elif node.kind in _DEFAULT_DELIMITERS:
                visit(node.children)
                continue
            else:
                piece = _OPAQUE
            offsets.append(length)
            lines.append(node.start_line or line)
            parts.append(piece)
            length += len(piece)

    visit(nodes)
    return "".join(parts), offsets, lines
