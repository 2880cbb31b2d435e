"""Markdown parsing: the node tree and the markdown-it-py adapter."""

from __future__ import annotations

from .adapter import build_parser, normalize_source, parse_document
from .nodes import BLOCK_KINDS, Document, LinkDefinition, Node, NodeKind, SourcePos

__all__ = [
    "BLOCK_KINDS",
    "Document",
    "LinkDefinition",
    "Node",
    "NodeKind",
    "SourcePos",
    "build_parser",
    "normalize_source",
    "parse_document",
]
