"""Serialization of the document tree back to canonical Markdown."""

from __future__ import annotations

from .core import Serializer, serialize

__all__ = [
    "Serializer",
    "serialize",
]
