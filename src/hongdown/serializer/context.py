"""Per-block rendering context.

Containers never write their children's prefixes into the children's
output.  They render each child with a narrower :class:`Context` and then
prefix the returned lines themselves (``"> "`` for quotes, spaces for list
items), so the context only carries what a block needs to lay itself out.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any


@dataclass(frozen=True)
class Context:
    """Where a block is being rendered.

    Attributes
    ----------
    width:
        Display columns left for the block's own text once the enclosing
        containers have prefixed it.
    list_depth:
        Number of enclosing lists, counted from the nearest block quote.
    item_width:
        Marker width of the list item that directly contains the block,
        ``0`` when the parent is not a list item.
    indented:
        The block sits inside a list item, description details or a
        footnote definition.
    top_level:
        The block is a direct child of the document.
    lead:
        Text written before the first line of a paragraph (the checkbox of
        a task item).
    """

    width: int
    list_depth: int = 0
    item_width: int = 0
    indented: bool = False
    top_level: bool = True
    lead: str = ""

    def nested(self, prefix_width: int, **changes: Any) -> Context:
        """Context for children whose lines get a *prefix_width* prefix."""
        changes.setdefault("item_width", 0)
        changes.setdefault("lead", "")
        return replace(
            self,
            width=max(self.width - prefix_width, 1),
            top_level=False,
            **changes,
        )
