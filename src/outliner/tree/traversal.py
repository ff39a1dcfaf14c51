"""Visible-order traversal.

Keyboard navigation never looks at tree shape directly: "up" and "down" are index
arithmetic over :func:`visible_ids`, the pre-order walk that skips folded subtrees.
"""

from __future__ import annotations

from outliner.models.item import Direction, Forest, Item
from outliner.tree.store import locate


def visible_ids(scoped: Forest) -> list[str]:
    """Flatten the scoped items in display order, skipping children of folded items."""

    ids: list[str] = []
    stack: list[Item] = list(reversed(scoped))
    while stack:
        node = stack.pop()
        ids.append(node.id)
        if not node.is_collapsed and node.children:
            stack.extend(reversed(node.children))
    return ids


def step(visible: list[str], current: str | None, direction: Direction) -> str | None:
    """The id above or below ``current`` in visible order, or ``None`` at an edge."""

    if current is None or current not in visible:
        return None
    idx = visible.index(current)
    nxt = idx - 1 if direction == "up" else idx + 1
    if 0 <= nxt < len(visible):
        return visible[nxt]
    return None


def parent_in_scope(tree: Forest, zoomed_id: str | None, item_id: str) -> str | None:
    """Parent of ``item_id``, unless that would leave the zoomed subtree."""

    loc = locate(tree, item_id)
    if loc is None or loc.parent is None:
        return None
    if zoomed_id is not None:
        if loc.parent.id == zoomed_id:
            return None
        if all(a.id != zoomed_id for a in loc.ancestors):
            return None
    return loc.parent.id


def first_child_in_scope(tree: Forest, zoomed_id: str | None, item_id: str) -> str | None:
    """First child of ``item_id`` when it is expanded and inside the zoomed subtree."""

    loc = locate(tree, item_id)
    if loc is None or not loc.node.children or loc.node.is_collapsed:
        return None
    if zoomed_id is not None and all(a.id != zoomed_id for a in loc.ancestors):
        return None
    return loc.node.children[0].id
