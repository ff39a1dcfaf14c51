"""View scoping ("zoom").

Zooming narrows the displayed list to the children of one item. The breadcrumb path
back to the root drives "zoom out to ancestor" navigation.
"""

from __future__ import annotations

from dataclasses import dataclass

from outliner.events import ItemEvent
from outliner.logging import get_logger
from outliner.models.item import Caret, Forest, Item
from outliner.tree import mutator
from outliner.tree.store import find, locate, path_to
from outliner.tree.traversal import visible_ids

logger = get_logger(__name__)


@dataclass(frozen=True)
class ZoomResult:
    """New tree (a placeholder child may have been created), zoom target and focus request."""

    tree: Forest
    zoomed_id: str | None
    focus_id: str | None = None
    caret: Caret = "end"
    events: tuple[ItemEvent, ...] = ()


def scope(tree: Forest, zoomed_id: str | None) -> Forest:
    """Items to render: the whole forest, or the children of the zoomed item."""

    if zoomed_id is None:
        return tree
    node = find(tree, zoomed_id)
    if node is None:
        logger.debug("scope: zoomed item %s no longer exists", zoomed_id)
        return ()
    return node.children


def breadcrumbs(tree: Forest, zoomed_id: str | None) -> tuple[Item, ...]:
    """Root-first path to the zoomed item (empty at the root or when not found)."""

    if zoomed_id is None:
        return ()
    return path_to(tree, zoomed_id)


def is_zoom_out(tree: Forest, current: str | None, target: str | None) -> bool:
    """Whether zooming to ``target`` walks back up the current breadcrumb path."""

    if target is None:
        return current is not None
    return any(b.id == target for b in breadcrumbs(tree, current))


def zoom(tree: Forest, current: str | None, target: str | None, *, now: int | None = None) -> ZoomResult:
    """Zoom the view to ``target`` (``None`` is the root).

    Zooming into a read-write leaf creates one empty child and focuses it, so a zoomed
    view always has somewhere to type.
    """

    if target is None:
        if current is not None:
            return ZoomResult(tree=tree, zoomed_id=None, focus_id=current)
        ids = visible_ids(tree)
        return ZoomResult(tree=tree, zoomed_id=None, focus_id=ids[0] if ids else None)

    if target == current:
        return ZoomResult(tree=tree, zoomed_id=current)

    loc = locate(tree, target)
    if loc is None:
        logger.debug("zoom: target %s not found", target)
        return ZoomResult(tree=tree, zoomed_id=current)

    zooming_out = is_zoom_out(tree, current, target)
    node = loc.node

    if not node.children and not loc.is_locked:
        added = mutator.add_item(tree, target, now=now)
        return ZoomResult(
            tree=added.tree,
            zoomed_id=target,
            focus_id=added.focus_id,
            caret="end",
            events=added.events,
        )

    if zooming_out and current is not None:
        return ZoomResult(tree=tree, zoomed_id=target, focus_id=current)

    ids = visible_ids(node.children)
    return ZoomResult(tree=tree, zoomed_id=target, focus_id=ids[0] if ids else None)


def navigate_to(tree: Forest, current: str | None, item_id: str) -> ZoomResult:
    """Jump to an item: zoom to its parent (the root for top-level items) and focus it."""

    loc = locate(tree, item_id)
    if loc is None:
        logger.debug("navigate_to: %s not found", item_id)
        return ZoomResult(tree=tree, zoomed_id=current)
    return ZoomResult(tree=tree, zoomed_id=loc.parent_id, focus_id=item_id, caret="end")


def follow(tree: Forest, current: str | None, item_id: str) -> ZoomResult:
    """Open an item; read-only projections redirect to the item they mirror."""

    node = find(tree, item_id)
    if node is None:
        return ZoomResult(tree=tree, zoomed_id=current)
    if node.original_id and find(tree, node.original_id) is not None:
        return navigate_to(tree, current, node.original_id)
    return ZoomResult(tree=tree, zoomed_id=current, focus_id=item_id, caret="end")
