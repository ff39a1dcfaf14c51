"""Node store: read primitives and copy-on-write rebuilding of the item forest.

The forest is a tuple of immutable :class:`Item` values. Nothing here mutates a node in
place; edits rebuild the spine from the root down to the changed node and reuse every
untouched subtree as-is.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass

from outliner.models.item import Forest, Item


@dataclass(frozen=True)
class Location:
    """Where an item lives in the forest."""

    node: Item
    parent: Item | None
    siblings: Forest
    index: int
    # Root-first chain of ancestors; the last entry is ``parent``.
    ancestors: tuple[Item, ...] = ()

    @property
    def parent_id(self) -> str | None:
        return self.parent.id if self.parent is not None else None

    @property
    def previous(self) -> Item | None:
        return self.siblings[self.index - 1] if self.index > 0 else None

    @property
    def next(self) -> Item | None:
        return self.siblings[self.index + 1] if self.index + 1 < len(self.siblings) else None

    @property
    def grandparent(self) -> Item | None:
        return self.ancestors[-2] if len(self.ancestors) >= 2 else None

    @property
    def is_locked(self) -> bool:
        """The item or one of its ancestors is read-only."""
        return bool(self.node.is_read_only) or any(a.is_read_only for a in self.ancestors)


def locate(tree: Forest, item_id: str) -> Location | None:
    """Find an item with its parent, sibling list and index. ``None`` means not found."""

    return _locate(tree, item_id, ())


def _locate(nodes: Forest, item_id: str, ancestors: tuple[Item, ...]) -> Location | None:
    for i, node in enumerate(nodes):
        if node.id == item_id:
            parent = ancestors[-1] if ancestors else None
            return Location(node=node, parent=parent, siblings=nodes, index=i, ancestors=ancestors)
        found = _locate(node.children, item_id, ancestors + (node,))
        if found is not None:
            return found
    return None


def find(tree: Forest, item_id: str) -> Item | None:
    loc = locate(tree, item_id)
    return loc.node if loc is not None else None


def walk(tree: Forest) -> Iterator[tuple[Item, tuple[Item, ...]]]:
    """Pre-order traversal yielding ``(item, ancestors)``."""

    stack: list[tuple[Item, tuple[Item, ...]]] = [(n, ()) for n in reversed(tree)]
    while stack:
        node, ancestors = stack.pop()
        yield node, ancestors
        inner = ancestors + (node,)
        stack.extend((c, inner) for c in reversed(node.children))


def iter_items(tree: Forest) -> Iterator[Item]:
    for node, _ancestors in walk(tree):
        yield node


def subtree_ids(node: Item) -> list[str]:
    """Ids of ``node`` and all of its descendants, pre-order."""

    return [n.id for n in iter_items((node,))]


def path_to(tree: Forest, item_id: str) -> tuple[Item, ...]:
    """Root-first path ending at the item itself; empty when not found."""

    loc = locate(tree, item_id)
    if loc is None:
        return ()
    return loc.ancestors + (loc.node,)


def map_items(nodes: Forest, fn: Callable[[Item], Item]) -> Forest:
    """Map ``fn`` over every node, rebuilding only the branches that changed.

    If ``fn`` returns the same object for a node and none of its children changed
    identity, the original node is kept. A list in which nothing changed is returned as
    the very same tuple, so callers can detect a no-op with ``is``.
    """

    changed = False
    out: list[Item] = []
    for node in nodes:
        new_node = fn(node)
        new_children = map_items(new_node.children, fn)
        if new_node is node and new_children is node.children:
            out.append(node)
            continue
        changed = True
        if new_children is not new_node.children:
            new_node = new_node.model_copy(update={"children": new_children})
        out.append(new_node)
    return tuple(out) if changed else nodes


def rewrite_list(
    tree: Forest,
    owner_id: str | None,
    fn: Callable[[Item | None, Forest], tuple[Item | None, Forest]],
) -> Forest:
    """Replace the child list owned by ``owner_id`` (``None`` is the root list).

    ``fn`` receives the owner (``None`` for the root list) and its current children and
    returns the (possibly updated) owner and the new list. Returning the inputs unchanged
    leaves the whole tree reference-equal.
    """

    if owner_id is None:
        _owner, new_list = fn(None, tree)
        return new_list

    def _rewrite(node: Item) -> Item:
        if node.id != owner_id:
            return node
        new_owner, new_list = fn(node, node.children)
        new_owner = new_owner if new_owner is not None else node
        if new_owner is node and new_list is node.children:
            return node
        return new_owner.model_copy(update={"children": new_list})

    return map_items(tree, _rewrite)


def replace_node(tree: Forest, item_id: str, fn: Callable[[Item], Item]) -> Forest:
    """Rebuild the spine to ``item_id`` with ``fn`` applied to that node."""

    return map_items(tree, lambda n: fn(n) if n.id == item_id else n)
