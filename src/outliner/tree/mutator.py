"""Structural mutations of the outline.

Every operation is a pure function ``(tree, args) -> Mutation``. Stale ids, read-only
targets and structurally meaningless requests (indent of a first child, outdent at the
root, ...) are not errors: the returned ``Mutation.tree`` is the input tree itself and no
events are emitted. Callers detect a no-op with ``result.tree is tree``. The only
exception raised is ``TypeError`` from :func:`set_fields` for unsupported field names.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic.alias_generators import to_camel

from outliner import events as ev
from outliner.events import ItemEvent
from outliner.logging import get_logger
from outliner.models.item import Caret, Direction, Forest, Item
from outliner.tree.store import Location, locate, replace_node, rewrite_list, subtree_ids
from outliner.utils.ids import new_item_id, now_ms

logger = get_logger(__name__)

_PATCHABLE_FIELDS = frozenset({"text", "is_collapsed", "is_favorite"})
_FOLD_FIELDS = frozenset({"is_collapsed"})


@dataclass(frozen=True)
class Mutation:
    """Result of a mutation: the new tree, emitted events and an optional focus request.

    ``focus_id`` is ``None`` when the operation does not ask to move focus.
    """

    tree: Forest
    events: tuple[ItemEvent, ...] = ()
    focus_id: str | None = None
    caret: Caret = "end"

    def applied_to(self, tree: Forest) -> bool:
        """Whether this result differs from ``tree``."""
        return self.tree is not tree


def _noop(tree: Forest, op: str, item_id: str | None, reason: str) -> Mutation:
    logger.debug("%s(%s) ignored: %s", op, item_id, reason)
    return Mutation(tree=tree)


def _locate_writable(tree: Forest, op: str, item_id: str) -> Location | Mutation:
    loc = locate(tree, item_id)
    if loc is None:
        return _noop(tree, op, item_id, "not found")
    if loc.is_locked:
        return _noop(tree, op, item_id, "read-only")
    return loc


def _touch(item: Item, now: int, **update: Any) -> Item:
    """Copy ``item`` with ``update`` applied and ``updated_at`` refreshed (never backwards)."""

    update["updated_at"] = max(now, item.updated_at or 0)
    return item.model_copy(update=update)


def _touch_owner(owner: Item | None, now: int) -> Item | None:
    return _touch(owner, now) if owner is not None else None


def new_item(text: str = "", *, now: int | None = None, item_id: str | None = None) -> Item:
    """Build a fresh read-write item."""

    ts = now if now is not None else now_ms()
    return Item(id=item_id or new_item_id(), text=text, created_at=ts, updated_at=ts)


def add_sibling(tree: Forest, item_id: str, text: str = "", *, now: int | None = None) -> Mutation:
    """Insert a new item immediately after ``item_id`` and focus it."""

    loc = _locate_writable(tree, "add_sibling", item_id)
    if isinstance(loc, Mutation):
        return loc

    ts = now if now is not None else now_ms()
    item = new_item(text, now=ts)
    i = loc.index

    def _insert(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
        return _touch_owner(owner, ts), children[: i + 1] + (item,) + children[i + 1 :]

    new_tree = rewrite_list(tree, loc.parent_id, _insert)
    return Mutation(tree=new_tree, events=(ev.created(item),), focus_id=item.id, caret="start")


def add_item(
    tree: Forest,
    parent_id: str | None,
    text: str = "",
    *,
    index: int | None = None,
    now: int | None = None,
) -> Mutation:
    """Add a new item under ``parent_id`` (the root list when ``None``).

    The item is appended unless ``index`` is given. The parent is unfolded so the new item
    is visible.
    """

    if parent_id is not None:
        loc = _locate_writable(tree, "add_item", parent_id)
        if isinstance(loc, Mutation):
            return loc

    ts = now if now is not None else now_ms()
    item = new_item(text, now=ts)

    def _insert(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
        at = len(children) if index is None else max(0, min(index, len(children)))
        new_children = children[:at] + (item,) + children[at:]
        if owner is None:
            return None, new_children
        return _touch(owner, ts, is_collapsed=False), new_children

    new_tree = rewrite_list(tree, parent_id, _insert)
    return Mutation(tree=new_tree, events=(ev.created(item),), focus_id=item.id, caret="start")


def split(tree: Forest, item_id: str, offset: int, *, now: int | None = None) -> Mutation:
    """Split the item's text at ``offset``; the tail moves to a new sibling right after it.

    At offset 0 of a non-empty item the item keeps its text and id, and an empty item is
    inserted before it instead. Focus stays on the item at its start.
    """

    loc = _locate_writable(tree, "split", item_id)
    if isinstance(loc, Mutation):
        return loc

    ts = now if now is not None else now_ms()
    node = loc.node
    offset = max(0, min(offset, len(node.text)))
    i = loc.index

    if offset == 0 and node.text:
        blank = new_item(now=ts)

        def _insert_before(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
            return _touch_owner(owner, ts), children[:i] + (blank,) + children[i:]

        new_tree = rewrite_list(tree, loc.parent_id, _insert_before)
        return Mutation(tree=new_tree, events=(ev.created(blank),), focus_id=node.id, caret="start")

    head, tail = node.text[:offset], node.text[offset:]

    kept = _touch(node, ts, text=head) if head != node.text else node
    item = new_item(tail, now=ts)

    def _split(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
        return _touch_owner(owner, ts), children[:i] + (kept, item) + children[i + 1 :]

    new_tree = rewrite_list(tree, loc.parent_id, _split)
    events: list[ItemEvent] = []
    if kept is not node:
        events.append(ev.changed(kept, "text"))
    events.append(ev.created(item))
    return Mutation(tree=new_tree, events=tuple(events), focus_id=item.id, caret="start")


def delete(tree: Forest, item_id: str, *, now: int | None = None) -> Mutation:
    """Remove an item with its subtree.

    Focus goes to the previous sibling if there is one, else to the parent, else nowhere.
    """

    loc = _locate_writable(tree, "delete", item_id)
    if isinstance(loc, Mutation):
        return loc

    ts = now if now is not None else now_ms()
    i = loc.index

    def _remove(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
        return _touch_owner(owner, ts), children[:i] + children[i + 1 :]

    new_tree = rewrite_list(tree, loc.parent_id, _remove)
    focus_id = loc.previous.id if loc.previous is not None else loc.parent_id
    return Mutation(
        tree=new_tree,
        events=tuple(ev.removed(x) for x in subtree_ids(loc.node)),
        focus_id=focus_id,
        caret="end",
    )


def indent(tree: Forest, item_id: str, *, now: int | None = None) -> Mutation:
    """Make the item the last child of its previous sibling, unfolding that sibling."""

    loc = _locate_writable(tree, "indent", item_id)
    if isinstance(loc, Mutation):
        return loc
    prev = loc.previous
    if prev is None:
        return _noop(tree, "indent", item_id, "first in its list")
    if prev.is_read_only:
        return _noop(tree, "indent", item_id, "previous sibling is read-only")

    ts = now if now is not None else now_ms()
    moved = _touch(loc.node, ts)
    new_parent = _touch(prev, ts, children=prev.children + (moved,), is_collapsed=False)
    i = loc.index

    def _indent(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
        return _touch_owner(owner, ts), children[: i - 1] + (new_parent,) + children[i + 1 :]

    new_tree = rewrite_list(tree, loc.parent_id, _indent)
    return Mutation(tree=new_tree, events=(ev.changed(moved, "position"),))


def outdent(tree: Forest, item_id: str, *, now: int | None = None) -> Mutation:
    """Move the item right after its parent; its following siblings become its children.

    The following siblings are appended after the item's own children in their original
    order. The item is unfolded when it receives them so they stay visible.
    """

    loc = _locate_writable(tree, "outdent", item_id)
    if isinstance(loc, Mutation):
        return loc
    parent = loc.parent
    if parent is None:
        return _noop(tree, "outdent", item_id, "already at root level")

    ts = now if now is not None else now_ms()
    node = loc.node
    trailing = loc.siblings[loc.index + 1 :]
    update: dict[str, Any] = {"children": node.children + trailing}
    if trailing:
        update["is_collapsed"] = False
    moved = _touch(node, ts, **update)
    old_parent = _touch(parent, ts, children=loc.siblings[: loc.index])

    grandparent = loc.grandparent

    def _reinsert(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
        j = next(k for k, c in enumerate(children) if c.id == parent.id)
        return _touch_owner(owner, ts), children[:j] + (old_parent, moved) + children[j + 1 :]

    new_tree = rewrite_list(tree, grandparent.id if grandparent is not None else None, _reinsert)
    return Mutation(tree=new_tree, events=(ev.changed(moved, "position"),))


def move(tree: Forest, item_id: str, direction: Direction, *, now: int | None = None) -> Mutation:
    """Swap the item with its previous (``"up"``) or next (``"down"``) sibling."""

    loc = _locate_writable(tree, "move", item_id)
    if isinstance(loc, Mutation):
        return loc

    i = loc.index
    j = i - 1 if direction == "up" else i + 1
    if j < 0 or j >= len(loc.siblings):
        return _noop(tree, "move", item_id, f"cannot move {direction} at list boundary")

    ts = now if now is not None else now_ms()
    moved = _touch(loc.node, ts)

    def _swap(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
        swapped = list(children)
        swapped[i], swapped[j] = swapped[j], moved
        return _touch_owner(owner, ts), tuple(swapped)

    new_tree = rewrite_list(tree, loc.parent_id, _swap)
    return Mutation(tree=new_tree, events=(ev.changed(moved, "position"),))


def merge(tree: Forest, item_id: str, *, now: int | None = None) -> Mutation:
    """Merge the item into its previous sibling (Backspace at the start of the text).

    The previous sibling gets the item's text and children appended and focus lands at
    the join point. A first item has no merge target: when its text is empty it is
    removed and the parent is focused at its end, otherwise nothing happens.
    """

    loc = _locate_writable(tree, "merge", item_id)
    if isinstance(loc, Mutation):
        return loc

    ts = now if now is not None else now_ms()
    node = loc.node
    prev = loc.previous
    i = loc.index

    if prev is None:
        if node.text != "":
            return _noop(tree, "merge", item_id, "no previous sibling")

        def _drop(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
            return _touch_owner(owner, ts), children[1:]

        new_tree = rewrite_list(tree, loc.parent_id, _drop)
        return Mutation(
            tree=new_tree,
            events=tuple(ev.removed(x) for x in subtree_ids(node)),
            focus_id=loc.parent_id,
            caret="end",
        )

    if prev.is_read_only:
        return _noop(tree, "merge", item_id, "previous sibling is read-only")

    caret = len(prev.text)
    update: dict[str, Any] = {
        "text": prev.text + node.text,
        "children": prev.children + node.children,
    }
    if not prev.children and node.children:
        update["is_collapsed"] = False
    merged = _touch(prev, ts, **update)

    def _merge(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
        return _touch_owner(owner, ts), children[: i - 1] + (merged,) + children[i + 1 :]

    new_tree = rewrite_list(tree, loc.parent_id, _merge)
    return Mutation(
        tree=new_tree,
        events=(ev.changed(merged, "text", "children"), ev.removed(node.id)),
        focus_id=merged.id,
        caret=caret,
    )


def fold_all(tree: Forest, item_id: str, collapse: bool) -> Mutation:
    """Collapse or expand an item and every read-write descendant that has children.

    Fold state is view state: read-only items may be folded, and timestamps are kept.
    """

    loc = locate(tree, item_id)
    if loc is None:
        return _noop(tree, "fold_all", item_id, "not found")
    descend = not loc.is_locked

    def _fold(node: Item, is_target: bool) -> Item:
        children = node.children
        if is_target and not descend:
            new_children = children
        else:
            new_children = tuple(
                _fold(c, False) if c.children and not c.is_read_only else c for c in children
            )
            if all(a is b for a, b in zip(new_children, children)):
                new_children = children
        if node.is_collapsed == collapse and new_children is children:
            return node
        return node.model_copy(update={"is_collapsed": collapse, "children": new_children})

    new_tree = replace_node(tree, item_id, lambda n: _fold(n, True))
    return Mutation(tree=new_tree)


def set_fields(tree: Forest, item_id: str, *, now: int | None = None, **fields: Any) -> Mutation:
    """Patch ``text``, ``is_collapsed`` and/or ``is_favorite`` on one item.

    Read-only items accept fold changes only. Patching values equal to the current ones
    is a no-op.

    Raises:
        TypeError: If a field other than the patchable ones is passed. This is a caller
            bug, not an editing outcome, so it is not reported as a no-op.
    """

    unknown = set(fields) - _PATCHABLE_FIELDS
    if unknown:
        raise TypeError(f"set_fields got unsupported fields: {sorted(unknown)}")

    loc = locate(tree, item_id)
    if loc is None:
        return _noop(tree, "set_fields", item_id, "not found")
    if loc.is_locked and not set(fields) <= _FOLD_FIELDS:
        return _noop(tree, "set_fields", item_id, "read-only")

    node = loc.node
    diff = {k: v for k, v in fields.items() if getattr(node, k) != v}
    if not diff:
        return Mutation(tree=tree)

    if loc.is_locked:
        updated = node.model_copy(update=diff)
    else:
        updated = _touch(node, now if now is not None else now_ms(), **diff)
    new_tree = replace_node(tree, item_id, lambda _n: updated)
    return Mutation(tree=new_tree, events=(ev.changed(updated, *(to_camel(k) for k in diff)),))


def toggle_collapse(tree: Forest, item_id: str, *, now: int | None = None) -> Mutation:
    """Flip the fold state of an item that has children."""

    node = locate(tree, item_id)
    if node is None or not node.node.children:
        return _noop(tree, "toggle_collapse", item_id, "not found or childless")
    return set_fields(tree, item_id, now=now, is_collapsed=not node.node.is_collapsed)


def toggle_favorite(tree: Forest, item_id: str, *, now: int | None = None) -> Mutation:
    node = locate(tree, item_id)
    if node is None:
        return _noop(tree, "toggle_favorite", item_id, "not found")
    return set_fields(tree, item_id, now=now, is_favorite=not node.node.is_favorite)
