"""Snapshot migration, import and export.

Payloads are plain JSON-ready lists of item dicts using the persisted camelCase field
names. Shape checking happens once, in :func:`load_forest`, through pydantic.
"""

from __future__ import annotations

from typing import Any

from pydantic import TypeAdapter

from outliner import events as ev
from outliner.logging import get_logger
from outliner.models.item import Forest, Item
from outliner.tree.mutator import Mutation
from outliner.tree.store import iter_items, locate, map_items, rewrite_list
from outliner.utils.ids import new_item_id, now_ms

logger = get_logger(__name__)

_FOREST_ADAPTER = TypeAdapter(tuple[Item, ...])


def migrate(tree: Forest, *, now: int | None = None) -> Forest:
    """Backfill missing timestamps with ``now``, keeping every existing value."""

    ts = now if now is not None else now_ms()

    def _backfill(node: Item) -> Item:
        if node.created_at and node.updated_at:
            return node
        return node.model_copy(
            update={
                "created_at": node.created_at or ts,
                "updated_at": node.updated_at or ts,
            }
        )

    return map_items(tree, _backfill)


def regenerate_ids(tree: Forest) -> Forest:
    """Give every item, nested ones included, a fresh id."""

    return map_items(tree, lambda n: n.model_copy(update={"id": new_item_id()}))


def load_forest(payload: Any, *, now: int | None = None) -> Forest:
    """Validate a list of item dicts and migrate it.

    Raises:
        pydantic.ValidationError: If the payload is not a list of item-shaped objects.
    """

    tree = _FOREST_ADAPTER.validate_python(payload)
    return migrate(tree, now=now)


def export_items(tree: Forest) -> list[dict[str, Any]]:
    """Serialize the tree verbatim, view state included, as the backup artifact."""

    return [node.model_dump(mode="json", by_alias=True, exclude_none=True) for node in tree]


def import_items(
    tree: Forest,
    payload: Any,
    *,
    target_id: str | None = None,
    now: int | None = None,
) -> Mutation:
    """Merge an imported forest with fresh ids, at the root or under ``target_id``.

    The payload is validated first; an invalid payload raises before anything changes.
    An unknown or read-only target leaves the tree untouched. A target gets its
    ``updated_at`` refreshed.
    """

    ts = now if now is not None else now_ms()
    imported = regenerate_ids(load_forest(payload, now=ts))
    if not imported:
        return Mutation(tree=tree)

    if target_id is not None:
        loc = locate(tree, target_id)
        if loc is None or loc.is_locked:
            logger.debug("import_items: target %s missing or read-only", target_id)
            return Mutation(tree=tree)

    def _append(owner: Item | None, children: Forest) -> tuple[Item | None, Forest]:
        if owner is None:
            return None, children + imported
        refreshed = max(ts, owner.updated_at or 0)
        return owner.model_copy(update={"is_collapsed": False, "updated_at": refreshed}), children + imported

    new_tree = rewrite_list(tree, target_id, _append)
    created = tuple(ev.created(n) for n in iter_items(imported))
    logger.info("Imported %d items", len(created))
    return Mutation(tree=new_tree, events=created)
