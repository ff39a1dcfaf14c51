"""Daily log ("go to today").

Days live under ``<root text> / YYYY / MM / YYYY-MM-DD``. Missing levels are created on
demand; the root item is inserted at the top of the forest.
"""

from __future__ import annotations

from datetime import date

from outliner.events import ItemEvent
from outliner.models.item import Forest
from outliner.tree import mutator
from outliner.tree.mutator import Mutation
from outliner.tree.store import find


def _child_with_text(tree: Forest, parent_id: str | None, text: str) -> str | None:
    children = tree if parent_id is None else find(tree, parent_id).children  # type: ignore[union-attr]
    for child in children:
        if child.text == text:
            return child.id
    return None


def go_to_today(
    tree: Forest,
    today: date,
    *,
    root_text: str = "Daily Log",
    now: int | None = None,
) -> Mutation:
    """Find or create today's journal item and request focus on it."""

    day_text = today.isoformat()
    path = [root_text, f"{today.year:04d}", f"{today.month:02d}", day_text]

    events: list[ItemEvent] = []
    parent_id: str | None = None
    for depth, text in enumerate(path):
        existing = _child_with_text(tree, parent_id, text)
        if existing is not None:
            parent_id = existing
            continue
        index = 0 if depth == 0 else None
        added = mutator.add_item(tree, parent_id, text, index=index, now=now)
        if not added.applied_to(tree):
            # Parent is read-only; nothing sensible to create under it.
            return Mutation(tree=tree)
        tree = added.tree
        events.extend(added.events)
        parent_id = added.focus_id

    return Mutation(tree=tree, events=tuple(events), focus_id=parent_id, caret="end")
