"""Focus controller.

Tracks which item is being edited and where the caret goes. :func:`set_focus` is the only
transition; every navigation helper computes a target id and calls it.

Leaving an item that is empty, childless and writable deletes it. That auto-prune is a
consistency rule rather than a user-visible delete, so the caller only sees it through
the returned tree and the ``item_removed`` event.
"""

from __future__ import annotations

from dataclasses import dataclass

from outliner.events import ItemEvent
from outliner.logging import get_logger
from outliner.models.item import Caret, Direction, Forest
from outliner.tree import mutator
from outliner.tree.store import locate
from outliner.tree.traversal import first_child_in_scope, parent_in_scope, step, visible_ids
from outliner.tree.zoom import scope

logger = get_logger(__name__)


@dataclass(frozen=True)
class FocusState:
    focused_id: str | None = None
    caret: Caret = "end"


@dataclass(frozen=True)
class FocusTransition:
    tree: Forest
    state: FocusState
    events: tuple[ItemEvent, ...] = ()


def set_focus(tree: Forest, state: FocusState, item_id: str | None, caret: Caret = "end") -> FocusTransition:
    """Move focus to ``item_id``, pruning the previously focused item if it is blank."""

    new_state = FocusState(focused_id=item_id, caret=caret)
    prev_id = state.focused_id
    if prev_id is None or prev_id == item_id:
        return FocusTransition(tree=tree, state=new_state)

    loc = locate(tree, prev_id)
    if loc is None or loc.is_locked or not loc.node.is_blank:
        return FocusTransition(tree=tree, state=new_state)

    pruned = mutator.delete(tree, prev_id)
    logger.debug("Pruned blank item %s on focus-out", prev_id)
    return FocusTransition(tree=pruned.tree, state=new_state, events=pruned.events)


def focus_step(
    tree: Forest,
    zoomed_id: str | None,
    state: FocusState,
    direction: Direction,
    caret: Caret = "end",
) -> FocusTransition:
    """Move focus one row up or down in visible order; stays put at an edge."""

    target = step(visible_ids(scope(tree, zoomed_id)), state.focused_id, direction)
    if target is None:
        return FocusTransition(tree=tree, state=state)
    return set_focus(tree, state, target, caret)


def focus_parent(tree: Forest, zoomed_id: str | None, state: FocusState) -> FocusTransition:
    if state.focused_id is None:
        return FocusTransition(tree=tree, state=state)
    target = parent_in_scope(tree, zoomed_id, state.focused_id)
    if target is None:
        return FocusTransition(tree=tree, state=state)
    return set_focus(tree, state, target, "end")


def focus_child(tree: Forest, zoomed_id: str | None, state: FocusState) -> FocusTransition:
    if state.focused_id is None:
        return FocusTransition(tree=tree, state=state)
    target = first_child_in_scope(tree, zoomed_id, state.focused_id)
    if target is None:
        return FocusTransition(tree=tree, state=state)
    return set_focus(tree, state, target, "start")
