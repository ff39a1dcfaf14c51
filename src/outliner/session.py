"""Outline session: the apply-and-re-render loop around the pure engine.

A session owns the "current tree", the zoom target and the focus state. User actions
call a pure engine function, adopt the returned tree, publish its events to subscribers
and route any focus request through the focus controller (which may auto-prune).
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import date
from typing import Any, Protocol

from outliner.events import ItemEvent
from outliner.focus import FocusState, FocusTransition, focus_child, focus_parent, focus_step, set_focus
from outliner.io.snapshot import import_items
from outliner.journal import go_to_today
from outliner.logging import action_context, get_logger
from outliner.models.item import Caret, Direction, Forest, Item
from outliner.models.search import LinkSuggestion, SearchHit
from outliner.search import apply_link, apply_tag, search, suggest_links, suggest_tags
from outliner.tree import mutator
from outliner.tree.mutator import Mutation
from outliner.tree.traversal import visible_ids
from outliner.tree.zoom import ZoomResult, breadcrumbs, follow, navigate_to, scope, zoom

logger = get_logger(__name__)


class EventSubscriber(Protocol):
    def append(self, event: ItemEvent) -> None: ...


class OutlineSession:
    """Mutable holder of the current tree, zoom and focus for one editor."""

    def __init__(
        self,
        tree: Forest,
        *,
        subscribers: Iterable[EventSubscriber] = (),
        suggestion_limit: int = 10,
        daily_log_root_text: str = "Daily Log",
        session_id: str | None = None,
    ) -> None:
        self.tree: Forest = tree
        self.zoomed_id: str | None = None
        self.focus = FocusState()
        self.subscribers: list[EventSubscriber] = list(subscribers)
        self.suggestion_limit = suggestion_limit
        self.daily_log_root_text = daily_log_root_text
        self.session_id = session_id or uuid.uuid4().hex[:8]

    # Derived views

    @property
    def scoped(self) -> Forest:
        return scope(self.tree, self.zoomed_id)

    @property
    def breadcrumbs(self) -> tuple[Item, ...]:
        return breadcrumbs(self.tree, self.zoomed_id)

    @property
    def visible(self) -> list[str]:
        return visible_ids(self.scoped)

    @property
    def focused_id(self) -> str | None:
        return self.focus.focused_id

    # Plumbing

    def _publish(self, events: Iterable[ItemEvent]) -> None:
        for event in events:
            for sub in self.subscribers:
                sub.append(event)

    def _adopt(self, transition: FocusTransition) -> None:
        self.tree = transition.tree
        self.focus = transition.state
        self._publish(transition.events)

    def apply(self, result: Mutation, action: str) -> bool:
        """Adopt a mutation result; returns whether the tree changed."""

        with action_context(session=self.session_id, action=action):
            changed = result.applied_to(self.tree)
            if changed:
                self.tree = result.tree
                self._publish(result.events)
                logger.debug("%s applied (%d events)", action, len(result.events))
            if result.focus_id is not None:
                self.set_focus(result.focus_id, result.caret)
        return changed

    def _apply_zoom(self, result: ZoomResult, action: str) -> None:
        with action_context(session=self.session_id, action=action):
            self.tree = result.tree
            self._publish(result.events)
            self.zoomed_id = result.zoomed_id
            if result.focus_id is not None:
                self.set_focus(result.focus_id, result.caret)

    # Focus

    def set_focus(self, item_id: str | None, caret: Caret = "end") -> None:
        self._adopt(set_focus(self.tree, self.focus, item_id, caret))

    def focus_up(self, caret: Caret = "end") -> None:
        self._adopt(focus_step(self.tree, self.zoomed_id, self.focus, "up", caret))

    def focus_down(self, caret: Caret = "end") -> None:
        self._adopt(focus_step(self.tree, self.zoomed_id, self.focus, "down", caret))

    def focus_parent(self) -> None:
        self._adopt(focus_parent(self.tree, self.zoomed_id, self.focus))

    def focus_child(self) -> None:
        self._adopt(focus_child(self.tree, self.zoomed_id, self.focus))

    # Edits

    def edit_text(self, item_id: str, text: str) -> bool:
        return self.apply(mutator.set_fields(self.tree, item_id, text=text), "edit_text")

    def set_fields(self, item_id: str, **fields: Any) -> bool:
        return self.apply(mutator.set_fields(self.tree, item_id, **fields), "set_fields")

    def add_sibling(self, item_id: str, text: str = "") -> bool:
        return self.apply(mutator.add_sibling(self.tree, item_id, text), "add_sibling")

    def add_item(self, parent_id: str | None, text: str = "") -> bool:
        return self.apply(mutator.add_item(self.tree, parent_id, text), "add_item")

    def split(self, item_id: str, offset: int) -> bool:
        return self.apply(mutator.split(self.tree, item_id, offset), "split")

    def delete(self, item_id: str) -> bool:
        return self.apply(mutator.delete(self.tree, item_id), "delete")

    def indent(self, item_id: str) -> bool:
        return self.apply(mutator.indent(self.tree, item_id), "indent")

    def outdent(self, item_id: str) -> bool:
        return self.apply(mutator.outdent(self.tree, item_id), "outdent")

    def move(self, item_id: str, direction: Direction) -> bool:
        return self.apply(mutator.move(self.tree, item_id, direction), "move")

    def merge(self, item_id: str) -> bool:
        return self.apply(mutator.merge(self.tree, item_id), "merge")

    def fold_all(self, item_id: str, collapse: bool) -> bool:
        return self.apply(mutator.fold_all(self.tree, item_id, collapse), "fold_all")

    def toggle_collapse(self, item_id: str) -> bool:
        return self.apply(mutator.toggle_collapse(self.tree, item_id), "toggle_collapse")

    def toggle_favorite(self, item_id: str) -> bool:
        return self.apply(mutator.toggle_favorite(self.tree, item_id), "toggle_favorite")

    def import_items(self, payload: Any, target_id: str | None = None) -> bool:
        return self.apply(import_items(self.tree, payload, target_id=target_id), "import")

    # Navigation

    def zoom(self, target: str | None) -> None:
        self._apply_zoom(zoom(self.tree, self.zoomed_id, target), "zoom")

    def navigate_to(self, item_id: str) -> None:
        self._apply_zoom(navigate_to(self.tree, self.zoomed_id, item_id), "navigate")

    def follow(self, item_id: str) -> None:
        self._apply_zoom(follow(self.tree, self.zoomed_id, item_id), "follow")

    def go_to_today(self, today: date | None = None) -> str | None:
        """Open today's journal item, creating it if needed; returns its id."""

        result = go_to_today(self.tree, today or date.today(), root_text=self.daily_log_root_text)
        self.apply(Mutation(tree=result.tree, events=result.events), "today")
        if result.focus_id is not None:
            self.navigate_to(result.focus_id)
        return result.focus_id

    # Search

    def search(self, query: str) -> list[SearchHit]:
        return search(self.tree, query)

    def suggest_links(self, query: str) -> list[LinkSuggestion]:
        return suggest_links(self.tree, query, exclude_id=self.focused_id, limit=self.suggestion_limit)

    def suggest_tags(self, query: str) -> list[str]:
        return suggest_tags(self.tree, query, limit=self.suggestion_limit)

    def complete_link(self, item_id: str, text: str, caret: int, target_text: str) -> int | None:
        """Insert a chosen ``[[link]]`` into the item text; returns the new caret offset."""

        edit = apply_link(text, caret, target_text)
        if edit is None or not self.edit_text(item_id, edit.text):
            return None
        self.set_focus(item_id, edit.caret)
        return edit.caret

    def complete_tag(self, item_id: str, text: str, caret: int, tag: str) -> int | None:
        """Insert a chosen ``#tag`` into the item text; returns the new caret offset."""

        edit = apply_tag(text, caret, tag)
        if edit is None or not self.edit_text(item_id, edit.text):
            return None
        self.set_focus(item_id, edit.caret)
        return edit.caret
