"""Recents and favorites side index.

A subscriber to item events. It never reads the tree: created and text-changed items move
to the front of the recents list, favorite flag changes add or drop favorites, and
removed items (explicit deletes, merges and focus auto-prunes alike) are forgotten.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, TypeAdapter

from outliner.events import ItemEvent, ItemEventType
from outliner.logging import get_logger

logger = get_logger(__name__)


class RecentEntry(BaseModel):
    id: str
    text: str
    updated_at: int | None = None


_ENTRIES = TypeAdapter(list[RecentEntry])


class RecentsIndex:
    """Most recently touched items plus the favorites list."""

    def __init__(self, limit: int = 12) -> None:
        self.limit = limit
        self._recents: list[RecentEntry] = []
        self._favorites: list[RecentEntry] = []

    @property
    def recents(self) -> list[RecentEntry]:
        return list(self._recents)

    @property
    def favorites(self) -> list[RecentEntry]:
        return list(self._favorites)

    def append(self, event: ItemEvent) -> None:
        """Consume one item event."""

        if event.event_type == ItemEventType.REMOVED:
            self.forget(event.item_id)
            return

        if event.event_type == ItemEventType.CREATED or event.text_changed:
            self._touch(event.item_id, event.text, event.updated_at)
            self._rename_favorite(event.item_id, event.text)

        if event.event_type == ItemEventType.CHANGED and "isFavorite" in event.fields:
            if event.is_favorite:
                self._add_favorite(event.item_id, event.text or "")
            else:
                self._favorites = [f for f in self._favorites if f.id != event.item_id]

    def forget(self, item_id: str) -> None:
        self._recents = [r for r in self._recents if r.id != item_id]
        self._favorites = [f for f in self._favorites if f.id != item_id]

    def _touch(self, item_id: str, text: str | None, updated_at: int | None) -> None:
        existing = next((r for r in self._recents if r.id == item_id), None)
        if text is None:
            if existing is None:
                return
            text = existing.text
        rest = [r for r in self._recents if r.id != item_id]
        self._recents = [RecentEntry(id=item_id, text=text, updated_at=updated_at), *rest][: self.limit]

    def _add_favorite(self, item_id: str, text: str) -> None:
        if any(f.id == item_id for f in self._favorites):
            return
        self._favorites.append(RecentEntry(id=item_id, text=text))

    def _rename_favorite(self, item_id: str, text: str | None) -> None:
        if text is None:
            return
        self._favorites = [
            f.model_copy(update={"text": text}) if f.id == item_id else f for f in self._favorites
        ]

    def snapshot(self) -> dict[str, Any]:
        return {
            "recents": [r.model_dump(mode="json") for r in self._recents],
            "favorites": [f.model_dump(mode="json", exclude={"updated_at"}) for f in self._favorites],
        }

    @classmethod
    def restore(cls, data: dict[str, Any], *, limit: int = 12) -> RecentsIndex:
        index = cls(limit=limit)
        index._recents = _ENTRIES.validate_python(data.get("recents", []))[:limit]
        index._favorites = _ENTRIES.validate_python(data.get("favorites", []))
        logger.debug("Restored %d recents and %d favorites", len(index._recents), len(index._favorites))
        return index
