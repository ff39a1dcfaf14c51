"""Item events emitted by tree mutations.

Mutators never update side indexes themselves. They return events describing which items
were created, changed or removed, and subscribers (the recents index, the JSONL recorder)
consume them. Events can be recorded to JSONL and replayed later.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from outliner.models.item import Item


class ItemEventType(str, Enum):
    """What happened to an item."""

    CREATED = "item_created"
    CHANGED = "item_changed"
    REMOVED = "item_removed"


class ItemEvent(BaseModel):
    """A single item lifecycle event."""

    event_type: ItemEventType
    item_id: str
    text: str | None = None

    # camelCase names of the fields that changed (for CHANGED events)
    fields: list[str] = Field(default_factory=list)
    is_favorite: bool = False
    updated_at: int | None = None

    ts: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def text_changed(self) -> bool:
        return self.event_type == ItemEventType.CHANGED and "text" in self.fields


def created(item: Item) -> ItemEvent:
    return ItemEvent(
        event_type=ItemEventType.CREATED,
        item_id=item.id,
        text=item.text,
        is_favorite=bool(item.is_favorite),
        updated_at=item.updated_at,
    )


def changed(item: Item, *fields: str) -> ItemEvent:
    return ItemEvent(
        event_type=ItemEventType.CHANGED,
        item_id=item.id,
        text=item.text,
        fields=list(fields),
        is_favorite=bool(item.is_favorite),
        updated_at=item.updated_at,
    )


def removed(item_id: str) -> ItemEvent:
    return ItemEvent(event_type=ItemEventType.REMOVED, item_id=item_id)
