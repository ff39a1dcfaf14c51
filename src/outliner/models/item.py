"""Outline item model.

Items are immutable values. Every edit builds a new item with ``model_copy(update=...)``,
so untouched subtrees keep their object identity across snapshots.
"""

from __future__ import annotations

from typing import Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Item(BaseModel):
    """One node of the outline.

    JSON field names are camelCase (``isCollapsed``, ``originalId``, ...) to match the
    persisted snapshot format. Unknown fields written by other front ends are kept.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    id: str
    text: str = ""
    children: tuple[Item, ...] = Field(default_factory=tuple)
    is_collapsed: bool = False

    is_read_only: bool | None = None
    original_id: str | None = None
    is_favorite: bool | None = None

    # Epoch milliseconds
    created_at: int | None = None
    updated_at: int | None = None

    @property
    def has_children(self) -> bool:
        return len(self.children) > 0

    @property
    def is_blank(self) -> bool:
        """Empty text and no children: the auto-prune candidate shape."""
        return self.text == "" and not self.children


Forest: TypeAlias = tuple[Item, ...]

Caret: TypeAlias = Literal["start", "end"] | int
Direction: TypeAlias = Literal["up", "down"]
