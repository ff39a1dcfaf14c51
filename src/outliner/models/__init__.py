"""Pydantic models used across the project."""

from __future__ import annotations

from outliner.models.item import Caret, Direction, Forest, Item
from outliner.models.search import LinkSuggestion, SearchHit, TextEdit

__all__ = [
    "Caret",
    "Direction",
    "Forest",
    "Item",
    "LinkSuggestion",
    "SearchHit",
    "TextEdit",
]
