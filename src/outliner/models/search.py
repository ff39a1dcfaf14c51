"""Search and suggestion result models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SearchHit(BaseModel):
    """A quick-find match with its ancestor path for disambiguation."""

    id: str
    text: str
    path: list[str] = Field(default_factory=list)


class LinkSuggestion(BaseModel):
    """A ranked ``[[link]]`` completion candidate."""

    id: str
    text: str
    path: list[str] = Field(default_factory=list)
    exact_prefix: bool = False


class TextEdit(BaseModel):
    """Rewritten item text and where the caret lands afterwards."""

    text: str
    caret: int
