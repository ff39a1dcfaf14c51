"""Item event log.

Every published :class:`~outliner.events.ItemEvent` is appended as one JSON line next to
the outline file. Replaying the log rebuilds side indexes such as recents and favorites.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from outliner.events import ItemEvent, ItemEventType
from outliner.logging import get_logger

logger = get_logger(__name__)


class _Subscriber(Protocol):
    def append(self, event: ItemEvent) -> None: ...


@dataclass
class FileEventRecorder:
    """Append-only JSONL log of item events."""

    path: Path

    def __post_init__(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, event: ItemEvent) -> None:
        self.extend((event,))

    def extend(self, events: Iterable[ItemEvent]) -> None:
        """Append several events with a single write."""

        lines = "".join(e.model_dump_json(exclude_none=True) + "\n" for e in events)
        if not lines:
            return
        with self.path.open("a", encoding="utf-8") as f:
            f.write(lines)


def iter_events(path: Path, *, types: Collection[ItemEventType] | None = None) -> Iterator[ItemEvent]:
    """Yield recorded events in order, optionally only those of the given types."""

    if not path.exists():
        return
    with path.open(encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            event = ItemEvent.model_validate_json(line)
            if types is None or event.event_type in types:
                yield event


def replay(path: Path, subscriber: _Subscriber) -> int:
    """Feed every recorded event to ``subscriber``; returns how many were replayed."""

    count = 0
    for event in iter_events(path):
        subscriber.append(event)
        count += 1
    logger.debug("Replayed %d events from %s", count, path)
    return count
