"""Event subscribers: the JSONL recorder and the recents/favorites index."""

from __future__ import annotations

from outliner.recording.file_recorder import FileEventRecorder
from outliner.recording.recents import RecentEntry, RecentsIndex

__all__ = ["FileEventRecorder", "RecentEntry", "RecentsIndex"]
