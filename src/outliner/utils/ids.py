"""ID and clock utilities."""

from __future__ import annotations

import time
import uuid


def new_item_id() -> str:
    """Return a fresh, never-reused item id."""

    return str(uuid.uuid4())


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds.

    Item timestamps use the same unit as the persisted snapshots.
    """

    return int(time.time() * 1000)
