"""Outline snapshot file.

The persisted store for the forest: one JSON document holding the exported item list.
Loading always runs the timestamp migration, so older snapshots keep working.
"""

from __future__ import annotations

import json
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from outliner.io.snapshot import export_items, load_forest, migrate
from outliner.logging import get_logger
from outliner.models.item import Forest, Item

logger = get_logger(__name__)

HELP_TEXT = "For help and documentation, import the help outline JSON file."


def default_outline(daily_log_root_text: str = "Daily Log") -> Forest:
    """The starting outline for a fresh store."""

    return migrate(
        (
            Item(id="journal-root", text=daily_log_root_text, is_collapsed=True),
            Item(id="help-info", text=HELP_TEXT),
        )
    )


@dataclass(frozen=True)
class OutlineFile:
    """JSON snapshot file for one outline."""

    path: Path
    daily_log_root_text: str = "Daily Log"

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Forest:
        """Load and migrate the snapshot, or return the default outline if there is none."""

        if not self.path.exists():
            logger.info("No outline at %s, starting from the default outline", self.path)
            return default_outline(self.daily_log_root_text)

        data = json.loads(self.path.read_text(encoding="utf-8"))
        tree = load_forest(data)
        logger.info("Loaded %d root items from %s", len(tree), self.path)
        return tree

    def save(self, tree: Forest) -> None:
        """Write the snapshot atomically."""

        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(export_items(tree), ensure_ascii=False, indent=2)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Saved outline to %s", self.path)
