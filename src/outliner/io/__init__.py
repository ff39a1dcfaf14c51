"""Snapshot I/O: migration, import/export and the outline file."""
