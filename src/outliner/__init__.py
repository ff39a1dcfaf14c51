"""Outline tree engine.

An immutable forest of outline items with structural edits (indent, outdent, merge,
move, fold), zoom scoping, visible-order navigation, focus handling with auto-prune,
and quick-find / link and tag autocompletion.
"""

from __future__ import annotations

__version__ = "0.1.0"
