"""Logging utilities.

Records carry the editing session and the user action being applied, so a debug log of
ignored edits reads like ``[3f2a9c1e/indent] outliner.tree.mutator: indent(x) ignored``.
"""

from __future__ import annotations

import contextlib
import contextvars
import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

_session_var: contextvars.ContextVar[str] = contextvars.ContextVar("outliner_session", default="-")
_action_var: contextvars.ContextVar[str] = contextvars.ContextVar("outliner_action", default="-")


class _ContextFilter(logging.Filter):
    """Inject session context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        record.session = _session_var.get()  # type: ignore[attr-defined]
        record.action = _action_var.get()  # type: ignore[attr-defined]
        return True


@contextlib.contextmanager
def action_context(*, session: str, action: str | None = None) -> Any:
    """Temporarily bind session context for structured logging.

    Args:
        session: Session identifier.
        action: Optional name of the user action being applied.
    """

    token_session = _session_var.set(session)
    token_action = _action_var.set(action or _action_var.get())
    try:
        yield
    finally:
        _session_var.reset(token_session)
        _action_var.reset(token_action)


def configure_logging(level: str = "INFO") -> None:
    """Configure application logging.

    Logs go to stderr so command output on stdout stays machine-readable.

    Args:
        level: Logging level name.
    """

    root = logging.getLogger()
    root.setLevel(level)
    # Replace our handler if configure_logging is called multiple times
    for h in [h for h in root.handlers if isinstance(h, RichHandler)]:
        root.removeHandler(h)

    handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
    handler.addFilter(_ContextFilter())
    handler.setFormatter(logging.Formatter(fmt="[%(session)s/%(action)s] %(name)s: %(message)s"))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a module logger."""

    return logging.getLogger(name)
