"""Scoped logging context.

Fields pushed here are added to every log record emitted inside the scope
by the ContextualFilter installed in configure_logging().
"""

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Dict, Iterator

_log_context: ContextVar[Dict[str, Any]] = ContextVar("log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the fields active in the current scope."""
    return dict(_log_context.get())


def clear_log_context() -> None:
    """Drop every context field. Intended for tests."""
    _log_context.set({})


@contextmanager
def log_context(**fields: Any) -> Iterator[Dict[str, Any]]:
    """Add fields to every record logged inside the with-block.

    Nested scopes merge with the enclosing one; the previous fields are
    restored on exit, including when an exception escapes.

    Example:
        >>> with log_context(entity="web1", check="cpu"):
        ...     logger.info("Sending notification")
    """
    token = _log_context.set({**_log_context.get(), **fields})
    try:
        yield get_log_context()
    finally:
        _log_context.reset(token)
