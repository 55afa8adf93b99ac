"""Session-id logging context for tracing one conversation across modules.

Provides a session_id-aware logger that attaches the conversation's
session id to every log record, so a single guest's booking can be
followed through extraction, validation, and the weather step.

Usage:
    from tablebook.logging_context import get_session_logger, set_session_id

    set_session_id("web-4f2a")
    logger = get_session_logger(__name__)
    logger.info("Processing turn")  # record.session_id == "web-4f2a"
"""

import logging
from contextvars import ContextVar

_session_id: ContextVar[str] = ContextVar("session_id", default="NO_SESSION")

LOG_FORMAT = "%(asctime)s [%(name)s] [%(session_id)s] %(levelname)s: %(message)s"


def set_session_id(session_id: str) -> None:
    """Set the session id for the current async context."""
    _session_id.set(session_id)


def get_session_id() -> str:
    """Retrieve the current session id."""
    return _session_id.get()


class SessionIdFilter(logging.Filter):
    """Injects session_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.session_id = _session_id.get()  # type: ignore[attr-defined]
        return True


def get_session_logger(name: str) -> logging.Logger:
    """Return a logger with the SessionIdFilter attached.

    The filter adds ``session_id`` to each record so formatters can
    include ``%(session_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, SessionIdFilter) for f in logger.filters):
        logger.addFilter(SessionIdFilter())
    return logger


def install_session_filter(handler: logging.Handler) -> None:
    """Attach the SessionIdFilter to a handler.

    Handler-level filtering also covers records from third-party loggers
    (httpx, openai), so ``LOG_FORMAT`` never meets a record without
    ``session_id``.
    """
    if not any(isinstance(f, SessionIdFilter) for f in handler.filters):
        handler.addFilter(SessionIdFilter())
