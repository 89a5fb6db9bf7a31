"""
Request context tracking for debugging and logging.
"""

import logging
from contextvars import ContextVar
from uuid import uuid4

# Context variable for request ID
_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"


def get_request_id() -> str | None:
    """Get the current request ID."""
    return _request_id.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID. If None, generates a new one."""
    if request_id is None:
        request_id = str(uuid4())
    _request_id.set(request_id)
    return request_id


class RequestIdFilter(logging.Filter):
    """Stamp the current request ID onto every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    else:
        root.setLevel(level.upper())
    for handler in root.handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
