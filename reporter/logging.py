"""JSON log lines for the report relay.

Every line carries the id of the HTTP request it was written under, so one
report can be followed from ingress through dedup to the webhook call.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

REQUEST_ID: ContextVar[str | None] = ContextVar("request_id", default=None)

# httpx logs each request at INFO with the full webhook URL, token included.
_QUIET_LOGGERS = ("httpx", "httpcore")
_STRUCTURED_EXTRAS = ("event", "context")


@contextmanager
def request_context(request_id: str) -> Iterator[str]:
    """Tag log lines written inside the block with request_id."""
    token = REQUEST_ID.set(request_id)
    try:
        yield request_id
    finally:
        REQUEST_ID.reset(token)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": REQUEST_ID.get(),
        }
        line.update({name: getattr(record, name) for name in _STRUCTURED_EXTRAS if hasattr(record, name)})
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False, default=str)


def configure_logging(level: str = "INFO") -> None:
    """Send all records to stderr as JSON at the given level."""
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level.upper())
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
