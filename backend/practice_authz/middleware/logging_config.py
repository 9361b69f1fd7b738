"""
Logging setup.

Every record gets ``request_id`` and ``actor`` attributes from the request
context, so the text format can show them and the JSON format always
carries them. LOG_FORMAT=json switches to one JSON object per line.
"""

import json
import logging
from datetime import datetime, timezone

from practice_authz.middleware.request_context import get_actor, get_request_id

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s [%(request_id)s %(actor)s]: %(message)s"


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = get_request_id() or "-"
        if not getattr(record, "actor", None):
            record.actor = get_actor()
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            "actor": getattr(record, "actor", None),
        }
        if hasattr(record, "duration_ms"):
            entry["duration_ms"] = record.duration_ms
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """Install a single context-aware stream handler on the root logger."""
    handler = logging.StreamHandler()
    handler.addFilter(RequestContextFilter())
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
