"""
Structured logging.

JSON log lines with the current job id attached to every record emitted
from inside a job's background task.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

_job_id: ContextVar[Optional[str]] = ContextVar("job_id", default=None)

ROOT_LOGGER_NAME = "storyreel"

# Attributes every LogRecord carries; anything else came in through `extra`.
_RESERVED_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        job_id = getattr(record, "job_id", None) or _job_id.get()
        if job_id:
            payload["job_id"] = str(job_id)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in payload:
                payload[key] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def configure_logging(level: str = "INFO") -> None:
    """
    Install the JSON handler on the project root logger.

    Safe to call more than once; the handler is only added the first time.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(level)
    if not any(isinstance(h.formatter, JSONFormatter) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
    root.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger namespaced under the project root logger.

    Args:
        name: Module or component name

    Returns:
        Logger instance
    """
    if name.startswith(ROOT_LOGGER_NAME):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def set_job_id(job_id: Optional[str]) -> None:
    """Bind a job id to the current context (one asyncio task)."""
    _job_id.set(str(job_id) if job_id is not None else None)


def get_job_id() -> Optional[str]:
    return _job_id.get()
