"""JSON-lines logging on stderr for the Bitbucket MCP server.

stdout carries the MCP stdio stream, so nothing here may write to it.
Records are rendered as one JSON object per line. Contextual fields passed
through ``extra=`` (tool name, MCP request id, call duration, Bitbucket
error classification) are copied onto the object when present.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, TextIO, Union

from .bitbucket.errors import BitbucketError

CONTEXT_FIELDS = ("request_id", "tool", "duration_ms", "error_kind", "status_code", "retry_after")

# Raised to WARNING by configure_logging
QUIET_LOGGERS = ("asyncio", "aiohttp", "mcp")

_CLOSED_STREAM_MARKERS = ("closed file", "bad file descriptor")


def error_context(error: BaseException) -> Dict[str, Any]:
    """``extra=`` fields describing a failure, for use in ``logger.error`` calls."""
    if isinstance(error, BitbucketError):
        context: Dict[str, Any] = {"error_kind": error.kind.value}
        if error.status_code is not None:
            context["status_code"] = error.status_code
        if error.retry_after is not None:
            context["retry_after"] = error.retry_after
        return context
    return {"error_kind": type(error).__name__}


class SafeStreamHandler(logging.StreamHandler):
    """Stream handler that stays quiet once stderr has gone away.

    ``StreamHandler.emit`` already routes write failures to ``handleError``;
    a closed or invalid stream is dropped there instead of printing a
    "--- Logging error ---" traceback during shutdown.
    """

    def handleError(self, record: logging.LogRecord) -> None:
        error = sys.exc_info()[1]
        if isinstance(error, (ValueError, OSError)):
            message = str(error).lower()
            if any(marker in message for marker in _CLOSED_STREAM_MARKERS):
                return
        super().handleError(record)


class StructuredLogFormatter(logging.Formatter):
    """Render a record as a single JSON object with a UTC ISO-8601 timestamp."""

    def __init__(self, context_fields: Sequence[str] = CONTEXT_FIELDS):
        super().__init__()
        self.context_fields = tuple(context_fields)

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        moment = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return moment.strftime(datefmt)
        return moment.isoformat(timespec="milliseconds")

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info and record.exc_info[1] is not None:
            for key, value in error_context(record.exc_info[1]).items():
                entry.setdefault(key, value)
        for field in self.context_fields:
            value = getattr(record, field, None)
            if value is not None:
                entry[field] = value

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        elif record.exc_text:
            entry["exception"] = record.exc_text
        # Non-JSON extras are rendered with str()
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(
    log_level: Union[str, int] = "INFO", stream: Optional[TextIO] = None
) -> logging.Handler:
    """Replace the root handlers with one JSON handler and return it.

    ``stream`` defaults to ``sys.stderr`` as it is at call time.
    """
    level = log_level.upper() if isinstance(log_level, str) else log_level

    handler = SafeStreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(StructuredLogFormatter())

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handler
