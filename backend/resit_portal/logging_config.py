"""
Structured JSON logging for the portal.

Every logger lives under the "resit_portal" namespace and its last name
segment is the channel (http, grading, resit, notify). One JSON object is
written to stdout per entry, carrying the current request id.
"""

import logging
import json
import os
import uuid
from datetime import datetime, timezone
from contextvars import ContextVar

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

ROOT_LOGGER = "resit_portal"


class StructuredJsonFormatter(logging.Formatter):
    """Render a record as {timestamp, level, channel, message, context, extra}."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "channel": record.name.rsplit(".", 1)[-1],
            "message": record.getMessage(),
            "context": {
                "request_id": request_id_var.get(""),
                **(getattr(record, "context", None) or {})
            },
            "extra": getattr(record, "extra_data", None) or {}
        }
        return json.dumps(log_entry, default=str)


def setup_logging():
    """Send all portal loggers to stdout through the JSON formatter."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredJsonFormatter())

    portal_logger = logging.getLogger(ROOT_LOGGER)
    portal_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    portal_logger.handlers = [handler]
    portal_logger.propagate = False
    return portal_logger


def get_logger(channel: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{channel}")


def log_with_context(logger: logging.Logger, level: str, message: str,
                     context: dict = None, extra_data: dict = None):
    """
    Emit a structured log entry.

    context holds business identifiers (course_id, student_id, exam_id);
    extra_data holds measurements (duration_ms, row counts).
    """
    logger.log(
        getattr(logging, level.upper(), logging.INFO),
        message,
        extra={"context": context or {}, "extra_data": extra_data or {}}
    )


def generate_request_id() -> str:
    return str(uuid.uuid4())
