"""
Structured JSON logging.

Every record is one JSON object. Request-scoped context (the request id and,
inside Twilio webhooks, the call SID) is held in context variables bound by
the HTTP middleware and added to each record emitted while handling it.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

from phone_survey.config import get_settings

correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)
call_sid_var: ContextVar[str | None] = ContextVar("call_sid", default=None)

_QUIET_LOGGERS = ("httpx", "httpcore", "python_multipart", "python_multipart.multipart")
_SQLALCHEMY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "sqlalchemy.dialects")


class StructuredFormatter(logging.Formatter):
    """Render a record as JSON; ``extra=`` fields become top-level keys.

    An extra that collides with a base key is kept under ``extra_<key>``.
    """

    _RESERVED = frozenset(
        logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message"}
    )

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        correlation_id = correlation_id_var.get()
        if correlation_id:
            log_data["correlation_id"] = correlation_id

        for key, value in record.__dict__.items():
            if key in self._RESERVED:
                continue
            log_data[f"extra_{key}" if key in log_data else key] = value

        call_sid = call_sid_var.get()
        if call_sid:
            log_data.setdefault("call_sid", call_sid)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def setup_logging() -> None:
    """Install the JSON handler on the root logger at ``LOG_LEVEL``.

    SQLAlchemy loggers stay at WARNING unless ``SQLALCHEMY_LOG_LEVEL`` is set.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(get_settings().log_level.upper())
    root_logger.handlers = [handler]

    sqlalchemy_level = os.getenv("SQLALCHEMY_LOG_LEVEL", "").strip().upper() or "WARNING"
    for name in _SQLALCHEMY_LOGGERS:
        logging.getLogger(name).setLevel(sqlalchemy_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
