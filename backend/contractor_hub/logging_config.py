# backend/contractor_hub/logging_config.py
"""
JSON logs on stdout, one object per line.

Routers and services pass context through `extra=`; only the keys listed in
CONTEXT_FIELDS are copied into the output. The current request id is
attached by a filter, so background workers log without one.
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from .config import settings
from .middleware.request_id import get_request_id

CONTEXT_FIELDS = (
    "event",
    "request_id",
    "tenant_id",
    "tenant_slug",
    "user_id",
    "user_email",
    "job_id",
    "quote_id",
    "document_type",
    "method",
    "path",
    "query",
    "status_code",
    "latency_ms",
)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = get_request_id()
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None and value != "":
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def configure_logging() -> None:
    level = settings.log_level.upper()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    # uvicorn --reload re-imports the app; replace rather than stack handlers
    root.handlers[:] = [handler]
    root.setLevel(level)

    logging.getLogger("uvicorn.access").setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(settings.sql_log_level.upper())
    logging.getLogger("httpx").setLevel(settings.httpx_log_level.upper())
    logging.getLogger("celery").setLevel(level)
