"""
Name: Structured Logger

Responsibilities:
  - Emit one JSON object per log line on stdout
  - Merge the bound request context (request_id, method, path) into each line
  - Pass through `extra=` fields, dropping anything that looks like a secret

Collaborators:
  - context.py: get_context_dict()
  - logging (stdlib)

Notes:
  - Import as: from studyrag.logger import logger
  - LOG_LEVEL env var sets the level (default INFO)
"""

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict

from .context import get_context_dict

# R: Substrings that mark a key as secret ("google_api_key", "db_password", ...)
SENSITIVE_KEYS = ("password", "api_key", "secret", "token", "authorization")

# R: Attributes every LogRecord carries; anything else came from `extra=`
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _is_sensitive(key: str) -> bool:
    lowered = key.lower()
    return any(marker in lowered for marker in SENSITIVE_KEYS)


def _exception_payload(exc_info) -> Dict[str, Any]:
    exc_type, exc_value, _ = exc_info
    return {
        "type": exc_type.__name__ if exc_type else None,
        "message": str(exc_value) if exc_value else None,
        "stacktrace": traceback.format_exception(*exc_info),
    }


class JSONFormatter(logging.Formatter):
    """R: LogRecord -> single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        payload.update(get_context_dict())
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _RESERVED and not _is_sensitive(key)
        )
        if record.exc_info:
            payload["exception"] = _exception_payload(record.exc_info)
        return json.dumps(payload, default=str)


def setup_logger(name: str = "studyrag") -> logging.Logger:
    """R: Return the named logger with a stdout JSON handler attached once."""
    log = logging.getLogger(name)
    log.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    log.propagate = False
    if not any(isinstance(h.formatter, JSONFormatter) for h in log.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        log.addHandler(handler)
    return log


logger = setup_logger()
