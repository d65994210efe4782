from __future__ import annotations

import copy
import logging
from typing import Any

# Prefer the service JSONL writer; default to stdlib logging.
# No prints; this module should be silent on import.
_logging_backend = None
try:
    from service import logging_utils as _svc_logging  # type: ignore

    _logging_backend = _svc_logging
except ImportError:
    _logging_backend = None

# Top-level keys that should never reach a log line verbatim
_REDACT_KEYS = {
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "cookie",
    "proxy",
}


def _redact_record(record: dict[str, Any]) -> dict[str, Any]:
    redacted = copy.copy(record)
    for k in list(redacted.keys()):
        lk = str(k).lower()
        if lk in _REDACT_KEYS or lk.endswith("_secret"):
            redacted[k] = "***REDACTED***"
    return redacted


def activity(record: dict[str, Any]) -> None:
    """
    Write an activity record (component/op/counts) to the JSONL activity log
    if the service backend is importable; otherwise log it at INFO.
    """
    payload = _redact_record(record)
    if _logging_backend is not None:
        try:
            _logging_backend.write_activity_log(payload)
            return
        except OSError:
            logging.getLogger("job_crawl.activity").debug("activity log write failed", exc_info=True)
    logging.getLogger("job_crawl.activity").info(payload)


def error(record: dict[str, Any]) -> None:
    """Same as activity(), for the error log."""
    payload = _redact_record(record)
    if _logging_backend is not None:
        try:
            _logging_backend.write_error_log(payload)
            return
        except OSError:
            logging.getLogger("job_crawl.error").debug("error log write failed", exc_info=True)
    logging.getLogger("job_crawl.error").error(payload)
