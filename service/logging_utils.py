# service/logging_utils.py
"""
JSON Lines sinks for crawl activity and errors.

One file per stream per day (<prefix>-YYYY-MM-DD.jsonl under LOG_DIR). Every
line is a redacted copy of the caller's record plus `ts` and `_meta`. Location
and rotation settings are read from the environment on each write, so a test
(or a long-running process) can repoint them at any time:

    LOG_DIR                 default ./logs
    ACTIVITY_LOG_PREFIX     default "activity"
    ERROR_LOG_PREFIX        default "error"
    ACTIVITY_LOG_MAX_BYTES  size-rotate a day file once it reaches this (0: off)
"""

from __future__ import annotations

import contextlib
import datetime as _dt
import json
import os
import socket
from collections.abc import Iterable
from typing import Any

REDACTED = "***REDACTED***"

# Substrings of key names whose values never reach disk (case-insensitive)
SECRET_KEY_PARTS = frozenset({
    "password",
    "token",
    "apikey",
    "api_key",
    "secret",
    "authorization",
    "cookie",
    "proxy",
})

_META = {"host": socket.gethostname(), "pid": os.getpid()}


class JsonlStream:
    """A dated JSONL file family, e.g. activity-2026-03-01.jsonl."""

    def __init__(self, prefix_env: str, default_prefix: str) -> None:
        self.prefix_env = prefix_env
        self.default_prefix = default_prefix

    def path(self, day: _dt.date | None = None) -> str:
        prefix = os.getenv(self.prefix_env) or self.default_prefix
        day = day or _dt.date.today()
        return os.path.join(os.getenv("LOG_DIR") or "./logs", f"{prefix}-{day.isoformat()}.jsonl")

    def write(self, record: dict[str, Any]) -> None:
        path = self.path()
        os.makedirs(os.path.dirname(path), exist_ok=True)
        _rotate(path, _max_bytes())

        line = dict(redact(record))
        line.setdefault("ts", _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z"))
        line["_meta"] = dict(_META)
        # default=str: enums and paths land as their string form
        data = (json.dumps(line, ensure_ascii=False, separators=(",", ":"), default=str) + "\n").encode("utf-8")

        # One O_APPEND write per line, so worker threads never interleave.
        # A second attempt covers the directory vanishing under us.
        for attempt in (1, 2):
            try:
                _append(path, data)
                return
            except OSError:
                if attempt == 2:
                    raise
                os.makedirs(os.path.dirname(path), exist_ok=True)


ACTIVITY = JsonlStream("ACTIVITY_LOG_PREFIX", "activity")
ERRORS = JsonlStream("ERROR_LOG_PREFIX", "error")


def write_activity_log(record: dict[str, Any]) -> None:
    """
    Append one activity record (stage changes, pagination summaries, run
    totals). May raise OSError; never mutates `record`.
    """
    ACTIVITY.write(record)


def write_error_log(record: dict[str, Any]) -> None:
    """Append one error record (failed tasks, configuration errors)."""
    ERRORS.write(record)


def get_activity_log_path() -> str:
    return ACTIVITY.path()


def redact(value: Any, parts: Iterable[str] = SECRET_KEY_PARTS) -> Any:
    """
    Deep copy of `value` with secret-looking keys blanked and
    "Bearer <token>" strings reduced to their scheme.
    """
    parts = tuple(parts)
    if isinstance(value, dict):
        return {
            k: REDACTED if isinstance(k, str) and any(p in k.lower() for p in parts) else redact(v, parts)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v, parts) for v in value]
    if isinstance(value, str) and "bearer " in value.lower():
        return f"{value.split(' ', 1)[0]} {REDACTED}"
    return value


def _max_bytes() -> int:
    try:
        return int(os.getenv("ACTIVITY_LOG_MAX_BYTES", "0"))
    except ValueError:
        return 0


def _rotate(path: str, limit: int) -> None:
    if limit <= 0:
        return
    try:
        if os.path.getsize(path) < limit:
            return
    except FileNotFoundError:
        return
    stamp = _dt.datetime.now().strftime("%Y%m%d-%H%M%S")
    with contextlib.suppress(FileNotFoundError):
        os.replace(path, f"{path}.{stamp}")


def _append(path: str, data: bytes) -> None:
    fd = os.open(path, os.O_CREAT | os.O_APPEND | os.O_WRONLY, 0o644)
    try:
        os.write(fd, data)
    finally:
        os.close(fd)
