"""
On-disk JSON documents for a crawl run.

  listing artifact:  {"scope", "total", "items": [ItemReference...]}
  final output:      {"scope", "totalItems", "items": [DetailRecord...]}

Both are written atomically: a temp file in the target directory, fsync,
then os.replace(), so a crash never leaves a half-written document.
"""

from __future__ import annotations

import contextlib
import json
import os
import re
import tempfile
from collections.abc import Sequence
from typing import Any

from . import logging_bridge
from .config import ConfigError
from .models import DetailRecord, ItemReference


def listing_path(output_dir: str, scope: str) -> str:
    return os.path.join(output_dir, f"{_file_stem(scope)}_jobs.json")


def details_path(output_dir: str, scope: str) -> str:
    return os.path.join(output_dir, f"{_file_stem(scope)}_job_details.json")


def write_json_atomic(path: str, doc: Any) -> str:
    d = os.path.dirname(os.path.abspath(path)) or "."
    os.makedirs(d, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".tmp-", suffix=".json", dir=d)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(doc, f, ensure_ascii=False, indent=2)
            f.flush()
            os.fsync(f.fileno())
        # mkstemp creates 0600; published documents are world-readable
        os.chmod(tmp, 0o644)
        os.replace(tmp, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.remove(tmp)
        raise
    return path


def write_listing(path: str, scope: str, items: Sequence[ItemReference]) -> str:
    doc = {"scope": scope, "total": len(items), "items": [it.to_dict() for it in items]}
    return write_json_atomic(path, doc)


def write_details(path: str, scope: str, records: Sequence[DetailRecord]) -> str:
    return write_json_atomic(path, details_document(scope, records))


def details_document(scope: str, records: Sequence[DetailRecord]) -> dict[str, Any]:
    return {"scope": scope, "totalItems": len(records), "items": [r.to_dict() for r in records]}


def load_listing(path: str) -> tuple[str, list[ItemReference]]:
    """
    Read a listing artifact back. Items without an id are skipped; a missing
    or malformed file is a ConfigError (nothing has touched the network yet).
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"listing file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"listing file is invalid JSON: {path}") from e

    if not isinstance(data, dict) or not isinstance(data.get("items"), list):
        raise ConfigError(f"listing file must be an object with an 'items' list: {path}")

    scope = str(data.get("scope") or "").strip()
    items: list[ItemReference] = []
    skipped = 0
    for raw in data["items"]:
        item = ItemReference.from_dict(raw) if isinstance(raw, dict) else None
        if item is None or not item.id or not item.url:
            skipped += 1
            continue
        items.append(item)

    if skipped:
        logging_bridge.error({
            "component": "job_crawl.store",
            "op": "load_listing",
            "path": path,
            "skipped": skipped,
        })
    return scope, items


def _file_stem(scope: str) -> str:
    stem = re.sub(r"[^0-9A-Za-z_-]+", "_", scope.strip())
    return stem.strip("_") or "scope"
