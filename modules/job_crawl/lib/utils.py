from __future__ import annotations

import os
import re
from typing import Any

_WS_RE = re.compile(r"\s+")

# Thousands need full ",ddd" groups so a trailing comma is never part of an amount
_AMOUNT = r"\$(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?k?"

# "$80,000 - $95,000 per annum", "$32.50/hr", "$60k pa"
_SALARY_RE = re.compile(
    rf"{_AMOUNT}(?:\s*-\s*{_AMOUNT})?"
    r"\s*(?:/\s*hr|per hour|per annum|pa\b)?",
    re.IGNORECASE,
)
_DOLLAR_SPLIT_RE = re.compile(r"(?=\$)")


def getenv_str(name: str, default: str | None = None) -> str | None:
    """
    Typed wrapper for environment access.
    """
    val = os.getenv(name)
    return val if val is not None else default


def slugify_scope(scope: str) -> str:
    """'Palmerston North ' -> 'palmerston-north'"""
    return _WS_RE.sub("-", (scope or "").strip().lower())


def clean_text(text: Any) -> str | None:
    """
    Collapse runs of whitespace; empty results become None.
    Scraped JSON can carry numbers or lists where text is expected: lists are
    joined with ", ", other values go through str().
    """
    if text is None:
        return None
    if isinstance(text, (list, tuple)):
        text = ", ".join(s for s in (clean_text(x) for x in text) if s)
    elif not isinstance(text, str):
        text = str(text)
    out = _WS_RE.sub(" ", text).strip()
    return out or None


def normalize_salary(text: str | None) -> str | None:
    """
    Split before every '$' and drop exact repeats, keeping first-seen order.

    Detail pages often render the same amount twice (e.g. a badge and a
    tooltip), which shows up as "$25/hr $25/hr" once the text is flattened.
    """
    if not text:
        return None
    parts: list[str] = []
    for raw in _DOLLAR_SPLIT_RE.split(text):
        part = raw.strip().rstrip(",;").rstrip()
        if part and part not in parts:
            parts.append(part)
    return " ".join(parts) or None


def extract_salary(description: str | None) -> str | None:
    """Pull currency amounts out of free text; None when there are none."""
    if not description:
        return None
    matches = [m.group(0).strip() for m in _SALARY_RE.finditer(description)]
    if not matches:
        return None
    return normalize_salary(" ".join(matches))
