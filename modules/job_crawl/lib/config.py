from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .models import FilterDimension
from .utils import getenv_str


# -----------------------------
# Exceptions
# -----------------------------
class ConfigError(ValueError):
    """Raised when provided kwargs/env cannot form a valid Settings."""


TERMINATION_MODES = ("no_new_items", "empty_page")
CONTINUATION_STRATEGIES = ("next_link", "non_empty")

_ENV_PREFIX = "JOB_CRAWL_"


# -----------------------------
# Models
# -----------------------------
@dataclass
class Settings:
    """
    Canonical configuration for one crawl run (one scope on one site).

    Filter dimensions come from the site adapter by default. A JSON file
    (dimensions_path) can replace them, and `dimensions` narrows the set by
    name.
    """

    scope: str = ""
    site: str = "zeil"
    output_dir: str = "."

    # Concurrency (each one is its own worker pool limit)
    listing_concurrency: int = 5
    detail_concurrency: int = 10
    dimension_concurrency: int = 2

    # Pagination
    termination: str = "no_new_items"
    max_pages: int | None = None
    # None: use the site adapter's own continuation strategy
    continuation: str | None = None

    # Transport
    http_timeout: float = 15.0
    http_retries: int = 3
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"

    # Classification
    dimensions: list[str] | None = None
    dimensions_path: str | None = None
    _dimensions_override: list[FilterDimension] | None = field(default=None, repr=False)

    # ------------- convenience -------------
    def resolve_dimensions(self, available: list[FilterDimension]) -> list[FilterDimension]:
        """
        Pick the dimensions for this run from the site defaults (or the file
        override). Unknown names in `dimensions` are a configuration error.
        """
        pool = self._dimensions_override if self._dimensions_override is not None else list(available)
        if self.dimensions is None:
            return pool
        by_name = {d.name: d for d in pool}
        unknown = [n for n in self.dimensions if n not in by_name]
        if unknown:
            raise ConfigError(f"Unknown filter dimension(s): {', '.join(unknown)}. Known: {sorted(by_name)}")
        return [by_name[n] for n in self.dimensions]

    # ------------- constructors -------------
    @classmethod
    def from_env_and_kwargs(cls, kwargs: Mapping[str, Any] | None) -> Settings:
        """
        Build Settings from kwargs, falling back to JOB_CRAWL_* env vars.

        Expected kwargs (all optional unless stated otherwise):

            scope: str                    # REQUIRED, e.g. "Hamilton"
            site: str = "zeil"
            output_dir: str = "."
            listing_concurrency: int = 5
            detail_concurrency: int = 10
            dimension_concurrency: int = 2
            termination: "no_new_items" | "empty_page"
            max_pages: int | None         # safety cap per query
            continuation: "next_link" | "non_empty" | None
            http_timeout: float = 15.0
            http_retries: int = 3         # 0 disables transport retries
            user_agent: str
            dimensions: list[str] | "a,b" # subset of dimension names
            dimensions_path: str          # JSON file replacing site dimensions
        """
        kw = dict(kwargs or {})

        def pick(name: str, default: Any = None) -> Any:
            val = kw.get(name)
            if val is None or val == "":
                val = getenv_str(_ENV_PREFIX + name.upper())
            return default if val is None or val == "" else val

        scope = str(pick("scope", "")).strip()
        if not scope:
            raise ConfigError("Missing scope. Provide 'scope' (e.g. a city name).")

        dims_raw = pick("dimensions")
        dims: list[str] | None = None
        if dims_raw is not None:
            if isinstance(dims_raw, str):
                dims = [d.strip() for d in dims_raw.split(",") if d.strip()]
            elif isinstance(dims_raw, (list, tuple)):
                dims = [str(d).strip() for d in dims_raw if str(d).strip()]
            else:
                raise ConfigError("'dimensions' must be a list or a comma-separated string.")

        max_pages_raw = pick("max_pages")
        continuation = pick("continuation")
        dimensions_path = pick("dimensions_path")

        try:
            settings = cls(
                scope=scope,
                site=str(pick("site", "zeil")).strip().lower(),
                output_dir=str(pick("output_dir", ".")),
                listing_concurrency=int(pick("listing_concurrency", 5)),
                detail_concurrency=int(pick("detail_concurrency", 10)),
                dimension_concurrency=int(pick("dimension_concurrency", 2)),
                termination=str(pick("termination", "no_new_items")).strip().lower(),
                max_pages=int(max_pages_raw) if max_pages_raw is not None else None,
                continuation=str(continuation).strip().lower() if continuation else None,
                http_timeout=float(pick("http_timeout", 15.0)),
                http_retries=int(pick("http_retries", 3)),
                user_agent=str(pick("user_agent", cls.user_agent)),
                dimensions=dims,
                dimensions_path=str(dimensions_path) if dimensions_path else None,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid setting value: {e}") from e

        if settings.dimensions_path:
            settings._dimensions_override = load_dimensions_file(settings.dimensions_path)

        validate_settings(settings)
        return settings


# -----------------------------
# Helpers
# -----------------------------
def load_dimensions_file(path: str) -> list[FilterDimension]:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"dimensions file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"dimensions file is invalid JSON: {path}") from e
    return parse_dimensions(data)


def parse_dimensions(value: Any) -> list[FilterDimension]:
    """
    Parse a flat list into FilterDimension objects.
    Accepts: [{"name": "...", "param": "...", "values": [[id, label], ...]}, ...]
    `values` may also be an object {id: label}.
    """
    if not isinstance(value, list):
        raise ConfigError("Expected a list of dimension objects.")
    out: list[FilterDimension] = []
    seen: set[str] = set()
    for i, item in enumerate(value):
        if not isinstance(item, dict):
            raise ConfigError(f"Dimension[{i}] must be an object.")
        name = str(item.get("name") or "").strip()
        param = str(item.get("param") or "").strip()
        if not name or not param:
            raise ConfigError(f"Dimension[{i}] requires 'name' and 'param'.")
        if name in seen:
            raise ConfigError(f"Dimension[{i}] duplicates name {name!r}.")
        seen.add(name)

        raw_values = item.get("values") or []
        if isinstance(raw_values, dict):
            raw_values = list(raw_values.items())
        if not isinstance(raw_values, list) or not raw_values:
            raise ConfigError(f"Dimension[{i}].values must be a non-empty list of [id, label].")
        values: list[tuple[str, str]] = []
        for j, pair in enumerate(raw_values):
            if not isinstance(pair, (list, tuple)) or len(pair) != 2:
                raise ConfigError(f"Dimension[{i}].values[{j}] must be [id, label].")
            fid, label = str(pair[0]).strip(), str(pair[1]).strip()
            if not fid or not label:
                raise ConfigError(f"Dimension[{i}].values[{j}] has an empty id or label.")
            values.append((fid, label))
        out.append(FilterDimension(name=name, param=param, values=tuple(values)))
    return out


def validate_settings(s: Settings) -> None:
    if not (s.scope or "").strip():
        raise ConfigError("'scope' cannot be empty.")
    if not s.site:
        raise ConfigError("'site' cannot be empty.")
    for name in ("listing_concurrency", "detail_concurrency", "dimension_concurrency"):
        if getattr(s, name) < 1:
            raise ConfigError(f"'{name}' must be >= 1.")
    if s.termination not in TERMINATION_MODES:
        raise ConfigError(f"'termination' must be one of {TERMINATION_MODES}, got {s.termination!r}.")
    if s.continuation is not None and s.continuation not in CONTINUATION_STRATEGIES:
        raise ConfigError(f"'continuation' must be one of {CONTINUATION_STRATEGIES}, got {s.continuation!r}.")
    if s.max_pages is not None and s.max_pages < 1:
        raise ConfigError("'max_pages' must be >= 1 when set.")
    if s.http_timeout <= 0:
        raise ConfigError("'http_timeout' must be > 0.")
    if s.http_retries < 0:
        raise ConfigError("'http_retries' must be >= 0.")
    if not s.output_dir.strip():
        raise ConfigError("'output_dir' cannot be empty.")
