from __future__ import annotations

from typing import Any

from .lib.config import Settings
from .lib.engine import run_once as _run_engine
from .lib.logging_bridge import activity as log_activity


def run(**kwargs: Any) -> tuple[dict, dict]:
    """
    Entry point for the 'job_crawl' module.

    Accepts kwargs (see Settings.from_env_and_kwargs), including:
      scope: str                      # required, e.g. "Hamilton"
      site: str = "zeil"
      output_dir: str = "."
      listing_concurrency: int = 5
      detail_concurrency: int = 10
      termination: str = "no_new_items"
      dimensions: list[str] | None    # subset of the site's filter dimensions

    Returns:
      (document, meta): the written {scope, totalItems, items} document and
      the run summary (unresolved labels per dimension, dropped items, ...).
    """
    settings = Settings.from_env_and_kwargs(kwargs)

    log_activity({
        "component": "job_crawl.main",
        "op": "start",
        "scope": settings.scope,
        "site": settings.site,
        "termination": settings.termination,
        "concurrency": {
            "listing": settings.listing_concurrency,
            "detail": settings.detail_concurrency,
            "dimension": settings.dimension_concurrency,
        },
    })

    return _run_engine(settings)
