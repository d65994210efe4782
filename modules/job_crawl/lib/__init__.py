# modules/job_crawl/lib/__init__.py
from __future__ import annotations

# Re-export commonly-used types for convenience
from .config import ConfigError, Settings
from .engine import Pipeline, Stage, run_enrichment, run_listing, run_once
from .models import NOT_FOUND, DetailRecord, FilterDimension, ItemReference, Query

# Built-in site adapters register themselves on import
from . import sites as _sites  # noqa: F401

__all__ = [
    "NOT_FOUND",
    "ConfigError",
    "DetailRecord",
    "FilterDimension",
    "ItemReference",
    "Pipeline",
    "Query",
    "Settings",
    "Stage",
    "run_enrichment",
    "run_listing",
    "run_once",
]
