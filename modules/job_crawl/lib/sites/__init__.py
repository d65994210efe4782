# job_crawl/sites/__init__.py
from __future__ import annotations

from .base import BaseSite, FetchError, SiteError
from .registry import all_kinds, get, register

# Built-in adapters register themselves on import
from .zeil import ZeilSite

__all__ = [
    "BaseSite",
    "FetchError",
    "SiteError",
    "ZeilSite",
    "all_kinds",
    "get",
    "register",
]
