from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

from ..config import CONTINUATION_STRATEGIES
from ..models import FilterDimension, ItemReference, PageResult, Query


class SiteError(Exception):
    """Base exception for site adapter failures."""


class FetchError(SiteError):
    """A listing page could not be fetched; pagination of that query stops."""

    def __init__(self, query: Query, cause: Exception):
        super().__init__(f"listing fetch failed for {query.describe()}: {cause}")
        self.query = query
        self.cause = cause


class BaseSite(ABC):
    """
    Abstract site adapter: knows URLs and markup, never does I/O itself.

    Contract:
      - listing_url(query) builds the URL of one listing page.
      - parse_listing(html) returns (items, next_link_present). It must not
        raise on odd markup; missing nodes simply yield fewer items.
      - parse_detail(html) returns raw (uncleaned) detail fields as a dict.
      - default_dimensions() lists the site's filter enumerations.
    """

    # Concrete subclasses MUST set this to a stable string, e.g. "zeil"
    kind: str = ""
    # How has_more is decided: "next_link" (pager markup) or "non_empty"
    continuation: str = "non_empty"
    # Path segment that carries the item id, e.g. /job/<id>
    id_pattern: re.Pattern[str] = re.compile(r"/job/([^?/#]+)")

    def __init__(self, continuation: str | None = None) -> None:
        if continuation is not None:
            if continuation not in CONTINUATION_STRATEGIES:
                raise ValueError(f"Unknown continuation strategy {continuation!r}")
            self.continuation = continuation

    @abstractmethod
    def listing_url(self, query: Query) -> str:
        raise NotImplementedError

    @abstractmethod
    def parse_listing(self, html: str) -> tuple[list[ItemReference], bool]:
        raise NotImplementedError

    @abstractmethod
    def parse_detail(self, html: str) -> dict[str, Any]:
        raise NotImplementedError

    def default_dimensions(self) -> list[FilterDimension]:
        return []

    # ---- shared helpers ----
    def item_id(self, url: str) -> str | None:
        m = self.id_pattern.search(url or "")
        return m.group(1) if m else None

    def page_result(self, items: list[ItemReference], next_link: bool) -> PageResult:
        if self.continuation == "next_link":
            return PageResult(items=items, has_more=next_link)
        return PageResult(items=items, has_more=bool(items))
