from __future__ import annotations

import logging
from typing import Protocol

from .http_client import TransportError
from .models import PageResult, Query
from .sites.base import BaseSite, FetchError

log = logging.getLogger(__name__)


class Transport(Protocol):
    def get_text(self, url: str, *, headers=None, timeout=None) -> str: ...


class ListingFetcher:
    """Fetch + parse one listing page. Transport failures become FetchError."""

    def __init__(self, site: BaseSite, client: Transport) -> None:
        self.site = site
        self.client = client

    def fetch(self, query: Query) -> PageResult:
        url = self.site.listing_url(query)
        try:
            html = self.client.get_text(url)
        except TransportError as e:
            raise FetchError(query, e) from e

        items, next_link = self.site.parse_listing(html)
        result = self.site.page_result(items, next_link)
        log.debug("listing %s -> %d items (has_more=%s)", query.describe(), len(result.items), result.has_more)
        return result
