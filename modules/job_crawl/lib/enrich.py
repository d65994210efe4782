from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from .http_client import TransportError
from .listing import Transport
from .models import NOT_FOUND, ClassificationMap, DetailRecord, ItemReference
from .sites.base import BaseSite, SiteError
from .utils import clean_text, extract_salary, normalize_salary

log = logging.getLogger(__name__)


class EnrichError(SiteError):
    """The detail page of one item could not be fetched."""

    def __init__(self, item: ItemReference, cause: Exception):
        super().__init__(f"detail fetch failed for {item.id}: {cause}")
        self.item = item
        self.cause = cause


class Enricher:
    """
    ItemReference -> DetailRecord: one detail-page fetch plus label lookups.

    Missing optional fields never raise; only a transport failure on the
    detail page does (EnrichError).
    """

    def __init__(self, site: BaseSite, client: Transport, dimensions: Sequence[str]) -> None:
        self.site = site
        self.client = client
        self.dimensions = list(dimensions)

    def enrich(self, item: ItemReference, classification: ClassificationMap) -> DetailRecord:
        try:
            html = self.client.get_text(item.url)
        except TransportError as e:
            raise EnrichError(item, e) from e

        raw = self.site.parse_detail(html)
        description = clean_text(raw.get("description")) or ""
        salary = normalize_salary(clean_text(raw.get("salary"))) or extract_salary(description)

        labels = {dim: classification.get(dim, {}).get(item.id) or NOT_FOUND for dim in self.dimensions}

        return DetailRecord(
            id=item.id,
            title=clean_text(raw.get("title")) or clean_text(item.title),
            url=item.url,
            listing_date=clean_text(raw.get("listing_date")),
            company=clean_text(raw.get("company")),
            org_id=clean_text(raw.get("org_id")),
            location_city=clean_text(raw.get("location_city")),
            location_suburb=clean_text(raw.get("location_suburb")),
            location_region=clean_text(raw.get("location_region")),
            work_types=_clean_list(raw.get("work_types")),
            work_style=clean_text(raw.get("work_style")),
            description=description,
            listed_salary=salary,
            hard_skills=_clean_list(raw.get("hard_skills")) or [],
            soft_skills=_clean_list(raw.get("soft_skills")) or [],
            labels=labels,
        )


def _clean_list(v: Any) -> list[str] | None:
    """Scalar or list -> cleaned list of strings (None when v is None)."""
    if v is None:
        return None
    if not isinstance(v, (list, tuple)):
        v = [v]
    out = [clean_text(x) for x in v]
    return [x for x in out if x]
