# job_crawl/sites/zeil.py
"""
Zeil (zeil.com) job board adapter.

Listing:  https://www.zeil.com/jobs/<scope-slug>/all?[f_rl=<id>&]page=<n>
Detail:   https://www.zeil.com/jobs/.../job/<id>

The listing has no reliable pager markup, so has_more is "page had items".
Role level (f_rl) and industry (f_oi) only exist as listing filters; the
detail page never states them.

Most detail fields come from the GTM payload JSON carried on the apply
button (`.callout a[data-click-gtm-event]`). When it's missing we fall back
to visible markup.
"""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import urlencode, urljoin

from bs4 import BeautifulSoup

from ..models import FilterDimension, ItemReference, Query
from ..utils import slugify_scope
from .base import BaseSite
from .registry import register

log = logging.getLogger(__name__)

SITE_URL = "https://www.zeil.com"

ROLE_LEVELS: tuple[tuple[str, str], ...] = (
    ("1", "Intern"),
    ("2", "Entry Level"),
    ("3", "Associate"),
    ("4", "Mid Level"),
    ("5", "Senior"),
    ("6", "Team Lead"),
    ("7", "General Manager"),
    ("8", "Executive/Director"),
)

INDUSTRIES: tuple[tuple[str, str], ...] = (
    ("1", "Accounting"),
    ("2", "Administration & Office Support"),
    ("3", "Advertising, Arts & Media"),
    ("4", "Banking & Financial Services"),
    ("5", "Call Centre & Customer Service"),
    ("6", "CEO & General Management"),
    ("7", "Community Services & Development"),
    ("8", "Construction"),
    ("9", "Consulting & Strategy"),
    ("10", "Design & Architecture"),
    ("11", "Education & Training"),
    ("12", "Engineering"),
    ("13", "Farming, Animals & Conservation"),
    ("14", "Government & Defense"),
    ("15", "Healthcare & Medical"),
    ("16", "Hospitality & Tourism"),
    ("17", "Human Resources & Recruitment"),
    ("18", "Information & Communication Technology"),
    ("19", "Insurance & Superannuation"),
    ("20", "Legal"),
    ("21", "Manufacturing, Transport & Logistics"),
    ("22", "Marketing & Communications"),
    ("23", "Materials, Chemicals & Packaging"),
    ("24", "Mining, Resources & Energy"),
    ("25", "Real Estate & Property"),
    ("26", "Retail & Consumer Products"),
    ("27", "Sales"),
    ("28", "Science & Technology"),
    ("29", "Self Employment"),
    ("30", "Sport & Recreation"),
    ("31", "Trades & Services"),
    ("32", "Utilities"),
)

_LISTING_LINK_SEL = "h3.title.tile.v2 a"
_NEXT_LINK_SEL = "a[rel='next'], .pagination a.next, li.next a"


@register
class ZeilSite(BaseSite):
    kind = "zeil"
    continuation = "non_empty"

    def __init__(self, continuation: str | None = None, site_url: str = SITE_URL) -> None:
        super().__init__(continuation)
        self.site_url = site_url.rstrip("/")

    def default_dimensions(self) -> list[FilterDimension]:
        return [
            FilterDimension(name="role_level", param="f_rl", values=ROLE_LEVELS),
            FilterDimension(name="industry", param="f_oi", values=INDUSTRIES),
        ]

    # --------------------------------------------------------------------- #
    #  Listing
    # --------------------------------------------------------------------- #
    def listing_url(self, query: Query) -> str:
        params: list[tuple[str, str]] = []
        if query.filter_param:
            params.append((query.filter_param, str(query.filter_value)))
        params.append(("page", str(query.page)))
        return f"{self.site_url}/jobs/{slugify_scope(query.scope)}/all?{urlencode(params)}"

    def parse_listing(self, html: str) -> tuple[list[ItemReference], bool]:
        soup = BeautifulSoup(html or "", "html.parser")
        items: list[ItemReference] = []

        for a in soup.select(_LISTING_LINK_SEL):
            title = a.get_text(" ", strip=True)
            href = a.get("href") or ""
            if not title or not href:
                continue
            # Section headers are rendered with the same classes
            if title.lower().startswith("all jobs in"):
                continue
            item_id = self.item_id(href)
            if not item_id:
                continue
            url = href if href.startswith("http") else urljoin(self.site_url + "/", href)
            items.append(ItemReference(id=item_id, title=title, url=url))

        next_link = soup.select_one(_NEXT_LINK_SEL) is not None
        return items, next_link

    # --------------------------------------------------------------------- #
    #  Detail
    # --------------------------------------------------------------------- #
    def parse_detail(self, html: str) -> dict[str, Any]:
        soup = BeautifulSoup(html or "", "html.parser")
        gtm = _gtm_payload(soup)

        def text(selector: str) -> str | None:
            node = soup.select_one(selector)
            return node.get_text(" ", strip=True) if node else None

        pills = soup.select(".job-details ul.pills")

        def pill_items(idx: int) -> list[str]:
            if idx >= len(pills):
                return []
            return [li.get_text(" ", strip=True) for li in pills[idx].select("li")]

        work_types = gtm.get("workTypes")
        if work_types is None:
            employment = text(".job-details ul.icon-list > li:nth-of-type(3)")
            work_types = [employment] if employment else None

        return {
            "job_id": gtm.get("jobId"),
            "title": gtm.get("jobTitle") or text("h2.v2"),
            "company": gtm.get("orgName") or text(".plain-text-link"),
            "org_id": gtm.get("orgId"),
            "location_city": gtm.get("locationCity") or text(".job-details div.splitbox > div p.value"),
            "location_suburb": gtm.get("locationSuburb"),
            "location_region": gtm.get("locationRegion"),
            "work_types": work_types,
            "work_style": gtm.get("workStyle"),
            "listing_date": text(".job-details ul.icon-list li"),
            "description": text(".prose") or "",
            "salary": text("h4.salary"),
            "hard_skills": pill_items(0),
            "soft_skills": pill_items(1),
        }


def _gtm_payload(soup: BeautifulSoup) -> dict[str, Any]:
    node = soup.select_one(".callout a[data-click-gtm-event]")
    raw = node.get("data-click-gtm-event") if node else None
    if not raw:
        return {}
    try:
        data = json.loads(str(raw).replace("&quot;", '"'))
    except ValueError:
        log.debug("zeil: unparseable GTM payload: %.120s", raw)
        return {}
    return data if isinstance(data, dict) else {}
