# tests/fakes.py
"""Canned zeil-like markup and an in-memory transport for offline tests."""

from __future__ import annotations

import html
import json
import threading

from modules.job_crawl.lib.http_client import TransportError

SITE = "https://www.zeil.com"


def listing_html(*items: tuple[str, str], scope: str = "testcity", next_link: bool = False) -> str:
    """Listing page with one card per (id, title)."""
    cards = "".join(
        f'<div class="job-item"><h3 class="title tile v2">'
        f'<a href="/jobs/{scope}/all/job/{item_id}">{html.escape(title)}</a></h3></div>'
        for item_id, title in items
    )
    pager = '<a rel="next" href="?page=next">Next</a>' if next_link else ""
    return f"<html><body><div class='results'>{cards}</div>{pager}</body></html>"


EMPTY_LISTING = listing_html()


def detail_html(
    *,
    gtm: dict | None = None,
    description: str = "",
    salary: str = "",
    listing_date: str = "Listed 3 days ago",
    hard_skills: tuple[str, ...] = (),
    soft_skills: tuple[str, ...] = (),
    extra: str = "",
) -> str:
    callout = ""
    if gtm is not None:
        payload = html.escape(json.dumps(gtm), quote=True)
        callout = f'<div class="callout"><a href="#apply" data-click-gtm-event="{payload}">Apply</a></div>'
    pills = ""
    for group in (hard_skills, soft_skills):
        pills += '<ul class="pills">' + "".join(f"<li>{s}</li>" for s in group) + "</ul>"
    salary_html = f'<h4 class="salary">{salary}</h4>' if salary else ""
    return (
        "<html><body>"
        f"{callout}{extra}"
        '<div class="job-details">'
        f'<ul class="icon-list"><li>{listing_date}</li><li>Hamilton</li><li>Full time</li></ul>'
        f'<div class="splitbox"><div>{salary_html}<p class="value">Hamilton Central</p></div></div>'
        f"{pills}"
        "</div>"
        f'<div class="prose">{description}</div>'
        "</body></html>"
    )


def listing_url(scope: str = "testcity", page: int = 1, param: str | None = None, value: str | None = None) -> str:
    if param:
        return f"{SITE}/jobs/{scope}/all?{param}={value}&page={page}"
    return f"{SITE}/jobs/{scope}/all?page={page}"


def job_url(item_id: str, scope: str = "testcity") -> str:
    return f"{SITE}/jobs/{scope}/all/job/{item_id}"


class FakeTransport:
    """
    URL -> canned HTML. Unknown listing URLs return an empty listing page,
    URLs in `fail` raise TransportError, other unknown URLs 404.
    """

    def __init__(self, pages: dict[str, str] | None = None, *, fail: set[str] | None = None):
        self.pages = dict(pages or {})
        self.fail = set(fail or ())
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def get_text(self, url, *, headers=None, timeout=None):
        with self._lock:
            self.calls.append(url)
        if url in self.fail:
            raise TransportError(url, "HTTP 503", status=503)
        if url in self.pages:
            return self.pages[url]
        if "/all?" in url:
            return EMPTY_LISTING
        raise TransportError(url, "HTTP 404", status=404)

    def close(self):
        pass


def city_pages() -> dict[str, str]:
    """
    'testcity': two listing pages (a, b) then (b) -> 2 unique items.
    role_level f_rl=5 (Senior) lists a; industry f_oi=18 (ICT) lists b.
    """
    return {
        listing_url(page=1): listing_html(("a", "Backend Engineer"), ("b", "Data Analyst")),
        listing_url(page=2): listing_html(("b", "Data Analyst")),
        listing_url(param="f_rl", value="5"): listing_html(("a", "Backend Engineer")),
        listing_url(param="f_oi", value="18"): listing_html(("b", "Data Analyst")),
        job_url("a"): detail_html(
            gtm={
                "jobId": "a",
                "jobTitle": "Backend   Engineer",
                "orgName": "Acme Ltd",
                "orgId": 42,
                "locationCity": "Hamilton",
                "locationSuburb": "Frankton",
                "locationRegion": "Waikato",
                "workTypes": ["Full time"],
                "workStyle": "Hybrid",
            },
            description="Build   APIs.\n\n Salary: $80,000 - $95,000 per annum",
            hard_skills=("Python", " Go "),
            soft_skills=("Communication",),
        ),
        job_url("b"): detail_html(
            gtm={"jobId": "b", "jobTitle": "Data Analyst", "orgName": "Beta"},
            salary="$30/hr $30/hr",
            description="Crunch numbers.",
        ),
    }
