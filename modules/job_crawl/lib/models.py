from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

NOT_FOUND = "Not Found"

# dimension name -> item id -> label
ClassificationMap = dict[str, dict[str, str]]


@dataclass(frozen=True)
class ItemReference:
    """
    A single listing entry as discovered on a listing page (pre-enrichment).
    `id` is derived from the url path, so two references with the same id are
    the same item even when their urls carry different tracking parameters.
    """

    id: str
    title: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "title": self.title, "url": self.url}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ItemReference:
        return cls(
            id=str(data.get("id") or "").strip(),
            title=str(data.get("title") or "").strip(),
            url=str(data.get("url") or "").strip(),
        )


@dataclass(frozen=True)
class Query:
    """One listing page request: scope, optional filter, 1-based page number."""

    scope: str
    page: int = 1
    filter_param: str | None = None
    filter_value: str | None = None

    def with_page(self, page: int) -> Query:
        return replace(self, page=page)

    def describe(self) -> str:
        if self.filter_param:
            return f"{self.scope}[{self.filter_param}={self.filter_value}]#{self.page}"
        return f"{self.scope}#{self.page}"


@dataclass
class PageResult:
    items: list[ItemReference] = field(default_factory=list)
    has_more: bool = False


@dataclass(frozen=True)
class FilterDimension:
    """
    A closed, site-defined enumeration used to classify items, e.g. role level.
    - name: key used in ClassificationMap and on DetailRecord.labels
    - param: query-string key the site filters on (e.g. "f_rl")
    - values: ordered (filter_id, label) pairs
    """

    name: str
    param: str
    values: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class DetailRecord:
    id: str
    title: str | None
    url: str
    listing_date: str | None = None
    company: str | None = None
    org_id: str | None = None
    location_city: str | None = None
    location_suburb: str | None = None
    location_region: str | None = None
    work_types: list[str] | None = None
    work_style: str | None = None
    description: str = ""
    listed_salary: str | None = None
    hard_skills: list[str] = field(default_factory=list)
    soft_skills: list[str] = field(default_factory=list)
    labels: dict[str, str] = field(default_factory=dict)

    def label(self, dimension: str) -> str:
        return self.labels.get(dimension) or NOT_FOUND

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "listingDate": self.listing_date,
            "company": self.company,
            "orgId": self.org_id,
            "locationCity": self.location_city,
            "locationSuburb": self.location_suburb,
            "locationRegion": self.location_region,
            "workTypes": list(self.work_types) if self.work_types is not None else None,
            "workStyle": self.work_style,
            "description": self.description,
            "listedSalary": self.listed_salary,
            "hardSkills": list(self.hard_skills),
            "softSkills": list(self.soft_skills),
            "labels": dict(self.labels),
        }
        return out
