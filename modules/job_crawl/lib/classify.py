"""
Filter classification builder.

Labels like role level or industry only exist as listing filters, so the only
way to learn them is to re-crawl the listing once per filter value and note
which item ids show up. Cost is dimensions x values x pages full listing
crawls; it's the slowest phase of a run and must finish before enrichment,
which only does local lookups.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from . import logging_bridge
from .models import ClassificationMap, FilterDimension, Query
from .paginator import Paginator
from .pool import run_bounded


@dataclass
class ClassificationResult:
    maps: ClassificationMap = field(default_factory=dict)
    # dimension -> filter ids whose pagination stopped on a fetch error
    incomplete: dict[str, list[str]] = field(default_factory=dict)
    # dimensions whose whole build raised; their map is empty
    failed: list[str] = field(default_factory=list)


def build_dimension_map(dimension: FilterDimension, scope: str, paginator: Paginator) -> tuple[dict[str, str], list[str]]:
    """
    id -> label for one dimension. Values are crawled in enumeration order and
    a later value overwrites an earlier one for the same id.
    """
    mapping: dict[str, str] = {}
    incomplete: list[str] = []
    for filter_id, label in dimension.values:
        query = Query(scope=scope, page=1, filter_param=dimension.param, filter_value=filter_id)
        result = paginator.run(query)
        if result.failed_pages:
            incomplete.append(filter_id)
        for item in result.items:
            mapping[item.id] = label
    return mapping, incomplete


def build_classification_maps(
    dimensions: Sequence[FilterDimension],
    scope: str,
    paginator: Paginator,
    *,
    concurrency: int = 1,
) -> ClassificationResult:
    """
    Build every dimension's map. Dimensions share nothing mutable, so they run
    side by side through the worker pool (`concurrency` at a time).
    """
    t0 = time.perf_counter_ns()
    tasks = [(lambda d=d: build_dimension_map(d, scope, paginator)) for d in dimensions]
    built = run_bounded(tasks, concurrency, label="classification")

    out = ClassificationResult()
    for dim, res in zip(dimensions, built):
        if res is None:
            out.maps[dim.name] = {}
            out.failed.append(dim.name)
            continue
        mapping, incomplete = res
        out.maps[dim.name] = mapping
        if incomplete:
            out.incomplete[dim.name] = incomplete

    logging_bridge.activity({
        "component": "job_crawl.classify",
        "op": "build_maps",
        "scope": scope,
        "classified_by_dimension": {name: len(m) for name, m in out.maps.items()},
        "incomplete": out.incomplete,
        "failed": out.failed,
        "total_us": int((time.perf_counter_ns() - t0) // 1000),
    })
    return out
