"""
Pipeline driver: listing crawl -> classification maps -> enrichment -> output.

Features:
  - Strictly ordered stages (PENDING -> CRAWLING_LISTING ->
    BUILDING_CLASSIFICATIONS -> ENRICHING -> DONE, FAILED on config errors)
  - Every config problem surfaces before the first request
  - Bounded concurrency for listing pages, dimensions and detail pages
  - Two-phase mode: persist the listing, enrich later from the artifact
  - Dependency injection for testability (`client`, `get_site`)
  - Structured activity/error records via `logging_bridge`
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from . import logging_bridge, store
from .classify import ClassificationResult, build_classification_maps
from .config import ConfigError, Settings, validate_settings
from .dedup import DedupStore
from .enrich import Enricher
from .http_client import HttpClient
from .listing import ListingFetcher, Transport
from .models import NOT_FOUND, DetailRecord, FilterDimension, ItemReference, Query
from .paginator import Paginator
from .pool import run_bounded
from .sites.base import BaseSite


class Stage(str, Enum):
    PENDING = "PENDING"
    CRAWLING_LISTING = "CRAWLING_LISTING"
    BUILDING_CLASSIFICATIONS = "BUILDING_CLASSIFICATIONS"
    ENRICHING = "ENRICHING"
    DONE = "DONE"
    FAILED = "FAILED"


_NEXT_STAGE = {
    Stage.PENDING: Stage.CRAWLING_LISTING,
    Stage.CRAWLING_LISTING: Stage.BUILDING_CLASSIFICATIONS,
    Stage.BUILDING_CLASSIFICATIONS: Stage.ENRICHING,
    Stage.ENRICHING: Stage.DONE,
}


# =============================================================================
# DEFAULT SITE LOOKUP (PRODUCTION)
# =============================================================================
def _default_get_site(kind: str) -> type[BaseSite]:
    from .sites.registry import get as get_site_class

    return get_site_class(kind)


@dataclass
class RunReport:
    scope: str
    discovered: int = 0
    enriched: int = 0
    dropped: list[str] = field(default_factory=list)
    unresolved: dict[str, int] = field(default_factory=dict)
    incomplete_filters: dict[str, list[str]] = field(default_factory=dict)
    failed_dimensions: list[str] = field(default_factory=list)
    durations_us: dict[str, int] = field(default_factory=dict)
    output_path: str | None = None

    def to_meta(self) -> dict[str, Any]:
        return {
            "scope": self.scope,
            "discovered": self.discovered,
            "enriched": self.enriched,
            "dropped": len(self.dropped),
            "dropped_ids": list(self.dropped),
            "unresolved_by_dimension": dict(self.unresolved),
            "incomplete_filters": dict(self.incomplete_filters),
            "failed_dimensions": list(self.failed_dimensions),
            "durations_us": dict(self.durations_us),
            "output_path": self.output_path,
        }


@dataclass
class _Components:
    site: BaseSite
    dimensions: list[FilterDimension]
    paginator: Paginator
    fetcher: ListingFetcher
    enricher: Enricher


def _prepare(settings: Settings, client: Transport, get_site: Callable[[str], type[BaseSite]]) -> _Components:
    """Resolve everything config-dependent. Raises ConfigError, never touches the network."""
    validate_settings(settings)
    site_cls = get_site(settings.site)
    try:
        site = site_cls(continuation=settings.continuation)
    except ValueError as e:
        raise ConfigError(str(e)) from e
    dimensions = settings.resolve_dimensions(site.default_dimensions())
    fetcher = ListingFetcher(site, client)
    paginator = Paginator(
        fetcher.fetch,
        mode=settings.termination,
        batch_size=settings.listing_concurrency,
        max_pages=settings.max_pages,
    )
    enricher = Enricher(site, client, [d.name for d in dimensions])
    return _Components(site=site, dimensions=dimensions, paginator=paginator, fetcher=fetcher, enricher=enricher)


# =============================================================================
# PIPELINE
# =============================================================================
class Pipeline:
    """
    One run over one scope. Not restartable: build a new Pipeline per run.

    Pass `items` to run() to skip the listing crawl (two-phase mode).
    """

    def __init__(
        self,
        settings: Settings,
        *,
        client: Transport | None = None,
        get_site: Callable[[str], type[BaseSite]] | None = None,
    ) -> None:
        self.settings = settings
        self.stage = Stage.PENDING
        self._client = client
        self._get_site = get_site or _default_get_site
        self.report = RunReport(scope=settings.scope)

    def _advance(self, expected: Stage) -> None:
        nxt = _NEXT_STAGE.get(self.stage)
        if nxt is not expected:
            raise RuntimeError(f"illegal stage transition {self.stage.value} -> {expected.value}")
        self.stage = nxt
        logging_bridge.activity({
            "component": "job_crawl.engine",
            "op": "stage",
            "scope": self.settings.scope,
            "stage": nxt.value,
        })

    def run(self, items: Sequence[ItemReference] | None = None) -> list[DetailRecord]:
        if self.stage is not Stage.PENDING:
            raise RuntimeError(f"pipeline already ran (stage={self.stage.value}); create a new one")

        own_client = self._client is None
        client = self._client or HttpClient(
            timeout=self.settings.http_timeout,
            user_agent=self.settings.user_agent,
            retries=self.settings.http_retries,
        )
        try:
            try:
                parts = _prepare(self.settings, client, self._get_site)
            except ConfigError as e:
                self.stage = Stage.FAILED
                logging_bridge.error({
                    "component": "job_crawl.engine",
                    "op": "config",
                    "scope": self.settings.scope,
                    "error": repr(e),
                })
                raise
            return self._run_stages(parts, items)
        finally:
            if own_client:
                client.close()

    def _run_stages(self, parts: _Components, preloaded: Sequence[ItemReference] | None) -> list[DetailRecord]:
        s = self.settings
        rep = self.report
        start_ns = time.perf_counter_ns()

        # ---------------------------------------------------------------------
        # CRAWLING_LISTING
        # ---------------------------------------------------------------------
        self._advance(Stage.CRAWLING_LISTING)
        t0 = time.perf_counter_ns()
        if preloaded is not None:
            items = _dedupe(preloaded)
        else:
            items = parts.paginator.run(Query(scope=s.scope)).items
        rep.discovered = len(items)
        rep.durations_us["listing"] = _since_us(t0)

        # ---------------------------------------------------------------------
        # BUILDING_CLASSIFICATIONS
        # ---------------------------------------------------------------------
        self._advance(Stage.BUILDING_CLASSIFICATIONS)
        t0 = time.perf_counter_ns()
        classification: ClassificationResult = build_classification_maps(
            parts.dimensions,
            s.scope,
            parts.paginator,
            concurrency=s.dimension_concurrency,
        )
        rep.incomplete_filters = classification.incomplete
        rep.failed_dimensions = classification.failed
        rep.durations_us["classification"] = _since_us(t0)

        # ---------------------------------------------------------------------
        # ENRICHING
        # ---------------------------------------------------------------------
        self._advance(Stage.ENRICHING)
        t0 = time.perf_counter_ns()
        maps = classification.maps
        tasks = [(lambda it=it: parts.enricher.enrich(it, maps)) for it in items]
        results = run_bounded(tasks, s.detail_concurrency, label="detail")

        records: list[DetailRecord] = []
        for item, rec in zip(items, results):
            if rec is None:
                rep.dropped.append(item.id)
            else:
                records.append(rec)
        rep.enriched = len(records)
        rep.unresolved = {
            d.name: sum(1 for r in records if r.label(d.name) == NOT_FOUND) for d in parts.dimensions
        }
        rep.durations_us["enrichment"] = _since_us(t0)

        self._advance(Stage.DONE)
        rep.durations_us["_total_us"] = _since_us(start_ns)

        logging_bridge.activity({
            "component": "job_crawl.engine",
            "op": "summary",
            **rep.to_meta(),
        })
        return records


# =============================================================================
# ENTRY POINTS
# =============================================================================
def run_once(
    settings: Settings,
    *,
    client: Transport | None = None,
    get_site: Callable[[str], type[BaseSite]] | None = None,
    write: bool = True,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Full pipeline for settings.scope.

    Returns:
        (document, meta): the output document {scope, totalItems, items} and
        the run summary (counts, unresolved labels, dropped ids, durations).
    """
    pipeline = Pipeline(settings, client=client, get_site=get_site)
    records = pipeline.run()
    return _finish(pipeline, records, write=write)


def run_listing(
    settings: Settings,
    *,
    client: Transport | None = None,
    get_site: Callable[[str], type[BaseSite]] | None = None,
) -> tuple[str, list[ItemReference]]:
    """
    Phase one of two-phase mode: crawl the listing and persist it.

    Returns:
        (path, items) of the written listing artifact.
    """
    own_client = client is None
    transport = client or HttpClient(
        timeout=settings.http_timeout,
        user_agent=settings.user_agent,
        retries=settings.http_retries,
    )
    try:
        parts = _prepare(settings, transport, get_site or _default_get_site)
        items = parts.paginator.run(Query(scope=settings.scope)).items
    finally:
        if own_client:
            transport.close()

    path = store.write_listing(store.listing_path(settings.output_dir, settings.scope), settings.scope, items)
    logging_bridge.activity({
        "component": "job_crawl.engine",
        "op": "listing_saved",
        "scope": settings.scope,
        "total": len(items),
        "path": path,
    })
    return path, items


def run_enrichment(
    settings: Settings,
    listing_file: str,
    *,
    client: Transport | None = None,
    get_site: Callable[[str], type[BaseSite]] | None = None,
    write: bool = True,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Phase two of two-phase mode: classify + enrich the items of a listing
    artifact. Classification re-crawls settings.scope, which normally
    matches the scope recorded in the artifact.
    """
    scope, items = store.load_listing(listing_file)
    if scope and scope != settings.scope:
        logging_bridge.activity({
            "component": "job_crawl.engine",
            "op": "scope_override",
            "listing_scope": scope,
            "scope": settings.scope,
        })
    pipeline = Pipeline(settings, client=client, get_site=get_site)
    records = pipeline.run(items=items)
    return _finish(pipeline, records, write=write)


# =============================================================================
# HELPERS
# =============================================================================
def _finish(pipeline: Pipeline, records: list[DetailRecord], *, write: bool) -> tuple[dict[str, Any], dict[str, Any]]:
    settings = pipeline.settings
    document = store.details_document(settings.scope, records)
    if write:
        path = store.details_path(settings.output_dir, settings.scope)
        pipeline.report.output_path = store.write_json_atomic(path, document)
        logging_bridge.activity({
            "component": "job_crawl.engine",
            "op": "output_saved",
            "scope": settings.scope,
            "total_items": document["totalItems"],
            "path": pipeline.report.output_path,
        })
    return document, pipeline.report.to_meta()


def _dedupe(items: Sequence[ItemReference]) -> list[ItemReference]:
    s = DedupStore()
    s.insert_many(it for it in items if it.id)
    return s.values()


def _since_us(t0: int) -> int:
    return int((time.perf_counter_ns() - t0) // 1000)
