"""
Paginator: walk page 1, 2, 3, ... of one listing query until it runs dry.

Termination modes:
  - NO_NEW_ITEMS (default): a page that adds nothing new to the DedupStore
    has no continuation. Survives sites that keep re-serving the last page.
  - EMPTY_PAGE: a page with zero items has no continuation. Faster, but only
    safe on sites known to return an empty page past the end.

In both modes a page with has_more=False, or one that failed to fetch, has
no continuation either.

Pages are fetched `batch_size` at a time through the worker pool. The batch
is folded into the store in page order once every page has settled, and the
loop stops only when no page of the batch had a continuation.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from . import logging_bridge
from .config import ConfigError
from .dedup import DedupStore
from .models import PageResult, Query
from .pool import run_bounded
from .sites.base import FetchError

log = logging.getLogger(__name__)


class TerminationMode(str, Enum):
    NO_NEW_ITEMS = "no_new_items"
    EMPTY_PAGE = "empty_page"


@dataclass
class PaginationResult:
    query: Query
    store: DedupStore
    pages_fetched: int = 0
    failed_pages: list[int] = field(default_factory=list)
    stop_reason: str = ""

    @property
    def items(self):
        return self.store.values()


@dataclass
class _Outcome:
    page: int
    result: PageResult | None = None
    error: str | None = None


class Paginator:
    def __init__(
        self,
        fetch: Callable[[Query], PageResult],
        *,
        mode: TerminationMode | str = TerminationMode.NO_NEW_ITEMS,
        batch_size: int = 1,
        max_pages: int | None = None,
    ) -> None:
        if batch_size < 1:
            raise ConfigError(f"batch_size must be >= 1, got {batch_size!r}")
        if max_pages is not None and max_pages < 1:
            raise ConfigError(f"max_pages must be >= 1, got {max_pages!r}")
        self.fetch = fetch
        self.mode = TerminationMode(mode)
        self.batch_size = batch_size
        self.max_pages = max_pages

    def run(self, query: Query, store: DedupStore | None = None) -> PaginationResult:
        """
        Paginate `query` from its page number onwards, feeding `store`
        (a fresh one if not given). Never raises for fetch failures.
        """
        t0 = time.perf_counter_ns()
        out = PaginationResult(query=query, store=store if store is not None else DedupStore())
        page = max(1, query.page)

        while True:
            if self.max_pages is not None and page > self.max_pages:
                out.stop_reason = "max_pages"
                break

            count = self.batch_size
            if self.max_pages is not None:
                count = min(count, self.max_pages - page + 1)
            pages = list(range(page, page + count))

            tasks = [(lambda p=p: self._fetch_page(query.with_page(p))) for p in pages]
            outcomes = run_bounded(tasks, self.batch_size, label="listing_page")
            out.pages_fetched += len(pages)

            any_continuation = False
            failed_now = 0
            for p, outcome in zip(pages, outcomes):
                if outcome is None or outcome.result is None:
                    out.failed_pages.append(p)
                    failed_now += 1
                    continue
                any_continuation |= self._continues(outcome.result, out.store)

            if not any_continuation:
                out.stop_reason = "fetch_error" if failed_now == len(pages) else "exhausted"
                break
            page += count

        logging_bridge.activity({
            "component": "job_crawl.paginator",
            "op": "paginate",
            "query": query.describe(),
            "mode": self.mode.value,
            "pages_fetched": out.pages_fetched,
            "failed_pages": out.failed_pages,
            "items": out.store.size(),
            "stop_reason": out.stop_reason,
            "total_us": int((time.perf_counter_ns() - t0) // 1000),
        })
        return out

    def _fetch_page(self, query: Query) -> _Outcome:
        try:
            return _Outcome(page=query.page, result=self.fetch(query))
        except FetchError as e:
            log.info("stopping %s: %s", query.describe(), e)
            return _Outcome(page=query.page, error=repr(e))

    def _continues(self, result: PageResult, store: DedupStore) -> bool:
        new_count = store.insert_many(result.items)
        if not result.has_more:
            return False
        if self.mode is TerminationMode.EMPTY_PAGE:
            return bool(result.items)
        return new_count > 0
