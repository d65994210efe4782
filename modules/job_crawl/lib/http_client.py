# job_crawl/http_client.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

LOG = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "en-US,en;q=0.9",
}


class TransportError(Exception):
    """No response, a non-2xx status, or a timeout while fetching a URL."""

    def __init__(self, url: str, message: str, status: int | None = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status = status


class HttpClient:
    """Shared HTTP client with browser-like headers and a bounded retry policy."""

    def __init__(
        self,
        timeout: float = 15.0,
        user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)",
        retries: int = 3,
        pool_size: int = 20,
    ):
        self.timeout = float(timeout)
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": user_agent, **DEFAULT_HEADERS})

        # retries=0 turns the policy off; failures then surface on first attempt.
        retry = Retry(
            total=max(0, int(retries)),
            backoff_factor=0.5,
            status_forcelist=(429, 500, 502, 503, 504),
            allowed_methods=frozenset(["GET", "HEAD"]),
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry, pool_connections=10, pool_maxsize=pool_size)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def get_text(
        self,
        url: str,
        *,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
        **kwargs: Any,
    ) -> str:
        """GET and return decoded text; every failure becomes TransportError."""
        try:
            resp = self.session.get(url, headers=headers, timeout=timeout or self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(url, f"request failed: {e!r}") from e

        if not 200 <= resp.status_code < 300:
            raise TransportError(url, f"HTTP {resp.status_code}", status=resp.status_code)

        if not resp.encoding and resp.apparent_encoding:
            resp.encoding = resp.apparent_encoding
        return resp.text

    def close(self) -> None:
        try:
            self.session.close()
        except Exception:
            LOG.debug("HttpClient.close() swallow", exc_info=True)

    def __enter__(self) -> HttpClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
