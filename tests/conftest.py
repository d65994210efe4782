# tests/conftest.py
import os
import tempfile

import pytest

from modules.job_crawl.lib import config as jc_config
from tests.fakes import FakeTransport, city_pages


# ---------------------------------------------------------------------
# Live tests are opt-in: use --live or RUN_LIVE_TESTS=1
# ---------------------------------------------------------------------
def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Run tests marked as 'live' (real network calls).",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "live: marks tests that perform live network calls (skipped by default).",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    run_live = config.getoption("--live") or os.getenv("RUN_LIVE_TESTS") == "1"
    if run_live:
        return
    skip_live = pytest.mark.skip(reason="live tests disabled (use --live or RUN_LIVE_TESTS=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip_live)


# ---------------------------------------------------------------------
# Test-wide env defaults (autouse, function-scoped)
# ---------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _env_defaults(monkeypatch):
    # Write logs to a throwaway dir so real logs stay clean (per test)
    tmp_logs = tempfile.mkdtemp(prefix="jc-pytest-logs-")
    monkeypatch.setenv("LOG_DIR", tmp_logs)
    monkeypatch.setenv("ACTIVITY_LOG_PREFIX", "activity-test")
    monkeypatch.setenv("ERROR_LOG_PREFIX", "error-test")
    # Settings read JOB_CRAWL_* as fallbacks; keep the host env out of tests
    for key in list(os.environ):
        if key.startswith("JOB_CRAWL_"):
            monkeypatch.delenv(key, raising=False)
    yield


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------
@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def testcity_transport():
    return FakeTransport(city_pages())


@pytest.fixture
def fresh_settings(tmp_path):
    """
    Return a **brand-new** Settings instance for *each* test.
    - scope: "testcity"
    - output: a per-test temp dir
    """
    return jc_config.Settings.from_env_and_kwargs({
        "scope": "testcity",
        "output_dir": str(tmp_path),
        "listing_concurrency": 2,
        "detail_concurrency": 3,
        "http_retries": 0,
    })
