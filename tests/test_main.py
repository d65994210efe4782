# tests/test_main.py
import pytest

from modules.job_crawl import main
from modules.job_crawl.lib.config import ConfigError


def test_run_builds_settings_and_calls_engine(monkeypatch, tmp_path):
    calls = []

    def fake_engine(settings):
        calls.append(settings)
        return {"scope": settings.scope, "totalItems": 0, "items": []}, {"scope": settings.scope}

    monkeypatch.setattr(main, "_run_engine", fake_engine)

    doc, meta = main.run(scope="Hamilton", output_dir=str(tmp_path), detail_concurrency=4)

    assert doc["scope"] == "Hamilton"
    assert calls[0].detail_concurrency == 4


def test_run_without_scope_fails_fast(monkeypatch):
    monkeypatch.setattr(main, "_run_engine", lambda s: pytest.fail("engine must not run"))

    with pytest.raises(ConfigError):
        main.run()
