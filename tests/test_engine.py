# tests/test_engine.py
import json

import pytest

from modules.job_crawl.lib import config as jc_config
from modules.job_crawl.lib import engine
from modules.job_crawl.lib.config import ConfigError
from modules.job_crawl.lib.models import NOT_FOUND
from service import logging_utils
from tests.fakes import FakeTransport, city_pages, job_url, listing_url


def _by_id(doc):
    return {item["id"]: item for item in doc["items"]}


# ----------------------------------------------------------------------
# 1. Full run: listing -> classification -> enrichment -> file
# ----------------------------------------------------------------------
def test_full_run_produces_labelled_records(fresh_settings, testcity_transport):
    doc, meta = engine.run_once(fresh_settings, client=testcity_transport)

    assert doc["scope"] == "testcity"
    assert doc["totalItems"] == 2
    assert [i["id"] for i in doc["items"]] == ["a", "b"]

    items = _by_id(doc)
    assert items["a"]["labels"] == {"role_level": "Senior", "industry": NOT_FOUND}
    assert items["b"]["labels"] == {"role_level": NOT_FOUND, "industry": "Information & Communication Technology"}
    assert items["a"]["company"] == "Acme Ltd"
    assert items["b"]["listedSalary"] == "$30/hr"

    assert meta["discovered"] == 2
    assert meta["enriched"] == 2
    assert meta["dropped"] == 0
    assert meta["unresolved_by_dimension"] == {"role_level": 1, "industry": 1}


def test_output_document_written_atomically(fresh_settings, testcity_transport, tmp_path):
    doc, meta = engine.run_once(fresh_settings, client=testcity_transport)

    path = tmp_path / "testcity_job_details.json"
    assert meta["output_path"] == str(path)
    assert json.loads(path.read_text(encoding="utf-8")) == doc
    assert [p.name for p in tmp_path.iterdir() if p.name.startswith(".tmp-")] == []


def test_write_false_leaves_disk_alone(fresh_settings, testcity_transport, tmp_path):
    _doc, meta = engine.run_once(fresh_settings, client=testcity_transport, write=False)

    assert meta["output_path"] is None
    assert not (tmp_path / "testcity_job_details.json").exists()


def test_each_listing_page_is_requested_once_per_query(fresh_settings, testcity_transport):
    engine.run_once(fresh_settings, client=testcity_transport)

    calls = testcity_transport.calls
    assert calls.count(listing_url(page=1)) == 1
    assert calls.count(job_url("a")) == 1
    assert calls.count(job_url("b")) == 1


# ----------------------------------------------------------------------
# 2. Failures
# ----------------------------------------------------------------------
def test_failed_detail_page_drops_only_that_item(fresh_settings):
    transport = FakeTransport(city_pages(), fail={job_url("b")})

    doc, meta = engine.run_once(fresh_settings, client=transport)

    assert doc["totalItems"] == 1
    assert [i["id"] for i in doc["items"]] == ["a"]
    assert meta["dropped"] == 1
    assert meta["dropped_ids"] == ["b"]


def test_failed_listing_page_keeps_items_seen_so_far(fresh_settings):
    transport = FakeTransport(city_pages(), fail={listing_url(page=1)})

    doc, meta = engine.run_once(fresh_settings, client=transport)

    # page 2 of the same batch still lands
    assert [i["id"] for i in doc["items"]] == ["b"]
    assert meta["discovered"] == 1


def test_failed_filter_listing_is_reported_incomplete(fresh_settings):
    transport = FakeTransport(city_pages(), fail={listing_url(param="f_rl", value="5")})

    doc, meta = engine.run_once(fresh_settings, client=transport)

    assert _by_id(doc)["a"]["labels"]["role_level"] == NOT_FOUND
    assert meta["incomplete_filters"] == {"role_level": ["5"]}


def test_config_error_surfaces_before_any_request(tmp_path, fake_transport):
    settings = jc_config.Settings.from_env_and_kwargs({
        "scope": "testcity",
        "output_dir": str(tmp_path),
        "dimensions": ["role_level", "nope"],
    })
    pipeline = engine.Pipeline(settings, client=fake_transport)

    with pytest.raises(ConfigError):
        pipeline.run()

    assert fake_transport.calls == []
    assert pipeline.stage is engine.Stage.FAILED


def test_unknown_site_is_config_error(tmp_path, fake_transport):
    settings = jc_config.Settings.from_env_and_kwargs({"scope": "x", "site": "nowhere", "output_dir": str(tmp_path)})

    with pytest.raises(ConfigError):
        engine.run_once(settings, client=fake_transport)

    assert fake_transport.calls == []


def test_pipeline_is_not_restartable(fresh_settings, testcity_transport):
    pipeline = engine.Pipeline(fresh_settings, client=testcity_transport)
    pipeline.run()

    assert pipeline.stage is engine.Stage.DONE
    with pytest.raises(RuntimeError):
        pipeline.run()


def test_stage_order_is_enforced(fresh_settings, testcity_transport):
    pipeline = engine.Pipeline(fresh_settings, client=testcity_transport)

    with pytest.raises(RuntimeError):
        pipeline._advance(engine.Stage.ENRICHING)
    assert pipeline.stage is engine.Stage.PENDING


def test_dimension_subset_limits_labels(tmp_path, testcity_transport):
    settings = jc_config.Settings.from_env_and_kwargs({
        "scope": "testcity",
        "output_dir": str(tmp_path),
        "dimensions": "industry",
        "http_retries": 0,
    })

    doc, meta = engine.run_once(settings, client=testcity_transport)

    assert set(_by_id(doc)["b"]["labels"]) == {"industry"}
    assert not any("f_rl=" in url for url in testcity_transport.calls)
    assert meta["unresolved_by_dimension"] == {"industry": 1}


# ----------------------------------------------------------------------
# 3. Two-phase mode
# ----------------------------------------------------------------------
def test_listing_then_enrichment(fresh_settings, testcity_transport, tmp_path):
    path, items = engine.run_listing(fresh_settings, client=testcity_transport)

    assert path == str(tmp_path / "testcity_jobs.json")
    assert [i.id for i in items] == ["a", "b"]
    saved = json.loads((tmp_path / "testcity_jobs.json").read_text(encoding="utf-8"))
    assert saved["scope"] == "testcity"
    assert saved["total"] == 2
    assert not any("/job/" in url for url in testcity_transport.calls)

    second = FakeTransport(city_pages())
    doc, meta = engine.run_enrichment(fresh_settings, path, client=second)

    assert doc["totalItems"] == 2
    assert listing_url(page=1) not in second.calls
    assert _by_id(doc)["a"]["labels"]["role_level"] == "Senior"
    assert (tmp_path / "testcity_job_details.json").exists()


def test_enrichment_dedupes_artifact_items(fresh_settings, testcity_transport, tmp_path):
    artifact = tmp_path / "hand_made.json"
    artifact.write_text(json.dumps({
        "scope": "testcity",
        "items": [
            {"id": "a", "title": "Backend Engineer", "url": job_url("a")},
            {"id": "a", "title": "dupe", "url": job_url("a") + "?ref=2"},
            {"id": "", "title": "no id", "url": job_url("zz")},
        ],
    }))

    doc, meta = engine.run_enrichment(fresh_settings, str(artifact), client=testcity_transport)

    assert meta["discovered"] == 1
    assert [i["id"] for i in doc["items"]] == ["a"]


def test_enrichment_scope_override_is_logged(tmp_path, testcity_transport):
    artifact = tmp_path / "other_jobs.json"
    artifact.write_text(json.dumps({"scope": "othercity", "items": [{"id": "a", "title": "A", "url": job_url("a")}]}))
    settings = jc_config.Settings.from_env_and_kwargs({"scope": "testcity", "output_dir": str(tmp_path)})

    doc, _meta = engine.run_enrichment(settings, str(artifact), client=testcity_transport)

    assert doc["scope"] == "testcity"
    with open(logging_utils.get_activity_log_path(), encoding="utf-8") as f:
        ops = [json.loads(line).get("op") for line in f]
    assert "scope_override" in ops


def test_missing_listing_artifact_is_config_error(fresh_settings, fake_transport, tmp_path):
    with pytest.raises(ConfigError):
        engine.run_enrichment(fresh_settings, str(tmp_path / "absent.json"), client=fake_transport)
    assert fake_transport.calls == []
