"""Tests for fluxa.ingestion.runner — end-to-end runs of one source."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import httpx
import pytest

from fluxa.config import Config
from fluxa.ingestion.budget import get_budget
from fluxa.ingestion.credentials import Credentials
from fluxa.ingestion.runner import get_source_health, run_all_sources, run_ingestion
from fluxa.ingestion.sources import upsert_source
from fluxa.storage.connection import get_connection
from fluxa.storage.schema import init_db

PAYLOAD = {"data": [
    {"title": "Markets fall", "url": "https://news.example.com/a", "published_at": "2024-03-05T10:00:00Z"},
    {"title": "Team wins", "url": "https://news.example.com/b", "published_at": "2024-03-05T11:00:00Z"},
]}


def _make_config(tmp_path, **overrides) -> Config:
    """Create a test Config pointing at a temp database."""
    db_path = str(tmp_path / "test.db")
    init_db(db_path)
    defaults = {
        "database_path": db_path,
        "credentials": Credentials({"RAPIDAPI_KEY": "rapid-key"}),
    }
    defaults.update(overrides)
    return Config(**defaults)


def _ok(payload=PAYLOAD):
    return httpx.Response(200, json=payload)


def _runs(config):
    with get_connection(config.database_path) as conn:
        return [dict(row) for row in conn.execute("SELECT * FROM content_runs ORDER BY started_at")]


def _item_count(config):
    with get_connection(config.database_path) as conn:
        return conn.execute("SELECT COUNT(*) FROM content_items").fetchone()[0]


class TestRunIngestion:
    def test_unknown_source(self, tmp_path):
        config = _make_config(tmp_path)

        result = run_ingestion("newsx", config)

        assert result.success is False
        assert result.error == "Source not found"
        assert result.run_id == ""
        assert _runs(config) == []

    def test_successful_run(self, tmp_path):
        config = _make_config(tmp_path)
        source = upsert_source(config.database_path, "mediastack-rapidapi")

        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()):
            result = run_ingestion("mediastack-rapidapi", config)

        assert result.success is True
        assert result.items_fetched == 2
        assert result.items_created == 2
        assert result.skipped_reason is None
        assert _item_count(config) == 2

        run = _runs(config)[0]
        assert run["id"] == result.run_id
        assert run["status"] == "completed"
        assert run["items_created"] == 2
        assert run["completed_at"] is not None

        health = get_source_health(config.database_path, source.id)
        assert health["last_success"] == 1
        assert health["items_created"] == 2
        assert health["consecutive_failures"] == 0

    def test_disabled_source_skipped(self, tmp_path):
        config = _make_config(tmp_path)
        source = upsert_source(config.database_path, "mediastack-rapidapi", is_active=False)

        with patch("fluxa.ingestion.http.httpx.get") as mock_get:
            result = run_ingestion("mediastack-rapidapi", config)

        mock_get.assert_not_called()
        assert result.success is False
        assert result.skipped_reason == "disabled"
        run = _runs(config)[0]
        assert run["status"] == "skipped"
        assert run["skipped_reason"] == "disabled"
        assert get_source_health(config.database_path, source.id)["last_success"] == 0

    def test_cadence_window_skips_then_force_runs(self, tmp_path):
        config = _make_config(tmp_path)
        upsert_source(config.database_path, "mediastack-rapidapi")

        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()) as mock_get:
            run_ingestion("mediastack-rapidapi", config)
            skipped = run_ingestion("mediastack-rapidapi", config)
            forced = run_ingestion("mediastack-rapidapi", config, force=True)

        assert skipped.success is True
        assert skipped.skipped_reason == "cadence"
        assert forced.success is True
        assert forced.skipped_reason is None
        assert forced.items_skipped == 2
        assert forced.items_created == 0
        assert mock_get.call_count == 2
        assert [run["status"] for run in _runs(config)] == ["completed", "skipped", "completed"]

    def test_cadence_window_elapsed(self, tmp_path):
        config = _make_config(tmp_path, refresh_hours=3)
        upsert_source(config.database_path, "mediastack-rapidapi")
        later = datetime.now(timezone.utc) + timedelta(hours=4)

        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()):
            run_ingestion("mediastack-rapidapi", config)
            result = run_ingestion("mediastack-rapidapi", config, fetched_at=later)

        assert result.skipped_reason is None
        assert result.success is True

    def test_source_refresh_hours_override(self, tmp_path):
        config = _make_config(tmp_path)
        upsert_source(config.database_path, "mediastack-rapidapi", config={"default_refresh_hours": 0})

        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()) as mock_get:
            run_ingestion("mediastack-rapidapi", config)
            result = run_ingestion("mediastack-rapidapi", config)

        assert result.skipped_reason is None
        assert mock_get.call_count == 2

    def test_source_config_shapes_adapter(self, tmp_path):
        config = _make_config(tmp_path)
        upsert_source(
            config.database_path,
            "mediastack-rapidapi",
            config={"max_items_per_run": 1, "settings": {"keywords": "sports"}},
        )

        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()) as mock_get:
            result = run_ingestion("mediastack-rapidapi", config)

        assert result.items_fetched == 1
        assert result.items_created == 1
        params = mock_get.call_args.kwargs["params"]
        assert params["keywords"] == "sports"
        assert params["limit"] == 1

    def test_upstream_failure_recorded(self, tmp_path):
        config = _make_config(tmp_path)
        source = upsert_source(config.database_path, "mediastack-rapidapi")

        with patch("fluxa.ingestion.http.httpx.get", return_value=httpx.Response(500, text="oops")):
            first = run_ingestion("mediastack-rapidapi", config)
            second = run_ingestion("mediastack-rapidapi", config)

        assert first.success is False
        assert "500" in first.error
        assert second.skipped_reason is None
        runs = _runs(config)
        assert [run["status"] for run in runs] == ["failed", "failed"]
        assert "500" in runs[0]["error_message"]
        health = get_source_health(config.database_path, source.id)
        assert health["consecutive_failures"] == 2
        assert "500" in health["last_error"]

    def test_missing_credentials_fail_without_request(self, tmp_path):
        config = _make_config(tmp_path, credentials=Credentials())
        upsert_source(config.database_path, "mediastack-rapidapi")

        with patch("fluxa.ingestion.http.httpx.get") as mock_get:
            result = run_ingestion("mediastack-rapidapi", config)

        mock_get.assert_not_called()
        assert result.success is False
        assert "RAPIDAPI_KEY" in result.error

    def test_retired_source_fails(self, tmp_path):
        config = _make_config(tmp_path)
        upsert_source(config.database_path, "mediastack")

        result = run_ingestion("mediastack", config)

        assert result.success is False
        assert "mediastack-rapidapi" in result.error
        assert _runs(config)[0]["status"] == "failed"

    def test_success_resets_failure_count(self, tmp_path):
        config = _make_config(tmp_path)
        source = upsert_source(config.database_path, "mediastack-rapidapi")

        with patch("fluxa.ingestion.http.httpx.get", return_value=httpx.Response(502)):
            run_ingestion("mediastack-rapidapi", config)
        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()):
            run_ingestion("mediastack-rapidapi", config)

        health = get_source_health(config.database_path, source.id)
        assert health["consecutive_failures"] == 0
        assert health["last_error"] is None


class TestBudgetGate:
    def test_budgeted_source_consumes_budget(self, tmp_path):
        config = _make_config(tmp_path, api_sports_daily_budget=1)
        source = upsert_source(config.database_path, "api-sports")

        first = run_ingestion("api-sports", config, force=True)
        second = run_ingestion("api-sports", config, force=True)

        assert first.success is True
        assert second.success is False
        assert second.skipped_reason == "budget_exceeded"
        assert get_budget(source.id, config.database_path)["usage_count"] == 1
        run = _runs(config)[-1]
        assert run["status"] == "skipped"
        assert run["skipped_reason"] == "budget_exceeded"

    def test_budget_checked_before_fetch(self, tmp_path):
        config = _make_config(tmp_path)
        upsert_source(config.database_path, "mediastack-rapidapi", config={"daily_budget": 0})

        with patch("fluxa.ingestion.http.httpx.get") as mock_get:
            result = run_ingestion("mediastack-rapidapi", config)

        mock_get.assert_not_called()
        assert result.skipped_reason == "budget_exceeded"

    def test_unbudgeted_source_has_no_ledger_row(self, tmp_path):
        config = _make_config(tmp_path)
        source = upsert_source(config.database_path, "mediastack-rapidapi")

        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()):
            run_ingestion("mediastack-rapidapi", config)

        assert get_budget(source.id, config.database_path) is None

    def test_budgeted_sources_configurable(self, tmp_path):
        config = _make_config(
            tmp_path, budgeted_sources=("mediastack-rapidapi",), api_sports_daily_budget=1
        )
        upsert_source(config.database_path, "mediastack-rapidapi")

        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()) as mock_get:
            run_ingestion("mediastack-rapidapi", config, force=True)
            result = run_ingestion("mediastack-rapidapi", config, force=True)

        assert mock_get.call_count == 1
        assert result.skipped_reason == "budget_exceeded"


class TestRunAllSources:
    def test_runs_each_active_source(self, tmp_path):
        config = _make_config(tmp_path)
        upsert_source(config.database_path, "mediastack-rapidapi")
        upsert_source(config.database_path, "api-sports")
        upsert_source(config.database_path, "newsx", is_active=False)

        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()):
            results = run_all_sources(config)

        assert set(results) == {"mediastack-rapidapi", "api-sports"}
        assert all(result.success for result in results.values())

    def test_one_failure_does_not_stop_others(self, tmp_path):
        config = _make_config(tmp_path)
        upsert_source(config.database_path, "mediastack")
        upsert_source(config.database_path, "mediastack-rapidapi")

        with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()):
            results = run_all_sources(config)

        assert results["mediastack"].success is False
        assert results["mediastack-rapidapi"].success is True


@pytest.mark.parametrize("bad", ["3", True, None, [1]])
def test_non_numeric_source_config_ignored(tmp_path, bad):
    config = _make_config(tmp_path, max_items_per_run=1)
    upsert_source(config.database_path, "mediastack-rapidapi", config={"max_items_per_run": bad})

    with patch("fluxa.ingestion.http.httpx.get", return_value=_ok()):
        result = run_ingestion("mediastack-rapidapi", config)

    assert result.items_fetched == 1
