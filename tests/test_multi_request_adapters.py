"""Tests for adapters that aggregate several upstream requests per fetch."""

from __future__ import annotations

from unittest.mock import patch

import httpx
import pytest

from fluxa.ingestion.adapter import AdapterOptions
from fluxa.ingestion.credentials import Credentials
from fluxa.ingestion.errors import ConfigurationError
from fluxa.ingestion.therundown_adapter import TheRundownAdapter
from fluxa.ingestion.tmdb_adapter import TmdbAdapter

TMDB = Credentials({"TMDB_API_KEY": "tmdb-key"})
RAPIDAPI = Credentials({"RAPIDAPI_KEY": "rapid-key"})


def _tmdb_results(prefix, count):
    return {"results": [{"id": f"{prefix}{i}", "title": f"{prefix} {i}"} for i in range(count)]}


def _tmdb_get(movie_count=3, tv_count=3):
    def side_effect(url, **kwargs):
        if "/trending/movie/" in url:
            return httpx.Response(200, json=_tmdb_results("m", movie_count))
        return httpx.Response(200, json=_tmdb_results("t", tv_count))
    return side_effect


def _event(event_id, status="STATUS_SCHEDULED", **score):
    return {
        "event_id": event_id,
        "event_date": "2024-03-05T00:30:00Z",
        "teams_normalized": [
            {"name": "Boston", "mascot": "Celtics", "abbreviation": "BOS", "is_away": True, "record": "10-2"},
            {"name": "New York", "mascot": "Knicks", "abbreviation": "NYK", "is_home": True},
        ],
        "score": {"event_status": status, **score},
    }


class TestTmdbAdapter:
    def test_fetch_one_request_per_media_type(self):
        adapter = TmdbAdapter(AdapterOptions(max_items_per_run=50), TMDB)

        with patch("fluxa.ingestion.http.httpx.get", side_effect=_tmdb_get()) as mock_get:
            raw = adapter.fetch()

        urls = [call.args[0] for call in mock_get.call_args_list]
        assert urls == [
            "https://api.themoviedb.org/3/trending/movie/day",
            "https://api.themoviedb.org/3/trending/tv/day",
        ]
        assert mock_get.call_args.kwargs["params"]["api_key"] == "tmdb-key"
        assert [entry["type"] for entry in raw] == ["movie", "tv"]
        assert len(raw[0]["data"]) == 3

    def test_fetch_stops_once_cap_reached(self):
        adapter = TmdbAdapter(AdapterOptions(max_items_per_run=2), TMDB)

        with patch("fluxa.ingestion.http.httpx.get", side_effect=_tmdb_get(movie_count=5)) as mock_get:
            raw = adapter.fetch()

        assert mock_get.call_count == 1
        assert [entry["type"] for entry in raw] == ["movie"]

    def test_zero_cap_makes_no_requests(self):
        adapter = TmdbAdapter(AdapterOptions(max_items_per_run=0), TMDB)

        with patch("fluxa.ingestion.http.httpx.get") as mock_get:
            assert adapter.fetch() == []

        mock_get.assert_not_called()

    def test_vite_key_fallback(self):
        adapter = TmdbAdapter(
            AdapterOptions(max_items_per_run=5, settings={"media_types": ["tv"]}),
            Credentials({"VITE_TMDB_API_KEY": "vite-key"}),
        )

        with patch("fluxa.ingestion.http.httpx.get", side_effect=_tmdb_get()) as mock_get:
            adapter.fetch()

        assert mock_get.call_count == 1
        assert mock_get.call_args.kwargs["params"]["api_key"] == "vite-key"

    def test_missing_key_raises(self):
        adapter = TmdbAdapter(AdapterOptions(max_items_per_run=5))
        with patch("fluxa.ingestion.http.httpx.get") as mock_get:
            with pytest.raises(ConfigurationError, match="TMDB_API_KEY"):
                adapter.fetch()
        mock_get.assert_not_called()

    def test_parse_maps_movies_and_shows(self):
        adapter = TmdbAdapter(AdapterOptions(max_items_per_run=10))
        raw = [
            {"type": "movie", "data": [{
                "id": 603,
                "title": "The Matrix",
                "overview": "A hacker learns the truth.",
                "poster_path": "/matrix.jpg",
                "release_date": "1999-03-30",
            }]},
            {"type": "tv", "data": [{"id": 1399, "name": "Show", "first_air_date": "2011-04-17"}]},
        ]

        movie, show = adapter.parse(raw)

        assert movie.title == "The Matrix"
        assert movie.source_url == "https://www.themoviedb.org/movie/603"
        assert movie.image_url == "https://image.tmdb.org/t/p/w500/matrix.jpg"
        assert movie.published_at == "1999-03-30T00:00:00+00:00"
        assert movie.external_id == "603"
        assert movie.content_type == "movie"
        assert show.title == "Show"
        assert show.image_url is None
        assert show.content_type == "tv"

    def test_parse_caps_aggregate_and_per_type(self):
        adapter = TmdbAdapter(AdapterOptions(max_items_per_run=5, settings={"per_type_limit": 2}))
        raw = [
            {"type": "movie", "data": _tmdb_results("m", 4)["results"]},
            {"type": "tv", "data": _tmdb_results("t", 4)["results"]},
            {"type": "person", "data": _tmdb_results("p", 4)["results"]},
        ]

        items = adapter.parse(raw)

        assert [item.external_id for item in items] == ["m0", "m1", "t0", "t1"]


class TestTheRundownAdapter:
    def test_failed_sport_is_skipped(self):
        def side_effect(url, **kwargs):
            if "/sports/4/" in url:
                return httpx.Response(500, text="upstream down")
            if "/sports/6/" in url:
                return httpx.Response(200, json={"events": [_event("nhl-1")]})
            return httpx.Response(200, json={"events": []})

        adapter = TheRundownAdapter(AdapterOptions(max_items_per_run=10), RAPIDAPI)
        with patch("fluxa.ingestion.http.httpx.get", side_effect=side_effect) as mock_get:
            raw = adapter.fetch()

        assert mock_get.call_count == 5
        assert mock_get.call_args.kwargs["headers"]["X-RapidAPI-Key"] == "rapid-key"
        items = adapter.parse(raw)
        assert len(items) == 1
        assert items[0].categories == ("NHL",)
        assert items[0].external_id == "nhl-1"

    def test_fetch_stops_once_cap_reached(self):
        payload = {"events": [_event("a"), _event("b")]}
        adapter = TheRundownAdapter(AdapterOptions(max_items_per_run=2), RAPIDAPI)

        with patch("fluxa.ingestion.http.httpx.get", return_value=httpx.Response(200, json=payload)) as mock_get:
            raw = adapter.fetch()

        assert mock_get.call_count == 1
        assert len(raw["events"]) == 2

    def test_missing_key_raises(self):
        adapter = TheRundownAdapter(AdapterOptions(max_items_per_run=5))
        with pytest.raises(ConfigurationError, match="RAPIDAPI_KEY"):
            adapter.fetch()

    def test_final_game(self):
        event = {
            **_event(
                "final-1",
                status="STATUS_FINAL",
                score_away=101,
                score_home=99,
                venue_name="Madison Square Garden",
                venue_location="New York, NY",
                score_away_by_period=[25, 25, 25, 26],
                score_home_by_period=[20, 30, 25, 24],
                broadcast="ESPN",
            ),
            "_sport_name": "NBA",
        }
        adapter = TheRundownAdapter(AdapterOptions(max_items_per_run=10))

        item = adapter.parse({"events": [event]})[0]

        assert item.title == "Boston Celtics 101 - New York Knicks 99 (Final)"
        assert item.excerpt == (
            "NBA · Madison Square Garden, New York, NY · BOS (10-2) · "
            "Q: 25-25-25-26 / 20-30-25-24 · TV: ESPN"
        )
        assert item.published_at == "2024-03-05T00:30:00+00:00"
        assert item.content_type == "sports"

    def test_live_game(self):
        event = {**_event("live-1", status="STATUS_IN_PROGRESS", score_away=12), "_sport_name": "NBA"}
        adapter = TheRundownAdapter(AdapterOptions(max_items_per_run=10))

        item = adapter.parse({"events": [event]})[0]

        assert item.title == "Boston Celtics 12 - New York Knicks 0 (Live)"

    def test_scheduled_game_shows_status_detail(self):
        event = _event("sched-1", event_status_detail="7:30 PM ET")
        adapter = TheRundownAdapter(AdapterOptions(max_items_per_run=10))

        item = adapter.parse({"events": [event]})[0]

        assert item.title == "Boston Celtics at New York Knicks"
        assert item.excerpt == "Sports · BOS (10-2) · 7:30 PM ET"
        assert item.categories == ("Sports",)

    def test_events_without_two_teams_dropped(self):
        adapter = TheRundownAdapter(AdapterOptions(max_items_per_run=10))
        raw = {"events": [
            {"event_id": "x", "teams": [{"name": "Solo"}]},
            {"event_id": "y", "teams": "nope"},
            {"event_id": "z", "teams": [{"name": "A"}, "B"]},
        ]}
        assert adapter.parse(raw) == []
