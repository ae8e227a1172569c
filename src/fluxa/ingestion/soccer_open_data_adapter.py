"""Soccer Sports Open Data adapter — football leagues."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter, resolve_api_key
from fluxa.ingestion.credentials import Credentials
from fluxa.ingestion.http import get_json, rapidapi_headers
from fluxa.ingestion.normalize import (
    NormalizedItem,
    extract_records,
    first_date,
    first_text,
    first_url,
)

logger = logging.getLogger(__name__)

_BASE_URL = "https://sportsop-soccer-sports-open-data-v1.p.rapidapi.com"
_HOST = "sportsop-soccer-sports-open-data-v1.p.rapidapi.com"
_SHAPE_KEYS = ("leagues", "data", "results")


class SoccerSportsOpenDataAdapter(ContentAdapter):
    """Adapter for the league listing of Soccer Sports Open Data."""

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._params = options.merged_settings({})
        logger.info("Using adapter: %s", self.source_key)

    @property
    def source_key(self) -> str:
        return "soccer-sports-open-data"

    def fetch(self) -> Any:
        api_key = resolve_api_key(self._options, self._credentials, self.source_key, ("RAPIDAPI_KEY",))
        return get_json(
            f"{self._options.base_url or _BASE_URL}/v1/leagues",
            label="Soccer Sports Open Data RapidAPI",
            params=dict(self._params) or None,
            headers=rapidapi_headers(api_key, self._options.host or _HOST),
            timeout=self._options.timeout,
        )

    def parse(self, raw: Any) -> list[NormalizedItem]:
        records = extract_records(raw, _SHAPE_KEYS)
        return [_to_item(league) for league in records[: self._options.max_items_per_run]]


def _to_item(league: Mapping) -> NormalizedItem:
    return NormalizedItem(
        title=first_text(league, "name", "title", "league_name") or "",
        source_url=first_url(league, "url", "link", "website"),
        image_url=first_text(league, "image", "imageUrl", "logo", "logo_url"),
        excerpt=first_text(league, "description", "summary"),
        published_at=first_date(league, "publishedAt", "updated_at", "start_date"),
        external_id=first_text(league, "id", "league_id"),
        content_type="sports",
        raw_data=league,
    )
