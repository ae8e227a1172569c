"""Free API Live Football Data adapter — football player search."""

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

_BASE_URL = "https://free-api-live-football-data.p.rapidapi.com"
_HOST = "free-api-live-football-data.p.rapidapi.com"
_DEFAULT_PARAMS = {"search": ""}
_SHAPE_KEYS = ("players", "results", "data")


class FreeApiLiveFootballDataAdapter(ContentAdapter):
    """Adapter for player profiles from Free API Live Football Data."""

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._params = options.merged_settings(_DEFAULT_PARAMS)
        logger.info("Using adapter: %s", self.source_key)

    @property
    def source_key(self) -> str:
        return "free-api-live-football-data"

    def fetch(self) -> Any:
        api_key = resolve_api_key(self._options, self._credentials, self.source_key, ("RAPIDAPI_KEY",))
        return get_json(
            f"{self._options.base_url or _BASE_URL}/football-players-search",
            label="Free API Live Football Data RapidAPI",
            params=dict(self._params),
            headers=rapidapi_headers(api_key, self._options.host or _HOST),
            timeout=self._options.timeout,
        )

    def parse(self, raw: Any) -> list[NormalizedItem]:
        records = extract_records(raw, _SHAPE_KEYS)
        return [_to_item(player) for player in records[: self._options.max_items_per_run]]


def _to_item(player: Mapping) -> NormalizedItem:
    return NormalizedItem(
        title=first_text(player, "name", "player_name", "full_name") or "",
        source_url=first_url(player, "url", "link", "profile_url"),
        image_url=first_text(player, "image", "imageUrl", "photo", "thumbnail"),
        excerpt=first_text(player, "description", "position", "team"),
        published_at=first_date(player, "birth_date", "updated_at"),
        external_id=first_text(player, "id", "player_id"),
        content_type="sports",
        raw_data=player,
    )
