"""Real-Time Sports News adapter — sports sources and stories by category."""

from __future__ import annotations

import logging
from typing import Any

from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter, resolve_api_key
from fluxa.ingestion.credentials import Credentials
from fluxa.ingestion.http import get_json, rapidapi_headers
from fluxa.ingestion.normalize import NormalizedItem, article_to_item, extract_records

logger = logging.getLogger(__name__)

_BASE_URL = "https://real-time-sports-news-api.p.rapidapi.com"
_HOST = "real-time-sports-news-api.p.rapidapi.com"
_DEFAULT_PARAMS = {"category": "sports"}
_SHAPE_KEYS = ("articles", "results", "data", "sources")


class RealTimeSportsNewsAdapter(ContentAdapter):
    """Adapter for the Real-Time Sports News API on RapidAPI."""

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._params = options.merged_settings(_DEFAULT_PARAMS)
        logger.info("Using adapter: %s", self.source_key)

    @property
    def source_key(self) -> str:
        return "real-time-sports-news-api"

    def fetch(self) -> Any:
        api_key = resolve_api_key(self._options, self._credentials, self.source_key, ("RAPIDAPI_KEY",))
        return get_json(
            f"{self._options.base_url or _BASE_URL}/sources-by-category",
            label="Real-Time Sports News API RapidAPI",
            params=dict(self._params),
            headers=rapidapi_headers(api_key, self._options.host or _HOST),
            timeout=self._options.timeout,
        )

    def parse(self, raw: Any) -> list[NormalizedItem]:
        records = extract_records(raw, _SHAPE_KEYS)
        # "sources" entries carry a name rather than a headline
        return [
            article_to_item(article, content_type="sports", title_fields=("title", "headline", "name"))
            for article in records[: self._options.max_items_per_run]
        ]
