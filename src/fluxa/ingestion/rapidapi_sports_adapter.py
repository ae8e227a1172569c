"""Sportspage feeds adapter — sports headlines served through RapidAPI."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter, cap_limit, resolve_api_key
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

_BASE_URL = "https://sportspage-feeds.p.rapidapi.com/news"
_HOST = "sportspage-feeds.p.rapidapi.com"
_DEFAULT_PARAMS = {"q": "sports", "limit": 50}
_SHAPE_KEYS = ("results",)


class RapidApiSportsAdapter(ContentAdapter):
    """Adapter for Sportspage feeds news."""

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._params = options.merged_settings(_DEFAULT_PARAMS)
        logger.info("Using adapter: %s", self.source_key)

    @property
    def source_key(self) -> str:
        return "rapidapi-sports"

    def fetch(self) -> Any:
        api_key = resolve_api_key(self._options, self._credentials, self.source_key, ("RAPIDAPI_KEY",))
        params = dict(self._params)
        params["limit"] = cap_limit(params.get("limit"), self._options.max_items_per_run)
        return get_json(
            self._options.base_url or _BASE_URL,
            label="RapidAPI sports",
            params=params,
            headers=rapidapi_headers(api_key, self._options.host or _HOST),
            timeout=self._options.timeout,
        )

    def parse(self, raw: Any) -> list[NormalizedItem]:
        records = extract_records(raw, _SHAPE_KEYS)
        return [_to_item(article) for article in records[: self._options.max_items_per_run]]


def _to_item(article: Mapping) -> NormalizedItem:
    return NormalizedItem(
        title=first_text(article, "title") or "",
        source_url=first_url(article, "link", "url"),
        image_url=first_text(article, "image", "thumbnail"),
        excerpt=first_text(article, "description", "summary"),
        published_at=first_date(article, "pubDate", "publishedAt"),
        external_id=first_text(article, "id", "link", "url"),
        content_type="sports",
        raw_data=article,
    )
