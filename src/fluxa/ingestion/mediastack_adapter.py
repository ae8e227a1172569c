"""Mediastack adapter — general news headlines served through RapidAPI."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter, cap_limit, resolve_api_key
from fluxa.ingestion.credentials import Credentials
from fluxa.ingestion.http import get_json, rapidapi_headers
from fluxa.ingestion.normalize import (
    NormalizedItem,
    collect_categories,
    extract_records,
    first_date,
    first_text,
    first_url,
)

logger = logging.getLogger(__name__)

_BASE_URL = "https://mediastack.p.rapidapi.com/news"
_HOST = "mediastack.p.rapidapi.com"
_DEFAULT_PARAMS = {
    "keywords": "news",
    "languages": "en",
    "sort": "published_desc",
    "limit": 50,
}
_SHAPE_KEYS = ("data",)


class MediastackRapidApiAdapter(ContentAdapter):
    """Adapter for the mediastack ``/news`` endpoint on RapidAPI."""

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._params = options.merged_settings(_DEFAULT_PARAMS)
        logger.info("Using adapter: %s", self.source_key)

    @property
    def source_key(self) -> str:
        return "mediastack-rapidapi"

    def fetch(self) -> Any:
        api_key = resolve_api_key(self._options, self._credentials, self.source_key, ("RAPIDAPI_KEY",))
        params = dict(self._params)
        params["limit"] = cap_limit(params.get("limit"), self._options.max_items_per_run)
        return get_json(
            self._options.base_url or _BASE_URL,
            label="Mediastack RapidAPI",
            params=params,
            headers=rapidapi_headers(api_key, self._options.host or _HOST),
            timeout=self._options.timeout,
        )

    def parse(self, raw: Any) -> list[NormalizedItem]:
        records = extract_records(raw, _SHAPE_KEYS)
        return [_to_item(entry) for entry in records[: self._options.max_items_per_run]]


def _to_item(entry: Mapping) -> NormalizedItem:
    return NormalizedItem(
        title=first_text(entry, "title") or "",
        source_url=first_url(entry, "url"),
        image_url=first_text(entry, "image"),
        excerpt=first_text(entry, "description"),
        published_at=first_date(entry, "published_at"),
        external_id=first_text(entry, "url"),
        categories=collect_categories(entry),
        raw_data=entry,
    )
