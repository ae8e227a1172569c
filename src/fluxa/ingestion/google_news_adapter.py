"""Google News adapter — topic headlines served through RapidAPI."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter, resolve_api_key
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

_BASE_URL = "https://google-news22.p.rapidapi.com/v2/topic-headlines"
_HOST = "google-news22.p.rapidapi.com"
_DEFAULT_PARAMS = {"country": "us", "language": "en", "topic": "business"}
_SHAPE_KEYS = ("data.items", "items", "articles")


class GoogleNewsAdapter(ContentAdapter):
    """Adapter for Google News topic headlines."""

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._params = options.merged_settings(_DEFAULT_PARAMS)
        logger.info("Using adapter: %s", self.source_key)

    @property
    def source_key(self) -> str:
        return "google-news"

    def fetch(self) -> Any:
        api_key = resolve_api_key(self._options, self._credentials, self.source_key, ("RAPIDAPI_KEY",))
        return get_json(
            self._options.base_url or _BASE_URL,
            label="Google News RapidAPI",
            params=dict(self._params),
            headers=rapidapi_headers(api_key, self._options.host or _HOST),
            timeout=self._options.timeout,
        )

    def parse(self, raw: Any) -> list[NormalizedItem]:
        records = extract_records(raw, _SHAPE_KEYS, allow_bare_list=False)
        return [_to_item(article) for article in records[: self._options.max_items_per_run]]


def _to_item(article: Mapping) -> NormalizedItem:
    return NormalizedItem(
        title=first_text(article, "title", "headline") or "",
        source_url=first_url(article, "url", "link"),
        image_url=first_text(article, "images.thumbnail", "image", "thumbnail"),
        excerpt=first_text(article, "snippet", "description"),
        published_at=first_date(article, "published", "publishedAt", "date"),
        external_id=first_text(article, "id", "url", "link"),
        categories=collect_categories(article, single="source.name", many="categories"),
        raw_data=article,
    )
