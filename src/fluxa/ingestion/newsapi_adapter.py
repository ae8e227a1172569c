"""NewsAPI adapter — ``/everything`` search served through RapidAPI."""

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

_BASE_URL = "https://newsapi-rapidapi.p.rapidapi.com/everything"
_HOST = "newsapi-rapidapi.p.rapidapi.com"
_DEFAULT_PARAMS = {
    "q": "news",
    "language": "en",
    "sortBy": "publishedAt",
    "pageSize": 50,
}
_SHAPE_KEYS = ("articles",)


class NewsApiRapidApiAdapter(ContentAdapter):
    """Adapter for NewsAPI articles on RapidAPI."""

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._params = options.merged_settings(_DEFAULT_PARAMS)
        logger.info("Using adapter: %s", self.source_key)

    @property
    def source_key(self) -> str:
        return "newsapi-rapidapi"

    def fetch(self) -> Any:
        api_key = resolve_api_key(self._options, self._credentials, self.source_key, ("RAPIDAPI_KEY",))
        params = dict(self._params)
        params["pageSize"] = cap_limit(params.get("pageSize"), self._options.max_items_per_run)
        return get_json(
            self._options.base_url or _BASE_URL,
            label="NewsAPI RapidAPI",
            params=params,
            headers=rapidapi_headers(api_key, self._options.host or _HOST),
            timeout=self._options.timeout,
        )

    def parse(self, raw: Any) -> list[NormalizedItem]:
        records = extract_records(raw, _SHAPE_KEYS)
        return [_to_item(article) for article in records[: self._options.max_items_per_run]]


def _to_item(article: Mapping) -> NormalizedItem:
    # NewsAPI nests the publisher under "source"; it is the only category signal.
    return NormalizedItem(
        title=first_text(article, "title") or "",
        source_url=first_url(article, "url"),
        image_url=first_text(article, "urlToImage"),
        excerpt=first_text(article, "description"),
        published_at=first_date(article, "publishedAt"),
        external_id=first_text(article, "url"),
        categories=collect_categories(article, single="source.name", many="categories"),
        raw_data=article,
    )
