"""NewsX adapter — latest articles from the NewsX search endpoint."""

from __future__ import annotations

import logging
from typing import Any

from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter, cap_limit, resolve_api_key
from fluxa.ingestion.credentials import Credentials
from fluxa.ingestion.http import get_json, rapidapi_headers
from fluxa.ingestion.normalize import NormalizedItem, article_to_item, extract_records

logger = logging.getLogger(__name__)

_BASE_URL = "https://newsx.p.rapidapi.com"
_HOST = "newsx.p.rapidapi.com"
_DEFAULT_PARAMS = {"limit": 50, "skip": 0}
_SHAPE_KEYS = ("articles", "results")


class NewsXAdapter(ContentAdapter):
    """Adapter for NewsX on RapidAPI."""

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._params = options.merged_settings(_DEFAULT_PARAMS)
        logger.info("Using adapter: %s", self.source_key)

    @property
    def source_key(self) -> str:
        return "newsx"

    def fetch(self) -> Any:
        api_key = resolve_api_key(self._options, self._credentials, self.source_key, ("RAPIDAPI_KEY",))
        params = dict(self._params)
        params["limit"] = cap_limit(params.get("limit"), self._options.max_items_per_run)
        return get_json(
            f"{self._options.base_url or _BASE_URL}/search",
            label="NewsX RapidAPI",
            params=params,
            headers=rapidapi_headers(api_key, self._options.host or _HOST),
            timeout=self._options.timeout,
        )

    def parse(self, raw: Any) -> list[NormalizedItem]:
        records = extract_records(raw, _SHAPE_KEYS)
        return [article_to_item(article) for article in records[: self._options.max_items_per_run]]
