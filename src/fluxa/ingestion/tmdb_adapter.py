"""TMDB adapter — trending movies and TV shows, one request per media type."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter, cap_limit, resolve_api_key
from fluxa.ingestion.credentials import Credentials
from fluxa.ingestion.http import get_json
from fluxa.ingestion.normalize import (
    NormalizedItem,
    extract_records,
    first_date,
    first_text,
)

logger = logging.getLogger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"
_IMAGE_BASE_URL = "https://image.tmdb.org/t/p/w500"
_SITE_URL = "https://www.themoviedb.org"
_DEFAULT_SETTINGS = {
    "media_types": ("movie", "tv"),
    "per_type_limit": 50,
    "image_base_url": _IMAGE_BASE_URL,
}
_MEDIA_TYPES = frozenset({"movie", "tv"})


class TmdbAdapter(ContentAdapter):
    """Adapter for the TMDB daily trending lists.

    ``fetch`` returns ``[{"type": "movie", "data": [...]}, ...]``; requests
    stop as soon as the collected results reach ``max_items_per_run``.
    """

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._settings = options.merged_settings(_DEFAULT_SETTINGS)

    @property
    def source_key(self) -> str:
        return "tmdb"

    def _media_types(self) -> list[str]:
        configured = self._settings.get("media_types")
        if isinstance(configured, str):
            configured = [configured]
        if not isinstance(configured, (list, tuple)):
            return []
        return [t for t in configured if isinstance(t, str) and t in _MEDIA_TYPES]

    def _per_type_limit(self) -> int:
        return cap_limit(self._settings.get("per_type_limit"), self._options.max_items_per_run)

    def fetch(self) -> Any:
        api_key = resolve_api_key(
            self._options, self._credentials, self.source_key, ("TMDB_API_KEY", "VITE_TMDB_API_KEY")
        )
        base_url = self._options.base_url or _BASE_URL
        per_type_limit = self._per_type_limit()
        results: list[dict[str, Any]] = []
        collected = 0

        for media_type in self._media_types():
            if collected >= self._options.max_items_per_run:
                break
            payload = get_json(
                f"{base_url}/trending/{media_type}/day",
                label=f"TMDB {media_type}",
                params={"api_key": api_key, "page": 1},
                timeout=self._options.timeout,
            )
            data = extract_records(payload, ("results",), allow_bare_list=False)
            results.append({"type": media_type, "data": data})
            collected += min(len(data), per_type_limit)

        logger.info("Fetched %d TMDB trending entries", collected)
        return results

    def parse(self, raw: Any) -> list[NormalizedItem]:
        cap = self._options.max_items_per_run
        per_type_limit = self._per_type_limit()
        image_base = self._settings.get("image_base_url") or _IMAGE_BASE_URL
        aggregated: list[NormalizedItem] = []

        for entry in extract_records(raw, ()):
            if len(aggregated) >= cap:
                break
            media_type = entry.get("type")
            if not isinstance(media_type, str) or media_type not in _MEDIA_TYPES:
                continue
            for item in extract_records(entry, ("data",), allow_bare_list=False)[:per_type_limit]:
                if len(aggregated) >= cap:
                    break
                aggregated.append(_to_item(item, media_type, image_base))

        return aggregated


def _to_item(item: Mapping, media_type: str, image_base: str) -> NormalizedItem:
    tmdb_id = first_text(item, "id")
    poster_path = first_text(item, "poster_path")
    return NormalizedItem(
        title=first_text(item, "title", "name") or "",
        source_url=f"{_SITE_URL}/{media_type}/{tmdb_id}" if tmdb_id else None,
        image_url=f"{image_base}{poster_path}" if poster_path else None,
        excerpt=first_text(item, "overview"),
        published_at=first_date(item, "release_date", "first_air_date"),
        external_id=tmdb_id,
        content_type=media_type,
        raw_data=item,
    )
