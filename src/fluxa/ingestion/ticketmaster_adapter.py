"""Ticketmaster adapter — upcoming events from the Discovery API."""

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
    first_url,
)

logger = logging.getLogger(__name__)

_BASE_URL = "https://app.ticketmaster.com/discovery/v2/events.json"
_DEFAULT_PARAMS = {"countryCode": "US", "size": 50, "sort": "date,asc"}
_SHAPE_KEYS = ("_embedded.events",)


class TicketmasterAdapter(ContentAdapter):
    """Adapter for Ticketmaster Discovery events."""

    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options
        self._credentials = credentials or Credentials()
        self._params = options.merged_settings(_DEFAULT_PARAMS)

    @property
    def source_key(self) -> str:
        return "ticketmaster"

    def fetch(self) -> Any:
        api_key = resolve_api_key(
            self._options, self._credentials, self.source_key, ("TICKETMASTER_API_KEY",)
        )
        params = {"apikey": api_key, **self._params}
        params["size"] = cap_limit(params.get("size"), self._options.max_items_per_run)
        return get_json(
            self._options.base_url or _BASE_URL,
            label="Ticketmaster",
            params=params,
            timeout=self._options.timeout,
        )

    def parse(self, raw: Any) -> list[NormalizedItem]:
        records = extract_records(raw, _SHAPE_KEYS, allow_bare_list=False)
        return [_to_item(event) for event in records[: self._options.max_items_per_run]]


def _first_image(event: Mapping) -> str | None:
    images = event.get("images")
    if isinstance(images, list) and images:
        return first_text(images[0], "url")
    return None


def _category(event: Mapping) -> tuple[str, ...] | None:
    classifications = event.get("classifications")
    if not isinstance(classifications, list) or not classifications:
        return None
    name = first_text(classifications[0], "segment.name", "genre.name")
    return (name,) if name else None


def _to_item(event: Mapping) -> NormalizedItem:
    return NormalizedItem(
        title=first_text(event, "name") or "",
        source_url=first_url(event, "url"),
        image_url=_first_image(event),
        excerpt=first_text(event, "info", "description"),
        published_at=first_date(event, "dates.start.dateTime", "dates.start.localDate"),
        external_id=first_text(event, "id"),
        categories=_category(event),
        content_type="event",
        raw_data=event,
    )
