"""API-SPORTS adapter placeholder.

The source is budget-gated and its integration is deferred: ``fetch`` and
``parse`` return empty results without contacting the upstream.
"""

from __future__ import annotations

from typing import Any

from fluxa.ingestion.adapter import AdapterOptions, ContentAdapter
from fluxa.ingestion.credentials import Credentials
from fluxa.ingestion.normalize import NormalizedItem


class ApiSportsAdapter(ContentAdapter):
    def __init__(self, options: AdapterOptions, credentials: Credentials | None = None) -> None:
        self._options = options

    @property
    def source_key(self) -> str:
        return "api-sports"

    def fetch(self) -> Any:
        return []

    def parse(self, raw: Any) -> list[NormalizedItem]:
        return []
