"""HTTP helpers shared by adapters."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from fluxa.ingestion.errors import UpstreamRequestError

logger = logging.getLogger(__name__)

_ERROR_BODY_CHARS = 200


def rapidapi_headers(api_key: str, host: str) -> dict[str, str]:
    return {"X-RapidAPI-Key": api_key, "X-RapidAPI-Host": host}


def get_json(
    url: str,
    *,
    label: str,
    params: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Any:
    """GET ``url`` and decode the JSON body.

    Raises UpstreamRequestError on transport failure, on a non-2xx status
    (message carries the status and the start of the body), or when the
    body is not JSON. No retries.
    """
    try:
        response = httpx.get(url, params=params, headers=headers, timeout=timeout)
    except httpx.TransportError as exc:
        logger.error("[%s] Request error: url=%s error=%s", label, url, exc)
        raise UpstreamRequestError(f"{label} fetch failed: {exc}") from exc

    if not response.is_success:
        detail = f"{label} fetch failed: {response.status_code}"
        body = _read_error_body(response)
        if body:
            detail += f" - {body}"
        logger.error(
            "[%s] Request failed: url=%s host=%s status=%d reason=%s",
            label,
            url,
            (headers or {}).get("X-RapidAPI-Host", ""),
            response.status_code,
            response.reason_phrase,
        )
        raise UpstreamRequestError(detail, status_code=response.status_code, body=body)

    try:
        return response.json()
    except ValueError as exc:
        raise UpstreamRequestError(
            f"{label} returned a non-JSON body", status_code=response.status_code
        ) from exc


def _read_error_body(response: httpx.Response) -> str | None:
    """Best-effort truncated body; read failures are dropped from the message."""
    try:
        text = response.text
    except (httpx.HTTPError, httpx.StreamError, UnicodeDecodeError, LookupError):
        return None
    return text[:_ERROR_BODY_CHARS] or None
