"""Normalized item model and the pure field helpers adapters compose.

Every helper here is total: malformed input degrades to ``None`` (or an
empty list) and never raises.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any
from urllib.parse import urlsplit, urlunsplit

_EXCERPT_FROM_CONTENT_CHARS = 200
_EPOCH_MILLIS_THRESHOLD = 1e11

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d/%m/%Y",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
)

_WHITESPACE = re.compile(r"\s")


@dataclass(frozen=True)
class NormalizedItem:
    """Canonical ingestion unit produced by every adapter."""

    title: str
    source_url: str | None = None
    image_url: str | None = None
    excerpt: str | None = None
    published_at: str | None = None  # ISO 8601, UTC
    external_id: str | None = None
    categories: tuple[str, ...] | None = None
    content_type: str | None = None
    raw_data: Any = None


def normalize_url(url: object) -> str | None:
    """Coerce a URL into an absolute http(s) URL without fragment.

    Protocol-relative (``//host/x``) and bare ``www.`` URLs are upgraded to
    https. Anything else that does not parse as an absolute http(s) URL
    yields None.
    """
    if not isinstance(url, str):
        return None
    candidate = url.strip()
    if not candidate:
        return None
    if candidate.startswith("//"):
        candidate = "https:" + candidate
    elif "://" not in candidate and candidate.lower().startswith("www."):
        candidate = "https://" + candidate

    try:
        parts = urlsplit(candidate)
        parts.port  # raises ValueError on a malformed port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    if scheme not in ("http", "https") or not parts.hostname:
        return None
    if _WHITESPACE.search(parts.netloc):
        return None

    netloc = parts.netloc if "@" in parts.netloc else parts.netloc.lower()
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, ""))


def parse_date(value: object) -> str | None:
    """Parse a heterogeneous date value into an ISO 8601 UTC string.

    Accepts ISO 8601 strings (with or without ``Z``), RFC 2822 dates as
    found in feeds, a handful of common layouts, and epoch seconds or
    milliseconds. Naive values are taken as UTC.
    """
    dt = _to_datetime(value)
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc).isoformat()
    except (OverflowError, ValueError):
        return None


def _to_datetime(value: object) -> datetime | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _from_epoch(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    if text.isascii() and text.isdigit():
        try:
            return _from_epoch(int(text))
        except ValueError:
            return None

    iso = text[:-1] + "+00:00" if text[-1] in "Zz" else text
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass

    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError, OverflowError):
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _from_epoch(number: float) -> datetime | None:
    try:
        seconds = number / 1000 if abs(number) >= _EPOCH_MILLIS_THRESHOLD else number
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def lookup(record: object, path: str) -> Any:
    """Read a dotted path (``"source.url"``) from nested mappings."""
    current = record
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def _as_text(value: object) -> str | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def first_text(record: object, *fields: str) -> str | None:
    """Return the first field in the fallback chain holding usable text."""
    for field in fields:
        text = _as_text(lookup(record, field))
        if text:
            return text
    return None


def first_date(record: object, *fields: str) -> str | None:
    """Return the first field in the fallback chain that parses as a date."""
    for field in fields:
        parsed = parse_date(lookup(record, field))
        if parsed:
            return parsed
    return None


def first_url(record: object, *fields: str) -> str | None:
    """Return the first field in the fallback chain that normalizes to a URL."""
    for field in fields:
        url = normalize_url(lookup(record, field))
        if url:
            return url
    return None


def collect_categories(
    record: object, single: str = "category", many: str = "categories"
) -> tuple[str, ...] | None:
    """Categories from a single-valued field, else from a list-valued one."""
    one = _as_text(lookup(record, single))
    if one:
        return (one,)
    values = lookup(record, many)
    if isinstance(values, str):
        text = values.strip()
        return (text,) if text else None
    if isinstance(values, (list, tuple)):
        texts = tuple(t for t in (_as_text(v) for v in values) if t)
        return texts or None
    return None


def clip(text: str | None, limit: int = _EXCERPT_FROM_CONTENT_CHARS) -> str | None:
    if not text:
        return None
    return text[:limit]


def extract_records(raw: object, shape_keys: Sequence[str], allow_bare_list: bool = True) -> list[Mapping]:
    """Locate the record array inside a response of unknown shape.

    ``shape_keys`` are tried in order (dotted paths allowed); the first one
    holding a list wins. A bare top-level list is tried last. Entries that
    are not objects are dropped.
    """
    records: object = None
    for key in shape_keys:
        candidate = lookup(raw, key)
        if isinstance(candidate, list):
            records = candidate
            break
    else:
        if allow_bare_list and isinstance(raw, list):
            records = raw

    if not isinstance(records, list):
        return []
    return [entry for entry in records if isinstance(entry, Mapping)]


def article_to_item(
    record: Mapping,
    content_type: str | None = None,
    title_fields: tuple[str, ...] = ("title", "headline"),
) -> NormalizedItem:
    """Map a news-article-like record using the common field fallback chains."""
    return NormalizedItem(
        title=first_text(record, *title_fields) or "",
        source_url=first_url(record, "url", "link", "source.url"),
        image_url=first_text(record, "image", "imageUrl", "thumbnail", "urlToImage"),
        excerpt=(
            first_text(record, "description", "excerpt", "summary")
            or clip(first_text(record, "content"))
        ),
        published_at=first_date(
            record, "publishedAt", "published_at", "pubDate", "date", "published"
        ),
        external_id=first_text(record, "id", "url", "link"),
        categories=collect_categories(record),
        content_type=content_type,
        raw_data=record,
    )
