"""Content hash computation for ingested items."""

from __future__ import annotations

import hashlib
import re
import unicodedata
from datetime import datetime, timezone

_PREFIX = re.compile(r"^(breaking|exclusive|watch|live|update):\s*")
_EMOJI = re.compile(
    "[\U0001F300-\U0001F9FF\u2600-\u26FF\u2700-\u27BF\U0001F600-\U0001F64F"
    "\U0001F680-\U0001F6FF\U0001F1E0-\U0001F1FF]"
)
_PUNCTUATION = re.compile(r"[.,!?:;\"'()\[\]{}]")
_WHITESPACE = re.compile(r"\s+")
_SPACED_SUFFIX = re.compile(r"\s+[-–—|]\s+[a-z0-9\s]+$")
_TIGHT_SUFFIX = re.compile(r"[-–—|][a-z0-9\s]+$")


def normalize_title(title: str) -> str:
    """Normalize a title for stable hashing.

    - Unicode NFC normalization and lowercase
    - Strip a leading "breaking:", "exclusive:", "watch:", "live:" or "update:"
    - Remove emoji and punctuation
    - Collapse whitespace
    - Drop a trailing " - Source" (or "|", en/em dash) suffix

    Idempotent: normalizing twice yields the same result.
    """
    if not title:
        return ""
    text = unicodedata.normalize("NFC", title).lower().strip()
    text = _PREFIX.sub("", text)
    text = _EMOJI.sub("", text)
    text = _PUNCTUATION.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    text = _SPACED_SUFFIX.sub("", text)
    text = _TIGHT_SUFFIX.sub("", text)
    return text.strip()


def canonical_published_time(published_at: str | None, fetched_at: datetime | None = None) -> datetime:
    """Truncate the publish time to the UTC hour.

    Falls back to ``fetched_at`` (or now) when ``published_at`` is missing
    or unparseable.
    """
    moment = None
    if published_at:
        try:
            moment = datetime.fromisoformat(published_at)
        except ValueError:
            moment = None
    if moment is None:
        moment = fetched_at or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).replace(minute=0, second=0, microsecond=0)


def compute_content_hash(
    title: str,
    source_key: str,
    published_at: str | None,
    fetched_at: datetime | None = None,
) -> str:
    """SHA-256 over ``normalized_title|source_key|canonical_time``.

    The same story re-published within the same hour by one source hashes
    identically even when its title differs in case, punctuation or suffix.
    """
    canonical = canonical_published_time(published_at, fetched_at)
    combined = f"{normalize_title(title)}|{source_key}|{canonical.isoformat()}"
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()
