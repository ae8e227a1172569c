"""Item persistence — hash de-duplication and external-id updates."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime, timezone

from fluxa.ingestion.dedup import canonical_published_time, compute_content_hash
from fluxa.ingestion.normalize import NormalizedItem
from fluxa.storage.connection import get_connection

logger = logging.getLogger(__name__)

CREATED = "created"
SKIPPED = "skipped"
UPDATED = "updated"


def _json(value: object, fallback: object) -> str:
    return json.dumps(value if value is not None else fallback, default=str)


def store_item(
    item: NormalizedItem,
    source_id: str,
    source_key: str,
    database_path: str,
    fetched_at: datetime | None = None,
) -> str:
    """Persist one normalized item.

    1. If an item with the same content hash exists, or one is inserted by
       a concurrent writer first: skip.
    2. If an item with the same (source, external_id) exists: refresh its
       excerpt, image and raw data.
    3. Otherwise insert a new row.

    Returns "skipped", "updated" or "created".
    """
    fetched_at = fetched_at or datetime.now(timezone.utc)
    content_hash = compute_content_hash(item.title, source_key, item.published_at, fetched_at)
    now = datetime.now(timezone.utc).isoformat()

    with get_connection(database_path) as conn:
        duplicate = conn.execute(
            "SELECT id FROM content_items WHERE content_hash = ?", (content_hash,)
        ).fetchone()
        if duplicate is not None:
            logger.debug("Skipping duplicate item %s (%s)", duplicate["id"], item.title)
            return SKIPPED

        if item.external_id:
            existing = conn.execute(
                "SELECT id FROM content_items WHERE source_id = ? AND external_id = ? LIMIT 1",
                (source_id, item.external_id),
            ).fetchone()
            if existing is not None:
                conn.execute(
                    "UPDATE content_items SET excerpt = ?, image_url = ?, raw_data = ?, "
                    "updated_at = ? WHERE id = ?",
                    (item.excerpt, item.image_url, _json(item.raw_data, {}), now, existing["id"]),
                )
                logger.debug("Updated item %s from external id %s", existing["id"], item.external_id)
                return UPDATED

        item_id = str(uuid.uuid4())
        cursor = conn.execute(
            "INSERT INTO content_items "
            "(id, source_id, external_id, content_hash, title, url, excerpt, published_at, "
            "image_url, content_type, categories, raw_data, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(content_hash) DO NOTHING",
            (
                item_id,
                source_id,
                item.external_id,
                content_hash,
                item.title,
                item.source_url,
                item.excerpt,
                canonical_published_time(item.published_at, fetched_at).isoformat(),
                item.image_url,
                item.content_type,
                _json(list(item.categories or ()), []),
                _json(item.raw_data, {}),
                now,
                now,
            ),
        )
        if cursor.rowcount == 0:
            logger.debug("Skipping item stored concurrently (%s)", item.title)
            return SKIPPED

    logger.info("Stored new item %s (%s)", item_id, item.title)
    return CREATED
