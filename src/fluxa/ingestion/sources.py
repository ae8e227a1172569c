"""Content source records — the ``content_sources`` table."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from fluxa.storage.connection import get_connection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentSource:
    """A configured upstream source.

    ``config`` may carry ``max_items_per_run``, ``default_refresh_hours``,
    ``daily_budget``, ``settings``, ``base_url`` and ``host``.
    """

    id: str
    source_key: str
    name: str
    is_active: bool = True
    config: dict[str, Any] = field(default_factory=dict)


def _row_to_source(row) -> ContentSource:
    try:
        config = json.loads(row["config"] or "{}")
    except json.JSONDecodeError:
        logger.warning("Invalid config JSON for source %s", row["source_key"])
        config = {}
    return ContentSource(
        id=row["id"],
        source_key=row["source_key"],
        name=row["name"],
        is_active=bool(row["is_active"]),
        config=config if isinstance(config, dict) else {},
    )


def upsert_source(
    database_path: str,
    source_key: str,
    name: str | None = None,
    is_active: bool = True,
    config: dict[str, Any] | None = None,
) -> ContentSource:
    """Create the source, or update name, active flag and config if it exists."""
    now = datetime.now(timezone.utc).isoformat()
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO content_sources "
            "(id, source_key, name, is_active, config, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(source_key) DO UPDATE SET "
            "name = excluded.name, is_active = excluded.is_active, "
            "config = excluded.config, updated_at = excluded.updated_at",
            (
                str(uuid.uuid4()),
                source_key,
                name or source_key,
                int(is_active),
                json.dumps(config or {}),
                now,
                now,
            ),
        )
        row = conn.execute(
            "SELECT * FROM content_sources WHERE source_key = ?", (source_key,)
        ).fetchone()
    return _row_to_source(row)


def get_source(database_path: str, source_key: str) -> ContentSource | None:
    with get_connection(database_path) as conn:
        row = conn.execute(
            "SELECT * FROM content_sources WHERE source_key = ?", (source_key,)
        ).fetchone()
    return _row_to_source(row) if row is not None else None


def list_sources(database_path: str, active_only: bool = False) -> list[ContentSource]:
    """All sources ordered by key, optionally only the active ones."""
    query = "SELECT * FROM content_sources"
    if active_only:
        query += " WHERE is_active = 1"
    query += " ORDER BY source_key"
    with get_connection(database_path) as conn:
        rows = conn.execute(query).fetchall()
    return [_row_to_source(row) for row in rows]


def set_source_active(database_path: str, source_key: str, is_active: bool) -> bool:
    """Toggle a source. Returns False when no such source exists."""
    with get_connection(database_path) as conn:
        cursor = conn.execute(
            "UPDATE content_sources SET is_active = ?, updated_at = ? WHERE source_key = ?",
            (int(is_active), datetime.now(timezone.utc).isoformat(), source_key),
        )
        updated = cursor.rowcount == 1
    if updated:
        logger.info("Source %s is now %s", source_key, "active" if is_active else "inactive")
    return updated
