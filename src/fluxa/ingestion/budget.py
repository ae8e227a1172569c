"""Daily API usage budget per source.

One ``api_usage_budget`` row exists per (source, UTC day). The row is
created lazily on the first check of the day; racing creators are absorbed
by the UNIQUE (source_id, period_start) constraint. The increment itself is
a single guarded UPDATE, so the check and the write cannot be separated by
another caller.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta, timezone

from fluxa.storage.connection import get_connection

logger = logging.getLogger(__name__)


def day_period(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return ``[start, end)`` of the UTC calendar day containing ``now``."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    start = now.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def _ensure_record(
    conn: sqlite3.Connection, source_id: str, limit: int, period_start: str, period_end: str
) -> None:
    existing = conn.execute(
        "SELECT 1 FROM api_usage_budget WHERE source_id = ? AND period_start = ?",
        (source_id, period_start),
    ).fetchone()
    if existing is not None:
        return
    now = datetime.now(timezone.utc).isoformat()
    conn.execute(
        "INSERT INTO api_usage_budget "
        "(source_id, period_start, period_end, budget_limit, usage_count, "
        "last_reset_at, created_at, updated_at) "
        "VALUES (?, ?, ?, ?, 0, ?, ?, ?) "
        "ON CONFLICT(source_id, period_start) DO NOTHING",
        (source_id, period_start, period_end, limit, period_start, now, now),
    )


def check_and_increment_budget(
    source_id: str,
    max_calls_per_day: int,
    database_path: str,
    now: datetime | None = None,
) -> bool:
    """Consume one call from today's budget for ``source_id``.

    Returns True when the call was counted, False when the budget for the
    current UTC day is already exhausted. Store errors propagate.
    """
    start, end = day_period(now)
    period_start = start.isoformat()
    period_end = end.isoformat()

    with get_connection(database_path) as conn:
        _ensure_record(conn, source_id, max_calls_per_day, period_start, period_end)
        cursor = conn.execute(
            "UPDATE api_usage_budget "
            "SET usage_count = usage_count + 1, budget_limit = ?, updated_at = ? "
            "WHERE source_id = ? AND period_start = ? AND usage_count < ?",
            (
                max_calls_per_day,
                datetime.now(timezone.utc).isoformat(),
                source_id,
                period_start,
                max_calls_per_day,
            ),
        )
        incremented = cursor.rowcount == 1

    if not incremented:
        logger.info(
            "Budget exhausted for source %s (limit %d/day, period %s)",
            source_id, max_calls_per_day, period_start,
        )
    return incremented


def get_budget(source_id: str, database_path: str, now: datetime | None = None) -> dict | None:
    """Return the budget record for the UTC day containing ``now``, if any."""
    start, _ = day_period(now)
    with get_connection(database_path) as conn:
        row = conn.execute(
            "SELECT source_id, period_start, period_end, budget_limit, usage_count, "
            "last_reset_at, created_at, updated_at "
            "FROM api_usage_budget WHERE source_id = ? AND period_start = ?",
            (source_id, start.isoformat()),
        ).fetchone()
    return dict(row) if row is not None else None
