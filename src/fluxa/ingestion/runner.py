"""Ingestion runner — drives one source through fetch, parse and persist."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone

from fluxa.config import Config
from fluxa.ingestion.adapter import AdapterOptions
from fluxa.ingestion.budget import check_and_increment_budget
from fluxa.ingestion.registry import get_adapter
from fluxa.ingestion.sources import ContentSource, get_source, list_sources
from fluxa.ingestion.store import CREATED, SKIPPED, UPDATED, store_item
from fluxa.storage.connection import get_connection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of one ``run_ingestion`` call."""

    success: bool
    run_id: str = ""
    items_fetched: int = 0
    items_created: int = 0
    items_skipped: int = 0
    items_updated: int = 0
    error: str | None = None
    skipped_reason: str | None = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _number(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _create_run(
    database_path: str,
    source_id: str,
    status: str = "running",
    skipped_reason: str | None = None,
    error_message: str | None = None,
) -> str:
    """Insert a content run record. Skipped runs are completed on creation."""
    run_id = str(uuid.uuid4())
    started_at = _now()
    completed_at = started_at if status == "skipped" else None
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO content_runs "
            "(id, source_id, status, skipped_reason, error_message, started_at, completed_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (run_id, source_id, status, skipped_reason, error_message, started_at, completed_at),
        )
    return run_id


def _finish_run(
    database_path: str,
    run_id: str,
    status: str,
    counts: dict[str, int],
    error_message: str | None = None,
    skipped_reason: str | None = None,
) -> None:
    with get_connection(database_path) as conn:
        conn.execute(
            "UPDATE content_runs SET status = ?, skipped_reason = ?, "
            "items_fetched = ?, items_created = ?, items_skipped = ?, items_updated = ?, "
            "error_message = ?, completed_at = ? WHERE id = ?",
            (
                status,
                skipped_reason,
                counts["fetched"],
                counts[CREATED],
                counts[SKIPPED],
                counts[UPDATED],
                error_message,
                _now(),
                run_id,
            ),
        )


def _record_health(
    database_path: str,
    source_id: str,
    run_id: str,
    success: bool,
    items_created: int = 0,
    error: str | None = None,
) -> None:
    """Upsert the latest run outcome. Failures increment the consecutive count."""
    now = _now()
    with get_connection(database_path) as conn:
        if success:
            conn.execute(
                "INSERT INTO source_health "
                "(source_id, last_run_id, last_success, items_created, "
                "consecutive_failures, last_succeeded_at, updated_at) "
                "VALUES (?, ?, 1, ?, 0, ?, ?) "
                "ON CONFLICT(source_id) DO UPDATE SET "
                "last_run_id = excluded.last_run_id, last_success = 1, "
                "items_created = excluded.items_created, consecutive_failures = 0, "
                "last_error = NULL, last_succeeded_at = excluded.last_succeeded_at, "
                "updated_at = excluded.updated_at",
                (source_id, run_id, items_created, now, now),
            )
        else:
            conn.execute(
                "INSERT INTO source_health "
                "(source_id, last_run_id, last_success, items_created, "
                "consecutive_failures, last_error, last_failed_at, updated_at) "
                "VALUES (?, ?, 0, ?, 1, ?, ?, ?) "
                "ON CONFLICT(source_id) DO UPDATE SET "
                "last_run_id = excluded.last_run_id, last_success = 0, "
                "items_created = excluded.items_created, "
                "consecutive_failures = consecutive_failures + 1, "
                "last_error = excluded.last_error, last_failed_at = excluded.last_failed_at, "
                "updated_at = excluded.updated_at",
                (source_id, run_id, items_created, error, now, now),
            )


def get_source_health(database_path: str, source_id: str) -> dict | None:
    with get_connection(database_path) as conn:
        row = conn.execute(
            "SELECT * FROM source_health WHERE source_id = ?", (source_id,)
        ).fetchone()
    return dict(row) if row is not None else None


def _last_completed_at(database_path: str, source_id: str) -> datetime | None:
    with get_connection(database_path) as conn:
        row = conn.execute(
            "SELECT completed_at FROM content_runs "
            "WHERE source_id = ? AND status = 'completed' AND completed_at IS NOT NULL "
            "ORDER BY completed_at DESC LIMIT 1",
            (source_id,),
        ).fetchone()
    if row is None:
        return None
    completed = datetime.fromisoformat(row["completed_at"])
    if completed.tzinfo is None:
        completed = completed.replace(tzinfo=timezone.utc)
    return completed


def _daily_budget(source: ContentSource, config: Config) -> int | None:
    """Calls allowed per UTC day, or None when the source is not budgeted."""
    configured = _number(source.config.get("daily_budget"))
    if configured is not None:
        return int(configured)
    if source.source_key in config.budgeted_sources:
        return config.api_sports_daily_budget
    return None


def _adapter_options(source: ContentSource, config: Config) -> AdapterOptions:
    max_items = _number(source.config.get("max_items_per_run"))
    settings = source.config.get("settings")
    return AdapterOptions(
        max_items_per_run=int(max_items) if max_items is not None else config.max_items_per_run,
        base_url=source.config.get("base_url"),
        host=source.config.get("host"),
        settings=settings if isinstance(settings, dict) else {},
    )


def run_ingestion(
    source_key: str,
    config: Config,
    force: bool = False,
    fetched_at: datetime | None = None,
) -> IngestionResult:
    """Run one ingestion pass for ``source_key``.

    Inactive sources and sources still inside their refresh window produce a
    skipped run. Budgeted sources consume one call from the daily ledger
    before the upstream fetch; an exhausted budget skips the run. Any error
    during the run is recorded on the run and returned, never raised.
    """
    fetched_at = fetched_at or datetime.now(timezone.utc)
    database_path = config.database_path

    source = get_source(database_path, source_key)
    if source is None:
        logger.warning("Source '%s' not found", source_key)
        return IngestionResult(success=False, error="Source not found")

    if not source.is_active:
        run_id = _create_run(
            database_path, source.id, "skipped", "disabled", "Source is disabled"
        )
        _record_health(database_path, source.id, run_id, False, error="Source is disabled")
        logger.info("Source '%s' skipped (disabled)", source_key)
        return IngestionResult(
            success=False, run_id=run_id, error="Source is disabled", skipped_reason="disabled"
        )

    refresh_hours = _number(source.config.get("default_refresh_hours"))
    if refresh_hours is None:
        refresh_hours = config.refresh_hours

    if not force:
        last = _last_completed_at(database_path, source.id)
        if last is not None:
            elapsed_hours = (fetched_at - last).total_seconds() / 3600
            if elapsed_hours < refresh_hours:
                message = f"Skipped: cadence window ({refresh_hours}h) not met"
                run_id = _create_run(database_path, source.id, "skipped", "cadence", message)
                _record_health(database_path, source.id, run_id, True)
                logger.info(
                    "Source '%s' skipped due to cadence (%.2fh elapsed, window %sh)",
                    source_key, elapsed_hours, refresh_hours,
                )
                return IngestionResult(
                    success=True, run_id=run_id, error=message, skipped_reason="cadence"
                )

    run_id = _create_run(database_path, source.id)
    counts = {"fetched": 0, CREATED: 0, SKIPPED: 0, UPDATED: 0}

    try:
        adapter = get_adapter(source_key, _adapter_options(source, config), config.credentials)

        daily_budget = _daily_budget(source, config)
        if daily_budget is not None and not check_and_increment_budget(
            source.id, daily_budget, database_path
        ):
            _finish_run(
                database_path, run_id, "skipped", counts,
                error_message="Budget exceeded", skipped_reason="budget_exceeded",
            )
            _record_health(database_path, source.id, run_id, False, error="Budget exceeded")
            logger.warning("Source '%s' skipped: daily budget of %d exceeded", source_key, daily_budget)
            return IngestionResult(
                success=False, run_id=run_id, error="Budget exceeded",
                skipped_reason="budget_exceeded",
            )

        raw = adapter.fetch()
        items = adapter.parse(raw)
        counts["fetched"] = len(items)

        for item in items:
            outcome = store_item(item, source.id, source_key, database_path, fetched_at)
            counts[outcome] += 1

        _finish_run(database_path, run_id, "completed", counts)
        _record_health(database_path, source.id, run_id, True, counts[CREATED])
        logger.info(
            "Ingestion complete for '%s': %d fetched, %d created, %d skipped, %d updated",
            source_key, counts["fetched"], counts[CREATED], counts[SKIPPED], counts[UPDATED],
        )
    except Exception as e:
        logger.exception("Ingestion failed for source '%s'", source_key)
        error_message = str(e) or type(e).__name__
        _finish_run(database_path, run_id, "failed", counts, error_message=error_message)
        _record_health(
            database_path, source.id, run_id, False, counts[CREATED], error=error_message
        )
        return IngestionResult(
            success=False,
            run_id=run_id,
            items_fetched=counts["fetched"],
            items_created=counts[CREATED],
            items_skipped=counts[SKIPPED],
            items_updated=counts[UPDATED],
            error=error_message,
        )

    return IngestionResult(
        success=True,
        run_id=run_id,
        items_fetched=counts["fetched"],
        items_created=counts[CREATED],
        items_skipped=counts[SKIPPED],
        items_updated=counts[UPDATED],
    )


def run_all_sources(config: Config) -> dict[str, IngestionResult]:
    """Run every active source in turn. One source failing does not stop the rest."""
    results: dict[str, IngestionResult] = {}
    for source in list_sources(config.database_path, active_only=True):
        results[source.source_key] = run_ingestion(source.source_key, config)
    succeeded = sum(1 for result in results.values() if result.success)
    logger.info("Ingestion pass complete: %d/%d sources succeeded", succeeded, len(results))
    return results
