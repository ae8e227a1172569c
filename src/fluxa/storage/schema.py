"""Database schema definition and initialization."""

from __future__ import annotations

import logging

from fluxa.storage.connection import get_connection

logger = logging.getLogger(__name__)

_SCHEMA_SQL = """\
-- Configured upstream sources
CREATE TABLE IF NOT EXISTS content_sources (
    id              TEXT PRIMARY KEY,
    source_key      TEXT NOT NULL UNIQUE,
    name            TEXT NOT NULL,
    is_active       INTEGER NOT NULL DEFAULT 1,
    config          TEXT NOT NULL DEFAULT '{}',    -- JSON object
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

-- One row per ingestion run of one source
CREATE TABLE IF NOT EXISTS content_runs (
    id              TEXT PRIMARY KEY,
    source_id       TEXT NOT NULL REFERENCES content_sources(id),
    status          TEXT NOT NULL CHECK (status IN (
                        'running', 'completed', 'failed', 'skipped'
                    )),
    skipped_reason  TEXT CHECK (skipped_reason IN (
                        'disabled', 'cadence', 'budget_exceeded'
                    )),
    items_fetched   INTEGER NOT NULL DEFAULT 0,
    items_created   INTEGER NOT NULL DEFAULT 0,
    items_skipped   INTEGER NOT NULL DEFAULT 0,
    items_updated   INTEGER NOT NULL DEFAULT 0,
    error_message   TEXT,
    started_at      TEXT NOT NULL,
    completed_at    TEXT
);

-- Normalized items persisted from adapters
CREATE TABLE IF NOT EXISTS content_items (
    id              TEXT PRIMARY KEY,
    source_id       TEXT NOT NULL REFERENCES content_sources(id),
    external_id     TEXT,
    content_hash    TEXT NOT NULL UNIQUE,
    title           TEXT NOT NULL,
    url             TEXT,
    excerpt         TEXT,
    published_at    TEXT NOT NULL,
    image_url       TEXT,
    content_type    TEXT,
    categories      TEXT NOT NULL DEFAULT '[]',    -- JSON array
    raw_data        TEXT NOT NULL DEFAULT '{}',    -- JSON
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL
);

-- Daily API usage budget, one row per (source, UTC day)
CREATE TABLE IF NOT EXISTS api_usage_budget (
    source_id       TEXT NOT NULL,
    period_start    TEXT NOT NULL,
    period_end      TEXT NOT NULL,
    budget_limit    INTEGER NOT NULL,
    usage_count     INTEGER NOT NULL DEFAULT 0,
    last_reset_at   TEXT NOT NULL,
    created_at      TEXT NOT NULL,
    updated_at      TEXT NOT NULL,
    UNIQUE (source_id, period_start)
);

-- Latest run outcome per source
CREATE TABLE IF NOT EXISTS source_health (
    source_id               TEXT PRIMARY KEY REFERENCES content_sources(id),
    last_run_id             TEXT,
    last_success            INTEGER NOT NULL,
    items_created           INTEGER NOT NULL DEFAULT 0,
    consecutive_failures    INTEGER NOT NULL DEFAULT 0,
    last_error              TEXT,
    last_succeeded_at       TEXT,
    last_failed_at          TEXT,
    updated_at              TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_content_runs_source_id ON content_runs(source_id);
CREATE INDEX IF NOT EXISTS idx_content_runs_started_at ON content_runs(started_at);
CREATE INDEX IF NOT EXISTS idx_content_items_source_external
    ON content_items(source_id, external_id);
CREATE INDEX IF NOT EXISTS idx_content_items_published_at ON content_items(published_at);
"""


def init_db(database_path: str) -> None:
    """Create all tables and indexes if they do not already exist."""
    with get_connection(database_path) as conn:
        conn.executescript(_SCHEMA_SQL)
    logger.info("Database initialized at %s", database_path)
