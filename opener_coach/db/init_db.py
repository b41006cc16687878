"""
Opener Coach - Database Initialization
Creates all tables and indexes. Safe to run repeatedly.
"""

import logging
import sqlite3
from datetime import datetime, timezone

from opener_coach.db import connection

logger = logging.getLogger("coach.db")

SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- One row per completed (or cancelled-and-saved) call
CREATE TABLE IF NOT EXISTS call_sessions (
    id TEXT PRIMARY KEY,
    started_at TEXT NOT NULL,
    ended_at TEXT,
    opener_id TEXT,
    outcome TEXT CHECK (outcome IN ('stayed', 'left')),
    agent_transcript TEXT DEFAULT '',
    other_transcript TEXT DEFAULT '',
    call_duration_seconds REAL,
    had_other_party_response INTEGER DEFAULT 0,
    created_at TEXT DEFAULT (datetime('now'))
);

-- Cumulative per-opener counters; success rate is derived, never stored
CREATE TABLE IF NOT EXISTS opener_statistics (
    opener_id TEXT PRIMARY KEY,
    total_uses INTEGER NOT NULL DEFAULT 0 CHECK (total_uses >= 0),
    successful_uses INTEGER NOT NULL DEFAULT 0
        CHECK (successful_uses >= 0 AND successful_uses <= total_uses),
    last_used TEXT
);

-- Bumped in the same transaction as every statistics write
CREATE TABLE IF NOT EXISTS store_meta (
    key TEXT PRIMARY KEY,
    value INTEGER NOT NULL DEFAULT 0
);

-- Non-fatal orchestration errors
CREATE TABLE IF NOT EXISTS session_errors (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id TEXT,
    opener_id TEXT,
    phase TEXT NOT NULL,
    error_type TEXT,
    error_message TEXT,
    context TEXT DEFAULT '{}',
    severity TEXT DEFAULT 'warning',
    resolved INTEGER DEFAULT 0,
    created_at TEXT DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS schema_versions (
    version INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    applied_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_sessions_opener ON call_sessions(opener_id);
CREATE INDEX IF NOT EXISTS idx_sessions_started ON call_sessions(started_at);
CREATE INDEX IF NOT EXISTS idx_errors_session ON session_errors(session_id);

INSERT OR IGNORE INTO store_meta (key, value) VALUES ('statistics_generation', 0);
"""

EXPECTED_TABLES = [
    "call_sessions", "opener_statistics", "store_meta",
    "session_errors", "schema_versions",
]


def init_db(db_path=None):
    """Initialize the database with all tables and indexes."""
    path = db_path or connection.DB_PATH
    conn = sqlite3.connect(path)
    conn.executescript(SCHEMA_SQL)
    conn.execute(
        "INSERT OR IGNORE INTO schema_versions (version, name, applied_at) VALUES (?,?,?)",
        (SCHEMA_VERSION, "baseline", datetime.now(timezone.utc).isoformat()),
    )
    conn.commit()

    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = [row[0] for row in cursor.fetchall() if not row[0].startswith("sqlite_")]
    conn.close()

    logger.info("Database initialized at %s (%d tables)", path, len(tables))
    return tables


def verify_db(db_path=None) -> bool:
    """Verify the database schema is correct."""
    path = db_path or connection.DB_PATH
    conn = sqlite3.connect(path)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    actual_tables = [row[0] for row in cursor.fetchall()]
    conn.close()

    missing = set(EXPECTED_TABLES) - set(actual_tables)
    if missing:
        logger.error("Missing tables: %s", sorted(missing))
        return False
    return True


if __name__ == "__main__":
    from opener_coach.logging_config import setup_logging
    setup_logging()
    init_db()
    verify_db()
