"""
Database connection utilities.
Centralizes DB_PATH, get_db(), get_db_conn() context manager, and gen_id().
"""

import os
import sqlite3
import uuid
from contextlib import contextmanager

from opener_coach import config

DB_PATH = config.DB_PATH


def get_db(db_path: str = None):
    """Get a database connection with row_factory for dict-like access."""
    conn = sqlite3.connect(db_path or DB_PATH, timeout=10)
    conn.row_factory = sqlite3.Row
    journal_mode = os.environ.get("COACH_JOURNAL_MODE", config.DB_JOURNAL_MODE)
    conn.execute(f"PRAGMA journal_mode={journal_mode}")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


@contextmanager
def get_db_conn(db_path: str = None):
    """Context manager for database connections. Ensures connections are always closed."""
    conn = get_db(db_path)
    try:
        yield conn
    finally:
        conn.close()


def gen_id(prefix=""):
    """Generate a prefixed UUID."""
    short = uuid.uuid4().hex[:12]
    return f"{prefix}_{short}" if prefix else short
