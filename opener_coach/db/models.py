"""
Opener Coach - Data Access Layer
Call sessions and per-opener statistics, backed by sqlite.

Statistics writes are single UPSERT statements committed together with the
generation counter, so concurrent sessions finishing on the same opener can't
lose an update and readers always see a consistent generation.
"""

from datetime import datetime, timezone
from typing import Optional

from opener_coach import config
from opener_coach.agents.statistics import OpenerStatistics, StatisticsSnapshot
from opener_coach.db.connection import get_db_conn, gen_id

_SESSION_FIELDS = (
    "id", "started_at", "ended_at", "opener_id", "outcome",
    "agent_transcript", "other_transcript", "call_duration_seconds",
    "had_other_party_response",
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _iso(value):
    return value.isoformat() if isinstance(value, datetime) else value


# ─── CALL SESSIONS ──────────────────────────────────────────────

def save_call_session(data: dict, max_sessions: int = None) -> dict:
    """Insert or replace a call session, then prune to the newest `max_sessions`."""
    max_sessions = max_sessions or config.MAX_SESSIONS
    sid = data.get("id") or gen_id("ses")
    row = {
        "id": sid,
        "started_at": _iso(data.get("started_at")) or _now(),
        "ended_at": _iso(data.get("ended_at")),
        "opener_id": data.get("opener_id"),
        "outcome": data.get("outcome"),
        "agent_transcript": data.get("agent_transcript", ""),
        "other_transcript": data.get("other_transcript", ""),
        "call_duration_seconds": data.get("call_duration_seconds"),
        "had_other_party_response": 1 if data.get("had_other_party_response") else 0,
    }
    with get_db_conn() as conn:
        conn.execute(f"""
            INSERT OR REPLACE INTO call_sessions ({", ".join(_SESSION_FIELDS)})
            VALUES ({", ".join("?" for _ in _SESSION_FIELDS)})
        """, tuple(row[f] for f in _SESSION_FIELDS))
        conn.execute("""
            DELETE FROM call_sessions WHERE id NOT IN (
                SELECT id FROM call_sessions ORDER BY rowid DESC LIMIT ?
            )
        """, (max_sessions,))
        conn.commit()
        saved = conn.execute("SELECT * FROM call_sessions WHERE id=?", (sid,)).fetchone()
    return _session_dict(saved) if saved else None


def get_call_session(session_id: str) -> Optional[dict]:
    with get_db_conn() as conn:
        row = conn.execute("SELECT * FROM call_sessions WHERE id=?", (session_id,)).fetchone()
    return _session_dict(row) if row else None


def list_call_sessions(limit=100, offset=0, opener_id=None, outcome=None) -> list:
    query = "SELECT * FROM call_sessions WHERE 1=1"
    params = []
    if opener_id:
        query += " AND opener_id=?"
        params.append(opener_id)
    if outcome:
        query += " AND outcome=?"
        params.append(outcome)
    query += " ORDER BY rowid DESC LIMIT ? OFFSET ?"
    params.extend([limit, offset])
    with get_db_conn() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_session_dict(r) for r in rows]


def count_call_sessions() -> int:
    with get_db_conn() as conn:
        return conn.execute("SELECT COUNT(*) FROM call_sessions").fetchone()[0]


def _session_dict(row) -> dict:
    d = dict(row)
    d["had_other_party_response"] = bool(d.get("had_other_party_response"))
    d.pop("created_at", None)
    return d


# ─── OPENER STATISTICS ─────────────────────────────────────────

def apply_outcome(opener_id: str, outcome: str, when: datetime = None) -> OpenerStatistics:
    """Count one completed session for `opener_id` as a single atomic write.

    Creates the statistics row on first use.
    """
    if outcome not in ("stayed", "left"):
        raise ValueError(f"outcome must be 'stayed' or 'left', got {outcome!r}")
    success = 1 if outcome == "stayed" else 0
    last_used = _iso(when) or _now()

    with get_db_conn() as conn:
        conn.execute("""
            INSERT INTO opener_statistics (opener_id, total_uses, successful_uses, last_used)
            VALUES (?, 1, ?, ?)
            ON CONFLICT(opener_id) DO UPDATE SET
                total_uses = total_uses + 1,
                successful_uses = successful_uses + excluded.successful_uses,
                last_used = excluded.last_used
        """, (opener_id, success, last_used))
        conn.execute(
            "UPDATE store_meta SET value = value + 1 WHERE key='statistics_generation'"
        )
        conn.commit()
        row = conn.execute(
            "SELECT * FROM opener_statistics WHERE opener_id=?", (opener_id,)
        ).fetchone()
    return OpenerStatistics.from_row(row)


def get_statistics(opener_id: str) -> Optional[OpenerStatistics]:
    with get_db_conn() as conn:
        row = conn.execute(
            "SELECT * FROM opener_statistics WHERE opener_id=?", (opener_id,)
        ).fetchone()
    return OpenerStatistics.from_row(row) if row else None


def get_all_statistics() -> list:
    return list(get_statistics_snapshot())


def get_statistics_snapshot() -> StatisticsSnapshot:
    """All statistics plus the generation they were read at.

    Both reads share one transaction. The generation is read first, so even
    without snapshot isolation a concurrent write can only leave the tag
    older than the rows, which makes the next reader reload.
    """
    with get_db_conn() as conn:
        conn.execute("BEGIN")
        try:
            gen = conn.execute(
                "SELECT value FROM store_meta WHERE key='statistics_generation'"
            ).fetchone()
            rows = conn.execute(
                "SELECT * FROM opener_statistics ORDER BY opener_id"
            ).fetchall()
        finally:
            conn.commit()
    return StatisticsSnapshot.of(
        (OpenerStatistics.from_row(r) for r in rows),
        generation=gen[0] if gen else 0,
    )


def get_statistics_generation() -> int:
    with get_db_conn() as conn:
        row = conn.execute(
            "SELECT value FROM store_meta WHERE key='statistics_generation'"
        ).fetchone()
    return row[0] if row else 0


# ─── MAINTENANCE ───────────────────────────────────────────────

def clear_all_data():
    """Delete all sessions and statistics (user-requested reset)."""
    with get_db_conn() as conn:
        conn.execute("DELETE FROM call_sessions")
        conn.execute("DELETE FROM opener_statistics")
        conn.execute(
            "UPDATE store_meta SET value = value + 1 WHERE key='statistics_generation'"
        )
        conn.commit()
