"""
Agent Error Handler - Captures and logs non-fatal session errors.

The matcher, classifier and recommendation engine never catch anything on
behalf of their collaborators. The session orchestration layer does: a failed
feedback generation or a failed session save must not lose the call result,
so those steps call log_session_error() or go through safe_execute().

Usage:
    from opener_coach.agents.error_handler import log_session_error, safe_execute

    result = safe_execute(
        save_session, args=(data,),
        phase="save_session", session_id=sid,
        fallback=None
    )
"""

import json
import logging
import traceback
from typing import Any, Callable

from opener_coach.db.connection import get_db_conn

logger = logging.getLogger("coach.error_handler")

_SEVERITY_LEVELS = {
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def store_session_error(entry: dict):
    """Default sink: one row in the session_errors table."""
    with get_db_conn() as conn:
        conn.execute("""
            INSERT INTO session_errors
                (session_id, opener_id, phase, error_type,
                 error_message, context, severity)
            VALUES (?, ?, ?, ?, ?, ?, ?)
        """, (
            entry["session_id"], entry["opener_id"], entry["phase"], entry["error_type"],
            entry["error_message"], json.dumps(entry["context"]), entry["severity"],
        ))
        conn.commit()


def log_session_error(
    phase: str,
    error: Exception = None,
    error_message: str = None,
    session_id: str = None,
    opener_id: str = None,
    context: dict = None,
    severity: str = "warning",
    sink: Callable[[dict], None] = None,
):
    """Record a non-fatal session error in the log and in an error store.

    `phase` names the step that failed (save_session, feedback,
    recommendation, ...). Pass either the exception or a plain message.
    `severity` is one of warning / error / critical. `sink` receives the
    error entry; it defaults to the session_errors table.
    """
    message = error_message or (str(error) if error else "Unknown error")
    error_type = type(error).__name__ if error else "UnknownError"

    logger.log(
        _SEVERITY_LEVELS.get(severity, logging.WARNING),
        "Session error in %s: %s", phase, message,
        extra={"phase": phase, "session_id": session_id or "", "opener_id": opener_id or ""},
    )

    entry = {
        "session_id": session_id,
        "opener_id": opener_id,
        "phase": phase,
        "error_type": error_type,
        "error_message": message,
        "context": context or {},
        "severity": severity,
    }
    try:
        (sink or store_session_error)(entry)
    except Exception as db_err:
        # the log line above is all that survives
        logger.error("Could not store session error: %s", db_err)


def safe_execute(
    fn: Callable,
    args: tuple = (),
    kwargs: dict = None,
    phase: str = "unknown",
    session_id: str = None,
    opener_id: str = None,
    fallback: Any = None,
    severity: str = "warning",
    sink: Callable[[dict], None] = None,
) -> Any:
    """Execute a function with automatic error capture.

    If the function raises, the error is logged and the fallback value is returned.

    Returns:
        The function's return value, or fallback if it raised.
    """
    kwargs = kwargs or {}
    try:
        return fn(*args, **kwargs)
    except Exception as e:
        log_session_error(
            phase=phase,
            error=e,
            session_id=session_id,
            opener_id=opener_id,
            context={"function": getattr(fn, "__name__", repr(fn)),
                     "traceback": traceback.format_exc()[-500:]},
            severity=severity,
            sink=sink,
        )
        return fallback


def get_errors(session_id: str = None, severity: str = None,
               unresolved_only: bool = True) -> list:
    """Get logged session errors, newest first."""
    query = "SELECT * FROM session_errors WHERE 1=1"
    params = []

    if session_id:
        query += " AND session_id=?"
        params.append(session_id)
    if severity:
        query += " AND severity=?"
        params.append(severity)
    if unresolved_only:
        query += " AND resolved=0"

    query += " ORDER BY id DESC"
    with get_db_conn() as conn:
        rows = conn.execute(query, params).fetchall()
    return [dict(r) for r in rows]


def resolve_error(error_id: int):
    """Mark a session error as resolved."""
    with get_db_conn() as conn:
        conn.execute("UPDATE session_errors SET resolved=1 WHERE id=?", (error_id,))
        conn.commit()
