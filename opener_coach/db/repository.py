"""
Statistics repositories - the narrow store interface the analyzer talks to.

    get_statistics_snapshot() -> StatisticsSnapshot
    get_generation() -> int
    apply_outcome(opener_id, outcome) -> OpenerStatistics
    save_call_session(data) -> dict
    record_session_error(entry)
    clear_all_data()

SqliteRepository persists through db.models. MemoryRepository keeps
everything in-process; it backs tests and runs where no database file is
wanted.
"""

import threading
from collections import deque

from opener_coach import config
from opener_coach.agents.error_handler import store_session_error
from opener_coach.agents.statistics import OpenerStatistics, StatisticsSnapshot
from opener_coach.db import models
from opener_coach.db.connection import gen_id


class SqliteRepository:

    def get_statistics_snapshot(self) -> StatisticsSnapshot:
        return models.get_statistics_snapshot()

    def get_generation(self) -> int:
        return models.get_statistics_generation()

    def apply_outcome(self, opener_id: str, outcome: str) -> OpenerStatistics:
        return models.apply_outcome(opener_id, outcome)

    def save_call_session(self, data: dict) -> dict:
        return models.save_call_session(data)

    def record_session_error(self, entry: dict):
        store_session_error(entry)

    def clear_all_data(self):
        models.clear_all_data()


class MemoryRepository:
    """Thread-safe in-process store with the same contract as SqliteRepository."""

    def __init__(self, statistics=(), max_sessions: int = None):
        self._lock = threading.Lock()
        self._stats = {}
        for stat in statistics:
            self._stats.setdefault(stat.opener_id, stat)
        self._generation = 0
        self._sessions = deque(maxlen=max_sessions or config.MAX_SESSIONS)
        self._errors = []

    def get_statistics_snapshot(self) -> StatisticsSnapshot:
        with self._lock:
            return StatisticsSnapshot.of(self._stats.values(), generation=self._generation)

    def get_generation(self) -> int:
        with self._lock:
            return self._generation

    def apply_outcome(self, opener_id: str, outcome: str) -> OpenerStatistics:
        if outcome not in ("stayed", "left"):
            raise ValueError(f"outcome must be 'stayed' or 'left', got {outcome!r}")
        with self._lock:
            current = self._stats.get(opener_id) or OpenerStatistics(opener_id)
            updated = current.record(outcome)
            self._stats[opener_id] = updated
            self._generation += 1
            return updated

    def save_call_session(self, data: dict) -> dict:
        session = dict(data)
        session["id"] = session.get("id") or gen_id("ses")
        with self._lock:
            self._sessions.append(session)
        return session

    def list_call_sessions(self) -> list:
        with self._lock:
            return list(reversed(self._sessions))

    def record_session_error(self, entry: dict):
        with self._lock:
            self._errors.append(dict(entry))

    def list_session_errors(self) -> list:
        """Recorded errors, newest first."""
        with self._lock:
            return list(reversed(self._errors))

    def clear_all_data(self):
        with self._lock:
            self._stats.clear()
            self._sessions.clear()
            self._generation += 1
