"""
Process-wide service wiring for the API.

One repository, analyzer and session manager are shared by all requests.
Tests call reset_services() with a fresh repository between cases.
"""

import threading

from opener_coach.agents.matcher import OpenerMatcher
from opener_coach.agents.outcome_classifier import OutcomeClassifier
from opener_coach.agents.performance_analyzer import PerformanceAnalyzer
from opener_coach.agents.session_manager import CallSessionManager
from opener_coach.db.repository import SqliteRepository


class Services:

    def __init__(self, repository=None):
        self.repository = repository or SqliteRepository()
        self.analyzer = PerformanceAnalyzer(self.repository)
        self.matcher = OpenerMatcher()
        self.classifier = OutcomeClassifier()
        self.sessions = CallSessionManager(
            self.repository,
            analyzer=self.analyzer,
            matcher=self.matcher,
            classifier=self.classifier,
        )


_services = None
_lock = threading.Lock()


def get_services() -> Services:
    global _services
    with _lock:
        if _services is None:
            _services = Services()
        return _services


def reset_services(repository=None) -> Services:
    global _services
    with _lock:
        _services = Services(repository)
        return _services
