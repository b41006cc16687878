"""
Opener Coach - Performance Analyzer
Records call outcomes against opener statistics and serves the derived views
(success rates, sorted statistics, openers worth suggesting, the current
recommendation).

Derived views are cached on the StatisticsSnapshot they were computed from.
When the store's generation moves on, the analyzer loads a fresh snapshot and
the old caches are simply dropped with it.
"""

import logging
import threading
from typing import List

from opener_coach.agents.openers import OPENERS, Opener, validate_catalog
from opener_coach.agents.recommender import RecommendationEngine, RecommendationResult
from opener_coach.agents.statistics import OpenerStatistics, StatisticsSnapshot

logger = logging.getLogger("coach.agents.performance_analyzer")

# Openers with at least this many uses and a rate below the floor are not
# suggested as alternatives after a failed call.
EXCLUSION_MIN_USES = 10
EXCLUSION_RATE_FLOOR = 0.30


class PerformanceAnalyzer:

    def __init__(self, repository, engine: RecommendationEngine = None, openers=OPENERS):
        self.repository = repository
        self._openers = validate_catalog(openers)
        self.engine = engine or RecommendationEngine(openers=self._openers)
        self._snapshot = None
        self._lock = threading.Lock()

    # ─── WRITES ──────────────────────────────────────────────

    def update_statistics(self, opener_id: str, outcome: str) -> OpenerStatistics:
        """Apply one completed session. The store does the read-modify-write
        atomically, so this is the only place counters grow."""
        updated = self.repository.apply_outcome(opener_id, outcome)
        logger.info("Statistics updated for %s: %d/%d (%.0f%%)",
                    opener_id, updated.successful_uses, updated.total_uses,
                    updated.success_rate * 100,
                    extra={"opener_id": opener_id, "outcome": outcome})
        with self._lock:
            self._snapshot = None
        return updated

    def clear_all_data(self):
        """Drop every statistic and stored session."""
        self.repository.clear_all_data()
        logger.warning("All statistics and sessions cleared")
        with self._lock:
            self._snapshot = None

    # ─── READS ───────────────────────────────────────────────

    def get_snapshot(self) -> StatisticsSnapshot:
        """The cached snapshot, reloaded when the store's generation has moved.

        A snapshot is tagged with the generation read in the same transaction
        as its rows, so a tag that matches the store means the rows are current.
        """
        with self._lock:
            snapshot = self._snapshot
            if snapshot is None or snapshot.generation != self.repository.get_generation():
                snapshot = self._snapshot = self.repository.get_statistics_snapshot()
            return snapshot

    def get_success_rate(self, opener_id: str) -> float:
        stat = self.get_snapshot().get(opener_id)
        return stat.success_rate if stat else 0.0

    def get_all_statistics(self) -> List[OpenerStatistics]:
        """All statistics, best success rate first."""
        return list(self.get_snapshot().derive(
            "sorted_statistics",
            lambda stats: sorted(stats, key=lambda s: s.success_rate, reverse=True),
        ))

    def get_recommended_openers(self) -> List[Opener]:
        """Catalog openers worth suggesting, best success rate first.

        Proven under-performers are left out. If that leaves nothing, the
        single best-rated opener is returned instead.
        """
        return list(self.get_snapshot().derive("recommended_openers", self._recommended_openers))

    def get_recommendation(self) -> RecommendationResult:
        return self.get_snapshot().derive("recommendation", self.engine.get_recommendation)

    def get_sorted_openers(self) -> List[Opener]:
        return list(self.get_snapshot().derive("sorted_openers", self.engine.get_sorted_openers))

    def _recommended_openers(self, statistics) -> List[Opener]:
        by_id = {}
        for stat in statistics:
            by_id.setdefault(stat.opener_id, stat)

        excluded = {
            s.opener_id for s in by_id.values()
            if s.total_uses >= EXCLUSION_MIN_USES and s.success_rate < EXCLUSION_RATE_FLOOR
        }
        candidates = [o for o in self._openers if o.id not in excluded]

        def rate(opener):
            stat = by_id.get(opener.id)
            return stat.success_rate if stat else 0.0

        if not candidates:
            best = max(self._openers, key=rate, default=None)
            return [best] if best else []

        return sorted(candidates, key=rate, reverse=True)
