"""
Opener Coach - Recommendation Engine
Decides which opener the agent should use next.

Three phases, first applicable wins:
1. FAIR TESTING: any opener with fewer than MIN_ATTEMPTS_FOR_FAIR_TESTING uses
   is recommended (fewest uses first) so every opener gets a baseline sample.
2. PERFORMANCE: once everything is tested, recommend the highest success rate,
   unless that opener has plenty of history and trails its peers' average by
   more than PERFORMANCE_DECLINE_THRESHOLD, in which case switch to the
   runner-up.
3. FALLBACK: nothing to go on, recommend the first catalog opener.

The engine holds no state between calls. The result is a pure function of the
statistics passed in, so a single instance can be shared freely.
"""

from dataclasses import dataclass
from typing import List, Optional

from opener_coach import config
from opener_coach.agents.openers import OPENERS, Opener, validate_catalog
from opener_coach.agents.statistics import OpenerStatistics, StatisticsSnapshot
from opener_coach.errors import ConfigurationError
from opener_coach.logging_config import get_agent_logger

logger = get_agent_logger("recommender")

FAIR_TESTING = "fair_testing"
BEST_PERFORMER = "best_performer"
PERFORMANCE_DECLINE = "performance_decline"
FALLBACK = "fallback"

EXPLANATIONS = {
    FAIR_TESTING: "Testing for optimal performance",
    BEST_PERFORMER: "Top performer ({confidence} confidence)",
    PERFORMANCE_DECLINE: "Switching to better alternative",
    FALLBACK: "Default recommendation",
}


# ─── POLICY ──────────────────────────────────────────────────

@dataclass(frozen=True)
class RecommendationPolicy:
    """Tunable thresholds for the phased policy."""
    min_attempts_for_fair_testing: int = 3
    min_attempts_for_confidence: int = 5
    performance_decline_threshold: float = 0.15

    def __post_init__(self):
        for name in ("min_attempts_for_fair_testing", "min_attempts_for_confidence"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
        threshold = self.performance_decline_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) \
                or not 0 <= threshold <= 1:
            raise ConfigurationError(
                f"performance_decline_threshold must be within 0-1, got {threshold!r}")

    @classmethod
    def from_config(cls) -> "RecommendationPolicy":
        return cls(
            min_attempts_for_fair_testing=config.MIN_ATTEMPTS_FOR_FAIR_TESTING,
            min_attempts_for_confidence=config.MIN_ATTEMPTS_FOR_CONFIDENCE,
            performance_decline_threshold=config.PERFORMANCE_DECLINE_THRESHOLD,
        )

    @property
    def min_attempts_for_decline(self) -> int:
        return self.min_attempts_for_confidence * 2


@dataclass(frozen=True)
class RecommendationResult:
    recommended_opener: Optional[Opener]  # None only for an empty catalog
    reason: str
    confidence: str  # low / medium / high

    def to_dict(self):
        return {
            "recommended_opener": self.recommended_opener.to_dict() if self.recommended_opener else None,
            "reason": self.reason,
            "confidence": self.confidence,
        }


# ─── ENGINE ──────────────────────────────────────────────────

class RecommendationEngine:

    def __init__(self, policy: RecommendationPolicy = None, openers=OPENERS):
        self.policy = policy or RecommendationPolicy.from_config()
        self._openers = validate_catalog(openers)
        self._catalog_index = {o.id: i for i, o in enumerate(self._openers)}

    def get_recommendation(self, statistics) -> RecommendationResult:
        """Recommend the next opener from a statistics snapshot or list."""
        snapshot = _as_snapshot(statistics)

        result = (self._check_fair_testing(snapshot)
                  or self._performance_based(snapshot)
                  or self._fallback())
        logger.debug("Recommendation: %s (%s, %s confidence)",
                     result.recommended_opener.id if result.recommended_opener else None,
                     result.reason, result.confidence,
                     extra={"reason": result.reason})
        return result

    def get_sorted_openers(self, statistics) -> List[Opener]:
        """Full catalog, recommended opener first, the rest by success rate.

        Openers without statistics count as a 0% rate; ties keep catalog order.
        """
        snapshot = _as_snapshot(statistics)
        recommended = self.get_recommendation(snapshot).recommended_opener
        recommended_id = recommended.id if recommended else None
        by_id = snapshot.by_id()

        def sort_key(item):
            index, opener = item
            stat = by_id.get(opener.id)
            return (
                0 if opener.id == recommended_id else 1,
                -(stat.success_rate if stat else 0.0),
                index,
            )

        return [o for _, o in sorted(enumerate(self._openers), key=sort_key)]

    def get_recommendation_explanation(self, result: RecommendationResult) -> str:
        template = EXPLANATIONS.get(result.reason)
        if template is None:
            return "Recommended"
        return template.format(confidence=result.confidence)

    # ─── PHASES ──────────────────────────────────────────────

    def _uses(self, snapshot: StatisticsSnapshot, opener_id: str) -> int:
        stat = snapshot.get(opener_id)
        return stat.total_uses if stat else 0

    def _check_fair_testing(self, snapshot: StatisticsSnapshot) -> Optional[RecommendationResult]:
        minimum = self.policy.min_attempts_for_fair_testing
        undertested = [o for o in self._openers if self._uses(snapshot, o.id) < minimum]
        if not undertested:
            return None

        # ids compare by code point ("B" sorts before "b"), not by locale
        least_tested = min(undertested, key=lambda o: (self._uses(snapshot, o.id), o.id))
        return RecommendationResult(least_tested, FAIR_TESTING, "low")

    def _ranked(self, snapshot: StatisticsSnapshot) -> List[OpenerStatistics]:
        """Catalog openers with enough uses for a performance judgment, best
        success rate first. Equal rates keep catalog order."""
        minimum = self.policy.min_attempts_for_fair_testing
        tested = [s for s in snapshot.by_id().values()
                  if s.opener_id in self._catalog_index and s.total_uses >= minimum]
        return sorted(tested, key=lambda s: (-s.success_rate, self._catalog_index[s.opener_id]))

    def _performance_based(self, snapshot: StatisticsSnapshot) -> Optional[RecommendationResult]:
        # Retired openers (ids no longer in the catalog) are never ranked, but
        # still count as peers for decline detection.
        ranked = self._ranked(snapshot)
        if not ranked:
            return None

        best = ranked[0]
        if len(ranked) > 1 and self.is_performance_declining(best, snapshot):
            runner_up = ranked[1]
            logger.info("Best performer %s is declining, switching to %s",
                        best.opener_id, runner_up.opener_id,
                        extra={"opener_id": runner_up.opener_id, "reason": PERFORMANCE_DECLINE})
            return RecommendationResult(
                self._openers[self._catalog_index[runner_up.opener_id]],
                PERFORMANCE_DECLINE,
                self._confidence(runner_up),
            )

        return RecommendationResult(
            self._openers[self._catalog_index[best.opener_id]],
            BEST_PERFORMER,
            self._confidence(best),
        )

    def is_performance_declining(self, stat: OpenerStatistics, statistics) -> bool:
        """True if `stat` has enough history and trails the mean rate of the
        other sufficiently-tested openers by more than the decline threshold."""
        if stat.total_uses < self.policy.min_attempts_for_decline:
            return False

        minimum = self.policy.min_attempts_for_fair_testing
        peers = [s for s in _as_snapshot(statistics).by_id().values()
                 if s.total_uses >= minimum and s.opener_id != stat.opener_id]
        if not peers:
            return False

        average = sum(s.success_rate for s in peers) / len(peers)
        return average - stat.success_rate > self.policy.performance_decline_threshold

    def _confidence(self, stat: OpenerStatistics) -> str:
        if stat.total_uses >= self.policy.min_attempts_for_confidence:
            return "high"
        return "medium"

    def _fallback(self) -> RecommendationResult:
        first = self._openers[0] if self._openers else None
        return RecommendationResult(first, FALLBACK, "low")


def _as_snapshot(statistics) -> StatisticsSnapshot:
    if isinstance(statistics, StatisticsSnapshot):
        return statistics
    return StatisticsSnapshot.of(statistics or ())
