"""
Unit tests for the phased recommendation engine.
Fair testing -> best performer / performance decline -> fallback.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

import pytest

from opener_coach.agents.recommender import (
    RecommendationEngine,
    RecommendationPolicy,
    RecommendationResult,
    FAIR_TESTING,
    BEST_PERFORMER,
    PERFORMANCE_DECLINE,
    FALLBACK,
)
from opener_coach.agents.openers import Opener
from opener_coach.agents.statistics import OpenerStatistics, StatisticsSnapshot
from opener_coach.db.repository import MemoryRepository
from opener_coach.errors import ConfigurationError

POLICY = RecommendationPolicy(
    min_attempts_for_fair_testing=3,
    min_attempts_for_confidence=5,
    performance_decline_threshold=0.15,
)


def _stat(opener_id, total, successful):
    return OpenerStatistics(opener_id=opener_id, total_uses=total, successful_uses=successful)


# ─── FAIR TESTING ────────────────────────────────────────────

def test_no_statistics_recommends_first_opener_for_testing(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    result = engine.get_recommendation([])
    assert result.recommended_opener.id == "A"
    assert result.reason == FAIR_TESTING
    assert result.confidence == "low"


def test_least_used_opener_is_tested_first(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    result = engine.get_recommendation([_stat("A", 2, 1), _stat("B", 1, 0), _stat("C", 2, 2)])
    assert result.recommended_opener.id == "B"
    assert result.reason == FAIR_TESTING


def test_fair_testing_tie_breaks_on_code_point_order():
    catalog = (
        Opener(id="b", text="Lowercase id listed first."),
        Opener(id="B", text="Uppercase id listed second."),
    )
    engine = RecommendationEngine(POLICY, openers=catalog)
    assert engine.get_recommendation([]).recommended_opener.id == "B"


def test_round_robin_until_every_opener_is_tested(abc_catalog):
    """Nine calls with an always-staying A: fair testing cycles A, B, C
    three times, then A takes over as the best performer."""
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    repo = MemoryRepository()
    sequence = []

    for _ in range(9):
        result = engine.get_recommendation(repo.get_statistics_snapshot())
        assert result.reason == FAIR_TESTING
        opener_id = result.recommended_opener.id
        sequence.append(opener_id)
        repo.apply_outcome(opener_id, "stayed" if opener_id == "A" else "left")

    assert "".join(sequence) == "ABCABCABC"

    result = engine.get_recommendation(repo.get_statistics_snapshot())
    assert result.recommended_opener.id == "A"
    assert result.reason == BEST_PERFORMER
    assert result.confidence == "medium"


# ─── PERFORMANCE PHASE ───────────────────────────────────────

def test_confidence_high_once_enough_uses(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    result = engine.get_recommendation([_stat("A", 5, 4), _stat("B", 3, 1), _stat("C", 3, 0)])
    assert result.recommended_opener.id == "A"
    assert result.reason == BEST_PERFORMER
    assert result.confidence == "high"


def test_equal_rates_prefer_catalog_order(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    result = engine.get_recommendation([_stat("C", 4, 2), _stat("B", 4, 2), _stat("A", 4, 1)])
    assert result.recommended_opener.id == "B"


def test_declining_best_switches_to_runner_up(abc_catalog):
    """A leads the catalog, but a retired opener Z shows that 0.5 trails what
    tested openers have achieved by more than the threshold."""
    engine = RecommendationEngine(POLICY, openers=abc_catalog[:2])
    stats = [_stat("A", 10, 5), _stat("B", 3, 1), _stat("Z", 10, 10)]

    result = engine.get_recommendation(stats)
    assert result.recommended_opener.id == "B"
    assert result.reason == PERFORMANCE_DECLINE
    assert result.confidence == "medium"


def test_best_without_decline_stays_best(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog[:2])
    result = engine.get_recommendation([_stat("A", 10, 5), _stat("B", 3, 1)])
    assert result.recommended_opener.id == "A"
    assert result.reason == BEST_PERFORMER
    assert result.confidence == "high"


def test_retired_openers_are_never_recommended(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    stats = [_stat("A", 3, 1), _stat("B", 3, 2), _stat("C", 3, 0), _stat("Z", 50, 50)]
    assert engine.get_recommendation(stats).recommended_opener.id == "B"


def test_decline_needs_twice_the_confidence_uses(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    peers = [_stat("B", 3, 3)]
    assert engine.is_performance_declining(_stat("A", 9, 0), peers) is False
    assert engine.is_performance_declining(_stat("A", 10, 0), peers) is True


def test_decline_ignores_undertested_peers(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    assert engine.is_performance_declining(_stat("A", 10, 0), [_stat("B", 2, 2)]) is False


def test_decline_threshold_is_strict(abc_catalog):
    policy = RecommendationPolicy(3, 5, 0.5)
    engine = RecommendationEngine(policy, openers=abc_catalog)
    # peers average 1.0, A at 0.5: exactly the threshold, not beyond it
    assert engine.is_performance_declining(_stat("A", 10, 5), [_stat("B", 4, 4)]) is False


# ─── FALLBACK / INPUT SHAPES ─────────────────────────────────

def test_empty_catalog_falls_back_to_nothing():
    engine = RecommendationEngine(POLICY, openers=())
    result = engine.get_recommendation([_stat("A", 10, 10)])
    assert result.recommended_opener is None
    assert result.reason == FALLBACK
    assert result.confidence == "low"


def test_duplicate_statistics_first_record_wins(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    stats = [_stat("A", 3, 0), _stat("A", 3, 3), _stat("B", 3, 1), _stat("C", 3, 1)]
    assert engine.get_recommendation(stats).recommended_opener.id == "B"


def test_accepts_snapshot_or_list(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    stats = [_stat("A", 3, 0), _stat("B", 3, 3), _stat("C", 3, 1)]
    assert engine.get_recommendation(stats) == engine.get_recommendation(StatisticsSnapshot.of(stats))


# ─── SORTED OPENERS ──────────────────────────────────────────

def test_sorted_openers_recommended_first_then_by_rate(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    stats = [_stat("A", 3, 1), _stat("B", 3, 3), _stat("C", 3, 2)]
    assert [o.id for o in engine.get_sorted_openers(stats)] == ["B", "C", "A"]


def test_sorted_openers_without_statistics_keep_catalog_order(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    assert [o.id for o in engine.get_sorted_openers([])] == ["A", "B", "C"]


def test_sorted_openers_puts_fair_testing_pick_first(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    stats = [_stat("A", 3, 3), _stat("B", 3, 0)]
    assert [o.id for o in engine.get_sorted_openers(stats)] == ["C", "A", "B"]


# ─── EXPLANATIONS / POLICY ───────────────────────────────────

def test_explanations(abc_catalog):
    engine = RecommendationEngine(POLICY, openers=abc_catalog)
    opener = abc_catalog[0]
    assert engine.get_recommendation_explanation(
        RecommendationResult(opener, BEST_PERFORMER, "high")) == "Top performer (high confidence)"
    assert engine.get_recommendation_explanation(
        RecommendationResult(opener, FAIR_TESTING, "low")) == "Testing for optimal performance"
    assert engine.get_recommendation_explanation(
        RecommendationResult(opener, PERFORMANCE_DECLINE, "medium")) == "Switching to better alternative"
    assert engine.get_recommendation_explanation(
        RecommendationResult(opener, FALLBACK, "low")) == "Default recommendation"
    assert engine.get_recommendation_explanation(
        RecommendationResult(opener, "something_new", "low")) == "Recommended"


@pytest.mark.parametrize("kwargs", [
    {"min_attempts_for_fair_testing": 0},
    {"min_attempts_for_confidence": -1},
    {"performance_decline_threshold": 1.5},
    {"performance_decline_threshold": -0.1},
])
def test_invalid_policy_rejected(kwargs):
    with pytest.raises(ConfigurationError):
        RecommendationPolicy(**kwargs)


def test_policy_decline_minimum():
    assert RecommendationPolicy(3, 5, 0.15).min_attempts_for_decline == 10


def test_result_to_dict(abc_catalog):
    data = RecommendationResult(abc_catalog[0], FAIR_TESTING, "low").to_dict()
    assert data["recommended_opener"]["id"] == "A"
    assert data["reason"] == FAIR_TESTING
