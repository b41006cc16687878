"""
Unit tests for post-call feedback messages and alternative opener suggestions.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

import random

from opener_coach.agents.feedback_generator import (
    FeedbackGenerator,
    generic_feedback,
    POSITIVE_MESSAGES,
    NEGATIVE_MESSAGES,
    GENERIC_POSITIVE,
    GENERIC_NEGATIVE,
)
from opener_coach.agents.performance_analyzer import PerformanceAnalyzer
from opener_coach.agents.statistics import OpenerStatistics
from opener_coach.db.repository import MemoryRepository


def _generator(catalog, stats=(), seed=0):
    analyzer = PerformanceAnalyzer(MemoryRepository(statistics=stats), openers=catalog)
    return FeedbackGenerator(analyzer, rng=random.Random(seed), openers=catalog)


def test_stayed_is_positive_without_suggestion(abc_catalog):
    feedback = _generator(abc_catalog).generate_feedback("stayed", abc_catalog[0])
    assert feedback.type == "positive"
    assert feedback.message in POSITIVE_MESSAGES
    assert feedback.suggested_opener is None


def test_left_suggests_a_different_opener(abc_catalog):
    for seed in range(10):
        feedback = _generator(abc_catalog, seed=seed).generate_feedback("left", abc_catalog[0])
        assert feedback.type == "negative"
        assert feedback.message in NEGATIVE_MESSAGES
        assert feedback.suggested_opener.id in ("B", "C")


def test_left_never_suggests_proven_underperformer(abc_catalog):
    stats = [OpenerStatistics("C", 10, 0)]
    for seed in range(10):
        feedback = _generator(abc_catalog, stats, seed=seed).generate_feedback("left", abc_catalog[0])
        assert feedback.suggested_opener.id == "B"


def test_single_opener_catalog_suggests_itself(abc_catalog):
    catalog = abc_catalog[:1]
    feedback = _generator(catalog).generate_feedback("left", catalog[0])
    assert feedback.suggested_opener.id == "A"


def test_empty_catalog_has_no_suggestion(abc_catalog):
    feedback = _generator(()).generate_feedback("left", abc_catalog[0])
    assert feedback.type == "negative"
    assert feedback.suggested_opener is None


def test_no_opener_gets_generic_feedback(abc_catalog):
    generator = _generator(abc_catalog)
    assert generator.generate_feedback("stayed", None).message == GENERIC_POSITIVE
    negative = generator.generate_feedback("left", None)
    assert negative.message == GENERIC_NEGATIVE
    assert negative.suggested_opener is None


def test_generic_feedback_to_dict():
    data = generic_feedback("left").to_dict()
    assert data == {
        "type": "negative",
        "message": GENERIC_NEGATIVE,
        "suggested_opener": None,
        "show_celebration": False,
    }
