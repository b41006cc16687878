"""
Opener Coach - Outcome Classifier
Turns end-of-call signals into a binary outcome: did the prospect stay or leave?

Two entry points:
- classify_outcome(): the authoritative rule from call duration + response flag
- detect_outcome(): a suggestion derived from the prospect's own words, shown
  to the agent when they confirm the outcome manually
"""

import math
from dataclasses import dataclass, field, asdict
from typing import List

from opener_coach import config
from opener_coach.errors import ConfigurationError

STAYED = "stayed"
LEFT = "left"
OUTCOMES = (STAYED, LEFT)

# Calls shorter than this are hang-ups no matter what was said
DEFAULT_MIN_CALL_SECONDS = 10


def _check_duration(call_duration_seconds) -> float:
    if isinstance(call_duration_seconds, bool) or not isinstance(call_duration_seconds, (int, float)):
        raise ValueError(f"call duration must be a number, got {call_duration_seconds!r}")
    if math.isnan(call_duration_seconds) or call_duration_seconds < 0:
        raise ValueError(f"call duration must be a non-negative number, got {call_duration_seconds}")
    return call_duration_seconds


def classify_outcome(call_duration_seconds: float, has_other_party_response: bool,
                     min_call_seconds: float = DEFAULT_MIN_CALL_SECONDS) -> str:
    """Classify a call as 'stayed' or 'left'.

    Under `min_call_seconds` the call is a hang-up even if words were captured.
    At or above it, the prospect stayed only if they actually spoke.
    """
    duration = _check_duration(call_duration_seconds)
    if duration < min_call_seconds:
        return LEFT
    if has_other_party_response:
        return STAYED
    return LEFT


class OutcomeClassifier:
    """classify_outcome() bound to a configured minimum call length."""

    def __init__(self, min_call_seconds: float = None):
        if min_call_seconds is None:
            min_call_seconds = config.MIN_CALL_SECONDS
        if isinstance(min_call_seconds, bool) or not isinstance(min_call_seconds, (int, float)) \
                or math.isnan(min_call_seconds) or min_call_seconds < 0:
            raise ConfigurationError(
                f"min_call_seconds must be a non-negative number, got {min_call_seconds!r}")
        self.min_call_seconds = min_call_seconds

    def classify_outcome(self, call_duration_seconds: float, has_other_party_response: bool) -> str:
        return classify_outcome(call_duration_seconds, has_other_party_response,
                                min_call_seconds=self.min_call_seconds)


# ─── TRANSCRIPT-BASED DETECTION ──────────────────────────────

LEFT_SIGNALS = [
    "not interested", "no thank", "remove me", "take me off", "stop calling",
    "don't call", "not now", "busy right now", "bad time", "have to go",
    "goodbye", "bye", "hang up", "end call", "leave me alone", "unsubscribe",
]

STAYED_SIGNALS = [
    "tell me more", "interested", "how much", "what are the", "benefits",
    "coverage", "premium", "cost", "price", "when can", "how do i", "sign up",
    "sounds good", "okay", "yes", "sure", "go ahead", "continue", "explain",
    "what if", "can you", "would i",
]


@dataclass
class OutcomeDetection:
    suggested_outcome: str
    confidence: float  # 0.0 - 1.0
    signals: List[str] = field(default_factory=list)

    def to_dict(self):
        return asdict(self)


def detect_outcome(other_party_transcript: str, call_duration_seconds: float) -> OutcomeDetection:
    """Suggest an outcome from what the prospect said.

    Phrase hits are plain substring matches on the lower-cased transcript, so
    "interested" also fires inside "not interested". Longer calls add a bonus
    to the stayed side (+1 over 30s, +2 over 60s).
    """
    duration = _check_duration(call_duration_seconds)
    transcript = (other_party_transcript or "").lower().strip()

    if not transcript or duration < DEFAULT_MIN_CALL_SECONDS:
        return OutcomeDetection(
            suggested_outcome=LEFT,
            confidence=0.8,
            signals=["Very short call duration", "No client response"],
        )

    left_hits = [s for s in LEFT_SIGNALS if s in transcript]
    stayed_hits = [s for s in STAYED_SIGNALS if s in transcript]

    duration_bonus = 2 if duration > 60 else 1 if duration > 30 else 0
    left_score = len(left_hits)
    stayed_score = len(stayed_hits) + duration_bonus

    if left_score > stayed_score:
        return OutcomeDetection(
            suggested_outcome=LEFT,
            confidence=min(0.95, 0.6 + left_score * 0.1),
            signals=left_hits,
        )
    if stayed_score > left_score:
        signals = stayed_hits + (["Long call duration"] if duration_bonus > 0 else [])
        return OutcomeDetection(
            suggested_outcome=STAYED,
            confidence=min(0.95, 0.6 + stayed_score * 0.1),
            signals=signals,
        )

    # No clear winner: fall back on call length
    if duration > 45:
        return OutcomeDetection(STAYED, 0.5, ["Call duration suggests engagement"])
    return OutcomeDetection(LEFT, 0.5, ["Short call duration"])


def quick_detect(other_party_transcript: str, call_duration_seconds: float) -> str:
    """Outcome label only, without confidence or signals."""
    return detect_outcome(other_party_transcript, call_duration_seconds).suggested_outcome
