"""
Opener Coach - Feedback Generator
Short coaching messages shown to the agent after each call. A failed call
also suggests a different opener to try next.
"""

import random
from dataclasses import dataclass
from typing import Optional

from opener_coach.agents.openers import OPENERS, Opener

POSITIVE_MESSAGES = [
    "Great job! The client stayed on the call.",
    "Excellent work! Your opener kept them engaged.",
    "Nice! That opener worked well.",
    "Well done! The client is interested.",
    "Fantastic! Your approach was effective.",
]

NEGATIVE_MESSAGES = [
    "The client left quickly. Let's try a different approach.",
    "That didn't quite land. Here's another option to consider.",
    "No worries! Try this alternative next time.",
    "Let's refine your approach with this suggestion.",
]

# Used when no opener was recorded for the session
GENERIC_POSITIVE = "Great job! The client stayed on the call."
GENERIC_NEGATIVE = "The client left the call. Keep practicing!"


@dataclass
class Feedback:
    type: str  # positive / negative
    message: str
    suggested_opener: Optional[Opener] = None
    show_celebration: bool = False

    def to_dict(self):
        return {
            "type": self.type,
            "message": self.message,
            "suggested_opener": self.suggested_opener.to_dict() if self.suggested_opener else None,
            "show_celebration": self.show_celebration,
        }


class FeedbackGenerator:

    def __init__(self, analyzer, rng: random.Random = None, openers=OPENERS):
        self.analyzer = analyzer
        self.rng = rng or random.Random()
        self._openers = tuple(openers)

    def generate_feedback(self, outcome: str, opener: Optional[Opener]) -> Feedback:
        if opener is None:
            return generic_feedback(outcome)
        if outcome == "stayed":
            return Feedback(type="positive", message=self.rng.choice(POSITIVE_MESSAGES))
        return self._negative(opener)

    def _negative(self, opener: Opener) -> Feedback:
        recommended = self.analyzer.get_recommended_openers()
        alternatives = [o for o in recommended if o.id != opener.id]
        if alternatives:
            suggestion = self.rng.choice(alternatives)
        elif recommended:
            suggestion = recommended[0]
        else:
            suggestion = self._openers[0] if self._openers else None
        return Feedback(
            type="negative",
            message=self.rng.choice(NEGATIVE_MESSAGES),
            suggested_opener=suggestion,
        )


def generic_feedback(outcome: str) -> Feedback:
    """Fixed feedback for sessions without an opener, or when generation fails."""
    if outcome == "stayed":
        return Feedback(type="positive", message=GENERIC_POSITIVE)
    return Feedback(type="negative", message=GENERIC_NEGATIVE)
