"""
Opener Coach - Text Matcher
Maps a noisy speech transcript onto the closest canonical opener.

Both sides are normalized (case, punctuation, whitespace) and compared with a
Levenshtein-based similarity percentage. A transcript matches an opener when
the similarity meets the configured threshold; when the two best candidates
are within the ambiguity threshold of each other the result is flagged so the
caller can ask the agent which opener they actually used.

Usage:
    matcher = OpenerMatcher(similarity_threshold=80, ambiguity_threshold=5)
    opener = matcher.match(transcript)
    result = matcher.match_with_ambiguity_detection(transcript)
"""

import math
import re
from dataclasses import dataclass, field
from typing import List, Optional

from opener_coach import config
from opener_coach.agents.openers import OPENERS, Opener, validate_catalog
from opener_coach.errors import ConfigurationError
from opener_coach.logging_config import get_agent_logger

logger = get_agent_logger("matcher")

_PUNCTUATION_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")


# ─── RESULT TYPES ────────────────────────────────────────────

@dataclass
class MatchResult:
    """A catalog opener that cleared the similarity threshold.

    `confidence` and `similarity` are both on a 0-100 scale and currently
    carry the same value.
    """
    opener: Opener
    confidence: float
    similarity: float

    def to_dict(self):
        return {
            "opener": self.opener.to_dict(),
            "confidence": self.confidence,
            "similarity": self.similarity,
        }


@dataclass
class AmbiguityResult:
    matches: List[MatchResult] = field(default_factory=list)
    is_ambiguous: bool = False
    best_match: Optional[MatchResult] = None

    def to_dict(self):
        return {
            "matches": [m.to_dict() for m in self.matches],
            "is_ambiguous": self.is_ambiguous,
            "best_match": self.best_match.to_dict() if self.best_match else None,
        }


# ─── STRING SIMILARITY ───────────────────────────────────────

def normalize_text(text: str) -> str:
    """Lower-case, strip punctuation, collapse whitespace, trim."""
    text = _PUNCTUATION_RE.sub("", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum number of single-character insertions, deletions and
    substitutions needed to turn `a` into `b`."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Similarity percentage (0-100, two decimals) between two strings.

    Two empty strings are identical (100). Halves round up.
    """
    max_length = max(len(a), len(b))
    if max_length == 0:
        return 100.0
    distance = levenshtein_distance(a, b)
    pct = (max_length - distance) / max_length * 100
    return math.floor(pct * 100 + 0.5) / 100


def _check_percentage(name: str, value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if math.isnan(value) or not 0 <= value <= 100:
        raise ConfigurationError(f"{name} must be within 0-100, got {value}")
    return float(value)


# ─── MATCHER ─────────────────────────────────────────────────

class OpenerMatcher:
    """Fuzzy matcher from transcript text to catalog openers."""

    def __init__(self, similarity_threshold: float = None,
                 ambiguity_threshold: float = None,
                 openers=OPENERS):
        if similarity_threshold is None:
            similarity_threshold = config.SIMILARITY_THRESHOLD
        if ambiguity_threshold is None:
            ambiguity_threshold = config.AMBIGUITY_THRESHOLD
        self.similarity_threshold = _check_percentage("similarity_threshold", similarity_threshold)
        self.ambiguity_threshold = _check_percentage("ambiguity_threshold", ambiguity_threshold)
        self._openers = validate_catalog(openers)
        # Catalog text never changes, so normalize it once
        self._normalized = [(o, normalize_text(o.text)) for o in self._openers]

    def match(self, transcript: str) -> Optional[Opener]:
        """Best matching opener, or None if nothing clears the threshold."""
        result = self.match_with_confidence(transcript)
        return result.opener if result else None

    def match_with_confidence(self, transcript: str) -> Optional[MatchResult]:
        """Best match together with its similarity score."""
        matches = self._candidates(transcript)
        return matches[0] if matches else None

    def match_with_ambiguity_detection(self, transcript: str) -> AmbiguityResult:
        """All qualifying matches, plus whether the top two are too close to call."""
        matches = self._candidates(transcript)
        if not matches:
            return AmbiguityResult()

        is_ambiguous = (
            len(matches) >= 2
            and matches[0].similarity - matches[1].similarity <= self.ambiguity_threshold
        )
        if is_ambiguous:
            logger.info("Ambiguous opener match: %s vs %s (%.2f / %.2f)",
                        matches[0].opener.id, matches[1].opener.id,
                        matches[0].similarity, matches[1].similarity)
        return AmbiguityResult(matches=matches, is_ambiguous=is_ambiguous,
                               best_match=matches[0])

    def get_all_openers(self) -> List[Opener]:
        return list(self._openers)

    def _candidates(self, transcript: str) -> List[MatchResult]:
        """Qualifying matches sorted by similarity, catalog order on ties."""
        if not transcript or not transcript.strip():
            return []

        normalized = normalize_text(transcript)
        matches = []
        for opener, opener_text in self._normalized:
            score = similarity(normalized, opener_text)
            if score >= self.similarity_threshold:
                matches.append(MatchResult(opener=opener, confidence=score, similarity=score))

        # sorted() is stable, so equal scores keep catalog order
        matches = sorted(matches, key=lambda m: m.similarity, reverse=True)
        logger.debug("Matched %d/%d openers at threshold %.2f",
                     len(matches), len(self._openers), self.similarity_threshold)
        return matches
