"""
Opener Coach - Call Session Manager
Orchestrates one call from start to finish:

1. START: open a session (one active session per manager)
2. DETECT: agent speech goes through the matcher until an opener is found;
   any other-party speech marks the call as answered
3. OUTCOME: classified from duration + response, or set manually
4. END: update opener statistics, save the session, generate feedback and
   the next recommendation

Statistics updates propagate their errors and leave the session open so the
caller can retry. Saving the session record and generating feedback are
best-effort: failures there are logged and the call result is still returned.
"""

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import List, Optional

from opener_coach.agents.error_handler import safe_execute
from opener_coach.agents.feedback_generator import Feedback, FeedbackGenerator, generic_feedback
from opener_coach.agents.matcher import AmbiguityResult, OpenerMatcher
from opener_coach.agents.openers import OPENERS, Opener, get_opener
from opener_coach.agents.outcome_classifier import OUTCOMES, OutcomeClassifier
from opener_coach.agents.performance_analyzer import PerformanceAnalyzer
from opener_coach.agents.recommender import RecommendationResult
from opener_coach.db.connection import gen_id
from opener_coach.errors import SessionError
from opener_coach.logging_config import log_duration

logger = logging.getLogger("coach.agents.session_manager")

AGENT = "agent"
OTHER = "other"
# Transcription backends label the prospect differently
SPEAKER_ALIASES = {"agent": AGENT, "other": OTHER, "client": OTHER, "prospect": OTHER}


@dataclass
class CallSession:
    id: str
    started_at: datetime
    ended_at: Optional[datetime] = None
    opener_id: Optional[str] = None
    outcome: Optional[str] = None
    agent_transcript: str = ""
    other_transcript: str = ""
    call_duration_seconds: Optional[float] = None
    had_other_party_response: bool = False

    def to_dict(self):
        return {
            "id": self.id,
            "started_at": self.started_at.isoformat(),
            "ended_at": self.ended_at.isoformat() if self.ended_at else None,
            "opener_id": self.opener_id,
            "outcome": self.outcome,
            "agent_transcript": self.agent_transcript,
            "other_transcript": self.other_transcript,
            "call_duration_seconds": self.call_duration_seconds,
            "had_other_party_response": self.had_other_party_response,
        }


@dataclass
class CallSessionResult:
    session: CallSession
    feedback: Feedback
    recommendation: Optional[RecommendationResult] = None

    def to_dict(self):
        return {
            "session": self.session.to_dict(),
            "feedback": self.feedback.to_dict(),
            "recommendation": self.recommendation.to_dict() if self.recommendation else None,
        }


@dataclass
class RecoveryOptions:
    needs_opener: bool = False
    needs_outcome: bool = False
    can_recover: bool = False


class CallSessionManager:

    def __init__(self, repository, analyzer: PerformanceAnalyzer = None,
                 feedback_generator: FeedbackGenerator = None,
                 matcher: OpenerMatcher = None,
                 classifier: OutcomeClassifier = None,
                 openers=OPENERS):
        self.repository = repository
        self.openers = tuple(openers)
        self.analyzer = analyzer or PerformanceAnalyzer(repository, openers=self.openers)
        self.feedback_generator = feedback_generator or FeedbackGenerator(self.analyzer, openers=self.openers)
        self.matcher = matcher or OpenerMatcher(openers=self.openers)
        self.classifier = classifier or OutcomeClassifier()
        self._current: Optional[CallSession] = None
        self._offline_mode = False
        self._errors: List[Exception] = []
        self._lock = threading.RLock()

    # ─── LIFECYCLE ───────────────────────────────────────────

    def start_session(self) -> CallSession:
        with self._lock:
            if self._current is not None:
                raise SessionError(
                    f"Session {self._current.id} is still active. End or cancel it first.",
                    SessionError.SESSION_ALREADY_ACTIVE,
                )
            self._current = CallSession(id=gen_id("ses"), started_at=datetime.now(timezone.utc))
            logger.info("Session started", extra={"session_id": self._current.id})
            return replace(self._current)

    def end_session(self) -> CallSessionResult:
        """Finish the active session and return feedback plus the next recommendation."""
        with self._lock:
            session = self._require_session()
            if not session.outcome:
                raise SessionError(
                    "No outcome recorded. Call record_outcome() first.",
                    SessionError.NO_OUTCOME_RECORDED,
                )

            opener = get_opener(session.opener_id, self.openers) if session.opener_id else None
            with log_duration(logger, "Session finalized", session_id=session.id):
                if opener is not None:
                    self.analyzer.update_statistics(opener.id, session.outcome)

                safe_execute(
                    self.repository.save_call_session, args=(session.to_dict(),),
                    phase="save_session", session_id=session.id, opener_id=session.opener_id,
                    sink=self.repository.record_session_error,
                )
                feedback = safe_execute(
                    self.feedback_generator.generate_feedback, args=(session.outcome, opener),
                    phase="feedback", session_id=session.id, opener_id=session.opener_id,
                    sink=self.repository.record_session_error,
                    fallback=generic_feedback(session.outcome),
                )
                recommendation = safe_execute(
                    self.analyzer.get_recommendation,
                    phase="recommendation", session_id=session.id,
                    sink=self.repository.record_session_error,
                )

            logger.info("Session ended: opener=%s outcome=%s", session.opener_id, session.outcome,
                        extra={"session_id": session.id, "opener_id": session.opener_id,
                               "outcome": session.outcome})
            self._current = None
            self._errors = []
            return CallSessionResult(session=replace(session), feedback=feedback,
                                     recommendation=recommendation)

    def cancel_session(self):
        """Drop the active session without saving anything."""
        with self._lock:
            if self._current is not None:
                logger.info("Session cancelled", extra={"session_id": self._current.id})
            self._current = None
            self._errors = []

    def get_current_session(self) -> Optional[CallSession]:
        with self._lock:
            return replace(self._current) if self._current else None

    # ─── OPENER ──────────────────────────────────────────────

    def record_opener(self, opener: Opener):
        with self._lock:
            session = self._require_session()
            if get_opener(opener.id, self.openers) is None:
                raise SessionError(f"Unknown opener '{opener.id}'", SessionError.UNKNOWN_OPENER)
            session.opener_id = opener.id
            logger.info("Opener recorded: %s", opener.id,
                        extra={"session_id": session.id, "opener_id": opener.id})

    def record_opener_by_id(self, opener_id: str):
        opener = get_opener(opener_id, self.openers)
        if opener is None:
            raise SessionError(f"Unknown opener '{opener_id}'", SessionError.UNKNOWN_OPENER)
        self.record_opener(opener)

    def record_opener_manually(self, opener: Opener) -> bool:
        """record_opener() for offline use; returns False instead of raising."""
        try:
            self.record_opener(opener)
            return True
        except SessionError as e:
            logger.warning("Failed to record opener manually: %s", e)
            with self._lock:
                self._errors.append(e)
            return False

    def handle_transcription(self, text: str, speaker: str) -> Optional[AmbiguityResult]:
        """Feed one transcription event into the active session.

        Agent speech is matched against the catalog until an opener is
        recorded; an ambiguous match is returned but not recorded. Speech from
        anyone else marks the call as answered. Returns the match result for
        agent speech, None otherwise.
        """
        role = SPEAKER_ALIASES.get((speaker or "").lower())
        if role is None:
            raise ValueError(f"Unknown speaker role {speaker!r}")

        with self._lock:
            session = self._require_session()
            text = (text or "").strip()
            if not text:
                return AmbiguityResult() if role == AGENT else None

            if role == OTHER:
                session.other_transcript = _append(session.other_transcript, text)
                session.had_other_party_response = True
                return None

            session.agent_transcript = _append(session.agent_transcript, text)
            result = self.matcher.match_with_ambiguity_detection(text)
            if (session.opener_id is None and not self._offline_mode
                    and result.best_match and not result.is_ambiguous):
                session.opener_id = result.best_match.opener.id
                logger.info("Opener detected: %s (%.2f%%)",
                            session.opener_id, result.best_match.similarity,
                            extra={"session_id": session.id, "opener_id": session.opener_id})
            return result

    # ─── OUTCOME ─────────────────────────────────────────────

    def record_outcome(self, outcome: str):
        with self._lock:
            session = self._require_session()
            if outcome not in OUTCOMES:
                raise SessionError(f"Invalid outcome {outcome!r}", SessionError.INVALID_OUTCOME)
            session.outcome = outcome
            session.ended_at = datetime.now(timezone.utc)

    def record_outcome_manually(self, outcome: str) -> bool:
        """record_outcome() for offline use; returns False instead of raising."""
        try:
            self.record_outcome(outcome)
            return True
        except SessionError as e:
            logger.warning("Failed to record outcome manually: %s", e)
            with self._lock:
                self._errors.append(e)
            return False

    def classify_and_record(self, call_duration_seconds: float,
                            has_other_party_response: bool = None) -> str:
        """Classify the outcome from call signals and record it.

        When the response flag is omitted, the session's own transcription
        history decides it.
        """
        with self._lock:
            session = self._require_session()
            if has_other_party_response is None:
                has_other_party_response = session.had_other_party_response
            outcome = self.classifier.classify_outcome(call_duration_seconds, has_other_party_response)
            session.call_duration_seconds = call_duration_seconds
            session.had_other_party_response = bool(has_other_party_response)
            self.record_outcome(outcome)
            return outcome

    # ─── OFFLINE MODE / RECOVERY ─────────────────────────────

    def set_offline_mode(self, enabled: bool):
        """In offline mode openers are never auto-detected from transcripts."""
        with self._lock:
            self._offline_mode = enabled
        logger.info("Offline mode %s", "enabled" if enabled else "disabled")

    def is_offline_mode(self) -> bool:
        with self._lock:
            return self._offline_mode

    def get_session_errors(self) -> List[Exception]:
        with self._lock:
            return list(self._errors)

    def clear_session_errors(self):
        with self._lock:
            self._errors = []

    def get_recovery_options(self) -> RecoveryOptions:
        """What manual input the active session still needs before it can end.

        The opener is optional, only the outcome is required.
        """
        with self._lock:
            if self._current is None:
                return RecoveryOptions()
            needs_outcome = not self._current.outcome
            return RecoveryOptions(needs_opener=False, needs_outcome=needs_outcome,
                                   can_recover=needs_outcome)

    def _require_session(self) -> CallSession:
        if self._current is None:
            raise SessionError(
                "No active session. Call start_session() first.",
                SessionError.NO_ACTIVE_SESSION,
            )
        return self._current


def _append(transcript: str, text: str) -> str:
    return f"{transcript} {text}" if transcript else text
