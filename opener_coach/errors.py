"""
Opener Coach - Exception types.

The matching, classification and recommendation code returns None / flags for
expected conditions (no match, ambiguous match). Exceptions are reserved for
caller mistakes: bad configuration, a broken catalog, or an invalid session
state transition.
"""


class CoachError(Exception):
    """Base class for all Opener Coach errors."""


class ConfigurationError(CoachError, ValueError):
    """A component was constructed with an impossible setting."""


class CatalogError(CoachError, ValueError):
    """The opener catalog is malformed (empty or duplicate ids)."""


class SessionError(CoachError):
    """Invalid call session state transition."""

    NO_ACTIVE_SESSION = "NO_ACTIVE_SESSION"
    NO_OUTCOME_RECORDED = "NO_OUTCOME_RECORDED"
    SESSION_ALREADY_ACTIVE = "SESSION_ALREADY_ACTIVE"
    UNKNOWN_OPENER = "UNKNOWN_OPENER"
    INVALID_OUTCOME = "INVALID_OUTCOME"

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code

    def to_dict(self) -> dict:
        return {"error": str(self), "code": self.code}
