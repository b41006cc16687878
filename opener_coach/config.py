"""
Centralized Configuration - Single source of truth for all settings.

All environment variables are read here, validated, and exposed as module-level
constants. Other modules import from here instead of reading os.environ directly.

Usage:
    from opener_coach.config import DB_PATH, SIMILARITY_THRESHOLD, LOG_LEVEL
"""

import os
import sys

# ─── PATHS ───────────────────────────────────────────────────

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
LOGS_DIR = os.path.join(PROJECT_ROOT, "logs")

# ─── DATABASE ────────────────────────────────────────────────

DB_PATH = os.environ.get("COACH_DB_PATH", os.path.join(PROJECT_ROOT, "coach.db"))
DB_JOURNAL_MODE = os.environ.get("COACH_JOURNAL_MODE", "WAL")
MAX_SESSIONS = int(os.environ.get("COACH_MAX_SESSIONS", "100"))

# ─── MATCHING ────────────────────────────────────────────────

SIMILARITY_THRESHOLD = float(os.environ.get("COACH_SIMILARITY_THRESHOLD", "80"))
AMBIGUITY_THRESHOLD = float(os.environ.get("COACH_AMBIGUITY_THRESHOLD", "5"))

# ─── OUTCOMES ────────────────────────────────────────────────

MIN_CALL_SECONDS = float(os.environ.get("COACH_MIN_CALL_SECONDS", "10"))

# ─── RECOMMENDATIONS ─────────────────────────────────────────

MIN_ATTEMPTS_FOR_FAIR_TESTING = int(os.environ.get("COACH_MIN_ATTEMPTS_FAIR_TESTING", "3"))
MIN_ATTEMPTS_FOR_CONFIDENCE = int(os.environ.get("COACH_MIN_ATTEMPTS_CONFIDENCE", "5"))
PERFORMANCE_DECLINE_THRESHOLD = float(os.environ.get("COACH_DECLINE_THRESHOLD", "0.15"))

# ─── API ─────────────────────────────────────────────────────

API_HOST = os.environ.get("API_HOST", "0.0.0.0")
API_PORT = int(os.environ.get("API_PORT", "8000"))
CORS_ORIGINS = os.environ.get(
    "COACH_CORS_ORIGINS", "http://localhost:3000,http://localhost:5173"
).split(",")

# ─── LOGGING ─────────────────────────────────────────────────

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("LOG_FORMAT", "text")  # "text" or "json"
LOG_FILE = os.environ.get("LOG_FILE", "")  # empty = stdout only

# ─── VALIDATION ──────────────────────────────────────────────

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
_VALID_LOG_FORMATS = {"text", "json"}
_VALID_JOURNAL_MODES = {"WAL", "DELETE", "MEMORY", "OFF"}

_errors = []

if LOG_LEVEL not in _VALID_LOG_LEVELS:
    _errors.append(f"LOG_LEVEL must be one of {_VALID_LOG_LEVELS}, got '{LOG_LEVEL}'")

if LOG_FORMAT not in _VALID_LOG_FORMATS:
    _errors.append(f"LOG_FORMAT must be one of {_VALID_LOG_FORMATS}, got '{LOG_FORMAT}'")

if DB_JOURNAL_MODE not in _VALID_JOURNAL_MODES:
    _errors.append(f"COACH_JOURNAL_MODE must be one of {_VALID_JOURNAL_MODES}, got '{DB_JOURNAL_MODE}'")

if not 0 <= SIMILARITY_THRESHOLD <= 100:
    _errors.append(f"COACH_SIMILARITY_THRESHOLD must be within 0-100, got {SIMILARITY_THRESHOLD}")

if not 0 <= AMBIGUITY_THRESHOLD <= 100:
    _errors.append(f"COACH_AMBIGUITY_THRESHOLD must be within 0-100, got {AMBIGUITY_THRESHOLD}")

if MIN_ATTEMPTS_FOR_FAIR_TESTING < 1:
    _errors.append(f"COACH_MIN_ATTEMPTS_FAIR_TESTING must be positive, got {MIN_ATTEMPTS_FOR_FAIR_TESTING}")

if MIN_ATTEMPTS_FOR_CONFIDENCE < 1:
    _errors.append(f"COACH_MIN_ATTEMPTS_CONFIDENCE must be positive, got {MIN_ATTEMPTS_FOR_CONFIDENCE}")

if not 0 <= PERFORMANCE_DECLINE_THRESHOLD <= 1:
    _errors.append(f"COACH_DECLINE_THRESHOLD must be within 0-1, got {PERFORMANCE_DECLINE_THRESHOLD}")

if MIN_CALL_SECONDS < 0:
    _errors.append(f"COACH_MIN_CALL_SECONDS must not be negative, got {MIN_CALL_SECONDS}")

if MAX_SESSIONS < 1:
    _errors.append(f"COACH_MAX_SESSIONS must be positive, got {MAX_SESSIONS}")

if _errors:
    for e in _errors:
        print(f"[config] ERROR: {e}", file=sys.stderr)
    # Components re-validate their own thresholds at construction time


def validate(strict: bool = False) -> list:
    """Validate all configuration settings.

    Args:
        strict: If True, raise ValueError on any errors.

    Returns:
        List of error messages (empty if all valid).
    """
    if strict and _errors:
        raise ValueError(f"Configuration errors: {'; '.join(_errors)}")
    return list(_errors)


def print_config():
    """Print current configuration (safe - no secrets)."""
    print("=" * 50)
    print("Opener Coach Configuration")
    print("=" * 50)
    print(f"  DB_PATH:                       {DB_PATH}")
    print(f"  DB_JOURNAL_MODE:               {DB_JOURNAL_MODE}")
    print(f"  MAX_SESSIONS:                  {MAX_SESSIONS}")
    print(f"  SIMILARITY_THRESHOLD:          {SIMILARITY_THRESHOLD}")
    print(f"  AMBIGUITY_THRESHOLD:           {AMBIGUITY_THRESHOLD}")
    print(f"  MIN_CALL_SECONDS:              {MIN_CALL_SECONDS}")
    print(f"  MIN_ATTEMPTS_FOR_FAIR_TESTING: {MIN_ATTEMPTS_FOR_FAIR_TESTING}")
    print(f"  MIN_ATTEMPTS_FOR_CONFIDENCE:   {MIN_ATTEMPTS_FOR_CONFIDENCE}")
    print(f"  PERFORMANCE_DECLINE_THRESHOLD: {PERFORMANCE_DECLINE_THRESHOLD}")
    print(f"  API_HOST:                      {API_HOST}")
    print(f"  API_PORT:                      {API_PORT}")
    print(f"  LOG_LEVEL:                     {LOG_LEVEL}")
    print(f"  LOG_FORMAT:                    {LOG_FORMAT}")
    print(f"  PROJECT_ROOT:                  {PROJECT_ROOT}")
    print("=" * 50)
