# Opener Coach - real-time call opener coaching for sales agents
# Detects which scripted opener an agent used, records whether the prospect
# stayed on the call, and recommends the opener to use next.
#
# Key modules:
#   agents/openers.py              - The ordered opener catalog
#   agents/matcher.py              - Fuzzy transcript -> opener matching (Levenshtein)
#   agents/outcome_classifier.py   - Stayed/left classification and transcript-based detection
#   agents/recommender.py          - Phased recommendation policy
#   agents/performance_analyzer.py - Statistics updates and cached derived views
#   agents/session_manager.py      - Per-call orchestration
#   db/                            - sqlite persistence
#   api/app.py                     - FastAPI backend

__version__ = "1.0.0"
