"""
Unit tests for non-fatal session error capture.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

import json

from opener_coach.agents.error_handler import (
    log_session_error,
    safe_execute,
    get_errors,
    resolve_error,
)


def _fail():
    raise ValueError("boom")


def test_safe_execute_returns_result(test_db):
    assert safe_execute(lambda x: x * 2, args=(21,)) == 42
    assert get_errors() == []


def test_safe_execute_returns_fallback_and_logs(test_db):
    result = safe_execute(_fail, phase="feedback", session_id="ses_1",
                          opener_id="pl-1", fallback="default")
    assert result == "default"

    errors = get_errors(session_id="ses_1")
    assert len(errors) == 1
    error = errors[0]
    assert error["phase"] == "feedback"
    assert error["error_type"] == "ValueError"
    assert error["error_message"] == "boom"
    assert error["opener_id"] == "pl-1"
    assert json.loads(error["context"])["function"] == "_fail"


def test_get_errors_filters_and_resolves(test_db):
    log_session_error("save_session", error_message="disk full", session_id="ses_1")
    log_session_error("feedback", error=RuntimeError("x"), session_id="ses_2", severity="error")

    assert len(get_errors()) == 2
    assert [e["session_id"] for e in get_errors(severity="error")] == ["ses_2"]

    newest = get_errors()[0]
    assert newest["session_id"] == "ses_2"
    resolve_error(newest["id"])
    assert [e["session_id"] for e in get_errors()] == ["ses_1"]
    assert len(get_errors(unresolved_only=False)) == 2


def test_logging_survives_missing_table(tmp_path, monkeypatch):
    import opener_coach.db.connection as connection
    monkeypatch.setattr(connection, "DB_PATH", str(tmp_path / "empty.db"))
    monkeypatch.setenv("COACH_JOURNAL_MODE", "DELETE")
    # no schema: the insert fails and is only logged
    log_session_error("feedback", error_message="lost")


def test_custom_sink_receives_the_entry(test_db):
    captured = []
    safe_execute(_fail, phase="recommendation", session_id="ses_3", sink=captured.append)

    [entry] = captured
    assert entry["phase"] == "recommendation"
    assert entry["error_type"] == "ValueError"
    assert entry["context"]["function"] == "_fail"
    assert get_errors() == []


def test_failing_sink_is_only_logged(caplog):
    def broken(entry):
        raise OSError("store offline")

    log_session_error("feedback", error_message="lost", sink=broken)
    assert "Could not store session error" in caplog.text
