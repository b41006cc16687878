"""
Unit tests for structured logging output.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../.."))

import json
import logging

from opener_coach.logging_config import JSONFormatter, TextFormatter, get_agent_logger, log_duration


def _record(**extra):
    record = logging.LogRecord("coach.agents.matcher", logging.INFO, __file__, 10,
                               "Matched %s", ("pl-1",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_fields():
    line = JSONFormatter().format(_record(session_id="ses_1", opener_id="pl-1", unrelated="x"))
    data = json.loads(line)
    assert data["level"] == "INFO"
    assert data["logger"] == "coach.agents.matcher"
    assert data["message"] == "Matched pl-1"
    assert data["session_id"] == "ses_1"
    assert data["opener_id"] == "pl-1"
    assert "unrelated" not in data
    assert data["timestamp"].endswith("Z")


def test_text_formatter():
    line = TextFormatter().format(_record())
    assert "[coach.agents.matcher] INFO: Matched pl-1" in line


def test_agent_logger_namespace():
    assert get_agent_logger("recommender").name == "coach.agents.recommender"


def test_log_duration_attaches_timing(caplog):
    logger = logging.getLogger("coach.test")
    with caplog.at_level(logging.DEBUG, logger="coach.test"):
        with log_duration(logger, "Step done", session_id="ses_9"):
            pass

    record = caplog.records[-1]
    assert record.getMessage().startswith("Step done")
    assert record.session_id == "ses_9"
    assert record.duration_ms >= 0
