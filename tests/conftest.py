"""
Shared pytest fixtures for the Opener Coach test suite.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from opener_coach.agents.openers import Opener
from opener_coach.db.init_db import init_db


@pytest.fixture
def test_db(tmp_path, monkeypatch):
    """Fresh sqlite database for one test, wired in as the default DB_PATH."""
    db_path = str(tmp_path / "test.db")
    monkeypatch.setenv("COACH_DB_PATH", db_path)
    monkeypatch.setenv("COACH_JOURNAL_MODE", "DELETE")

    import opener_coach.db.connection as connection
    monkeypatch.setattr(connection, "DB_PATH", db_path)

    init_db(db_path)
    yield db_path


@pytest.fixture
def abc_catalog():
    """Small three-opener catalog for recommendation scenarios."""
    return (
        Opener(id="A", text="Hello, this is Alex calling about your cover."),
        Opener(id="B", text="Good morning, do you have a minute to talk about savings?"),
        Opener(id="C", text="Hi there, I'm returning your callback request."),
    )
