"""Shared pytest fixtures."""

from pathlib import Path

import pytest

from engage.domain.models import Candidate, NeedRequest
from engage.logging.context import clear_log_context
from engage.matching.time_preference import resolve_need
from engage.persistence import close_database, init_database

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set the environment variables a notifying run needs."""
    monkeypatch.setenv("KNOCK_API_KEY", "sk_test_123")
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


@pytest.fixture(autouse=True)
def reset_log_context():
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def make_candidate():
    """Factory for Candidate models with sensible defaults."""

    def _make(candidate_id="c1", gifts=None, availability=None, name=None, email=None):
        return Candidate(
            id=candidate_id,
            display_name=name or f"Member {candidate_id}",
            contact=email or f"{candidate_id}@example.org",
            gift_tags=gifts if gifts is not None else ["Cooking"],
            availability_windows=availability if availability is not None else ["Anytime"],
        )

    return _make


@pytest.fixture
def make_need():
    """Factory for resolved needs.

    Pass time_preference to pin the need to a bucket through the manual
    preference (no scheduling fields are set, so it resolves verbatim).
    """

    def _make(need_id="n1", tags=None, time_preference="Anytime", **fields):
        need = NeedRequest(
            id=need_id,
            title=fields.pop("title", "Meals for the Johnson family"),
            description=fields.pop("description", "Bring dinner on Tuesday"),
            required_tags=tags if tags is not None else ["Cooking"],
            explicit_time_preference=time_preference,
            **fields,
        )
        return resolve_need(need)

    return _make


@pytest.fixture
def database(tmp_path):
    """Initialize a fresh SQLite database for one test."""
    db_url = f"sqlite:///{tmp_path / 'engage_test.db'}"
    init_database(db_url)
    yield db_url
    close_database()
