"""Pytest configuration for phased testing.

Tests are organized by phase (f1, f2, ..., f6).
Only tests for the current phase and completed phases should run.
Future phase tests are automatically skipped.
"""

from datetime import datetime, timezone

import pytest

from skilltrack.core.models import Skill
from skilltrack.db.database import init_db
from skilltrack.db.skills_repository import SqliteSkillRepository

# Current implementation phase
CURRENT_PHASE = 6

# Fixed reference time for time-dependent tests
NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def pytest_collection_modifyitems(config, items):
    """Skip tests from phases that haven't been implemented yet."""
    for item in items:
        # Extract phase from path (tests/f2/... -> 2)
        parts = item.fspath.strpath.split("/")
        for part in parts:
            if part.startswith("f") and part[1:].isdigit():
                test_phase = int(part[1:])
                if test_phase > CURRENT_PHASE:
                    item.add_marker(
                        pytest.mark.skip(
                            reason=f"Phase F{test_phase} not yet implemented (current: F{CURRENT_PHASE})"
                        )
                    )
                break


@pytest.fixture
def db_path(tmp_path):
    """Initialized database in a temp directory."""
    path = tmp_path / "skilltrack.db"
    init_db(path)
    return path


@pytest.fixture
def repo(db_path):
    """Repository acting as user-1."""
    return SqliteSkillRepository(db_path=db_path, user_id="user-1")


@pytest.fixture
def anon_repo(db_path):
    """Repository with no acting user."""
    return SqliteSkillRepository(db_path=db_path, user_id=None)


@pytest.fixture
def make_skill(repo):
    """Factory inserting a skill row with explicit fields."""

    async def _make(name="Python", **fields):
        fields.setdefault("created_at", NOW)
        fields.setdefault("last_updated", fields["created_at"])
        skill = Skill(id="", user_id="user-1", name=name, **fields)
        return await repo.insert_skill(skill)

    return _make
