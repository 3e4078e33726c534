"""Tests for the dependency resolver (F4)."""

import sqlite3

import pytest

from skilltrack.core.dependencies import (
    PREREQUISITE_PROGRESS_THRESHOLD,
    add_dependency,
    are_prerequisites_met,
    list_dependencies,
    remove_dependency,
)
from skilltrack.core.models import SkillDependency


class OrphanEdgeRepository:
    """Repository stub returning an edge whose prerequisite is gone."""

    async def list_dependencies(self, skill_id):
        return [
            SkillDependency(
                id="d1",
                skill_id=skill_id,
                prerequisite_skill_id="deleted",
                is_required=True,
                prerequisite_skill=None,
            )
        ]


class TestAddRemove:
    """Tests for edge management."""

    @pytest.mark.asyncio
    async def test_add_and_list(self, repo, make_skill):
        """Added edges are listed with the prerequisite joined."""
        a = await make_skill("Django")
        b = await make_skill("Python", progress=85)

        dep = await add_dependency(repo, a.id, b.id)
        deps = await list_dependencies(repo, a.id)

        assert dep.is_required is True
        assert [d.prerequisite_skill_id for d in deps] == [b.id]
        assert deps[0].prerequisite_skill.progress == 85

    @pytest.mark.asyncio
    async def test_duplicate_edge_propagates(self, repo, make_skill):
        """The store's uniqueness error reaches the caller."""
        a = await make_skill("A")
        b = await make_skill("B")
        await add_dependency(repo, a.id, b.id)

        with pytest.raises(sqlite3.IntegrityError):
            await add_dependency(repo, a.id, b.id)

    @pytest.mark.asyncio
    async def test_self_reference_allowed(self, repo, make_skill):
        """A skill may list itself as prerequisite."""
        a = await make_skill("A", progress=10)

        await add_dependency(repo, a.id, a.id)

        assert await are_prerequisites_met(repo, a.id) is False

    @pytest.mark.asyncio
    async def test_cycle_allowed(self, repo, make_skill):
        """Mutual prerequisites are stored."""
        a = await make_skill("A", progress=90)
        b = await make_skill("B", progress=90)

        await add_dependency(repo, a.id, b.id)
        await add_dependency(repo, b.id, a.id)

        assert await are_prerequisites_met(repo, a.id) is True
        assert await are_prerequisites_met(repo, b.id) is True

    @pytest.mark.asyncio
    async def test_remove(self, repo, make_skill):
        """Removing reports whether an edge existed."""
        a = await make_skill("A")
        b = await make_skill("B")
        await add_dependency(repo, a.id, b.id)

        assert await remove_dependency(repo, a.id, b.id) is True
        assert await remove_dependency(repo, a.id, b.id) is False
        assert await list_dependencies(repo, a.id) == []


class TestPrerequisitesMet:
    """Tests for the unlock check."""

    @pytest.mark.asyncio
    async def test_no_dependencies(self, repo, make_skill):
        """A skill without edges is unlocked."""
        a = await make_skill("A")
        assert await are_prerequisites_met(repo, a.id) is True

    @pytest.mark.asyncio
    async def test_threshold_is_inclusive(self, repo, make_skill):
        """80 meets the threshold, 79 does not."""
        a = await make_skill("A")
        b = await make_skill("B", progress=PREREQUISITE_PROGRESS_THRESHOLD - 1)
        await add_dependency(repo, a.id, b.id)

        assert await are_prerequisites_met(repo, a.id) is False

        await repo.update_skill(b.id, progress=PREREQUISITE_PROGRESS_THRESHOLD)
        assert await are_prerequisites_met(repo, a.id) is True

    @pytest.mark.asyncio
    async def test_all_required_must_pass(self, repo, make_skill):
        """One unmet required prerequisite locks the skill."""
        a = await make_skill("A")
        b = await make_skill("B", progress=100)
        c = await make_skill("C", progress=50)
        await add_dependency(repo, a.id, b.id)
        await add_dependency(repo, a.id, c.id)

        assert await are_prerequisites_met(repo, a.id) is False

    @pytest.mark.asyncio
    async def test_optional_ignored(self, repo, make_skill):
        """Optional prerequisites do not gate."""
        a = await make_skill("A")
        b = await make_skill("B", progress=0)
        await add_dependency(repo, a.id, b.id, is_required=False)

        assert await are_prerequisites_met(repo, a.id) is True

    @pytest.mark.asyncio
    async def test_optional_alongside_required(self, repo, make_skill):
        """Only required edges are checked."""
        a = await make_skill("A")
        b = await make_skill("B", progress=95)
        c = await make_skill("C", progress=5)
        await add_dependency(repo, a.id, b.id)
        await add_dependency(repo, a.id, c.id, is_required=False)

        assert await are_prerequisites_met(repo, a.id) is True

    @pytest.mark.asyncio
    async def test_deleted_prerequisite_removes_edge(self, repo, make_skill):
        """Deleting the prerequisite skill cascades its edges."""
        a = await make_skill("A")
        b = await make_skill("B", progress=10)
        await add_dependency(repo, a.id, b.id)

        await repo.delete_skill(b.id)

        assert await list_dependencies(repo, a.id) == []
        assert await are_prerequisites_met(repo, a.id) is True

    @pytest.mark.asyncio
    async def test_missing_prerequisite_is_unmet(self):
        """An edge to a missing skill counts as unmet."""
        assert await are_prerequisites_met(OrphanEdgeRepository(), "a") is False
