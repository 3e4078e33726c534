"""Tests for the milestone aggregator (F3)."""

from datetime import datetime, timezone

import pytest

from skilltrack.core.errors import MilestoneNotFoundError, NotAuthenticatedError
from skilltrack.core.milestones import (
    complete_milestone,
    create_milestone,
    delete_milestone,
    list_milestones,
    milestone_progress,
    revert_milestone,
    round_half_up,
    update_progress_from_milestones,
)
from skilltrack.core.models import SkillMilestone

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


async def _add(repo, skill_id, count):
    return [
        await create_milestone(repo, skill_id, f"Step {i}", i)
        for i in range(count)
    ]


def _ms(completed, total):
    return [
        SkillMilestone(id=str(i), skill_id="s1", title="m", order_index=i, is_completed=i < completed)
        for i in range(total)
    ]


class TestRounding:
    """Tests for the percentage computation."""

    @pytest.mark.parametrize(
        "completed,total,expected",
        [
            (0, 3, 0),
            (1, 4, 25),
            (3, 5, 60),
            (2, 3, 67),
            (1, 3, 33),
            (1, 8, 13),
            (3, 8, 38),
            (5, 5, 100),
        ],
    )
    def test_milestone_progress(self, completed, total, expected):
        """Completed share is rounded half up."""
        assert milestone_progress(_ms(completed, total)) == expected

    def test_empty_list(self):
        """No milestones gives None."""
        assert milestone_progress([]) is None

    def test_round_half_up(self):
        """Halves go up, unlike round()."""
        assert round_half_up(12.5) == 13
        assert round_half_up(37.5) == 38
        assert round_half_up(62.5) == 63
        assert round_half_up(12.49) == 12


class TestCreate:
    """Tests for milestone creation."""

    @pytest.mark.asyncio
    async def test_create_incomplete(self, repo, make_skill):
        """New milestones start incomplete."""
        skill = await make_skill()

        m = await create_milestone(repo, skill.id, "  Read docs  ", 0, description="ch 1")

        assert m.title == "Read docs"
        assert m.is_completed is False
        assert m.completed_at is None

    @pytest.mark.asyncio
    async def test_requires_user(self, anon_repo, repo, make_skill):
        """Unauthenticated creation is rejected."""
        skill = await make_skill()
        with pytest.raises(NotAuthenticatedError):
            await create_milestone(anon_repo, skill.id, "Read docs", 0)

    @pytest.mark.asyncio
    async def test_empty_title(self, repo, make_skill):
        """Blank titles are rejected."""
        skill = await make_skill()
        with pytest.raises(ValueError):
            await create_milestone(repo, skill.id, "   ", 0)

    @pytest.mark.asyncio
    async def test_list_in_order(self, repo, make_skill):
        """Listing follows order_index."""
        skill = await make_skill()
        await create_milestone(repo, skill.id, "Second", 2)
        await create_milestone(repo, skill.id, "First", 1)

        titles = [m.title for m in await list_milestones(repo, skill.id)]
        assert titles == ["First", "Second"]


class TestComplete:
    """Tests for completion and progress recompute."""

    @pytest.mark.asyncio
    async def test_one_of_four(self, repo, make_skill):
        """Completing 1 of 4 sets progress to 25."""
        skill = await make_skill()
        milestones = await _add(repo, skill.id, 4)

        progress = await complete_milestone(repo, milestones[0].id, now=NOW)

        assert progress == 25
        assert (await repo.get_skill(skill.id)).progress == 25

    @pytest.mark.asyncio
    async def test_three_of_five(self, repo, make_skill):
        """Completing 3 of 5 sets progress to 60."""
        skill = await make_skill()
        milestones = await _add(repo, skill.id, 5)

        for m in milestones[:3]:
            await complete_milestone(repo, m.id)

        assert (await repo.get_skill(skill.id)).progress == 60

    @pytest.mark.asyncio
    async def test_one_of_eight_rounds_up(self, repo, make_skill):
        """12.5 rounds to 13."""
        skill = await make_skill()
        milestones = await _add(repo, skill.id, 8)

        assert await complete_milestone(repo, milestones[0].id) == 13

    @pytest.mark.asyncio
    async def test_records_completion_fields(self, repo, make_skill):
        """completed_at and completed_by are stored."""
        skill = await make_skill()
        milestones = await _add(repo, skill.id, 2)

        await complete_milestone(repo, milestones[1].id, now=NOW)

        stored = await repo.get_milestone(milestones[1].id)
        assert stored.is_completed is True
        assert stored.completed_at == NOW
        assert stored.completed_by == "user-1"

    @pytest.mark.asyncio
    async def test_complete_twice_is_stable(self, repo, make_skill):
        """Completing the same milestone again keeps progress."""
        skill = await make_skill()
        milestones = await _add(repo, skill.id, 4)

        await complete_milestone(repo, milestones[0].id)
        assert await complete_milestone(repo, milestones[0].id) == 25

    @pytest.mark.asyncio
    async def test_overwrites_manual_progress(self, repo, make_skill):
        """Milestone progress replaces a directly set value."""
        skill = await make_skill(progress=90)
        milestones = await _add(repo, skill.id, 4)

        await complete_milestone(repo, milestones[0].id)

        assert (await repo.get_skill(skill.id)).progress == 25

    @pytest.mark.asyncio
    async def test_missing_milestone(self, repo):
        """Unknown milestone raises."""
        with pytest.raises(MilestoneNotFoundError):
            await complete_milestone(repo, "nope")


class TestRevertAndDelete:
    """Tests for revert and delete, which do not recompute."""

    @pytest.mark.asyncio
    async def test_revert_keeps_progress(self, repo, make_skill):
        """Reverting clears fields but leaves progress."""
        skill = await make_skill()
        milestones = await _add(repo, skill.id, 2)
        await complete_milestone(repo, milestones[0].id)

        await revert_milestone(repo, milestones[0].id)

        stored = await repo.get_milestone(milestones[0].id)
        assert stored.is_completed is False
        assert stored.completed_at is None
        assert stored.completed_by is None
        assert (await repo.get_skill(skill.id)).progress == 50

    @pytest.mark.asyncio
    async def test_delete_keeps_progress(self, repo, make_skill):
        """Deleting a milestone leaves progress until the next recompute."""
        skill = await make_skill()
        milestones = await _add(repo, skill.id, 4)
        await complete_milestone(repo, milestones[0].id)

        await delete_milestone(repo, milestones[3].id)

        assert (await repo.get_skill(skill.id)).progress == 25
        assert await update_progress_from_milestones(repo, skill.id) == 33

    @pytest.mark.asyncio
    async def test_delete_missing(self, repo):
        """Deleting an unknown milestone raises."""
        with pytest.raises(MilestoneNotFoundError):
            await delete_milestone(repo, "nope")


class TestRecompute:
    """Tests for the explicit recompute."""

    @pytest.mark.asyncio
    async def test_no_milestones_is_noop(self, repo, make_skill):
        """Skills without milestones keep their progress."""
        skill = await make_skill(progress=42)

        assert await update_progress_from_milestones(repo, skill.id) is None
        assert (await repo.get_skill(skill.id)).progress == 42

    @pytest.mark.asyncio
    async def test_empty_skill_id_is_noop(self, repo):
        """Empty skill id does nothing."""
        assert await update_progress_from_milestones(repo, "") is None
        assert await update_progress_from_milestones(repo, None) is None

    @pytest.mark.asyncio
    async def test_idempotent(self, repo, make_skill):
        """Recomputing twice gives the same value."""
        skill = await make_skill()
        milestones = await _add(repo, skill.id, 3)
        await complete_milestone(repo, milestones[0].id)
        await complete_milestone(repo, milestones[1].id)

        first = await update_progress_from_milestones(repo, skill.id)
        second = await update_progress_from_milestones(repo, skill.id)

        assert first == second == 67
