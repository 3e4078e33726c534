"""Tests for the insights engine (F5)."""

from datetime import datetime, timedelta, timezone

import pytest

from skilltrack.core.errors import SkillNotFoundError
from skilltrack.core.insights import (
    calculate_estimated_completion,
    compute_consistency,
    compute_velocity,
    detect_plateau,
    estimate_completion,
    find_next_milestone,
    get_skill_insights,
    get_skill_progress,
)
from skilltrack.core.milestones import complete_milestone, create_milestone
from skilltrack.core.models import SkillEntry, SkillLevelType, SkillMilestone

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


def _days_ago(days):
    return NOW - timedelta(days=days)


async def _log(repo, skill_id, when):
    await repo.insert_entry(
        SkillEntry(id="", skill_id=skill_id, content="practice", created_at=when)
    )


class TestVelocity:
    """Tests for progress velocity."""

    def test_points_per_day(self):
        """50 points in 10 days is 5 per day."""
        assert compute_velocity(50, _days_ago(10), NOW) == 5.0

    def test_young_skill_floors_at_one_day(self):
        """Skills younger than a day divide by 1."""
        assert compute_velocity(30, NOW - timedelta(hours=2), NOW) == 30.0

    def test_zero_progress(self):
        """No progress gives zero velocity."""
        assert compute_velocity(0, _days_ago(5), NOW) == 0.0


class TestConsistency:
    """Tests for the consistency ratio."""

    def test_distinct_days_over_lifetime(self):
        """Several entries on one day count once."""
        timestamps = [
            _days_ago(1),
            _days_ago(1) + timedelta(hours=1),
            _days_ago(2),
            _days_ago(4),
        ]
        assert compute_consistency(timestamps, _days_ago(10), NOW) == pytest.approx(0.3)

    def test_no_entries(self):
        """No entries give zero."""
        assert compute_consistency([], _days_ago(10), NOW) == 0.0

    @pytest.mark.asyncio
    async def test_samples_last_thirty_entries(self, repo, make_skill):
        """Only the 30 most recent entries are considered."""
        skill = await make_skill(created_at=_days_ago(40))
        for day in range(35):
            await _log(repo, skill.id, _days_ago(day) - timedelta(hours=1))

        insight = await get_skill_insights(repo, skill.id, now=NOW)

        assert insight.consistency == pytest.approx(30 / 40)


class TestPlateau:
    """Tests for plateau detection."""

    def test_stale_update(self):
        """Eight days without update is a plateau."""
        assert detect_plateau(_days_ago(8), NOW) is True

    def test_recent_update(self):
        """Six days is not."""
        assert detect_plateau(_days_ago(6), NOW) is False

    def test_exactly_seven_days(self):
        """The threshold is strict."""
        assert detect_plateau(_days_ago(7), NOW) is False

    def test_unknown_last_update(self):
        """Missing last_updated is not a plateau."""
        assert detect_plateau(None, NOW) is False


class TestNextMilestone:
    """Tests for the next milestone pick."""

    def test_first_incomplete_in_order(self):
        """The first incomplete item is returned."""
        milestones = [
            SkillMilestone(id="1", skill_id="s", title="a", order_index=0, is_completed=True),
            SkillMilestone(id="2", skill_id="s", title="b", order_index=1),
            SkillMilestone(id="3", skill_id="s", title="c", order_index=2),
        ]
        assert find_next_milestone(milestones).id == "2"

    def test_all_completed(self):
        """None when everything is done."""
        milestones = [
            SkillMilestone(id="1", skill_id="s", title="a", order_index=0, is_completed=True),
        ]
        assert find_next_milestone(milestones) is None


class TestEstimate:
    """Tests for the completion estimate."""

    def test_days_at_velocity(self):
        """At velocity 5 and progress 50, 10 days remain."""
        assert estimate_completion(50, 5.0, 40, 10) == 10.0

    def test_hours_below_velocity_one(self):
        """Below velocity 1 the remaining hours are returned."""
        assert estimate_completion(50, 0.5, 40, 10) == 30

    def test_velocity_exactly_one_uses_days(self):
        """Velocity 1 is already in days."""
        assert estimate_completion(50, 1.0, 40, 10) == 50.0

    def test_hours_can_go_negative(self):
        """Logged hours beyond the estimate give a negative value."""
        assert estimate_completion(10, 0.2, 20, 25) == -5

    def test_missing_hours_treated_as_zero(self):
        """None hours count as 0."""
        assert estimate_completion(10, 0.2, None, None) == 0

    @pytest.mark.asyncio
    async def test_from_repository(self, repo, make_skill):
        """Estimate uses stored progress and creation time."""
        skill = await make_skill(progress=50, created_at=_days_ago(10))

        assert await calculate_estimated_completion(repo, skill.id, now=NOW) == 10.0

    @pytest.mark.asyncio
    async def test_missing_skill_returns_none(self, repo):
        """Unknown skill gives None instead of raising."""
        assert await calculate_estimated_completion(repo, "nope", now=NOW) is None


class TestSkillInsights:
    """Tests for the combined insight."""

    @pytest.mark.asyncio
    async def test_full_insight(self, repo, make_skill):
        """All fields are computed together."""
        skill = await make_skill(
            progress=50, created_at=_days_ago(10), last_updated=_days_ago(8)
        )
        first = await create_milestone(repo, skill.id, "Basics", 0)
        await create_milestone(repo, skill.id, "Project", 1)
        await complete_milestone(repo, first.id, now=_days_ago(8))
        await repo.update_skill(skill.id, progress=50, last_updated=_days_ago(8))
        await _log(repo, skill.id, _days_ago(9))
        await _log(repo, skill.id, _days_ago(8))

        insight = await get_skill_insights(repo, skill.id, now=NOW)

        assert insight.velocity == 5.0
        assert insight.consistency == pytest.approx(0.2)
        assert insight.plateau_detected is True
        assert insight.next_milestone.title == "Project"

    @pytest.mark.asyncio
    async def test_missing_skill_raises(self, repo):
        """Unknown skill raises."""
        with pytest.raises(SkillNotFoundError):
            await get_skill_insights(repo, "nope", now=NOW)


class TestSkillProgress:
    """Tests for the progress summary."""

    @pytest.mark.asyncio
    async def test_summary(self, repo, make_skill):
        """Summary combines progress, level, milestones and hours."""
        skill = await make_skill(total_hours=12.5, estimated_hours=40)
        milestones = [await create_milestone(repo, skill.id, f"m{i}", i) for i in range(4)]
        await complete_milestone(repo, milestones[0].id)

        summary = await get_skill_progress(repo, skill.id)

        assert summary.progress == 25
        assert summary.level == SkillLevelType.NOVICE
        assert summary.milestones_completed == 1
        assert summary.milestones_total == 4
        assert summary.hours_logged == 12.5
        assert summary.estimated_hours == 40
        assert summary.completion_percentage == 25

    @pytest.mark.asyncio
    async def test_full_progress_is_expert(self, repo, make_skill):
        """Progress 100 is reported as Expert."""
        skill = await make_skill(progress=100)

        summary = await get_skill_progress(repo, skill.id)

        assert summary.level == SkillLevelType.EXPERT
