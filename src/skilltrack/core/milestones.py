"""Milestone aggregator.

Turns the completion state of a skill's milestones into skill.progress.

Only completing a milestone recomputes progress. Reverting or deleting a
milestone leaves skill.progress untouched until the next completion (or an
explicit update_progress_from_milestones() call).

complete_milestone() performs two separate writes (milestone, then skill)
with no transaction between them: concurrent completions are
last-writer-wins, and a failure in the second write leaves the milestone
completed with stale progress.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Sequence

import structlog

from skilltrack.core.errors import NotAuthenticatedError
from skilltrack.core.models import SkillMilestone
from skilltrack.core.repository import SkillRepository
from skilltrack.utils.time_utils import utc_now

logger = structlog.get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, .5 going up (12.5 -> 13)."""
    return int(math.floor(value + 0.5))


def milestone_progress(milestones: Sequence[SkillMilestone]) -> int | None:
    """Percentage of completed milestones, rounded half up.

    Returns:
        0-100, or None when there are no milestones
    """
    total = len(milestones)
    if total == 0:
        return None

    completed = sum(1 for m in milestones if m.is_completed)
    return round_half_up(completed / total * 100)


async def list_milestones(repo: SkillRepository, skill_id: str) -> list[SkillMilestone]:
    """All milestones of a skill ordered by order_index ascending."""
    return await repo.list_milestones(skill_id)


async def create_milestone(
    repo: SkillRepository,
    skill_id: str,
    title: str,
    order_index: int,
    description: str | None = None,
) -> SkillMilestone:
    """Create an incomplete milestone.

    Raises:
        NotAuthenticatedError: If there is no acting user
        ValueError: If title is empty
    """
    user_id = await repo.get_current_user_id()
    if not user_id:
        raise NotAuthenticatedError("creating a milestone")

    if not title.strip():
        raise ValueError("Milestone title cannot be empty")

    milestone = await repo.insert_milestone(
        SkillMilestone(
            id="",
            skill_id=skill_id,
            title=title.strip(),
            description=description,
            order_index=order_index,
        )
    )

    logger.info("milestone.created", milestone_id=milestone.id, skill_id=skill_id)
    return milestone


async def complete_milestone(
    repo: SkillRepository,
    milestone_id: str,
    now: datetime | None = None,
) -> int | None:
    """Mark a milestone completed and recompute the skill's progress.

    completed_by is the acting user (None when unauthenticated).

    Returns:
        The recomputed progress

    Raises:
        MilestoneNotFoundError: If the milestone does not exist
    """
    completed_at = now or utc_now()
    user_id = await repo.get_current_user_id()

    await repo.update_milestone(
        milestone_id,
        is_completed=True,
        completed_at=completed_at,
        completed_by=user_id,
    )
    logger.info("milestone.completed", milestone_id=milestone_id, completed_by=user_id)

    milestone = await repo.get_milestone(milestone_id)
    return await update_progress_from_milestones(repo, milestone.skill_id)


async def revert_milestone(repo: SkillRepository, milestone_id: str) -> None:
    """Clear a milestone's completion fields.

    Progress is not recomputed.
    """
    await repo.update_milestone(
        milestone_id,
        is_completed=False,
        completed_at=None,
        completed_by=None,
    )
    logger.info("milestone.reverted", milestone_id=milestone_id)


async def delete_milestone(repo: SkillRepository, milestone_id: str) -> None:
    """Delete a milestone permanently. Progress is not recomputed."""
    await repo.delete_milestone(milestone_id)
    logger.info("milestone.deleted", milestone_id=milestone_id)


async def update_progress_from_milestones(
    repo: SkillRepository, skill_id: str | None
) -> int | None:
    """Overwrite skill.progress with the milestone completion percentage.

    No-op when skill_id is empty or the skill has no milestones.

    Returns:
        The progress written, or None when nothing was written
    """
    if not skill_id:
        return None

    milestones = await repo.list_milestones(skill_id)
    progress = milestone_progress(milestones)
    if progress is None:
        logger.debug("milestone.recompute_skipped", skill_id=skill_id, reason="no_milestones")
        return None

    await repo.update_skill(skill_id, progress=progress)

    logger.info(
        "skill.progress_recomputed",
        skill_id=skill_id,
        completed=sum(1 for m in milestones if m.is_completed),
        total=len(milestones),
        progress=progress,
    )
    return progress
