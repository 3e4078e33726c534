"""Insights engine.

Responsibilities:
- Velocity: progress points gained per day since creation
- Consistency: distinct active days in the last 30 entries / days active
- Plateau: no update recorded in the last 7 days
- Next milestone: first incomplete milestone in list order
- Estimated completion: days at the current velocity, or remaining hours
- Progress summary for a skill

Notes on semantics kept on purpose:
- Consistency divides by the whole lifetime of the skill, not by the span
  of the sampled entries, so it drifts toward 0 for old skills.
- estimate_completion() returns HOURS (estimated - logged) when velocity
  is below 1, and DAYS ((100 - progress) / velocity) otherwise.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable, Sequence

import structlog

from skilltrack.core.errors import SkillNotFoundError
from skilltrack.core.level_ladder import classify, get_skill_levels
from skilltrack.core.models import (
    SkillInsight,
    SkillLevelType,
    SkillMilestone,
    SkillProgress,
)
from skilltrack.core.repository import SkillRepository
from skilltrack.utils.time_utils import days_between, ensure_aware, utc_now

logger = structlog.get_logger(__name__)

# Entries sampled for consistency
CONSISTENCY_SAMPLE_SIZE = 30

# Days without update before a plateau is reported
PLATEAU_DAYS = 7

# Velocity below which the estimate falls back to hours
MIN_VELOCITY_FOR_DAYS_ESTIMATE = 1.0


# =============================================================================
# PURE COMPUTATIONS
# =============================================================================


def days_active(created_at: datetime, now: datetime | None = None) -> float:
    """Fractional days since creation, floored at 1."""
    return max(1.0, days_between(created_at, now or utc_now()))


def compute_velocity(progress: float, created_at: datetime, now: datetime | None = None) -> float:
    """Progress points per day since creation."""
    return progress / days_active(created_at, now)


def compute_consistency(
    entry_timestamps: Iterable[datetime],
    created_at: datetime,
    now: datetime | None = None,
) -> float:
    """Distinct UTC calendar days with an entry, divided by days active.

    Args:
        entry_timestamps: Creation times of the sampled entries
        created_at: Skill creation time
        now: Reference time

    Returns:
        Ratio >= 0 (may exceed 1 for skills younger than their entry span)
    """
    active_days = {ensure_aware(ts).date() for ts in entry_timestamps}
    return len(active_days) / days_active(created_at, now)


def detect_plateau(last_updated: datetime | None, now: datetime | None = None) -> bool:
    """True if last_updated is more than 7 days ago; False if unknown."""
    if last_updated is None:
        return False
    threshold = (now or utc_now()) - timedelta(days=PLATEAU_DAYS)
    return ensure_aware(last_updated) < threshold


def find_next_milestone(milestones: Sequence[SkillMilestone]) -> SkillMilestone | None:
    """First incomplete milestone in the given order."""
    return next((m for m in milestones if not m.is_completed), None)


def estimate_completion(
    progress: float,
    velocity: float,
    estimated_hours: float | None,
    total_hours: float | None,
) -> float:
    """Estimate remaining effort.

    Below a velocity of 1 the result is remaining HOURS
    (estimated_hours - total_hours, may be negative); from 1 upwards it is
    remaining DAYS at the current velocity.
    """
    if velocity < MIN_VELOCITY_FOR_DAYS_ESTIMATE:
        return (estimated_hours or 0) - (total_hours or 0)

    return (100 - progress) / velocity


# =============================================================================
# REPOSITORY-BACKED OPERATIONS
# =============================================================================


async def get_skill_insights(
    repo: SkillRepository,
    skill_id: str,
    now: datetime | None = None,
) -> SkillInsight:
    """Compute velocity, consistency, plateau and next milestone for a skill.

    Raises:
        SkillNotFoundError: If the skill does not exist
    """
    now = now or utc_now()
    skill = await repo.get_skill(skill_id)

    velocity = compute_velocity(skill.progress, skill.created_at, now)

    entries = await repo.list_entries(skill_id, limit=CONSISTENCY_SAMPLE_SIZE)
    consistency = compute_consistency(
        (e.created_at for e in entries), skill.created_at, now
    )

    plateau = detect_plateau(skill.last_updated, now)

    milestones = await repo.list_milestones(skill_id)
    next_milestone = find_next_milestone(milestones)

    logger.debug(
        "insights.computed",
        skill_id=skill_id,
        velocity=round(velocity, 4),
        consistency=round(consistency, 4),
        plateau_detected=plateau,
    )

    return SkillInsight(
        skill_id=skill_id,
        velocity=velocity,
        consistency=consistency,
        plateau_detected=plateau,
        next_milestone=next_milestone,
    )


async def calculate_estimated_completion(
    repo: SkillRepository,
    skill_id: str,
    now: datetime | None = None,
) -> float | None:
    """Estimated time to completion (days, or hours at low velocity).

    Returns:
        The estimate, or None if the skill does not exist
    """
    try:
        skill = await repo.get_skill(skill_id)
    except SkillNotFoundError:
        logger.warning("insights.estimate_skill_missing", skill_id=skill_id)
        return None

    velocity = compute_velocity(skill.progress, skill.created_at, now)
    return estimate_completion(
        skill.progress, velocity, skill.estimated_hours, skill.total_hours
    )


async def get_skill_progress(repo: SkillRepository, skill_id: str) -> SkillProgress:
    """Summarize progress, level, milestones and hours of a skill."""
    skill = await repo.get_skill(skill_id)

    milestones = await repo.list_milestones(skill_id)
    completed = sum(1 for m in milestones if m.is_completed)

    levels = await get_skill_levels(repo, skill_id)
    # Highest reached threshold, not range containment: progress 100 is
    # Expert here, where a containment lookup finds no range and falls back
    # to Beginner.
    level = classify(skill.progress, levels)

    return SkillProgress(
        skill_id=skill_id,
        progress=skill.progress,
        level=level.level_type if level else SkillLevelType.BEGINNER,
        milestones_completed=completed,
        milestones_total=len(milestones),
        hours_logged=skill.total_hours or 0,
        estimated_hours=skill.estimated_hours or 0,
        completion_percentage=skill.progress,
    )
