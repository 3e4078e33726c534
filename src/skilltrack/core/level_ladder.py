"""Level ladder.

Responsibilities:
- Lazily create the five default levels of a skill
- Classify progress into a level (highest threshold reached)
- Persist the classified level as skill.current_level
- Report the gap to the next level
- Level-up at 100% progress (advance one tier, reset progress)

Callers that change skill.progress are responsible for calling
update_skill_level(); nothing here runs automatically.
"""

from __future__ import annotations

from typing import Sequence

import structlog

from skilltrack.core.models import (
    LEVEL_ORDER,
    LevelGap,
    LevelProgression,
    Skill,
    SkillLevel,
    SkillLevelType,
)
from skilltrack.core.repository import SkillRepository

logger = structlog.get_logger(__name__)

# (name, type, min_progress, max_progress, required_hours)
DEFAULT_LEVELS: list[tuple[str, SkillLevelType, int, int, float]] = [
    ("Beginner", SkillLevelType.BEGINNER, 0, 20, 0),
    ("Novice", SkillLevelType.NOVICE, 20, 40, 5),
    ("Intermediate", SkillLevelType.INTERMEDIATE, 40, 70, 20),
    ("Advanced", SkillLevelType.ADVANCED, 70, 90, 50),
    ("Expert", SkillLevelType.EXPERT, 90, 100, 100),
]


# =============================================================================
# LADDER
# =============================================================================


async def get_skill_levels(repo: SkillRepository, skill_id: str) -> list[SkillLevel]:
    """Get the ladder of a skill, creating the default one on first access.

    Args:
        repo: Storage collaborator
        skill_id: Skill identifier

    Returns:
        Levels ordered by min_progress ascending
    """
    levels = await repo.list_levels(skill_id)
    if not levels:
        return await create_default_skill_levels(repo, skill_id)
    return levels


async def create_default_skill_levels(repo: SkillRepository, skill_id: str) -> list[SkillLevel]:
    """Insert the default five-level ladder for a skill."""
    levels = []
    for name, level_type, min_progress, max_progress, hours in DEFAULT_LEVELS:
        level = await repo.insert_level(
            SkillLevel(
                id="",
                skill_id=skill_id,
                level_type=level_type,
                name=name,
                min_progress=min_progress,
                max_progress=max_progress,
                required_hours=hours,
            )
        )
        levels.append(level)

    logger.info("levels.defaults_created", skill_id=skill_id, count=len(levels))
    return levels


# =============================================================================
# CLASSIFICATION
# =============================================================================


def classify(progress: float, levels: Sequence[SkillLevel]) -> SkillLevel | None:
    """Pick the highest level whose min_progress has been reached.

    Scans from the highest level down and returns the first one with
    progress >= min_progress. The upper bound of a range is ignored, so
    progress 100 lands on Expert.

    Args:
        progress: Skill progress (0-100)
        levels: Ladder ordered by min_progress ascending

    Returns:
        Matching level, or None if progress is below every threshold
    """
    for level in reversed(levels):
        if progress >= level.min_progress:
            return level
    return None


async def calculate_skill_level(repo: SkillRepository, skill_id: str) -> SkillLevelType:
    """Classify a skill's stored progress, defaulting to Beginner."""
    skill = await repo.get_skill(skill_id)
    levels = await get_skill_levels(repo, skill_id)

    level = classify(skill.progress, levels)
    if level is None:
        return SkillLevelType.BEGINNER
    return level.level_type


async def update_skill_level(repo: SkillRepository, skill_id: str) -> SkillLevelType:
    """Recompute and persist skill.current_level.

    Returns:
        The level written
    """
    level_type = await calculate_skill_level(repo, skill_id)
    await repo.update_skill(skill_id, current_level=level_type)

    logger.info("skill.level_updated", skill_id=skill_id, level=level_type.value)
    return level_type


# =============================================================================
# NEXT LEVEL
# =============================================================================


def next_level_gap(skill: Skill, levels: Sequence[SkillLevel]) -> LevelGap:
    """Compute what is missing to reach the next level.

    The current level is found by ascending range containment
    (min_progress <= progress < max_progress), independently of classify().
    When no range contains the progress (e.g. progress 100) or the
    containing range is the last one, there is no next level.

    Args:
        skill: Skill record (progress and total_hours are read)
        levels: Ladder ordered by min_progress ascending

    Returns:
        LevelGap with the next level, hours and progress points needed
    """
    current_index = next(
        (i for i, level in enumerate(levels) if level.contains(skill.progress)),
        -1,
    )

    if current_index == -1 or current_index == len(levels) - 1:
        return LevelGap(next_level=None, hours_needed=0.0, progress_needed=0)

    next_level = levels[current_index + 1]
    return LevelGap(
        next_level=next_level,
        hours_needed=max(0.0, next_level.required_hours - skill.total_hours),
        progress_needed=next_level.min_progress - skill.progress,
    )


async def get_level_up_suggestions(repo: SkillRepository, skill_id: str) -> LevelGap:
    """Load a skill and its ladder and compute next_level_gap()."""
    levels = await get_skill_levels(repo, skill_id)
    skill = await repo.get_skill(skill_id)
    return next_level_gap(skill, levels)


# =============================================================================
# LEVEL-UP AT 100%
# =============================================================================


def next_level_type(current: SkillLevelType) -> SkillLevelType | None:
    """Tier after current, or None at Expert."""
    index = LEVEL_ORDER.index(current)
    if index == len(LEVEL_ORDER) - 1:
        return None
    return LEVEL_ORDER[index + 1]


def should_progress_level(current: SkillLevelType, progress: int) -> LevelProgression | None:
    """Check whether a skill at full progress moves up a tier.

    Returns:
        None below 100% progress; otherwise the new level and whether
        progress must reset (it does not at Expert)
    """
    if progress < 100:
        return None

    upcoming = next_level_type(current)
    if upcoming is None:
        return LevelProgression(
            new_level=current,
            progress_reset=False,
            message="Expert level reached",
        )

    return LevelProgression(
        new_level=upcoming,
        progress_reset=True,
        message=f"Level up: {current.value} -> {upcoming.value}",
    )


def apply_level_progression(current: SkillLevelType, progress: int) -> tuple[SkillLevelType, int]:
    """Apply should_progress_level() to a (level, progress) pair."""
    result = should_progress_level(current, progress)
    if result is None:
        return current, progress
    if result.progress_reset:
        return result.new_level, 0
    return result.new_level, progress
