"""Skill records, activity logging and resources.

Writes that change skill.progress here (record_progress_update) do not
touch skill.current_level; call level_ladder.update_skill_level()
afterwards.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import structlog

from skilltrack.core.errors import NotAuthenticatedError
from skilltrack.core.models import (
    ProgressUpdate,
    ResourceType,
    Skill,
    SkillEntry,
    SkillLevelType,
    SkillResource,
    SkillVisibility,
)
from skilltrack.core.repository import SkillRepository
from skilltrack.utils.time_utils import utc_now

logger = structlog.get_logger(__name__)

UPDATABLE_SKILL_FIELDS = {"name", "description", "visibility", "estimated_hours", "category_id"}


# =============================================================================
# SKILL CRUD
# =============================================================================


async def create_skill(
    repo: SkillRepository,
    name: str,
    description: str | None = None,
    visibility: SkillVisibility = SkillVisibility.PRIVATE,
    estimated_hours: float | None = None,
    category_id: str | None = None,
    now: datetime | None = None,
) -> Skill:
    """Create a skill owned by the acting user.

    Starts at progress 0, no hours and the Beginner level.

    Raises:
        NotAuthenticatedError: If there is no acting user
        ValueError: If name is empty or estimated_hours is negative
    """
    user_id = await repo.get_current_user_id()
    if not user_id:
        raise NotAuthenticatedError("creating a skill")

    if not name.strip():
        raise ValueError("Skill name cannot be empty")
    if estimated_hours is not None and estimated_hours < 0:
        raise ValueError(f"estimated_hours must be >= 0, got {estimated_hours}")

    created_at = now or utc_now()
    skill = await repo.insert_skill(
        Skill(
            id="",
            user_id=user_id,
            name=name.strip(),
            description=description,
            progress=0,
            total_hours=0.0,
            estimated_hours=estimated_hours,
            current_level=SkillLevelType.BEGINNER,
            visibility=visibility,
            category_id=category_id,
            streak=0,
            created_at=created_at,
            last_updated=created_at,
        )
    )

    logger.info("skill.created", skill_id=skill.id, user_id=user_id)
    return skill


async def update_skill(repo: SkillRepository, skill_id: str, **updates: Any) -> None:
    """Update descriptive fields of a skill.

    Only name, description, visibility, estimated_hours and category_id
    can be changed here.

    Raises:
        ValueError: On any other field
        SkillNotFoundError: If the skill does not exist
    """
    invalid = set(updates) - UPDATABLE_SKILL_FIELDS
    if invalid:
        raise ValueError(f"Fields not updatable: {', '.join(sorted(invalid))}")

    if "visibility" in updates:
        updates["visibility"] = SkillVisibility(updates["visibility"])

    await repo.update_skill(skill_id, **updates)
    logger.info("skill.updated", skill_id=skill_id, fields=sorted(updates))


async def delete_skill(repo: SkillRepository, skill_id: str) -> None:
    """Delete a skill and, through the store, its child records."""
    await repo.delete_skill(skill_id)
    logger.info("skill.deleted", skill_id=skill_id)


# =============================================================================
# ACTIVITY
# =============================================================================


async def record_progress_update(
    repo: SkillRepository,
    skill_id: str,
    value: int,
    notes: str | None = None,
    now: datetime | None = None,
) -> ProgressUpdate:
    """Set skill.progress directly and keep the update in history.

    Raises:
        ValueError: If value is outside 0-100
        SkillNotFoundError: If the skill does not exist
    """
    if not 0 <= value <= 100:
        raise ValueError(f"Progress must be between 0 and 100, got {value}")

    timestamp = now or utc_now()
    await repo.update_skill(skill_id, progress=value, last_updated=timestamp)
    update = await repo.insert_progress_update(
        ProgressUpdate(
            id="",
            skill_id=skill_id,
            progress=value,
            notes=notes,
            created_at=timestamp,
        )
    )

    logger.info("skill.progress_set", skill_id=skill_id, progress=value)
    return update


async def add_entry(
    repo: SkillRepository,
    skill_id: str,
    content: str,
    hours: float = 0.0,
    now: datetime | None = None,
) -> SkillEntry:
    """Log a diary entry and add its hours to skill.total_hours.

    Raises:
        ValueError: If hours is negative
        SkillNotFoundError: If the skill does not exist
    """
    if hours < 0:
        raise ValueError(f"hours must be >= 0, got {hours}")

    timestamp = now or utc_now()
    skill = await repo.get_skill(skill_id)

    entry = await repo.insert_entry(
        SkillEntry(
            id="",
            skill_id=skill_id,
            content=content,
            hours=hours,
            created_at=timestamp,
        )
    )
    await repo.update_skill(
        skill_id,
        total_hours=(skill.total_hours or 0) + hours,
        last_updated=timestamp,
    )

    logger.info("skill.entry_added", skill_id=skill_id, entry_id=entry.id, hours=hours)
    return entry


# =============================================================================
# RESOURCES
# =============================================================================


async def list_resources(repo: SkillRepository, skill_id: str) -> list[SkillResource]:
    """Resources of a skill, newest first."""
    return await repo.list_resources(skill_id)


async def add_resource(
    repo: SkillRepository,
    skill_id: str,
    title: str,
    resource_type: ResourceType | str,
    url: str | None = None,
    file_url: str | None = None,
    description: str | None = None,
    now: datetime | None = None,
) -> SkillResource:
    """Attach a resource to a skill, added by the acting user.

    Raises:
        NotAuthenticatedError: If there is no acting user
    """
    user_id = await repo.get_current_user_id()
    if not user_id:
        raise NotAuthenticatedError("adding a resource")

    resource = await repo.insert_resource(
        SkillResource(
            id="",
            skill_id=skill_id,
            title=title,
            description=description,
            resource_type=ResourceType(resource_type),
            url=url,
            file_url=file_url,
            added_by=user_id,
            created_at=now or utc_now(),
        )
    )

    logger.info("resource.added", resource_id=resource.id, skill_id=skill_id)
    return resource


async def delete_resource(repo: SkillRepository, resource_id: str) -> bool:
    """Delete a resource.

    Returns:
        True if deleted, False if not found
    """
    deleted = await repo.delete_resource(resource_id)
    logger.info("resource.deleted", resource_id=resource_id, deleted=deleted)
    return deleted
