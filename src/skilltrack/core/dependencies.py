"""Dependency resolver.

A dependency is a directed edge skill -> prerequisite skill. Required
edges gate are_prerequisites_met(); optional ones are informational.

Edges are stored as given: self-references and cycles are accepted.
"""

from __future__ import annotations

import structlog

from skilltrack.core.models import SkillDependency
from skilltrack.core.repository import SkillRepository

logger = structlog.get_logger(__name__)

# Progress a required prerequisite must reach
PREREQUISITE_PROGRESS_THRESHOLD = 80


async def list_dependencies(repo: SkillRepository, skill_id: str) -> list[SkillDependency]:
    """Edges where skill_id is the dependent, with prerequisite data joined."""
    return await repo.list_dependencies(skill_id)


async def add_dependency(
    repo: SkillRepository,
    skill_id: str,
    prerequisite_skill_id: str,
    is_required: bool = True,
) -> SkillDependency:
    """Add a single edge skill_id -> prerequisite_skill_id.

    Storage errors (e.g. a duplicate edge) propagate unchanged.
    """
    dependency = await repo.insert_dependency(
        SkillDependency(
            id="",
            skill_id=skill_id,
            prerequisite_skill_id=prerequisite_skill_id,
            is_required=is_required,
        )
    )

    logger.info(
        "dependency.added",
        skill_id=skill_id,
        prerequisite_skill_id=prerequisite_skill_id,
        is_required=is_required,
    )
    return dependency


async def remove_dependency(
    repo: SkillRepository, skill_id: str, prerequisite_skill_id: str
) -> bool:
    """Remove the edge skill_id -> prerequisite_skill_id.

    Returns:
        True if an edge was removed
    """
    removed = await repo.delete_dependency(skill_id, prerequisite_skill_id)
    logger.info(
        "dependency.removed",
        skill_id=skill_id,
        prerequisite_skill_id=prerequisite_skill_id,
        removed=removed,
    )
    return removed


async def are_prerequisites_met(repo: SkillRepository, skill_id: str) -> bool:
    """Check whether every required prerequisite is advanced enough.

    True when there are no required edges. Otherwise every required
    prerequisite must exist and have progress >= 80. Optional edges are
    ignored.
    """
    dependencies = await repo.list_dependencies(skill_id)
    required = [d for d in dependencies if d.is_required]

    if not required:
        return True

    for dependency in required:
        prerequisite = dependency.prerequisite_skill
        if prerequisite is None:
            logger.warning(
                "dependency.prerequisite_missing",
                skill_id=skill_id,
                prerequisite_skill_id=dependency.prerequisite_skill_id,
            )
            return False

        if prerequisite.progress < PREREQUISITE_PROGRESS_THRESHOLD:
            logger.debug(
                "dependency.prerequisite_unmet",
                skill_id=skill_id,
                prerequisite_skill_id=dependency.prerequisite_skill_id,
                progress=prerequisite.progress,
            )
            return False

    return True
