"""Storage collaborator used by the engine.

The engine never talks to a database directly; every read and write goes
through an object implementing SkillRepository. Implementations must:
- raise SkillNotFoundError / MilestoneNotFoundError for missing records
- let storage failures propagate unchanged
- return list results in the documented order
"""

from __future__ import annotations

from typing import Any, Protocol

from skilltrack.core.models import (
    ProgressUpdate,
    Skill,
    SkillDependency,
    SkillEntry,
    SkillLevel,
    SkillMilestone,
    SkillResource,
)


class SkillRepository(Protocol):
    """Record-shaped async access to skills and their child rows."""

    async def get_current_user_id(self) -> str | None:
        """Acting user, or None when unauthenticated."""
        ...

    # Skills

    async def get_skill(self, skill_id: str) -> Skill: ...

    async def insert_skill(self, skill: Skill) -> Skill:
        """Insert a skill; an empty id is replaced by a generated one."""
        ...

    async def update_skill(self, skill_id: str, **fields: Any) -> None: ...

    async def delete_skill(self, skill_id: str) -> None: ...

    # Levels

    async def list_levels(self, skill_id: str) -> list[SkillLevel]:
        """Levels ordered by min_progress ascending."""
        ...

    async def insert_level(self, level: SkillLevel) -> SkillLevel: ...

    # Milestones

    async def list_milestones(self, skill_id: str) -> list[SkillMilestone]:
        """Milestones ordered by order_index ascending."""
        ...

    async def get_milestone(self, milestone_id: str) -> SkillMilestone: ...

    async def insert_milestone(self, milestone: SkillMilestone) -> SkillMilestone: ...

    async def update_milestone(self, milestone_id: str, **fields: Any) -> None: ...

    async def delete_milestone(self, milestone_id: str) -> None: ...

    # Dependencies

    async def list_dependencies(self, skill_id: str) -> list[SkillDependency]:
        """Edges where skill_id is the dependent, joined to the prerequisite."""
        ...

    async def insert_dependency(self, dependency: SkillDependency) -> SkillDependency: ...

    async def delete_dependency(self, skill_id: str, prerequisite_skill_id: str) -> bool: ...

    # History

    async def list_entries(self, skill_id: str, limit: int | None = None) -> list[SkillEntry]:
        """Entries newest first."""
        ...

    async def insert_entry(self, entry: SkillEntry) -> SkillEntry: ...

    async def list_progress_updates(
        self, skill_id: str, limit: int | None = None
    ) -> list[ProgressUpdate]:
        """Progress updates newest first."""
        ...

    async def insert_progress_update(self, update: ProgressUpdate) -> ProgressUpdate: ...

    # Resources

    async def list_resources(self, skill_id: str) -> list[SkillResource]:
        """Resources newest first."""
        ...

    async def insert_resource(self, resource: SkillResource) -> SkillResource: ...

    async def delete_resource(self, resource_id: str) -> bool: ...
