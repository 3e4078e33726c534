"""SQLite implementation of the SkillRepository protocol.

Each method opens its own connection through get_db(), so every call is a
single transaction and nothing is shared between calls.
"""

from __future__ import annotations

import sqlite3
import uuid
from dataclasses import replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

import structlog

from skilltrack.core.errors import MilestoneNotFoundError, SkillNotFoundError
from skilltrack.core.models import (
    ProgressUpdate,
    ResourceType,
    Skill,
    SkillDependency,
    SkillEntry,
    SkillLevel,
    SkillLevelType,
    SkillMilestone,
    SkillResource,
    SkillVisibility,
)
from skilltrack.db.database import get_db
from skilltrack.utils.time_utils import format_timestamp, parse_timestamp, utc_now

logger = structlog.get_logger(__name__)

SKILL_COLUMNS = {
    "name",
    "description",
    "progress",
    "total_hours",
    "estimated_hours",
    "current_level",
    "visibility",
    "category_id",
    "streak",
    "last_updated",
}

MILESTONE_COLUMNS = {
    "title",
    "description",
    "order_index",
    "is_completed",
    "completed_at",
    "completed_by",
}


def _new_id() -> str:
    return uuid.uuid4().hex


def _to_db(value: Any) -> Any:
    """Convert a Python value into something sqlite3 can bind."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, bool):
        return int(value)
    return value


def _build_set_clause(fields: dict[str, Any], allowed: set[str]) -> tuple[str, list[Any]]:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Unknown columns: {', '.join(sorted(unknown))}")
    assignments = ", ".join(f"{column} = ?" for column in fields)
    return assignments, [_to_db(value) for value in fields.values()]


class SqliteSkillRepository:
    """SkillRepository backed by a local SQLite file.

    Args:
        db_path: Database file (None uses the path set by init_db())
        user_id: Acting user; None means unauthenticated
    """

    def __init__(self, db_path: Path | None = None, user_id: str | None = None):
        self.db_path = db_path
        self.user_id = user_id

    async def get_current_user_id(self) -> str | None:
        return self.user_id

    # =========================================================================
    # SKILLS
    # =========================================================================

    async def get_skill(self, skill_id: str) -> Skill:
        with get_db(self.db_path) as conn:
            row = conn.execute("SELECT * FROM skills WHERE id = ?", (skill_id,)).fetchone()

        if row is None:
            raise SkillNotFoundError(skill_id)

        return _row_to_skill(row)

    async def insert_skill(self, skill: Skill) -> Skill:
        record = skill if skill.id else replace(skill, id=_new_id())
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO skills (
                    id, user_id, name, description, progress, total_hours,
                    estimated_hours, current_level, visibility, category_id,
                    streak, created_at, last_updated
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.user_id,
                    record.name,
                    record.description,
                    record.progress,
                    record.total_hours,
                    record.estimated_hours,
                    record.current_level.value,
                    record.visibility.value,
                    record.category_id,
                    record.streak,
                    format_timestamp(record.created_at),
                    format_timestamp(record.last_updated),
                ),
            )

        logger.debug("skills.inserted", skill_id=record.id)
        return record

    async def update_skill(self, skill_id: str, **fields: Any) -> None:
        if not fields:
            return
        assignments, values = _build_set_clause(fields, SKILL_COLUMNS)
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                f"UPDATE skills SET {assignments} WHERE id = ?",
                (*values, skill_id),
            )
            if cursor.rowcount == 0:
                raise SkillNotFoundError(skill_id)

        logger.debug("skills.updated", skill_id=skill_id, fields=sorted(fields))

    async def delete_skill(self, skill_id: str) -> None:
        with get_db(self.db_path) as conn:
            cursor = conn.execute("DELETE FROM skills WHERE id = ?", (skill_id,))
            if cursor.rowcount == 0:
                raise SkillNotFoundError(skill_id)

        logger.debug("skills.deleted", skill_id=skill_id)

    # =========================================================================
    # LEVELS
    # =========================================================================

    async def list_levels(self, skill_id: str) -> list[SkillLevel]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM skill_levels WHERE skill_id = ? ORDER BY min_progress ASC",
                (skill_id,),
            ).fetchall()

        return [_row_to_level(row) for row in rows]

    async def insert_level(self, level: SkillLevel) -> SkillLevel:
        record = level if level.id else replace(level, id=_new_id())
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO skill_levels (
                    id, skill_id, level_type, name, description,
                    min_progress, max_progress, required_hours
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.skill_id,
                    record.level_type.value,
                    record.name,
                    record.description,
                    record.min_progress,
                    record.max_progress,
                    record.required_hours,
                ),
            )

        logger.debug("levels.inserted", skill_id=record.skill_id, level=record.level_type.value)
        return record

    # =========================================================================
    # MILESTONES
    # =========================================================================

    async def list_milestones(self, skill_id: str) -> list[SkillMilestone]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT * FROM skill_milestones
                WHERE skill_id = ?
                ORDER BY order_index ASC, rowid ASC
                """,
                (skill_id,),
            ).fetchall()

        return [_row_to_milestone(row) for row in rows]

    async def get_milestone(self, milestone_id: str) -> SkillMilestone:
        with get_db(self.db_path) as conn:
            row = conn.execute(
                "SELECT * FROM skill_milestones WHERE id = ?", (milestone_id,)
            ).fetchone()

        if row is None:
            raise MilestoneNotFoundError(milestone_id)

        return _row_to_milestone(row)

    async def insert_milestone(self, milestone: SkillMilestone) -> SkillMilestone:
        record = milestone if milestone.id else replace(milestone, id=_new_id())
        if record.created_at is None:
            record = replace(record, created_at=utc_now())
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO skill_milestones (
                    id, skill_id, title, description, order_index,
                    is_completed, completed_at, completed_by, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.skill_id,
                    record.title,
                    record.description,
                    record.order_index,
                    int(record.is_completed),
                    format_timestamp(record.completed_at),
                    record.completed_by,
                    format_timestamp(record.created_at),
                ),
            )

        logger.debug("milestones.inserted", milestone_id=record.id, skill_id=record.skill_id)
        return record

    async def update_milestone(self, milestone_id: str, **fields: Any) -> None:
        if not fields:
            return
        assignments, values = _build_set_clause(fields, MILESTONE_COLUMNS)
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                f"UPDATE skill_milestones SET {assignments} WHERE id = ?",
                (*values, milestone_id),
            )
            if cursor.rowcount == 0:
                raise MilestoneNotFoundError(milestone_id)

        logger.debug("milestones.updated", milestone_id=milestone_id, fields=sorted(fields))

    async def delete_milestone(self, milestone_id: str) -> None:
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM skill_milestones WHERE id = ?", (milestone_id,)
            )
            if cursor.rowcount == 0:
                raise MilestoneNotFoundError(milestone_id)

        logger.debug("milestones.deleted", milestone_id=milestone_id)

    # =========================================================================
    # DEPENDENCIES
    # =========================================================================

    async def list_dependencies(self, skill_id: str) -> list[SkillDependency]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                """
                SELECT * FROM skill_dependencies
                WHERE skill_id = ?
                ORDER BY created_at ASC, rowid ASC
                """,
                (skill_id,),
            ).fetchall()

            dependencies = []
            for row in rows:
                prereq_row = conn.execute(
                    "SELECT * FROM skills WHERE id = ?", (row["prerequisite_skill_id"],)
                ).fetchone()
                dependencies.append(
                    SkillDependency(
                        id=row["id"],
                        skill_id=row["skill_id"],
                        prerequisite_skill_id=row["prerequisite_skill_id"],
                        is_required=bool(row["is_required"]),
                        created_at=parse_timestamp(row["created_at"]),
                        prerequisite_skill=_row_to_skill(prereq_row) if prereq_row else None,
                    )
                )

        return dependencies

    async def insert_dependency(self, dependency: SkillDependency) -> SkillDependency:
        record = dependency if dependency.id else replace(dependency, id=_new_id())
        if record.created_at is None:
            record = replace(record, created_at=utc_now())
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO skill_dependencies (
                    id, skill_id, prerequisite_skill_id, is_required, created_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.skill_id,
                    record.prerequisite_skill_id,
                    int(record.is_required),
                    format_timestamp(record.created_at),
                ),
            )

        logger.debug(
            "dependencies.inserted",
            skill_id=record.skill_id,
            prerequisite_skill_id=record.prerequisite_skill_id,
        )
        return record

    async def delete_dependency(self, skill_id: str, prerequisite_skill_id: str) -> bool:
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                """
                DELETE FROM skill_dependencies
                WHERE skill_id = ? AND prerequisite_skill_id = ?
                """,
                (skill_id, prerequisite_skill_id),
            )

        deleted = cursor.rowcount > 0
        if deleted:
            logger.debug(
                "dependencies.deleted",
                skill_id=skill_id,
                prerequisite_skill_id=prerequisite_skill_id,
            )

        return deleted

    # =========================================================================
    # HISTORY
    # =========================================================================

    async def list_entries(self, skill_id: str, limit: int | None = None) -> list[SkillEntry]:
        query = "SELECT * FROM skill_entries WHERE skill_id = ? ORDER BY created_at DESC, rowid DESC"
        params: tuple[Any, ...] = (skill_id,)
        if limit is not None:
            query += " LIMIT ?"
            params = (skill_id, limit)

        with get_db(self.db_path) as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            SkillEntry(
                id=row["id"],
                skill_id=row["skill_id"],
                content=row["content"],
                hours=row["hours"],
                created_at=parse_timestamp(row["created_at"]),
            )
            for row in rows
        ]

    async def insert_entry(self, entry: SkillEntry) -> SkillEntry:
        record = entry if entry.id else replace(entry, id=_new_id())
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO skill_entries (id, skill_id, content, hours, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.skill_id,
                    record.content,
                    record.hours,
                    format_timestamp(record.created_at),
                ),
            )

        logger.debug("entries.inserted", entry_id=record.id, skill_id=record.skill_id)
        return record

    async def list_progress_updates(
        self, skill_id: str, limit: int | None = None
    ) -> list[ProgressUpdate]:
        query = "SELECT * FROM progress_updates WHERE skill_id = ? ORDER BY created_at DESC, rowid DESC"
        params: tuple[Any, ...] = (skill_id,)
        if limit is not None:
            query += " LIMIT ?"
            params = (skill_id, limit)

        with get_db(self.db_path) as conn:
            rows = conn.execute(query, params).fetchall()

        return [
            ProgressUpdate(
                id=row["id"],
                skill_id=row["skill_id"],
                progress=row["progress"],
                notes=row["notes"],
                created_at=parse_timestamp(row["created_at"]),
            )
            for row in rows
        ]

    async def insert_progress_update(self, update: ProgressUpdate) -> ProgressUpdate:
        record = update if update.id else replace(update, id=_new_id())
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO progress_updates (id, skill_id, progress, notes, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.skill_id,
                    record.progress,
                    record.notes,
                    format_timestamp(record.created_at),
                ),
            )

        logger.debug("progress_updates.inserted", skill_id=record.skill_id, progress=record.progress)
        return record

    # =========================================================================
    # RESOURCES
    # =========================================================================

    async def list_resources(self, skill_id: str) -> list[SkillResource]:
        with get_db(self.db_path) as conn:
            rows = conn.execute(
                "SELECT * FROM skill_resources WHERE skill_id = ? ORDER BY created_at DESC, rowid DESC",
                (skill_id,),
            ).fetchall()

        return [
            SkillResource(
                id=row["id"],
                skill_id=row["skill_id"],
                title=row["title"],
                description=row["description"],
                resource_type=ResourceType(row["resource_type"]),
                url=row["url"],
                file_url=row["file_url"],
                added_by=row["added_by"],
                created_at=parse_timestamp(row["created_at"]),
            )
            for row in rows
        ]

    async def insert_resource(self, resource: SkillResource) -> SkillResource:
        record = resource if resource.id else replace(resource, id=_new_id())
        with get_db(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO skill_resources (
                    id, skill_id, title, description, resource_type,
                    url, file_url, added_by, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.skill_id,
                    record.title,
                    record.description,
                    record.resource_type.value,
                    record.url,
                    record.file_url,
                    record.added_by,
                    format_timestamp(record.created_at),
                ),
            )

        logger.debug("resources.inserted", resource_id=record.id, skill_id=record.skill_id)
        return record

    async def delete_resource(self, resource_id: str) -> bool:
        with get_db(self.db_path) as conn:
            cursor = conn.execute(
                "DELETE FROM skill_resources WHERE id = ?", (resource_id,)
            )

        deleted = cursor.rowcount > 0
        if deleted:
            logger.debug("resources.deleted", resource_id=resource_id)

        return deleted


def _row_to_skill(row: sqlite3.Row) -> Skill:
    """Convert database row to Skill."""
    return Skill(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        description=row["description"],
        progress=row["progress"],
        total_hours=row["total_hours"],
        estimated_hours=row["estimated_hours"],
        current_level=SkillLevelType(row["current_level"]),
        visibility=SkillVisibility(row["visibility"]),
        category_id=row["category_id"],
        streak=row["streak"],
        created_at=parse_timestamp(row["created_at"]),
        last_updated=parse_timestamp(row["last_updated"]),
    )


def _row_to_level(row: sqlite3.Row) -> SkillLevel:
    """Convert database row to SkillLevel."""
    return SkillLevel(
        id=row["id"],
        skill_id=row["skill_id"],
        level_type=SkillLevelType(row["level_type"]),
        name=row["name"],
        description=row["description"],
        min_progress=row["min_progress"],
        max_progress=row["max_progress"],
        required_hours=row["required_hours"],
    )


def _row_to_milestone(row: sqlite3.Row) -> SkillMilestone:
    """Convert database row to SkillMilestone."""
    return SkillMilestone(
        id=row["id"],
        skill_id=row["skill_id"],
        title=row["title"],
        description=row["description"],
        order_index=row["order_index"],
        is_completed=bool(row["is_completed"]),
        completed_at=parse_timestamp(row["completed_at"]),
        completed_by=row["completed_by"],
        created_at=parse_timestamp(row["created_at"]),
    )
