"""Record types for the skill progression engine.

Plain dataclasses mirroring the rows handled by the repository:
- Skill: a learning goal with progress, hours and cached level
- SkillLevel: one tier of a skill's five-level ladder
- SkillMilestone: ordered, completable checklist item
- SkillDependency: directed edge skill -> prerequisite skill
- SkillEntry / ProgressUpdate: activity history
- SkillResource: learning material attached to a skill

Computed results (LevelGap, SkillInsight, SkillProgress) live next to the
records so callers only import from one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================


class SkillLevelType(str, Enum):
    """Proficiency tiers, in ascending order."""

    BEGINNER = "beginner"
    NOVICE = "novice"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


LEVEL_ORDER: list[SkillLevelType] = [
    SkillLevelType.BEGINNER,
    SkillLevelType.NOVICE,
    SkillLevelType.INTERMEDIATE,
    SkillLevelType.ADVANCED,
    SkillLevelType.EXPERT,
]


class SkillVisibility(str, Enum):
    """Who can see a skill."""

    PUBLIC = "public"
    PRIVATE = "private"
    STUDENTS = "students"
    TUTOR = "tutor"


class ResourceType(str, Enum):
    """Kind of learning resource."""

    LINK = "link"
    DOCUMENT = "document"
    VIDEO = "video"
    ARTICLE = "article"


# =============================================================================
# RECORDS
# =============================================================================


@dataclass
class Skill:
    """A learning goal owned by one user."""

    id: str
    user_id: str
    name: str
    created_at: datetime
    description: str | None = None
    progress: int = 0
    total_hours: float = 0.0
    estimated_hours: float | None = None
    current_level: SkillLevelType = SkillLevelType.BEGINNER
    visibility: SkillVisibility = SkillVisibility.PRIVATE
    category_id: str | None = None
    streak: int = 0
    last_updated: datetime | None = None


@dataclass
class SkillLevel:
    """One tier of a skill's ladder.

    The range is half-open: min_progress <= progress < max_progress.
    """

    id: str
    skill_id: str
    level_type: SkillLevelType
    name: str
    min_progress: int
    max_progress: int
    required_hours: float
    description: str | None = None

    def contains(self, progress: float) -> bool:
        """Whether progress falls inside [min_progress, max_progress)."""
        return self.min_progress <= progress < self.max_progress


@dataclass
class SkillMilestone:
    """A checklist item belonging to a skill."""

    id: str
    skill_id: str
    title: str
    order_index: int
    description: str | None = None
    is_completed: bool = False
    completed_at: datetime | None = None
    completed_by: str | None = None
    created_at: datetime | None = None


@dataclass
class SkillDependency:
    """Directed edge: skill_id requires prerequisite_skill_id."""

    id: str
    skill_id: str
    prerequisite_skill_id: str
    is_required: bool = True
    created_at: datetime | None = None
    # Joined row, None when the prerequisite no longer exists
    prerequisite_skill: Skill | None = None


@dataclass
class SkillEntry:
    """Diary entry logged against a skill."""

    id: str
    skill_id: str
    content: str
    created_at: datetime
    hours: float = 0.0


@dataclass
class ProgressUpdate:
    """Direct percentage update recorded for history."""

    id: str
    skill_id: str
    progress: int
    created_at: datetime
    notes: str | None = None


@dataclass
class SkillResource:
    """Learning material attached to a skill."""

    id: str
    skill_id: str
    title: str
    resource_type: ResourceType
    created_at: datetime
    description: str | None = None
    url: str | None = None
    file_url: str | None = None
    added_by: str | None = None


# =============================================================================
# COMPUTED RESULTS
# =============================================================================


@dataclass
class LevelGap:
    """What separates a skill from its next tier."""

    next_level: SkillLevel | None
    hours_needed: float = 0.0
    progress_needed: int = 0

    @property
    def is_max_level(self) -> bool:
        """True when there is no tier above the current one."""
        return self.next_level is None


@dataclass
class LevelProgression:
    """Outcome of a level-up check at 100% progress."""

    new_level: SkillLevelType
    progress_reset: bool
    message: str


@dataclass
class SkillInsight:
    """Learning insights derived from a skill's history."""

    skill_id: str
    velocity: float
    consistency: float
    plateau_detected: bool
    next_milestone: SkillMilestone | None = None


@dataclass
class SkillProgress:
    """Progress summary for a skill."""

    skill_id: str
    progress: int
    level: SkillLevelType
    milestones_completed: int
    milestones_total: int
    hours_logged: float
    estimated_hours: float
    completion_percentage: int


@dataclass
class ActivityDay:
    """Activity counters for one calendar day (UTC)."""

    date: str  # YYYY-MM-DD
    entries: int = 0
    hours: float = 0.0
    progress_updates: int = 0
