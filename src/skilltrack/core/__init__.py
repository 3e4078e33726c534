"""Core business logic module.

Engine modules:
- level_ladder: Level classification and next-level gap
- milestones: Milestone completion and progress aggregation
- dependencies: Prerequisite resolution
- insights: Velocity, consistency, plateau and completion estimates

Supporting modules:
- skills: Skill records, activity logging, resources
- activity: Streaks and daily activity
- models: Record types
- errors: Error taxonomy
- repository: Storage protocol
"""

__all__ = [
    "level_ladder",
    "milestones",
    "dependencies",
    "insights",
    "skills",
    "activity",
    "models",
    "errors",
    "repository",
]
