"""Error taxonomy for the skill progression engine.

Engine functions propagate these unchanged. Storage failures
(sqlite3.Error) are not wrapped.
"""


class SkillEngineError(Exception):
    """Base class for engine errors."""


class NotAuthenticatedError(SkillEngineError):
    """Raised when an operation needs an acting user and none is set."""

    def __init__(self, action: str = "this operation"):
        self.action = action
        super().__init__(f"User not authenticated: {action} requires a user")


class NotFoundError(SkillEngineError):
    """Raised when a referenced record does not exist."""


class SkillNotFoundError(NotFoundError):
    """Raised when a skill id does not resolve to a record."""

    def __init__(self, skill_id: str):
        self.skill_id = skill_id
        super().__init__(f"Skill not found: {skill_id}")


class MilestoneNotFoundError(NotFoundError):
    """Raised when a milestone id does not resolve to a record."""

    def __init__(self, milestone_id: str):
        self.milestone_id = milestone_id
        super().__init__(f"Milestone not found: {milestone_id}")
