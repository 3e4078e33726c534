"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- SqliteSkillRepository, the SQLite-backed storage collaborator
"""

from skilltrack.db.database import get_db, init_db
from skilltrack.db.skills_repository import SqliteSkillRepository

__all__ = ["get_db", "init_db", "SqliteSkillRepository"]
