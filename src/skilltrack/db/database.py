"""SQLite database connection and schema management.

Provides connection management and schema initialization for skill tracking.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/skilltrack.db")

# Current connection (module-level for simplicity in CLI context)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> None:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist.

    Args:
        db_path: Path to database file. Defaults to db/skilltrack.db
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    with get_db(_db_path) as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))


@contextmanager
def get_db(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Args:
        db_path: Explicit database file. Falls back to the path given to
            init_db(), then to DEFAULT_DB_PATH.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            cursor = conn.execute("SELECT * FROM skills")
            rows = cursor.fetchall()
    """
    path = db_path or _db_path or DEFAULT_DB_PATH

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency. Child tables cascade on skill delete.
    """
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS skills (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            progress INTEGER NOT NULL DEFAULT 0 CHECK(progress >= 0 AND progress <= 100),
            total_hours REAL NOT NULL DEFAULT 0 CHECK(total_hours >= 0),
            estimated_hours REAL,
            current_level TEXT NOT NULL DEFAULT 'beginner'
                CHECK(current_level IN ('beginner', 'novice', 'intermediate', 'advanced', 'expert')),
            visibility TEXT NOT NULL DEFAULT 'private'
                CHECK(visibility IN ('public', 'private', 'students', 'tutor')),
            category_id TEXT,
            streak INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            last_updated TEXT
        );

        CREATE TABLE IF NOT EXISTS skill_levels (
            id TEXT PRIMARY KEY,
            skill_id TEXT NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
            level_type TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            min_progress INTEGER NOT NULL DEFAULT 0,
            max_progress INTEGER NOT NULL DEFAULT 100,
            required_hours REAL NOT NULL DEFAULT 0
        );

        -- order_index is not unique: ties keep insertion order
        CREATE TABLE IF NOT EXISTS skill_milestones (
            id TEXT PRIMARY KEY,
            skill_id TEXT NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT,
            order_index INTEGER NOT NULL,
            is_completed INTEGER NOT NULL DEFAULT 0,
            completed_at TEXT,
            completed_by TEXT,
            created_at TEXT NOT NULL
        );

        -- No CHECK against self-reference: cyclic graphs stay representable
        CREATE TABLE IF NOT EXISTS skill_dependencies (
            id TEXT PRIMARY KEY,
            skill_id TEXT NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
            prerequisite_skill_id TEXT NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
            is_required INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            UNIQUE(skill_id, prerequisite_skill_id)
        );

        CREATE TABLE IF NOT EXISTS skill_entries (
            id TEXT PRIMARY KEY,
            skill_id TEXT NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
            content TEXT NOT NULL,
            hours REAL NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS progress_updates (
            id TEXT PRIMARY KEY,
            skill_id TEXT NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
            progress INTEGER NOT NULL CHECK(progress >= 0 AND progress <= 100),
            notes TEXT,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS skill_resources (
            id TEXT PRIMARY KEY,
            skill_id TEXT NOT NULL REFERENCES skills(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            description TEXT,
            resource_type TEXT NOT NULL
                CHECK(resource_type IN ('link', 'document', 'video', 'article')),
            url TEXT,
            file_url TEXT,
            added_by TEXT,
            created_at TEXT NOT NULL
        );

        -- Indexes
        CREATE INDEX IF NOT EXISTS idx_skills_user ON skills(user_id);
        CREATE INDEX IF NOT EXISTS idx_skills_current_level ON skills(current_level);
        CREATE INDEX IF NOT EXISTS idx_levels_skill ON skill_levels(skill_id);
        CREATE INDEX IF NOT EXISTS idx_milestones_skill ON skill_milestones(skill_id, order_index);
        CREATE INDEX IF NOT EXISTS idx_dependencies_skill ON skill_dependencies(skill_id);
        CREATE INDEX IF NOT EXISTS idx_entries_skill ON skill_entries(skill_id, created_at);
        CREATE INDEX IF NOT EXISTS idx_progress_updates_skill ON progress_updates(skill_id, created_at);
        CREATE INDEX IF NOT EXISTS idx_resources_skill ON skill_resources(skill_id);
        """
    )
