"""Application configuration loader.

Loads centralized configuration from data/config/skilltrack_v1.yaml,
falling back to built-in defaults when the file is absent.

Usage:
    from skilltrack.config.app_config import load_app_config, get_database_path

    config = load_app_config()
    db_path = get_database_path()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/skilltrack_v1.yaml")


@dataclass
class DatabaseConfig:
    """Where the SQLite database lives."""

    path: str = "db/skilltrack.db"


@dataclass
class UserConfig:
    """Acting user for CLI operations."""

    user_id: str | None = None
    user_id_env: str | None = "SKILLTRACK_USER_ID"

    def get_user_id(self) -> str | None:
        """Get user id, environment variable first."""
        if self.user_id_env:
            from_env = os.environ.get(self.user_id_env)
            if from_env:
                return from_env
        return self.user_id


@dataclass
class AppConfig:
    """Application-wide configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    user: UserConfig = field(default_factory=UserConfig)
    paths: dict[str, str] = field(default_factory=dict)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "database": {
            "path": "db/skilltrack.db",
        },
        "user": {
            "user_id": None,
            "user_id_env": "SKILLTRACK_USER_ID",
        },
        "paths": {
            "config_dir": "data/config",
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    db_data = data.get("database") or {}
    database = DatabaseConfig(
        path=db_data.get("path", defaults["database"]["path"]),
    )

    user_data = data.get("user") or {}
    user = UserConfig(
        user_id=user_data.get("user_id"),
        user_id_env=user_data.get("user_id_env", defaults["user"]["user_id_env"]),
    )

    paths = data.get("paths") or {}

    return AppConfig(database=database, user=user, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def get_database_path() -> Path:
    """Database file from configuration."""
    return Path(load_app_config().database.path)


def get_current_user_id() -> str | None:
    """Acting user from configuration or environment."""
    return load_app_config().user.get_user_id()


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
