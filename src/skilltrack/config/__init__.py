"""Configuration package for skill tracking."""

from skilltrack.config.app_config import (
    AppConfig,
    DatabaseConfig,
    UserConfig,
    clear_config_cache,
    get_current_user_id,
    get_database_path,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "UserConfig",
    "clear_config_cache",
    "get_current_user_id",
    "get_database_path",
    "load_app_config",
]
