"""Environment-variable-based configuration."""

import os
from pathlib import Path


def get_db_path() -> Path:
    """Return the database file path from REV_DB_PATH."""
    raw = os.environ.get("REV_DB_PATH", "~/.local/share/revision_history/revisions.db")
    return Path(raw).expanduser()


def get_database_url() -> str | None:
    """Return the database URL from REV_DATABASE_URL (None = use SQLite)."""
    return os.environ.get("REV_DATABASE_URL") or None


def get_site_id() -> str:
    """Return the tenant scope from REV_SITE_ID."""
    return os.environ.get("REV_SITE_ID", "default")


def get_hash_max_attempts() -> int:
    """Return the revision hash retry bound from REV_HASH_MAX_ATTEMPTS."""
    return int(os.environ.get("REV_HASH_MAX_ATTEMPTS", "100"))


def is_manager_mode() -> bool:
    """Return True if REV_MANAGER is set to TRUE."""
    return os.environ.get("REV_MANAGER", "").upper() == "TRUE"


def get_log_level() -> str:
    """Return the logging level from REV_LOG_LEVEL."""
    return os.environ.get("REV_LOG_LEVEL", "WARNING")
