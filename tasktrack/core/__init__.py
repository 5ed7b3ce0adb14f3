"""Core app configuration, database handle, errors and security."""

from tasktrack.core.config import Settings, get_settings
from tasktrack.core.database import Database, get_db

__all__ = ["Database", "Settings", "get_db", "get_settings"]
