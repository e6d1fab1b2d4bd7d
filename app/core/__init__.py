"""Core app configuration, database, security and error types."""

from app.core.config import get_settings, settings
from app.core.database import get_db, unit_of_work

__all__ = ["get_settings", "settings", "get_db", "unit_of_work"]
