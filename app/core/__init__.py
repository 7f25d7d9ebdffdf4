"""Settings, database sessions, errors and token/password primitives."""

from app.core.config import get_settings, settings
from app.core.database import get_db, get_optional_db

__all__ = ["get_settings", "settings", "get_db", "get_optional_db"]
