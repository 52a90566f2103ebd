from .config import settings
from .database import Database, get_db

__all__ = ["settings", "Database", "get_db"]
