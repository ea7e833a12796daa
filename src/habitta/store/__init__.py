"""Storage collaborators for system records."""
from __future__ import annotations

from .base import SystemStore
from .sqlite_store import SQLiteSystemStore

__all__ = ["SystemStore", "SQLiteSystemStore"]
