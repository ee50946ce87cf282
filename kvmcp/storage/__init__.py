"""
Record stores: embedded SQLite and optional networked PostgreSQL.
"""

from .postgres_store import PostgresStore
from .sqlite_store import SQLiteStore

__all__ = ["PostgresStore", "SQLiteStore"]
