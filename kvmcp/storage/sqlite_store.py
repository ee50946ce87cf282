"""
SQLite record store (embedded backend).

Always available: the database file and its table are created on first use.
One connection is shared by all callers and serialized by a lock; async
callers go through the a* wrappers, which run the blocking call in a
worker thread.
"""

import asyncio
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from ..base import BackendIO
from ..models import Record, utcnow

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
)
"""


class SQLiteStore:
    """Key-value table in a single SQLite file."""

    def __init__(self, db_path: Path, busy_timeout: float = 5.0):
        self.db_path = Path(db_path)
        self.busy_timeout = busy_timeout
        self.conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    def initialize(self) -> None:
        """Create the file and schema if missing. Safe to call repeatedly."""
        with self._lock:
            if self.conn is not None:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                timeout=self.busy_timeout,
            )
            conn.row_factory = sqlite3.Row
            try:
                conn.execute(SCHEMA)
                conn.commit()
            except sqlite3.Error:
                conn.close()
                raise
            self.conn = conn
            logger.info(f"SQLite store ready at {self.db_path}")

    @contextmanager
    def _cursor(self, operation: str, key: Optional[str] = None):
        with self._lock:
            try:
                self.initialize()
                yield self.conn
            except (sqlite3.Error, OSError) as e:
                if self.conn is not None and self.conn.in_transaction:
                    self.conn.rollback()
                target = f" for key '{key}'" if key is not None else ""
                raise BackendIO(f"SQLite {operation} failed{target}: {e}") from e

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> Record:
        return Record(
            key=row["key"],
            value=row["value"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def get_record(self, key: str) -> Optional[Record]:
        with self._cursor("get", key) as conn:
            row = conn.execute(
                "SELECT key, value, created_at, updated_at FROM kv_store WHERE key = ?",
                (key,),
            ).fetchone()
        return self._row_to_record(row) if row else None

    def get(self, key: str) -> Optional[str]:
        record = self.get_record(key)
        return record.value if record else None

    def set(self, key: str, value: str) -> Record:
        """Upsert. created_at survives; updated_at never moves backwards."""
        now = utcnow().isoformat()
        with self._cursor("set", key) as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, created_at, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = MAX(kv_store.updated_at, excluded.updated_at)
                """,
                (key, value, now, now),
            )
            conn.commit()
            row = conn.execute(
                "SELECT key, value, created_at, updated_at FROM kv_store WHERE key = ?",
                (key,),
            ).fetchone()
        return self._row_to_record(row)

    def delete(self, key: str) -> bool:
        with self._cursor("delete", key) as conn:
            cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        return cursor.rowcount > 0

    def list(self, pattern: Optional[str] = None) -> List[str]:
        """Keys in ascending order, optionally those containing `pattern`."""
        with self._cursor("list") as conn:
            if pattern:
                rows = conn.execute(
                    "SELECT key FROM kv_store WHERE instr(key, ?) > 0 ORDER BY key",
                    (pattern,),
                ).fetchall()
            else:
                rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        return [row["key"] for row in rows]

    def count(self) -> int:
        with self._cursor("count") as conn:
            return conn.execute("SELECT COUNT(*) FROM kv_store").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            if self.conn is not None:
                self.conn.close()
                self.conn = None
                logger.info("SQLite store closed")

    # Async wrappers

    async def aget(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self.get, key)

    async def aset(self, key: str, value: str) -> Record:
        return await asyncio.to_thread(self.set, key, value)

    async def adelete(self, key: str) -> bool:
        return await asyncio.to_thread(self.delete, key)

    async def alist(self, pattern: Optional[str] = None) -> List[str]:
        return await asyncio.to_thread(self.list, pattern)

    async def acount(self) -> int:
        return await asyncio.to_thread(self.count)
