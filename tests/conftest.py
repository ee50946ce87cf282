"""
Shared fixtures and an in-memory stand-in for the PostgreSQL store.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from kvmcp.base import BackendIO, BackendNotConfigured
from kvmcp.config import Settings
from kvmcp.dispatcher import Dispatcher
from kvmcp.health import HealthAggregator
from kvmcp.models import Record, utcnow
from kvmcp.registry import ToolRegistry
from kvmcp.storage.postgres_store import NOT_CONFIGURED, PostgresStore
from kvmcp.storage.sqlite_store import SQLiteStore


class FakePostgresStore:
    """Duck-typed PostgresStore keeping rows in a dict."""

    def __init__(self, configured: bool = True, reachable: bool = True):
        self.configured = configured
        self.reachable = reachable
        self.rows: Dict[str, Record] = {}
        self.pings = 0
        self.queries: List[Any] = []
        self.closed = False

    def connection_info(self) -> Dict[str, Any]:
        return {"host": "db.example", "port": 5432, "database": "mcp_demo"}

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        self.closed = True

    def _check(self, operation: str) -> None:
        if not self.configured:
            raise BackendNotConfigured(NOT_CONFIGURED)
        if not self.reachable:
            raise BackendIO(f"PostgreSQL {operation} failed: connection refused")

    async def ping(self) -> None:
        self.pings += 1
        self._check("ping")

    async def get(self, key: str) -> Optional[str]:
        self._check("get")
        record = self.rows.get(key)
        return record.value if record else None

    async def set(self, key: str, value: str) -> Record:
        self._check("set")
        now = utcnow()
        previous = self.rows.get(key)
        created = previous.created_at if previous else now
        self.rows[key] = Record(key=key, value=value, created_at=created, updated_at=now)
        return self.rows[key]

    async def delete(self, key: str) -> bool:
        self._check("delete")
        return self.rows.pop(key, None) is not None

    async def list(self, pattern: Optional[str] = None) -> List[str]:
        self._check("list")
        return sorted(k for k in self.rows if not pattern or pattern in k)

    async def raw_query(self, sql: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        self._check("query")
        self.queries.append((sql, params))
        return {"rows": [{"answer": 42}], "row_count": 1}


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "mcp.db"


@pytest.fixture
def sqlite_store(db_path: Path):
    store = SQLiteStore(db_path)
    store.initialize()
    yield store
    store.close()


@pytest.fixture
def unconfigured_pg() -> PostgresStore:
    """The real store with no connection settings."""
    return PostgresStore()


@pytest.fixture
def fake_pg() -> FakePostgresStore:
    return FakePostgresStore()


@pytest.fixture
def unreachable_pg() -> FakePostgresStore:
    return FakePostgresStore(reachable=False)


@pytest.fixture
def settings(db_path: Path) -> Settings:
    return Settings(db_path=db_path, log_dir=None)


def build_dispatcher(sqlite_store, pg_store, probe: bool = True) -> Dispatcher:
    health = HealthAggregator(sqlite_store, pg_store, probe=probe)
    return Dispatcher(ToolRegistry.build(sqlite_store, pg_store, health))


@pytest.fixture
def dispatcher(sqlite_store, unconfigured_pg) -> Dispatcher:
    """SQLite only, PostgreSQL not configured."""
    return build_dispatcher(sqlite_store, unconfigured_pg)


@pytest.fixture
def dual_dispatcher(sqlite_store, fake_pg) -> Dispatcher:
    """Both backends available."""
    return build_dispatcher(sqlite_store, fake_pg)


@pytest.fixture
def make_dispatcher():
    return build_dispatcher
