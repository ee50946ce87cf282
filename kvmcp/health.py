"""
Health/status aggregation over both backends.

The embedded store is reported available without a probe (its file is
created at startup). The networked store, when configured, is probed with a
trivial round trip unless probing is switched off.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from .base import MCPToolError
from .storage.postgres_store import NOT_CONFIGURED, PostgresStore
from .storage.sqlite_store import SQLiteStore

logger = logging.getLogger(__name__)

STATUS_HEALTHY = "healthy"
STATUS_DEGRADED = "degraded"


class HealthAggregator:

    def __init__(self, sqlite_store: SQLiteStore, pg_store: PostgresStore, probe: bool = True):
        self.sqlite_store = sqlite_store
        self.pg_store = pg_store
        self.probe = probe

    async def _probe_postgres(self) -> Dict[str, Any]:
        try:
            await self.pg_store.ping()
        except MCPToolError as e:
            logger.warning(f"PostgreSQL probe failed: {e.message}")
            return {"connected": False, "error": e.message}
        return {"connected": True}

    async def health(self) -> Dict[str, Any]:
        """Composite status: degraded iff PostgreSQL is configured but unreachable."""
        status = STATUS_HEALTHY
        if not self.pg_store.configured:
            postgresql = "not configured"
        elif not self.probe:
            postgresql = "configured"
        else:
            probe = await self._probe_postgres()
            if probe["connected"]:
                postgresql = "connected"
            else:
                postgresql = "disconnected"
                status = STATUS_DEGRADED

        return {
            "status": status,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "databases": {
                "sqlite": "available",
                "postgresql": postgresql,
            },
        }

    async def databases(self) -> Dict[str, Any]:
        """Per-backend detail including connection parameters."""
        sqlite = {
            "connected": True,
            "path": str(self.sqlite_store.db_path.resolve()),
            "records": await self.sqlite_store.acount(),
        }

        if not self.pg_store.configured:
            postgresql = {"connected": False, "error": NOT_CONFIGURED}
        else:
            probe = await self._probe_postgres()
            if probe["connected"]:
                postgresql = {"connected": True, **self.pg_store.connection_info()}
            else:
                postgresql = probe

        return {"sqlite": sqlite, "postgresql": postgresql}
