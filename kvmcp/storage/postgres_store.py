"""
PostgreSQL record store (networked backend, optional).

The store object always exists so that tools can be bound to it, but it only
owns a connection pool when connection settings were supplied. Without a
pool every operation raises BackendNotConfigured; with a pool that cannot
reach the server, operations raise BackendIO.
"""

import asyncio
import datetime
import ipaddress
import logging
import math
import uuid
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import asyncpg

from ..base import BackendIO, BackendNotConfigured, QueryError
from ..models import Record

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS mcp_data (
    id SERIAL PRIMARY KEY,
    key VARCHAR(255) UNIQUE NOT NULL,
    value TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
)
"""

NOT_CONFIGURED = "PostgreSQL not configured"

# Raised by the driver or the socket layer when a connection cannot be used.
_CONNECTIVITY_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.InterfaceError,
    asyncpg.PostgresError,
)


def _status_count(status: Optional[str], fallback: int) -> int:
    """Row count from a command tag such as 'INSERT 0 3' or 'UPDATE 2'."""
    if status:
        last = status.rsplit(" ", 1)[-1]
        if last.isdigit():
            return int(last)
    return fallback


# Column values the HTTP layer can encode as they are.
_PLAIN_TYPES = (
    str, int, float, bool, Decimal, datetime.date, datetime.time,
    datetime.timedelta, uuid.UUID,
    ipaddress.IPv4Address, ipaddress.IPv6Address,
    ipaddress.IPv4Network, ipaddress.IPv6Network,
    ipaddress.IPv4Interface, ipaddress.IPv6Interface,
)


def _json_safe(value: Any) -> Any:
    """Column value from a raw query in a form that encodes as JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if value is None or isinstance(value, _PLAIN_TYPES):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    if isinstance(value, dict):
        return {str(k): _json_safe(v) for k, v in value.items()}
    # ranges, geometric types, bit strings and other driver types
    return str(value)


class PostgresStore:
    """Key-value table in PostgreSQL plus a raw query passthrough."""

    def __init__(
        self,
        dsn: Optional[str] = None,
        host: Optional[str] = None,
        port: int = 5432,
        user: str = "postgres",
        password: str = "postgres",
        database: str = "mcp_demo",
        pool_size: int = 10,
        connect_timeout: float = 2.0,
        acquire_timeout: float = 5.0,
        idle_timeout: float = 30.0,
    ):
        self.dsn = dsn
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.pool_size = pool_size
        self.connect_timeout = connect_timeout
        self.acquire_timeout = acquire_timeout
        self.idle_timeout = idle_timeout

        self._pool: Optional[asyncpg.Pool] = None
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings) -> "PostgresStore":
        return cls(
            dsn=settings.pg_dsn,
            host=settings.pg_host,
            port=settings.pg_port,
            user=settings.pg_user,
            password=settings.pg_password,
            database=settings.pg_database,
            pool_size=settings.pg_pool_size,
            connect_timeout=settings.pg_connect_timeout,
            acquire_timeout=settings.pg_acquire_timeout,
            idle_timeout=settings.pg_idle_timeout,
        )

    @property
    def configured(self) -> bool:
        return bool(self.dsn or self.host)

    @property
    def connected(self) -> bool:
        """True once a pool exists (says nothing about the server being up)."""
        return self._pool is not None

    def connection_info(self) -> Dict[str, Any]:
        if self.dsn:
            parsed = urlparse(self.dsn)
            return {
                "host": parsed.hostname,
                "port": parsed.port or 5432,
                "database": parsed.path.lstrip("/") or None,
            }
        return {"host": self.host, "port": self.port, "database": self.database}

    async def connect(self) -> None:
        """
        Create the pool and the table. Never raises: an unreachable server
        is logged and the table is created on first successful use.
        """
        if not self.configured:
            logger.info("PostgreSQL not configured, networked backend disabled")
            return

        try:
            # min_size=0 so that building the pool does not need the server
            self._pool = await asyncpg.create_pool(
                dsn=self.dsn,
                host=None if self.dsn else self.host,
                port=None if self.dsn else self.port,
                user=None if self.dsn else self.user,
                password=None if self.dsn else self.password,
                database=None if self.dsn else self.database,
                min_size=0,
                max_size=self.pool_size,
                timeout=self.connect_timeout,
                max_inactive_connection_lifetime=self.idle_timeout,
            )
        except (ValueError, *_CONNECTIVITY_ERRORS) as e:
            logger.error(f"PostgreSQL pool creation failed: {e}")
            self._pool = None
            return

        info = self.connection_info()
        logger.info(
            f"PostgreSQL pool ready for {info['host']}:{info['port']}/{info['database']} "
            f"(max {self.pool_size} connections)"
        )

        try:
            await self._ensure_schema()
        except BackendIO as e:
            logger.error(f"PostgreSQL initialization failed: {e.message}")

    async def close(self) -> None:
        if self._pool is not None:
            pool, self._pool = self._pool, None
            await pool.close()
            logger.info("PostgreSQL pool closed")

    @asynccontextmanager
    async def _acquire(self, operation: str, key: Optional[str] = None):
        if self._pool is None:
            raise BackendNotConfigured(NOT_CONFIGURED)
        try:
            async with self._pool.acquire(timeout=self.acquire_timeout) as conn:
                yield conn
        except _CONNECTIVITY_ERRORS as e:
            target = f" for key '{key}'" if key is not None else ""
            reason = str(e) or type(e).__name__
            raise BackendIO(f"PostgreSQL {operation} failed{target}: {reason}") from e

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        async with self._schema_lock:
            if self._schema_ready:
                return
            async with self._acquire("initialize") as conn:
                await conn.execute(SCHEMA)
            self._schema_ready = True
            logger.info("PostgreSQL tables initialized")

    async def ping(self) -> None:
        """Trivial round trip; raises BackendIO when the server is unreachable."""
        async with self._acquire("ping") as conn:
            await conn.fetchval("SELECT 1")

    async def get_record(self, key: str) -> Optional[Record]:
        await self._ensure_schema()
        async with self._acquire("get", key) as conn:
            row = await conn.fetchrow(
                "SELECT key, value, created_at, updated_at FROM mcp_data WHERE key = $1",
                key,
            )
        if row is None:
            return None
        return Record(
            key=row["key"],
            value=row["value"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def get(self, key: str) -> Optional[str]:
        record = await self.get_record(key)
        return record.value if record else None

    async def set(self, key: str, value: str) -> Record:
        await self._ensure_schema()
        async with self._acquire("set", key) as conn:
            row = await conn.fetchrow(
                """
                INSERT INTO mcp_data (key, value, created_at, updated_at)
                VALUES ($1, $2, CURRENT_TIMESTAMP, CURRENT_TIMESTAMP)
                ON CONFLICT (key) DO UPDATE SET
                    value = EXCLUDED.value,
                    updated_at = GREATEST(mcp_data.updated_at, EXCLUDED.updated_at)
                RETURNING key, value, created_at, updated_at
                """,
                key,
                value,
            )
        return Record(
            key=row["key"],
            value=row["value"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    async def delete(self, key: str) -> bool:
        await self._ensure_schema()
        async with self._acquire("delete", key) as conn:
            status = await conn.execute("DELETE FROM mcp_data WHERE key = $1", key)
        return _status_count(status, 0) > 0

    async def list(self, pattern: Optional[str] = None) -> List[str]:
        await self._ensure_schema()
        async with self._acquire("list") as conn:
            if pattern:
                rows = await conn.fetch(
                    'SELECT key FROM mcp_data WHERE strpos(key, $1) > 0 ORDER BY key COLLATE "C"',
                    pattern,
                )
            else:
                rows = await conn.fetch('SELECT key FROM mcp_data ORDER BY key COLLATE "C"')
        return [row["key"] for row in rows]

    async def raw_query(self, sql: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        """
        Run arbitrary SQL with $n placeholders. Unrestricted: whatever the
        connected role may do, this may do.

        Without parameters a script of several statements (for example
        ``BEGIN; UPDATE ...; COMMIT``) is accepted and runs over the simple
        query protocol; it returns no rows and the count of its last command.
        """
        params = list(params or [])
        await self._ensure_schema()
        async with self._acquire("query") as conn:
            try:
                try:
                    stmt = await conn.prepare(sql)
                except asyncpg.PostgresSyntaxError:
                    # a prepared statement holds a single command
                    if params:
                        raise
                    status = await conn.execute(sql)
                    return {"rows": [], "row_count": _status_count(status, 0)}
                rows = await stmt.fetch(*params)
            except asyncpg.PostgresError as e:
                raise QueryError(f"PostgreSQL query failed: {e}") from e
            except (TypeError, ValueError) as e:
                raise QueryError(f"PostgreSQL query parameters rejected: {e}") from e
            status = stmt.get_statusmsg()

        rows = [{name: _json_safe(value) for name, value in row.items()} for row in rows]
        return {"rows": rows, "row_count": _status_count(status, len(rows))}
