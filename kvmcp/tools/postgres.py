"""
PostgreSQL Tools

Key-value tools and the raw query passthrough, backed by the networked
store. These tools always resolve; they only appear in the manifest when
the backend is configured.
"""

from typing import Any, Dict, List, Optional

from ..base import BACKEND_POSTGRES, MCPTool, ToolParameter
from ..storage.postgres_store import PostgresStore
from .sqlite import key_parameter


class PostgresTool(MCPTool):
    """Common base: a tool bound to one PostgresStore."""

    backend = BACKEND_POSTGRES

    def __init__(self, store: PostgresStore):
        self.store = store


class PostgresSetTool(PostgresTool):

    @property
    def name(self) -> str:
        return "pg_set"

    @property
    def description(self) -> str:
        return "Store data in PostgreSQL"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            key_parameter("Data key"),
            ToolParameter(
                name="value",
                type="string",
                description="Data value",
                required=True
            )
        ]

    async def execute(self, key: str, value: str) -> Dict[str, Any]:
        record = await self.store.set(key, value)
        return {
            "message": "Data stored in PostgreSQL",
            "key": record.key,
            "created_at": record.created_at.isoformat(),
            "updated_at": record.updated_at.isoformat(),
        }


class PostgresGetTool(PostgresTool):

    @property
    def name(self) -> str:
        return "pg_get"

    @property
    def description(self) -> str:
        return "Retrieve data from PostgreSQL"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [key_parameter("Data key")]

    async def execute(self, key: str) -> Dict[str, Any]:
        value = await self.store.get(key)
        return {"key": key, "value": value, "found": value is not None}


class PostgresQueryTool(PostgresTool):
    """Unrestricted SQL passthrough. Not sandboxed."""

    @property
    def name(self) -> str:
        return "pg_query"

    @property
    def description(self) -> str:
        return "Execute SQL query on PostgreSQL"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="query",
                type="string",
                description="SQL query ($1, $2, ... placeholders)",
                required=True,
                min_length=1
            ),
            ToolParameter(
                name="params",
                type="array",
                description="Query parameters",
                required=False
            )
        ]

    async def execute(self, query: str, params: Optional[List[Any]] = None) -> Dict[str, Any]:
        return await self.store.raw_query(query, params)


def postgres_tools(store: PostgresStore) -> List[MCPTool]:
    """Networked-backend tools in manifest order."""
    return [
        PostgresSetTool(store),
        PostgresGetTool(store),
        PostgresQueryTool(store),
    ]
