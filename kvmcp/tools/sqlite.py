"""
SQLite Tools

Key-value tools backed by the embedded store.
"""

from typing import Any, Dict, List, Optional

from ..base import BACKEND_SQLITE, MCPTool, ToolParameter
from ..storage.sqlite_store import SQLiteStore


def key_parameter(description: str) -> ToolParameter:
    return ToolParameter(
        name="key",
        type="string",
        description=description,
        required=True,
        min_length=1
    )


class SQLiteTool(MCPTool):
    """Common base: a tool bound to one SQLiteStore."""

    backend = BACKEND_SQLITE

    def __init__(self, store: SQLiteStore):
        self.store = store


class SQLiteGetTool(SQLiteTool):

    @property
    def name(self) -> str:
        return "sqlite_get"

    @property
    def description(self) -> str:
        return "Retrieve data from SQLite"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [key_parameter("Data key")]

    async def execute(self, key: str) -> Dict[str, Any]:
        value = await self.store.aget(key)
        return {"key": key, "value": value, "found": value is not None}


class SQLiteSetTool(SQLiteTool):

    @property
    def name(self) -> str:
        return "sqlite_set"

    @property
    def description(self) -> str:
        return "Store data in SQLite"

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
        record = await self.store.aset(key, value)
        return {
            "message": "Data stored in SQLite",
            "key": record.key,
            "created_at": record.created_at.isoformat(),
            "updated_at": record.updated_at.isoformat(),
        }


class SQLiteDeleteTool(SQLiteTool):

    @property
    def name(self) -> str:
        return "sqlite_delete"

    @property
    def description(self) -> str:
        return "Delete a key from SQLite"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [key_parameter("Key to delete")]

    async def execute(self, key: str) -> Dict[str, Any]:
        deleted = await self.store.adelete(key)
        return {"key": key, "deleted": deleted}


class SQLiteListTool(SQLiteTool):

    @property
    def name(self) -> str:
        return "sqlite_list"

    @property
    def description(self) -> str:
        return "List SQLite keys in ascending order"

    @property
    def parameters(self) -> List[ToolParameter]:
        return [
            ToolParameter(
                name="pattern",
                type="string",
                description="Optional substring filter (case-sensitive)",
                required=False
            )
        ]

    async def execute(self, pattern: Optional[str] = None) -> Dict[str, Any]:
        keys = await self.store.alist(pattern)
        return {"keys": keys, "count": len(keys)}


def sqlite_tools(store: SQLiteStore) -> List[MCPTool]:
    """Embedded-backend tools in manifest order."""
    return [
        SQLiteGetTool(store),
        SQLiteSetTool(store),
        SQLiteDeleteTool(store),
        SQLiteListTool(store),
    ]
