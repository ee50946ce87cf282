"""
MCP Tool Registry

Single source of truth for tool discovery and lookup. Built once at startup
from the stores the application owns and never mutated afterwards.
"""

import copy
import logging
from typing import Dict, Iterable, List, Optional

from .base import BACKEND_POSTGRES, MCPTool
from .health import HealthAggregator
from .storage.postgres_store import PostgresStore
from .storage.sqlite_store import SQLiteStore
from .tools import DatabaseStatusTool, postgres_tools, sqlite_tools

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Maps tool names to bound tools.

    `describe()` lists what a client may discover; `resolve()` also finds
    tools whose backend is not configured, so calling them reports the
    missing backend instead of an unknown tool.
    """

    def __init__(self, tools: Iterable[MCPTool], networked_configured: bool = False):
        self._tools: Dict[str, MCPTool] = {}
        for tool in tools:
            if tool.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self._tools[tool.name] = tool
        self._networked_configured = networked_configured
        self._descriptors = [
            tool.to_definition().to_descriptor()
            for tool in self._tools.values()
            if self._is_listed(tool)
        ]

    @classmethod
    def build(
        cls,
        sqlite_store: SQLiteStore,
        pg_store: PostgresStore,
        health: HealthAggregator,
    ) -> "ToolRegistry":
        # Networked tools first: clients rely on this manifest order.
        tools: List[MCPTool] = []
        tools.extend(postgres_tools(pg_store))
        tools.extend(sqlite_tools(sqlite_store))
        tools.append(DatabaseStatusTool(health))

        registry = cls(tools, networked_configured=pg_store.configured)
        logger.info(
            f"Tool registry built: {len(registry.describe())} listed, "
            f"{len(registry.list_tool_names())} resolvable"
        )
        return registry

    def _is_listed(self, tool: MCPTool) -> bool:
        return tool.backend != BACKEND_POSTGRES or self._networked_configured

    def describe(self) -> List[Dict]:
        """Tool descriptors in manifest order."""
        return copy.deepcopy(self._descriptors)

    def resolve(self, name: str) -> Optional[MCPTool]:
        """
        Get a specific tool by name.
        Returns None if tool not found.
        """
        return self._tools.get(name)

    def list_tool_names(self) -> List[str]:
        return list(self._tools.keys())
