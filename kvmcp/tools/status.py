"""
Composite status tool, present regardless of which backends are configured.
"""

from typing import Any, Dict

from ..base import BACKEND_COMPOSITE, MCPTool
from ..health import HealthAggregator


class DatabaseStatusTool(MCPTool):

    backend = BACKEND_COMPOSITE

    def __init__(self, health: HealthAggregator):
        self.health = health

    @property
    def name(self) -> str:
        return "db_status"

    @property
    def description(self) -> str:
        return "Get database connection status"

    async def execute(self) -> Dict[str, Any]:
        return {"databases": await self.health.databases()}
