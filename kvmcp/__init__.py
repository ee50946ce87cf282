"""
kvmcp: key-value store exposed as MCP tools over HTTP.

SQLite is always available; PostgreSQL is used when configured.
"""

__version__ = "1.0.0"

from .base import MCPTool, MCPToolError  # noqa: E402
from .dispatcher import Dispatcher  # noqa: E402
from .registry import ToolRegistry  # noqa: E402

__all__ = ["Dispatcher", "MCPTool", "MCPToolError", "ToolRegistry", "__version__"]
