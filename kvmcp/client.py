"""
HTTP client for a running kvmcp server.

Thin wrapper over the discovery, dispatch and health endpoints. Tool calls
always return a dispatch envelope, including when the server cannot be
reached.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

MCP_SERVER_URL = os.getenv("MCP_SERVER_URL", "http://localhost:10000")


class MCPClient:

    def __init__(self, base_url: Optional[str] = None, timeout: float = 30):
        self.base_url = (base_url or MCP_SERVER_URL).rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    def check_server(self) -> bool:
        """Check if the MCP server answers its health endpoint."""
        try:
            response = self.session.get(f"{self.base_url}/health", timeout=5)
            return response.status_code == 200
        except requests.exceptions.RequestException:
            return False

    def health(self) -> Dict[str, Any]:
        response = self.session.get(f"{self.base_url}/health", timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def databases(self) -> Dict[str, Any]:
        response = self.session.get(f"{self.base_url}/databases", timeout=self.timeout)
        response.raise_for_status()
        return response.json()

    def list_tools(self) -> List[Dict[str, Any]]:
        """Fetch the tool manifest."""
        response = self.session.get(f"{self.base_url}/.well-known/mcp", timeout=self.timeout)
        response.raise_for_status()
        tools = response.json().get("tools", [])
        logger.info(f"Loaded {len(tools)} tools from MCP server")
        return tools

    def call(self, tool: str, **parameters) -> Dict[str, Any]:
        """Call a tool; failures come back as envelopes, not exceptions."""
        try:
            response = self.session.post(
                f"{self.base_url}/mcp/call",
                json={"tool": tool, "parameters": parameters},
                timeout=self.timeout
            )
        except requests.exceptions.ConnectionError:
            return {
                "success": False,
                "error": f"Cannot connect to MCP server at {self.base_url}",
                "tool": tool,
                "error_type": "connection"
            }
        except requests.exceptions.Timeout:
            return {
                "success": False,
                "error": "Request timed out",
                "tool": tool,
                "error_type": "connection"
            }

        try:
            return response.json()
        except ValueError:
            return {
                "success": False,
                "error": f"HTTP {response.status_code}: {response.text}",
                "tool": tool,
                "error_type": "http"
            }

    def close(self) -> None:
        self.session.close()
