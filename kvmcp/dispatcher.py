"""
Dispatcher

The single entry point for tool calls. Every outcome, including backend
faults, comes back as a dispatch envelope; nothing raised by a tool escapes.
"""

import logging
import time
from typing import Any, Dict, Optional

from .base import InvalidParameters, MissingTool, UnknownTool, failure_envelope
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


class Dispatcher:

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    async def invoke(self, tool_name: Optional[str], parameters: Optional[Dict[str, Any]] = None) -> Dict:
        """
        Execute a tool by name with given arguments.
        Returns standardized response format.
        """
        if not tool_name:
            return failure_envelope(None, MissingTool("Missing tool parameter"))

        tool = self.registry.resolve(tool_name)
        if tool is None:
            logger.warning(f"Unknown tool requested: {tool_name}")
            return failure_envelope(tool_name, UnknownTool(f"Unknown tool: {tool_name}", tool_name=tool_name))

        if parameters is None:
            parameters = {}
        elif not isinstance(parameters, dict):
            return failure_envelope(
                tool_name,
                InvalidParameters("Parameters must be an object", tool_name=tool_name)
            )

        started = time.perf_counter()
        try:
            result = await tool.run(parameters)
        except Exception as e:
            logger.exception(f"Tool {tool_name} raised past its envelope")
            result = failure_envelope(tool_name, e)

        logger.debug(
            f"{tool_name} -> {'ok' if result['success'] else result.get('error_type')} "
            f"in {(time.perf_counter() - started) * 1000:.1f} ms"
        )
        return result
