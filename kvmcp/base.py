"""
MCP Tool Base Classes

Provides the parameter model, error taxonomy, validation and the uniform
success/failure envelopes shared by every tool.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

BACKEND_SQLITE = "sqlite"
BACKEND_POSTGRES = "postgresql"
BACKEND_COMPOSITE = "all"


@dataclass
class ToolParameter:
    """Definition of a tool parameter."""
    name: str
    type: str
    description: str
    required: bool = True
    default: Any = None
    min_length: Optional[int] = None

    def to_schema(self) -> Dict[str, Any]:
        prop: Dict[str, Any] = {
            "type": self.type,
            "description": self.description,
        }
        if self.min_length is not None:
            prop["minLength"] = self.min_length
        if self.default is not None:
            prop["default"] = self.default
        return prop


@dataclass
class ToolDefinition:
    """Complete definition of an MCP tool."""
    name: str
    description: str
    parameters: List[ToolParameter] = field(default_factory=list)

    def input_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {
            "type": "object",
            "properties": {p.name: p.to_schema() for p in self.parameters},
        }
        required = [p.name for p in self.parameters if p.required]
        if required:
            schema["required"] = required
        return schema

    def to_descriptor(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema(),
        }


class MCPToolError(Exception):
    """Base exception for MCP tool errors."""
    error_type = "error"

    def __init__(self, message: str, tool_name: str = None, details: Dict = None):
        self.message = message
        self.tool_name = tool_name
        self.details = details or {}
        super().__init__(self.message)


class MissingTool(MCPToolError):
    """Raised when a call names no tool at all."""
    error_type = "missing_tool"


class UnknownTool(MCPToolError):
    """Raised when the tool name is not in the registry."""
    error_type = "not_found"


class InvalidParameters(MCPToolError):
    """Raised when tool input validation fails."""
    error_type = "validation"


class ExecutionError(MCPToolError):
    """Raised when tool execution fails."""
    error_type = "execution"


class BackendNotConfigured(ExecutionError):
    """The networked backend was requested but never set up."""
    error_type = "not_configured"


class BackendIO(ExecutionError):
    """The storage engine reported a fault (disk, constraint, connectivity)."""
    error_type = "backend_io"


class QueryError(ExecutionError):
    """The server rejected a raw query."""
    error_type = "query"


# Error kinds the HTTP layer reports as client errors.
CLIENT_ERROR_TYPES = frozenset({
    MissingTool.error_type,
    UnknownTool.error_type,
    InvalidParameters.error_type,
})


def success_envelope(tool_name: str, backend: str, result: Dict[str, Any]) -> Dict[str, Any]:
    envelope = {"success": True, "tool": tool_name, "database": backend}
    envelope.update(result)
    return envelope


def failure_envelope(tool_name: Optional[str], error: Exception) -> Dict[str, Any]:
    if isinstance(error, MCPToolError):
        message, error_type = error.message, error.error_type
    else:
        message, error_type = str(error) or type(error).__name__, "unexpected"
    return {
        "success": False,
        "error": message,
        "tool": tool_name,
        "error_type": error_type,
    }


_SCALAR_TYPES = (str, int, float, bool)


class MCPTool(ABC):
    """
    Abstract base class for MCP tools.

    All tools must inherit from this class and implement:
    - name: Tool identifier
    - description: What the tool does
    - parameters: List of ToolParameter definitions
    - execute(): The actual tool logic, returning a dict merged into the
      success envelope
    """

    backend = BACKEND_SQLITE

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for the tool."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        pass

    @property
    def parameters(self) -> List[ToolParameter]:
        """List of parameters the tool accepts."""
        return []

    def validate(self, parameters: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate input parameters against the declared parameter list.
        Returns validated/normalized parameters; unknown names are dropped.
        Raises InvalidParameters if validation fails.
        """
        validated = {}

        for param in self.parameters:
            value = parameters.get(param.name)

            if value is None:
                if param.required:
                    raise InvalidParameters(
                        f"Missing required parameter: {param.name}",
                        tool_name=self.name
                    )
                validated[param.name] = param.default
                continue

            if param.type == "string":
                if isinstance(value, bool):
                    value = str(value).lower()
                elif isinstance(value, _SCALAR_TYPES):
                    value = str(value)
                else:
                    raise InvalidParameters(
                        f"Parameter '{param.name}' must be a string",
                        tool_name=self.name
                    )
                if param.min_length is not None and len(value) < param.min_length:
                    raise InvalidParameters(
                        f"Parameter '{param.name}' must not be empty",
                        tool_name=self.name
                    )
            elif param.type == "array" and not isinstance(value, list):
                raise InvalidParameters(
                    f"Parameter '{param.name}' must be an array",
                    tool_name=self.name
                )

            validated[param.name] = value

        return validated

    @abstractmethod
    async def execute(self, **kwargs) -> Dict[str, Any]:
        """
        Execute the tool with validated parameters.
        """
        pass

    async def run(self, parameters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Public entry point: validate and execute.
        Returns the standardized envelope; never raises.
        """
        try:
            validated = self.validate(parameters or {})
            result = await self.execute(**validated)
            return success_envelope(self.name, self.backend, result)
        except InvalidParameters as e:
            logger.warning(f"Validation error in {self.name}: {e.message}")
            return failure_envelope(self.name, e)
        except ExecutionError as e:
            logger.error(f"Execution error in {self.name}: {e.message}")
            return failure_envelope(self.name, e)
        except Exception as e:
            logger.exception(f"Unexpected error in {self.name}")
            return failure_envelope(self.name, e)

    def to_definition(self) -> ToolDefinition:
        """Convert tool to ToolDefinition for registry."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.parameters
        )
