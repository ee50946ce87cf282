"""
Tool implementations, one module per backend.
"""

from .postgres import postgres_tools
from .sqlite import sqlite_tools
from .status import DatabaseStatusTool

__all__ = ["postgres_tools", "sqlite_tools", "DatabaseStatusTool"]
