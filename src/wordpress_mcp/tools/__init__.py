from .base import Tool, ToolHandler
from .registry import ToolRegistry

__all__ = ["Tool", "ToolHandler", "ToolRegistry"]
