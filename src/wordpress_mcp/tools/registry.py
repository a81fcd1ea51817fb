from __future__ import annotations as _annotations

from collections.abc import Callable
from typing import Any

from pydantic import BaseModel

from wordpress_mcp.tools.base import Tool, ToolHandler
from wordpress_mcp.utilities.logging import get_logger

logger = get_logger(__name__)


class ToolRegistry:
    """Maps tool names to their contracts.

    Populated once at startup and read-only afterwards, so it carries no lock.
    """

    def __init__(self, *, tools: list[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.add_tool(tool)

    def add_tool(self, tool: Tool) -> Tool:
        """Add a tool. The last registration for a name wins."""
        if tool.name in self._tools:
            logger.debug("Replacing tool registration: %s", tool.name)
        self._tools[tool.name] = tool
        return tool

    def register(
        self,
        name: str,
        description: str,
        schema: type[BaseModel] | dict[str, Any],
        handler: ToolHandler,
    ) -> Tool:
        """Register a handler under a name.

        ``schema`` is either a pydantic model (the handler then receives a
        model instance) or a plain JSON schema dict (the handler receives the
        validated argument dict).
        """
        if isinstance(schema, dict):
            tool = Tool(name=name, description=description, input_schema=schema, handler=handler)
        else:
            tool = Tool.from_model(name, description, schema, handler)
        return self.add_tool(tool)

    def tool(
        self,
        name: str,
        description: str,
        schema: type[BaseModel] | dict[str, Any],
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of register()."""

        def decorator(fn: ToolHandler) -> ToolHandler:
            self.register(name, description, schema, fn)
            return fn

        return decorator

    def get_tool(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[Tool]:
        """List all registered tools in registration order."""
        return list(self._tools.values())

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
