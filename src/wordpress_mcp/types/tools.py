"""Types for tool listing and invocation."""

from typing import Annotated, Any

from pydantic import Field

from wordpress_mcp.types.base import MCPModel, Meta, RequestParams, Result
from wordpress_mcp.types.content import ContentBlock, TextContent


class Tool(MCPModel):
    """Definition of a tool as advertised by tools/list."""

    name: str
    description: str | None = None
    input_schema: Annotated[dict[str, Any], Field(alias="inputSchema")]


class ListToolsResult(Result[Meta]):
    """Server's response to a tools/list request."""

    tools: list[Tool]
    next_cursor: Annotated[str | None, Field(alias="nextCursor")] = None


class CallToolRequestParams(RequestParams):
    """Parameters for tools/call request."""

    name: str
    arguments: dict[str, Any] | None = None


class CallToolResult(Result[Meta]):
    """Server's response to a tools/call request.

    Successful calls and failed calls share this shape; failures set is_error.
    """

    content: list[ContentBlock]
    structured_content: Annotated[dict[str, Any] | None, Field(alias="structuredContent")] = None
    is_error: Annotated[bool, Field(alias="isError")] = False

    @classmethod
    def error(cls, message: str) -> "CallToolResult":
        return cls(content=[TextContent(text=message)], is_error=True)

    @classmethod
    def text(cls, *texts: str) -> "CallToolResult":
        return cls(content=[TextContent(text=text) for text in texts])
