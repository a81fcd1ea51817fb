"""ToolServer - method table and dispatch.

No I/O, no lifecycle, no transport knowledge. Just dispatch: a decoded
request goes in, exactly one response frame comes out.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import jsonschema
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from wordpress_mcp import types
from wordpress_mcp.context import RequestContext
from wordpress_mcp.exceptions import InvalidArgumentsError, ProtocolError, ToolError
from wordpress_mcp.tools import Tool, ToolRegistry
from wordpress_mcp.utilities.logging import redact_sensitive_data

logger = logging.getLogger(__name__)

RequestHandler = Callable[[RequestContext, types.JSONRPCRequest], Awaitable[Any]]
NotificationHandler = Callable[[RequestContext, types.JSONRPCNotification], Awaitable[None]]

_content_adapter: TypeAdapter[list[types.ContentBlock]] = TypeAdapter(list[types.ContentBlock])


class ToolServer:
    """Handler registry + dispatch. No run loop, no transport, no lifecycle.

    Built-in methods are ``ping``, ``tools/list`` and ``tools/call``; the
    ``initialize`` handshake is protocol machinery handled by the runner.

    Usage:
        registry = ToolRegistry()
        register_wordpress_tools(registry)
        server = ToolServer(name="wordpress-mcp-server", version="1.0.0", tools=registry)

        @server.request_handler("custom/method")
        async def custom(ctx: RequestContext, request: JSONRPCRequest):
            return {"ok": True}
    """

    def __init__(
        self,
        *,
        name: str,
        version: str,
        tools: ToolRegistry | None = None,
        instructions: str | None = None,
    ) -> None:
        self.name = name
        self.version = version
        self.instructions = instructions
        self.tools = tools if tools is not None else ToolRegistry()
        self._request_handlers: dict[str, RequestHandler] = {}
        self._notification_handlers: dict[str, NotificationHandler] = {}

        self._request_handlers["ping"] = self._ping
        self._request_handlers["tools/list"] = self._list_tools
        self._request_handlers["tools/call"] = self._call_tool
        self._notification_handlers["notifications/cancelled"] = self._cancelled

    def request_handler(self, method: str) -> Callable[[RequestHandler], RequestHandler]:
        """Decorator to register a request handler for a given method."""

        def decorator(fn: RequestHandler) -> RequestHandler:
            self._request_handlers[method] = fn
            return fn

        return decorator

    def notification_handler(self, method: str) -> Callable[[NotificationHandler], NotificationHandler]:
        """Decorator to register a notification handler for a given method."""

        def decorator(fn: NotificationHandler) -> NotificationHandler:
            self._notification_handlers[method] = fn
            return fn

        return decorator

    async def dispatch_request(self, ctx: RequestContext, request: types.JSONRPCRequest) -> types.JSONRPCResponse:
        """Dispatch a request to the appropriate handler.

        Never raises for a handler failure; every outcome becomes a response
        frame carrying the request's id.
        """
        logger.info("Processing request %s (id=%s)", request.method, request.id)
        handler = self._request_handlers.get(request.method)
        if not handler:
            return types.JSONRPCErrorResponse(
                id=request.id,
                error=types.ErrorData(code=types.METHOD_NOT_FOUND, message=f"Method not found: {request.method}"),
            )
        try:
            result = await handler(ctx, request)
        except ProtocolError as e:
            return types.JSONRPCErrorResponse(id=request.id, error=e.error)
        except Exception:
            logger.exception("Handler error for %s", request.method)
            return types.JSONRPCErrorResponse(
                id=request.id,
                error=types.ErrorData(code=types.INTERNAL_ERROR, message="Internal error"),
            )

        # Handler can return a BaseModel (serialized) or a raw dict
        if isinstance(result, BaseModel):
            result_data = result.model_dump(by_alias=True, mode="json", exclude_none=True)
        elif isinstance(result, dict):
            result_data = result
        else:
            result_data = {}
        return types.JSONRPCResultResponse(id=request.id, result=result_data)

    async def dispatch_notification(self, ctx: RequestContext, notification: types.JSONRPCNotification) -> None:
        """Dispatch a notification to the appropriate handler."""
        handler = self._notification_handlers.get(notification.method)
        if handler:
            try:
                await handler(ctx, notification)
            except Exception:
                logger.exception("Notification handler error for %s", notification.method)
        else:
            logger.debug("Ignoring notification %s", notification.method)

    def get_capabilities(self) -> types.ServerCapabilities:
        """Derive capabilities from registered handlers."""
        caps = types.ServerCapabilities()
        if "tools/list" in self._request_handlers or "tools/call" in self._request_handlers:
            caps.tools = {"listChanged": False}
        return caps

    async def call_tool(self, name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
        """Resolve, validate and run a tool, always producing a content envelope."""
        tool = self.tools.get_tool(name)
        if tool is None:
            logger.warning("Call to unknown tool %s", name)
            return types.CallToolResult.error(f"Unknown tool: {name}")

        try:
            validated = tool.validate_arguments(arguments or {})
        except InvalidArgumentsError as e:
            logger.info("Rejected arguments for %s: %s", name, e.detail)
            return types.CallToolResult.error(str(e))
        except jsonschema.SchemaError as e:
            logger.error("Tool %s has an invalid input schema: %s", name, e.message)
            return types.CallToolResult.error(f"Invalid input schema for tool {name}: {e.message}")

        logger.debug("Calling tool %s with %s", name, redact_sensitive_data(arguments))
        try:
            output = await tool.run(validated)
        except ToolError as e:
            logger.exception("Tool %s failed", name)
            return types.CallToolResult.error(str(e))

        return _to_call_tool_result(tool, output)

    async def _ping(self, ctx: RequestContext, request: types.JSONRPCRequest) -> types.EmptyResult:
        return types.EmptyResult()

    async def _list_tools(self, ctx: RequestContext, request: types.JSONRPCRequest) -> types.ListToolsResult:
        return types.ListToolsResult(tools=[tool.to_listing() for tool in self.tools.list_tools()])

    async def _call_tool(self, ctx: RequestContext, request: types.JSONRPCRequest) -> types.CallToolResult:
        try:
            params = types.CallToolRequestParams.model_validate(request.params or {})
        except PydanticValidationError as e:
            raise ProtocolError(f"Invalid params for tools/call: {e}", code=types.INVALID_PARAMS) from e
        return await self.call_tool(params.name, params.arguments)

    async def _cancelled(self, ctx: RequestContext, notification: types.JSONRPCNotification) -> None:
        # In-flight handlers are not aborted; only closing the connection cancels.
        logger.info("Client cancelled request %s", (notification.params or {}).get("requestId"))


def _to_call_tool_result(tool: Tool, output: Any) -> types.CallToolResult:
    """Normalize whatever a handler returned into a CallToolResult."""
    if isinstance(output, types.CallToolResult):
        return output
    if isinstance(output, str):
        return types.CallToolResult.text(output)
    if isinstance(output, dict):
        return types.CallToolResult(
            content=[types.TextContent(text=json.dumps(output, indent=2))],
            structured_content=output,
        )
    if isinstance(output, Sequence):
        try:
            content = _content_adapter.validate_python(
                [types.TextContent(text=item) if isinstance(item, str) else item for item in output]
            )
        except PydanticValidationError:
            return types.CallToolResult.error(f"Unexpected return type from tool {tool.name}")
        return types.CallToolResult(content=content)
    return types.CallToolResult.error(f"Unexpected return type from tool {tool.name}: {type(output).__name__}")
