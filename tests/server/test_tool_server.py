"""Dispatch tests for ToolServer: every request gets exactly one response frame."""

from typing import Any

import pytest
from inline_snapshot import snapshot
from pydantic import BaseModel

from wordpress_mcp import types
from wordpress_mcp.context import RequestContext
from wordpress_mcp.exceptions import ProtocolError
from wordpress_mcp.server import ToolServer
from wordpress_mcp.tools import ToolRegistry
from wordpress_mcp.transport.sink import NoOpSink

pytestmark = pytest.mark.anyio


class GreetArguments(BaseModel):
    name: str


def _make_server(calls: list[Any]) -> ToolServer:
    registry = ToolRegistry()

    @registry.tool("greet", "Greets someone", GreetArguments)
    async def greet(args: GreetArguments) -> str:
        calls.append(args)
        return f"Hello, {args.name}!"

    @registry.tool("fail", "Always fails", {"type": "object"})
    async def fail(arguments: dict[str, Any]) -> str:
        raise RuntimeError("backend exploded")

    @registry.tool("stats", "Returns a dict", {"type": "object"})
    async def stats(arguments: dict[str, Any]) -> dict[str, Any]:
        return {"posts": 3}

    @registry.tool("blocks", "Returns several blocks", {"type": "object"})
    async def blocks(arguments: dict[str, Any]) -> list[Any]:
        return ["one", types.TextContent(text="two")]

    @registry.tool("odd", "Returns something unexpected", {"type": "object"})
    async def odd(arguments: dict[str, Any]) -> object:
        return 42

    return ToolServer(name="test-server", version="0.1.0", tools=registry)


def _ctx(request_id: types.RequestId = 1) -> RequestContext:
    return RequestContext(server_state={}, session=None, request_id=request_id, _sink=NoOpSink())


async def _request(server: ToolServer, method: str, params: dict[str, Any] | None = None, request_id: int = 1):
    request = types.JSONRPCRequest(id=request_id, method=method, params=params)
    return await server.dispatch_request(_ctx(request_id), request)


async def _call(server: ToolServer, name: str, arguments: Any = None) -> types.CallToolResult:
    params: dict[str, Any] = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    response = await _request(server, "tools/call", params)
    assert isinstance(response, types.JSONRPCResultResponse)
    return types.CallToolResult.model_validate(response.result)


def _text(result: types.CallToolResult) -> str:
    block = result.content[0]
    assert isinstance(block, types.TextContent)
    return block.text


async def test_ping():
    response = await _request(_make_server([]), "ping", request_id=9)

    assert response == types.JSONRPCResultResponse(id=9, result={})


async def test_list_tools_returns_registered_set():
    response = await _request(_make_server([]), "tools/list")

    assert isinstance(response, types.JSONRPCResultResponse)
    tools = response.result["tools"]
    assert [tool["name"] for tool in tools] == ["greet", "fail", "stats", "blocks", "odd"]
    assert tools[0]["description"] == "Greets someone"
    assert tools[0]["inputSchema"]["required"] == ["name"]


async def test_list_tools_is_idempotent():
    server = _make_server([])

    first = await _request(server, "tools/list")
    second = await _request(server, "tools/list", request_id=2)

    assert isinstance(first, types.JSONRPCResultResponse)
    assert isinstance(second, types.JSONRPCResultResponse)
    assert first.result == second.result


async def test_call_tool_success():
    calls: list[Any] = []
    result = await _call(_make_server(calls), "greet", {"name": "Ada"})

    assert result.is_error is False
    assert _text(result) == "Hello, Ada!"
    assert calls == [GreetArguments(name="Ada")]


async def test_unknown_tool_is_an_error_envelope():
    result = await _call(_make_server([]), "missing", {})

    assert result.is_error is True
    assert _text(result) == "Unknown tool: missing"


async def test_invalid_arguments_never_reach_the_handler():
    calls: list[Any] = []
    server = _make_server(calls)

    missing = await _call(server, "greet", {})
    wrong_type = await _call(server, "greet", {"name": ["not", "a", "string"]})

    assert missing.is_error is True
    assert _text(missing) == "Invalid arguments for tool greet: name: Field required"
    assert wrong_type.is_error is True
    assert _text(wrong_type).startswith("Invalid arguments for tool greet: name:")
    assert calls == []


async def test_handler_exception_becomes_error_envelope():
    response = await _request(_make_server([]), "tools/call", {"name": "fail", "arguments": {}})

    assert response == snapshot(
        types.JSONRPCResultResponse(
            id=1,
            result={
                "content": [{"type": "text", "text": "Error executing tool fail: backend exploded"}],
                "isError": True,
            },
        )
    )


async def test_dict_output_is_structured():
    result = await _call(_make_server([]), "stats", {})

    assert result.structured_content == {"posts": 3}
    assert _text(result) == '{\n  "posts": 3\n}'


async def test_sequence_output_becomes_content_blocks():
    result = await _call(_make_server([]), "blocks", {})

    assert [block.text for block in result.content] == ["one", "two"]  # type: ignore[union-attr]


async def test_unexpected_output_type():
    result = await _call(_make_server([]), "odd", {})

    assert result.is_error is True
    assert _text(result) == "Unexpected return type from tool odd: int"


async def test_unknown_method():
    response = await _request(_make_server([]), "resources/list", request_id=4)

    assert response == types.JSONRPCErrorResponse(
        id=4,
        error=types.ErrorData(code=types.METHOD_NOT_FOUND, message="Method not found: resources/list"),
    )


@pytest.mark.parametrize("params", [None, {}, {"name": 5}, {"name": "greet", "arguments": "nope"}])
async def test_malformed_call_params(params: dict[str, Any] | None):
    response = await _request(_make_server([]), "tools/call", params)

    assert isinstance(response, types.JSONRPCErrorResponse)
    assert response.error.code == types.INVALID_PARAMS
    assert response.error.message.startswith("Invalid params for tools/call")


async def test_custom_request_handler_and_protocol_error():
    server = _make_server([])

    @server.request_handler("custom/echo")
    async def custom_echo(ctx: RequestContext, request: types.JSONRPCRequest) -> dict[str, Any]:
        return {"echo": request.params}

    @server.request_handler("custom/refuse")
    async def custom_refuse(ctx: RequestContext, request: types.JSONRPCRequest) -> dict[str, Any]:
        raise ProtocolError("Refused", code=types.INVALID_REQUEST)

    echoed = await _request(server, "custom/echo", {"a": 1})
    refused = await _request(server, "custom/refuse")

    assert echoed == types.JSONRPCResultResponse(id=1, result={"echo": {"a": 1}})
    assert isinstance(refused, types.JSONRPCErrorResponse)
    assert refused.error.code == types.INVALID_REQUEST
    assert refused.error.message == "Refused"


async def test_crashing_request_handler_is_internal_error():
    server = _make_server([])

    @server.request_handler("custom/crash")
    async def crash(ctx: RequestContext, request: types.JSONRPCRequest) -> None:
        raise KeyError("oops")

    response = await _request(server, "custom/crash")

    assert response == types.JSONRPCErrorResponse(
        id=1, error=types.ErrorData(code=types.INTERNAL_ERROR, message="Internal error")
    )


async def test_notifications_never_raise():
    server = _make_server([])
    seen: list[str] = []

    @server.notification_handler("custom/note")
    async def note(ctx: RequestContext, notification: types.JSONRPCNotification) -> None:
        seen.append(notification.method)
        raise RuntimeError("ignored")

    await server.dispatch_notification(_ctx(), types.JSONRPCNotification(method="custom/note"))
    await server.dispatch_notification(_ctx(), types.JSONRPCNotification(method="unknown/note"))
    await server.dispatch_notification(
        _ctx(), types.JSONRPCNotification(method="notifications/cancelled", params={"requestId": 1})
    )

    assert seen == ["custom/note"]


def test_capabilities_advertise_tools():
    capabilities = _make_server([]).get_capabilities()

    assert capabilities.tools == {"listChanged": False}
    assert capabilities.prompts is None
