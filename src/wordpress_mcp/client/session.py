"""Client side of a tool server connection.

`ClientSession` turns the pair of streams produced by a client transport into
request/response calls, correlating responses by request id so that several
requests may be outstanding at once.
"""

from __future__ import annotations

import itertools
import logging
from contextlib import suppress
from types import TracebackType
from typing import Any, TypeVar

import anyio
from anyio.abc import TaskGroup
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import BaseModel

from wordpress_mcp import types
from wordpress_mcp.exceptions import ProtocolError, TransportClosedError

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=BaseModel)

CLIENT_INFO = types.Implementation(name="wordpress-mcp-client", version="1.0.0")


class ClientSession:
    """Request/response session over a client transport's streams.

    Usage:
        async with sse_client(url) as (read_stream, write_stream):
            async with ClientSession(read_stream, write_stream) as session:
                await session.initialize()
                tools = await session.list_tools()
    """

    def __init__(
        self,
        read_stream: MemoryObjectReceiveStream[types.JSONRPCMessage | Exception],
        write_stream: MemoryObjectSendStream[types.JSONRPCMessage],
        *,
        client_info: types.Implementation = CLIENT_INFO,
    ) -> None:
        self._read_stream = read_stream
        self._write_stream = write_stream
        self._client_info = client_info
        self._request_ids = itertools.count()
        self._pending: dict[types.RequestId, MemoryObjectSendStream[types.JSONRPCResponse | Exception]] = {}
        self._task_group: TaskGroup | None = None
        self._closed = False
        self.server_info: types.InitializeResult | None = None

    async def __aenter__(self) -> ClientSession:
        self._task_group = anyio.create_task_group()
        await self._task_group.__aenter__()
        self._task_group.start_soon(self._receive_loop)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool | None:
        assert self._task_group is not None
        self._task_group.cancel_scope.cancel()
        return await self._task_group.__aexit__(exc_type, exc_val, exc_tb)

    async def initialize(self) -> types.InitializeResult:
        params = types.InitializeRequestParams(
            protocol_version=types.LATEST_PROTOCOL_VERSION,
            capabilities=types.ClientCapabilities(),
            client_info=self._client_info,
        )
        result = await self.send_request("initialize", params, types.InitializeResult)
        if result.protocol_version not in types.SUPPORTED_PROTOCOL_VERSIONS:
            raise RuntimeError(f"Unsupported protocol version from the server: {result.protocol_version}")
        await self.send_notification("notifications/initialized")
        self.server_info = result
        return result

    async def ping(self) -> types.EmptyResult:
        return await self.send_request("ping", None, types.EmptyResult)

    async def list_tools(self) -> types.ListToolsResult:
        return await self.send_request("tools/list", None, types.ListToolsResult)

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> types.CallToolResult:
        params = types.CallToolRequestParams(name=name, arguments=arguments)
        return await self.send_request("tools/call", params, types.CallToolResult)

    async def send_request(
        self,
        method: str,
        params: BaseModel | dict[str, Any] | None,
        result_type: type[ResultT],
    ) -> ResultT:
        """Send a request and wait for its response.

        Raises:
            ProtocolError: the server answered with a JSON-RPC error
            TransportClosedError: the connection ended before a response arrived
        """
        if self._closed:
            raise TransportClosedError(f"Connection closed, cannot send {method}")
        request_id = next(self._request_ids)
        response_writer, response_reader = anyio.create_memory_object_stream[types.JSONRPCResponse | Exception](1)
        self._pending[request_id] = response_writer
        try:
            await self._write_stream.send(
                types.JSONRPCRequest(id=request_id, method=method, params=_dump_params(params))
            )
            async with response_reader:
                try:
                    response = await response_reader.receive()
                except anyio.EndOfStream:
                    raise TransportClosedError(f"Connection closed while waiting for {method}") from None
        finally:
            self._pending.pop(request_id, None)
            await response_writer.aclose()

        if isinstance(response, Exception):
            raise TransportClosedError(f"Connection failed while waiting for {method}: {response}") from response
        if isinstance(response, types.JSONRPCErrorResponse):
            raise ProtocolError(response.error.message, code=response.error.code, data=response.error.data)
        return result_type.model_validate(response.result)

    async def send_notification(self, method: str, params: BaseModel | dict[str, Any] | None = None) -> None:
        await self._write_stream.send(types.JSONRPCNotification(method=method, params=_dump_params(params)))

    async def _receive_loop(self) -> None:
        async with self._read_stream:
            async for message in self._read_stream:
                if isinstance(message, Exception):
                    # A broken connection fails every request still waiting.
                    for writer in list(self._pending.values()):
                        _offer(writer, message)
                    continue
                if isinstance(message, types.JSONRPCResultResponse | types.JSONRPCErrorResponse):
                    writer = self._pending.get(message.id) if message.id is not None else None
                    if writer is None:
                        logger.warning("Received response for unknown request id %s", message.id)
                        continue
                    _offer(writer, message)
                else:
                    logger.debug("Ignoring %s from server", type(message).__name__)

        self._closed = True
        for writer in list(self._pending.values()):
            await writer.aclose()


def _offer(
    writer: MemoryObjectSendStream[types.JSONRPCResponse | Exception], item: types.JSONRPCResponse | Exception
) -> None:
    # The waiter may already hold its answer or have given up on it.
    with suppress(anyio.WouldBlock, anyio.BrokenResourceError, anyio.ClosedResourceError):
        writer.send_nowait(item)


def _dump_params(params: BaseModel | dict[str, Any] | None) -> dict[str, Any] | None:
    if isinstance(params, BaseModel):
        return params.model_dump(by_alias=True, mode="json", exclude_none=True)
    return params
