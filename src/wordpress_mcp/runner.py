"""ServerRunner, RunningServer and Connection.

The runner bridges the ToolServer (pure dispatch) with transports.
It manages lifecycle (lifespan), handles the init handshake, and dispatches
messages arriving on a transport to the server.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Any

import anyio
from anyio.abc import TaskGroup
from pydantic import ValidationError as PydanticValidationError

from wordpress_mcp import types
from wordpress_mcp.context import RequestContext, ResponseSink
from wordpress_mcp.server import ToolServer
from wordpress_mcp.session import SessionInfo
from wordpress_mcp.transport.base import Transport
from wordpress_mcp.transport.sink import NoOpSink, TransportSink

logger = logging.getLogger(__name__)

Lifespan = Callable[[ToolServer], AbstractAsyncContextManager[Any]]


@asynccontextmanager
async def _default_lifespan(server: ToolServer) -> AsyncIterator[dict[str, Any]]:
    yield {}


class ServerRunner:
    """Manages lifecycle and produces a RunningServer.

    Usage:
        runner = ServerRunner(server, lifespan=my_lifespan)
        async with runner.run() as running:
            await running.serve(transport)
    """

    def __init__(self, server: ToolServer, *, lifespan: Lifespan | None = None) -> None:
        self.server = server
        self._lifespan = lifespan or _default_lifespan

    @asynccontextmanager
    async def run(self) -> AsyncIterator[RunningServer]:
        """Enter server lifespan once, yield a running server."""
        async with self._lifespan(self.server) as server_state:
            yield RunningServer(self.server, server_state)


class RunningServer:
    """A server with active lifespan, ready to handle messages.

    Handles the init handshake internally: the ToolServer never sees
    'initialize' as a request.
    """

    def __init__(self, server: ToolServer, server_state: Any) -> None:
        self._server = server
        self._server_state = server_state

    async def serve(self, transport: Transport) -> None:
        """Route frames from one transport to the server until the peer is done.

        Requests run concurrently; returns once the transport can deliver no
        more frames and every in-flight request on it has finished.
        """
        async with anyio.create_task_group() as tg:
            connection = Connection(self, transport, tg)
            transport.on_message(connection.on_message)
            await transport.wait_closed()
        logger.debug("Connection finished")

    async def handle_message(
        self,
        sink: ResponseSink,
        message: types.JSONRPCMessage,
        *,
        session: SessionInfo | None = None,
    ) -> SessionInfo | None:
        """Dispatch a single message. Returns SessionInfo if this was an init handshake.

        For init requests: handles the handshake, responds via sink, returns new SessionInfo.
        For regular requests: dispatches to server, responds via sink, returns None.
        For notifications: dispatches to server, returns None.
        """
        if isinstance(message, types.JSONRPCRequest):
            if message.method == "initialize":
                return await self._handle_initialize(sink, message)

            ctx = RequestContext(
                server_state=self._server_state,
                session=session,
                request_id=message.id,
                _sink=sink,
            )
            response = await self._server.dispatch_request(ctx, message)
            await sink.send_result(response)
            return None

        if isinstance(message, types.JSONRPCNotification):
            if message.method == "notifications/initialized":
                return None
            ctx = RequestContext(
                server_state=self._server_state,
                session=session,
                request_id="notification",
                _sink=sink,
            )
            await self._server.dispatch_notification(ctx, message)
            return None

        # The server never issues requests of its own, so responses from the
        # client have nothing to correlate with.
        logger.debug("Ignoring response frame from client: %s", message)
        return None

    async def _handle_initialize(self, sink: ResponseSink, request: types.JSONRPCRequest) -> SessionInfo | None:
        try:
            params = types.InitializeRequestParams.model_validate(request.params or {})
        except PydanticValidationError as e:
            await sink.send_result(
                types.JSONRPCErrorResponse(
                    id=request.id,
                    error=types.ErrorData(code=types.INVALID_PARAMS, message=f"Invalid initialize params: {e}"),
                )
            )
            return None

        if params.protocol_version in types.SUPPORTED_PROTOCOL_VERSIONS:
            protocol_version = params.protocol_version
        else:
            protocol_version = types.LATEST_PROTOCOL_VERSION

        result = types.InitializeResult(
            protocol_version=protocol_version,
            capabilities=self._server.get_capabilities(),
            server_info=types.Implementation(name=self._server.name, version=self._server.version),
            instructions=self._server.instructions,
        )
        await sink.send_result(
            types.JSONRPCResultResponse(
                id=request.id,
                result=result.model_dump(by_alias=True, mode="json", exclude_none=True),
            )
        )
        logger.info("Initialized session for %s %s", params.client_info.name, params.client_info.version)

        return SessionInfo(
            client_info=params.client_info,
            client_capabilities=params.capabilities,
            protocol_version=protocol_version,
        )

    @property
    def capabilities(self) -> types.ServerCapabilities:
        return self._server.get_capabilities()

    @property
    def server_state(self) -> Any:
        return self._server_state


class Connection:
    """Per-transport state: the negotiated session and the request task group."""

    def __init__(self, running: RunningServer, transport: Transport, tg: TaskGroup) -> None:
        self._running = running
        self._transport = transport
        self._tg = tg
        self.session: SessionInfo | None = None

    async def on_message(self, message: types.JSONRPCMessage) -> None:
        if isinstance(message, types.JSONRPCRequest):
            # Responses may complete out of order; the client correlates by id.
            self._tg.start_soon(self._run_request, message)
        else:
            await self._running.handle_message(NoOpSink(), message, session=self.session)

    async def _run_request(self, message: types.JSONRPCRequest) -> None:
        sink = TransportSink(self._transport)
        try:
            result = await self._running.handle_message(sink, message, session=self.session)
        except Exception:
            logger.exception("Unhandled error while processing %s", message.method)
            await sink.send_result(
                types.JSONRPCErrorResponse(
                    id=message.id,
                    error=types.ErrorData(code=types.INTERNAL_ERROR, message="Internal error"),
                )
            )
            return
        if isinstance(result, SessionInfo):
            self.session = result
