"""
SSE Server Transport Module

This module implements a Server-Sent Events (SSE) transport layer for the tool
server. Each client opens a long-lived GET stream; the first event tells it
where to POST its frames, including the session id that routes those POSTs
back to the right stream.

Example usage:
```
    sse = SseServerTransport("/message")

    async def handle_sse(request):
        async with sse.connect_sse(request.scope, request.receive, request._send) as session:
            await running.serve(session)

    async def handle_message(request):
        return await sse.handle_post_message(request)

    routes = [
        Route("/sse", endpoint=handle_sse, methods=["GET"]),
        Route("/message", endpoint=handle_message, methods=["POST"]),
    ]
```

The server→client buffer of a session is unbounded, so sending never blocks
the handler producing a response.
"""

from __future__ import annotations

import logging
import math
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlencode
from uuid import uuid4

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from pydantic import ValidationError as PydanticValidationError
from sse_starlette import EventSourceResponse
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import Receive, Scope, Send

from wordpress_mcp import types
from wordpress_mcp.exceptions import SessionNotFoundError, TransportClosedError
from wordpress_mcp.transport.base import MessageCallback
from wordpress_mcp.transport.registry import SessionRegistry

logger = logging.getLogger(__name__)

SESSION_ID_PARAM = "sessionId"


class SseSession:
    """One streaming session: the open event stream plus the POST entry point."""

    def __init__(self, session_id: str, writer: MemoryObjectSendStream[types.JSONRPCMessage]) -> None:
        self.session_id = session_id
        self._writer = writer
        self._callback: MessageCallback | None = None
        self._ready = anyio.Event()
        self._closed = anyio.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def on_message(self, callback: MessageCallback) -> None:
        self._callback = callback
        self._ready.set()

    async def send(self, message: types.JSONRPCMessage) -> None:
        if self.closed:
            raise TransportClosedError(f"Session {self.session_id} is closed")
        try:
            await self._writer.send(message)
        except (anyio.ClosedResourceError, anyio.BrokenResourceError) as e:
            await self.close()
            raise TransportClosedError(f"Session {self.session_id} is closed") from e

    async def deliver(self, message: types.JSONRPCMessage) -> None:
        """Hand a frame that arrived via POST to the message callback."""
        if self.closed:
            raise TransportClosedError(f"Session {self.session_id} is closed")
        # The endpoint event can reach the client before serve() has bound the session.
        await self._ready.wait()
        assert self._callback is not None
        await self._callback(message)

    async def close(self) -> None:
        if self.closed:
            return
        self._closed.set()
        await self._writer.aclose()

    async def wait_closed(self) -> None:
        await self._closed.wait()


class SseServerTransport:
    """
    SSE server transport. Provides two entry points:

    1. connect_sse() is an ASGI application which receives incoming GET
       requests, registers a new session and streams frames to the client.
    2. handle_post_message() receives incoming POST requests carrying frames
       for a previously-established session.
    """

    def __init__(self, endpoint: str, registry: SessionRegistry[SseSession] | None = None) -> None:
        """
        Creates a new SSE server transport, which will direct the client to POST
        messages to the relative path given.

        Args:
            endpoint: A relative path where messages should be POSTed
                      (e.g. "/message").
            registry: Session table shared with other components; a private one
                      is created when omitted.
        """
        self._endpoint = endpoint
        self.registry: SessionRegistry[SseSession] = registry if registry is not None else SessionRegistry()
        logger.debug("SseServerTransport initialized with endpoint: %s", endpoint)

    @asynccontextmanager
    async def connect_sse(self, scope: Scope, receive: Receive, send: Send) -> AsyncIterator[SseSession]:
        if scope["type"] != "http":
            logger.error("connect_sse received non-HTTP request")
            raise ValueError("connect_sse can only handle HTTP requests")

        session_id = uuid4().hex
        writer: MemoryObjectSendStream[types.JSONRPCMessage]
        reader: MemoryObjectReceiveStream[types.JSONRPCMessage]
        writer, reader = anyio.create_memory_object_stream[types.JSONRPCMessage](math.inf)

        session = SseSession(session_id, writer)
        await self.registry.register(session_id, session)
        logger.debug("Created new session with ID: %s", session_id)

        # Honour the mount point so clients behind a sub-path POST to the right place.
        root_path = scope.get("root_path", "")
        endpoint = f"{root_path.rstrip('/')}{self._endpoint}?{urlencode({SESSION_ID_PARAM: session_id})}"

        async def event_stream() -> AsyncIterator[dict[str, Any]]:
            yield {"event": "endpoint", "data": endpoint}
            async with reader:
                async for message in reader:
                    logger.debug("Sending message via SSE: %s", message)
                    yield {"event": "message", "data": types.dump_message(message)}

        async def response_wrapper() -> None:
            try:
                await EventSourceResponse(event_stream())(scope, receive, send)
            finally:
                with anyio.CancelScope(shield=True):
                    await session.close()
                    await self.registry.unregister(session_id)
                logger.debug("Client session disconnected %s", session_id)

        async with anyio.create_task_group() as tg:
            tg.start_soon(response_wrapper)
            try:
                yield session
            finally:
                with anyio.CancelScope(shield=True):
                    await session.close()

    async def handle_post_message(self, request: Request) -> Response:
        logger.debug("Handling POST message")
        session_id = request.query_params.get(SESSION_ID_PARAM)
        try:
            return await self._post_to_session(session_id, request)
        except SessionNotFoundError as e:
            logger.warning("%s", e)
            return Response("Session not found", status_code=404)

    async def _post_to_session(self, session_id: str | None, request: Request) -> Response:
        session = await self.registry.get(session_id)

        body = await request.body()
        logger.debug("Received JSON: %s", body)

        try:
            message = types.JSONRPCMessageAdapter.validate_json(body)
            logger.debug("Validated client message: %s", message)
        except PydanticValidationError as err:
            logger.error("Failed to parse message: %s", err)
            return Response("Could not parse message", status_code=400)

        try:
            await session.deliver(message)
        except TransportClosedError as e:
            # Closed between lookup and delivery: same answer as an unknown id.
            raise SessionNotFoundError(session_id) from e

        return Response("Accepted", status_code=202)
