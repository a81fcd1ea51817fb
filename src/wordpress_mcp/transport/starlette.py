"""Starlette adapter for the SSE transport.

This module is the Starlette wiring: a GET route that opens a session's event
stream and a POST route that feeds frames into it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from wordpress_mcp.runner import Lifespan, RunningServer, ServerRunner
from wordpress_mcp.server import ToolServer
from wordpress_mcp.transport.sse import SseServerTransport


class _StreamFinished:
    """ASGI no-op returned once the event stream has ended.

    The stream already sent its own http.response.start; a regular Response
    would try to send a second one.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        return


def create_sse_app(
    server: ToolServer,
    *,
    sse_path: str = "/sse",
    message_path: str = "/message",
    lifespan: Lifespan | None = None,
    debug: bool = False,
) -> Starlette:
    """Create a Starlette ASGI app serving a ToolServer over SSE.

    Usage:
        app = create_sse_app(server)
        uvicorn.run(app, host="127.0.0.1", port=3000)
    """
    sse = SseServerTransport(message_path)

    @asynccontextmanager
    async def app_lifespan(app: Starlette) -> AsyncIterator[None]:
        runner = ServerRunner(server, lifespan=lifespan)
        async with runner.run() as running:
            app.state.running = running
            app.state.sse = sse
            try:
                yield
            finally:
                await sse.registry.clear()

    async def handle_sse(request: Request) -> _StreamFinished:
        running: RunningServer = request.app.state.running
        async with sse.connect_sse(request.scope, request.receive, request._send) as session:  # type: ignore[reportPrivateUsage]
            await running.serve(session)
        return _StreamFinished()

    async def handle_message(request: Request) -> Response:
        return await sse.handle_post_message(request)

    return Starlette(
        debug=debug,
        lifespan=app_lifespan,
        routes=[
            Route(sse_path, endpoint=handle_sse, methods=["GET"]),
            Route(message_path, endpoint=handle_message, methods=["POST"]),
        ],
    )
