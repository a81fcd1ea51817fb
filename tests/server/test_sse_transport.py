"""Session registry and the POST half of the SSE transport, exercised in-process."""

import math
from collections.abc import AsyncIterator

import anyio
import httpx
import pytest
from anyio.streams.memory import MemoryObjectReceiveStream
from starlette.applications import Starlette
from starlette.routing import Route

from wordpress_mcp import types
from wordpress_mcp.exceptions import DuplicateSessionError, SessionNotFoundError, TransportClosedError
from wordpress_mcp.transport import SessionRegistry, Transport
from wordpress_mcp.transport.sse import SseServerTransport, SseSession

pytestmark = pytest.mark.anyio

PING = '{"jsonrpc": "2.0", "id": 1, "method": "ping"}'


def _session(session_id: str = "abc") -> tuple[SseSession, MemoryObjectReceiveStream[types.JSONRPCMessage]]:
    writer, reader = anyio.create_memory_object_stream[types.JSONRPCMessage](math.inf)
    return SseSession(session_id, writer), reader


class TestSessionRegistry:
    async def test_register_and_lookup(self):
        registry: SessionRegistry[str] = SessionRegistry()

        await registry.register("one", "transport-1")

        assert await registry.lookup("one") == "transport-1"
        assert await registry.lookup("two") is None
        assert "one" in registry
        assert len(registry) == 1

    @pytest.mark.parametrize("session_id", [None, "", "two"])
    async def test_get_unknown_session_raises(self, session_id: str | None):
        registry: SessionRegistry[str] = SessionRegistry()
        await registry.register("one", "transport-1")

        assert await registry.get("one") == "transport-1"
        with pytest.raises(SessionNotFoundError) as exc_info:
            await registry.get(session_id)
        assert exc_info.value.session_id == session_id

    async def test_duplicate_registration_is_rejected(self):
        registry: SessionRegistry[str] = SessionRegistry()
        await registry.register("one", "transport-1")

        with pytest.raises(DuplicateSessionError) as exc_info:
            await registry.register("one", "transport-2")

        assert exc_info.value.session_id == "one"
        assert await registry.lookup("one") == "transport-1"

    async def test_unregister_is_idempotent(self):
        registry: SessionRegistry[str] = SessionRegistry()
        await registry.register("one", "transport-1")

        await registry.unregister("one")
        await registry.unregister("one")
        await registry.unregister("never-registered")

        assert await registry.lookup("one") is None
        assert len(registry) == 0

    async def test_id_can_be_reused_after_unregister(self):
        registry: SessionRegistry[str] = SessionRegistry()
        await registry.register("one", "transport-1")
        await registry.unregister("one")

        await registry.register("one", "transport-2")

        assert await registry.lookup("one") == "transport-2"

    async def test_concurrent_registrations(self):
        registry: SessionRegistry[int] = SessionRegistry()

        async with anyio.create_task_group() as tg:
            for index in range(50):
                tg.start_soon(registry.register, f"session-{index}", index)

        assert len(registry) == 50
        async with anyio.create_task_group() as tg:
            for index in range(0, 50, 2):
                tg.start_soon(registry.unregister, f"session-{index}")

        assert len(registry) == 25
        assert await registry.lookup("session-1") == 1

    async def test_clear(self):
        registry: SessionRegistry[str] = SessionRegistry()
        await registry.register("one", "transport-1")

        await registry.clear()

        assert len(registry) == 0


class TestSseSession:
    def test_satisfies_transport_protocol(self):
        session, _ = _session()

        assert isinstance(session, Transport)

    async def test_send_pushes_onto_stream(self):
        session, reader = _session()

        await session.send(types.JSONRPCResultResponse(id=1, result={}))

        assert reader.receive_nowait() == types.JSONRPCResultResponse(id=1, result={})

    async def test_send_after_stream_dropped(self):
        session, reader = _session()
        await reader.aclose()

        with pytest.raises(TransportClosedError):
            await session.send(types.JSONRPCResultResponse(id=1, result={}))
        assert session.closed

    async def test_close_is_idempotent_and_releases_waiters(self):
        session, _ = _session()

        with anyio.fail_after(5):
            async with anyio.create_task_group() as tg:
                tg.start_soon(session.wait_closed)
                await session.close()
                await session.close()

        assert session.closed
        with pytest.raises(TransportClosedError):
            await session.deliver(types.JSONRPCRequest(id=1, method="ping"))


@pytest.fixture
def sse() -> SseServerTransport:
    return SseServerTransport("/message")


@pytest.fixture
async def client(sse: SseServerTransport) -> AsyncIterator[httpx.AsyncClient]:
    app = Starlette(routes=[Route("/message", endpoint=sse.handle_post_message, methods=["POST"])])
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client


class TestHandlePostMessage:
    async def test_missing_session_id(self, client: httpx.AsyncClient):
        response = await client.post("/message", content=PING)

        assert response.status_code == 404
        assert response.text == "Session not found"

    async def test_unknown_session_id(self, client: httpx.AsyncClient):
        response = await client.post("/message", params={"sessionId": "nope"}, content=PING)

        assert response.status_code == 404

    async def test_frame_is_delivered_to_its_session(self, sse: SseServerTransport, client: httpx.AsyncClient):
        first, _ = _session("first")
        second, _ = _session("second")
        received: dict[str, list[types.JSONRPCMessage]] = {"first": [], "second": []}

        async def on_first(message: types.JSONRPCMessage) -> None:
            received["first"].append(message)

        async def on_second(message: types.JSONRPCMessage) -> None:
            received["second"].append(message)

        first.on_message(on_first)
        second.on_message(on_second)
        await sse.registry.register("first", first)
        await sse.registry.register("second", second)

        response = await client.post("/message", params={"sessionId": "second"}, content=PING)

        assert response.status_code == 202
        assert response.text == "Accepted"
        assert received == {"first": [], "second": [types.JSONRPCRequest(id=1, method="ping")]}

    async def test_unparseable_body(self, sse: SseServerTransport, client: httpx.AsyncClient):
        session, _ = _session("abc")
        await sse.registry.register("abc", session)

        response = await client.post("/message", params={"sessionId": "abc"}, content="{oops")

        assert response.status_code == 400
        assert response.text == "Could not parse message"

    async def test_closed_session(self, sse: SseServerTransport, client: httpx.AsyncClient):
        session, _ = _session("abc")
        await sse.registry.register("abc", session)
        await session.close()

        response = await client.post("/message", params={"sessionId": "abc"}, content=PING)

        assert response.status_code == 404

    async def test_stale_session_after_unregister(self, sse: SseServerTransport, client: httpx.AsyncClient):
        session, _ = _session("abc")
        await sse.registry.register("abc", session)
        await sse.registry.unregister("abc")

        response = await client.post("/message", params={"sessionId": "abc"}, content=PING)

        assert response.status_code == 404
