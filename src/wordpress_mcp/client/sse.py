import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from typing import Any
from urllib.parse import urljoin, urlparse

import anyio
import httpx
from anyio.abc import TaskStatus
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from httpx_sse import EventSource, aconnect_sse
from pydantic import ValidationError as PydanticValidationError

from wordpress_mcp import types
from wordpress_mcp.utilities.httpx_utils import HttpClientFactory, create_http_client

logger = logging.getLogger(__name__)

ReadStream = MemoryObjectReceiveStream[types.JSONRPCMessage | Exception]
WriteStream = MemoryObjectSendStream[types.JSONRPCMessage]
InboundWriter = MemoryObjectSendStream[types.JSONRPCMessage | Exception]


def remove_request_params(url: str) -> str:
    return urljoin(url, urlparse(url).path)


def resolve_endpoint(url: str, data: str) -> str:
    """Resolve the endpoint announced by the server against the connection URL.

    Raises:
        ValueError: the endpoint points at a different scheme or host
    """
    endpoint_url = urljoin(url, data)
    connected, announced = urlparse(url), urlparse(endpoint_url)
    if (connected.scheme, connected.netloc) != (announced.scheme, announced.netloc):
        raise ValueError(f"Endpoint origin does not match connection origin: {endpoint_url}")
    return endpoint_url


async def _read_events(
    url: str,
    event_source: EventSource,
    inbound: InboundWriter,
    *,
    task_status: TaskStatus[str] = anyio.TASK_STATUS_IGNORED,
) -> None:
    connected = False
    try:
        async for sse in event_source.aiter_sse():
            logger.debug("Received SSE event: %s", sse.event)
            if sse.event == "endpoint" and connected:
                logger.warning("Ignoring repeated endpoint event: %s", sse.data)
            elif sse.event == "endpoint":
                endpoint_url = resolve_endpoint(url, sse.data)
                logger.info("Received endpoint URL: %s", endpoint_url)
                task_status.started(endpoint_url)
                connected = True
            elif sse.event == "message":
                try:
                    message = types.JSONRPCMessageAdapter.validate_json(sse.data)
                except PydanticValidationError as exc:
                    logger.error("Error parsing server message: %s", exc)
                    await inbound.send(exc)
                    continue
                await inbound.send(message)
            else:
                logger.warning("Unknown SSE event: %s", sse.event)
    except Exception as exc:
        logger.error("SSE stream failed: %s", exc)
        if not connected:
            # Nobody holds the read stream yet; fail sse_client() itself.
            raise
        with suppress(anyio.BrokenResourceError, anyio.ClosedResourceError):
            await inbound.send(exc)
    finally:
        await inbound.aclose()


async def _post_messages(
    client: httpx.AsyncClient,
    endpoint_url: str,
    outbound: MemoryObjectReceiveStream[types.JSONRPCMessage],
    inbound: InboundWriter,
) -> None:
    try:
        async with outbound:
            async for message in outbound:
                logger.debug("Sending client message: %s", message)
                response = await client.post(
                    endpoint_url,
                    json=message.model_dump(by_alias=True, mode="json", exclude_none=True),
                )
                response.raise_for_status()
    except Exception as exc:
        logger.error("Failed to post client message: %s", exc)
        # Wake up whoever is waiting on a response.
        with suppress(anyio.ClosedResourceError):
            await inbound.send(exc)


@asynccontextmanager
async def sse_client(
    url: str,
    headers: dict[str, Any] | None = None,
    timeout: float = 5,
    sse_read_timeout: float = 60 * 5,
    http_client_factory: HttpClientFactory = create_http_client,
) -> AsyncIterator[tuple[ReadStream, WriteStream]]:
    """
    Client transport for SSE.

    Yields a pair of streams: frames pushed by the server (or the exception
    that broke the connection) come out of the first, frames written to the
    second are POSTed to the endpoint the server announced.

    `sse_read_timeout` determines how long (in seconds) the client will wait for a new
    event before disconnecting. All other HTTP operations are controlled by `timeout`.
    """
    read_stream_writer: InboundWriter
    read_stream: ReadStream
    write_stream: WriteStream
    write_stream_reader: MemoryObjectReceiveStream[types.JSONRPCMessage]

    read_stream_writer, read_stream = anyio.create_memory_object_stream(0)
    write_stream, write_stream_reader = anyio.create_memory_object_stream(0)

    logger.info("Connecting to SSE endpoint: %s", remove_request_params(url))
    try:
        async with http_client_factory(headers=headers) as client:
            async with aconnect_sse(
                client,
                "GET",
                url,
                timeout=httpx.Timeout(timeout, read=sse_read_timeout),
            ) as event_source:
                event_source.response.raise_for_status()
                async with anyio.create_task_group() as tg:
                    endpoint_url = await tg.start(_read_events, url, event_source, read_stream_writer)
                    tg.start_soon(_post_messages, client, endpoint_url, write_stream_reader, read_stream_writer)
                    try:
                        yield read_stream, write_stream
                    finally:
                        tg.cancel_scope.cancel()
    finally:
        await read_stream_writer.aclose()
        await write_stream.aclose()
        await write_stream_reader.aclose()
