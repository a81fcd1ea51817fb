"""ResponseSink implementations."""

from __future__ import annotations

import logging

from wordpress_mcp.exceptions import TransportClosedError
from wordpress_mcp.transport.base import Transport
from wordpress_mcp.types import JSONRPCResponse

logger = logging.getLogger(__name__)


class TransportSink:
    """ResponseSink that writes straight to the transport the request came from.

    If the connection has gone away the frame is dropped: nobody is left to
    receive it.
    """

    def __init__(self, transport: Transport) -> None:
        self._transport = transport
        self._done = False

    async def send_result(self, response: JSONRPCResponse) -> None:
        if self._done:
            return
        self._done = True
        await self._send(response)

    async def _send(self, response: JSONRPCResponse) -> None:
        try:
            await self._transport.send(response)
        except TransportClosedError:
            logger.debug("Discarding response to %s: transport closed", response.id)


class NoOpSink:
    """A sink that does nothing. Used for notifications which don't produce responses."""

    async def send_result(self, response: JSONRPCResponse) -> None:
        pass
