"""The contract every transport fulfils."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from wordpress_mcp.types import JSONRPCMessage

MessageCallback = Callable[[JSONRPCMessage], Awaitable[None]]


@runtime_checkable
class Transport(Protocol):
    """Carries frames between one client and the server.

    Implementations:
    - StdioTransport: newline-delimited JSON over the process' stdin/stdout
    - SseSession: one streaming session (GET event stream + POST channel)
    """

    async def send(self, message: JSONRPCMessage) -> None:
        """Write one frame to the peer.

        Raises:
            TransportClosedError: the connection is gone
        """
        ...

    def on_message(self, callback: MessageCallback) -> None:
        """Register the coroutine invoked for each frame arriving from the peer."""
        ...

    async def close(self) -> None:
        """Release the underlying I/O. Idempotent."""
        ...

    async def wait_closed(self) -> None:
        """Wait until the peer can deliver no more frames."""
        ...
