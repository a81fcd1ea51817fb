"""RequestContext and the ResponseSink protocol."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from wordpress_mcp.session import SessionInfo
from wordpress_mcp.types import JSONRPCResponse, RequestId


@runtime_checkable
class ResponseSink(Protocol):
    """Where the frames produced while processing one inbound message go.

    One per incoming request. The connection hands out a sink bound to the
    transport the request arrived on, so a response can only ever reach the
    session that issued the matching request id.
    """

    async def send_result(self, response: JSONRPCResponse) -> None:
        """Send the final result. After this, the sink is done."""
        ...


@dataclass
class RequestContext:
    """What method handlers receive."""

    server_state: Any
    session: SessionInfo | None
    request_id: RequestId
    _sink: ResponseSink
