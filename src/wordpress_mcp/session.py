"""Protocol-level session state from the initialize handshake."""

from __future__ import annotations

from dataclasses import dataclass

from wordpress_mcp.types import ClientCapabilities, Implementation


@dataclass(frozen=True)
class SessionInfo:
    """Immutable protocol-level session state, created during the init handshake.

    Transport-level state (the open stream, the session id used for routing
    POSTs) lives in the transport and the session registry, not here.
    """

    client_info: Implementation
    client_capabilities: ClientCapabilities
    protocol_version: str
