"""Session registry for the streaming transport."""

from __future__ import annotations

import logging
from typing import Generic, TypeVar

import anyio

from wordpress_mcp.exceptions import DuplicateSessionError, SessionNotFoundError

logger = logging.getLogger(__name__)

TransportT = TypeVar("TransportT")


class SessionRegistry(Generic[TransportT]):
    """Maps session ids to the live transport that owns the event stream.

    Decouples the short-lived POST path, which only knows a session id, from
    the long-lived stream it has to write into. Every operation runs under
    one lock, so register/lookup/unregister for the same id never interleave.

    Policy: a second registration for a live id is rejected, a lookup for an
    unknown id returns None from lookup() and raises
    SessionNotFoundError from get() (the HTTP layer answers 404).
    """

    def __init__(self) -> None:
        self._lock = anyio.Lock()
        self._sessions: dict[str, TransportT] = {}

    async def register(self, session_id: str, transport: TransportT) -> None:
        """Register a transport under a fresh session id.

        Raises:
            DuplicateSessionError: the id already has a live transport
        """
        async with self._lock:
            if session_id in self._sessions:
                raise DuplicateSessionError(session_id)
            self._sessions[session_id] = transport
        logger.debug("Registered session %s", session_id)

    async def lookup(self, session_id: str) -> TransportT | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def get(self, session_id: str | None) -> TransportT:
        """Return the live transport for a session id.

        Raises:
            SessionNotFoundError: the id is missing or not registered
        """
        transport = await self.lookup(session_id) if session_id else None
        if transport is None:
            raise SessionNotFoundError(session_id)
        return transport

    async def unregister(self, session_id: str) -> None:
        """Forget a session. Unknown ids are ignored."""
        async with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is not None:
            logger.debug("Unregistered session %s", session_id)

    async def clear(self) -> None:
        async with self._lock:
            self._sessions.clear()

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
