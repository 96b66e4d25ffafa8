"""
Session registry for the HTTP (SSE) transport.

Each open event stream owns one transport and one protocol server. The
registry maps the session id handed to the client onto that pair so message
posts can find their session.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING

import anyio
from mcp.server import Server

from target_mcp.utils.logging import LoggerMixin

if TYPE_CHECKING:
    from target_mcp.mcp.sse import SseSessionTransport


@dataclass(frozen=True)
class Session:
    """One live client connection."""

    session_id: str
    transport: "SseSessionTransport"
    server: Server


class SessionRegistry(LoggerMixin):
    """Live sessions keyed by session id.

    Insertions and removals are single synchronous steps, so on the event
    loop a lookup sees a session either fully registered or not at all.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._closed = False

    def get(self, session_id: str) -> Session | None:
        """Get a live session, or None if it is unknown or closed."""
        return self._sessions.get(session_id)

    def session_ids(self) -> list[str]:
        """List ids of all live sessions."""
        return list(self._sessions)

    @asynccontextmanager
    async def open(self, transport: "SseSessionTransport", server: Server) -> AsyncIterator[Session]:
        """Register a session for the duration of the block.

        The session is removed and its transport closed on every exit path:
        normal close, client disconnect, errors and cancellation.

        Args:
            transport: Transport bound to the client's event stream
            server: Protocol server dedicated to this session

        Yields:
            The registered session
        """
        if self._closed:
            raise RuntimeError("Session registry is closed")

        session = Session(transport.session_id, transport, server)
        if session.session_id in self._sessions:
            raise ValueError(f"Session already registered: {session.session_id}")

        self._sessions[session.session_id] = session
        self.logger.info(f"Session opened: {session.session_id} ({len(self._sessions)} live)")
        try:
            yield session
        finally:
            self._sessions.pop(session.session_id, None)
            with anyio.CancelScope(shield=True):
                await transport.aclose()
            self.logger.info(f"Session closed: {session.session_id} ({len(self._sessions)} live)")

    async def aclose(self) -> None:
        """Close every live session's transport and refuse new sessions."""
        self._closed = True
        sessions = list(self._sessions.values())
        if sessions:
            self.logger.info(f"Closing {len(sessions)} live sessions")
        for session in sessions:
            await session.transport.aclose()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
