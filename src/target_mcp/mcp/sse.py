"""
HTTP server-sent events transport for the MCP server.

    GET  /sse                      opens a session and streams server messages
    POST /messages?sessionId=<id>  delivers one client message to that session

Every session gets its own protocol server and transport. The first event on
a stream is ``endpoint``, carrying the URL the client must post to.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4

import anyio
import uvicorn
from mcp import types
from mcp.shared.message import SessionMessage
from pydantic import ValidationError
from sse_starlette import EventSourceResponse
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route
from starlette.types import Receive, Scope, Send

from target_mcp.mcp.plugins.registry import ToolRegistry
from target_mcp.mcp.server import create_mcp_server, initialization_options
from target_mcp.mcp.sessions import SessionRegistry
from target_mcp.utils.config import TargetMCPSettings, get_settings
from target_mcp.utils.logging import get_logger

logger = get_logger(__name__)

_CLOSED_ERRORS = (anyio.ClosedResourceError, anyio.BrokenResourceError, anyio.EndOfStream)


class SseSessionTransport:
    """Transport for one event-stream session.

    Incoming messages arrive through ``handle_post_message`` and are queued
    for the session's server in arrival order. Outgoing messages are written
    to the open event stream.
    """

    def __init__(self, messages_path: str = "/messages"):
        self.session_id = uuid4().hex
        self.messages_path = messages_path
        self._incoming_send, self._incoming_receive = anyio.create_memory_object_stream[
            SessionMessage | Exception
        ](0)
        self._outgoing_send, self._outgoing_receive = anyio.create_memory_object_stream[SessionMessage](0)
        self._closed = False

    @property
    def endpoint(self) -> str:
        """Relative URL clients post messages to."""
        return f"{self.messages_path}?sessionId={self.session_id}"

    @property
    def closed(self) -> bool:
        return self._closed

    @asynccontextmanager
    async def connect(self, scope: Scope, receive: Receive, send: Send) -> AsyncIterator[tuple[Any, Any]]:
        """Open the event stream and yield the server's (read, write) streams.

        The read stream ends when the client disconnects. Leaving the block
        stops the event stream.
        """
        root_path = scope.get("root_path", "")
        response = EventSourceResponse(self._event_stream(root_path))

        async def run_response() -> None:
            try:
                await response(scope, receive, send)
            finally:
                await self.aclose()

        async with anyio.create_task_group() as tg:
            tg.start_soon(run_response)
            try:
                yield self._incoming_receive, self._outgoing_send
            finally:
                tg.cancel_scope.cancel()

    async def _event_stream(self, root_path: str) -> AsyncIterator[dict[str, str]]:
        yield {"event": "endpoint", "data": f"{root_path}{self.endpoint}"}
        async with self._outgoing_receive:
            async for session_message in self._outgoing_receive:
                yield {
                    "event": "message",
                    "data": session_message.message.model_dump_json(by_alias=True, exclude_none=True),
                }

    async def handle_post_message(self, request: Request) -> Response:
        """Queue one posted JSON-RPC message for this session's server."""
        body = await request.body()
        try:
            message = types.JSONRPCMessage.model_validate_json(body)
        except ValidationError as e:
            logger.error(f"Could not parse message for session {self.session_id}: {e}")
            return PlainTextResponse("Could not parse message", status_code=400)

        try:
            await self._incoming_send.send(SessionMessage(message))
        except _CLOSED_ERRORS:
            logger.warning(f"Message posted to closed session: {self.session_id}")
            return PlainTextResponse("No transport/server found for sessionId", status_code=400)

        return PlainTextResponse("Accepted", status_code=202)

    async def aclose(self) -> None:
        """Stop delivering messages; the session's server then finishes."""
        if self._closed:
            return
        self._closed = True
        await self._incoming_send.aclose()


class SseEndpoint:
    """ASGI endpoint that runs one MCP session per event-stream request."""

    def __init__(self, registry: ToolRegistry, sessions: SessionRegistry, settings: TargetMCPSettings):
        self.registry = registry
        self.sessions = sessions
        self.settings = settings

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        logger.info("🌐 SSE endpoint hit")
        server = create_mcp_server(self.registry, self.settings)
        transport = SseSessionTransport(self.settings.messages_path)

        # Registered before the endpoint event reveals the id to the client
        async with self.sessions.open(transport, server):
            async with transport.connect(scope, receive, send) as (read_stream, write_stream):
                await server.run(read_stream, write_stream, initialization_options(server, self.settings))

        logger.info(f"🔌 SSE connection closed: {transport.session_id}")


def create_sse_app(
    registry: ToolRegistry,
    settings: TargetMCPSettings | None = None,
    sessions: SessionRegistry | None = None,
) -> Starlette:
    """Create the Starlette application serving MCP over SSE.

    Args:
        registry: Discovered tools shared by every session
        settings: Optional settings override
        sessions: Optional session registry (a fresh one by default)

    Returns:
        ASGI application with the SSE and message routes
    """
    settings = settings or get_settings()
    sessions = sessions if sessions is not None else SessionRegistry()

    async def handle_post_message(request: Request) -> Response:
        session_id = request.query_params.get("sessionId")
        session = sessions.get(session_id) if session_id else None

        if session is None:
            logger.error(f"❌ No server found for sessionId: {session_id}")
            return PlainTextResponse("No transport/server found for sessionId", status_code=400)

        logger.info(f"📨 Message received for session: {session_id}")
        return await session.transport.handle_post_message(request)

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await sessions.aclose()

    app = Starlette(
        routes=[
            Route(settings.sse_path, endpoint=SseEndpoint(registry, sessions, settings), methods=["GET"]),
            Route(settings.messages_path, endpoint=handle_post_message, methods=["POST"]),
        ],
        lifespan=lifespan,
    )
    app.state.sessions = sessions
    return app


async def run_sse_server(registry: ToolRegistry, settings: TargetMCPSettings | None = None) -> None:
    """Serve MCP over HTTP server-sent events until the process is stopped."""
    settings = settings or get_settings()
    app = create_sse_app(registry, settings)

    config = uvicorn.Config(app, host=settings.host, port=settings.port, log_config=None)
    server = uvicorn.Server(config)

    logger.info(f"✅ [SSE Server] running on http://localhost:{settings.port}")
    await server.serve()
