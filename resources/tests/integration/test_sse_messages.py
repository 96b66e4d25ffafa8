"""
Integration tests for the SSE application's message endpoint.
"""

import anyio
import httpx
import pytest

from target_mcp.mcp.plugins.registry import ToolRegistry
from target_mcp.mcp.server import create_mcp_server
from target_mcp.mcp.sessions import SessionRegistry
from target_mcp.mcp.sse import SseSessionTransport, create_sse_app

PING = '{"jsonrpc": "2.0", "id": 1, "method": "ping"}'


@pytest.fixture
def sessions():
    return SessionRegistry()


@pytest.fixture
def app(settings, sessions):
    return create_sse_app(ToolRegistry(), settings, sessions)


@pytest.fixture
def server(settings):
    return create_mcp_server(ToolRegistry(), settings)


def client_for(app):
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")


async def post_and_receive(client, transport, body=PING):
    """Post one message while the session's server side reads it."""
    received = []

    async def read_one():
        received.append(await transport._incoming_receive.receive())

    async with anyio.create_task_group() as tg:
        tg.start_soon(read_one)
        response = await client.post(f"/messages?sessionId={transport.session_id}", content=body)

    return response, received


@pytest.mark.integration
class TestMessageEndpoint:
    """Test POST /messages routing by session id."""

    @pytest.mark.asyncio
    async def test_unknown_session_id(self, app):
        async with client_for(app) as client:
            response = await client.post("/messages?sessionId=does-not-exist", content=PING)

        assert response.status_code == 400
        assert response.text == "No transport/server found for sessionId"

    @pytest.mark.asyncio
    async def test_missing_session_id(self, app):
        async with client_for(app) as client:
            response = await client.post("/messages", content=PING)

        assert response.status_code == 400
        assert response.text == "No transport/server found for sessionId"

    @pytest.mark.asyncio
    async def test_message_is_delivered_to_its_session(self, app, sessions, server):
        transport = SseSessionTransport()

        async with sessions.open(transport, server), client_for(app) as client:
            response, received = await post_and_receive(client, transport)

        assert response.status_code == 202
        assert response.text == "Accepted"
        assert received[0].message.root.method == "ping"
        assert received[0].message.root.id == 1

    @pytest.mark.asyncio
    async def test_unparseable_message(self, app, sessions, server):
        transport = SseSessionTransport()

        async with sessions.open(transport, server), client_for(app) as client:
            response = await client.post(f"/messages?sessionId={transport.session_id}", content="not json")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_closed_session_does_not_affect_others(self, app, sessions, server):
        closed, live = SseSessionTransport(), SseSessionTransport()

        async with sessions.open(live, server), client_for(app) as client:
            async with sessions.open(closed, server):
                pass

            stale = await client.post(f"/messages?sessionId={closed.session_id}", content=PING)
            response, received = await post_and_receive(client, live)

        assert stale.status_code == 400
        assert response.status_code == 202
        assert received[0].message.root.method == "ping"

    @pytest.mark.asyncio
    async def test_transport_closed_before_removal(self, app, sessions, server):
        transport = SseSessionTransport()

        async with sessions.open(transport, server), client_for(app) as client:
            await transport.aclose()
            response = await client.post(f"/messages?sessionId={transport.session_id}", content=PING)

        assert response.status_code == 400

    def test_app_holds_session_registry(self, app, sessions):
        assert app.state.sessions is sessions
