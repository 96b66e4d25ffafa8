"""
Integration tests for the SSE transport over a real HTTP server.
"""

import json
import socket

import anyio
import pytest
import uvicorn
from mcp import ClientSession
from mcp.client.sse import sse_client

from target_mcp.mcp.plugins.discovery import build_registry
from target_mcp.mcp.sessions import SessionRegistry
from target_mcp.mcp.sse import create_sse_app

from resources.tests.helpers.tool_modules import write_api_tool


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def registry(tools_root):
    write_api_tool(
        tools_root,
        "update_state.py",
        "update_activity_state",
        required=["tenant", "state"],
        body="return {'id': 1, 'state': 'active'}",
    )
    return build_registry(tools_root)


async def wait_until(condition, timeout: float = 5) -> None:
    with anyio.fail_after(timeout):
        while not condition():
            await anyio.sleep(0.05)


@pytest.mark.integration
class TestSseStream:
    """Test GET /sse sessions end to end with the SDK's SSE client."""

    @pytest.mark.asyncio
    async def test_two_sessions_list_and_call(self, registry, settings):
        sessions = SessionRegistry()
        port = free_port()
        config = uvicorn.Config(
            create_sse_app(registry, settings, sessions), host="127.0.0.1", port=port, log_config=None
        )
        server = uvicorn.Server(config)
        url = f"http://127.0.0.1:{port}{settings.sse_path}"

        async with anyio.create_task_group() as tg:
            tg.start_soon(server.serve)
            await wait_until(lambda: server.started)

            try:
                async with sse_client(url) as (read_a, write_a), sse_client(url) as (read_b, write_b):
                    async with ClientSession(read_a, write_a) as first, ClientSession(read_b, write_b) as second:
                        await first.initialize()
                        await second.initialize()

                        assert len(sessions) == 2
                        assert len(set(sessions.session_ids())) == 2

                        listing = await first.list_tools()
                        result = await second.call_tool(
                            "update_activity_state", {"tenant": "acme", "state": "active"}
                        )

                assert [tool.name for tool in listing.tools] == ["update_activity_state"]
                assert not result.isError
                assert result.content[0].text == json.dumps({"id": 1, "state": "active"}, indent=2)

                # Closing the client streams ends each session on the server
                await wait_until(lambda: len(sessions) == 0)
            finally:
                server.should_exit = True
