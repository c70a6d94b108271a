import json

import pytest

from general_mcp.models import ProcessState
from general_mcp.transport import McpProcess

CLIENT_INFO = {"name": "general-mcp-tests", "version": "0.0.0"}


@pytest.mark.asyncio
async def test_handshake_and_tool_call_against_fastmcp(fastmcp_server_plan):
    async with McpProcess(request_timeout=30) as proc:
        await proc.start(fastmcp_server_plan)

        init = await proc.request(
            "initialize",
            {"protocolVersion": "2024-11-05", "capabilities": {}, "clientInfo": CLIENT_INFO},
        )
        assert init["id"] == 1
        assert init["result"]["serverInfo"]["name"] == "fixture-server"

        await proc.notify("notifications/initialized")

        tools = await proc.request("tools/list")
        assert "add" in [tool["name"] for tool in tools["result"]["tools"]]

        call = await proc.request("tools/call", {"name": "add", "arguments": {"a": 2, "b": 3}})
        assert "5" in json.dumps(call["result"]["content"])

    assert proc.state is ProcessState.EXITED
