import json

import pytest

from general_mcp.prompt import EXAMPLE, run_prompt
from general_mcp.transport import McpProcess


def _scripted(lines):
    remaining = list(lines)

    async def read_line(prompt):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return read_line


@pytest.mark.asyncio
async def test_prompt_sends_requests_until_exit(fake_server_plan):
    output = []
    async with McpProcess() as proc:
        await proc.start(fake_server_plan())
        await run_prompt(
            proc,
            read_line=_scripted(["not json", "", '{"method": "ping"}', "exit", '{"method": "ping"}']),
            write=output.append,
        )

    assert "Invalid JSON. Example:" in output
    assert EXAMPLE in output
    responses = [json.loads(o) for o in output if o.startswith("{\n")]
    assert responses == [{"jsonrpc": "2.0", "id": 1, "result": "pong"}]


@pytest.mark.asyncio
async def test_prompt_stops_when_server_dies(fake_server_plan):
    output = []
    async with McpProcess() as proc:
        await proc.start(fake_server_plan())
        await run_prompt(
            proc,
            read_line=_scripted(['{"method": "crash", "params": {"code": 2}}', '{"method": "ping"}']),
            write=output.append,
        )

    assert output[-1] == "Error: MCP server process exited (code=2)"
