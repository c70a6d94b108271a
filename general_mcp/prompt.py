from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable

from .errors import McpClientError, ProcessTerminated
from .transport import McpProcess

log = logging.getLogger(__name__)

PROMPT = "mcp> "
EXAMPLE = '{"method":"providers.list","params":{}}'


async def _read_stdin_line(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


async def run_prompt(
    proc: McpProcess,
    *,
    read_line: Callable[[str], Awaitable[str]] = _read_stdin_line,
    write: Callable[[str], None] = print,
) -> None:
    """Interactive loop: one ``{"method", "params"}`` object per line.

    ``exit`` or end of input quits. The loop also stops once the server
    process is gone, since nothing further could be answered.
    """
    write(f"{PROMPT}Type JSON-RPC requests, or 'exit' to quit.")

    while True:
        try:
            line = (await read_line(PROMPT)).strip()
        except EOFError:
            break

        if not line:
            continue
        if line == "exit":
            break

        try:
            parsed = json.loads(line)
            if not isinstance(parsed, dict):
                raise ValueError("expected a JSON object")
        except ValueError:
            write("Invalid JSON. Example:")
            write(EXAMPLE)
            continue

        request = proc.builder.build(parsed.get("method") or "", parsed.get("params"))
        try:
            response = await proc.send(request)
        except ProcessTerminated as exc:
            write(f"Error: {exc}")
            break
        except McpClientError as exc:
            log.debug("Request %s failed", request["id"], exc_info=True)
            write(f"Error: {exc}")
            continue

        write(json.dumps(response, indent=2))
