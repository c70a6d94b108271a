"""Stdio JSON-RPC transport for MCP servers.

  - McpProcess:         spawns one server, sends requests, closes it down
                        (stdin EOF, then SIGTERM, then SIGKILL)
  - ResponseCorrelator: reassembles stdout lines and matches responses by id
"""

from general_mcp.transport.correlator import ResponseCorrelator
from general_mcp.transport.supervisor import McpProcess

__all__ = ["McpProcess", "ResponseCorrelator"]
