"""Minimal FastMCP server speaking the real MCP protocol over stdio."""

from mcp.server.fastmcp import FastMCP

mcp = FastMCP("fixture-server")


@mcp.tool()
def add(a: int, b: int) -> int:
    """Add two integers."""
    return a + b


if __name__ == "__main__":
    mcp.run()
