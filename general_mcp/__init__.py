"""General MCP client: plan, launch and talk JSON-RPC to stdio MCP servers."""

from general_mcp.errors import (
    McpClientError,
    ProcessTerminated,
    RequestTimeout,
    SpawnFailed,
    TransportError,
    UnknownProfile,
)
from general_mcp.jsonrpc import RequestBuilder
from general_mcp.models import ExecutionPlan, PlanSource, ProcessEvent, ProcessState
from general_mcp.planner import plan, plan_for_profile
from general_mcp.transport import McpProcess, ResponseCorrelator

__all__ = [
    "ExecutionPlan",
    "McpClientError",
    "McpProcess",
    "PlanSource",
    "ProcessEvent",
    "ProcessState",
    "ProcessTerminated",
    "RequestBuilder",
    "RequestTimeout",
    "ResponseCorrelator",
    "SpawnFailed",
    "TransportError",
    "UnknownProfile",
    "plan",
    "plan_for_profile",
]
