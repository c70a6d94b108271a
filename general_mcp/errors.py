"""Error types raised by the MCP client core and CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ExecutionPlan


class McpClientError(Exception):
    """Base class for every failure surfaced to callers."""


class SpawnFailed(McpClientError):
    """The child process could not be started at all."""

    def __init__(self, plan: ExecutionPlan, cause: BaseException, exit_code: int):
        super().__init__(f"Failed to start '{plan.display()}': {cause}")
        self.plan = plan
        self.cause = cause
        self.exit_code = exit_code


class ProcessTerminated(McpClientError):
    """The child exited while a request was waiting for its response."""

    def __init__(self, exit_code: int | None, signal: str | None = None):
        detail = f"signal={signal}" if signal else f"code={exit_code}"
        super().__init__(f"MCP server process exited ({detail})")
        self.exit_code = exit_code
        self.signal = signal


class TransportError(McpClientError):
    """I/O failure on a live pipe, or an operation invalid in the current state."""


class RequestTimeout(McpClientError):
    def __init__(self, request_id: object, timeout: float):
        super().__init__(f"Request {request_id!r} timed out after {timeout:g}s")
        self.request_id = request_id
        self.timeout = timeout


class UnknownProfile(McpClientError):
    def __init__(self, profile_id: str):
        super().__init__(f"Unknown profile: {profile_id}")
        self.profile_id = profile_id
