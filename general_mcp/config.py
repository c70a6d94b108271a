from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .planner import DEFAULT_PACKAGE_MANAGER, DEFAULT_ZERO_INSTALL_RUNNER
from .transport.correlator import DEFAULT_MAX_BUFFER_BYTES
from .transport.supervisor import DEFAULT_GRACE_PERIOD

_TRUTHY = {"1", "true", "yes", "on"}


def _float_env(name: str, default: float | None) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Config:
    debug: bool = False
    profile_server: str | None = None
    grace_period: float = DEFAULT_GRACE_PERIOD
    request_timeout: float | None = None
    max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES
    package_manager: str = DEFAULT_PACKAGE_MANAGER
    zero_install_runner: str = DEFAULT_ZERO_INSTALL_RUNNER

    @classmethod
    def from_env(cls, env_path: str | Path | None = None) -> Config:
        """Read MCP_* settings, after loading a ``.env`` file if one exists.

        MCP_DEBUG=1                 verbose logging of framing and events
        MCP_PROFILE_SERVER=cmd      replaces a profile's server command
        MCP_REQUEST_TIMEOUT=30      seconds; unset waits until the server exits
        """
        load_dotenv(env_path)

        return cls(
            debug=os.getenv("MCP_DEBUG", "").strip().lower() in _TRUTHY,
            profile_server=os.getenv("MCP_PROFILE_SERVER") or None,
            grace_period=_float_env("MCP_GRACE_PERIOD", DEFAULT_GRACE_PERIOD),
            request_timeout=_float_env("MCP_REQUEST_TIMEOUT", None),
            max_buffer_bytes=_int_env("MCP_MAX_BUFFER_BYTES", DEFAULT_MAX_BUFFER_BYTES),
            package_manager=os.getenv("MCP_PACKAGE_MANAGER") or DEFAULT_PACKAGE_MANAGER,
            zero_install_runner=os.getenv("MCP_RUNNER") or DEFAULT_ZERO_INSTALL_RUNNER,
        )
