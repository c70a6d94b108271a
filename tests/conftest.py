"""Pytest hooks and fixtures."""

import os
import shlex
import sys
from pathlib import Path

import pytest

from general_mcp.models import ExecutionPlan, PlanSource

FIXTURES = Path(__file__).parent / "fixtures"
FAKE_SERVER = FIXTURES / "fake_server.py"
FASTMCP_SERVER = FIXTURES / "fastmcp_server.py"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Run each test without MCP_* settings from the outer environment.

    load_dotenv writes straight into os.environ, so anything a test loads
    is removed again afterwards.
    """
    for name in [k for k in os.environ if k.startswith("MCP_")]:
        monkeypatch.delenv(name)
    yield
    for name in [k for k in os.environ if k.startswith("MCP_")]:
        del os.environ[name]


def python_plan(script: Path, *args: str) -> ExecutionPlan:
    return ExecutionPlan(
        command=shlex.quote(sys.executable),
        args=(str(script), *args),
        source=PlanSource.EXPLICIT,
    )


@pytest.fixture
def fake_server_plan():
    def _make(*flags: str) -> ExecutionPlan:
        return python_plan(FAKE_SERVER, *flags)

    return _make


@pytest.fixture
def fake_server_command():
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(FAKE_SERVER))}"


@pytest.fixture
def fastmcp_server_plan():
    return python_plan(FASTMCP_SERVER)
