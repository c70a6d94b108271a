import pytest

from general_mcp.config import Config
from general_mcp.formatter import TextFormatter
from general_mcp.planner import DEFAULT_PACKAGE_MANAGER


def test_defaults(tmp_path):
    config = Config.from_env(tmp_path / "missing.env")

    assert config.debug is False
    assert config.profile_server is None
    assert config.request_timeout is None
    assert config.package_manager == DEFAULT_PACKAGE_MANAGER


def test_values_from_dotenv_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "MCP_DEBUG=1\n"
        "MCP_REQUEST_TIMEOUT=2.5\n"
        "MCP_GRACE_PERIOD=0.5\n"
        "MCP_MAX_BUFFER_BYTES=4096\n"
        "MCP_RUNNER=bunx\n"
    )
    config = Config.from_env(env_file)

    assert config.debug is True
    assert config.request_timeout == 2.5
    assert config.grace_period == 0.5
    assert config.max_buffer_bytes == 4096
    assert config.zero_install_runner == "bunx"


def test_bad_integer(monkeypatch):
    monkeypatch.setenv("MCP_MAX_BUFFER_BYTES", "lots")

    with pytest.raises(ValueError, match="MCP_MAX_BUFFER_BYTES"):
        Config.from_env()


def test_empty_profile_list():
    assert TextFormatter().format_profiles([]) == "No profiles available."
