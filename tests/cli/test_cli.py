from typing import Any

import pytest
import uvicorn
from click.testing import CliRunner
from starlette.applications import Starlette

from wordpress_mcp import cli
from wordpress_mcp.server import ToolServer


@pytest.fixture
def uvicorn_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    calls: list[dict[str, Any]] = []

    def fake_run(app: Any, **kwargs: Any) -> None:
        calls.append({"app": app, **kwargs})

    monkeypatch.setattr(uvicorn, "run", fake_run)
    return calls


@pytest.fixture
def stdio_calls(monkeypatch: pytest.MonkeyPatch) -> list[ToolServer]:
    calls: list[ToolServer] = []

    async def fake_serve_stdio(tool_server: ToolServer) -> None:
        calls.append(tool_server)

    monkeypatch.setattr(cli, "serve_stdio", fake_serve_stdio)
    return calls


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("WORDPRESS_MCP_PORT", "WORDPRESS_MCP_HOST", "WORDPRESS_MCP_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_port_selects_sse(uvicorn_calls: list[dict[str, Any]], stdio_calls: list[ToolServer]):
    result = CliRunner().invoke(cli.main, ["server", "8123"])

    assert result.exit_code == 0, result.output
    assert stdio_calls == []
    [call] = uvicorn_calls
    assert isinstance(call["app"], Starlette)
    assert call["host"] == "127.0.0.1"
    assert call["port"] == 8123
    assert call["log_level"] == "info"


def test_no_port_selects_stdio(uvicorn_calls: list[dict[str, Any]], stdio_calls: list[ToolServer]):
    result = CliRunner().invoke(cli.main, ["server"])

    assert result.exit_code == 0, result.output
    assert uvicorn_calls == []
    [tool_server] = stdio_calls
    assert tool_server.name == "wordpress-mcp-server"
    assert len(tool_server.tools) == 5


def test_sse_without_port_uses_settings(
    monkeypatch: pytest.MonkeyPatch, uvicorn_calls: list[dict[str, Any]], stdio_calls: list[ToolServer]
):
    monkeypatch.setenv("WORDPRESS_MCP_PORT", "4010")

    result = CliRunner().invoke(cli.main, ["--log-level", "debug", "server", "--transport", "sse"])

    assert result.exit_code == 0, result.output
    [call] = uvicorn_calls
    assert call["port"] == 4010
    assert call["log_level"] == "debug"


def test_invalid_port():
    result = CliRunner().invoke(cli.main, ["server", "not-a-port"])

    assert result.exit_code == 2


def test_client_help():
    result = CliRunner().invoke(cli.main, ["client", "--help"])

    assert result.exit_code == 0
    assert "Connect to a running SSE server" in result.output
