"""Tests for the command line interface."""

from collections.abc import Generator
from typing import Any

import pytest
from typer.testing import CliRunner

from claude_web_proxy import __version__
from claude_web_proxy.cli.main import app
from claude_web_proxy.config.settings import get_settings


runner = CliRunner()


@pytest.fixture
def uvicorn_calls(monkeypatch) -> Generator[list[dict[str, Any]], None, None]:
    """Capture uvicorn.run calls and isolate the environment serve writes to."""
    calls: list[dict[str, Any]] = []

    def fake_run(app: str, **kwargs: Any) -> None:
        calls.append({"app": app, **kwargs})

    monkeypatch.setattr("claude_web_proxy.cli.main.uvicorn.run", fake_run)
    # Leave global logging alone; the runner swaps stderr during invoke.
    monkeypatch.setattr(
        "claude_web_proxy.cli.main.setup_logging", lambda *args, **kwargs: None
    )
    monkeypatch.setenv("CLAUDE_WEB_PROXY_SERVER__HOST", "127.0.0.1")
    monkeypatch.setenv("CLAUDE_WEB_PROXY_SERVER__PORT", "8080")
    monkeypatch.setenv("CLAUDE_WEB_PROXY_LOGGING__LEVEL", "INFO")
    get_settings.cache_clear()
    yield calls
    get_settings.cache_clear()


@pytest.mark.unit
class TestCLI:
    """Test CLI commands."""

    def test_version(self):
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_serve_passes_overrides(self, uvicorn_calls):
        result = runner.invoke(
            app,
            ["serve", "--host", "0.0.0.0", "--port", "9123", "--log-level", "debug"],
        )

        assert result.exit_code == 0, result.output
        assert len(uvicorn_calls) == 1
        call = uvicorn_calls[0]
        assert call["app"] == "claude_web_proxy.api.app:create_default_app"
        assert call["factory"] is True
        assert call["host"] == "0.0.0.0"
        assert call["port"] == 9123
        assert call["log_level"] == "debug"
        assert call["reload"] is False

    def test_serve_rejects_invalid_port(self, uvicorn_calls):
        result = runner.invoke(app, ["serve", "--port", "0"])

        assert result.exit_code == 2
        assert uvicorn_calls == []

    def test_serve_rejects_invalid_log_level(self, uvicorn_calls):
        result = runner.invoke(app, ["serve", "--log-level", "loud"])

        assert result.exit_code == 2
        assert uvicorn_calls == []
