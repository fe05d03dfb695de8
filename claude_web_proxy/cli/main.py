"""Main entry point for Claude Web Proxy."""

import os

import typer
import uvicorn
from rich.console import Console

from claude_web_proxy import __version__
from claude_web_proxy.config.settings import get_settings
from claude_web_proxy.core.logging import setup_logging


console = Console()

app = typer.Typer(
    rich_markup_mode="rich",
    add_completion=False,
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)


def validate_port(value: int | None) -> int | None:
    """Validate port number."""
    if value is not None and not 1 <= value <= 65535:
        raise typer.BadParameter("Port must be between 1 and 65535")
    return value


def validate_log_level(value: str | None) -> str | None:
    """Validate log level."""
    if value is None:
        return None
    valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
    if value.upper() not in valid_levels:
        raise typer.BadParameter(f"Log level must be one of: {', '.join(valid_levels)}")
    return value.upper()


@app.command()
def version() -> None:
    """Show version and exit."""
    console.print(f"claude-web-proxy [bold cyan]{__version__}[/bold cyan]")


@app.command()
def serve(
    host: str | None = typer.Option(
        None,
        "--host",
        help="Host to bind the server to",
        rich_help_panel="Server Settings",
    ),
    port: int | None = typer.Option(
        None,
        "--port",
        "-p",
        help="Port to run the server on",
        callback=validate_port,
        rich_help_panel="Server Settings",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        callback=validate_log_level,
        rich_help_panel="Server Settings",
    ),
    reload: bool = typer.Option(
        False,
        "--reload",
        help="Enable auto-reload for development",
        rich_help_panel="Server Settings",
    ),
) -> None:
    """Run the OpenAI-compatible API server."""
    # Overrides travel through the environment so reload workers see them too.
    if host is not None:
        os.environ["CLAUDE_WEB_PROXY_SERVER__HOST"] = host
    if port is not None:
        os.environ["CLAUDE_WEB_PROXY_SERVER__PORT"] = str(port)
    if log_level is not None:
        os.environ["CLAUDE_WEB_PROXY_LOGGING__LEVEL"] = log_level
    get_settings.cache_clear()
    settings = get_settings()

    setup_logging(settings.logging.level, settings.logging.format)
    console.print(
        f"[bold]claude-web-proxy[/bold] {__version__} listening on "
        f"[cyan]{settings.server_url}[/cyan] "
        f"(OpenAI base URL: [cyan]{settings.server_url}/v1[/cyan])"
    )
    if not settings.backend.session_keys:
        console.print(
            "[yellow]No backend session keys configured; set "
            "CLAUDE_WEB_PROXY_BACKEND__SESSION_KEYS[/yellow]"
        )

    uvicorn.run(
        "claude_web_proxy.api.app:create_default_app",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=reload or settings.server.reload,
        log_level=settings.logging.level.lower(),
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
