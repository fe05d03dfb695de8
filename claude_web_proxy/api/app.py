"""FastAPI application factory for Claude Web Proxy."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from claude_web_proxy import __version__
from claude_web_proxy.api.routes.health import router as health_router
from claude_web_proxy.api.routes.openai import router as openai_router
from claude_web_proxy.config.settings import Settings, get_settings
from claude_web_proxy.core.logging import get_logger, setup_logging
from claude_web_proxy.exceptions import ClaudeWebProxyError
from claude_web_proxy.models.openai import OpenAIErrorResponse


logger = get_logger(__name__)


def setup_error_handlers(app: FastAPI) -> None:
    """Map proxy exceptions to OpenAI-style error responses."""

    @app.exception_handler(ClaudeWebProxyError)
    async def proxy_error_handler(
        request: Request, exc: ClaudeWebProxyError
    ) -> JSONResponse:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "request_failed",
            error_type=exc.error_type,
            error_message=exc.message,
            status_code=exc.status_code,
            request_method=request.method,
            request_url=str(request.url.path),
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=OpenAIErrorResponse.create(
                message=exc.message, error_type=exc.error_type
            ).model_dump(),
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info(
            "server_starting",
            version=__version__,
            backend=settings.backend.base_url,
            sessions=len(settings.backend.session_keys),
            auth_enabled=bool(settings.api_key),
        )
        if not settings.backend.session_keys:
            logger.warning("no_session_keys_configured")
        yield
        logger.info("server_stopped")

    app = FastAPI(
        title="Claude Web Proxy",
        description="OpenAI-compatible API in front of the Claude web chat backend",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings

    setup_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(openai_router, prefix="/v1", tags=["openai"])
    return app


def create_default_app() -> FastAPI:
    """Factory for ``uvicorn --factory``; configures logging from settings."""
    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.format)
    return create_app(settings)
