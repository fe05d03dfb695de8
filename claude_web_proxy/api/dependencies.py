"""FastAPI dependencies: settings access and bearer authentication."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from claude_web_proxy.config.settings import Settings
from claude_web_proxy.core.logging import get_logger
from claude_web_proxy.models.openai import OpenAIErrorResponse


logger = get_logger(__name__)

# HTTP Bearer scheme for extracting tokens
bearer_scheme = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    settings: Settings = request.app.state.settings
    return settings


SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def verify_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    request: Request,
    settings: SettingsDep,
) -> None:
    """
    Verify bearer token authentication.

    Raises:
        HTTPException: If authentication fails
    """
    # Skip authentication if no token is configured
    if not settings.api_key:
        return

    if not credentials:
        logger.warning("auth_token_missing", path=request.url.path)
        raise HTTPException(
            status_code=401,
            detail=OpenAIErrorResponse.create(
                message="Missing authentication token",
                error_type="authentication_error",
            ).model_dump(),
        )

    if credentials.credentials != settings.api_key:
        logger.warning("auth_token_invalid", path=request.url.path)
        raise HTTPException(
            status_code=401,
            detail=OpenAIErrorResponse.create(
                message="Invalid authentication token",
                error_type="authentication_error",
            ).model_dump(),
        )
