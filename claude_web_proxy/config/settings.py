from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .backend import BackendSettings
from .http import HTTPSettings
from .logging import LoggingSettings
from .server import ServerSettings


__all__ = ["Settings", "get_settings"]


class Settings(BaseSettings):
    """
    Configuration settings for Claude Web Proxy.

    Settings are loaded from environment variables and an optional .env file.
    Nested values use a double underscore, e.g.
    ``CLAUDE_WEB_PROXY_BACKEND__SESSION_KEYS='["sk-ant-..."]'``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLAUDE_WEB_PROXY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    server: ServerSettings = Field(
        default_factory=ServerSettings,
        description="Server configuration settings",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    http: HTTPSettings = Field(
        default_factory=HTTPSettings,
        description="HTTP client configuration settings",
    )

    backend: BackendSettings = Field(
        default_factory=BackendSettings,
        description="Backend session configuration",
    )

    api_key: str | None = Field(
        default=None,
        description="Bearer token clients must present; authentication is disabled when unset",
    )

    chat_delete: bool = Field(
        default=True,
        description="Delete the backend conversation once the completion finished",
    )

    max_chat_history_length: int = Field(
        default=10000,
        description="Prompts longer than this are sent as an inline context attachment",
        ge=1,
    )

    no_role_prefix: bool = Field(
        default=False,
        description="Do not prefix flattened messages with 'Human:'/'Assistant:'",
    )

    prompt_disable_artifacts: bool = Field(
        default=False,
        description="Prepend an instruction asking the model not to use artifacts",
    )

    @property
    def server_url(self) -> str:
        """Get the complete server URL."""
        return f"http://{self.server.host}:{self.server.port}"


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings instance."""
    return Settings()
