"""HTTP client configuration settings."""

from pydantic import BaseModel, Field


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class HTTPSettings(BaseModel):
    """HTTP client configuration settings.

    Controls timeouts, proxying and protocol options of the client used to talk
    to the backend. Timeouts are enforced here, not per stream event.
    """

    timeout_connect: float = Field(
        default=10.0,
        description="Connection timeout in seconds",
        gt=0,
    )

    timeout_read: float = Field(
        default=300.0,
        description="Read timeout in seconds (long for streaming completions)",
        gt=0,
    )

    timeout_write: float = Field(default=30.0, description="Write timeout in seconds")

    timeout_pool: float = Field(default=30.0, description="Pool timeout in seconds")

    proxy: str | None = Field(
        default=None,
        description="Proxy URL for backend requests (falls back to HTTPS_PROXY/ALL_PROXY/HTTP_PROXY)",
    )

    http2: bool = Field(
        default=True,
        description="Enable HTTP/2 for backend requests",
    )

    verify: bool = Field(
        default=True,
        description="Verify TLS certificates of the backend",
    )

    user_agent: str = Field(
        default=DEFAULT_USER_AGENT,
        description="User-Agent header sent to the backend",
    )

    accept_language: str = Field(
        default="en-US,en;q=0.9",
        description="Accept-Language header sent to the backend",
    )
