"""Backend (web chat service) configuration settings."""

from pydantic import BaseModel, Field, field_validator

from claude_web_proxy.models.session import ReasoningMode


class BackendSettings(BaseModel):
    """Where the backend lives and which sessions may be used against it."""

    base_url: str = Field(
        default="https://claude.ai",
        description="Backend origin, or the origin of a mirror/gateway in front of it",
    )

    session_keys: list[str] = Field(
        default_factory=list,
        description="Session cookies usable against the backend; one is picked per request",
    )

    gateway_mode: bool = Field(
        default=False,
        description="Send the additional session-data cookie required by gateway mirrors",
    )

    session_data_cookie: str | None = Field(
        default=None,
        description="Value of the session-data cookie used in gateway mode",
    )

    default_reasoning_mode: ReasoningMode = Field(
        default=ReasoningMode.UNSET,
        description="Known state of the account reasoning setting; 'unset' always toggles it",
    )

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")
