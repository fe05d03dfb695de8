"""Session-level models: reasoning mode, tenants and default request attributes."""

from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_PARENT_MESSAGE_UUID = "00000000-0000-4000-8000-000000000000"


class ReasoningMode(str, Enum):
    """Known state of the account-level extended reasoning setting.

    ``UNSET`` means the current account value is unknown, so the lifecycle
    manager always writes the setting it needs.
    """

    UNSET = "unset"
    OFF = "off"
    EXTENDED = "extended"


class Organization(BaseModel):
    """One tenant record from the organization listing."""

    uuid: str
    id: int | None = None
    name: str = ""
    rate_limit_tier: str | None = None

    model_config = ConfigDict(extra="ignore")


class PersonalizedStyle(BaseModel):
    """Response style selection sent with every completion."""

    type: str = "default"
    key: str = "Default"
    name: str = "Normal"
    nameKey: str = "normal_style_name"  # noqa: N815
    prompt: str = "Normal"
    summary: str = "Default responses from Claude"
    summaryKey: str = "normal_style_summary"  # noqa: N815
    isDefault: bool = True  # noqa: N815


class ToolSelection(BaseModel):
    """Backend tool enabled for the conversation."""

    type: str
    name: str


class InlineAttachment(BaseModel):
    """Attachment whose content travels inline as extracted text."""

    file_name: str
    file_type: str
    file_size: int
    extracted_content: str

    @classmethod
    def from_text(
        cls, text: str, file_name: str = "context.txt"
    ) -> "InlineAttachment":
        """Wrap text as a plain-text attachment sized by its UTF-8 length."""
        return cls(
            file_name=file_name,
            file_type="text/plain",
            file_size=len(text.encode("utf-8")),
            extracted_content=text,
        )


def _default_tools() -> list[ToolSelection]:
    return [
        ToolSelection(type="web_search_v0", name="web_search"),
        ToolSelection(type="repl_v0", name="repl"),
    ]


class RequestAttributes(BaseModel):
    """Default attributes merged into every completion request.

    Owned by a single session. Attachment and context operations mutate it;
    building a completion request only reads it. Unknown backend attributes
    may be carried as extra fields.
    """

    personalized_styles: Annotated[
        list[PersonalizedStyle], Field(description="Response style selection")
    ] = Field(default_factory=lambda: [PersonalizedStyle()])
    tools: Annotated[
        list[ToolSelection], Field(description="Backend tools enabled")
    ] = Field(default_factory=_default_tools)
    parent_message_uuid: str = DEFAULT_PARENT_MESSAGE_UUID
    attachments: list[InlineAttachment] = Field(default_factory=list)
    files: list[str] = Field(default_factory=list)
    sync_sources: list[Any] = Field(default_factory=list)
    locale: str = "en-US"
    rendering_mode: str = "messages"
    timezone: str = "America/New_York"

    model_config = ConfigDict(extra="allow")
