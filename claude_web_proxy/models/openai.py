"""OpenAI-compatible Pydantic models for Claude Web Proxy.

Only the subset of the chat completion API this proxy can honor is modeled.
Unknown request fields (temperature, top_p, ...) are accepted and ignored
because the web backend has no equivalent for them.
"""

import time
import uuid
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


OpenAIMessageRole = Literal["system", "user", "assistant", "tool", "developer"]
OpenAIFinishReason = Literal["stop", "length", "tool_calls", "content_filter"]

THINK_SUFFIX = "-think"

SUPPORTED_MODELS: list[tuple[str, int]] = [
    ("claude-sonnet-4-20250514", 1747267200),
    ("claude-opus-4-20250514", 1747267200),
    ("claude-3-7-sonnet-20250219", 1739923200),
    ("claude-3-5-haiku-20241022", 1729555200),
]


class OpenAIMessageContent(BaseModel):
    """Content part within an OpenAI message - text or image."""

    type: Annotated[str, Field(description="Content type")]
    text: Annotated[str | None, Field(description="Text content")] = None
    image_url: Annotated[
        dict[str, str] | None, Field(description="Image URL information")
    ] = None

    model_config = ConfigDict(extra="ignore")


class OpenAIMessage(BaseModel):
    """OpenAI-compatible message model."""

    role: Annotated[
        OpenAIMessageRole, Field(description="The role of the message sender")
    ]
    content: Annotated[
        str | list[OpenAIMessageContent] | None,
        Field(description="The content of the message"),
    ] = None
    name: Annotated[
        str | None, Field(description="The name of the participant (optional)")
    ] = None

    model_config = ConfigDict(extra="ignore")


class OpenAIChatCompletionRequest(BaseModel):
    """OpenAI-compatible chat completion request model."""

    model: str = Field(..., description="ID of the model to use")
    messages: list[OpenAIMessage] = Field(
        ...,
        description="A list of messages comprising the conversation so far",
        min_length=1,
    )
    stream: bool | None = Field(
        False, description="Whether to stream back partial progress"
    )
    user: str | None = Field(
        None, description="A unique identifier representing your end-user"
    )

    model_config = ConfigDict(extra="ignore")

    @field_validator("model")
    @classmethod
    def validate_model(cls, v: str) -> str:
        """Reject empty model names; anything else is passed to the backend."""
        if not v.strip():
            raise ValueError("model must not be empty")
        return v


class OpenAIUsage(BaseModel):
    """OpenAI usage statistics."""

    prompt_tokens: int = Field(..., description="Number of tokens in the prompt")
    completion_tokens: int = Field(
        ..., description="Number of tokens in the generated completion"
    )
    total_tokens: int = Field(
        ..., description="Total number of tokens used in the request"
    )


class OpenAIResponseMessage(BaseModel):
    """OpenAI response message model."""

    role: OpenAIMessageRole = Field(
        "assistant", description="The role of the message sender"
    )
    content: str | None = Field(None, description="The content of the message")


class OpenAIChoice(BaseModel):
    """OpenAI choice in response."""

    index: int = Field(..., description="The index of the choice")
    message: OpenAIResponseMessage = Field(
        ..., description="The message generated by the model"
    )
    logprobs: dict[str, Any] | None = Field(
        None, description="Log probability information for the choice"
    )
    finish_reason: OpenAIFinishReason = Field(
        ..., description="The reason the model stopped generating tokens"
    )


class OpenAIChatCompletionResponse(BaseModel):
    """OpenAI-compatible chat completion response model."""

    id: str = Field(..., description="A unique identifier for the chat completion")
    object: Literal["chat.completion"] = Field(
        "chat.completion", description="The object type"
    )
    created: int = Field(
        ..., description="The Unix timestamp of when the chat completion was created"
    )
    model: str = Field(..., description="The model used for the chat completion")
    choices: list[OpenAIChoice] = Field(
        ..., description="A list of chat completion choices"
    )
    usage: OpenAIUsage = Field(
        ..., description="Usage statistics for the completion request"
    )

    @classmethod
    def create(
        cls,
        model: str,
        content: str,
        completion_id: str | None = None,
        created: int | None = None,
        finish_reason: OpenAIFinishReason = "stop",
    ) -> "OpenAIChatCompletionResponse":
        """Create a chat completion response.

        The backend reports no token usage, so usage is always zero.
        """
        return cls(
            id=completion_id or new_completion_id(),
            object="chat.completion",
            created=created if created is not None else int(time.time()),
            model=model,
            choices=[
                OpenAIChoice(
                    index=0,
                    message=OpenAIResponseMessage(role="assistant", content=content),
                    logprobs=None,
                    finish_reason=finish_reason,
                )
            ],
            usage=OpenAIUsage(prompt_tokens=0, completion_tokens=0, total_tokens=0),
        )


class OpenAIModelInfo(BaseModel):
    """OpenAI model information."""

    id: str = Field(..., description="The model identifier")
    object: Literal["model"] = Field("model", description="The object type")
    created: int = Field(
        ..., description="The Unix timestamp of when the model was created"
    )
    owned_by: str = Field(..., description="The organization that owns the model")


class OpenAIModelsResponse(BaseModel):
    """OpenAI models list response."""

    object: Literal["list"] = Field("list", description="The object type")
    data: list[OpenAIModelInfo] = Field(..., description="List of model objects")

    @classmethod
    def create_default(cls) -> "OpenAIModelsResponse":
        """Every supported model, plus its extended-reasoning variant."""
        models: list[OpenAIModelInfo] = []
        for model_id, created in SUPPORTED_MODELS:
            for variant in (model_id, model_id + THINK_SUFFIX):
                models.append(
                    OpenAIModelInfo(
                        id=variant,
                        object="model",
                        created=created,
                        owned_by="anthropic",
                    )
                )
        return cls(object="list", data=models)


class OpenAIErrorDetail(BaseModel):
    """OpenAI error detail."""

    message: str = Field(..., description="A human-readable error message")
    type: str = Field(..., description="The error type")
    param: str | None = Field(None, description="The parameter that caused the error")
    code: str | None = Field(None, description="The error code")


class OpenAIErrorResponse(BaseModel):
    """OpenAI error response."""

    error: OpenAIErrorDetail = Field(..., description="The error details")

    @classmethod
    def create(
        cls,
        message: str,
        error_type: str,
        param: str | None = None,
        code: str | None = None,
    ) -> "OpenAIErrorResponse":
        """Create an error response."""
        return cls(
            error=OpenAIErrorDetail(
                message=message,
                type=error_type,
                param=param,
                code=code,
            )
        )


def new_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4().hex[:29]}"


__all__ = [
    "OpenAIMessage",
    "OpenAIMessageContent",
    "OpenAIChatCompletionRequest",
    "OpenAIUsage",
    "OpenAIResponseMessage",
    "OpenAIChoice",
    "OpenAIChatCompletionResponse",
    "OpenAIModelInfo",
    "OpenAIModelsResponse",
    "OpenAIErrorDetail",
    "OpenAIErrorResponse",
    "THINK_SUFFIX",
    "new_completion_id",
]
