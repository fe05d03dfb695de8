"""Backend event-stream models and the normalized output event."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


STREAM_DATA_PREFIX = "data: "


class EventDelta(BaseModel):
    """Incremental content carried by a content block delta."""

    type: str = ""
    text: str = ""
    thinking: str = ""
    partial_json: str = ""

    model_config = ConfigDict(extra="ignore")


class EventError(BaseModel):
    """Error payload of an in-band error event."""

    message: str = ""
    type: str | None = None

    model_config = ConfigDict(extra="ignore")


class BackendEvent(BaseModel):
    """One JSON event from the backend completion stream.

    Only the fields the translator reads are modeled; everything else is
    ignored.
    """

    type: str = ""
    index: int | None = None
    delta: EventDelta = Field(default_factory=EventDelta)
    error: EventError = Field(default_factory=EventError)

    model_config = ConfigDict(extra="ignore")

    @field_validator("delta", "error", mode="before")
    @classmethod
    def null_as_empty(cls, v: Any) -> Any:
        return {} if v is None else v

    @property
    def error_message(self) -> str | None:
        if self.type == "error" and self.error.message:
            return self.error.message
        return None


class OutputEventKind(str, Enum):
    DELTA = "delta"
    DONE = "done"
    ERROR = "error"


class OutputEvent(BaseModel):
    """Normalized event produced by the translator, in backend order."""

    kind: OutputEventKind
    text: str = ""

    @classmethod
    def delta(cls, text: str) -> "OutputEvent":
        return cls(kind=OutputEventKind.DELTA, text=text)

    @classmethod
    def done(cls) -> "OutputEvent":
        return cls(kind=OutputEventKind.DONE)

    @classmethod
    def failure(cls, message: str) -> "OutputEvent":
        return cls(kind=OutputEventKind.ERROR, text=message)
