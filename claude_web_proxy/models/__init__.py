"""Data models for Claude Web Proxy."""

from .events import BackendEvent, OutputEvent, OutputEventKind
from .session import (
    InlineAttachment,
    Organization,
    ReasoningMode,
    RequestAttributes,
)


__all__ = [
    "BackendEvent",
    "InlineAttachment",
    "Organization",
    "OutputEvent",
    "OutputEventKind",
    "ReasoningMode",
    "RequestAttributes",
]
