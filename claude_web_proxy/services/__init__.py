"""Services layer for Claude Web Proxy."""

from .conversation import ConversationManager, ConversationState
from .session_client import DEFAULT_MODEL_SENTINEL, SessionClient


__all__ = [
    "ConversationManager",
    "ConversationState",
    "DEFAULT_MODEL_SENTINEL",
    "SessionClient",
]
