"""OpenAI-format SSE formatting utilities."""

import json
from typing import Any


DONE_EVENT = "data: [DONE]\n\n"


class OpenAIStreamingFormatter:
    """Formats streaming responses to match OpenAI's SSE format."""

    @staticmethod
    def format_data_event(data: dict[str, Any]) -> str:
        """
        Format a data event for OpenAI-compatible Server-Sent Events.

        Args:
            data: Event data dictionary

        Returns:
            Formatted SSE string
        """
        json_data = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        return f"data: {json_data}\n\n"

    @staticmethod
    def _chunk(
        message_id: str,
        model: str,
        created: int,
        delta: dict[str, Any],
        finish_reason: str | None = None,
    ) -> dict[str, Any]:
        return {
            "id": message_id,
            "object": "chat.completion.chunk",
            "created": created,
            "model": model,
            "choices": [
                {
                    "index": 0,
                    "delta": delta,
                    "logprobs": None,
                    "finish_reason": finish_reason,
                }
            ],
        }

    @staticmethod
    def format_first_chunk(
        message_id: str, model: str, created: int, role: str = "assistant"
    ) -> str:
        """Format the first chunk carrying only the assistant role."""
        return OpenAIStreamingFormatter.format_data_event(
            OpenAIStreamingFormatter._chunk(
                message_id, model, created, {"role": role, "content": ""}
            )
        )

    @staticmethod
    def format_content_chunk(
        message_id: str, model: str, created: int, content: str
    ) -> str:
        """
        Format a content chunk with text delta.

        Args:
            message_id: Unique identifier for the completion
            model: Model name being used
            created: Unix timestamp when the completion was created
            content: Text content to include in the delta

        Returns:
            Formatted SSE string
        """
        return OpenAIStreamingFormatter.format_data_event(
            OpenAIStreamingFormatter._chunk(
                message_id, model, created, {"content": content}
            )
        )

    @staticmethod
    def format_final_chunk(
        message_id: str, model: str, created: int, finish_reason: str = "stop"
    ) -> str:
        """Format the final chunk with finish_reason and an empty delta."""
        return OpenAIStreamingFormatter.format_data_event(
            OpenAIStreamingFormatter._chunk(
                message_id, model, created, {}, finish_reason=finish_reason
            )
        )

    @staticmethod
    def format_error_chunk(
        message_id: str, model: str, created: int, error_type: str, error_message: str
    ) -> str:
        """Format an out-of-band error chunk (proxy failures, not backend content)."""
        data = OpenAIStreamingFormatter._chunk(
            message_id, model, created, {}, finish_reason="stop"
        )
        data["error"] = {"type": error_type, "message": error_message}
        return OpenAIStreamingFormatter.format_data_event(data)

    @staticmethod
    def format_done() -> str:
        """Format the final DONE event."""
        return DONE_EVENT
