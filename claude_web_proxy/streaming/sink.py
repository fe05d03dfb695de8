"""Output sinks that deliver translated text in OpenAI wire format.

A sink is either streaming (every fragment is written immediately and a
termination token closes the stream) or aggregated (fragments are dropped and
one response carrying the full text is produced at the end).
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from claude_web_proxy.core.logging import get_logger
from claude_web_proxy.models.openai import (
    OpenAIChatCompletionResponse,
    new_completion_id,
)
from claude_web_proxy.streaming.formatter import OpenAIStreamingFormatter


logger = get_logger(__name__)

Writer = Callable[[str], Awaitable[None]]


class OutputSink(ABC):
    """Destination for translated output."""

    def __init__(
        self, model: str, completion_id: str | None = None, created: int | None = None
    ) -> None:
        self.model = model
        self.completion_id = completion_id or new_completion_id()
        self.created = created if created is not None else int(time.time())
        self.finished = False

    @property
    @abstractmethod
    def streaming(self) -> bool:
        """Whether fragments are delivered as they arrive."""

    @abstractmethod
    async def emit_chunk(self, text: str) -> None:
        """Deliver one fragment of output."""

    @abstractmethod
    async def emit_done(self) -> None:
        """Terminate a streamed response."""

    @abstractmethod
    async def emit_response(self, text: str) -> None:
        """Deliver the complete output as one response."""

    @abstractmethod
    async def emit_error(self, message: str) -> None:
        """Deliver an error message as the complete response."""


class StreamingSink(OutputSink):
    """Writes OpenAI ``chat.completion.chunk`` SSE events to a writer."""

    def __init__(
        self,
        write: Writer,
        model: str,
        completion_id: str | None = None,
        created: int | None = None,
    ) -> None:
        super().__init__(model, completion_id, created)
        self._write = write
        self._started = False

    @property
    def streaming(self) -> bool:
        return True

    async def _ensure_started(self) -> None:
        if not self._started:
            self._started = True
            await self._write(
                OpenAIStreamingFormatter.format_first_chunk(
                    self.completion_id, self.model, self.created
                )
            )

    async def emit_chunk(self, text: str) -> None:
        if self.finished:
            logger.debug("sink_chunk_after_finish_dropped")
            return
        await self._ensure_started()
        await self._write(
            OpenAIStreamingFormatter.format_content_chunk(
                self.completion_id, self.model, self.created, text
            )
        )

    async def emit_done(self) -> None:
        if self.finished:
            return
        await self._ensure_started()
        self.finished = True
        await self._write(
            OpenAIStreamingFormatter.format_final_chunk(
                self.completion_id, self.model, self.created
            )
        )
        await self._write(OpenAIStreamingFormatter.format_done())

    async def emit_response(self, text: str) -> None:
        # Streaming clients still get the whole text, followed by termination.
        await self.emit_chunk(text)
        await self.emit_done()

    async def emit_error(self, message: str) -> None:
        await self.emit_chunk(message)
        await self.emit_done()


class AggregatedSink(OutputSink):
    """Collects exactly one non-streaming chat completion response."""

    def __init__(
        self, model: str, completion_id: str | None = None, created: int | None = None
    ) -> None:
        super().__init__(model, completion_id, created)
        self.response: OpenAIChatCompletionResponse | None = None

    @property
    def streaming(self) -> bool:
        return False

    async def emit_chunk(self, text: str) -> None:
        # Per-chunk output is suppressed; the translator accumulates it.
        return None

    async def emit_done(self) -> None:
        return None

    async def emit_response(self, text: str) -> None:
        if self.finished:
            logger.debug("sink_second_response_ignored")
            return
        self.finished = True
        self.response = OpenAIChatCompletionResponse.create(
            model=self.model,
            content=text,
            completion_id=self.completion_id,
            created=self.created,
        )

    async def emit_error(self, message: str) -> None:
        await self.emit_response(message)
