"""Translation of the backend completion event stream into normalized output.

The backend streams newline-delimited records; only ``data: `` lines carry a
JSON event. Text, reasoning (``thinking_delta``) and tool input
(``input_json_delta``) deltas are merged into a single text stream in which
reasoning and tool-call segments are wrapped in delimiters.
"""

import json
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from enum import Enum

import httpx
from pydantic import ValidationError

from claude_web_proxy.core.logging import get_logger
from claude_web_proxy.exceptions import StreamTranslationError
from claude_web_proxy.models.events import (
    STREAM_DATA_PREFIX,
    BackendEvent,
    OutputEvent,
    OutputEventKind,
)
from claude_web_proxy.streaming.sink import OutputSink


logger = get_logger(__name__)

CancellationCheck = Callable[[], Awaitable[bool]]

REASONING_OPEN = "<think> "
REASONING_CLOSE = "</think>\n"
TOOL_CALL_OPEN = "\n```\n "
TOOL_CALL_CLOSE = "\n```\n"


class Segment(str, Enum):
    """Which kind of output is currently open. Plain text needs no delimiters."""

    TEXT = "text"
    REASONING = "reasoning"
    TOOL_CALL = "tool_call"


_OPENERS = {Segment.REASONING: REASONING_OPEN, Segment.TOOL_CALL: TOOL_CALL_OPEN}
_CLOSERS = {Segment.REASONING: REASONING_CLOSE, Segment.TOOL_CALL: TOOL_CALL_CLOSE}


class SegmentTracker:
    """Single-valued segment state; at most one delimited segment is open."""

    def __init__(self) -> None:
        self.segment = Segment.TEXT

    def enter(self, target: Segment) -> str:
        """Switch to ``target`` and return the delimiters that transition needs.

        Entering the segment that is already open returns an empty string.
        """
        if target is self.segment:
            return ""
        delimiters = _CLOSERS.get(self.segment, "") + _OPENERS.get(target, "")
        self.segment = target
        return delimiters

    def close(self) -> str:
        return self.enter(Segment.TEXT)


def parse_event_line(line: str) -> BackendEvent | None:
    """Parse one stream line; ``None`` for keep-alives and non-event lines."""
    if not line.startswith(STREAM_DATA_PREFIX):
        return None
    payload = line[len(STREAM_DATA_PREFIX) :]
    try:
        return BackendEvent.model_validate_json(payload)
    except (ValidationError, json.JSONDecodeError):
        logger.debug("stream_event_unparseable", payload=payload[:200])
        return None


async def _read_lines(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    try:
        async for line in lines:
            yield line
    except (httpx.StreamError, httpx.HTTPError) as e:
        raise StreamTranslationError(f"Error reading response: {e}") from e


class EventStreamTranslator:
    """Per-invocation translator; create one per completion."""

    def __init__(self, log_lines: bool = False) -> None:
        self.tracker = SegmentTracker()
        self.log_lines = log_lines
        self.cancelled = False
        self._parts: list[str] = []

    @property
    def text(self) -> str:
        """Everything emitted so far, delimiters included."""
        return "".join(self._parts)

    def apply(self, event: BackendEvent) -> str:
        """Advance the segment state for one event and return its output fragment."""
        delta = event.delta
        if delta.type == "text_delta":
            if not delta.text:
                return ""
            return self.tracker.close() + delta.text
        if delta.type == "thinking_delta":
            return self.tracker.enter(Segment.REASONING) + delta.thinking
        if delta.type == "input_json_delta":
            return self.tracker.enter(Segment.TOOL_CALL) + delta.partial_json
        return ""

    async def events(
        self,
        lines: AsyncIterator[str],
        is_cancelled: CancellationCheck | None = None,
    ) -> AsyncIterator[OutputEvent]:
        """Yield normalized output events for a stream of backend lines.

        Ends with a ``done`` event, or a single ``error`` event when the
        backend reports one in-band. Yields nothing further once
        ``is_cancelled`` reports true.
        """
        async with aclosing(_read_lines(lines)) as reader:
            async for line in reader:
                if is_cancelled is not None and await is_cancelled():
                    logger.info("client_disconnected_stream_aborted")
                    self.cancelled = True
                    return
                if self.log_lines:
                    logger.debug("stream_line", line=line)

                event = parse_event_line(line)
                if event is None:
                    continue

                error_message = event.error_message
                if error_message is not None:
                    logger.warning("stream_error_event", message=error_message)
                    yield OutputEvent.failure(error_message)
                    return

                fragment = self.apply(event)
                if fragment:
                    self._parts.append(fragment)
                    yield OutputEvent.delta(fragment)

        closing = self.tracker.close()
        if closing:
            self._parts.append(closing)
            yield OutputEvent.delta(closing)
        yield OutputEvent.done()

    async def translate(
        self,
        lines: AsyncIterator[str],
        sink: OutputSink,
        is_cancelled: CancellationCheck | None = None,
    ) -> None:
        """Drive ``sink`` with the translated stream.

        Raises:
            StreamTranslationError: reading the stream failed
        """
        async with aclosing(self.events(lines, is_cancelled)) as events:
            async for event in events:
                if event.kind is OutputEventKind.DELTA:
                    if sink.streaming:
                        await sink.emit_chunk(event.text)
                elif event.kind is OutputEventKind.ERROR:
                    await sink.emit_error(event.text)
                    return
                elif sink.streaming:
                    await sink.emit_done()
                else:
                    await sink.emit_response(self.text)

        if not self.cancelled:
            logger.debug("stream_translated", length=len(self.text))
