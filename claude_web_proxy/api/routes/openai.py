"""OpenAI-compatible chat completions endpoint."""

import asyncio
import random
from collections.abc import AsyncGenerator

import httpx
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from claude_web_proxy.api.dependencies import SettingsDep, verify_token
from claude_web_proxy.config.settings import Settings
from claude_web_proxy.core.logging import get_logger
from claude_web_proxy.exceptions import ClaudeWebProxyError, ConfigurationError
from claude_web_proxy.models.openai import (
    OpenAIChatCompletionRequest,
    OpenAIChatCompletionResponse,
    OpenAIModelsResponse,
)
from claude_web_proxy.services.conversation import ConversationManager
from claude_web_proxy.services.prompt import INLINE_CONTEXT_PROMPT, build_prompt
from claude_web_proxy.services.session_client import SessionClient
from claude_web_proxy.streaming.formatter import OpenAIStreamingFormatter
from claude_web_proxy.streaming.sink import AggregatedSink, StreamingSink


logger = get_logger(__name__)
router = APIRouter(dependencies=[Depends(verify_token)])

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def pick_session_key(settings: Settings) -> str:
    if not settings.backend.session_keys:
        raise ConfigurationError("No backend session keys configured")
    return random.choice(settings.backend.session_keys)


async def prepare_conversation(
    manager: ConversationManager,
    request: OpenAIChatCompletionRequest,
    settings: Settings,
) -> tuple[str, str]:
    """Resolve the tenant, stage attachments and create a conversation.

    Returns:
        Conversation id and the prompt to send
    """
    prompt = build_prompt(
        request.messages,
        no_role_prefix=settings.no_role_prefix,
        disable_artifacts=settings.prompt_disable_artifacts,
    )
    await manager.resolve_tenant()

    if prompt.images:
        await manager.upload_attachments(prompt.images)

    prompt_text = prompt.text
    if len(prompt_text) > settings.max_chat_history_length:
        logger.info("prompt_moved_to_inline_context", length=len(prompt_text))
        manager.set_inline_context(prompt_text)
        prompt_text = INLINE_CONTEXT_PROMPT

    conversation_id = await manager.create_conversation()
    return conversation_id, prompt_text


async def finish_conversation(
    manager: ConversationManager, conversation_id: str | None, settings: Settings
) -> None:
    """Delete the conversation when configured to, then release the session."""
    try:
        if conversation_id is not None and settings.chat_delete:
            try:
                await manager.delete_conversation(conversation_id)
            except (ClaudeWebProxyError, httpx.HTTPError) as e:
                logger.warning(
                    "conversation_delete_failed",
                    conversation_id=conversation_id,
                    error=str(e),
                )
    finally:
        await manager.session.close()


@router.get("/models")
async def list_models() -> OpenAIModelsResponse:
    """List models the backend can serve, with their reasoning variants."""
    return OpenAIModelsResponse.create_default()


@router.post("/chat/completions", response_model=None)
async def create_chat_completion(
    request: OpenAIChatCompletionRequest,
    http_request: Request,
    settings: SettingsDep,
) -> OpenAIChatCompletionResponse | StreamingResponse | Response:
    """
    Create a chat completion using OpenAI-compatible format.

    Errors raised before any output is produced are returned as OpenAI error
    responses with the matching status code; errors in the middle of a stream
    are reported as a final error chunk.
    """
    session = SessionClient.from_settings(
        settings, pick_session_key(settings), request.model
    )
    manager = ConversationManager(session)
    conversation_id: str | None = None
    try:
        conversation_id, prompt_text = await prepare_conversation(
            manager, request, settings
        )
        if request.stream:
            return await _stream_completion(
                manager, conversation_id, prompt_text, request, settings, http_request
            )

        sink = AggregatedSink(model=request.model)
        await manager.send_message(
            conversation_id, prompt_text, sink, http_request.is_disconnected
        )
    except Exception:
        await finish_conversation(manager, conversation_id, settings)
        raise

    await finish_conversation(manager, conversation_id, settings)
    if sink.response is None:
        # Client went away before the answer was complete
        return Response(status_code=204)
    return sink.response


async def _stream_completion(
    manager: ConversationManager,
    conversation_id: str,
    prompt_text: str,
    request: OpenAIChatCompletionRequest,
    settings: Settings,
    http_request: Request,
) -> StreamingResponse | Response:
    queue: asyncio.Queue[str | None] = asyncio.Queue()
    disconnected = asyncio.Event()
    sink = StreamingSink(queue.put, model=request.model)

    async def is_cancelled() -> bool:
        # The event is only set once the body has started streaming.
        return disconnected.is_set() or await http_request.is_disconnected()

    async def produce() -> None:
        try:
            await manager.send_message(conversation_id, prompt_text, sink, is_cancelled)
        finally:
            await queue.put(None)

    task = asyncio.create_task(produce())
    first = await queue.get()
    if first is None:
        # Nothing was produced: surface the failure with its status code.
        await task
        await finish_conversation(manager, conversation_id, settings)
        return Response(status_code=204)

    async def body() -> AsyncGenerator[str, None]:
        try:
            yield first
            while (item := await queue.get()) is not None:
                yield item
            await task
        except ClaudeWebProxyError as e:
            logger.error("stream_failed", error=str(e), error_type=e.error_type)
            yield OpenAIStreamingFormatter.format_error_chunk(
                sink.completion_id, sink.model, sink.created, e.error_type, e.message
            )
            yield OpenAIStreamingFormatter.format_done()
        finally:
            disconnected.set()
            if not task.done():
                task.cancel()

    return StreamingResponse(
        body(),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
        background=BackgroundTask(
            finish_conversation, manager, conversation_id, settings
        ),
    )
