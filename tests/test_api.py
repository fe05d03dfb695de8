"""End-to-end tests of the OpenAI-compatible API.

Requests go through the FastAPI app in-process; every backend call is answered
by pytest-httpx.
"""

import json
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.responses import StreamingResponse
from pytest_httpx import HTTPXMock

from claude_web_proxy import __version__
from claude_web_proxy.api.app import create_app
from claude_web_proxy.api.routes.openai import _stream_completion
from claude_web_proxy.config.settings import Settings
from claude_web_proxy.models.openai import OpenAIChatCompletionRequest
from claude_web_proxy.services.conversation import (
    ConversationManager,
    ConversationState,
)
from claude_web_proxy.services.prompt import INLINE_CONTEXT_PROMPT


ORGANIZATIONS_URL = "https://claude.ai/api/organizations"
CONVERSATIONS_URL = "https://claude.ai/api/organizations/org-0001/chat_conversations"
COMPLETION_URL = f"{CONVERSATIONS_URL}/conv-1/completion"
DELETE_URL = f"{CONVERSATIONS_URL}/conv-1"
UPLOAD_URL = "https://claude.ai/api/org-0001/upload"

STREAM_BODY = (
    b'data: {"type": "content_block_delta", "index": 0, '
    b'"delta": {"type": "text_delta", "text": "Hello"}}\n\n'
    b'data: {"type": "content_block_delta", "index": 0, '
    b'"delta": {"type": "text_delta", "text": " world"}}\n\n'
    b'data: {"type": "message_stop"}\n\n'
)

CHAT_REQUEST: dict[str, Any] = {
    "model": "claude-opus-4-20250514",
    "messages": [{"role": "user", "content": "Say hello"}],
    "temperature": 0.2,
}


def parse_sse(text: str) -> list[str]:
    return [block for block in text.split("\n\n") if block]


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_app(settings)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport, base_url="http://testserver"
    ) as client:
        yield client


@pytest.fixture
def mock_backend(mock_organizations: HTTPXMock) -> HTTPXMock:
    """Organization listing and conversation creation."""
    mock_organizations.add_response(
        method="POST", url=CONVERSATIONS_URL, status_code=201, json={"uuid": "conv-1"}
    )
    return mock_organizations


def add_completion(
    httpx_mock: HTTPXMock,
    *,
    content: bytes = STREAM_BODY,
    status_code: int = 200,
    delete: bool = True,
) -> None:
    httpx_mock.add_response(
        method="POST", url=COMPLETION_URL, status_code=status_code, content=content
    )
    if delete:
        httpx_mock.add_response(method="DELETE", url=DELETE_URL, status_code=204)


def completion_body(httpx_mock: HTTPXMock) -> dict[str, Any]:
    request = httpx_mock.get_request(method="POST", url=COMPLETION_URL)
    assert request is not None
    return json.loads(request.content)


@pytest.mark.integration
class TestHealthAndModels:
    """Test endpoints that never reach the backend."""

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "pass", "version": __version__}

    async def test_models(self, client):
        response = await client.get("/v1/models")

        assert response.status_code == 200
        data = response.json()
        assert data["object"] == "list"
        ids = {model["id"] for model in data["data"]}
        assert "claude-sonnet-4-20250514" in ids
        assert "claude-sonnet-4-20250514-think" in ids


@pytest.mark.integration
class TestAuthentication:
    """Test bearer token checks."""

    @pytest.fixture
    def settings(self, settings: Settings) -> Settings:
        settings.api_key = "secret-token"
        return settings

    async def test_missing_token(self, client):
        response = await client.get("/v1/models")

        assert response.status_code == 401
        assert response.json()["detail"]["error"]["type"] == "authentication_error"

    async def test_invalid_token(self, client):
        response = await client.get(
            "/v1/models", headers={"Authorization": "Bearer wrong"}
        )
        assert response.status_code == 401

    async def test_valid_token(self, client):
        response = await client.get(
            "/v1/models", headers={"Authorization": "Bearer secret-token"}
        )
        assert response.status_code == 200

    async def test_health_is_public(self, client):
        response = await client.get("/health")
        assert response.status_code == 200


@pytest.mark.integration
class TestChatCompletions:
    """Test non-streaming chat completions."""

    async def test_completion(self, client, mock_backend: HTTPXMock):
        add_completion(mock_backend)

        response = await client.post("/v1/chat/completions", json=CHAT_REQUEST)

        assert response.status_code == 200
        data = response.json()
        assert data["object"] == "chat.completion"
        assert data["id"].startswith("chatcmpl-")
        assert data["model"] == "claude-opus-4-20250514"
        assert data["choices"][0]["message"] == {
            "role": "assistant",
            "content": "Hello world",
        }
        assert data["choices"][0]["finish_reason"] == "stop"
        assert data["usage"]["total_tokens"] == 0

        body = completion_body(mock_backend)
        assert body["prompt"] == "Human: Say hello"
        assert body["model"] == "claude-opus-4-20250514"
        assert mock_backend.get_request(method="DELETE") is not None

    async def test_keep_conversation(self, client, settings, mock_backend):
        settings.chat_delete = False
        add_completion(mock_backend, delete=False)

        response = await client.post("/v1/chat/completions", json=CHAT_REQUEST)

        assert response.status_code == 200
        assert mock_backend.get_requests(method="DELETE") == []

    async def test_in_band_error_is_returned_as_content(self, client, mock_backend):
        add_completion(
            mock_backend,
            content=b'data: {"type": "error", "error": {"message": "Overloaded"}}\n\n',
        )

        response = await client.post("/v1/chat/completions", json=CHAT_REQUEST)

        assert response.status_code == 200
        assert response.json()["choices"][0]["message"]["content"] == "Overloaded"

    async def test_rate_limited(self, client, mock_backend):
        add_completion(mock_backend, status_code=429, content=b"")

        response = await client.post("/v1/chat/completions", json=CHAT_REQUEST)

        assert response.status_code == 429
        assert response.json()["error"]["type"] == "rate_limit_error"
        assert mock_backend.get_request(method="DELETE") is not None

    async def test_backend_failure(self, client, mock_backend):
        add_completion(mock_backend, status_code=503, content=b"unavailable")

        response = await client.post("/v1/chat/completions", json=CHAT_REQUEST)

        assert response.status_code == 502
        error = response.json()["error"]
        assert error["type"] == "backend_protocol_error"
        assert "503" in error["message"]

    async def test_tenant_failure(self, client, httpx_mock: HTTPXMock):
        httpx_mock.add_response(url=ORGANIZATIONS_URL, json=[])

        response = await client.post("/v1/chat/completions", json=CHAT_REQUEST)

        assert response.status_code == 502
        assert response.json()["error"]["message"] == "No organizations found"

    async def test_no_session_keys(self, client, settings):
        settings.backend.session_keys = []

        response = await client.post("/v1/chat/completions", json=CHAT_REQUEST)

        assert response.status_code == 500
        assert response.json()["error"]["type"] == "configuration_error"

    async def test_invalid_request(self, client):
        response = await client.post(
            "/v1/chat/completions", json={"model": "x", "messages": []}
        )
        assert response.status_code == 422

    async def test_long_prompt_moves_to_inline_context(
        self, client, settings, mock_backend
    ):
        settings.max_chat_history_length = 10
        add_completion(mock_backend)

        response = await client.post("/v1/chat/completions", json=CHAT_REQUEST)

        assert response.status_code == 200
        body = completion_body(mock_backend)
        assert body["prompt"] == INLINE_CONTEXT_PROMPT
        assert body["attachments"][0]["file_name"] == "context.txt"
        assert body["attachments"][0]["extracted_content"] == "Human: Say hello"

    async def test_images_are_uploaded(self, client, mock_backend):
        mock_backend.add_response(
            method="POST", url=UPLOAD_URL, json={"file_uuid": "file-1"}
        )
        add_completion(mock_backend)
        request = {
            "model": "claude-opus-4-20250514",
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": "Describe"},
                        {
                            "type": "image_url",
                            "image_url": {"url": "data:image/png;base64,QUJD"},
                        },
                    ],
                }
            ],
        }

        response = await client.post("/v1/chat/completions", json=request)

        assert response.status_code == 200
        body = completion_body(mock_backend)
        assert body["files"] == ["file-1"]
        assert body["prompt"] == "Human: Describe"

    async def test_malformed_image_is_rejected(self, client, mock_organizations):
        request = {
            "model": "claude-opus-4-20250514",
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image_url",
                            "image_url": {"url": "data:image/png;utf8,abc"},
                        }
                    ],
                }
            ],
        }

        response = await client.post("/v1/chat/completions", json=request)

        assert response.status_code == 400
        assert response.json()["error"]["type"] == "invalid_request_error"


@pytest.mark.integration
class TestStreamingChatCompletions:
    """Test streaming chat completions."""

    async def test_stream(self, client, mock_backend):
        add_completion(mock_backend)

        response = await client.post(
            "/v1/chat/completions", json={**CHAT_REQUEST, "stream": True}
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = parse_sse(response.text)
        assert events[-1] == "data: [DONE]"

        chunks = [json.loads(e.removeprefix("data: ")) for e in events[:-1]]
        assert chunks[0]["choices"][0]["delta"]["role"] == "assistant"
        content = "".join(c["choices"][0]["delta"].get("content", "") for c in chunks)
        assert content == "Hello world"
        assert chunks[-1]["choices"][0]["finish_reason"] == "stop"
        assert len({c["id"] for c in chunks}) == 1
        assert mock_backend.get_request(method="DELETE") is not None

    async def test_stream_in_band_error(self, client, mock_backend):
        add_completion(
            mock_backend,
            content=(
                b'data: {"type": "content_block_delta", '
                b'"delta": {"type": "text_delta", "text": "Hi"}}\n\n'
                b'data: {"type": "error", "error": {"message": "Overloaded"}}\n\n'
            ),
        )

        response = await client.post(
            "/v1/chat/completions", json={**CHAT_REQUEST, "stream": True}
        )

        events = parse_sse(response.text)
        chunks = [json.loads(e.removeprefix("data: ")) for e in events[:-1]]
        contents = [c["choices"][0]["delta"].get("content") for c in chunks]
        assert contents[1:3] == ["Hi", "Overloaded"]
        assert events.count("data: [DONE]") == 1

    async def test_stream_rate_limited_before_output(self, client, mock_backend):
        add_completion(mock_backend, status_code=429, content=b"")

        response = await client.post(
            "/v1/chat/completions", json={**CHAT_REQUEST, "stream": True}
        )

        assert response.status_code == 429
        assert response.json()["error"]["type"] == "rate_limit_error"
        assert mock_backend.get_request(method="DELETE") is not None

    async def test_stream_client_gone_before_output(
        self, settings, resolved_session, mock_backend
    ):
        add_completion(mock_backend)
        manager = ConversationManager(resolved_session)
        conversation_id = await manager.create_conversation()

        class DisconnectedRequest:
            async def is_disconnected(self) -> bool:
                return True

        response = await _stream_completion(
            manager,
            conversation_id,
            "Say hello",
            OpenAIChatCompletionRequest(**{**CHAT_REQUEST, "stream": True}),
            settings,
            DisconnectedRequest(),
        )

        assert not isinstance(response, StreamingResponse)
        assert response.status_code == 204
        assert manager.state is ConversationState.DELETED
