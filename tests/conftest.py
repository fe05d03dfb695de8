"""Shared fixtures for claude_web_proxy tests.

The backend is never contacted: every outbound call is answered by
pytest-httpx, and the API is exercised in-process through ASGITransport.
"""

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from pytest_httpx import HTTPXMock

from claude_web_proxy.config.backend import BackendSettings
from claude_web_proxy.config.http import HTTPSettings
from claude_web_proxy.config.settings import Settings
from claude_web_proxy.models.session import ReasoningMode
from claude_web_proxy.services.session_client import SessionClient


BACKEND_URL = "https://claude.ai"
TENANT_ID = "org-0001"
TEST_MODEL = "claude-opus-4-20250514"


@pytest.fixture
def backend_url() -> str:
    return BACKEND_URL


@pytest.fixture
def tenant_id() -> str:
    return TENANT_ID


@pytest.fixture
def settings() -> Settings:
    """Settings with one session key and the reasoning setting known to be off."""
    return Settings(
        _env_file=None,
        backend=BackendSettings(
            base_url=BACKEND_URL,
            session_keys=["sk-ant-test"],
            default_reasoning_mode=ReasoningMode.OFF,
        ),
        http=HTTPSettings(http2=False, proxy=None),
    )


@pytest_asyncio.fixture
async def http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(base_url=BACKEND_URL) as client:
        yield client


@pytest.fixture
def session(http_client: httpx.AsyncClient) -> SessionClient:
    """Session for a non-default model with reasoning already off."""
    return SessionClient(http_client, TEST_MODEL, ReasoningMode.OFF)


@pytest.fixture
def mock_organizations(httpx_mock: HTTPXMock) -> HTTPXMock:
    """Organization listing with a single tenant."""
    httpx_mock.add_response(
        method="GET",
        url=f"{BACKEND_URL}/api/organizations",
        json=[
            {
                "uuid": TENANT_ID,
                "name": "Personal",
                "rate_limit_tier": "default_claude_ai",
            }
        ],
    )
    return httpx_mock


@pytest_asyncio.fixture
async def resolved_session(
    session: SessionClient, mock_organizations: HTTPXMock
) -> SessionClient:
    await session.resolve_tenant()
    return session
