"""Backend session client: identity, request shaping and raw backend calls."""

import asyncio
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from typing import Any

import httpx

from claude_web_proxy.config.settings import Settings
from claude_web_proxy.core.http_client import HTTPClientFactory
from claude_web_proxy.core.logging import get_logger
from claude_web_proxy.exceptions import (
    AmbiguousTenant,
    BackendProtocolError,
    InputValidationError,
    MissingIdentifier,
    NoTenantFound,
    RateLimited,
    TenantNotSet,
    UnexpectedStatus,
)
from claude_web_proxy.models.session import (
    InlineAttachment,
    Organization,
    ReasoningMode,
    RequestAttributes,
)
from claude_web_proxy.services.attachments import parse_data_uri


logger = get_logger(__name__)

# Requests for this model omit the model field so the backend picks its default.
DEFAULT_MODEL_SENTINEL = "claude-sonnet-4-20250514"
DEFAULT_TENANT_TIER = "default_claude_ai"


class SessionClient:
    """
    One authenticated backend session.

    Owns the tenant id (resolved once), the model and reasoning-mode selection,
    and the default request attributes merged into every completion. A session
    handles one completion at a time; concurrent callers are serialized on an
    internal lock.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        model: str,
        reasoning_mode: ReasoningMode = ReasoningMode.UNSET,
        attributes: RequestAttributes | None = None,
        *,
        owns_client: bool = False,
        log_stream_lines: bool = False,
    ) -> None:
        """
        Initialize the session.

        Args:
            client: HTTP client carrying the session cookies and base URL
            model: Requested model id, possibly with a reasoning suffix
            reasoning_mode: Known state of the account reasoning setting
            attributes: Default request attributes (fresh defaults if omitted)
            owns_client: Close ``client`` when the session is closed
            log_stream_lines: Log raw stream lines at DEBUG level
        """
        self.client = client
        self.model = model
        self.reasoning_mode = reasoning_mode
        self.attributes = attributes or RequestAttributes()
        self.log_stream_lines = log_stream_lines
        self._owns_client = owns_client
        self._tenant_id: str | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls, settings: Settings, session_key: str, model: str
    ) -> "SessionClient":
        """Create a session with its own configured HTTP client."""
        client = HTTPClientFactory.create_client(settings, session_key)
        return cls(
            client,
            model,
            settings.backend.default_reasoning_mode,
            owns_client=True,
            log_stream_lines=settings.logging.log_stream_lines,
        )

    @property
    def base_url(self) -> str:
        return str(self.client.base_url).rstrip("/")

    @property
    def tenant_id(self) -> str | None:
        return self._tenant_id

    def require_tenant(self) -> str:
        if self._tenant_id is None:
            raise TenantNotSet()
        return self._tenant_id

    def referer(self, conversation_id: str | None = None) -> str:
        if conversation_id is None:
            return f"{self.base_url}/new"
        return f"{self.base_url}/chat/{conversation_id}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        expected: Iterable[int] = (200,),
        referer: str | None = None,
        headers: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a non-streaming backend request and check its status.

        Raises:
            BackendProtocolError: the request could not be sent
            UnexpectedStatus: status not in ``expected``
        """
        request_headers = {"referer": referer or self.referer()}
        request_headers.update(headers or {})
        try:
            response = await self.client.request(
                method, path, headers=request_headers, **kwargs
            )
        except httpx.HTTPError as e:
            raise BackendProtocolError(f"Request failed: {e}") from e

        if response.status_code not in set(expected):
            logger.warning(
                "backend_unexpected_status",
                method=method,
                path=path,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise UnexpectedStatus(response.status_code, response.text[:500])
        return response

    @staticmethod
    def decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise BackendProtocolError(f"Failed to parse response: {e}") from e

    async def resolve_tenant(self) -> str:
        """Resolve and cache the organization id this session acts for.

        Raises:
            NoTenantFound: the listing is empty
            AmbiguousTenant: several records, none on the default tier
            UnexpectedStatus: listing request was not answered with 200
        """
        if self._tenant_id is not None:
            return self._tenant_id

        response = await self.request("GET", "/api/organizations")
        payload = self.decode_json(response)
        if not isinstance(payload, list):
            raise BackendProtocolError("Failed to parse response: expected a list")
        try:
            organizations = [Organization.model_validate(item) for item in payload]
        except ValueError as e:
            raise BackendProtocolError(f"Failed to parse response: {e}") from e

        self._tenant_id = self.select_tenant(organizations)
        logger.info(
            "tenant_resolved",
            tenant_id=self._tenant_id,
            candidates=len(organizations),
        )
        return self._tenant_id

    @staticmethod
    def select_tenant(organizations: list[Organization]) -> str:
        if not organizations:
            raise NoTenantFound()
        if len(organizations) == 1:
            return organizations[0].uuid
        for organization in organizations:
            if organization.rate_limit_tier == DEFAULT_TENANT_TIER:
                return organization.uuid
        raise AmbiguousTenant()

    def build_completion_request(self, prompt: str) -> dict[str, Any]:
        """Merge the default attributes with the prompt; does not mutate state."""
        body = self.attributes.model_dump(mode="json")
        body["prompt"] = prompt
        if self.model != DEFAULT_MODEL_SENTINEL:
            body["model"] = self.model
        return body

    async def add_attachment_from_data_uri(self, data_uri: str) -> str:
        """Upload a base64 data URI and reference it in subsequent completions.

        Returns:
            The backend file reference

        Raises:
            TenantNotSet: tenant not resolved
            MalformedAttachment: data URI lacks scheme, content type or comma
            InvalidEncoding: payload is not valid base64
            UnexpectedStatus / MissingIdentifier: upload rejected
        """
        tenant_id = self.require_tenant()
        attachment = parse_data_uri(data_uri)

        async with self._lock:
            response = await self.request(
                "POST",
                f"/api/{tenant_id}/upload",
                files={
                    "file": (
                        attachment.filename,
                        attachment.data,
                        attachment.content_type,
                    )
                },
            )
            payload = self.decode_json(response)
            file_uuid = payload.get("file_uuid") if isinstance(payload, dict) else None
            if not file_uuid:
                raise MissingIdentifier("file_uuid")
            self.attributes.files.append(file_uuid)

        logger.info(
            "attachment_uploaded",
            file_uuid=file_uuid,
            filename=attachment.filename,
            size=len(attachment.data),
        )
        return str(file_uuid)

    async def upload_attachments(self, data_uris: list[str]) -> list[str]:
        """Upload several data URIs in order, skipping empty entries."""
        if not data_uris:
            raise InputValidationError("Empty file data")
        references = []
        for data_uri in data_uris:
            if not data_uri:
                continue
            references.append(await self.add_attachment_from_data_uri(data_uri))
        return references

    def set_inline_context(self, text: str) -> None:
        """Replace all attachments with one synthetic text attachment."""
        self.attributes.attachments = [InlineAttachment.from_text(text)]
        logger.debug("inline_context_set", size=len(text))

    @asynccontextmanager
    async def open_completion(
        self, conversation_id: str, prompt: str
    ) -> AsyncIterator[httpx.Response]:
        """Open the streaming completion call; the body is closed on exit.

        Raises:
            TenantNotSet: tenant not resolved
            RateLimited: backend answered 429
            UnexpectedStatus: any other non-200 status
        """
        tenant_id = self.require_tenant()
        async with self._lock:
            body = self.build_completion_request(prompt)
            request = self.client.build_request(
                "POST",
                f"/api/organizations/{tenant_id}/chat_conversations/"
                f"{conversation_id}/completion",
                json=body,
                headers={
                    "referer": self.referer(conversation_id),
                    "accept": "text/event-stream, text/event-stream",
                    "cache-control": "no-cache",
                },
            )
            try:
                response = await self.client.send(request, stream=True)
            except httpx.HTTPError as e:
                raise BackendProtocolError(f"Request failed: {e}") from e

            try:
                logger.info(
                    "completion_response_status",
                    conversation_id=conversation_id,
                    status_code=response.status_code,
                )
                if response.status_code == 429:
                    raise RateLimited()
                if response.status_code != 200:
                    error_body = (await response.aread()).decode(
                        "utf-8", errors="replace"
                    )
                    logger.error(
                        "completion_failed",
                        conversation_id=conversation_id,
                        status_code=response.status_code,
                        body=error_body[:500],
                    )
                    raise UnexpectedStatus(response.status_code, error_body[:500])
                yield response
            finally:
                await response.aclose()

    async def close(self) -> None:
        """Close the underlying client if this session created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> "SessionClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
