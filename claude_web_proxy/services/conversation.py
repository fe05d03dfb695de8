"""Conversation lifecycle against the backend.

The manager walks one session through tenant resolution, conversation
creation, completions and deletion, and keeps the account-level reasoning
setting in line with the requested model.
"""

import uuid
from enum import Enum
from typing import Any

import httpx

from claude_web_proxy.core.logging import get_logger
from claude_web_proxy.exceptions import (
    ClaudeWebProxyError,
    ConfigurationError,
    MissingIdentifier,
    UnknownSettingKey,
)
from claude_web_proxy.models.openai import THINK_SUFFIX
from claude_web_proxy.models.session import ReasoningMode
from claude_web_proxy.services.session_client import (
    DEFAULT_MODEL_SENTINEL,
    SessionClient,
)
from claude_web_proxy.streaming.sink import OutputSink
from claude_web_proxy.streaming.translator import (
    CancellationCheck,
    EventStreamTranslator,
)


logger = get_logger(__name__)

REASONING_SETTING_KEY = "paprika_mode"
ACCOUNT_SETTINGS_PATH = "/api/account?statsig_hashing_algorithm=djb2"

# The account endpoint replaces the whole settings object on every update, so
# every known key is sent with an inert default and one key overlaid.
DEFAULT_ACCOUNT_SETTINGS: dict[str, Any] = {
    "input_menu_pinned_items": None,
    "has_seen_mm_examples": None,
    "has_seen_starter_prompts": None,
    "has_started_claudeai_onboarding": True,
    "has_finished_claudeai_onboarding": True,
    "dismissed_claudeai_banners": [],
    "dismissed_artifacts_announcement": None,
    "preview_feature_uses_artifacts": False,
    "preview_feature_uses_latex": None,
    "preview_feature_uses_citations": None,
    "preview_feature_uses_harmony": None,
    "enabled_artifacts_attachments": False,
    "enabled_turmeric": None,
    "enable_chat_suggestions": None,
    "dismissed_artifact_feedback_form": None,
    "enabled_mm_pdfs": None,
    "enabled_gdrive": None,
    "enabled_bananagrams": None,
    "enabled_gdrive_indexing": None,
    "enabled_web_search": True,
    "enabled_compass": None,
    "enabled_sourdough": None,
    "enabled_foccacia": None,
    "dismissed_claude_code_spotlight": None,
    "enabled_geolocation": None,
    "enabled_mcp_tools": None,
    "paprika_mode": None,
    "enabled_monkeys_in_a_barrel": None,
}


class ConversationState(str, Enum):
    UNINITIALIZED = "uninitialized"
    TENANT_RESOLVED = "tenant_resolved"
    CONVERSATION_CREATED = "conversation_created"
    COMPLETING = "completing"
    DELETED = "deleted"


def build_account_settings(key: str, value: Any) -> dict[str, Any]:
    """Full settings object with ``key`` overlaid on the defaults.

    Raises:
        UnknownSettingKey: ``key`` is not a known account setting
    """
    if key not in DEFAULT_ACCOUNT_SETTINGS:
        raise UnknownSettingKey(key)
    settings = {
        name: list(default) if isinstance(default, list) else default
        for name, default in DEFAULT_ACCOUNT_SETTINGS.items()
    }
    settings[key] = value
    return settings


class ConversationManager:
    """Drives one session through the conversation lifecycle."""

    def __init__(self, session: SessionClient) -> None:
        self.session = session
        self.state = ConversationState.UNINITIALIZED
        self.conversation_id: str | None = None
        if session.tenant_id is not None:
            self.state = ConversationState.TENANT_RESOLVED

    async def resolve_tenant(self) -> str:
        tenant_id = await self.session.resolve_tenant()
        if self.state is ConversationState.UNINITIALIZED:
            self.state = ConversationState.TENANT_RESOLVED
        return tenant_id

    async def update_account_setting(self, key: str, value: Any) -> None:
        """Replace the account settings object with ``key`` set to ``value``.

        Raises:
            UnknownSettingKey: before any network call
            UnexpectedStatus: backend did not answer 200/202
        """
        settings = build_account_settings(key, value)
        logger.info("account_setting_update", key=key, value=value)
        await self.session.request(
            "PUT",
            ACCOUNT_SETTINGS_PATH,
            expected=(200, 202),
            json={"settings": settings},
            headers={
                "cache-control": "no-cache",
                "pragma": "no-cache",
            },
        )

    async def _sync_reasoning_mode(self) -> None:
        """Match the account reasoning setting to the model suffix, best effort."""
        session = self.session
        if session.model.endswith(THINK_SUFFIX):
            session.model = session.model.removesuffix(THINK_SUFFIX)
            wanted, value = ReasoningMode.EXTENDED, "extended"
        else:
            wanted, value = ReasoningMode.OFF, None

        if session.reasoning_mode is wanted:
            return
        try:
            await self.update_account_setting(REASONING_SETTING_KEY, value)
        except (ClaudeWebProxyError, httpx.HTTPError) as e:
            logger.error(
                "reasoning_mode_update_failed",
                wanted=wanted.value,
                error=str(e),
            )
            return
        session.reasoning_mode = wanted

    async def create_conversation(self) -> str:
        """Create a backend conversation and return its id.

        Raises:
            TenantNotSet: tenant not resolved
            ConfigurationError: a completion is running
            UnexpectedStatus: backend did not answer 201
            MissingIdentifier: response carries no conversation uuid
        """
        tenant_id = self.session.require_tenant()
        if self.state is ConversationState.COMPLETING:
            raise ConfigurationError("A completion is already in progress")
        await self._sync_reasoning_mode()

        body: dict[str, Any] = {
            "model": self.session.model,
            "uuid": str(uuid.uuid4()),
            "name": "",
            "include_conversation_preferences": True,
        }
        if self.session.model == DEFAULT_MODEL_SENTINEL:
            del body["model"]

        response = await self.session.request(
            "POST",
            f"/api/organizations/{tenant_id}/chat_conversations",
            expected=(201,),
            json=body,
        )
        payload = self.session.decode_json(response)
        conversation_id = payload.get("uuid") if isinstance(payload, dict) else None
        if not isinstance(conversation_id, str) or not conversation_id:
            raise MissingIdentifier("uuid")

        self.conversation_id = conversation_id
        self.state = ConversationState.CONVERSATION_CREATED
        logger.info(
            "conversation_created",
            conversation_id=conversation_id,
            model=self.session.model,
        )
        return conversation_id

    async def send_message(
        self,
        conversation_id: str,
        prompt: str,
        sink: OutputSink,
        is_cancelled: CancellationCheck | None = None,
    ) -> None:
        """Send ``prompt`` and translate the streamed answer into ``sink``.

        Raises:
            TenantNotSet: tenant not resolved
            ConfigurationError: a completion is already running
                or no live conversation exists
            RateLimited: backend answered 429
            UnexpectedStatus: backend answered anything but 200
            StreamTranslationError: reading the stream failed
        """
        self.session.require_tenant()
        if self.state is ConversationState.COMPLETING:
            raise ConfigurationError("A completion is already in progress")
        if self.state is ConversationState.DELETED:
            raise ConfigurationError("Conversation has been deleted")
        if self.state is not ConversationState.CONVERSATION_CREATED:
            raise ConfigurationError("No conversation has been created")

        logger.info(
            "message_sending",
            conversation_id=conversation_id,
            streaming=sink.streaming,
        )
        previous = self.state
        self.state = ConversationState.COMPLETING
        try:
            async with self.session.open_completion(
                conversation_id, prompt
            ) as response:
                translator = EventStreamTranslator(
                    log_lines=self.session.log_stream_lines
                )
                await translator.translate(response.aiter_lines(), sink, is_cancelled)
        finally:
            self.state = previous

    async def delete_conversation(self, conversation_id: str) -> None:
        """Delete a conversation; not retried on failure.

        Raises:
            TenantNotSet: tenant not resolved
            UnexpectedStatus: backend answered anything but 200/204
        """
        tenant_id = self.session.require_tenant()
        await self.session.request(
            "DELETE",
            f"/api/organizations/{tenant_id}/chat_conversations/{conversation_id}",
            expected=(200, 204),
            referer=self.session.referer(conversation_id),
            json={"uuid": conversation_id},
        )
        if conversation_id == self.conversation_id:
            self.state = ConversationState.DELETED
        logger.info("conversation_deleted", conversation_id=conversation_id)

    async def upload_attachments(self, data_uris: list[str]) -> list[str]:
        return await self.session.upload_attachments(data_uris)

    def set_inline_context(self, text: str) -> None:
        self.session.set_inline_context(text)
