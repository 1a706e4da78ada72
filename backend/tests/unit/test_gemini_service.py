"""
Unit tests for GeminiReplyService.

The genai client is replaced through `client_factory`; no network calls.
"""

from unittest.mock import MagicMock

import pytest

from chatdesk.domain.models import UserRole
from chatdesk.infrastructure.ai.gemini_service import GeminiReplyService
from chatdesk.infrastructure.db.models.settings import DEFAULT_AI_NAME
from chatdesk.infrastructure.exceptions import (
    AIServiceError,
    ConfigurationError,
    RateLimitError,
)


@pytest.fixture
def genai_client():
    client = MagicMock()
    client.models.generate_content.return_value = MagicMock(text="  سلام، بله موجود است  ")
    return client


@pytest.fixture
def client_factory(genai_client):
    return MagicMock(return_value=genai_client)


@pytest.fixture
def service(storage, client_factory):
    return GeminiReplyService(storage, model="gemini-test", client_factory=client_factory)


class TestIsActive:

    @pytest.mark.asyncio
    async def test_no_settings(self, service):
        assert await service.is_active() is False

    @pytest.mark.asyncio
    async def test_inactive_token(self, service, storage):
        storage.set_ai_token("key", is_active=False)
        assert await service.is_active() is False

    @pytest.mark.asyncio
    async def test_blank_token(self, service, storage):
        storage.set_ai_token("   ")
        assert await service.is_active() is False

    @pytest.mark.asyncio
    async def test_active(self, service, storage):
        storage.set_ai_token("key")
        assert await service.is_active() is True


class TestResolveAiName:
    """Tenant override, then global settings, then the default."""

    @pytest.mark.asyncio
    async def test_default(self, service):
        assert await service.resolve_ai_name() == DEFAULT_AI_NAME

    @pytest.mark.asyncio
    async def test_global_setting(self, service, storage):
        storage.set_whatsapp_token("tok").ai_name = "Nova"
        assert await service.resolve_ai_name() == "Nova"

    @pytest.mark.asyncio
    async def test_tenant_override(self, service, storage):
        storage.set_whatsapp_token("tok").ai_name = "Nova"
        tenant = storage.add_user("shop", role=UserRole.LEVEL_1, ai_name="Sara")
        assert await service.resolve_ai_name(tenant.id) == "Sara"


class TestGenerateReply:

    @pytest.mark.asyncio
    async def test_identity_question_skips_model(self, service, storage, client_factory):
        """Name questions are answered even without an AI token."""
        reply = await service.generate_reply("اسمت چیه؟")

        assert reply == DEFAULT_AI_NAME
        client_factory.assert_not_called()

    @pytest.mark.asyncio
    async def test_identity_question_uses_tenant_name(self, service, storage):
        tenant = storage.add_user("shop", role=UserRole.LEVEL_1, ai_name="Sara")
        assert await service.generate_reply("who are you?", tenant.id) == "Sara"

    @pytest.mark.asyncio
    async def test_not_configured(self, service):
        with pytest.raises(ConfigurationError):
            await service.generate_reply("قیمت چنده؟")

    @pytest.mark.asyncio
    async def test_reply_generated(self, service, storage, genai_client, client_factory):
        storage.set_ai_token(" key ")

        reply = await service.generate_reply("این محصول موجوده؟")

        assert reply == "سلام، بله موجود است"
        client_factory.assert_called_once_with("key")
        kwargs = genai_client.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert "این محصول موجوده؟" in kwargs["contents"]
        assert "Persian" in kwargs["contents"]
        assert "20 words" in kwargs["contents"]

    @pytest.mark.asyncio
    async def test_empty_response(self, service, storage, genai_client):
        storage.set_ai_token("key")
        genai_client.models.generate_content.return_value = MagicMock(text=None)

        assert await service.generate_reply("hello") == ""

    @pytest.mark.asyncio
    async def test_client_rebuilt_when_token_changes(self, service, storage, client_factory):
        storage.set_ai_token("key-1")
        await service.generate_reply("hello")
        await service.generate_reply("hello again")
        assert client_factory.call_count == 1

        storage.set_ai_token("key-2")
        await service.generate_reply("hello")
        assert client_factory.call_count == 2

    @pytest.mark.asyncio
    async def test_quota_error(self, service, storage, genai_client):
        storage.set_ai_token("key")
        genai_client.models.generate_content.side_effect = Exception("429 RESOURCE_EXHAUSTED: quota exceeded")

        with pytest.raises(RateLimitError):
            await service.generate_reply("hello")

    @pytest.mark.asyncio
    async def test_other_error(self, service, storage, genai_client):
        storage.set_ai_token("key")
        genai_client.models.generate_content.side_effect = Exception("500 INTERNAL")

        with pytest.raises(AIServiceError) as exc_info:
            await service.generate_reply("hello")

        assert not isinstance(exc_info.value, RateLimitError)
