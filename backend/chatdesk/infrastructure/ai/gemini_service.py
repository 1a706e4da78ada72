"""
Gemini Reply Service for ChatDesk

Short WhatsApp replies generated with the google.genai SDK.

The API token is not an environment variable: admins paste it into the
dashboard, so it is read from the `ai_token_settings` row on every call and
the SDK client is rebuilt whenever the token changes.

Questions about the assistant's name are answered from settings without
calling the model.
"""

import asyncio
import logging
from typing import Callable, Optional
from uuid import UUID

from google import genai
from google.genai import types

from chatdesk.domain.identity_questions import is_identity_question
from chatdesk.infrastructure.db.gateway import StorageGateway
from chatdesk.infrastructure.db.models.settings import DEFAULT_AI_NAME
from chatdesk.infrastructure.exceptions import (
    AIServiceError,
    ConfigurationError,
    RateLimitError,
)


logger = logging.getLogger(__name__)


class GeminiReplyService:
    """
    Generative reply service backed by Gemini.

    Args:
        storage: Gateway used to read AI/messaging settings and tenant overrides
        model: Gemini model name
        language: Language replies must be written in
        word_budget: Maximum words requested from the model
        default_ai_name: Display name used when nothing is configured
        client_factory: Builds a genai client from an API key (tests inject fakes)
    """

    TEMPERATURE = 0.7
    MAX_OUTPUT_TOKENS = 256

    def __init__(
        self,
        storage: StorageGateway,
        model: str = "gemini-2.0-flash",
        language: str = "Persian",
        word_budget: int = 20,
        default_ai_name: str = DEFAULT_AI_NAME,
        client_factory: Optional[Callable[[str], genai.Client]] = None,
    ):
        self._storage = storage
        self._model = model
        self._language = language
        self._word_budget = word_budget
        self._default_ai_name = default_ai_name
        self._client_factory = client_factory or (lambda api_key: genai.Client(api_key=api_key))
        self._client: Optional[genai.Client] = None
        self._client_token: Optional[str] = None

    @property
    def model(self) -> str:
        return self._model

    async def is_active(self) -> bool:
        """Active only when a token is stored and marked active."""
        ai_settings = await self._storage.get_ai_settings()
        return bool(ai_settings and ai_settings.is_usable)

    def _get_client(self, token: str) -> genai.Client:
        if self._client is None or token != self._client_token:
            self._client = self._client_factory(token)
            self._client_token = token
            logger.info(f"[GEMINI] Client initialized with model: {self._model}")
        return self._client

    async def resolve_ai_name(self, tenant_id: Optional[UUID] = None) -> str:
        """
        Display name the assistant introduces itself with.

        Tenant override first, then the global messaging settings, then the
        built-in default.
        """
        if tenant_id is not None:
            tenant = await self._storage.get_user(tenant_id)
            if tenant and tenant.ai_name and tenant.ai_name.strip():
                return tenant.ai_name.strip()

        whatsapp_settings = await self._storage.get_whatsapp_settings()
        if whatsapp_settings and whatsapp_settings.ai_name and whatsapp_settings.ai_name.strip():
            return whatsapp_settings.ai_name.strip()

        return self._default_ai_name

    def build_prompt(self, message: str, ai_name: str) -> str:
        return (
            f'You are "{ai_name}", the WhatsApp assistant of an online shop.\n'
            f"Reply to the customer message below in {self._language}.\n"
            f"- Use at most {self._word_budget} words.\n"
            "- Be polite and direct.\n"
            "- No greeting preamble, no explanations, do not repeat the question.\n"
            "\n"
            f"Customer message:\n{message}"
        )

    async def generate_reply(self, message: str, tenant_id: Optional[UUID] = None) -> str:
        """
        Produce a reply for an inbound message.

        Returns:
            Reply text, or an empty string when the model produced nothing

        Raises:
            ConfigurationError: no usable AI token
            RateLimitError: Gemini quota exhausted
            AIServiceError: any other Gemini failure
        """
        ai_name = await self.resolve_ai_name(tenant_id)

        if is_identity_question(message):
            logger.info("[GEMINI] Identity question answered from settings")
            return ai_name

        ai_settings = await self._storage.get_ai_settings()
        if not ai_settings or not ai_settings.is_usable:
            raise ConfigurationError(
                "AI token is not configured or inactive",
                missing_keys=["ai_token_settings.token"],
            )

        client = self._get_client(ai_settings.token.strip())
        prompt = self.build_prompt(message, ai_name)

        try:
            response = await asyncio.to_thread(
                lambda: client.models.generate_content(
                    model=self._model,
                    contents=prompt,
                    config=types.GenerateContentConfig(
                        temperature=self.TEMPERATURE,
                        max_output_tokens=self.MAX_OUTPUT_TOKENS,
                    ),
                )
            )
        except Exception as e:
            error_msg = str(e).lower()

            if "rate" in error_msg or "quota" in error_msg:
                raise RateLimitError(
                    "Gemini API rate limit exceeded",
                    original_error=e
                ) from e

            raise AIServiceError(
                f"Gemini reply generation failed: {e}",
                model=self._model,
                operation="generate_reply",
                original_error=e
            ) from e

        return (response.text or "").strip()
