"""
Application Context

Builds the service graph once at startup and owns the background jobs.
Routes reach services through `request.app.state.context`; tests build a
context around an in-memory gateway instead of patching module state.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from chatdesk.config.settings import Settings
from chatdesk.infrastructure.ai.gemini_service import GeminiReplyService
from chatdesk.infrastructure.db.gateway import StorageGateway
from chatdesk.infrastructure.services.auto_reply_service import AutoReplyService
from chatdesk.infrastructure.services.ingestion_service import MessageIngestionService
from chatdesk.infrastructure.services.periodic_task import PeriodicTask
from chatdesk.infrastructure.services.registration_service import AutoRegistrationService
from chatdesk.infrastructure.services.subscription_service import SubscriptionService
from chatdesk.infrastructure.whatsapp.client import WhatsiPlusClient
from chatdesk.infrastructure.whatsapp.sender import OutboundSender


logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    storage: StorageGateway
    whatsapp_client: WhatsiPlusClient
    sender: OutboundSender
    reply_service: GeminiReplyService
    subscriptions: SubscriptionService
    registration: AutoRegistrationService
    auto_reply: AutoReplyService
    ingestion: MessageIngestionService
    subscription_job: PeriodicTask = field(init=False)

    def __post_init__(self) -> None:
        self.subscription_job = PeriodicTask(
            "SUBSCRIPTIONS",
            self.subscriptions.run_daily_reduction,
            self.settings.subscription_job_interval_seconds,
        )

    async def start(self) -> None:
        """Start background jobs enabled in settings."""
        if self.settings.ingestion_enabled:
            await self.ingestion.start()
        else:
            logger.info("WhatsApp ingestion disabled by configuration")

        if self.settings.subscription_job_enabled:
            await self.subscription_job.start()

    async def stop(self) -> None:
        """Stop background jobs, waiting for in-flight runs."""
        await self.ingestion.stop()
        await self.subscription_job.stop()


def build_context(
    settings: Settings,
    storage: StorageGateway,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    reply_service: Optional[GeminiReplyService] = None,
) -> AppContext:
    """
    Wire every service from settings and a storage gateway.

    Args:
        settings: Application settings
        storage: Storage gateway implementation
        transport: Optional httpx transport for the WhatsiPlus client
        reply_service: Optional pre-built reply service
    """
    whatsapp_client = WhatsiPlusClient(
        base_url=settings.whatsapp_api_base_url,
        fetch_timeout=settings.whatsapp_fetch_timeout_seconds,
        send_timeout=settings.whatsapp_send_timeout_seconds,
        transport=transport,
    )
    sender = OutboundSender(storage, whatsapp_client)

    if reply_service is None:
        reply_service = GeminiReplyService(
            storage,
            model=settings.gemini_model,
            language=settings.reply_language,
            word_budget=settings.reply_word_budget,
            default_ai_name=settings.default_ai_name,
        )

    subscriptions = SubscriptionService(storage, trial_days=settings.trial_days)
    registration = AutoRegistrationService(
        storage,
        sender,
        subscriptions,
        country_code=settings.default_country_code,
    )
    auto_reply = AutoReplyService(
        storage,
        reply_service,
        sender,
        max_length=settings.reply_max_length,
    )
    ingestion = MessageIngestionService(
        storage,
        whatsapp_client,
        registration,
        auto_reply,
        reply_service,
        poll_interval=settings.poll_interval_seconds,
        poll_global_with_personal_tokens=settings.poll_global_with_personal_tokens,
    )

    return AppContext(
        settings=settings,
        storage=storage,
        whatsapp_client=whatsapp_client,
        sender=sender,
        reply_service=reply_service,
        subscriptions=subscriptions,
        registration=registration,
        auto_reply=auto_reply,
        ingestion=ingestion,
    )
