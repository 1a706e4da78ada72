"""
Auto-Reply Service

Answers an inbound WhatsApp message with a generated reply and marks the
source message as read once the reply has been delivered.
"""

import logging
from uuid import UUID

from chatdesk.domain.models import MessageStatus, inbox_roles
from chatdesk.infrastructure.ai.gemini_service import GeminiReplyService
from chatdesk.infrastructure.db.gateway import StorageGateway
from chatdesk.infrastructure.exceptions import AIServiceError, ChatDeskError, ConfigurationError
from chatdesk.infrastructure.whatsapp.sender import OutboundSender


logger = logging.getLogger(__name__)


ELLIPSIS = "..."


def truncate_reply(text: str, max_length: int = 200) -> str:
    """Hard character ceiling; WhatsiPlus sends through a GET query string."""
    if len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


class AutoReplyService:
    """
    Reply orchestration for inbound messages.

    Args:
        storage: Storage gateway
        reply_service: Generative reply service
        sender: Outbound sender
        max_length: Character ceiling applied before dispatch
    """

    def __init__(
        self,
        storage: StorageGateway,
        reply_service: GeminiReplyService,
        sender: OutboundSender,
        max_length: int = 200,
    ):
        self._storage = storage
        self._reply_service = reply_service
        self._sender = sender
        self._max_length = max_length

    async def handle(self, sender: str, text: str, upstream_id: str, tenant_id: UUID) -> bool:
        """
        Generate and send a reply to `sender`.

        Every missing precondition (AI inactive, empty reply, outbound not
        configured) is a silent no-op. A failed send leaves the inbound
        record unread.

        Returns:
            True when a reply was delivered
        """
        if not await self._reply_service.is_active():
            logger.info("[AUTO-REPLY] AI token missing or inactive, skipping")
            return False

        logger.info(f"[AUTO-REPLY] Generating reply for message from {sender}")
        try:
            reply = await self._reply_service.generate_reply(text, tenant_id)
        except (AIServiceError, ConfigurationError) as e:
            logger.error(f"[AUTO-REPLY] Reply generation failed for {sender}: {e.message}")
            return False

        if not reply or not reply.strip():
            logger.info(f"[AUTO-REPLY] Empty reply for {sender}, nothing to send")
            return False

        if not await self._sender.is_configured(tenant_id):
            logger.info("[AUTO-REPLY] WhatsApp sending not configured, skipping")
            return False

        final_reply = truncate_reply(reply.strip(), self._max_length)
        try:
            delivered = await self._sender.send(sender, final_reply, tenant_id)
        except ChatDeskError as e:
            logger.error(f"[AUTO-REPLY] Sending reply to {sender} failed: {e.message}")
            return False

        if not delivered:
            logger.error(f"[AUTO-REPLY] Reply to {sender} was not delivered")
            return False

        marked = await self.mark_source_read(upstream_id)
        logger.info(
            f"[AUTO-REPLY] Reply sent to {sender}, {marked} record(s) marked read: "
            f"{final_reply[:50]}"
        )
        return True

    async def mark_source_read(self, upstream_id: str) -> int:
        """Flip unread records of `upstream_id` owned by inbox roles to read."""
        records = await self._storage.find_inbound_by_upstream_id(
            upstream_id,
            owner_roles=inbox_roles(),
            status=MessageStatus.UNREAD,
        )
        for record in records:
            await self._storage.update_inbound_status(record.id, MessageStatus.READ)
        return len(records)
