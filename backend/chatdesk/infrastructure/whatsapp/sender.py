"""
Outbound Sender

Dispatch primitive shared by auto-replies and welcome messages: resolve the
tenant's WhatsiPlus credentials, send, and log the message as sent.
"""

import logging
from typing import Optional
from uuid import UUID

from chatdesk.domain.models import SentMessageStatus
from chatdesk.infrastructure.db.gateway import StorageGateway
from chatdesk.infrastructure.db.models import SentMessageCreate
from chatdesk.infrastructure.exceptions import UpstreamAPIError
from chatdesk.infrastructure.whatsapp.client import WhatsiPlusClient


logger = logging.getLogger(__name__)


class OutboundSender:
    """Sends WhatsApp messages on behalf of a tenant."""

    def __init__(self, storage: StorageGateway, client: WhatsiPlusClient):
        self._storage = storage
        self._client = client

    async def resolve_token(self, tenant_id: Optional[UUID] = None) -> Optional[str]:
        """
        Token to send with for `tenant_id`.

        A tenant's personal token wins; otherwise the global token when it is
        set and sending is enabled. None means outbound is not configured.
        """
        if tenant_id is not None:
            tenant = await self._storage.get_user(tenant_id)
            if tenant and tenant.whatsapp_token and tenant.whatsapp_token.strip():
                return tenant.whatsapp_token.strip()

        whatsapp_settings = await self._storage.get_whatsapp_settings()
        if whatsapp_settings and whatsapp_settings.is_configured:
            return whatsapp_settings.token.strip()

        return None

    async def is_configured(self, tenant_id: Optional[UUID] = None) -> bool:
        return await self.resolve_token(tenant_id) is not None

    async def send(self, recipient: str, body: str, tenant_id: UUID) -> bool:
        """
        Send `body` to `recipient` and record it for `tenant_id`.

        Returns False for missing configuration, a rejected send or a
        network failure. Storage errors propagate to the caller.
        """
        token = await self.resolve_token(tenant_id)
        if token is None:
            logger.info("[SENDER] WhatsApp sending is not configured; message dropped")
            return False

        try:
            delivered = await self._client.send_message(token, recipient, body)
        except UpstreamAPIError as e:
            logger.error(f"[SENDER] Send to {recipient} failed: {e.message}")
            return False

        if not delivered:
            return False

        await self._storage.create_outbound(
            SentMessageCreate(
                user_id=tenant_id,
                recipient=recipient,
                message=body,
                status=SentMessageStatus.SENT,
            )
        )
        logger.info(f"[SENDER] Message sent to {recipient}: {body[:50]}")
        return True
