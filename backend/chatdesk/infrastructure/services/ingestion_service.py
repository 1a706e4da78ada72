"""
Message Ingestion Service

Polls WhatsiPlus for inbound messages and fans each new one out into:
auto-registration of the sender, an unread inbound record, and (when AI
is active) an auto-reply.

Credentials polled per cycle:
    - every level-1 operator's personal token, stored for that operator
    - the global token from whatsapp_settings, stored for the first admin

Dedup is delegated to storage ((upstream_id, tenant) is unique) so restarts
never re-process history.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from chatdesk.domain.messaging import UpstreamMessage
from chatdesk.domain.models import MessageStatus, UserRole, can_poll_personal_token
from chatdesk.infrastructure.ai.gemini_service import GeminiReplyService
from chatdesk.infrastructure.db.gateway import StorageGateway
from chatdesk.infrastructure.db.models import ReceivedMessageCreate, User
from chatdesk.infrastructure.exceptions import DuplicateError, UpstreamAPIError
from chatdesk.infrastructure.services.auto_reply_service import AutoReplyService
from chatdesk.infrastructure.services.periodic_task import PeriodicTask
from chatdesk.infrastructure.services.registration_service import AutoRegistrationService
from chatdesk.infrastructure.whatsapp.client import WhatsiPlusClient


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PollCredential:
    """A token to poll and the tenant its messages are stored for."""
    token: str
    tenant: User
    label: str


class MessageIngestionService:
    """
    The WhatsApp polling loop.

    Args:
        storage: Storage gateway
        client: WhatsiPlus client
        registration: Auto-registration policy
        auto_reply: Reply orchestration
        reply_service: Used to check whether AI replies are active
        poll_interval: Seconds between the end of one cycle and the next
        poll_global_with_personal_tokens: Keep polling the global token when
            level-1 operators have personal tokens
    """

    def __init__(
        self,
        storage: StorageGateway,
        client: WhatsiPlusClient,
        registration: AutoRegistrationService,
        auto_reply: AutoReplyService,
        reply_service: GeminiReplyService,
        poll_interval: float = 5.0,
        poll_global_with_personal_tokens: bool = True,
    ):
        self._storage = storage
        self._client = client
        self._registration = registration
        self._auto_reply = auto_reply
        self._reply_service = reply_service
        self._poll_global_with_personal_tokens = poll_global_with_personal_tokens
        self._task = PeriodicTask("INGEST", self.fetch_cycle, poll_interval)
        self._running = False
        self.last_fetch_time: Optional[datetime] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Run one cycle immediately, then poll every interval. Idempotent."""
        if self._running:
            logger.info("[INGEST] WhatsApp ingestion already running")
            return

        logger.info("[INGEST] Starting WhatsApp ingestion")
        self._running = True
        await self._task.run_once()
        if self._running:
            await self._task.start()

    async def stop(self) -> None:
        """Stop polling; waits for an in-flight cycle. Safe when not running."""
        was_running = self._running
        self._running = False
        await self._task.stop()
        if was_running:
            logger.info("[INGEST] WhatsApp ingestion stopped")

    async def trigger(self) -> bool:
        """
        Run a cycle now.

        Returns:
            False when a cycle was already in progress and this one was skipped
        """
        return await self._task.run_once()

    async def get_status(self) -> Dict[str, Any]:
        return {
            "is_running": self._running,
            "is_fetching": self._task.is_busy,
            "last_fetch_time": self.last_fetch_time,
            "gemini_active": await self._reply_service.is_active(),
        }

    # =========================================================================
    # Fetch cycle
    # =========================================================================

    async def fetch_cycle(self) -> int:
        """
        Poll every credential once.

        Returns:
            Number of new inbound messages stored
        """
        total = 0
        for credential in await self.collect_credentials():
            total += await self.poll_credential(credential)
        return total

    async def collect_credentials(self) -> List[PollCredential]:
        users = await self._storage.list_users()

        credentials = [
            PollCredential(token=user.whatsapp_token.strip(), tenant=user, label=user.username)
            for user in users
            if can_poll_personal_token(user.role)
            and user.whatsapp_token
            and user.whatsapp_token.strip()
        ]

        if credentials and not self._poll_global_with_personal_tokens:
            return credentials

        whatsapp_settings = await self._storage.get_whatsapp_settings()
        if not whatsapp_settings or not whatsapp_settings.is_configured:
            if not credentials:
                logger.info("[INGEST] Global WhatsApp token missing or disabled")
            return credentials

        global_token = whatsapp_settings.token.strip()
        if any(credential.token == global_token for credential in credentials):
            return credentials

        admin = next((user for user in users if UserRole(user.role) is UserRole.ADMIN), None)
        if admin is None:
            logger.error("[INGEST] No admin user found to own global-token messages")
            return credentials

        credentials.append(PollCredential(token=global_token, tenant=admin, label="global token"))
        return credentials

    async def poll_credential(self, credential: PollCredential) -> int:
        """Fetch and process one inbox. Upstream failures skip the credential."""
        try:
            page = await self._client.fetch_received_messages(credential.token)
        except UpstreamAPIError as e:
            logger.error(f"[INGEST] Fetch for {credential.label} failed: {e.message}")
            return 0

        new_messages = 0
        for message in page.data:
            try:
                if await self.process_message(message, credential.tenant):
                    new_messages += 1
            except Exception as e:
                logger.error(
                    f"[INGEST] Failed to process message {message.id} for {credential.label}: {e}",
                    exc_info=True,
                )

        if new_messages:
            self.last_fetch_time = datetime.now(timezone.utc)
            logger.info(f"[INGEST] {new_messages} new message(s) stored for {credential.label}")

        return new_messages

    async def process_message(self, message: UpstreamMessage, tenant: User) -> bool:
        """
        Handle one upstream message for `tenant`.

        Returns:
            True when a new inbound record was stored
        """
        if not message.has_body:
            return False

        if await self._storage.inbound_exists(message.id, tenant.id):
            return False

        await self._registration.ensure_registered(message.sender, message.message)

        try:
            await self._storage.create_inbound(
                ReceivedMessageCreate(
                    user_id=tenant.id,
                    upstream_id=message.id,
                    sender=message.sender,
                    message=message.message,
                    status=MessageStatus.UNREAD,
                    original_date=message.date,
                )
            )
        except DuplicateError:
            logger.info(f"[INGEST] Message {message.id} already stored for {tenant.username}")
            return False

        if await self._reply_service.is_active():
            await self._auto_reply.handle(message.sender, message.message, message.id, tenant.id)

        return True
