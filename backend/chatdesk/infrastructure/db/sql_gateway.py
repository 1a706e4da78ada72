"""
SQL Storage Gateway

StorageGateway backed by PostgreSQL through the session-bound repositories.
Every call runs in its own `get_session_context()` unit of work, which
commits on success and rolls back on error, so a failure while handling
one inbound message never poisons the next.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Callable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from chatdesk.domain.models import MessageStatus, UserRole
from chatdesk.domain.subscription import GrantStatus
from chatdesk.infrastructure.db.database import get_session_context
from chatdesk.infrastructure.db.gateway import StorageGateway
from chatdesk.infrastructure.db.models import (
    AITokenSettings,
    AITokenSettingsUpdate,
    ReceivedMessage,
    ReceivedMessageCreate,
    SentMessage,
    SentMessageCreate,
    SubscriptionPlan,
    SubscriptionPlanCreate,
    SubscriptionPlanUpdate,
    User,
    UserCreate,
    UserSubscription,
    UserSubscriptionCreate,
    UserUpdate,
    WhatsappSettings,
    WhatsappSettingsUpdate,
)
from chatdesk.infrastructure.db.repositories import (
    AITokenSettingsRepository,
    ReceivedMessageRepository,
    SentMessageRepository,
    SubscriptionPlanRepository,
    UserRepository,
    UserSubscriptionRepository,
    WhatsappSettingsRepository,
)
from chatdesk.infrastructure.exceptions import DatabaseError, DuplicateError


logger = logging.getLogger(__name__)


class SqlStorageGateway(StorageGateway):
    """
    StorageGateway over async SQLModel.

    Args:
        session_context: Factory returning an async session context manager.
            Defaults to the application's `get_session_context`.
    """

    def __init__(self, session_context: Optional[Callable] = None):
        self._session_context = session_context or get_session_context

    @asynccontextmanager
    async def _unit_of_work(self, operation: str, table: str) -> AsyncGenerator[AsyncSession, None]:
        try:
            async with self._session_context() as session:
                yield session
        except IntegrityError as e:
            raise DuplicateError(
                f"Uniqueness violated during {operation}",
                operation=operation,
                table=table,
                original_error=e,
            ) from e
        except SQLAlchemyError as e:
            logger.error(f"[DB] {operation} on {table} failed: {e}")
            raise DatabaseError(
                f"Database error during {operation}",
                operation=operation,
                table=table,
                original_error=e,
            ) from e

    # =========================================================================
    # Users
    # =========================================================================

    async def get_user(self, user_id: UUID) -> Optional[User]:
        async with self._unit_of_work("get_user", "users") as session:
            return await UserRepository(session).get_by_id(user_id)

    async def get_user_by_whatsapp_number(self, whatsapp_number: str) -> Optional[User]:
        async with self._unit_of_work("get_user_by_whatsapp_number", "users") as session:
            return await UserRepository(session).get_by_whatsapp_number(whatsapp_number)

    async def get_user_by_phone(self, phone: str, unlinked_only: bool = False) -> Optional[User]:
        async with self._unit_of_work("get_user_by_phone", "users") as session:
            return await UserRepository(session).get_by_phone(phone, unlinked_only=unlinked_only)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        async with self._unit_of_work("get_user_by_username", "users") as session:
            return await UserRepository(session).get_by_username(username)

    async def create_user(self, data: UserCreate) -> User:
        async with self._unit_of_work("create_user", "users") as session:
            return await UserRepository(session).create(data)

    async def update_user(self, user_id: UUID, data: UserUpdate) -> Optional[User]:
        async with self._unit_of_work("update_user", "users") as session:
            return await UserRepository(session).update(user_id, data)

    async def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        async with self._unit_of_work("list_users", "users") as session:
            return await UserRepository(session).list_by_role(role)

    # =========================================================================
    # Settings
    # =========================================================================

    async def get_ai_settings(self) -> Optional[AITokenSettings]:
        async with self._unit_of_work("get_ai_settings", "ai_token_settings") as session:
            return await AITokenSettingsRepository(session).get()

    async def update_ai_settings(self, data: AITokenSettingsUpdate) -> AITokenSettings:
        async with self._unit_of_work("update_ai_settings", "ai_token_settings") as session:
            return await AITokenSettingsRepository(session).upsert(data)

    async def get_whatsapp_settings(self) -> Optional[WhatsappSettings]:
        async with self._unit_of_work("get_whatsapp_settings", "whatsapp_settings") as session:
            return await WhatsappSettingsRepository(session).get()

    async def update_whatsapp_settings(self, data: WhatsappSettingsUpdate) -> WhatsappSettings:
        async with self._unit_of_work("update_whatsapp_settings", "whatsapp_settings") as session:
            return await WhatsappSettingsRepository(session).upsert(data)

    # =========================================================================
    # Inbound messages
    # =========================================================================

    async def inbound_exists(self, upstream_id: str, user_id: Optional[UUID] = None) -> bool:
        async with self._unit_of_work("inbound_exists", "received_messages") as session:
            return await ReceivedMessageRepository(session).exists(upstream_id, user_id)

    async def create_inbound(self, data: ReceivedMessageCreate) -> ReceivedMessage:
        async with self._unit_of_work("create_inbound", "received_messages") as session:
            return await ReceivedMessageRepository(session).create(data)

    async def update_inbound_status(
        self,
        record_id: UUID,
        status: MessageStatus,
    ) -> Optional[ReceivedMessage]:
        async with self._unit_of_work("update_inbound_status", "received_messages") as session:
            return await ReceivedMessageRepository(session).set_status(record_id, status)

    async def find_inbound_by_upstream_id(
        self,
        upstream_id: str,
        owner_roles: Optional[Sequence[UserRole]] = None,
        status: Optional[MessageStatus] = None,
    ) -> List[ReceivedMessage]:
        async with self._unit_of_work("find_inbound_by_upstream_id", "received_messages") as session:
            return await ReceivedMessageRepository(session).find_by_upstream_id(
                upstream_id, owner_roles=owner_roles, status=status
            )

    async def list_inbound(self, user_id: UUID, skip: int = 0, limit: int = 7) -> List[ReceivedMessage]:
        async with self._unit_of_work("list_inbound", "received_messages") as session:
            return await ReceivedMessageRepository(session).list_for_user(user_id, skip=skip, limit=limit)

    async def count_inbound(self, user_id: UUID) -> int:
        async with self._unit_of_work("count_inbound", "received_messages") as session:
            return await ReceivedMessageRepository(session).count_for_user(user_id)

    # =========================================================================
    # Outbound messages
    # =========================================================================

    async def create_outbound(self, data: SentMessageCreate) -> SentMessage:
        async with self._unit_of_work("create_outbound", "sent_messages") as session:
            return await SentMessageRepository(session).create(data)

    async def list_outbound(self, user_id: UUID, skip: int = 0, limit: int = 50) -> List[SentMessage]:
        async with self._unit_of_work("list_outbound", "sent_messages") as session:
            return await SentMessageRepository(session).list_for_user(user_id, skip=skip, limit=limit)

    # =========================================================================
    # Plans and grants
    # =========================================================================

    async def get_plan(self, plan_id: UUID) -> Optional[SubscriptionPlan]:
        async with self._unit_of_work("get_plan", "subscription_plans") as session:
            return await SubscriptionPlanRepository(session).get_by_id(plan_id)

    async def get_default_plan(self) -> Optional[SubscriptionPlan]:
        async with self._unit_of_work("get_default_plan", "subscription_plans") as session:
            return await SubscriptionPlanRepository(session).get_default()

    async def list_plans(self, active_only: bool = False) -> List[SubscriptionPlan]:
        async with self._unit_of_work("list_plans", "subscription_plans") as session:
            return await SubscriptionPlanRepository(session).list_plans(active_only=active_only)

    async def create_plan(self, data: SubscriptionPlanCreate) -> SubscriptionPlan:
        async with self._unit_of_work("create_plan", "subscription_plans") as session:
            return await SubscriptionPlanRepository(session).create(data)

    async def update_plan(self, plan_id: UUID, data: SubscriptionPlanUpdate) -> Optional[SubscriptionPlan]:
        async with self._unit_of_work("update_plan", "subscription_plans") as session:
            return await SubscriptionPlanRepository(session).update(plan_id, data)

    async def delete_plan(self, plan_id: UUID) -> bool:
        async with self._unit_of_work("delete_plan", "subscription_plans") as session:
            return await SubscriptionPlanRepository(session).delete(plan_id)

    async def create_grant(self, data: UserSubscriptionCreate) -> UserSubscription:
        async with self._unit_of_work("create_grant", "user_subscriptions") as session:
            return await UserSubscriptionRepository(session).create(data)

    async def get_current_grant(self, user_id: UUID) -> Optional[UserSubscription]:
        async with self._unit_of_work("get_current_grant", "user_subscriptions") as session:
            return await UserSubscriptionRepository(session).get_current(user_id)

    async def list_grants(
        self,
        status: Optional[GrantStatus] = None,
        user_id: Optional[UUID] = None,
    ) -> List[UserSubscription]:
        async with self._unit_of_work("list_grants", "user_subscriptions") as session:
            return await UserSubscriptionRepository(session).list_by_status(status, user_id=user_id)

    async def update_grant_remaining_days(
        self,
        grant_id: UUID,
        remaining_days: int,
        status: GrantStatus,
    ) -> Optional[UserSubscription]:
        async with self._unit_of_work("update_grant_remaining_days", "user_subscriptions") as session:
            return await UserSubscriptionRepository(session).set_remaining_days(
                grant_id, remaining_days, status
            )
