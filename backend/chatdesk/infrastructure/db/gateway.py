"""
Storage Gateway

The persistence contract consumed by the messaging core (ingestion loop,
auto-registration, auto-reply, outbound sender) and the subscription
service. Services depend on this interface only, so tests can hand them an
in-memory implementation instead of a database.

Implementations must raise DuplicateError when a uniqueness rule is hit
(users.username, users.whatsapp_number, received (upstream_id, user_id),
single default plan).
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence
from uuid import UUID

from chatdesk.domain.models import MessageStatus, UserRole
from chatdesk.domain.subscription import GrantStatus
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


class StorageGateway(ABC):
    """Async persistence operations used by the services."""

    # =========================================================================
    # Users
    # =========================================================================

    @abstractmethod
    async def get_user(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def get_user_by_whatsapp_number(self, whatsapp_number: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_user_by_phone(self, phone: str, unlinked_only: bool = False) -> Optional[User]:
        """Exact match on the stored phone, oldest user first."""
        pass

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def create_user(self, data: UserCreate) -> User:
        pass

    @abstractmethod
    async def update_user(self, user_id: UUID, data: UserUpdate) -> Optional[User]:
        pass

    @abstractmethod
    async def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        """Users ordered by creation time, oldest first."""
        pass

    # =========================================================================
    # Settings
    # =========================================================================

    @abstractmethod
    async def get_ai_settings(self) -> Optional[AITokenSettings]:
        pass

    @abstractmethod
    async def update_ai_settings(self, data: AITokenSettingsUpdate) -> AITokenSettings:
        pass

    @abstractmethod
    async def get_whatsapp_settings(self) -> Optional[WhatsappSettings]:
        pass

    @abstractmethod
    async def update_whatsapp_settings(self, data: WhatsappSettingsUpdate) -> WhatsappSettings:
        pass

    # =========================================================================
    # Inbound messages
    # =========================================================================

    @abstractmethod
    async def inbound_exists(self, upstream_id: str, user_id: Optional[UUID] = None) -> bool:
        pass

    @abstractmethod
    async def create_inbound(self, data: ReceivedMessageCreate) -> ReceivedMessage:
        pass

    @abstractmethod
    async def update_inbound_status(
        self,
        record_id: UUID,
        status: MessageStatus,
    ) -> Optional[ReceivedMessage]:
        pass

    @abstractmethod
    async def find_inbound_by_upstream_id(
        self,
        upstream_id: str,
        owner_roles: Optional[Sequence[UserRole]] = None,
        status: Optional[MessageStatus] = None,
    ) -> List[ReceivedMessage]:
        pass

    @abstractmethod
    async def list_inbound(self, user_id: UUID, skip: int = 0, limit: int = 7) -> List[ReceivedMessage]:
        """Newest first."""
        pass

    @abstractmethod
    async def count_inbound(self, user_id: UUID) -> int:
        pass

    # =========================================================================
    # Outbound messages
    # =========================================================================

    @abstractmethod
    async def create_outbound(self, data: SentMessageCreate) -> SentMessage:
        pass

    @abstractmethod
    async def list_outbound(self, user_id: UUID, skip: int = 0, limit: int = 50) -> List[SentMessage]:
        pass

    # =========================================================================
    # Plans and grants
    # =========================================================================

    @abstractmethod
    async def get_plan(self, plan_id: UUID) -> Optional[SubscriptionPlan]:
        pass

    @abstractmethod
    async def get_default_plan(self) -> Optional[SubscriptionPlan]:
        pass

    @abstractmethod
    async def list_plans(self, active_only: bool = False) -> List[SubscriptionPlan]:
        pass

    @abstractmethod
    async def create_plan(self, data: SubscriptionPlanCreate) -> SubscriptionPlan:
        pass

    @abstractmethod
    async def update_plan(self, plan_id: UUID, data: SubscriptionPlanUpdate) -> Optional[SubscriptionPlan]:
        pass

    @abstractmethod
    async def delete_plan(self, plan_id: UUID) -> bool:
        pass

    @abstractmethod
    async def create_grant(self, data: UserSubscriptionCreate) -> UserSubscription:
        pass

    @abstractmethod
    async def get_current_grant(self, user_id: UUID) -> Optional[UserSubscription]:
        """Latest active grant with remaining days, if any."""
        pass

    @abstractmethod
    async def list_grants(
        self,
        status: Optional[GrantStatus] = None,
        user_id: Optional[UUID] = None,
    ) -> List[UserSubscription]:
        pass

    @abstractmethod
    async def update_grant_remaining_days(
        self,
        grant_id: UUID,
        remaining_days: int,
        status: GrantStatus,
    ) -> Optional[UserSubscription]:
        pass
