"""
SQLModel ORM Models for ChatDesk

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from chatdesk.infrastructure.db.models.base import (
    CreatedAtMixin,
    TimestampMixin,
    UUIDMixin,
)
from chatdesk.infrastructure.db.models.user import (
    User,
    UserBase,
    UserCreate,
    UserUpdate,
)
from chatdesk.infrastructure.db.models.message import (
    ReceivedMessage,
    ReceivedMessageCreate,
    SentMessage,
    SentMessageCreate,
)
from chatdesk.infrastructure.db.models.subscription import (
    SubscriptionPlan,
    SubscriptionPlanCreate,
    SubscriptionPlanUpdate,
    UserSubscription,
    UserSubscriptionCreate,
)
from chatdesk.infrastructure.db.models.settings import (
    AITokenSettings,
    AITokenSettingsUpdate,
    WhatsappSettings,
    WhatsappSettingsUpdate,
)


__all__ = [
    # Base
    "CreatedAtMixin",
    "TimestampMixin",
    "UUIDMixin",
    # Users
    "User",
    "UserBase",
    "UserCreate",
    "UserUpdate",
    # Messages
    "ReceivedMessage",
    "ReceivedMessageCreate",
    "SentMessage",
    "SentMessageCreate",
    # Subscriptions
    "SubscriptionPlan",
    "SubscriptionPlanCreate",
    "SubscriptionPlanUpdate",
    "UserSubscription",
    "UserSubscriptionCreate",
    # Settings
    "AITokenSettings",
    "AITokenSettingsUpdate",
    "WhatsappSettings",
    "WhatsappSettingsUpdate",
]
