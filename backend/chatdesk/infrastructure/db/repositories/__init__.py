"""
Repository Layer for ChatDesk

Session-bound repositories used by the SQL storage gateway.
"""

from chatdesk.infrastructure.db.repositories.base_repository import BaseRepository
from chatdesk.infrastructure.db.repositories.user_repository import UserRepository
from chatdesk.infrastructure.db.repositories.message_repository import (
    ReceivedMessageRepository,
    SentMessageRepository,
)
from chatdesk.infrastructure.db.repositories.subscription_repository import (
    SubscriptionPlanRepository,
    UserSubscriptionRepository,
)
from chatdesk.infrastructure.db.repositories.settings_repository import (
    AITokenSettingsRepository,
    WhatsappSettingsRepository,
)


__all__ = [
    # Base
    "BaseRepository",
    # Repositories
    "UserRepository",
    "ReceivedMessageRepository",
    "SentMessageRepository",
    "SubscriptionPlanRepository",
    "UserSubscriptionRepository",
    "AITokenSettingsRepository",
    "WhatsappSettingsRepository",
]
