"""
Domain Models for ChatDesk

Pure Python enums and authorization rules with no framework dependencies.
Role checks are written as exhaustive branches over UserRole so that adding
a role makes every decision point fail type-checking until it is handled.
"""

from enum import Enum
from typing import assert_never


class UserRole(str, Enum):
    """Tenant hierarchy roles."""
    ADMIN = "admin"
    LEVEL_1 = "user_level_1"
    LEVEL_2 = "user_level_2"


class MessageStatus(str, Enum):
    """Read state of an inbound message record."""
    UNREAD = "unread"
    READ = "read"


class SentMessageStatus(str, Enum):
    """Delivery state of an outbound message record."""
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class AIProvider(str, Enum):
    """Generative model providers."""
    GEMINI = "gemini"


# =============================================================================
# Role Rules
# =============================================================================

def owns_message_inbox(role: UserRole) -> bool:
    """
    Whether inbound WhatsApp records are stored for this role.

    Admins own the global-token inbox and level-1 operators own the inbox of
    their personal token. Level-2 sub-accounts only ever appear as senders.
    """
    role = UserRole(role)
    if role is UserRole.ADMIN:
        return True
    elif role is UserRole.LEVEL_1:
        return True
    elif role is UserRole.LEVEL_2:
        return False
    else:
        assert_never(role)


def can_poll_personal_token(role: UserRole) -> bool:
    """Only level-1 operators have their personal token polled."""
    role = UserRole(role)
    if role is UserRole.ADMIN:
        return False
    elif role is UserRole.LEVEL_1:
        return True
    elif role is UserRole.LEVEL_2:
        return False
    else:
        assert_never(role)


def can_parent_sub_accounts(role: UserRole) -> bool:
    """Auto-registered accounts are attached to a level-1 operator."""
    role = UserRole(role)
    if role is UserRole.ADMIN:
        return False
    elif role is UserRole.LEVEL_1:
        return True
    elif role is UserRole.LEVEL_2:
        return False
    else:
        assert_never(role)


def inbox_roles() -> list[UserRole]:
    """Roles whose inbound records are marked read after an auto-reply."""
    return [role for role in UserRole if owns_message_inbox(role)]
