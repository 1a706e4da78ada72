"""
User Repository

Lookups used by auto-registration and the ingestion loop: by messaging
identity, by stored phone, by username and by role.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatdesk.domain.models import UserRole
from chatdesk.infrastructure.db.models.user import User, UserCreate, UserUpdate
from chatdesk.infrastructure.db.repositories.base_repository import BaseRepository


class UserRepository(BaseRepository[User, UserCreate, UserUpdate]):
    """Repository for tenant users."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_username(self, username: str) -> Optional[User]:
        stmt = select(User).where(User.username == username)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_whatsapp_number(self, whatsapp_number: str) -> Optional[User]:
        stmt = select(User).where(User.whatsapp_number == whatsapp_number)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_phone(self, phone: str, unlinked_only: bool = False) -> Optional[User]:
        """
        Oldest user whose stored phone equals `phone`.

        Args:
            phone: Exact stored phone value
            unlinked_only: Only consider users without a WhatsApp number
        """
        stmt = select(User).where(User.phone == phone)
        if unlinked_only:
            stmt = stmt.where(User.whatsapp_number.is_(None))
        stmt = stmt.order_by(User.created_at).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_role(self, role: Optional[UserRole] = None) -> List[User]:
        """All users (optionally of one role), oldest first."""
        stmt = select(User)
        if role is not None:
            stmt = stmt.where(User.role == role)
        stmt = stmt.order_by(User.created_at)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
