"""
Message Repositories

Inbound (received) and outbound (sent) WhatsApp message logs.
"""

from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from chatdesk.domain.models import MessageStatus, UserRole
from chatdesk.infrastructure.db.models.message import (
    ReceivedMessage,
    ReceivedMessageCreate,
    SentMessage,
    SentMessageCreate,
)
from chatdesk.infrastructure.db.models.user import User
from chatdesk.infrastructure.db.repositories.base_repository import BaseRepository


class ReceivedMessageRepository(BaseRepository[ReceivedMessage, ReceivedMessageCreate, SQLModel]):
    """Repository for inbound message records."""

    def __init__(self, session: AsyncSession):
        super().__init__(ReceivedMessage, session)

    async def exists(self, upstream_id: str, user_id: Optional[UUID] = None) -> bool:
        """Dedup check: has this upstream message been stored (for this tenant)?"""
        stmt = select(ReceivedMessage.id).where(ReceivedMessage.upstream_id == upstream_id)
        if user_id is not None:
            stmt = stmt.where(ReceivedMessage.user_id == user_id)
        result = await self._session.execute(stmt.limit(1))
        return result.first() is not None

    async def find_by_upstream_id(
        self,
        upstream_id: str,
        owner_roles: Optional[Sequence[UserRole]] = None,
        status: Optional[MessageStatus] = None,
    ) -> List[ReceivedMessage]:
        """Records of one upstream message, optionally filtered by owner role."""
        stmt = select(ReceivedMessage).where(ReceivedMessage.upstream_id == upstream_id)
        if owner_roles:
            stmt = stmt.join(User, User.id == ReceivedMessage.user_id).where(
                User.role.in_(list(owner_roles))
            )
        if status is not None:
            stmt = stmt.where(ReceivedMessage.status == status)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(
        self,
        user_id: UUID,
        skip: int = 0,
        limit: int = 7,
        status: Optional[MessageStatus] = None,
    ) -> List[ReceivedMessage]:
        """Newest first."""
        stmt = select(ReceivedMessage).where(ReceivedMessage.user_id == user_id)
        if status is not None:
            stmt = stmt.where(ReceivedMessage.status == status)
        stmt = stmt.order_by(ReceivedMessage.created_at.desc()).offset(skip).limit(limit)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def count_for_user(self, user_id: UUID, status: Optional[MessageStatus] = None) -> int:
        stmt = select(func.count()).select_from(ReceivedMessage).where(
            ReceivedMessage.user_id == user_id
        )
        if status is not None:
            stmt = stmt.where(ReceivedMessage.status == status)
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def set_status(self, id: UUID, status: MessageStatus) -> Optional[ReceivedMessage]:
        record = await self.get_by_id(id)
        if record is None:
            return None
        record.status = status
        self._session.add(record)
        await self._session.flush()
        await self._session.refresh(record)
        return record


class SentMessageRepository(BaseRepository[SentMessage, SentMessageCreate, SQLModel]):
    """Repository for outbound message records."""

    def __init__(self, session: AsyncSession):
        super().__init__(SentMessage, session)

    async def list_for_user(self, user_id: UUID, skip: int = 0, limit: int = 50) -> List[SentMessage]:
        stmt = (
            select(SentMessage)
            .where(SentMessage.user_id == user_id)
            .order_by(SentMessage.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())
