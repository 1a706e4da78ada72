"""
Subscription Repositories

Data access for subscription plans and user grants.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from chatdesk.domain.subscription import GrantStatus
from chatdesk.infrastructure.db.models.subscription import (
    SubscriptionPlan,
    SubscriptionPlanCreate,
    SubscriptionPlanUpdate,
    UserSubscription,
    UserSubscriptionCreate,
)
from chatdesk.infrastructure.db.repositories.base_repository import BaseRepository


class SubscriptionPlanRepository(
    BaseRepository[SubscriptionPlan, SubscriptionPlanCreate, SubscriptionPlanUpdate]
):
    """Repository for subscription plans."""

    def __init__(self, session: AsyncSession):
        super().__init__(SubscriptionPlan, session)

    async def get_default(self) -> Optional[SubscriptionPlan]:
        stmt = select(SubscriptionPlan).where(SubscriptionPlan.is_default.is_(True)).limit(1)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_plans(self, active_only: bool = False) -> List[SubscriptionPlan]:
        stmt = select(SubscriptionPlan)
        if active_only:
            stmt = stmt.where(SubscriptionPlan.is_active.is_(True))
        stmt = stmt.order_by(SubscriptionPlan.created_at)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class UserSubscriptionRepository(
    BaseRepository[UserSubscription, UserSubscriptionCreate, SQLModel]
):
    """Repository for user subscription grants."""

    def __init__(self, session: AsyncSession):
        super().__init__(UserSubscription, session)

    async def get_current(self, user_id: UUID) -> Optional[UserSubscription]:
        """Latest active grant that still has days left."""
        stmt = (
            select(UserSubscription)
            .where(
                UserSubscription.user_id == user_id,
                UserSubscription.status == GrantStatus.ACTIVE,
                UserSubscription.remaining_days > 0,
            )
            .order_by(UserSubscription.created_at.desc())
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_status(
        self,
        status: Optional[GrantStatus] = None,
        user_id: Optional[UUID] = None,
    ) -> List[UserSubscription]:
        stmt = select(UserSubscription)
        if status is not None:
            stmt = stmt.where(UserSubscription.status == status)
        if user_id is not None:
            stmt = stmt.where(UserSubscription.user_id == user_id)
        stmt = stmt.order_by(UserSubscription.created_at)
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def set_remaining_days(
        self,
        id: UUID,
        remaining_days: int,
        status: GrantStatus,
    ) -> Optional[UserSubscription]:
        grant = await self.get_by_id(id)
        if grant is None:
            return None
        grant.remaining_days = remaining_days
        grant.status = status
        self._session.add(grant)
        await self._session.flush()
        await self._session.refresh(grant)
        return grant
