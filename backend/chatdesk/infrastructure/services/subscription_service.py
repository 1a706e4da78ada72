"""
Subscription Service

Plan and grant lifecycle: trial grants for auto-registered accounts, plan
purchases, the daily remaining-day countdown and the guards that keep the
default (trial) plan immutable.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from chatdesk.domain.models import UserRole
from chatdesk.domain.subscription import (
    GrantStatus,
    PlanDuration,
    duration_days,
    grant_window,
    next_countdown,
)
from chatdesk.infrastructure.db.gateway import StorageGateway
from chatdesk.infrastructure.db.models import (
    SubscriptionPlan,
    SubscriptionPlanCreate,
    SubscriptionPlanUpdate,
    UserSubscription,
    UserSubscriptionCreate,
)
from chatdesk.infrastructure.exceptions import NotFoundError, ValidationError


logger = logging.getLogger(__name__)


DEFAULT_PLAN_NAME = "اشتراک آزمایشی"
DEFAULT_PLAN_DESCRIPTION = "اشتراک رایگان ۷ روزه برای کاربران جدید"


class SubscriptionService:
    """
    Service for subscription plans and user grants.

    Args:
        storage: Storage gateway
        trial_days: Length of the trial granted on auto-registration
    """

    def __init__(self, storage: StorageGateway, trial_days: int = 7):
        self._storage = storage
        self._trial_days = trial_days

    # =========================================================================
    # Grants
    # =========================================================================

    async def create_trial_grant(
        self,
        user_id: UUID,
        now: Optional[datetime] = None,
    ) -> Optional[UserSubscription]:
        """
        Grant the trial on the default plan.

        Returns:
            The new grant, or None when no default plan exists
        """
        plan = await self._storage.get_default_plan()
        if plan is None:
            logger.warning("[SUBSCRIPTIONS] No default plan configured, trial skipped")
            return None

        window = grant_window(self._trial_days, now)
        grant = await self._storage.create_grant(
            UserSubscriptionCreate(
                user_id=user_id,
                plan_id=plan.id,
                start_date=window.start_date,
                end_date=window.end_date,
                remaining_days=window.remaining_days,
                status=GrantStatus.ACTIVE,
                is_trial_period=True,
            )
        )
        logger.info(f"[SUBSCRIPTIONS] {self._trial_days}-day trial granted to user {user_id}")
        return grant

    async def subscribe(
        self,
        user_id: UUID,
        plan_id: UUID,
        now: Optional[datetime] = None,
    ) -> UserSubscription:
        """
        Purchase `plan_id` for `user_id`.

        Raises:
            NotFoundError: unknown user or plan
            ValidationError: plan inactive, or user still has an active grant
        """
        user = await self._storage.get_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found", operation="subscribe", table="users")

        plan = await self._storage.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(
                f"Subscription plan {plan_id} not found",
                operation="subscribe",
                table="subscription_plans",
            )
        if not plan.is_active:
            raise ValidationError("Subscription plan is not active", {"plan_id": str(plan_id)})

        current = await self._storage.get_current_grant(user_id)
        if current is not None:
            raise ValidationError(
                "User already has an active subscription",
                {"remaining_days": current.remaining_days},
            )

        window = grant_window(duration_days(plan.duration), now)
        grant = await self._storage.create_grant(
            UserSubscriptionCreate(
                user_id=user_id,
                plan_id=plan.id,
                start_date=window.start_date,
                end_date=window.end_date,
                remaining_days=window.remaining_days,
                status=GrantStatus.ACTIVE,
                is_trial_period=False,
            )
        )
        logger.info(f"[SUBSCRIPTIONS] User {user_id} subscribed to plan '{plan.name}'")
        return grant

    async def run_daily_reduction(self) -> List[UserSubscription]:
        """
        Apply one day of countdown to every active grant.

        Grants that reach zero are expired. Expiry is terminal.

        Returns:
            Grants that were updated
        """
        updated: List[UserSubscription] = []
        for grant in await self._storage.list_grants(status=GrantStatus.ACTIVE):
            remaining, status = next_countdown(grant.remaining_days)
            result = await self._storage.update_grant_remaining_days(grant.id, remaining, status)
            if result is not None:
                updated.append(result)

        expired = sum(1 for grant in updated if grant.status == GrantStatus.EXPIRED)
        logger.info(
            f"[SUBSCRIPTIONS] Daily reduction updated {len(updated)} grants ({expired} expired)"
        )
        return updated

    # =========================================================================
    # Plans
    # =========================================================================

    async def _get_plan_or_raise(self, plan_id: UUID, operation: str) -> SubscriptionPlan:
        plan = await self._storage.get_plan(plan_id)
        if plan is None:
            raise NotFoundError(
                f"Subscription plan {plan_id} not found",
                operation=operation,
                table="subscription_plans",
            )
        return plan

    async def update_plan(self, plan_id: UUID, data: SubscriptionPlanUpdate) -> SubscriptionPlan:
        plan = await self._get_plan_or_raise(plan_id, "update_plan")
        if plan.is_default:
            raise ValidationError("The default subscription plan cannot be edited")
        return await self._storage.update_plan(plan_id, data)

    async def delete_plan(self, plan_id: UUID) -> None:
        plan = await self._get_plan_or_raise(plan_id, "delete_plan")
        if plan.is_default:
            raise ValidationError("The default subscription plan cannot be deleted")
        await self._storage.delete_plan(plan_id)

    async def ensure_default_plan(self) -> SubscriptionPlan:
        """Create the single trial plan if none exists."""
        plan = await self._storage.get_default_plan()
        if plan is not None:
            return plan

        plan = await self._storage.create_plan(
            SubscriptionPlanCreate(
                name=DEFAULT_PLAN_NAME,
                description=DEFAULT_PLAN_DESCRIPTION,
                user_level=UserRole.LEVEL_2,
                price_before_discount=Decimal("0"),
                price_after_discount=Decimal("0"),
                duration=PlanDuration.MONTHLY,
                features=[],
                is_active=True,
                is_default=True,
            )
        )
        logger.info("[SUBSCRIPTIONS] Default trial plan created")
        return plan
