"""
Unit tests for SubscriptionService.

Trial grants, plan purchase, the daily countdown and default-plan guards.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from chatdesk.domain.models import UserRole
from chatdesk.domain.subscription import GrantStatus, PlanDuration
from chatdesk.infrastructure.db.models import SubscriptionPlanUpdate, UserSubscriptionCreate
from chatdesk.infrastructure.exceptions import NotFoundError, ValidationError
from chatdesk.infrastructure.services.subscription_service import (
    DEFAULT_PLAN_NAME,
    SubscriptionService,
)


NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def service(storage):
    return SubscriptionService(storage, trial_days=7)


@pytest.fixture
def customer(storage):
    return storage.add_user("customer", role=UserRole.LEVEL_2)


async def add_grant(storage, user, plan, remaining_days, status=GrantStatus.ACTIVE):
    return await storage.create_grant(
        UserSubscriptionCreate(
            user_id=user.id,
            plan_id=plan.id,
            start_date=NOW,
            end_date=NOW + timedelta(days=remaining_days),
            remaining_days=remaining_days,
            status=status,
        )
    )


class TestTrialGrant:
    """Trial granted on auto-registration."""

    @pytest.mark.asyncio
    async def test_trial_on_default_plan(self, service, storage, customer, default_plan):
        grant = await service.create_trial_grant(customer.id, now=NOW)

        assert grant.plan_id == default_plan.id
        assert grant.is_trial_period is True
        assert grant.remaining_days == 7
        assert grant.status == GrantStatus.ACTIVE
        assert grant.end_date == NOW + timedelta(days=7)

    @pytest.mark.asyncio
    async def test_no_default_plan(self, service, storage, customer):
        """Without a default plan the trial is skipped, not an error."""
        assert await service.create_trial_grant(customer.id) is None
        assert storage.grants == {}


class TestSubscribe:
    """Plan purchase."""

    @pytest.mark.asyncio
    async def test_yearly_plan(self, service, storage, customer):
        plan = storage.add_plan("Gold", duration=PlanDuration.YEARLY)

        grant = await service.subscribe(customer.id, plan.id, now=NOW)

        assert grant.remaining_days == 365
        assert grant.is_trial_period is False
        assert grant.end_date == NOW + timedelta(days=365)

    @pytest.mark.asyncio
    async def test_unknown_user(self, service, storage):
        plan = storage.add_plan()
        with pytest.raises(NotFoundError):
            await service.subscribe(uuid4(), plan.id)

    @pytest.mark.asyncio
    async def test_unknown_plan(self, service, customer):
        with pytest.raises(NotFoundError):
            await service.subscribe(customer.id, uuid4())

    @pytest.mark.asyncio
    async def test_inactive_plan(self, service, storage, customer):
        plan = storage.add_plan(is_active=False)
        with pytest.raises(ValidationError):
            await service.subscribe(customer.id, plan.id)

    @pytest.mark.asyncio
    async def test_active_grant_blocks_purchase(self, service, storage, customer, default_plan):
        await service.create_trial_grant(customer.id)
        plan = storage.add_plan()

        with pytest.raises(ValidationError) as exc_info:
            await service.subscribe(customer.id, plan.id)
        assert exc_info.value.details == {"remaining_days": 7}

    @pytest.mark.asyncio
    async def test_expired_grant_allows_purchase(self, service, storage, customer, default_plan):
        await add_grant(storage, customer, default_plan, 0, status=GrantStatus.EXPIRED)
        plan = storage.add_plan()

        grant = await service.subscribe(customer.id, plan.id)
        assert grant.plan_id == plan.id


class TestDailyReduction:
    """One day of countdown per run."""

    @pytest.mark.asyncio
    async def test_decrements_active_grants(self, service, storage, customer, default_plan):
        grant = await add_grant(storage, customer, default_plan, 5)

        updated = await service.run_daily_reduction()

        assert [g.id for g in updated] == [grant.id]
        assert grant.remaining_days == 4
        assert grant.status == GrantStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_last_day_expires(self, service, storage, customer, default_plan):
        grant = await add_grant(storage, customer, default_plan, 1)

        await service.run_daily_reduction()

        assert grant.remaining_days == 0
        assert grant.status == GrantStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_expired_grants_untouched(self, service, storage, customer, default_plan):
        """Expiry is terminal: expired grants are never counted down again."""
        grant = await add_grant(storage, customer, default_plan, 0, status=GrantStatus.EXPIRED)

        updated = await service.run_daily_reduction()

        assert updated == []
        assert grant.status == GrantStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_seven_day_trial_lifecycle(self, service, storage, customer, default_plan):
        grant = await service.create_trial_grant(customer.id)

        for _ in range(7):
            await service.run_daily_reduction()

        assert grant.remaining_days == 0
        assert grant.status == GrantStatus.EXPIRED
        assert await storage.get_current_grant(customer.id) is None


class TestPlanManagement:
    """The default plan is read-only."""

    @pytest.mark.asyncio
    async def test_update_plan(self, service, storage):
        plan = storage.add_plan("Silver")

        updated = await service.update_plan(
            plan.id, SubscriptionPlanUpdate(name="Silver+", price_after_discount=Decimal("9.90"))
        )

        assert updated.name == "Silver+"
        assert updated.price_after_discount == Decimal("9.90")

    @pytest.mark.asyncio
    async def test_default_plan_cannot_be_edited(self, service, default_plan):
        with pytest.raises(ValidationError):
            await service.update_plan(default_plan.id, SubscriptionPlanUpdate(name="Changed"))

    @pytest.mark.asyncio
    async def test_default_plan_cannot_be_deleted(self, service, storage, default_plan):
        with pytest.raises(ValidationError):
            await service.delete_plan(default_plan.id)
        assert default_plan.id in storage.plans

    @pytest.mark.asyncio
    async def test_delete_plan(self, service, storage):
        plan = storage.add_plan()
        await service.delete_plan(plan.id)
        assert plan.id not in storage.plans

    @pytest.mark.asyncio
    async def test_missing_plan(self, service):
        with pytest.raises(NotFoundError):
            await service.delete_plan(uuid4())

    @pytest.mark.asyncio
    async def test_ensure_default_plan_is_idempotent(self, service, storage):
        first = await service.ensure_default_plan()
        second = await service.ensure_default_plan()

        assert first.id == second.id
        assert first.name == DEFAULT_PLAN_NAME
        assert first.is_default is True
        assert len(storage.plans) == 1
