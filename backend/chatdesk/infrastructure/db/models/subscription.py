"""
Subscription Database Models

Plans and per-user grants. At most one plan carries `is_default`; it is the
trial plan handed to every auto-registered account.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import JSON, Column, DateTime, Index, Numeric, text
from sqlmodel import Field, SQLModel

from chatdesk.domain.models import UserRole
from chatdesk.domain.subscription import GrantStatus, PlanDuration
from chatdesk.infrastructure.db.models.base import UUIDMixin, CreatedAtMixin, TimestampMixin, enum_type


class SubscriptionPlanBase(SQLModel):
    name: str = Field(..., max_length=200)
    description: Optional[str] = Field(default=None)
    user_level: UserRole = Field(
        default=UserRole.LEVEL_2,
        sa_type=enum_type(UserRole),
        description="Role this plan is sold to"
    )
    price_before_discount: Optional[Decimal] = Field(
        default=None,
        sa_type=Numeric(10, 2),
    )
    price_after_discount: Optional[Decimal] = Field(
        default=None,
        sa_type=Numeric(10, 2),
    )
    duration: PlanDuration = Field(
        default=PlanDuration.MONTHLY,
        sa_type=enum_type(PlanDuration),
    )
    is_active: bool = Field(default=True)


class SubscriptionPlan(UUIDMixin, CreatedAtMixin, SubscriptionPlanBase, table=True):
    """Subscription plan table."""

    __tablename__ = "subscription_plans"
    __table_args__ = (
        Index(
            "uq_subscription_plans_single_default",
            "is_default",
            unique=True,
            postgresql_where=text("is_default"),
        ),
    )

    features: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False, server_default="[]"),
    )
    is_default: bool = Field(default=False, nullable=False)


class SubscriptionPlanCreate(SubscriptionPlanBase):
    features: List[str] = Field(default_factory=list)
    is_default: bool = False


class SubscriptionPlanUpdate(SQLModel):
    """Editable plan fields. `is_default` is deliberately absent."""

    name: Optional[str] = None
    description: Optional[str] = None
    user_level: Optional[UserRole] = None
    price_before_discount: Optional[Decimal] = None
    price_after_discount: Optional[Decimal] = None
    duration: Optional[PlanDuration] = None
    features: Optional[List[str]] = None
    is_active: Optional[bool] = None


class UserSubscriptionBase(SQLModel):
    user_id: UUID = Field(
        ...,
        foreign_key="users.id",
        ondelete="CASCADE",
        index=True,
    )
    plan_id: UUID = Field(
        ...,
        foreign_key="subscription_plans.id",
        ondelete="CASCADE",
        index=True,
    )
    start_date: datetime = Field(..., sa_type=DateTime(timezone=True))
    end_date: datetime = Field(..., sa_type=DateTime(timezone=True))
    remaining_days: int = Field(default=0, ge=0)
    status: GrantStatus = Field(
        default=GrantStatus.ACTIVE,
        sa_type=enum_type(GrantStatus),
    )
    is_trial_period: bool = Field(default=False)


class UserSubscription(UUIDMixin, TimestampMixin, UserSubscriptionBase, table=True):
    """User subscription grant table."""

    __tablename__ = "user_subscriptions"


class UserSubscriptionCreate(UserSubscriptionBase):
    pass
