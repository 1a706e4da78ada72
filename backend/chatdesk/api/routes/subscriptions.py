"""
Subscription Routes

Plan management (the default trial plan is read-only), plan purchase and
the daily remaining-day reduction. Protected by the admin API key.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from chatdesk.api.dependencies import ContextDep, verify_admin_api_key
from chatdesk.domain.models import UserRole
from chatdesk.domain.subscription import GrantStatus, PlanDuration
from chatdesk.infrastructure.db.models import SubscriptionPlanUpdate


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["Subscriptions"],
    dependencies=[Depends(verify_admin_api_key)],
)


# =============================================================================
# Schemas
# =============================================================================

class PlanResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    user_level: UserRole
    price_before_discount: Optional[Decimal] = None
    price_after_discount: Optional[Decimal] = None
    duration: PlanDuration
    features: List[str]
    is_active: bool
    is_default: bool


class PlanUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    user_level: Optional[UserRole] = None
    price_before_discount: Optional[Decimal] = None
    price_after_discount: Optional[Decimal] = None
    duration: Optional[PlanDuration] = None
    features: Optional[List[str]] = None
    is_active: Optional[bool] = None


class GrantResponse(BaseModel):
    id: UUID
    user_id: UUID
    plan_id: UUID
    start_date: datetime
    end_date: datetime
    remaining_days: int
    status: GrantStatus
    is_trial_period: bool


class SubscribeRequest(BaseModel):
    user_id: UUID
    plan_id: UUID


class DailyReductionResponse(BaseModel):
    updated: int
    expired: int


# =============================================================================
# Plans
# =============================================================================

@router.get("/subscription-plans", response_model=List[PlanResponse])
async def list_plans(context: ContextDep, active_only: bool = False):
    plans = await context.storage.list_plans(active_only=active_only)
    return [PlanResponse.model_validate(p, from_attributes=True) for p in plans]


@router.put("/subscription-plans/{plan_id}", response_model=PlanResponse)
async def update_plan(plan_id: UUID, request: PlanUpdateRequest, context: ContextDep):
    plan = await context.subscriptions.update_plan(
        plan_id,
        SubscriptionPlanUpdate(**request.model_dump(exclude_unset=True)),
    )
    return PlanResponse.model_validate(plan, from_attributes=True)


@router.delete("/subscription-plans/{plan_id}", status_code=204)
async def delete_plan(plan_id: UUID, context: ContextDep):
    await context.subscriptions.delete_plan(plan_id)


# =============================================================================
# Grants
# =============================================================================

@router.get("/user-subscriptions", response_model=List[GrantResponse])
async def list_grants(
    context: ContextDep,
    user_id: Optional[UUID] = None,
    status: Optional[GrantStatus] = None,
):
    grants = await context.storage.list_grants(status=status, user_id=user_id)
    return [GrantResponse.model_validate(g, from_attributes=True) for g in grants]


@router.post("/user-subscriptions/subscribe", response_model=GrantResponse, status_code=201)
async def subscribe(request: SubscribeRequest, context: ContextDep):
    grant = await context.subscriptions.subscribe(request.user_id, request.plan_id)
    return GrantResponse.model_validate(grant, from_attributes=True)


@router.post("/user-subscriptions/daily-reduction", response_model=DailyReductionResponse)
async def run_daily_reduction(context: ContextDep):
    """Apply one day of countdown now (also runs on a schedule)."""
    updated = await context.subscriptions.run_daily_reduction()
    return DailyReductionResponse(
        updated=len(updated),
        expired=sum(1 for g in updated if g.status == GrantStatus.EXPIRED),
    )
