"""
Subscription Domain Models

Enums and pure rules for the subscription bounded context: plan durations,
grant windows and the daily remaining-day countdown.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional, assert_never


class PlanDuration(str, Enum):
    """Billing duration class of a plan."""
    MONTHLY = "monthly"
    YEARLY = "yearly"


class GrantStatus(str, Enum):
    """Lifecycle status of a user subscription grant."""
    ACTIVE = "active"
    EXPIRED = "expired"


def duration_days(duration: PlanDuration) -> int:
    """Number of days a purchased plan grants."""
    duration = PlanDuration(duration)
    if duration is PlanDuration.MONTHLY:
        return 30
    elif duration is PlanDuration.YEARLY:
        return 365
    else:
        assert_never(duration)


@dataclass(frozen=True)
class GrantWindow:
    """Start/end dates and day counter of a new grant."""
    start_date: datetime
    end_date: datetime
    remaining_days: int


def grant_window(days: int, now: Optional[datetime] = None) -> GrantWindow:
    """Build the window for a grant that starts now and lasts `days` days."""
    if days < 1:
        raise ValueError("A grant must last at least one day")
    start = now or datetime.now(timezone.utc)
    return GrantWindow(
        start_date=start,
        end_date=start + timedelta(days=days),
        remaining_days=days,
    )


def next_countdown(remaining_days: int) -> tuple[int, GrantStatus]:
    """
    Apply one day of the daily countdown.

    Returns the new remaining-day value and the resulting status. Reaching
    zero is terminal: the grant becomes EXPIRED and is never reactivated.
    """
    remaining = max(remaining_days - 1, 0)
    status = GrantStatus.ACTIVE if remaining > 0 else GrantStatus.EXPIRED
    return remaining, status
