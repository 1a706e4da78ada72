"""
Unit tests for role rules and subscription countdown rules.
"""

from datetime import datetime, timedelta, timezone

import pytest

from chatdesk.domain.models import (
    UserRole,
    can_parent_sub_accounts,
    can_poll_personal_token,
    inbox_roles,
    owns_message_inbox,
)
from chatdesk.domain.subscription import (
    GrantStatus,
    PlanDuration,
    duration_days,
    grant_window,
    next_countdown,
)


class TestRoleRules:
    """Which roles own inboxes, poll tokens and parent sub-accounts."""

    def test_inbox_owners(self):
        assert owns_message_inbox(UserRole.ADMIN) is True
        assert owns_message_inbox(UserRole.LEVEL_1) is True
        assert owns_message_inbox(UserRole.LEVEL_2) is False

    def test_inbox_roles(self):
        assert inbox_roles() == [UserRole.ADMIN, UserRole.LEVEL_1]

    def test_only_level_1_polls_personal_token(self):
        assert [r for r in UserRole if can_poll_personal_token(r)] == [UserRole.LEVEL_1]

    def test_only_level_1_parents_sub_accounts(self):
        assert [r for r in UserRole if can_parent_sub_accounts(r)] == [UserRole.LEVEL_1]

    def test_accepts_raw_values(self):
        """Roles loaded from storage as plain strings are accepted."""
        assert owns_message_inbox("admin") is True

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            owns_message_inbox("superuser")


class TestSubscriptionRules:
    """Grant windows and the daily countdown."""

    def test_duration_days(self):
        assert duration_days(PlanDuration.MONTHLY) == 30
        assert duration_days(PlanDuration.YEARLY) == 365
        assert duration_days("yearly") == 365

    def test_grant_window(self):
        now = datetime(2026, 10, 18, tzinfo=timezone.utc)
        window = grant_window(7, now)
        assert window.start_date == now
        assert window.end_date == now + timedelta(days=7)
        assert window.remaining_days == 7

    def test_grant_window_rejects_zero_days(self):
        with pytest.raises(ValueError):
            grant_window(0)

    def test_countdown_stays_active_above_zero(self):
        assert next_countdown(7) == (6, GrantStatus.ACTIVE)

    def test_countdown_expires_at_zero(self):
        assert next_countdown(1) == (0, GrantStatus.EXPIRED)

    def test_countdown_never_negative(self):
        assert next_countdown(0) == (0, GrantStatus.EXPIRED)
