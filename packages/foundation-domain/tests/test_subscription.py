"""Tests for subscription validity rules."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from sitegate.foundation.domain.company_value_objects import Company, SubscriptionStatus
from sitegate.foundation.domain.subscription import (
    REASON_COMPANY_INACTIVE,
    REASON_COMPANY_SUSPENDED,
    REASON_NO_COMPANY,
    REASON_TRIAL_EXPIRED,
    REASON_UNKNOWN_STATUS,
    WARNING_PAYMENT_OVERDUE,
    validate_subscription,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def _company(status: str = "active", **overrides: object) -> Company:
    fields: dict[str, object] = {
        "id": "c-1",
        "subscription_status": status,
        "is_active": True,
        "is_suspended": False,
    }
    fields.update(overrides)
    return Company(**fields)  # type: ignore[arg-type]


@pytest.mark.unit
class TestValidateSubscription:
    """Tests for validate_subscription."""

    def test_no_company(self) -> None:
        verdict = validate_subscription(None, now=NOW)
        assert not verdict.valid
        assert verdict.reason == REASON_NO_COMPANY

    def test_inactive(self) -> None:
        verdict = validate_subscription(_company(is_active=False), now=NOW)
        assert not verdict.valid
        assert verdict.reason == REASON_COMPANY_INACTIVE

    def test_inactive_checked_before_suspended(self) -> None:
        verdict = validate_subscription(
            _company(is_active=False, is_suspended=True), now=NOW
        )
        assert verdict.reason == REASON_COMPANY_INACTIVE

    @pytest.mark.parametrize(
        "status", [*(s.value for s in SubscriptionStatus), "mystery"]
    )
    def test_suspension_overrides_every_status(self, status: str) -> None:
        company = _company(status, is_suspended=True, trial_ends_at=NOW + timedelta(days=3))
        verdict = validate_subscription(company, now=NOW)
        assert not verdict.valid
        assert verdict.reason == REASON_COMPANY_SUSPENDED

    def test_active(self) -> None:
        verdict = validate_subscription(_company("active"), now=NOW)
        assert verdict.valid
        assert verdict.type is SubscriptionStatus.ACTIVE
        assert verdict.reason is None
        assert verdict.warning is None

    def test_past_due_is_valid_with_warning(self) -> None:
        verdict = validate_subscription(_company("past_due"), now=NOW)
        assert verdict.valid
        assert verdict.type is SubscriptionStatus.PAST_DUE
        assert verdict.warning == WARNING_PAYMENT_OVERDUE

    @pytest.mark.parametrize("status", ["cancelled", "suspended"])
    def test_terminal_statuses(self, status: str) -> None:
        verdict = validate_subscription(_company(status), now=NOW)
        assert not verdict.valid
        assert verdict.reason == f"Subscription {status}"

    @pytest.mark.parametrize("status", ["", "paused", "ACTIVE"])
    def test_unknown_status(self, status: str) -> None:
        verdict = validate_subscription(_company(status), now=NOW)
        assert not verdict.valid
        assert verdict.reason == REASON_UNKNOWN_STATUS


@pytest.mark.unit
class TestTrialWindow:
    """Tests for the trial boundary."""

    def test_valid_one_second_before_end(self) -> None:
        company = _company("trial", trial_ends_at=NOW)
        verdict = validate_subscription(company, now=NOW - timedelta(seconds=1))
        assert verdict.valid
        assert verdict.type is SubscriptionStatus.TRIAL

    def test_valid_exactly_at_end(self) -> None:
        company = _company("trial", trial_ends_at=NOW)
        assert validate_subscription(company, now=NOW).valid

    def test_invalid_one_second_after_end(self) -> None:
        company = _company("trial", trial_ends_at=NOW)
        verdict = validate_subscription(company, now=NOW + timedelta(seconds=1))
        assert not verdict.valid
        assert verdict.reason == REASON_TRIAL_EXPIRED

    def test_trial_without_end_is_expired(self) -> None:
        verdict = validate_subscription(_company("trial"), now=NOW)
        assert not verdict.valid
        assert verdict.reason == REASON_TRIAL_EXPIRED

    def test_naive_now_is_utc(self) -> None:
        company = _company("trial", trial_ends_at=NOW)
        naive = (NOW + timedelta(seconds=1)).replace(tzinfo=None)
        assert not validate_subscription(company, now=naive).valid

    def test_defaults_to_current_time(self) -> None:
        future = datetime.now(UTC) + timedelta(days=1)
        past = datetime.now(UTC) - timedelta(days=1)
        assert validate_subscription(_company("trial", trial_ends_at=future)).valid
        assert not validate_subscription(_company("trial", trial_ends_at=past)).valid
