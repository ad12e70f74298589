"""Subscription validity rules for a company.

Derives a validity verdict from a company's activation flags, suspension
flag, subscription status and trial window.

The checks run in a fixed order and the first match wins::

    no company -> inactive -> suspended -> trial window -> active
        -> past_due (grace) -> cancelled/suspended -> unknown

Do not reorder. Inactive and suspended flags must override any
subscription status; moving the status checks first would let a suspended
company keep an active-looking subscription.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sitegate.foundation.domain.company_value_objects import SubscriptionStatus

if TYPE_CHECKING:
    from sitegate.foundation.domain.company_value_objects import Company

REASON_NO_COMPANY = "No company"
REASON_COMPANY_INACTIVE = "Company inactive"
REASON_COMPANY_SUSPENDED = "Company suspended"
REASON_TRIAL_EXPIRED = "Trial expired"
REASON_UNKNOWN_STATUS = "Unknown subscription status"
WARNING_PAYMENT_OVERDUE = "Payment overdue"


@dataclass(frozen=True, slots=True)
class SubscriptionVerdict:
    """Outcome of subscription validation.

    Attributes:
        valid: Whether the subscription currently grants access.
        reason: Human-readable denial reason (invalid verdicts only).
        type: Subscription type for valid verdicts (trial/active/past_due).
        warning: Non-blocking notice, e.g. an overdue payment.
    """

    valid: bool
    reason: str | None = None
    type: SubscriptionStatus | None = None
    warning: str | None = None

    @classmethod
    def deny(cls, reason: str) -> SubscriptionVerdict:
        return cls(valid=False, reason=reason)


def validate_subscription(
    company: Company | None,
    *,
    now: datetime | None = None,
) -> SubscriptionVerdict:
    """Validate a company's subscription.

    Args:
        company: The company to check, or None.
        now: Evaluation time (aware or naive UTC). Defaults to current time.

    Returns:
        SubscriptionVerdict. Never raises.
    """
    if company is None:
        return SubscriptionVerdict.deny(REASON_NO_COMPANY)

    if not company.is_active:
        return SubscriptionVerdict.deny(REASON_COMPANY_INACTIVE)

    if company.is_suspended:
        return SubscriptionVerdict.deny(REASON_COMPANY_SUSPENDED)

    status = company.status

    if status is SubscriptionStatus.TRIAL:
        trial_end = company.trial_ends_at
        if trial_end is None or _utc(now) > _utc(trial_end):
            return SubscriptionVerdict.deny(REASON_TRIAL_EXPIRED)
        return SubscriptionVerdict(valid=True, type=SubscriptionStatus.TRIAL)

    if status is SubscriptionStatus.ACTIVE:
        return SubscriptionVerdict(valid=True, type=SubscriptionStatus.ACTIVE)

    if status is SubscriptionStatus.PAST_DUE:
        return SubscriptionVerdict(
            valid=True,
            type=SubscriptionStatus.PAST_DUE,
            warning=WARNING_PAYMENT_OVERDUE,
        )

    if status in (SubscriptionStatus.CANCELLED, SubscriptionStatus.SUSPENDED):
        return SubscriptionVerdict.deny(f"Subscription {status.value}")

    return SubscriptionVerdict.deny(REASON_UNKNOWN_STATUS)


def _utc(moment: datetime | None) -> datetime:
    # Naive datetimes are UTC.
    if moment is None:
        return datetime.now(UTC)
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment
