"""Cancellation restriction.

Members cannot cancel for 90 days after receiving a claim payout. The
restriction depends only on the member's last payout date, never on the
coverage ledger.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from courial_shield.config.settings import PolicySettings, get_policy_settings
from courial_shield.schemas.audit import AuditEventType
from courial_shield.schemas.cancellation import (
    CancellationCheckResult,
    CancellationOutcome,
)
from courial_shield.schemas.member import Member
from courial_shield.schemas.plan import PlanTier
from courial_shield.services.audit_trail import AuditTrail
from courial_shield.utils.dates import calendar_days_between, ensure_utc, utc_now

logger = logging.getLogger(__name__)


def check_cancellation_eligibility(
    member: Member,
    now: Optional[datetime] = None,
    settings: Optional[PolicySettings] = None,
) -> CancellationCheckResult:
    """Check whether the member may cancel at ``now``.

    Elapsed time is counted in calendar days from the last payout date.
    """
    if member.last_claim_payout_date is None:
        return CancellationCheckResult(can_cancel=True)

    settings = settings if settings is not None else get_policy_settings()
    restriction_days = settings.cancellation_restriction_days
    now = ensure_utc(now) if now else utc_now()
    last_payout = ensure_utc(member.last_claim_payout_date)

    elapsed = max(calendar_days_between(last_payout, now), 0)
    if elapsed >= restriction_days:
        return CancellationCheckResult(can_cancel=True)

    days_remaining = restriction_days - elapsed
    return CancellationCheckResult(
        can_cancel=False,
        reason=(
            f"Memberships cannot be cancelled for {restriction_days} days after a claim "
            f"payout. You can cancel in {days_remaining} day(s)."
        ),
        days_remaining=days_remaining,
        restriction_end_date=last_payout + timedelta(days=restriction_days),
    )


def cancel_subscription(
    member: Member,
    now: Optional[datetime] = None,
    settings: Optional[PolicySettings] = None,
    audit: Optional[AuditTrail] = None,
) -> CancellationOutcome:
    """Cancel the membership if the restriction allows it.

    A blocked attempt returns the member unchanged. A completed cancellation
    moves the member to the free tier with no active subscription.
    """
    check = check_cancellation_eligibility(member, now=now, settings=settings)

    if not check.can_cancel:
        logger.info(
            f"Cancellation blocked for {member.id}: {check.days_remaining} day(s) remaining"
        )
        if audit is not None:
            audit.record(
                AuditEventType.CANCELLATION_BLOCKED,
                member.id,
                summary=check.reason or "",
                details={
                    "days_remaining": check.days_remaining,
                    "restriction_end_date": check.restriction_end_date.isoformat()
                    if check.restriction_end_date
                    else None,
                },
                now=now,
            )
        return CancellationOutcome(check=check, member=member)

    updated = member.model_copy(
        update={
            "has_active_subscription": False,
            "current_plan": PlanTier.FREE,
            "subscription_status": "cancelled",
        }
    )
    logger.info(f"Membership cancelled for {member.id} (was {member.current_plan.value})")
    if audit is not None:
        audit.record(
            AuditEventType.CANCELLATION_COMPLETED,
            member.id,
            summary="Membership cancelled",
            details={"previous_plan": member.current_plan.value},
            now=now,
        )
    return CancellationOutcome(check=check, member=updated)
