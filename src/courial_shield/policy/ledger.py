"""Coverage ledger mutations.

Every function returns a new ``CoverageLedger``; the input is never
modified. All mutations keep ``0 <= used_amount <= annual_cap`` and
``0 <= tickets_used <= max_tickets``.

A denied claim keeps the ticket it consumed at submission. This is a
fair-use rule: members cannot free up claim slots by submitting tickets
that are bound to be denied.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Optional, Union

from courial_shield.catalog.plans import get_plan_config
from courial_shield.config.settings import PolicySettings, get_policy_settings
from courial_shield.errors import InvalidInput
from courial_shield.schemas.coverage import CoverageLedger
from courial_shield.schemas.plan import PlanConfig, PlanTier
from courial_shield.utils.dates import ensure_utc, utc_now
from courial_shield.utils.money import ZERO, clamp, parse_amount, round_currency

logger = logging.getLogger(__name__)

PlanLike = Union[PlanConfig, PlanTier, str]


def _plan(plan: PlanLike) -> PlanConfig:
    return plan if isinstance(plan, PlanConfig) else get_plan_config(plan)


def _settings(settings: Optional[PolicySettings]) -> PolicySettings:
    return settings if settings is not None else get_policy_settings()


def open_ledger(
    member_id: str,
    plan: PlanLike,
    period_start: Optional[datetime] = None,
    settings: Optional[PolicySettings] = None,
) -> CoverageLedger:
    """Create an empty ledger for a new coverage period."""
    config = _plan(plan)
    start = ensure_utc(period_start) if period_start else utc_now()
    days = _settings(settings).coverage_period_days
    return CoverageLedger(
        member_id=member_id,
        plan_id=config.id,
        annual_cap=config.annual_cap,
        used_amount=ZERO,
        tickets_used=0,
        max_tickets=config.max_tickets_per_year,
        period_start=start,
        period_end=start + timedelta(days=days),
    )


def record_submission(ledger: CoverageLedger) -> CoverageLedger:
    """Consume one ticket for an accepted submission."""
    tickets = min(ledger.tickets_used + 1, ledger.max_tickets)
    return ledger.model_copy(update={"tickets_used": tickets})


def record_approval(ledger: CoverageLedger, payout_amount: Any) -> CoverageLedger:
    """Add a payout to the used amount, clamped to the annual cap.

    Raises:
        InvalidInput: If the payout is missing or negative.
    """
    payout = parse_amount(payout_amount)
    if payout is None or payout < 0:
        raise InvalidInput(f"Invalid payout amount: {payout_amount!r}", field="payout_amount")
    used = clamp(round_currency(ledger.used_amount + payout), ZERO, ledger.annual_cap)
    return ledger.model_copy(update={"used_amount": used})


def record_denial(ledger: CoverageLedger) -> CoverageLedger:
    """Denials leave the ledger unchanged; the submission ticket stays consumed."""
    return ledger


def change_plan(
    ledger: CoverageLedger,
    new_plan: PlanLike,
    carry_over: Optional[bool] = None,
    now: Optional[datetime] = None,
    settings: Optional[PolicySettings] = None,
) -> CoverageLedger:
    """Move a ledger to another plan.

    With carry-over (the default), used amount, tickets and the period
    survive, clamped to the new plan's limits. Without it, usage resets and
    a new period starts at ``now``.
    """
    config = _plan(new_plan)
    settings = _settings(settings)
    if carry_over is None:
        carry_over = settings.plan_change_carries_usage

    if not carry_over:
        logger.info(
            f"Plan change {ledger.plan_id.value} -> {config.id.value} for "
            f"{ledger.member_id}: usage reset"
        )
        return open_ledger(ledger.member_id, config, period_start=now, settings=settings)

    used = min(ledger.used_amount, config.annual_cap)
    tickets = min(ledger.tickets_used, config.max_tickets_per_year)
    if used != ledger.used_amount or tickets != ledger.tickets_used:
        logger.info(
            f"Plan change {ledger.plan_id.value} -> {config.id.value} for "
            f"{ledger.member_id}: usage clamped to new limits "
            f"(used {ledger.used_amount} -> {used}, tickets {ledger.tickets_used} -> {tickets})"
        )
    return CoverageLedger(
        member_id=ledger.member_id,
        plan_id=config.id,
        annual_cap=config.annual_cap,
        used_amount=used,
        tickets_used=tickets,
        max_tickets=config.max_tickets_per_year,
        period_start=ledger.period_start,
        period_end=ledger.period_end,
    )


def rollover(
    ledger: CoverageLedger, settings: Optional[PolicySettings] = None
) -> CoverageLedger:
    """Start the next coverage period with usage reset to zero."""
    days = _settings(settings).coverage_period_days
    start = ledger.period_end
    return ledger.model_copy(
        update={
            "used_amount": ZERO,
            "tickets_used": 0,
            "period_start": start,
            "period_end": start + timedelta(days=days),
        }
    )


def rollover_if_due(
    ledger: CoverageLedger,
    now: Optional[datetime] = None,
    settings: Optional[PolicySettings] = None,
) -> CoverageLedger:
    """Roll the ledger forward until ``now`` falls inside its period."""
    now = ensure_utc(now) if now else utc_now()
    settings = _settings(settings)
    current = ledger
    while now >= ensure_utc(current.period_end):
        current = rollover(current, settings)
    if current is not ledger:
        logger.info(
            f"Coverage period rolled over for {ledger.member_id}: "
            f"new period {current.period_start.date()} to {current.period_end.date()}"
        )
    return current


def usage_ratio(ledger: CoverageLedger) -> float:
    """Fraction of the annual cap already paid out (0.0 when the cap is zero)."""
    if ledger.annual_cap <= 0:
        return 0.0
    return float(ledger.used_amount / ledger.annual_cap)


def is_usage_warning(
    ledger: CoverageLedger,
    threshold: Optional[float] = None,
    settings: Optional[PolicySettings] = None,
) -> bool:
    """True once usage reaches the reminder threshold (50% by default)."""
    if threshold is None:
        threshold = _settings(settings).usage_warning_threshold
    return usage_ratio(ledger) >= threshold

