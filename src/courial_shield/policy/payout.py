"""Payout calculation.

Formula (member co-pay model):
1. eligible = claim amount, reduced to the violation's maximum if the
   catalog defines one
2. after_deductible = eligible * (1 - deductible_rate)
3. Cap at the plan's per-claim maximum, if any
4. Cap at the ledger's remaining annual amount
5. Round half-up to cents
"""

import logging
from decimal import Decimal
from typing import Any, Optional

from courial_shield.catalog.plans import get_plan_config
from courial_shield.catalog.violations import coverage_rule_for
from courial_shield.errors import InvalidInput
from courial_shield.schemas.coverage import CoverageLedger
from courial_shield.schemas.payout import PayoutBreakdown
from courial_shield.schemas.plan import PlanConfig
from courial_shield.utils.money import ZERO, parse_amount, round_currency

logger = logging.getLogger(__name__)


def _positive_amount(value: Any) -> Decimal:
    amount = parse_amount(value)
    if amount is None:
        raise InvalidInput(f"Unparseable claim amount: {value!r}", field="amount")
    if amount <= 0:
        raise InvalidInput(f"Claim amount must be positive, got {amount}", field="amount")
    return amount


def calculate_payout_breakdown(
    claim_amount: Any,
    violation_type: Optional[str],
    ledger: CoverageLedger,
    plan: Optional[PlanConfig] = None,
) -> PayoutBreakdown:
    """Calculate the payout for a claim against a ledger.

    Args:
        claim_amount: Ticket face value.
        violation_type: Violation code or label; a per-violation maximum
            applies when the catalog defines one.
        ledger: Ledger supplying the remaining annual amount.
        plan: Plan supplying deductible and per-claim cap. Defaults to the
            ledger's plan; approvals pass the claim's submission-time plan.

    Raises:
        InvalidInput: If the amount is missing or not positive.
    """
    amount = _positive_amount(claim_amount)
    if plan is None:
        plan = get_plan_config(ledger.plan_id)

    eligible = amount
    rule = coverage_rule_for(violation_type)
    if rule is not None and rule.max_amount is not None:
        eligible = min(amount, rule.max_amount)

    after_deductible = eligible * (Decimal("1") - plan.deductible_rate)
    capped = after_deductible

    per_claim_cap_applied = False
    if plan.max_coverage_per_claim is not None and capped > plan.max_coverage_per_claim:
        capped = plan.max_coverage_per_claim
        per_claim_cap_applied = True

    remaining = ledger.remaining_amount
    remaining_cap_applied = False
    if capped > remaining:
        capped = remaining
        remaining_cap_applied = True

    payout = min(max(round_currency(capped), ZERO), remaining)

    breakdown = PayoutBreakdown(
        claim_amount=round_currency(amount),
        eligible_amount=round_currency(eligible),
        deductible_rate=plan.deductible_rate,
        member_copay=round_currency(eligible - after_deductible),
        after_deductible=round_currency(after_deductible),
        per_claim_cap=plan.max_coverage_per_claim,
        per_claim_cap_applied=per_claim_cap_applied,
        remaining_before=remaining,
        remaining_cap_applied=remaining_cap_applied,
        payout_amount=payout,
    )
    logger.debug(
        f"Payout for {amount} ({violation_type}, plan {plan.id.value}): {payout} "
        f"[per-claim cap applied: {per_claim_cap_applied}, "
        f"remaining cap applied: {remaining_cap_applied}]"
    )
    return breakdown


def calculate_payout(
    claim_amount: Any,
    violation_type: Optional[str],
    ledger: CoverageLedger,
    plan: Optional[PlanConfig] = None,
) -> Decimal:
    """Payout amount only; see :func:`calculate_payout_breakdown`."""
    return calculate_payout_breakdown(claim_amount, violation_type, ledger, plan).payout_amount
