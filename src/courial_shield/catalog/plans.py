"""Plan catalog: limits, pricing and tier normalization."""

from decimal import Decimal
from typing import Dict, List, Optional

from courial_shield.errors import UnknownPlan
from courial_shield.schemas.plan import PlanConfig, PlanTier, coerce_tier

DEFAULT_PLAN = PlanTier.FREE
PAID_PLAN_IDS = (PlanTier.BASIC, PlanTier.PRO, PlanTier.PROFESSIONAL)

PLAN_CONFIGS: Dict[PlanTier, PlanConfig] = {
    PlanTier.FREE: PlanConfig(
        id=PlanTier.FREE,
        name="Free",
        monthly_price=Decimal("0.00"),
        annual_cap=Decimal("300.00"),
        max_tickets_per_year=12,
        deductible_rate=Decimal("0.25"),
        waiting_period_days=0,
        max_coverage_per_claim=Decimal("100.00"),
        features=[
            "Up to $100 per claim",
            "Up to $300 annual reimbursement cap",
            "25% member co-pay per ticket",
            "No waiting period",
        ],
    ),
    PlanTier.BASIC: PlanConfig(
        id=PlanTier.BASIC,
        name="Basic",
        monthly_price=Decimal("9.99"),
        annual_cap=Decimal("100.00"),
        max_tickets_per_year=12,
        deductible_rate=Decimal("0.20"),
        waiting_period_days=30,
        features=[
            "Up to $100 annual reimbursement cap",
            "20% member co-pay per ticket",
            "Standard Ticket Defense",
            "Email support",
        ],
    ),
    PlanTier.PRO: PlanConfig(
        id=PlanTier.PRO,
        name="Pro",
        monthly_price=Decimal("24.99"),
        annual_cap=Decimal("350.00"),
        max_tickets_per_year=24,
        deductible_rate=Decimal("0.15"),
        waiting_period_days=30,
        features=[
            "Up to $350 annual reimbursement cap",
            "15% member co-pay per ticket",
            "Priority Defense",
            "Phone & email support",
        ],
        popular=True,
    ),
    PlanTier.PROFESSIONAL: PlanConfig(
        id=PlanTier.PROFESSIONAL,
        name="Professional",
        monthly_price=Decimal("39.99"),
        annual_cap=Decimal("600.00"),
        max_tickets_per_year=50,
        deductible_rate=Decimal("0.15"),
        waiting_period_days=30,
        features=[
            "Up to $600 annual reimbursement cap",
            "15% member co-pay per ticket",
            "Concierge Defense",
            "$100 one-time towing credit",
            "Dedicated account manager",
        ],
        add_ons=["towing_credit"],
    ),
}


def normalize_plan(value: Optional[object]) -> PlanTier:
    """Normalize a stored plan value; None and unknown values map to free."""
    return coerce_tier(value)


def get_plan_config(tier: object) -> PlanConfig:
    """Look up a plan by tier.

    Raises:
        UnknownPlan: If ``tier`` is not one of the catalog tiers.
    """
    if isinstance(tier, PlanTier):
        return PLAN_CONFIGS[tier]
    if isinstance(tier, str):
        try:
            return PLAN_CONFIGS[PlanTier(tier.strip().lower())]
        except ValueError:
            pass
    raise UnknownPlan(tier)


def resolve_plan_config(value: Optional[object]) -> PlanConfig:
    """Plan config for a stored plan value, falling back to free."""
    return PLAN_CONFIGS[normalize_plan(value)]


def is_paid_plan(value: Optional[object]) -> bool:
    if isinstance(value, PlanTier):
        return value in PAID_PLAN_IDS
    if isinstance(value, str):
        return value.strip().lower() in {tier.value for tier in PAID_PLAN_IDS}
    return False


def paid_plan_configs() -> List[PlanConfig]:
    return [PLAN_CONFIGS[tier] for tier in PAID_PLAN_IDS]


def all_plan_configs() -> List[PlanConfig]:
    return [PLAN_CONFIGS[tier] for tier in PlanTier]
