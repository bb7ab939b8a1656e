"""Pydantic schemas for membership plan tiers."""

from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PlanTier(str, Enum):
    """Membership plan tiers."""

    FREE = "free"
    BASIC = "basic"
    PRO = "pro"
    PROFESSIONAL = "professional"


class PlanConfig(BaseModel):
    """Immutable limits and pricing of one plan tier.

    Claims keep a copy of the PlanConfig in force when they were submitted,
    so later plan changes never alter the deductible of a past claim.
    """

    model_config = ConfigDict(frozen=True)

    id: PlanTier = Field(..., description="Plan tier")
    name: str = Field(..., description="Display name")
    monthly_price: Decimal = Field(..., ge=0, description="Monthly price in USD")
    annual_cap: Decimal = Field(
        ..., ge=0, description="Maximum reimbursement per coverage period"
    )
    max_tickets_per_year: int = Field(
        ..., ge=0, description="Maximum claims per coverage period"
    )
    deductible_rate: Decimal = Field(
        ..., ge=0, le=1, description="Member co-pay fraction (0-1)"
    )
    waiting_period_days: int = Field(
        ..., ge=0, description="Days after membership start before tickets are covered"
    )
    max_coverage_per_claim: Optional[Decimal] = Field(
        default=None, ge=0, description="Per-claim reimbursement cap (None = no cap)"
    )
    features: List[str] = Field(default_factory=list)
    add_ons: List[str] = Field(default_factory=list)
    popular: bool = False

    @property
    def is_paid(self) -> bool:
        return self.id != PlanTier.FREE


def coerce_tier(value: object) -> PlanTier:
    """Map a stored plan value to a tier; ``None`` and unknown values become free."""
    if isinstance(value, PlanTier):
        return value
    if isinstance(value, str):
        try:
            return PlanTier(value.strip().lower())
        except ValueError:
            return PlanTier.FREE
    return PlanTier.FREE
