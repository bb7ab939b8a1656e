"""Pydantic model for the payout calculation."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class PayoutBreakdown(BaseModel):
    """Step-by-step payout calculation for one claim.

    payout = min(min(eligible * (1 - deductible_rate), per_claim_cap), remaining)
    """

    claim_amount: Decimal = Field(description="Ticket face value")
    eligible_amount: Decimal = Field(
        description="Claim amount after the violation's maximum (if any)"
    )
    deductible_rate: Decimal = Field(description="Member co-pay fraction")
    member_copay: Decimal = Field(description="eligible_amount * deductible_rate")
    after_deductible: Decimal = Field(description="eligible_amount - member_copay")
    per_claim_cap: Optional[Decimal] = Field(
        default=None, description="Plan per-claim cap, if the plan has one"
    )
    per_claim_cap_applied: bool = Field(
        default=False, description="Whether the per-claim cap reduced the payout"
    )
    remaining_before: Decimal = Field(description="Ledger remaining cap before payout")
    remaining_cap_applied: bool = Field(
        default=False, description="Whether the remaining cap reduced the payout"
    )
    payout_amount: Decimal = Field(description="Final payout")
    currency: str = Field(default="USD", description="Currency code")
