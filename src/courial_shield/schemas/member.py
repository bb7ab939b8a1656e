"""Pydantic schemas for the policy-relevant view of a member."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from courial_shield.schemas.plan import PlanTier, coerce_tier


class Address(BaseModel):
    """Registered operating address. Only the state matters to policy."""

    city: Optional[str] = None
    state: Optional[str] = Field(None, description="Two-letter US state code")
    zip: Optional[str] = None

    @field_validator("state")
    @classmethod
    def normalize_state(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip().upper()
        return v or None


class Member(BaseModel):
    """A member as seen by the policy engine."""

    id: str = Field(..., min_length=1, description="Member identifier")
    membership_started_at: Optional[datetime] = Field(
        None, description="When the membership became active (drives waiting period)"
    )
    current_plan: PlanTier = Field(
        default=PlanTier.FREE, description="Plan tier; unknown values normalize to free"
    )
    has_active_subscription: bool = Field(
        default=False, description="Whether the membership is active"
    )
    subscription_status: str = Field(
        default="inactive", description="active, inactive or cancelled"
    )
    address: Optional[Address] = None
    last_claim_payout_date: Optional[datetime] = Field(
        None, description="Most recent payout (drives the cancellation restriction)"
    )

    @field_validator("current_plan", mode="before")
    @classmethod
    def normalize_plan(cls, v):
        return coerce_tier(v)

    @property
    def home_state(self) -> Optional[str]:
        return self.address.state if self.address else None
