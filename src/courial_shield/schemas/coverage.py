"""Pydantic schema for the per-member coverage ledger."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from courial_shield.schemas.plan import PlanTier
from courial_shield.utils.money import ZERO


class CoverageLedger(BaseModel):
    """Used and remaining coverage of one membership period.

    Ledgers are values: every mutation in ``courial_shield.policy.ledger``
    returns a new instance, and construction rejects any state outside
    ``0 <= used_amount <= annual_cap`` and ``0 <= tickets_used <= max_tickets``.
    """

    model_config = ConfigDict(frozen=True)

    member_id: str = Field(..., description="Owning member")
    plan_id: PlanTier = Field(..., description="Plan the caps were taken from")
    annual_cap: Decimal = Field(..., ge=0)
    used_amount: Decimal = Field(default=ZERO, ge=0)
    tickets_used: int = Field(default=0, ge=0)
    max_tickets: int = Field(..., ge=0)
    period_start: datetime
    period_end: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def remaining_amount(self) -> Decimal:
        """``annual_cap - used_amount``, never negative."""
        return max(self.annual_cap - self.used_amount, ZERO)

    @property
    def tickets_remaining(self) -> int:
        return max(self.max_tickets - self.tickets_used, 0)

    @model_validator(mode="before")
    @classmethod
    def drop_remaining_amount(cls, data):
        # remaining_amount is derived; accept (and ignore) it in stored payloads
        if isinstance(data, dict) and "remaining_amount" in data:
            data = {k: v for k, v in data.items() if k != "remaining_amount"}
        return data

    @model_validator(mode="after")
    def check_invariants(self) -> "CoverageLedger":
        if self.used_amount > self.annual_cap:
            raise ValueError(
                f"used_amount {self.used_amount} exceeds annual_cap {self.annual_cap}"
            )
        if self.tickets_used > self.max_tickets:
            raise ValueError(
                f"tickets_used {self.tickets_used} exceeds max_tickets {self.max_tickets}"
            )
        if self.period_end <= self.period_start:
            raise ValueError("period_end must be after period_start")
        return self
