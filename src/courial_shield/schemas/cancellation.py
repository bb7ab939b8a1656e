"""Pydantic models for the cancellation restriction."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from courial_shield.schemas.member import Member


class CancellationCheckResult(BaseModel):
    """Whether a member may cancel right now."""

    can_cancel: bool
    reason: Optional[str] = Field(None, description="Why cancellation is blocked")
    days_remaining: Optional[int] = Field(
        None, ge=0, description="Days until the restriction lifts"
    )
    restriction_end_date: Optional[datetime] = Field(
        None, description="When the restriction lifts"
    )


class CancellationOutcome(BaseModel):
    """Result of a cancellation attempt."""

    check: CancellationCheckResult
    member: Member = Field(..., description="Member after the attempt")

    @property
    def cancelled(self) -> bool:
        return self.check.can_cancel
