"""Request models for the policy API."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from courial_shield.schemas.claim import Claim
from courial_shield.schemas.coverage import CoverageLedger
from courial_shield.schemas.member import Member


class EligibilityRequest(BaseModel):
    """Everything the evaluator needs; the API keeps no state."""

    member: Member
    ledger: CoverageLedger
    claim: Dict[str, Any] = Field(..., description="Raw claim submission payload")
    history: List[Claim] = Field(default_factory=list)
    submitted_at: Optional[datetime] = None


class PayoutQuoteRequest(BaseModel):
    """Quote a payout against a ledger, or against a fresh plan ledger."""

    amount: Decimal = Field(..., gt=0, description="Ticket amount in USD")
    violation_type: str = "parking_meter"
    ledger: Optional[CoverageLedger] = None
    plan: Optional[str] = Field(None, description="Plan tier when no ledger is given")


class CancellationCheckRequest(BaseModel):
    member: Member
    now: Optional[datetime] = None
