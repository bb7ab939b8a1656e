"""Pydantic schemas for parking-ticket claims and their submission payload."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from courial_shield.errors import InvalidInput
from courial_shield.schemas.plan import PlanConfig
from courial_shield.utils.dates import parse_ticket_date
from courial_shield.utils.money import parse_amount, round_currency


class ClaimStatus(str, Enum):
    """Lifecycle of a claim. ``paid`` and ``denied`` are terminal."""

    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    PAID = "paid"
    DENIED = "denied"

    @property
    def is_terminal(self) -> bool:
        return self in (ClaimStatus.PAID, ClaimStatus.DENIED)


class ClaimSubmission(BaseModel):
    """Claim data as captured by the submission form or OCR.

    Use :meth:`from_payload` for untrusted input: it normalizes loose values
    (``"$85.00"``, ``"01/23/2026"``, ``"ca"``) and raises ``InvalidInput``
    naming the offending field.
    """

    ticket_number: str = Field(..., min_length=1, description="Citation number")
    ticket_date: date = Field(..., description="Date the citation was issued")
    city: str = Field(default="", description="Issuing city")
    state: str = Field(..., min_length=2, max_length=2, description="Issuing state")
    violation_type: str = Field(
        ..., description="Violation code or label, e.g. parking_meter or Fire Hydrant"
    )
    amount: Decimal = Field(..., gt=0, description="Ticket face value in USD")

    # Contest fields travel with the claim but are not used by policy
    contest_reason: Optional[str] = None
    contest_notes: Optional[str] = None
    photo_url: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ClaimSubmission":
        """Validate a raw submission dict.

        Raises:
            InvalidInput: blank ticket number, unparseable date, bad state,
                missing violation type, or non-positive amount.
        """
        if not isinstance(payload, dict):
            raise InvalidInput("Claim payload must be an object")

        ticket_number = str(payload.get("ticket_number") or "").strip()
        if not ticket_number:
            raise InvalidInput("Ticket number is required", field="ticket_number")

        ticket_date = parse_ticket_date(payload.get("ticket_date"))
        if ticket_date is None:
            raise InvalidInput(
                f"Unparseable ticket date: {payload.get('ticket_date')!r}",
                field="ticket_date",
            )

        state = str(payload.get("state") or "").strip().upper()
        if len(state) != 2 or not state.isalpha():
            raise InvalidInput(
                f"State must be a 2-letter code, got {payload.get('state')!r}",
                field="state",
            )

        violation_type = str(payload.get("violation_type") or "").strip()
        if not violation_type:
            raise InvalidInput("Violation type is required", field="violation_type")

        amount = parse_amount(payload.get("amount"))
        if amount is None:
            raise InvalidInput(
                f"Unparseable amount: {payload.get('amount')!r}", field="amount"
            )
        if amount <= 0:
            raise InvalidInput(
                f"Ticket amount must be positive, got {amount}", field="amount"
            )

        return cls(
            ticket_number=ticket_number,
            ticket_date=ticket_date,
            city=str(payload.get("city") or "").strip(),
            state=state,
            violation_type=violation_type,
            amount=round_currency(amount),
            contest_reason=payload.get("contest_reason"),
            contest_notes=payload.get("contest_notes"),
            photo_url=payload.get("photo_url"),
        )


class Claim(BaseModel):
    """A submitted claim and its decision history."""

    id: str = Field(..., description="Claim identifier")
    member_id: str = Field(..., description="Owning member")
    ticket_number: str
    ticket_date: date
    city: str = ""
    state: str
    violation_type: str
    amount: Decimal = Field(..., gt=0)
    status: ClaimStatus = ClaimStatus.SUBMITTED
    submitted_at: datetime
    updated_at: datetime
    plan_snapshot: PlanConfig = Field(
        ..., description="Plan in force when the claim was submitted"
    )

    payout_amount: Optional[Decimal] = None
    payout_date: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    decision_code: Optional[str] = Field(
        None, description="APPROVED_STANDARD or the denial code"
    )
    denial_code: Optional[str] = None
    denial_reason: Optional[str] = None
    decision_notes: Optional[str] = None
    jurisdiction_warnings: List[str] = Field(default_factory=list)

    # Post-payout audit
    proof_of_payment_requested_at: Optional[datetime] = None
    proof_of_payment_reason: Optional[str] = Field(
        None, description="audit, fraud_detection or abuse_prevention"
    )
    proof_of_payment_received_at: Optional[datetime] = None
    proof_of_payment_url: Optional[str] = None


class ApprovalDecision(BaseModel):
    """Reviewer decision to approve and pay a claim."""

    claim_id: str
    decision_notes: Optional[str] = None


class DenialDecision(BaseModel):
    """Reviewer decision to deny a claim."""

    claim_id: str
    denial_code: str
    decision_notes: Optional[str] = None
