"""Audit event schema for claim and membership decisions."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events that can be recorded."""

    CLAIM_SUBMITTED = "claim_submitted"
    CLAIM_REJECTED = "claim_rejected"
    CLAIM_REVIEW_STARTED = "claim_review_started"
    CLAIM_APPROVED = "claim_approved"
    PAYOUT_COMPLETED = "payout_completed"
    CLAIM_DENIED = "claim_denied"
    CANCELLATION_BLOCKED = "cancellation_blocked"
    CANCELLATION_COMPLETED = "cancellation_completed"
    PROOF_OF_PAYMENT_REQUESTED = "proof_of_payment_requested"
    PROOF_OF_PAYMENT_RECEIVED = "proof_of_payment_received"


class AuditEvent(BaseModel):
    """A single recorded policy decision."""

    event_id: str = Field(..., description="Unique event identifier")
    event_type: AuditEventType = Field(..., description="What happened")
    member_id: str = Field(..., description="Member the event concerns")
    claim_id: Optional[str] = Field(None, description="Claim, for claim events")
    created_at: datetime = Field(..., description="When the event was recorded")
    summary: str = Field(default="", description="Human-readable summary")
    details: Dict[str, Any] = Field(default_factory=dict, description="Event payload")
