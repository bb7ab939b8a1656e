"""Pydantic schemas for plans, members, claims, ledgers and decisions."""

from courial_shield.schemas.audit import AuditEvent, AuditEventType
from courial_shield.schemas.cancellation import (
    CancellationCheckResult,
    CancellationOutcome,
)
from courial_shield.schemas.claim import (
    ApprovalDecision,
    Claim,
    ClaimStatus,
    ClaimSubmission,
    DenialDecision,
)
from courial_shield.schemas.coverage import CoverageLedger
from courial_shield.schemas.denial import DenialCode
from courial_shield.schemas.eligibility import (
    CheckVerdict,
    EligibilityCheck,
    EligibilityResult,
)
from courial_shield.schemas.member import Address, Member
from courial_shield.schemas.outcomes import ApprovalOutcome, SubmissionOutcome
from courial_shield.schemas.payout import PayoutBreakdown
from courial_shield.schemas.plan import PlanConfig, PlanTier

__all__ = [
    "Address",
    "ApprovalDecision",
    "ApprovalOutcome",
    "AuditEvent",
    "AuditEventType",
    "CancellationCheckResult",
    "CancellationOutcome",
    "CheckVerdict",
    "Claim",
    "ClaimStatus",
    "ClaimSubmission",
    "CoverageLedger",
    "DenialCode",
    "DenialDecision",
    "EligibilityCheck",
    "EligibilityResult",
    "Member",
    "PayoutBreakdown",
    "PlanConfig",
    "PlanTier",
    "SubmissionOutcome",
]
