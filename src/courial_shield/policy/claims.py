"""Claim decision workflow.

Ties the evaluator, payout calculator and ledger together:

    submit_claim  -> evaluate, create claim (submitted), consume a ticket
    start_review  -> submitted -> under_review
    mark_approved -> under_review -> approved
    approve_claim -> submitted | under_review | approved -> paid
    deny_claim    -> any non-terminal state -> denied

Submissions and approvals for the same member are serialized with a
per-member lock. The lock only protects the ledger the caller passes in:
hosts that load and store ledgers must wrap that cycle in
``service.locks.hold(member_id)`` so two concurrent submissions cannot both
see the last free ticket. Approvals are checked against the audit trail, so
a claim id is paid at most once per service. Different members proceed in
parallel.
"""

import logging
import threading
import uuid
import weakref
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterable, Iterator, List, Optional

from courial_shield.catalog.denial_codes import (
    GENERIC_DENIAL_EXPLANATION,
    find_denial_code,
)
from courial_shield.catalog.plans import get_plan_config
from courial_shield.catalog.violations import normalize_violation_type
from courial_shield.config.settings import PolicySettings, get_policy_settings
from courial_shield.errors import InvalidInput, StateInconsistency
from courial_shield.policy.eligibility import (
    EligibilityEvaluator,
    SubmissionLike,
    coerce_submission,
)
from courial_shield.policy.ledger import (
    is_usage_warning,
    record_approval,
    record_submission,
    rollover_if_due,
)
from courial_shield.policy.payout import calculate_payout_breakdown
from courial_shield.schemas.audit import AuditEventType
from courial_shield.schemas.claim import Claim, ClaimStatus
from courial_shield.schemas.coverage import CoverageLedger
from courial_shield.schemas.member import Member
from courial_shield.schemas.outcomes import ApprovalOutcome, SubmissionOutcome
from courial_shield.services.audit_trail import AuditTrail
from courial_shield.utils.dates import assume_utc, ensure_utc, utc_now

logger = logging.getLogger(__name__)

APPROVED_STANDARD = "APPROVED_STANDARD"
DEFAULT_APPROVAL_NOTES = "Claim approved - payout released"
PROOF_OF_PAYMENT_REASONS = ("audit", "fraud_detection", "abuse_prevention")

_APPROVABLE = (ClaimStatus.SUBMITTED, ClaimStatus.UNDER_REVIEW, ClaimStatus.APPROVED)


class MemberLocks:
    """One re-entrant lock per member id, created on first use.

    Locks are held weakly: a member's lock lives while some thread holds or
    waits on it and is dropped afterwards, so the map does not grow with
    every member the process has seen.

    Hosts that load and store ledgers should wrap the whole
    read-submit-write cycle in ``hold(member_id)``; the service re-enters
    the same lock internally.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, Any]" = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def _lock_for(self, member_id: str) -> Any:
        with self._guard:
            lock = self._locks.get(member_id)
            if lock is None:
                lock = self._locks[member_id] = threading.RLock()
            return lock

    @contextmanager
    def hold(self, member_id: str) -> Iterator[None]:
        lock = self._lock_for(member_id)
        with lock:
            yield


class ClaimsService:
    """Claim lifecycle operations for one process.

    All operations take and return values; persisting the returned claim,
    ledger and member is up to the caller.
    """

    def __init__(
        self,
        settings: Optional[PolicySettings] = None,
        audit: Optional[AuditTrail] = None,
    ):
        self.settings = settings if settings is not None else get_policy_settings()
        self.audit = audit if audit is not None else AuditTrail()
        self.evaluator = EligibilityEvaluator(self.settings)
        self.locks = MemberLocks()

    def _generate_claim_id(self) -> str:
        return f"clm_{uuid.uuid4().hex[:12]}"

    # ── Submission ───────────────────────────────────────────────────

    def submit_claim(
        self,
        member: Member,
        ledger: CoverageLedger,
        submission: SubmissionLike,
        claim_history: Iterable[Claim] = (),
        submitted_at: Optional[datetime] = None,
    ) -> SubmissionOutcome:
        """Evaluate a submission and, when eligible, create the claim.

        The ledger is rolled into the current coverage period first. A
        rejected submission returns no claim and leaves the ledger as is.

        Raises:
            InvalidInput: If the submission is malformed.
        """
        submission = coerce_submission(submission)
        submitted_at = assume_utc(submitted_at) if submitted_at else utc_now()

        with self.locks.hold(member.id):
            ledger = rollover_if_due(ledger, submitted_at, self.settings)
            result = self.evaluator.evaluate(
                member, ledger, submission, claim_history, submitted_at
            )

            if not result.eligible:
                self.audit.record(
                    AuditEventType.CLAIM_REJECTED,
                    member.id,
                    summary=result.reason,
                    details={
                        "ticket_number": submission.ticket_number,
                        "denial_code": result.denial_code,
                    },
                    now=submitted_at,
                )
                return SubmissionOutcome(result=result, claim=None, ledger=ledger)

            claim = Claim(
                id=self._generate_claim_id(),
                member_id=member.id,
                ticket_number=submission.ticket_number,
                ticket_date=submission.ticket_date,
                city=submission.city,
                state=submission.state,
                violation_type=normalize_violation_type(submission.violation_type)
                or submission.violation_type,
                amount=submission.amount,
                status=ClaimStatus.SUBMITTED,
                submitted_at=submitted_at,
                updated_at=submitted_at,
                plan_snapshot=get_plan_config(ledger.plan_id),
                jurisdiction_warnings=result.warnings,
            )
            updated_ledger = record_submission(ledger)

        logger.info(
            f"Claim {claim.id} submitted for member {member.id}: "
            f"{claim.violation_type} ${claim.amount} "
            f"(tickets {updated_ledger.tickets_used}/{updated_ledger.max_tickets})"
        )
        self.audit.record(
            AuditEventType.CLAIM_SUBMITTED,
            member.id,
            claim_id=claim.id,
            summary=f"Claim submitted for ticket {claim.ticket_number}",
            details={
                "amount": str(claim.amount),
                "violation_type": claim.violation_type,
                "plan": claim.plan_snapshot.id.value,
                "warnings": claim.jurisdiction_warnings,
            },
            now=submitted_at,
        )
        return SubmissionOutcome(result=result, claim=claim, ledger=updated_ledger)

    # ── Review ───────────────────────────────────────────────────────

    def _require_status(self, claim: Claim, allowed, action: str) -> None:
        if claim.status not in allowed:
            logger.warning(
                f"Refusing to {action} claim {claim.id} in status {claim.status.value}"
            )
            raise StateInconsistency(
                f"Cannot {action} claim {claim.id}: status is {claim.status.value}",
                claim_id=claim.id,
                status=claim.status.value,
            )

    def _require_not_paid(self, claim: Claim, action: str) -> None:
        """Refuse a claim this service already paid, even through a stale copy."""
        paid = self.audit.for_claim(claim.id)
        if any(e.event_type == AuditEventType.PAYOUT_COMPLETED for e in paid):
            logger.warning(f"Refusing to {action} claim {claim.id}: payout already released")
            raise StateInconsistency(
                f"Cannot {action} claim {claim.id}: payout already released",
                claim_id=claim.id,
                status=ClaimStatus.PAID.value,
            )

    def start_review(self, claim: Claim, now: Optional[datetime] = None) -> Claim:
        """Move a submitted claim to under_review."""
        self._require_status(claim, (ClaimStatus.SUBMITTED,), "review")
        now = ensure_utc(now) if now else utc_now()
        updated = claim.model_copy(
            update={"status": ClaimStatus.UNDER_REVIEW, "updated_at": now}
        )
        self.audit.record(
            AuditEventType.CLAIM_REVIEW_STARTED,
            claim.member_id,
            claim_id=claim.id,
            summary="Claim review started",
            now=now,
        )
        return updated

    def mark_approved(
        self,
        claim: Claim,
        decision_notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Claim:
        """Record an approval decision without releasing the payout yet."""
        self._require_status(claim, (ClaimStatus.UNDER_REVIEW,), "mark approved")
        now = ensure_utc(now) if now else utc_now()
        updated = claim.model_copy(
            update={
                "status": ClaimStatus.APPROVED,
                "approved_at": now,
                "decision_code": APPROVED_STANDARD,
                "decision_notes": decision_notes or claim.decision_notes,
                "updated_at": now,
            }
        )
        logger.info(f"Claim {claim.id} approved, payout pending")
        self.audit.record(
            AuditEventType.CLAIM_APPROVED,
            claim.member_id,
            claim_id=claim.id,
            summary="Claim approved",
            details={"decision_code": APPROVED_STANDARD},
            now=now,
        )
        return updated

    # ── Decision ─────────────────────────────────────────────────────

    def approve_claim(
        self,
        claim: Claim,
        ledger: CoverageLedger,
        member: Member,
        decision_notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ApprovalOutcome:
        """Approve a claim and release its payout (pay-on-approval).

        The payout uses the plan in force when the claim was submitted and is
        capped at the ledger's remaining amount. A payout above zero starts
        the member's cancellation restriction.

        Raises:
            StateInconsistency: If the claim is already paid or denied (including
                a stale copy of a claim this service paid), or the claim or
                ledger belongs to another member.
        """
        if claim.member_id != member.id or ledger.member_id != member.id:
            logger.warning(
                f"Refusing to approve claim {claim.id}: member mismatch "
                f"(claim {claim.member_id}, ledger {ledger.member_id}, member {member.id})"
            )
            raise StateInconsistency(
                f"Claim {claim.id} does not belong to member {member.id}",
                claim_id=claim.id,
                status=claim.status.value,
            )
        self._require_status(claim, _APPROVABLE, "approve")
        now = ensure_utc(now) if now else utc_now()

        # The paid check and the payout record share one critical section
        with self.locks.hold(member.id):
            self._require_not_paid(claim, "approve")
            breakdown = calculate_payout_breakdown(
                claim.amount, claim.violation_type, ledger, plan=claim.plan_snapshot
            )
            payout = breakdown.payout_amount
            updated_ledger = record_approval(ledger, payout)

            if claim.status != ClaimStatus.APPROVED:
                self.audit.record(
                    AuditEventType.CLAIM_APPROVED,
                    member.id,
                    claim_id=claim.id,
                    summary="Claim approved",
                    details={"decision_code": APPROVED_STANDARD},
                    now=now,
                )
            self.audit.record(
                AuditEventType.PAYOUT_COMPLETED,
                member.id,
                claim_id=claim.id,
                summary=f"Payout of ${payout} released",
                details={
                    "payout_amount": str(payout),
                    "per_claim_cap_applied": breakdown.per_claim_cap_applied,
                    "remaining_cap_applied": breakdown.remaining_cap_applied,
                    "note": "Pay-on-approval: payment released without proof of ticket payment",
                },
                now=now,
            )

        updated_claim = claim.model_copy(
            update={
                "status": ClaimStatus.PAID,
                "payout_amount": payout,
                "payout_date": now,
                "approved_at": claim.approved_at or now,
                "decision_code": APPROVED_STANDARD,
                "decision_notes": decision_notes or claim.decision_notes or DEFAULT_APPROVAL_NOTES,
                "updated_at": now,
            }
        )
        updated_member = member
        if payout > 0:
            updated_member = member.model_copy(update={"last_claim_payout_date": now})

        logger.info(
            f"Claim {claim.id} paid ${payout} to member {member.id} "
            f"(remaining ${updated_ledger.remaining_amount})"
        )
        if is_usage_warning(updated_ledger, settings=self.settings):
            logger.info(
                f"Member {member.id} has used {updated_ledger.used_amount} of "
                f"{updated_ledger.annual_cap} annual coverage"
            )

        return ApprovalOutcome(
            claim=updated_claim,
            ledger=updated_ledger,
            member=updated_member,
            payout=breakdown,
        )

    def deny_claim(
        self,
        claim: Claim,
        denial_code: str,
        decision_notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Claim:
        """Deny a claim. The ticket it consumed is not refunded.

        Unknown codes are recorded as given, with the generic explanation,
        and are treated as non-appealable.

        Raises:
            StateInconsistency: If the claim is already paid or denied, or this
                service already released its payout.
        """
        self._require_status(
            claim, (ClaimStatus.SUBMITTED, ClaimStatus.UNDER_REVIEW, ClaimStatus.APPROVED), "deny"
        )
        self._require_not_paid(claim, "deny")
        now = ensure_utc(now) if now else utc_now()

        entry = find_denial_code(denial_code)
        if entry is None:
            logger.warning(f"Denying claim {claim.id} with unknown code {denial_code!r}")
            code = denial_code
            reason = "Claim denied"
            explanation = GENERIC_DENIAL_EXPLANATION
        else:
            code = entry.code
            reason = entry.reason
            explanation = entry.user_explanation

        updated = claim.model_copy(
            update={
                "status": ClaimStatus.DENIED,
                "denial_code": code,
                "denial_reason": reason,
                "decision_code": code,
                "decision_notes": decision_notes or explanation,
                "updated_at": now,
            }
        )
        logger.info(f"Claim {claim.id} denied: {code}")
        self.audit.record(
            AuditEventType.CLAIM_DENIED,
            claim.member_id,
            claim_id=claim.id,
            summary=reason,
            details={"denial_code": code, "appealable": bool(entry and entry.appealable)},
            now=now,
        )
        return updated

    # ── Post-payout audit ────────────────────────────────────────────

    def request_proof_of_payment(
        self,
        claim: Claim,
        reason: str = "audit",
        now: Optional[datetime] = None,
    ) -> Claim:
        """Ask the member to prove the ticket was paid (after payout only)."""
        self._require_status(claim, (ClaimStatus.PAID,), "request proof of payment for")
        if reason not in PROOF_OF_PAYMENT_REASONS:
            raise InvalidInput(
                f"Unknown proof-of-payment reason '{reason}'. "
                f"Valid reasons: {list(PROOF_OF_PAYMENT_REASONS)}",
                field="reason",
            )
        now = ensure_utc(now) if now else utc_now()
        updated = claim.model_copy(
            update={
                "proof_of_payment_requested_at": now,
                "proof_of_payment_reason": reason,
                "updated_at": now,
            }
        )
        self.audit.record(
            AuditEventType.PROOF_OF_PAYMENT_REQUESTED,
            claim.member_id,
            claim_id=claim.id,
            summary=f"Proof of payment requested ({reason})",
            details={"reason": reason},
            now=now,
        )
        return updated

    def record_proof_of_payment(
        self,
        claim: Claim,
        proof_url: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Claim:
        """Record that the member supplied proof the ticket was paid."""
        self._require_status(claim, (ClaimStatus.PAID,), "record proof of payment for")
        now = ensure_utc(now) if now else utc_now()
        updated = claim.model_copy(
            update={
                "proof_of_payment_received_at": now,
                "proof_of_payment_url": proof_url,
                "updated_at": now,
            }
        )
        self.audit.record(
            AuditEventType.PROOF_OF_PAYMENT_RECEIVED,
            claim.member_id,
            claim_id=claim.id,
            summary="Proof of payment received",
            details={"proof_url": proof_url},
            now=now,
        )
        return updated


def claims_paid_without_proof(claims: Iterable[Claim]) -> List[Claim]:
    """Paid claims with no proof of payment on file."""
    return [
        claim
        for claim in claims
        if claim.status == ClaimStatus.PAID and claim.proof_of_payment_received_at is None
    ]


def claims_pending_proof(claims: Iterable[Claim]) -> List[Claim]:
    """Claims where proof of payment was requested but not yet received."""
    return [
        claim
        for claim in claims
        if claim.proof_of_payment_requested_at is not None
        and claim.proof_of_payment_received_at is None
    ]
