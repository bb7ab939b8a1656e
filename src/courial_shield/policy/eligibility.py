"""Eligibility evaluation for parking-ticket claims.

Checks run in a fixed order and the first failure decides the outcome:

1. active_membership    -> NO_ACTIVE_MEMBERSHIP
2. waiting_period       -> WAITING_PERIOD
3. submission_window    -> LATE_SUBMISSION
4. violation_coverage   -> EXCLUDED_VIOLATION
5. duplicate            -> DUPLICATE_CLAIM
6. coverage_remaining   -> TICKET_LIMIT_EXCEEDED / CAP_EXCEEDED
7. jurisdiction         (WARN only, never blocks)

Evaluation is pure: nothing is mutated and nothing is persisted.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

from courial_shield.catalog import denial_codes
from courial_shield.catalog.jurisdiction import (
    is_approved_jurisdiction,
    is_state_supported,
)
from courial_shield.catalog.plans import get_plan_config
from courial_shield.catalog.violations import (
    exclusion_reason,
    is_absolute_exclusion,
    is_violation_covered,
    normalize_violation_type,
)
from courial_shield.config.settings import PolicySettings, get_policy_settings
from courial_shield.errors import InvalidInput
from courial_shield.schemas.claim import Claim, ClaimSubmission
from courial_shield.schemas.coverage import CoverageLedger
from courial_shield.schemas.eligibility import (
    CheckVerdict,
    EligibilityCheck,
    EligibilityResult,
)
from courial_shield.schemas.member import Member
from courial_shield.utils.dates import assume_utc, calendar_days_between, to_date, utc_now

logger = logging.getLogger(__name__)

SubmissionLike = Union[ClaimSubmission, Dict[str, Any]]

ELIGIBLE_REASON = "Claim meets all eligibility requirements"


def normalize_ticket_number(ticket_number: str) -> str:
    """Trim and casefold a citation number for duplicate detection."""
    return ticket_number.strip().casefold()


def coerce_submission(submission: SubmissionLike) -> ClaimSubmission:
    if isinstance(submission, ClaimSubmission):
        return submission
    return ClaimSubmission.from_payload(submission)


class EligibilityEvaluator:
    """Runs the eligibility checks for one claim submission.

    Usage:
        evaluator = EligibilityEvaluator()
        result = evaluator.evaluate(member, ledger, submission, history)
        if not result.eligible:
            print(result.denial_code, result.reason)
    """

    def __init__(self, settings: Optional[PolicySettings] = None):
        self.settings = settings if settings is not None else get_policy_settings()

    def evaluate(
        self,
        member: Member,
        ledger: CoverageLedger,
        submission: SubmissionLike,
        claim_history: Iterable[Claim] = (),
        submitted_at: Optional[datetime] = None,
    ) -> EligibilityResult:
        """Evaluate a submission.

        Raises:
            InvalidInput: If the submission is malformed, the ticket is dated
                after the submission date, or the ledger belongs to another
                member.
        """
        submission = coerce_submission(submission)
        submitted_at = assume_utc(submitted_at) if submitted_at else utc_now()

        if ledger.member_id != member.id:
            raise InvalidInput(
                f"Ledger belongs to {ledger.member_id}, not {member.id}", field="ledger"
            )
        if submission.ticket_date > submitted_at.date():
            raise InvalidInput(
                f"Ticket date {submission.ticket_date} is after the submission date "
                f"{submitted_at.date()}",
                field="ticket_date",
            )

        gates = (
            (lambda: self._check_active_membership(member), denial_codes.NO_ACTIVE_MEMBERSHIP),
            (lambda: self._check_waiting_period(member, ledger, submission), denial_codes.WAITING_PERIOD),
            (lambda: self._check_submission_window(submission, submitted_at), denial_codes.LATE_SUBMISSION),
            (lambda: self._check_violation_coverage(submission), denial_codes.EXCLUDED_VIOLATION),
            (lambda: self._check_duplicate(member, submission, claim_history), denial_codes.DUPLICATE_CLAIM),
            (lambda: self._check_coverage_remaining(ledger), None),
        )

        checks: List[EligibilityCheck] = []
        for run_check, code in gates:
            check = run_check()
            checks.append(check)
            if check.verdict == CheckVerdict.FAIL:
                denial_code = code or check.evidence["denial_code"]
                logger.info(
                    f"Claim {submission.ticket_number} for member {member.id} rejected: "
                    f"{denial_code} ({check.check_name})"
                )
                return EligibilityResult(
                    eligible=False,
                    reason=check.reason,
                    denial_code=denial_code,
                    checks=checks,
                )

        jurisdiction = self._check_jurisdiction(member, submission)
        checks.append(jurisdiction)
        warnings = list(jurisdiction.evidence.get("warnings", []))

        logger.info(
            f"Claim {submission.ticket_number} for member {member.id} eligible"
            + (f" with {len(warnings)} warning(s)" if warnings else "")
        )
        return EligibilityResult(
            eligible=True,
            reason=ELIGIBLE_REASON,
            checks=checks,
            warnings=warnings,
        )

    # ── Check 1: Active membership ───────────────────────────────────

    def _check_active_membership(self, member: Member) -> EligibilityCheck:
        evidence = {
            "has_active_subscription": member.has_active_subscription,
            "subscription_status": member.subscription_status,
            "plan": member.current_plan.value,
        }
        if member.has_active_subscription:
            return EligibilityCheck(
                check_id="active_membership",
                check_name="Active membership",
                verdict=CheckVerdict.PASS,
                reason="Membership is active",
                evidence=evidence,
            )
        return EligibilityCheck(
            check_id="active_membership",
            check_name="Active membership",
            verdict=CheckVerdict.FAIL,
            reason="An active membership is required to submit claims",
            evidence=evidence,
        )

    # ── Check 2: Waiting period ──────────────────────────────────────

    def _check_waiting_period(
        self, member: Member, ledger: CoverageLedger, submission: ClaimSubmission
    ) -> EligibilityCheck:
        plan = get_plan_config(ledger.plan_id)
        started = member.membership_started_at or ledger.period_start
        eligible_from = to_date(started) + timedelta(days=plan.waiting_period_days)

        evidence = {
            "membership_started": str(to_date(started)),
            "waiting_period_days": plan.waiting_period_days,
            "eligible_from": str(eligible_from),
            "ticket_date": str(submission.ticket_date),
        }

        if submission.ticket_date >= eligible_from:
            return EligibilityCheck(
                check_id="waiting_period",
                check_name="Waiting period",
                verdict=CheckVerdict.PASS,
                reason=f"Ticket date {submission.ticket_date} is on or after {eligible_from}",
                evidence=evidence,
            )
        return EligibilityCheck(
            check_id="waiting_period",
            check_name="Waiting period",
            verdict=CheckVerdict.FAIL,
            reason=(
                f"Ticket was issued during the {plan.waiting_period_days}-day waiting "
                f"period. Tickets issued on or after {eligible_from} are eligible."
            ),
            evidence=evidence,
        )

    # ── Check 3: Submission window ───────────────────────────────────

    def _check_submission_window(
        self, submission: ClaimSubmission, submitted_at: datetime
    ) -> EligibilityCheck:
        window = self.settings.submission_window_days
        age_days = calendar_days_between(submission.ticket_date, submitted_at)

        evidence = {
            "ticket_date": str(submission.ticket_date),
            "submitted_on": str(submitted_at.date()),
            "age_days": age_days,
            "window_days": window,
        }

        if age_days <= window:
            return EligibilityCheck(
                check_id="submission_window",
                check_name="Submission window",
                verdict=CheckVerdict.PASS,
                reason=f"Submitted {age_days} day(s) after issuance (limit {window})",
                evidence=evidence,
            )
        return EligibilityCheck(
            check_id="submission_window",
            check_name="Submission window",
            verdict=CheckVerdict.FAIL,
            reason=(
                f"Claims must be submitted within {window} days of the ticket date. "
                f"This ticket was issued {age_days} days ago."
            ),
            evidence=evidence,
        )

    # ── Check 4: Violation coverage ──────────────────────────────────

    def _check_violation_coverage(self, submission: ClaimSubmission) -> EligibilityCheck:
        violation = submission.violation_type
        evidence = {
            "violation_type": violation,
            "normalized": normalize_violation_type(violation),
            "absolute_exclusion": is_absolute_exclusion(violation),
        }

        if is_violation_covered(violation):
            return EligibilityCheck(
                check_id="violation_coverage",
                check_name="Violation coverage",
                verdict=CheckVerdict.PASS,
                reason=f"Violation '{violation}' is covered",
                evidence=evidence,
            )
        return EligibilityCheck(
            check_id="violation_coverage",
            check_name="Violation coverage",
            verdict=CheckVerdict.FAIL,
            reason=exclusion_reason(violation),
            evidence=evidence,
        )

    # ── Check 5: Duplicate ───────────────────────────────────────────

    def _check_duplicate(
        self, member: Member, submission: ClaimSubmission, claim_history: Iterable[Claim]
    ) -> EligibilityCheck:
        # Only the member's own claims count; citation numbers are not globally unique
        key = normalize_ticket_number(submission.ticket_number)
        matches = [
            claim.id
            for claim in claim_history
            if claim.member_id == member.id
            and normalize_ticket_number(claim.ticket_number) == key
        ]
        evidence = {"ticket_number": submission.ticket_number, "matching_claims": matches}

        if not matches:
            return EligibilityCheck(
                check_id="duplicate",
                check_name="Duplicate claim",
                verdict=CheckVerdict.PASS,
                reason="No previous claim for this ticket",
                evidence=evidence,
            )
        return EligibilityCheck(
            check_id="duplicate",
            check_name="Duplicate claim",
            verdict=CheckVerdict.FAIL,
            reason=f"Ticket {submission.ticket_number} has already been claimed",
            evidence=evidence,
        )

    # ── Check 6: Coverage remaining ──────────────────────────────────

    def _check_coverage_remaining(self, ledger: CoverageLedger) -> EligibilityCheck:
        evidence: Dict[str, Any] = {
            "tickets_used": ledger.tickets_used,
            "max_tickets": ledger.max_tickets,
            "used_amount": str(ledger.used_amount),
            "remaining_amount": str(ledger.remaining_amount),
            "annual_cap": str(ledger.annual_cap),
        }

        if ledger.tickets_used >= ledger.max_tickets:
            evidence["denial_code"] = denial_codes.TICKET_LIMIT_EXCEEDED
            return EligibilityCheck(
                check_id="coverage_remaining",
                check_name="Coverage remaining",
                verdict=CheckVerdict.FAIL,
                reason=(
                    f"All {ledger.max_tickets} claims included in your plan have been "
                    f"used for this membership period"
                ),
                evidence=evidence,
            )
        if ledger.remaining_amount <= 0:
            evidence["denial_code"] = denial_codes.CAP_EXCEEDED
            return EligibilityCheck(
                check_id="coverage_remaining",
                check_name="Coverage remaining",
                verdict=CheckVerdict.FAIL,
                reason=(
                    f"Annual reimbursement cap of ${ledger.annual_cap} has been reached "
                    f"for this membership period"
                ),
                evidence=evidence,
            )
        return EligibilityCheck(
            check_id="coverage_remaining",
            check_name="Coverage remaining",
            verdict=CheckVerdict.PASS,
            reason=(
                f"${ledger.remaining_amount} and "
                f"{ledger.max_tickets - ledger.tickets_used} claim(s) remaining"
            ),
            evidence=evidence,
        )

    # ── Check 7: Jurisdiction ────────────────────────────────────────

    def _check_jurisdiction(
        self, member: Member, submission: ClaimSubmission
    ) -> EligibilityCheck:
        home = member.home_state
        state = submission.state
        warnings: List[str] = []

        if not home:
            warnings.append(
                f"No home state on file; ticket from {state} could not be matched "
                f"to the member's operating area"
            )
        elif not is_approved_jurisdiction(home, state):
            warnings.append(
                f"Ticket issued in {state}, outside the member's home state {home} "
                f"and its approved neighbors"
            )
        if self.settings.flag_unsupported_regions and not is_state_supported(state):
            warnings.append(f"{state} is not in a supported service region")

        evidence = {"home_state": home, "ticket_state": state, "warnings": warnings}
        if warnings:
            return EligibilityCheck(
                check_id="jurisdiction",
                check_name="Jurisdiction",
                verdict=CheckVerdict.WARN,
                reason="; ".join(warnings),
                evidence=evidence,
            )
        return EligibilityCheck(
            check_id="jurisdiction",
            check_name="Jurisdiction",
            verdict=CheckVerdict.PASS,
            reason=f"Ticket state {state} matches the member's operating area",
            evidence=evidence,
        )


def evaluate_claim(
    member: Member,
    ledger: CoverageLedger,
    submission: SubmissionLike,
    claim_history: Iterable[Claim] = (),
    submitted_at: Optional[datetime] = None,
    settings: Optional[PolicySettings] = None,
) -> EligibilityResult:
    """Evaluate a submission with a one-off :class:`EligibilityEvaluator`."""
    return EligibilityEvaluator(settings).evaluate(
        member, ledger, submission, claim_history, submitted_at
    )
