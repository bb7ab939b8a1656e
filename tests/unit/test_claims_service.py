"""Tests for the claim decision workflow."""

import gc
import random
import threading
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from courial_shield.catalog import denial_codes
from courial_shield.catalog.plans import get_plan_config
from courial_shield.errors import InvalidInput, StateInconsistency
from courial_shield.policy.claims import (
    APPROVED_STANDARD,
    DEFAULT_APPROVAL_NOTES,
    MemberLocks,
    claims_paid_without_proof,
    claims_pending_proof,
)
from courial_shield.schemas.audit import AuditEventType
from courial_shield.schemas.claim import ClaimStatus
from courial_shield.schemas.plan import PlanTier

from policy_test_helpers import (
    MEMBER_ID,
    NOW,
    make_claim,
    make_ledger,
    make_member,
    make_payload,
    make_submission,
)


def submit(service, ledger=None, **submission_overrides):
    return service.submit_claim(
        make_member(),
        ledger or make_ledger(),
        make_submission(**submission_overrides),
        submitted_at=NOW,
    )


class TestSubmitClaim:
    """Eligible submissions create a claim and consume a ticket."""

    def test_creates_submitted_claim(self, service, audit):
        outcome = submit(service, violation_type="Expired Meter")

        claim = outcome.claim
        assert outcome.result.eligible
        assert claim.id.startswith("clm_")
        assert claim.status == ClaimStatus.SUBMITTED
        assert claim.member_id == MEMBER_ID
        assert claim.violation_type == "parking_meter"
        assert claim.submitted_at == NOW
        assert claim.plan_snapshot.id == PlanTier.BASIC
        assert outcome.ledger.tickets_used == 1
        assert outcome.ledger.used_amount == Decimal("0")

        events = audit.for_claim(claim.id)
        assert [e.event_type for e in events] == [AuditEventType.CLAIM_SUBMITTED]
        assert events[0].details["amount"] == "85.00"

    def test_accepts_raw_payload(self, service):
        outcome = service.submit_claim(
            make_member(), make_ledger(), make_payload(amount="$42.50"), submitted_at=NOW
        )
        assert outcome.claim.amount == Decimal("42.50")

    def test_keeps_submitter_calendar_date(self, service):
        submitted_at = datetime(2026, 3, 6, 17, 30, tzinfo=timezone(timedelta(hours=-7)))
        outcome = service.submit_claim(
            make_member(),
            make_ledger(),
            make_submission(ticket_date=date(2026, 3, 1)),
            submitted_at=submitted_at,
        )
        assert outcome.result.eligible
        assert outcome.claim.submitted_at == submitted_at

    def test_malformed_payload_raises(self, service):
        with pytest.raises(InvalidInput):
            service.submit_claim(
                make_member(), make_ledger(), make_payload(ticket_date="someday"), submitted_at=NOW
            )

    def test_carries_jurisdiction_warnings(self, service):
        outcome = submit(service, state="TX")
        assert outcome.claim is not None
        assert len(outcome.claim.jurisdiction_warnings) == 1

    def test_rejection_returns_no_claim(self, service, audit):
        ledger = make_ledger(tickets_used=3)
        outcome = submit(service, ledger=ledger, violation_type="hydrant")

        assert outcome.claim is None
        assert outcome.result.denial_code == denial_codes.EXCLUDED_VIOLATION
        assert outcome.ledger == ledger

        events = audit.of_type(AuditEventType.CLAIM_REJECTED)
        assert len(events) == 1
        assert events[0].details["denial_code"] == denial_codes.EXCLUDED_VIOLATION
        assert events[0].claim_id is None

    def test_rolls_ledger_into_current_period(self, service):
        ledger = make_ledger(
            period_start=NOW - timedelta(days=400), used_amount=Decimal("100"), tickets_used=12
        )
        outcome = submit(service, ledger=ledger)

        assert outcome.result.eligible
        assert outcome.ledger.period_start == NOW - timedelta(days=35)
        assert outcome.ledger.tickets_used == 1
        assert outcome.ledger.used_amount == Decimal("0")


class TestApproveClaim:
    """Pay-on-approval: approval releases the payout immediately."""

    def test_submit_then_approve(self, service, audit):
        member = make_member()
        submitted = service.submit_claim(member, make_ledger(), make_submission(), submitted_at=NOW)
        paid_at = NOW + timedelta(days=1)

        outcome = service.approve_claim(submitted.claim, submitted.ledger, member, now=paid_at)

        assert outcome.payout_amount == Decimal("68.00")
        assert outcome.claim.status == ClaimStatus.PAID
        assert outcome.claim.payout_amount == Decimal("68.00")
        assert outcome.claim.payout_date == paid_at
        assert outcome.claim.approved_at == paid_at
        assert outcome.claim.decision_code == APPROVED_STANDARD
        assert outcome.claim.decision_notes == DEFAULT_APPROVAL_NOTES
        assert outcome.ledger.used_amount == Decimal("68.00")
        assert outcome.ledger.remaining_amount == Decimal("32.00")
        assert outcome.ledger.tickets_used == 1
        assert outcome.member.last_claim_payout_date == paid_at
        assert member.last_claim_payout_date is None

        assert [e.event_type for e in audit.for_claim(submitted.claim.id)] == [
            AuditEventType.CLAIM_SUBMITTED,
            AuditEventType.CLAIM_APPROVED,
            AuditEventType.PAYOUT_COMPLETED,
        ]

    def test_second_approval_raises(self, service):
        member = make_member()
        outcome = service.approve_claim(make_claim(), make_ledger(), member, now=NOW)

        with pytest.raises(StateInconsistency) as exc_info:
            service.approve_claim(outcome.claim, outcome.ledger, outcome.member, now=NOW)
        assert exc_info.value.status == "paid"
        assert exc_info.value.claim_id == "clm_test"

    def test_stale_submitted_copy_is_not_paid_twice(self, service, audit):
        member = make_member()
        claim = make_claim()
        first = service.approve_claim(claim, make_ledger(), member, now=NOW)
        assert first.payout_amount == Decimal("68.00")

        # The host re-sends the copy it loaded before the first approval
        with pytest.raises(StateInconsistency) as exc_info:
            service.approve_claim(claim, first.ledger, first.member, now=NOW)
        assert exc_info.value.status == "paid"
        assert exc_info.value.claim_id == claim.id
        assert len(audit.of_type(AuditEventType.PAYOUT_COMPLETED)) == 1
        assert len(audit.of_type(AuditEventType.CLAIM_APPROVED)) == 1

    def test_denied_claim_cannot_be_approved(self, service):
        denied = service.deny_claim(make_claim(), denial_codes.FRAUDULENT_CLAIM, now=NOW)
        with pytest.raises(StateInconsistency):
            service.approve_claim(denied, make_ledger(), make_member(), now=NOW)

    def test_member_mismatch_raises(self, service):
        with pytest.raises(StateInconsistency):
            service.approve_claim(make_claim(member_id="mem_other"), make_ledger(), make_member())
        with pytest.raises(StateInconsistency):
            service.approve_claim(make_claim(), make_ledger(member_id="mem_other"), make_member())

    def test_uses_plan_snapshot(self, service):
        claim = make_claim(plan_snapshot=get_plan_config("pro"))
        outcome = service.approve_claim(claim, make_ledger("basic"), make_member(), now=NOW)
        assert outcome.payout_amount == Decimal("72.25")

    def test_zero_payout_does_not_start_restriction(self, service):
        ledger = make_ledger(used_amount=Decimal("100"))
        outcome = service.approve_claim(make_claim(), ledger, make_member(), now=NOW)

        assert outcome.payout_amount == Decimal("0.00")
        assert outcome.claim.status == ClaimStatus.PAID
        assert outcome.member.last_claim_payout_date is None

    def test_partial_payout_at_cap(self, service):
        ledger = make_ledger(used_amount=Decimal("90"))
        outcome = service.approve_claim(make_claim(), ledger, make_member(), now=NOW)

        assert outcome.payout_amount == Decimal("10.00")
        assert outcome.payout.remaining_cap_applied
        assert outcome.ledger.remaining_amount == Decimal("0.00")

    def test_review_flow_records_one_approval(self, service, audit):
        claim = service.start_review(make_claim(), now=NOW)
        assert claim.status == ClaimStatus.UNDER_REVIEW

        claim = service.mark_approved(claim, decision_notes="Meter receipt checked", now=NOW)
        assert claim.status == ClaimStatus.APPROVED
        assert claim.approved_at == NOW

        later = NOW + timedelta(hours=2)
        outcome = service.approve_claim(claim, make_ledger(), make_member(), now=later)
        assert outcome.claim.approved_at == NOW
        assert outcome.claim.payout_date == later
        assert outcome.claim.decision_notes == "Meter receipt checked"
        assert len(audit.of_type(AuditEventType.CLAIM_APPROVED)) == 1

    def test_mark_approved_requires_review(self, service):
        with pytest.raises(StateInconsistency):
            service.mark_approved(make_claim(), now=NOW)

    def test_start_review_requires_submitted(self, service):
        with pytest.raises(StateInconsistency):
            service.start_review(make_claim(status=ClaimStatus.PAID), now=NOW)


class TestDenyClaim:
    def test_known_code(self, service, audit):
        denied = service.deny_claim(make_claim(), denial_codes.INSUFFICIENT_DOCUMENTATION, now=NOW)
        entry = denial_codes.get_denial_code(denial_codes.INSUFFICIENT_DOCUMENTATION)

        assert denied.status == ClaimStatus.DENIED
        assert denied.denial_code == denial_codes.INSUFFICIENT_DOCUMENTATION
        assert denied.decision_code == denial_codes.INSUFFICIENT_DOCUMENTATION
        assert denied.denial_reason == entry.reason
        assert denied.decision_notes == entry.user_explanation
        assert denied.payout_amount is None

        event = audit.of_type(AuditEventType.CLAIM_DENIED)[0]
        assert event.details["appealable"] == entry.appealable

    def test_legacy_code_resolves(self, service):
        denied = service.deny_claim(make_claim(), "d001", now=NOW)
        assert denied.denial_code == denial_codes.EXCLUDED_VIOLATION

    def test_unknown_code_stored_with_generic_text(self, service, audit):
        denied = service.deny_claim(
            make_claim(), "PLATE_MISMATCH", decision_notes="Plate does not match", now=NOW
        )
        assert denied.denial_code == "PLATE_MISMATCH"
        assert denied.denial_reason == "Claim denied"
        assert denied.decision_notes == "Plate does not match"
        assert audit.of_type(AuditEventType.CLAIM_DENIED)[0].details["appealable"] is False

    def test_unknown_code_default_notes(self, service):
        denied = service.deny_claim(make_claim(), "SOMETHING_ELSE", now=NOW)
        assert denied.decision_notes == denial_codes.GENERIC_DENIAL_EXPLANATION

    def test_denying_paid_claim_raises(self, service):
        with pytest.raises(StateInconsistency):
            service.deny_claim(make_claim(status=ClaimStatus.PAID), denial_codes.FRAUDULENT_CLAIM)

    def test_stale_copy_of_paid_claim_cannot_be_denied(self, service, audit):
        claim = make_claim()
        service.approve_claim(claim, make_ledger(), make_member(), now=NOW)
        with pytest.raises(StateInconsistency):
            service.deny_claim(claim, denial_codes.FRAUDULENT_CLAIM, now=NOW)
        assert audit.of_type(AuditEventType.CLAIM_DENIED) == []

    def test_denial_keeps_ticket_consumed(self, service):
        submitted = submit(service)
        service.deny_claim(submitted.claim, denial_codes.NON_GIG_ACTIVITY, now=NOW)
        assert submitted.ledger.tickets_used == 1


class TestProofOfPayment:
    """Post-payout audit requests."""

    def _paid_claim(self, service):
        return service.approve_claim(make_claim(), make_ledger(), make_member(), now=NOW).claim

    def test_request_and_receive(self, service, audit):
        paid = self._paid_claim(service)
        assert claims_paid_without_proof([paid]) == [paid]

        requested = service.request_proof_of_payment(paid, reason="fraud_detection", now=NOW)
        assert requested.proof_of_payment_reason == "fraud_detection"
        assert requested.proof_of_payment_requested_at == NOW
        assert claims_pending_proof([paid, requested]) == [requested]

        received = service.record_proof_of_payment(
            requested, proof_url="https://example.com/receipt.jpg", now=NOW
        )
        assert received.proof_of_payment_url == "https://example.com/receipt.jpg"
        assert claims_pending_proof([received]) == []
        assert claims_paid_without_proof([received]) == []
        assert len(audit.of_type(AuditEventType.PROOF_OF_PAYMENT_REQUESTED)) == 1
        assert len(audit.of_type(AuditEventType.PROOF_OF_PAYMENT_RECEIVED)) == 1

    def test_requires_paid_claim(self, service):
        with pytest.raises(StateInconsistency):
            service.request_proof_of_payment(make_claim())

    def test_unknown_reason(self, service):
        with pytest.raises(InvalidInput, match="Unknown proof-of-payment reason") as exc_info:
            service.request_proof_of_payment(self._paid_claim(service), reason="curiosity")
        assert exc_info.value.field == "reason"


class TestConcurrentSubmissions:
    """Per-member locking around the host's read-submit-write cycle."""

    def test_only_remaining_tickets_succeed(self, service):
        member = make_member()
        store = {"ledger": make_ledger(tickets_used=10)}
        claims = []
        barrier = threading.Barrier(5)

        def worker(i):
            barrier.wait()
            with service.locks.hold(member.id):
                outcome = service.submit_claim(
                    member,
                    store["ledger"],
                    make_submission(ticket_number=f"LA-{2000 + i}"),
                    submitted_at=NOW,
                )
                if outcome.claim is not None:
                    store["ledger"] = outcome.ledger
                    claims.append(outcome.claim)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(claims) == 2
        assert store["ledger"].tickets_used == 12

    def test_locks_are_reentrant(self):
        locks = MemberLocks()
        with locks.hold("mem_1"):
            with locks.hold("mem_1"):
                pass

    def test_idle_locks_are_dropped(self):
        locks = MemberLocks()
        with locks.hold("mem_1"):
            assert "mem_1" in locks._locks
            held = locks._locks["mem_1"]
            with locks.hold("mem_1"):
                assert locks._locks["mem_1"] is held
        del held
        for i in range(100):
            with locks.hold(f"mem_{i}"):
                pass
        gc.collect()
        assert len(locks._locks) == 0


class TestLedgerInvariants:
    """Random submit/approve/deny sequences keep the ledger in bounds."""

    @pytest.mark.parametrize("plan", ["free", "basic", "pro", "professional"])
    @pytest.mark.parametrize("seed", range(5))
    def test_random_sequences(self, service, plan, seed):
        rng = random.Random(seed)
        member = make_member(current_plan=plan)
        ledger = make_ledger(plan)
        history = []

        for i in range(30):
            amount = Decimal(rng.randint(1, 40000)) / 100
            outcome = service.submit_claim(
                member,
                ledger,
                make_submission(ticket_number=f"T-{seed}-{i}", amount=amount),
                history,
                submitted_at=NOW,
            )
            ledger = outcome.ledger
            if outcome.claim is None:
                continue
            history.append(outcome.claim)
            if rng.random() < 0.7:
                remaining_before = ledger.remaining_amount
                approved = service.approve_claim(outcome.claim, ledger, member, now=NOW)
                assert approved.payout_amount <= remaining_before
                assert approved.payout_amount <= amount
                ledger = approved.ledger
            else:
                service.deny_claim(outcome.claim, denial_codes.NON_GIG_ACTIVITY, now=NOW)

            assert Decimal("0") <= ledger.used_amount <= ledger.annual_cap
            assert 0 <= ledger.tickets_used <= ledger.max_tickets
