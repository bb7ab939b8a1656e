"""Policy core: eligibility, payout, coverage ledger, cancellation, claims."""

from courial_shield.policy.cancellation import (
    cancel_subscription,
    check_cancellation_eligibility,
)
from courial_shield.policy.claims import (
    ClaimsService,
    MemberLocks,
    claims_paid_without_proof,
    claims_pending_proof,
)
from courial_shield.policy.eligibility import EligibilityEvaluator, evaluate_claim
from courial_shield.policy.ledger import (
    change_plan,
    is_usage_warning,
    open_ledger,
    record_approval,
    record_denial,
    record_submission,
    rollover,
    rollover_if_due,
    usage_ratio,
)
from courial_shield.policy.payout import calculate_payout, calculate_payout_breakdown

__all__ = [
    "ClaimsService",
    "EligibilityEvaluator",
    "MemberLocks",
    "calculate_payout",
    "calculate_payout_breakdown",
    "cancel_subscription",
    "change_plan",
    "check_cancellation_eligibility",
    "claims_paid_without_proof",
    "claims_pending_proof",
    "evaluate_claim",
    "is_usage_warning",
    "open_ledger",
    "record_approval",
    "record_denial",
    "record_submission",
    "rollover",
    "rollover_if_due",
    "usage_ratio",
]
