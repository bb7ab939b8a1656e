"""
Courial Shield - claims eligibility and payout policy engine.

This package decides whether a parking-ticket claim from a gig-driver
member is eligible, how much it pays out after the member co-pay, how the
member's annual coverage ledger changes, and when a member may cancel.
"""

__version__ = "0.1.0"

from courial_shield.errors import (
    ConfigurationError,
    InvalidInput,
    ShieldError,
    StateInconsistency,
    UnknownDenialCode,
    UnknownPlan,
)
from courial_shield.policy import (
    ClaimsService,
    EligibilityEvaluator,
    calculate_payout,
    check_cancellation_eligibility,
    evaluate_claim,
)

__all__ = [
    "ClaimsService",
    "ConfigurationError",
    "EligibilityEvaluator",
    "InvalidInput",
    "ShieldError",
    "StateInconsistency",
    "UnknownDenialCode",
    "UnknownPlan",
    "calculate_payout",
    "check_cancellation_eligibility",
    "evaluate_claim",
]
