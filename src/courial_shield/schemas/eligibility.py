"""Pydantic models for eligibility evaluation results.

The evaluator runs a fixed sequence of checks against a claim submission.
Each check produces an ``EligibilityCheck`` verdict; the first FAIL decides
the denial code of the ``EligibilityResult``. Jurisdiction mismatches are
reported as WARN and never block a claim.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

# ── Constants ────────────────────────────────────────────────────────

ELIGIBILITY_CHECK_IDS = (
    "active_membership",
    "waiting_period",
    "submission_window",
    "violation_coverage",
    "duplicate",
    "coverage_remaining",
    "jurisdiction",
)


# ── Enums ────────────────────────────────────────────────────────────

class CheckVerdict(str, Enum):
    """Verdict of a single eligibility check."""

    PASS = "PASS"
    FAIL = "FAIL"
    WARN = "WARN"


# ── Models ───────────────────────────────────────────────────────────

class EligibilityCheck(BaseModel):
    """Result of a single eligibility check."""

    check_id: str = Field(description="Check identifier, e.g. 'waiting_period'")
    check_name: str = Field(description="Human-readable check name")
    verdict: CheckVerdict = Field(description="Check verdict")
    reason: str = Field(description="Explanation of the verdict")
    evidence: Dict[str, Any] = Field(
        default_factory=dict,
        description="Key-value evidence supporting the verdict",
    )


class EligibilityResult(BaseModel):
    """Outcome of evaluating one claim submission."""

    eligible: bool = Field(description="True only when no check failed")
    reason: str = Field(description="Member-facing summary of the outcome")
    denial_code: Optional[str] = Field(
        default=None, description="Denial code of the first failed check"
    )
    checks: List[EligibilityCheck] = Field(
        default_factory=list, description="Checks that ran, in order"
    )
    warnings: List[str] = Field(
        default_factory=list, description="Non-blocking annotations (jurisdiction)"
    )

    @property
    def failed_check(self) -> Optional[EligibilityCheck]:
        for check in self.checks:
            if check.verdict == CheckVerdict.FAIL:
                return check
        return None
