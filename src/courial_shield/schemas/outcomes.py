"""Result bundles returned by the claim decision workflow."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from courial_shield.schemas.claim import Claim
from courial_shield.schemas.coverage import CoverageLedger
from courial_shield.schemas.eligibility import EligibilityResult
from courial_shield.schemas.member import Member
from courial_shield.schemas.payout import PayoutBreakdown


class SubmissionOutcome(BaseModel):
    """Evaluation result plus the created claim and updated ledger.

    ``claim`` is None when the submission was rejected; ``ledger`` is then
    the unchanged input ledger.
    """

    result: EligibilityResult
    claim: Optional[Claim] = None
    ledger: CoverageLedger


class ApprovalOutcome(BaseModel):
    """State after a claim has been approved and paid."""

    claim: Claim
    ledger: CoverageLedger
    member: Member
    payout: PayoutBreakdown

    @property
    def payout_amount(self) -> Decimal:
        return self.payout.payout_amount
