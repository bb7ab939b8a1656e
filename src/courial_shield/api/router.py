"""Policy router: plan catalog, denial codes, eligibility, payouts, cancellation."""

from typing import Any, Dict, List

from fastapi import APIRouter, HTTPException

from courial_shield.api.models import (
    CancellationCheckRequest,
    EligibilityRequest,
    PayoutQuoteRequest,
)
from courial_shield.catalog.denial_codes import get_denial_code
from courial_shield.catalog.plans import all_plan_configs, get_plan_config
from courial_shield.config.settings import get_policy_settings
from courial_shield.errors import InvalidInput, UnknownDenialCode, UnknownPlan
from courial_shield.policy.cancellation import check_cancellation_eligibility
from courial_shield.policy.eligibility import EligibilityEvaluator
from courial_shield.policy.ledger import open_ledger
from courial_shield.policy.payout import calculate_payout_breakdown

router = APIRouter(tags=["policy"])


def _invalid(e: InvalidInput) -> HTTPException:
    detail: Dict[str, Any] = {"message": str(e)}
    if e.field:
        detail["field"] = e.field
    return HTTPException(status_code=422, detail=detail)


# ── Catalog ─────────────────────────────────────────────────────────


@router.get("/api/plans")
def list_plans() -> List[Dict[str, Any]]:
    """List all membership plans."""
    return [p.model_dump(mode="json") for p in all_plan_configs()]


@router.get("/api/denial-codes/{code}")
def get_denial(code: str) -> Dict[str, Any]:
    """Get a denial code by symbolic or legacy (D0xx) form."""
    try:
        return get_denial_code(code).model_dump(mode="json")
    except UnknownDenialCode as e:
        raise HTTPException(status_code=404, detail=str(e))


# ── Claims ──────────────────────────────────────────────────────────


@router.post("/api/claims/eligibility")
def check_eligibility(request: EligibilityRequest) -> Dict[str, Any]:
    """Evaluate a claim submission for the posted member and ledger."""
    evaluator = EligibilityEvaluator(get_policy_settings())
    try:
        result = evaluator.evaluate(
            request.member,
            request.ledger,
            request.claim,
            request.history,
            request.submitted_at,
        )
    except InvalidInput as e:
        raise _invalid(e)
    return result.model_dump(mode="json")


@router.post("/api/claims/payout-quote")
def payout_quote(request: PayoutQuoteRequest) -> Dict[str, Any]:
    """Quote the payout for a ticket amount."""
    try:
        if request.ledger is not None:
            ledger = request.ledger
        else:
            plan = get_plan_config(request.plan or "free")
            ledger = open_ledger("quote", plan, settings=get_policy_settings())
        breakdown = calculate_payout_breakdown(request.amount, request.violation_type, ledger)
    except UnknownPlan as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidInput as e:
        raise _invalid(e)
    return breakdown.model_dump(mode="json")


# ── Members ─────────────────────────────────────────────────────────


@router.post("/api/members/cancellation-check")
def cancellation_check(request: CancellationCheckRequest) -> Dict[str, Any]:
    """Check whether the posted member may cancel now."""
    result = check_cancellation_eligibility(
        request.member, now=request.now, settings=get_policy_settings()
    )
    return result.model_dump(mode="json")
