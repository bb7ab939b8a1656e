"""Denial code catalog.

Symbolic codes are what the engine emits. Each code also carries the
``D0xx`` identifier used in member communications and older claim records;
lookups accept either form.
"""

import logging
from typing import Dict, List, Optional

from courial_shield.errors import UnknownDenialCode
from courial_shield.schemas.denial import DenialCode

logger = logging.getLogger(__name__)

GENERIC_DENIAL_EXPLANATION = (
    "Your claim was denied. Please contact support for more information."
)

# Evaluator codes
NO_ACTIVE_MEMBERSHIP = "NO_ACTIVE_MEMBERSHIP"
WAITING_PERIOD = "WAITING_PERIOD"
LATE_SUBMISSION = "LATE_SUBMISSION"
EXCLUDED_VIOLATION = "EXCLUDED_VIOLATION"
DUPLICATE_CLAIM = "DUPLICATE_CLAIM"
CAP_EXCEEDED = "CAP_EXCEEDED"
TICKET_LIMIT_EXCEEDED = "TICKET_LIMIT_EXCEEDED"

# Reviewer codes
INSUFFICIENT_DOCUMENTATION = "INSUFFICIENT_DOCUMENTATION"
NON_GIG_ACTIVITY = "NON_GIG_ACTIVITY"
FRAUDULENT_CLAIM = "FRAUDULENT_CLAIM"
AMOUNT_EXCEEDS_LIMIT = "AMOUNT_EXCEEDS_LIMIT"
GEOGRAPHIC_RESTRICTION = "GEOGRAPHIC_RESTRICTION"
ABSOLUTE_EXCLUSION = "ABSOLUTE_EXCLUSION"

EVALUATOR_CODES = (
    NO_ACTIVE_MEMBERSHIP,
    WAITING_PERIOD,
    LATE_SUBMISSION,
    EXCLUDED_VIOLATION,
    DUPLICATE_CLAIM,
    CAP_EXCEEDED,
    TICKET_LIMIT_EXCEEDED,
)

DENIAL_CODES: Dict[str, DenialCode] = {
    entry.code: entry
    for entry in (
        DenialCode(
            code=EXCLUDED_VIOLATION,
            legacy_code="D001",
            reason="Excluded Violation Type",
            user_explanation=(
                "This type of violation is not eligible under your membership. "
                "Please review our Protection Policy for details."
            ),
        ),
        DenialCode(
            code=LATE_SUBMISSION,
            legacy_code="D002",
            reason="Submission Deadline Exceeded",
            user_explanation=(
                "Claims must be submitted within 5 days of the ticket date. "
                "This ticket was issued more than 5 days ago."
            ),
        ),
        DenialCode(
            code=CAP_EXCEEDED,
            legacy_code="D003",
            reason="Reimbursement Limit Reached",
            user_explanation=(
                "You have reached your annual reimbursement cap for this membership "
                "period. Consider upgrading your plan."
            ),
        ),
        DenialCode(
            code=NO_ACTIVE_MEMBERSHIP,
            legacy_code="D004",
            reason="Inactive Membership",
            user_explanation=(
                "Your membership was not active when this ticket was issued. "
                "Protection only applies to tickets received during active "
                "membership periods."
            ),
        ),
        DenialCode(
            code=DUPLICATE_CLAIM,
            legacy_code="D005",
            reason="Duplicate Claim",
            user_explanation=(
                "A claim for this ticket has already been submitted. "
                "Each ticket can only be claimed once."
            ),
        ),
        DenialCode(
            code=INSUFFICIENT_DOCUMENTATION,
            legacy_code="D006",
            reason="Insufficient Documentation",
            user_explanation=(
                "The submitted documentation does not meet our requirements. "
                "Please ensure the ticket photo is clear and all required "
                "information is visible."
            ),
            appealable=True,
        ),
        DenialCode(
            code=NON_GIG_ACTIVITY,
            legacy_code="D007",
            reason="Non-Gig Activity",
            user_explanation=(
                "Based on our review, this ticket was not received while performing "
                "gig work. Protection only applies to tickets received during "
                "active deliveries or rides."
            ),
            appealable=True,
        ),
        DenialCode(
            code=FRAUDULENT_CLAIM,
            legacy_code="D008",
            reason="Fraudulent Claim",
            user_explanation=(
                "This claim has been flagged for potential fraud. "
                "Your account may be subject to review."
            ),
            appealable=True,
        ),
        DenialCode(
            code=AMOUNT_EXCEEDS_LIMIT,
            legacy_code="D009",
            reason="Amount Exceeds Limit",
            user_explanation=(
                "The ticket amount exceeds the maximum reimbursement for this "
                "violation type. A partial reimbursement may be available."
            ),
        ),
        DenialCode(
            code=GEOGRAPHIC_RESTRICTION,
            legacy_code="D010",
            reason="Geographic Restriction",
            user_explanation=(
                "Courial Shield protection is not currently available in the "
                "location where this ticket was issued."
            ),
        ),
        DenialCode(
            code=WAITING_PERIOD,
            legacy_code="D011",
            reason="Waiting Period",
            user_explanation=(
                "This ticket was issued during your 30-day waiting period. Claims "
                "can only be filed for tickets issued after the waiting period ends."
            ),
        ),
        DenialCode(
            code=ABSOLUTE_EXCLUSION,
            legacy_code="D012",
            reason="Absolute Exclusion",
            user_explanation=(
                "This violation type (fire hydrant, handicap zone, blocking traffic, "
                "or blocking intersection) is never eligible for defense or "
                "reimbursement. No exceptions."
            ),
        ),
        # Shares D003 with CAP_EXCEEDED: both read "limit reached" to members
        DenialCode(
            code=TICKET_LIMIT_EXCEEDED,
            legacy_code="D003",
            reason="Ticket Limit Reached",
            user_explanation=(
                "You have used all claims included in your plan for this membership "
                "period. Consider upgrading your plan."
            ),
        ),
    )
}

# First registration wins, so D003 resolves to CAP_EXCEEDED
_LEGACY_ALIASES: Dict[str, str] = {}
for _entry in DENIAL_CODES.values():
    _LEGACY_ALIASES.setdefault(_entry.legacy_code, _entry.code)


def find_denial_code(code: Optional[str]) -> Optional[DenialCode]:
    """Look up a denial code by symbolic or legacy form; None when unknown."""
    if not code:
        return None
    key = code.strip().upper()
    if key in DENIAL_CODES:
        return DENIAL_CODES[key]
    alias = _LEGACY_ALIASES.get(key)
    return DENIAL_CODES[alias] if alias else None


def get_denial_code(code: Optional[str]) -> DenialCode:
    """Look up a denial code.

    Raises:
        UnknownDenialCode: If the code is not in the catalog.
    """
    entry = find_denial_code(code)
    if entry is None:
        raise UnknownDenialCode(code)
    return entry


def denial_explanation(code: Optional[str]) -> str:
    """Member-facing explanation, or the generic text for unknown codes."""
    entry = find_denial_code(code)
    if entry is None:
        logger.debug(f"No explanation for denial code {code!r}, using generic text")
        return GENERIC_DENIAL_EXPLANATION
    return entry.user_explanation


def is_appealable(code: Optional[str]) -> bool:
    """Unknown codes are treated as non-appealable."""
    entry = find_denial_code(code)
    return bool(entry and entry.appealable)


def all_denial_codes() -> List[DenialCode]:
    return sorted(DENIAL_CODES.values(), key=lambda entry: (entry.legacy_code, entry.code))
