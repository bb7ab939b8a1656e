"""Violation coverage rules.

Four violation types are covered. Everything else, including any string the
catalog does not recognize, is excluded. A handful of public-safety
violations are absolute exclusions: no plan, appeal or reviewer can make
them payable.
"""

import re
from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# ── Constants ────────────────────────────────────────────────────────

COVERED_VIOLATIONS = frozenset(
    {"parking_meter", "street_cleaning", "no_parking", "loading_zone"}
)

ABSOLUTE_EXCLUSIONS = frozenset(
    {
        "hydrant",
        "handicap_zone",
        "double_parking",
        "blocking_intersection",
        "criminal",
        "moving_violation",
    }
)

VIOLATION_LABELS: Dict[str, str] = {
    "parking_meter": "Expired Meter",
    "street_cleaning": "Street Cleaning",
    "no_parking": "No Parking Zone",
    "hydrant": "Fire Hydrant",
    "loading_zone": "Loading Zone",
    "double_parking": "Double Parking",
    "expired_registration": "Expired Registration",
    "other": "Other",
    "handicap_zone": "Handicap/Disability Zone",
    "blocking_intersection": "Blocking Intersection",
    "criminal": "Criminal Violations",
    "moving_violation": "Moving Violation",
}

# Loose spellings seen on citations and in OCR output
_ALIASES: Dict[str, str] = {
    "meter": "parking_meter",
    "expired_meter": "parking_meter",
    "parking_meter_expired": "parking_meter",
    "street_sweeping": "street_cleaning",
    "no_parking_zone": "no_parking",
    "no_stopping": "no_parking",
    "fire_hydrant": "hydrant",
    "hydrant_violation": "hydrant",
    "handicap": "handicap_zone",
    "handicapped": "handicap_zone",
    "handicap_disability_zone": "handicap_zone",
    "disability_zone": "handicap_zone",
    "disabled_parking": "handicap_zone",
    "double_parking_blocking_traffic_lane": "double_parking",
    "double_parked": "double_parking",
    "blocking_traffic_lane": "double_parking",
    "blocking_the_box": "blocking_intersection",
    "criminal_violations": "criminal",
    "criminal_violation": "criminal",
    "moving_violations": "moving_violation",
    "unclassified": "other",
}

_NON_WORD = re.compile(r"[^a-z0-9]+")


class CoverageRule(BaseModel):
    """Coverage rule for one violation type."""

    model_config = ConfigDict(frozen=True)

    violation_type: str
    covered: bool
    absolute: bool = False
    max_amount: Optional[Decimal] = Field(
        default=None, description="Per-violation maximum; None = plan limits apply"
    )
    conditions: List[str] = Field(default_factory=list)
    exclusion_reason: Optional[str] = None


_PUBLIC_SAFETY = "ABSOLUTE EXCLUSION: {} violations are never eligible - no exceptions"

COVERAGE_RULES: Dict[str, CoverageRule] = {
    rule.violation_type: rule
    for rule in (
        CoverageRule(
            violation_type="parking_meter",
            covered=True,
            conditions=[
                "Ticket must be submitted within 5 days of issuance",
                "Must be after 30-day waiting period",
            ],
        ),
        CoverageRule(
            violation_type="street_cleaning",
            covered=True,
            conditions=[
                "Valid street cleaning sign must be present",
                "Submitted within 5 days",
            ],
        ),
        CoverageRule(
            violation_type="no_parking",
            covered=True,
            conditions=[
                "Temporary no-parking signs must have been posted less than 72 hours prior"
            ],
        ),
        CoverageRule(
            violation_type="loading_zone",
            covered=True,
            conditions=["Must have been actively loading/unloading for delivery"],
        ),
        CoverageRule(
            violation_type="hydrant",
            covered=False,
            absolute=True,
            max_amount=Decimal("0"),
            exclusion_reason=_PUBLIC_SAFETY.format("Fire hydrant"),
        ),
        CoverageRule(
            violation_type="handicap_zone",
            covered=False,
            absolute=True,
            max_amount=Decimal("0"),
            exclusion_reason=_PUBLIC_SAFETY.format("Handicap/disability zone"),
        ),
        CoverageRule(
            violation_type="double_parking",
            covered=False,
            absolute=True,
            max_amount=Decimal("0"),
            exclusion_reason=_PUBLIC_SAFETY.format("Blocking traffic lane"),
        ),
        CoverageRule(
            violation_type="blocking_intersection",
            covered=False,
            absolute=True,
            max_amount=Decimal("0"),
            exclusion_reason=_PUBLIC_SAFETY.format("Blocking intersection"),
        ),
        CoverageRule(
            violation_type="criminal",
            covered=False,
            absolute=True,
            max_amount=Decimal("0"),
            exclusion_reason="Criminal matter outside scope of membership",
        ),
        CoverageRule(
            violation_type="moving_violation",
            covered=False,
            absolute=True,
            max_amount=Decimal("0"),
            exclusion_reason="Moving violations are outside scope of membership",
        ),
        CoverageRule(
            violation_type="expired_registration",
            covered=False,
            max_amount=Decimal("0"),
            exclusion_reason=(
                "Vehicle registration violations are the responsibility of the vehicle owner"
            ),
        ),
        CoverageRule(
            violation_type="other",
            covered=False,
            max_amount=Decimal("0"),
            exclusion_reason="Unclassified violations require manual review",
        ),
    )
}

_LABEL_LOOKUP: Dict[str, str] = {
    _NON_WORD.sub("_", label.lower()).strip("_"): code
    for code, label in VIOLATION_LABELS.items()
}


def normalize_violation_type(value: Optional[str]) -> Optional[str]:
    """Map a code, label or loose spelling to a canonical violation code.

    ``"Fire Hydrant"``, ``"fire-hydrant"`` and ``"hydrant"`` all map to
    ``"hydrant"``. Returns None for strings the catalog does not know.
    """
    if not value:
        return None
    key = _NON_WORD.sub("_", value.strip().lower()).strip("_")
    if not key:
        return None
    if key in COVERAGE_RULES:
        return key
    if key in _ALIASES:
        return _ALIASES[key]
    return _LABEL_LOOKUP.get(key)


def coverage_rule_for(violation_type: Optional[str]) -> Optional[CoverageRule]:
    code = normalize_violation_type(violation_type)
    return COVERAGE_RULES.get(code) if code else None


def is_violation_covered(violation_type: Optional[str]) -> bool:
    """True only for the covered violation types; unknown strings are excluded."""
    rule = coverage_rule_for(violation_type)
    return bool(rule and rule.covered and not rule.absolute)


def is_absolute_exclusion(violation_type: Optional[str]) -> bool:
    rule = coverage_rule_for(violation_type)
    return bool(rule and rule.absolute)


def violation_label(violation_type: Optional[str]) -> str:
    code = normalize_violation_type(violation_type)
    if code is None:
        return violation_type or VIOLATION_LABELS["other"]
    return VIOLATION_LABELS[code]


def exclusion_reason(violation_type: Optional[str]) -> str:
    """Member-facing reason a violation is not covered."""
    rule = coverage_rule_for(violation_type)
    if rule is None:
        return f"Violation type '{violation_type}' is not recognized as a covered violation"
    if rule.covered:
        return ""
    return rule.exclusion_reason or f"{VIOLATION_LABELS[rule.violation_type]} is not covered"
