"""Read-only policy catalog: plans, violations, denial codes, jurisdictions."""

from courial_shield.catalog.denial_codes import (
    GENERIC_DENIAL_EXPLANATION,
    denial_explanation,
    find_denial_code,
    get_denial_code,
    is_appealable,
)
from courial_shield.catalog.jurisdiction import (
    is_approved_jurisdiction,
    is_state_supported,
)
from courial_shield.catalog.plans import (
    PLAN_CONFIGS,
    all_plan_configs,
    get_plan_config,
    is_paid_plan,
    normalize_plan,
    paid_plan_configs,
    resolve_plan_config,
)
from courial_shield.catalog.violations import (
    coverage_rule_for,
    is_absolute_exclusion,
    is_violation_covered,
    normalize_violation_type,
)

__all__ = [
    "GENERIC_DENIAL_EXPLANATION",
    "PLAN_CONFIGS",
    "all_plan_configs",
    "coverage_rule_for",
    "denial_explanation",
    "find_denial_code",
    "get_denial_code",
    "get_plan_config",
    "is_absolute_exclusion",
    "is_appealable",
    "is_approved_jurisdiction",
    "is_paid_plan",
    "is_state_supported",
    "is_violation_covered",
    "normalize_plan",
    "normalize_violation_type",
    "paid_plan_configs",
    "resolve_plan_config",
]
