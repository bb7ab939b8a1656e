"""Tests for the plan, violation, denial-code and jurisdiction catalogs."""

from decimal import Decimal

import pytest

from courial_shield.catalog.denial_codes import (
    DENIAL_CODES,
    EVALUATOR_CODES,
    GENERIC_DENIAL_EXPLANATION,
    denial_explanation,
    find_denial_code,
    get_denial_code,
    is_appealable,
)
from courial_shield.catalog.jurisdiction import (
    is_approved_jurisdiction,
    is_state_supported,
    price_multiplier_for,
)
from courial_shield.catalog.plans import (
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
    violation_label,
)
from courial_shield.errors import UnknownDenialCode, UnknownPlan
from courial_shield.schemas.plan import PlanTier


class TestPlanCatalog:
    """Plan limits and tier normalization."""

    @pytest.mark.parametrize(
        "tier,cap,tickets,deductible,waiting,per_claim",
        [
            ("free", "300", 12, "0.25", 0, "100"),
            ("basic", "100", 12, "0.20", 30, None),
            ("pro", "350", 24, "0.15", 30, None),
            ("professional", "600", 50, "0.15", 30, None),
        ],
    )
    def test_plan_limits(self, tier, cap, tickets, deductible, waiting, per_claim):
        plan = get_plan_config(tier)
        assert plan.annual_cap == Decimal(cap)
        assert plan.max_tickets_per_year == tickets
        assert plan.deductible_rate == Decimal(deductible)
        assert plan.waiting_period_days == waiting
        expected = Decimal(per_claim) if per_claim else None
        assert plan.max_coverage_per_claim == expected

    def test_unknown_tier_raises(self):
        with pytest.raises(UnknownPlan) as exc:
            get_plan_config("platinum")
        assert exc.value.tier == "platinum"
        assert "platinum" in str(exc.value)

    @pytest.mark.parametrize("value", [None, "", "platinum", 42])
    def test_normalize_unknown_to_free(self, value):
        assert normalize_plan(value) == PlanTier.FREE
        assert resolve_plan_config(value).id == PlanTier.FREE

    def test_normalize_is_case_insensitive(self):
        assert normalize_plan(" Pro ") == PlanTier.PRO

    def test_paid_plans(self):
        assert [p.id for p in paid_plan_configs()] == [
            PlanTier.BASIC,
            PlanTier.PRO,
            PlanTier.PROFESSIONAL,
        ]
        assert len(all_plan_configs()) == 4
        assert is_paid_plan("pro")
        assert is_paid_plan(PlanTier.BASIC)
        assert not is_paid_plan("free")
        assert not is_paid_plan(None)

    def test_catalog_extras(self):
        assert get_plan_config("pro").popular
        assert get_plan_config("professional").add_ons == ["towing_credit"]
        assert not get_plan_config("free").is_paid


class TestViolationCatalog:
    """Covered and excluded violation types."""

    @pytest.mark.parametrize(
        "violation", ["parking_meter", "street_cleaning", "no_parking", "loading_zone"]
    )
    def test_covered(self, violation):
        assert is_violation_covered(violation)

    @pytest.mark.parametrize(
        "violation",
        [
            "hydrant",
            "Fire Hydrant",
            "Handicap/Disability Zone",
            "Double Parking (Blocking Traffic Lane)",
            "Blocking Intersection",
            "Criminal Violations",
        ],
    )
    def test_absolute_exclusions(self, violation):
        assert not is_violation_covered(violation)
        assert is_absolute_exclusion(violation)

    @pytest.mark.parametrize("violation", ["expired_registration", "other"])
    def test_non_absolute_exclusions(self, violation):
        assert not is_violation_covered(violation)
        assert not is_absolute_exclusion(violation)

    @pytest.mark.parametrize("violation", ["speeding", "", None, "   "])
    def test_unknown_is_not_covered(self, violation):
        assert not is_violation_covered(violation)
        assert coverage_rule_for(violation) is None

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("Expired Meter", "parking_meter"),
            ("street-sweeping", "street_cleaning"),
            ("No Parking Zone", "no_parking"),
            ("FIRE_HYDRANT", "hydrant"),
            ("Loading Zone", "loading_zone"),
        ],
    )
    def test_normalize_labels_and_spellings(self, value, expected):
        assert normalize_violation_type(value) == expected

    def test_labels(self):
        assert violation_label("parking_meter") == "Expired Meter"
        assert violation_label("hydrant") == "Fire Hydrant"

    def test_covered_rules_have_no_amount_limit(self):
        assert coverage_rule_for("parking_meter").max_amount is None
        assert coverage_rule_for("hydrant").max_amount == Decimal("0")


class TestDenialCodes:
    """Denial code lookup and explanations."""

    def test_evaluator_codes_exist(self):
        for code in EVALUATOR_CODES:
            assert get_denial_code(code).code == code

    def test_legacy_alias(self):
        assert get_denial_code("D011").code == "WAITING_PERIOD"
        assert get_denial_code("d002").code == "LATE_SUBMISSION"
        assert get_denial_code("D003").code == "CAP_EXCEEDED"

    def test_appealable_codes(self):
        appealable = {c.code for c in DENIAL_CODES.values() if c.appealable}
        assert appealable == {
            "INSUFFICIENT_DOCUMENTATION",
            "NON_GIG_ACTIVITY",
            "FRAUDULENT_CLAIM",
        }

    def test_unknown_code(self):
        with pytest.raises(UnknownDenialCode):
            get_denial_code("D999")
        assert find_denial_code("D999") is None
        assert find_denial_code(None) is None
        assert denial_explanation("D999") == GENERIC_DENIAL_EXPLANATION
        assert not is_appealable("D999")

    def test_explanation(self):
        assert "5 days" in denial_explanation("LATE_SUBMISSION")


class TestJurisdiction:
    """Adjacency and service regions."""

    @pytest.mark.parametrize(
        "home,claim",
        [("CA", "CA"), ("CA", "NV"), ("NV", "CA"), ("NY", "NJ"), ("nj", "ny"), ("TX", "LA")],
    )
    def test_approved(self, home, claim):
        assert is_approved_jurisdiction(home, claim)

    @pytest.mark.parametrize(
        "home,claim", [("CA", "TX"), ("NV", "AZ"), (None, "CA"), ("CA", "")]
    )
    def test_not_approved(self, home, claim):
        assert not is_approved_jurisdiction(home, claim)

    def test_supported_regions(self):
        assert is_state_supported("CA")
        assert is_state_supported("mi")
        assert not is_state_supported("NV")
        assert not is_state_supported(None)

    def test_price_multiplier(self):
        assert price_multiplier_for("NY") == Decimal("1.15")
        assert price_multiplier_for("NV") == Decimal("1.0")
