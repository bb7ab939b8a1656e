"""Service regions and the approved out-of-state adjacency table.

Gig drivers near a state border routinely work across it, so a ticket from
an adjacent state is treated like a home-state ticket. The table is
symmetric: a NV driver ticketed in CA is approved just like a CA driver
ticketed in NV.
"""

from decimal import Decimal
from typing import Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field

_ADJACENT_STATES: Dict[str, List[str]] = {
    "CA": ["NV", "AZ", "OR"],
    "NY": ["NJ", "CT", "PA", "MA", "VT"],
    "TX": ["NM", "OK", "AR", "LA"],
    "FL": ["GA", "AL"],
}


def _symmetric(table: Dict[str, List[str]]) -> Dict[str, FrozenSet[str]]:
    result: Dict[str, set] = {}
    for home, neighbors in table.items():
        for neighbor in neighbors:
            result.setdefault(home, set()).add(neighbor)
            result.setdefault(neighbor, set()).add(home)
    return {state: frozenset(states) for state, states in result.items()}


APPROVED_ADJACENCY: Dict[str, FrozenSet[str]] = _symmetric(_ADJACENT_STATES)


class GeographicRule(BaseModel):
    """A service region."""

    model_config = ConfigDict(frozen=True)

    region: str
    states: List[str]
    available: bool = True
    price_multiplier: Decimal = Decimal("1.0")
    special_rules: List[str] = Field(default_factory=list)


GEOGRAPHIC_RULES: List[GeographicRule] = [
    GeographicRule(
        region="California",
        states=["CA"],
        special_rules=[
            "San Francisco tickets over $150 may require additional documentation"
        ],
    ),
    GeographicRule(
        region="New York",
        states=["NY"],
        price_multiplier=Decimal("1.15"),
        special_rules=["NYC tickets have a 7-day submission window due to high volume"],
    ),
    GeographicRule(region="Texas", states=["TX"], price_multiplier=Decimal("0.9")),
    GeographicRule(region="Florida", states=["FL"], price_multiplier=Decimal("0.95")),
    GeographicRule(
        region="Northeast",
        states=["MA", "CT", "NJ", "PA"],
        price_multiplier=Decimal("1.1"),
    ),
    GeographicRule(
        region="Midwest",
        states=["IL", "OH", "MI", "WI", "MN"],
        price_multiplier=Decimal("0.9"),
    ),
    GeographicRule(region="West Coast", states=["WA", "OR"]),
]


def _norm(state: Optional[str]) -> str:
    return (state or "").strip().upper()


def adjacent_states(state: Optional[str]) -> FrozenSet[str]:
    return APPROVED_ADJACENCY.get(_norm(state), frozenset())


def is_approved_jurisdiction(home_state: Optional[str], claim_state: Optional[str]) -> bool:
    """True when the claim state is the home state or an approved neighbor."""
    home, claim = _norm(home_state), _norm(claim_state)
    if not home or not claim:
        return False
    return home == claim or claim in APPROVED_ADJACENCY.get(home, frozenset())


def geographic_rule_for(state: Optional[str]) -> Optional[GeographicRule]:
    key = _norm(state)
    for rule in GEOGRAPHIC_RULES:
        if key in rule.states:
            return rule
    return None


def is_state_supported(state: Optional[str]) -> bool:
    rule = geographic_rule_for(state)
    return bool(rule and rule.available)


def price_multiplier_for(state: Optional[str]) -> Decimal:
    rule = geographic_rule_for(state)
    return rule.price_multiplier if rule else Decimal("1.0")
