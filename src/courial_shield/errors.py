"""Error taxonomy for the policy engine.

Expected business rejections (waiting period, cap exceeded, ...) are not
errors: they come back as ``EligibilityResult(eligible=False)`` with a denial
code. Exceptions are reserved for malformed input, illegal claim state
transitions, unknown catalog keys and broken configuration.
"""

from typing import Optional


class ShieldError(Exception):
    """Base class for all policy engine errors."""


class InvalidInput(ShieldError, ValueError):
    """Claim data is malformed and should be corrected by the member."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class StateInconsistency(ShieldError):
    """A caller asked for a transition the claim state does not allow."""

    def __init__(
        self,
        message: str,
        claim_id: Optional[str] = None,
        status: Optional[str] = None,
    ):
        super().__init__(message)
        self.claim_id = claim_id
        self.status = status


class UnknownPlan(ShieldError, KeyError):
    """Plan tier is not in the catalog."""

    def __init__(self, tier: object):
        super().__init__(f"Unknown plan tier: {tier!r}")
        self.tier = tier

    def __str__(self) -> str:
        return self.args[0]


class UnknownDenialCode(ShieldError, KeyError):
    """Denial code is not in the catalog."""

    def __init__(self, code: object):
        super().__init__(f"Unknown denial code: {code!r}")
        self.code = code

    def __str__(self) -> str:
        return self.args[0]


class ConfigurationError(ShieldError):
    """Policy settings could not be loaded or are invalid."""
