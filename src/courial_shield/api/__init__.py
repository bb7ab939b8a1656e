"""HTTP API for the policy engine."""

from courial_shield.api.router import router

__all__ = ["router"]
