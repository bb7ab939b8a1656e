"""Services layered on top of the policy core."""

from courial_shield.services.audit_trail import AuditTrail

__all__ = ["AuditTrail"]
