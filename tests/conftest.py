"""
Pytest fixtures and configuration for policy engine tests.
Provides common test utilities and shared fixtures.
"""

import pytest

from courial_shield.config.settings import (
    CONFIG_ENV_VAR,
    PolicySettings,
    reset_policy_settings_cache,
)
from courial_shield.policy.claims import ClaimsService
from courial_shield.services.audit_trail import AuditTrail


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Run every test against default settings, not the developer's config."""
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    reset_policy_settings_cache()
    yield
    reset_policy_settings_cache()


@pytest.fixture
def settings():
    """Default policy settings."""
    return PolicySettings()


@pytest.fixture
def audit():
    """Empty in-memory audit trail."""
    return AuditTrail()


@pytest.fixture
def service(settings, audit):
    """ClaimsService wired to default settings and a fresh audit trail."""
    return ClaimsService(settings=settings, audit=audit)
