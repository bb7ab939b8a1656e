"""Policy configuration management."""

from courial_shield.config.settings import (
    PolicySettings,
    get_policy_settings,
    load_policy_settings,
    reset_policy_settings_cache,
)

__all__ = [
    "PolicySettings",
    "get_policy_settings",
    "load_policy_settings",
    "reset_policy_settings_cache",
]
