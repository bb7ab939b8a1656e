"""Policy settings schema and loader.

Policy windows and toggles live in a YAML file so operations can tune them
without a release. The path comes from ``COURIAL_SHIELD_CONFIG`` (a ``.env``
file in the project root is honored); without a file the defaults apply.

Example ``policy.yaml``::

    submission_window_days: 5
    cancellation_restriction_days: 90
    plan_change_carries_usage: true
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from courial_shield.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "COURIAL_SHIELD_CONFIG"


class PolicySettings(BaseModel):
    """Tunable policy parameters."""

    submission_window_days: int = Field(
        default=5, ge=0, description="Days after issuance a ticket may be submitted"
    )
    cancellation_restriction_days: int = Field(
        default=90, ge=0, description="Days after a payout during which cancellation is blocked"
    )
    coverage_period_days: int = Field(
        default=365, gt=0, description="Length of one coverage period"
    )
    plan_change_carries_usage: bool = Field(
        default=True,
        description="Whether used amount and tickets survive a plan change",
    )
    usage_warning_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Usage ratio at which the member is reminded of remaining coverage",
    )
    flag_unsupported_regions: bool = Field(
        default=True,
        description="Warn when a claim comes from outside the service regions",
    )


def _find_project_root() -> Path:
    start = Path(__file__).resolve().parent
    for parent in [start] + list(start.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path.cwd()


def _default_config_path() -> Optional[Path]:
    load_dotenv(_find_project_root() / ".env", override=False)
    value = os.getenv(CONFIG_ENV_VAR)
    return Path(value) if value else None


def load_policy_settings(config_path: Optional[Union[str, Path]] = None) -> PolicySettings:
    """Load policy settings from a YAML file.

    Args:
        config_path: Optional explicit path. If not provided, uses the path
            in ``COURIAL_SHIELD_CONFIG``.

    Returns:
        PolicySettings from the file, or defaults when there is no file.

    Raises:
        ConfigurationError: If the file is not valid YAML or holds invalid values.
    """
    path = Path(config_path) if config_path is not None else _default_config_path()
    if path is None:
        logger.debug("No policy config configured, using defaults")
        return PolicySettings()
    if not path.exists():
        logger.debug(f"No policy config found at {path}, using defaults")
        return PolicySettings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in policy config {path}: {e}") from e

    if data is None:
        logger.warning(f"Empty policy config at {path}, using defaults")
        return PolicySettings()
    if not isinstance(data, dict):
        raise ConfigurationError(f"Policy config {path} must be a mapping")

    try:
        settings = PolicySettings.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid policy config {path}: {e}") from e

    logger.debug(f"Loaded policy settings from {path}")
    return settings


# Cached settings (loaded once per process)
_cached_settings: Optional[PolicySettings] = None


def get_policy_settings(force_reload: bool = False) -> PolicySettings:
    """Get the current policy settings (cached).

    Args:
        force_reload: If True, reload from disk even if cached.
    """
    global _cached_settings

    if force_reload or _cached_settings is None:
        _cached_settings = load_policy_settings()

    return _cached_settings


def reset_policy_settings_cache() -> None:
    """Reset the settings cache so the next lookup reads the file again."""
    global _cached_settings
    _cached_settings = None
