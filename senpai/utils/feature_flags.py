"""Feature flag helpers for runtime configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Literal, TypedDict, cast


FeatureFlagKey = Literal[
    "block_free_email_domains",
    "email_notifications_enabled",
    "auto_no_show_enabled",
]


class FeatureFlagValues(TypedDict):
    block_free_email_domains: bool
    email_notifications_enabled: bool
    auto_no_show_enabled: bool


@dataclass(frozen=True)
class FeatureFlagDefinition:
    env_var: str
    default: bool


_FEATURE_FLAG_DEFINITIONS: Dict[FeatureFlagKey, FeatureFlagDefinition] = {
    "block_free_email_domains": FeatureFlagDefinition("BLOCK_FREE_EMAIL_DOMAINS", True),
    "email_notifications_enabled": FeatureFlagDefinition("EMAIL_NOTIFICATIONS_ENABLED", True),
    "auto_no_show_enabled": FeatureFlagDefinition("AUTO_NO_SHOW_ENABLED", True),
}


def _normalize_bool(value: str | None, default: bool = True) -> bool:
    """Return normalized boolean from environment-style value."""
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"", "0", "false", "no", "off"}:
        return False
    if normalized in {"1", "true", "yes", "on"}:
        return True
    return default


@lru_cache(maxsize=None)
def get_feature_flags() -> FeatureFlagValues:
    """Return the cached feature flag state sourced from the environment."""
    values: Dict[FeatureFlagKey, bool] = {}
    for key, definition in _FEATURE_FLAG_DEFINITIONS.items():
        values[key] = _normalize_bool(os.getenv(definition.env_var), default=definition.default)
    return cast(FeatureFlagValues, values)


def is_feature_enabled(flag: FeatureFlagKey) -> bool:
    """Return whether the supplied feature flag evaluates to true."""
    return get_feature_flags()[flag]


def free_email_blocking_enabled() -> bool:
    """Reject signups from free webmail domains."""
    return is_feature_enabled("block_free_email_domains")


def email_notifications_enabled() -> bool:
    """Global toggle for outbound notification email."""
    return is_feature_enabled("email_notifications_enabled")


def auto_no_show_enabled() -> bool:
    """Toggle automatic no-show marking of stale confirmed bookings."""
    return is_feature_enabled("auto_no_show_enabled")


def refresh_feature_flag_cache() -> None:
    """Invalidate cached feature flag values (useful for tests)."""
    get_feature_flags.cache_clear()
