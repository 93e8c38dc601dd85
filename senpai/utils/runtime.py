"""Environment readers shared by the API and the workers."""

import os
from typing import FrozenSet
from urllib.parse import urlparse

LOCAL_HOSTS: FrozenSet[str] = frozenset({"localhost", "127.0.0.1", "::1"})


def base_url_host() -> str:
    """Lower-cased host of APP_BASE_URL, or '' when it is unset."""
    raw = os.getenv("APP_BASE_URL", "").strip()
    if not raw:
        return ""
    if "://" not in raw:
        raw = f"http://{raw}"
    return (urlparse(raw).hostname or "").lower()


def dev_mode_active() -> bool:
    """True when DEV_MODE=true on a local deployment.

    A non-local APP_BASE_URL host raises RuntimeError. Extra hosts may be
    allowed through DEV_MODE_ALLOWED_HOSTS.
    """
    if os.getenv("DEV_MODE", "false").strip().lower() != "true":
        return False
    host = base_url_host()
    allowed = set(LOCAL_HOSTS)
    allowed.update(h.strip().lower() for h in os.getenv("DEV_MODE_ALLOWED_HOSTS", "").split(",") if h.strip())
    if host and host not in allowed:
        raise RuntimeError(f"DEV_MODE=true is refused for APP_BASE_URL host '{host}'")
    return True


def env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default
