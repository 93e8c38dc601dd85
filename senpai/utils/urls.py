"""
URL utilities for building absolute links in emails and notifications.

Primary source: APP_BASE_URL (e.g., https://app.senpai-career.jp)
Fallback: APP_HOST (adds scheme heuristically if missing).
"""
from __future__ import annotations

import os


def _add_scheme_if_missing(host: str) -> str:
    h = host.strip()
    if not h:
        return "http://localhost:3000"
    if h.startswith("http://") or h.startswith("https://"):
        return h
    lower = h.lower()
    if lower.startswith("localhost") or lower.startswith("127.0.0.1"):
        return f"http://{h}"
    return f"https://{h}"


def _strip_trailing_slash(url: str) -> str:
    return url[:-1] if url.endswith("/") else url


def get_app_base_url() -> str:
    """Return normalized base URL for the frontend application.

    Precedence:
    1. APP_BASE_URL
    2. APP_HOST, with a scheme added if missing
    Defaults to http://localhost:3000 if neither is set.
    """
    base = os.getenv("APP_BASE_URL")
    if base and base.strip():
        return _strip_trailing_slash(base.strip())
    host = os.getenv("APP_HOST")
    if host and host.strip():
        return _strip_trailing_slash(_add_scheme_if_missing(host.strip()))
    return "http://localhost:3000"


def build_app_link(path: str | None) -> str:
    """Join an app-relative path such as '/messages/<id>' onto the base URL."""
    base = get_app_base_url()
    if not path:
        return base
    if path.startswith("http://") or path.startswith("https://"):
        return path
    return f"{base}/{path.lstrip('/')}"


def thread_path(thread_id) -> str:
    return f"/messages/{thread_id}"


def internship_path(internship_id) -> str:
    return f"/internships/{internship_id}"


def internship_applications_path(internship_id) -> str:
    return f"/company/internships/{internship_id}/applications"


def build_password_reset_link(token: str) -> str:
    return f"{get_app_base_url()}/reset-password/{token}"
