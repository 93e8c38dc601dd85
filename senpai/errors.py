"""
Domain exceptions raised by services.

Routers do not need to translate these one by one: the app registers a
single handler that renders any ``ServiceError`` as
``{"detail": ..., **extra}`` with the error's status code.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class ServiceError(Exception):
    """Base class for business-rule failures surfaced to API callers."""

    status_code = 400

    def __init__(self, detail: str, *, status_code: Optional[int] = None, extra: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code
        self.extra = dict(extra or {})

    def to_payload(self) -> Dict[str, Any]:
        return {"detail": self.detail, **self.extra}


class ValidationFailed(ServiceError):
    status_code = 400


class PermissionDeniedError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class InsufficientCreditsError(ServiceError):
    status_code = 402

    def __init__(self, required: int, available: int) -> None:
        super().__init__("Insufficient credits", extra={"insufficient_credits": True})
        self.required = required
        self.available = available


class AuthenticationError(ServiceError):
    status_code = 401
