"""
Audit logging helpers and enums.

Admin actions and security-relevant account events are persisted through
`log` so every record shares the same shape.
"""
from __future__ import annotations
import logging
import uuid
from enum import Enum
from typing import Any, Optional, Dict
from sqlalchemy.orm import Session

from senpai.db import schemas
from senpai.db.repositories import audits as audit_repo

logger = logging.getLogger(__name__)


class AuditAction(str, Enum):
    # Accounts
    PASSWORD_RESET = "password_reset"
    ACCOUNT_DELETE = "account_delete"
    # Moderation
    STRIKE_ADD = "strike_add"
    STRIKE_REMOVE = "strike_remove"
    USER_BAN = "user_ban"
    USER_UNBAN = "user_unban"
    CREDITS_GRANT = "credits_grant"
    REPORT_UPDATE = "report_update"
    MEETING_REVIEW = "meeting_review"
    COMPLIANCE_REVIEW = "compliance_review"
    # Companies
    COMPANY_CREATE = "company_create"
    CORPORATE_OB_LINK = "corporate_ob_link"


class AuditStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"


def log(
    db: Session,
    *,
    action: AuditAction | str,
    status: AuditStatus | str = AuditStatus.SUCCESS,
    target_type: str,
    target_id: Optional[uuid.UUID] = None,
    actor_user_id: Optional[uuid.UUID],
    metadata: Optional[Dict[str, Any]] = None,
) -> schemas.AuditLog:
    """Central audit logging helper."""
    # Persist plain string values, not Enum reprs ('AuditAction.XYZ')
    action_value = action.value if isinstance(action, AuditAction) else str(action)
    status_value = status.value if isinstance(status, AuditStatus) else str(status)
    audit_log = schemas.AuditLogCreate(
        action_type=action_value,
        status=status_value,
        target_type=target_type,
        target_id=target_id,
        metadata=metadata or {},
    )
    return audit_repo.create_audit_log(
        db,
        audit_log=audit_log,
        actor_user_id=actor_user_id,
    )


def safe_log(db: Session, **kwargs) -> Optional[schemas.AuditLog]:
    """`log` for call sites where an audit failure must not fail the action."""
    try:
        return log(db, **kwargs)
    except Exception as e:
        db.rollback()
        logger.error("Audit write failed for %s: %s", kwargs.get("action"), e)
        return None


def log_user(db: Session, *, actor_user_id: Optional[uuid.UUID], user_id: uuid.UUID, action: AuditAction, status: AuditStatus | str = AuditStatus.SUCCESS, metadata: Optional[Dict[str, Any]] = None):
    return safe_log(
        db,
        action=action,
        status=status,
        target_type="user",
        target_id=user_id,
        actor_user_id=actor_user_id,
        metadata=metadata,
    )


__all__ = ["AuditAction", "AuditStatus", "log", "safe_log", "log_user"]
