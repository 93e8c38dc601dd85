"""Admin moderation: strikes, bans and credit grants."""

import logging
import uuid
from datetime import datetime, UTC
from typing import Tuple

from sqlalchemy.orm import Session

from senpai import audit
from senpai.audit import AuditAction
from senpai.db import models
from senpai.db.models.tokens import PURPOSE_SESSION
from senpai.db.models.users import ROLE_STUDENT
from senpai.db.repositories import tokens as token_repo
from senpai.db.repositories import users as user_repo
from senpai.errors import NotFoundError, ValidationFailed
from senpai.utils.runtime import env_int

logger = logging.getLogger(__name__)


def auto_ban_strikes() -> int:
    return env_int("AUTO_BAN_STRIKES", 2)


def _get_target(db: Session, user_id: uuid.UUID) -> models.User:
    user = user_repo.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _ban(db: Session, user: models.User) -> int:
    user.is_banned = True
    user.banned_at = datetime.now(UTC)
    db.commit()
    return token_repo.revoke_all_for_user(db, user_id=user.id, purpose=PURPOSE_SESSION)


def apply_strike(db: Session, admin: models.User, user_id: uuid.UUID, action: str) -> Tuple[models.User, bool]:
    if action not in ('add', 'remove'):
        raise ValidationFailed("Invalid action")
    user = _get_target(db, user_id)
    if user.role != ROLE_STUDENT:
        raise ValidationFailed("Strikes can only be applied to students")

    previous = user.strikes or 0
    auto_banned = False
    if action == 'add':
        user.strikes = previous + 1
        db.commit()
        if user.strikes >= auto_ban_strikes() and not user.is_banned:
            _ban(db, user)
            auto_banned = True
    else:
        user.strikes = max(0, previous - 1)
        db.commit()
    db.refresh(user)

    audit.log_user(
        db,
        actor_user_id=admin.id,
        user_id=user.id,
        action=AuditAction.STRIKE_ADD if action == 'add' else AuditAction.STRIKE_REMOVE,
        metadata={"old_strikes": previous, "new_strikes": user.strikes, "auto_banned": auto_banned},
    )
    if auto_banned:
        audit.log_user(
            db,
            actor_user_id=admin.id,
            user_id=user.id,
            action=AuditAction.USER_BAN,
            metadata={"reason": "strike_threshold", "strikes": user.strikes},
        )
    logger.info("strike_%s user=%s strikes=%d auto_banned=%s", action, user.id, user.strikes, auto_banned)
    return user, auto_banned


def set_ban(db: Session, admin: models.User, user_id: uuid.UUID, action: str) -> models.User:
    if action not in ('ban', 'unban'):
        raise ValidationFailed("Invalid action")
    user = _get_target(db, user_id)
    if user.id == admin.id:
        raise ValidationFailed("You cannot ban yourself")

    revoked = 0
    if action == 'ban':
        revoked = _ban(db, user)
    else:
        user.is_banned = False
        user.banned_at = None
        db.commit()
    db.refresh(user)
    audit.log_user(
        db,
        actor_user_id=admin.id,
        user_id=user.id,
        action=AuditAction.USER_BAN if action == 'ban' else AuditAction.USER_UNBAN,
        metadata={"sessions_revoked": revoked},
    )
    logger.info("user_%s user=%s admin=%s sessions_revoked=%d", action, user.id, admin.id, revoked)
    return user


def grant_credits(db: Session, admin: models.User, user_id: uuid.UUID, amount: int) -> models.User:
    """Adjust a balance by ``amount``; negative amounts claw credits back."""
    if not isinstance(amount, int) or amount == 0:
        raise ValidationFailed("Amount must be a non-zero integer")
    user = _get_target(db, user_id)
    previous = user.credits or 0
    if previous + amount < 0:
        raise ValidationFailed("Credit balance cannot go below zero")
    user.credits = previous + amount
    db.commit()
    db.refresh(user)
    audit.log_user(
        db,
        actor_user_id=admin.id,
        user_id=user.id,
        action=AuditAction.CREDITS_GRANT,
        metadata={"amount": amount, "old_credits": previous, "new_credits": user.credits},
    )
    logger.info("credits_granted user=%s amount=%d balance=%d", user.id, amount, user.credits)
    return user
