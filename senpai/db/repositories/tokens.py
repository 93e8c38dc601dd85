"""
Repositories for bearer session tokens and password reset tokens.

Both live in `auth_tokens`, told apart by `purpose`. Only the hash of the
secret half is stored; callers receive the full token string once.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Tuple, Optional

from sqlalchemy.orm import Session

from senpai.db import models
from senpai.db.models.tokens import PURPOSE_SESSION, PURPOSE_PASSWORD_RESET
from senpai.utils import token_crypto


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _create(db: Session, *, user_id: uuid.UUID, purpose: str, prefix: str, ttl: timedelta) -> Tuple[models.AuthToken, str]:
    token_id, secret, full_token = token_crypto.generate_token(prefix)
    now = _now()
    token = models.AuthToken(
        user_id=user_id,
        token_id=token_id,
        token_hash=token_crypto.hash_secret(secret),
        purpose=purpose,
        status="active",
        created_at=now,
        expires_at=now + ttl,
    )
    db.add(token)
    db.commit()
    db.refresh(token)
    return token, full_token


def create_session_token(db: Session, *, user_id: uuid.UUID, ttl: timedelta) -> Tuple[models.AuthToken, str]:
    return _create(db, user_id=user_id, purpose=PURPOSE_SESSION, prefix=token_crypto.SESSION_PREFIX, ttl=ttl)


def create_reset_token(db: Session, *, user_id: uuid.UUID, ttl: timedelta) -> Tuple[models.AuthToken, str]:
    return _create(db, user_id=user_id, purpose=PURPOSE_PASSWORD_RESET, prefix=token_crypto.RESET_PREFIX, ttl=ttl)


def get_by_token_id(db: Session, *, token_id: str) -> Optional[models.AuthToken]:
    return (
        db.query(models.AuthToken)
        .filter(models.AuthToken.token_id == token_id)
        .first()
    )


def resolve_active(db: Session, *, raw_token: str, purpose: str) -> Optional[models.AuthToken]:
    """Return the active, unexpired token row matching a raw token string, or None."""
    parsed = token_crypto.parse_token(raw_token)
    if parsed is None:
        return None
    expected_prefix = token_crypto.SESSION_PREFIX if purpose == PURPOSE_SESSION else token_crypto.RESET_PREFIX
    if parsed.prefix != expected_prefix:
        return None
    token = get_by_token_id(db, token_id=parsed.token_id)
    if token is None or token.purpose != purpose or token.status != "active":
        return None
    if token.expires_at is not None and models.as_utc(token.expires_at) <= _now():
        return None
    if not token_crypto.verify_secret(parsed.secret, token.token_hash):
        return None
    return token


def revoke(db: Session, *, token: models.AuthToken) -> None:
    if token.status != "revoked":
        token.status = "revoked"
        token.revoked_at = _now()
        db.commit()


def mark_used(db: Session, *, token: models.AuthToken) -> None:
    """Consume a single-use token (password reset)."""
    token.status = "used"
    token.last_used_at = _now()
    db.commit()


def revoke_all_for_user(db: Session, *, user_id: uuid.UUID, purpose: Optional[str] = None) -> int:
    query = db.query(models.AuthToken).filter(
        models.AuthToken.user_id == user_id,
        models.AuthToken.status == "active",
    )
    if purpose:
        query = query.filter(models.AuthToken.purpose == purpose)
    now = _now()
    count = 0
    for token in query.all():
        token.status = "revoked"
        token.revoked_at = now
        count += 1
    if count:
        db.commit()
    return count


def mark_used_now(db: Session, *, token: models.AuthToken) -> None:
    token.last_used_at = _now()
    try:
        db.commit()
    except Exception:
        db.rollback()
