"""
API dependency helpers.

Resolves the calling user from an ``Authorization: Bearer sc_sess_...``
session token and exposes the admin guard used by moderation routes.
"""
import logging
import os
import secrets
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Set, Tuple

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from senpai.db import models
from senpai.db.database import get_db
from senpai.db.models.tokens import PURPOSE_SESSION
from senpai.db.models.users import ROLE_ADMIN
from senpai.db.repositories import tokens as token_repo
from senpai.db.repositories import users as user_repo
from senpai.utils import token_crypto
from senpai.utils.runtime import dev_mode_active

logger = logging.getLogger(__name__)

DEV_USER_EMAIL = "dev@localhost"
DEV_USER_NAME = "Development User"

# Contract:
# Returns (sqlalchemy User model, current_user_context_dict)
# Raises 401 if identity cannot be resolved, 403 for suspended accounts.


def admin_emails() -> Set[str]:
    raw = os.getenv("ADMIN_EMAILS", "")
    return {e.strip().lower() for e in raw.split(",") if e.strip()}


def build_user_context(user: models.User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "is_admin": user.role == ROLE_ADMIN or (user.email or "").lower() in admin_emails(),
    }


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return None


def _get_or_create_dev_user(db: Session) -> models.User:
    user = user_repo.get_user_by_email(db, DEV_USER_EMAIL)
    if user is None:
        user = models.User(
            email=DEV_USER_EMAIL,
            password_hash=token_crypto.hash_password(secrets.token_urlsafe(32)),
            name=DEV_USER_NAME,
            role=ROLE_ADMIN,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    return user


def _resolve_session(db: Session, raw_token: str) -> models.User:
    parsed = token_crypto.parse_token(raw_token)
    if not parsed:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token format")
    token = token_repo.get_by_token_id(db, token_id=parsed.token_id)
    if not token or token.purpose != PURPOSE_SESSION or parsed.prefix != token_crypto.SESSION_PREFIX:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    # Status/expiry checks
    if token.status != "active":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token not active")
    if token.expires_at is not None and datetime.now(timezone.utc) > models.as_utc(token.expires_at):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    # Verify secret
    if not token_crypto.verify_secret(parsed.secret, token.token_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = user_repo.get_user(db, token.user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    if user.is_banned:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account suspended")
    token_repo.mark_used_now(db, token=token)
    return user


def get_current_user_context(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> Tuple[models.User, Dict[str, Any]]:
    raw_token = extract_bearer_token(authorization)
    if raw_token:
        user = _resolve_session(db, raw_token)
    elif authorization:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token format")
    elif dev_mode_active():
        # In dev mode, anonymous callers act as the local admin
        user = _get_or_create_dev_user(db)
    else:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user, build_user_context(user)


def get_optional_user_context(
    db: Session = Depends(get_db),
    authorization: Optional[str] = Header(default=None),
) -> Tuple[Optional[models.User], Optional[Dict[str, Any]]]:
    """Like get_current_user_context, but anonymous callers get (None, None).

    A token that is present but invalid is still rejected.
    """
    if not authorization:
        return None, None
    return get_current_user_context(db=db, authorization=authorization)


def require_admin(user_context=Depends(get_current_user_context)) -> Tuple[models.User, Dict[str, Any]]:
    user, current_user = user_context
    if not current_user.get("is_admin"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user, current_user
