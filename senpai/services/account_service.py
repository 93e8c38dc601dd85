"""Signup, login/logout and the password reset flow."""

import logging
from datetime import timedelta
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from senpai import audit
from senpai.audit import AuditAction
from senpai.db import models, schemas
from senpai.db.models.tokens import PURPOSE_SESSION, PURPOSE_PASSWORD_RESET
from senpai.db.models.users import SIGNUP_ROLES
from senpai.db.repositories import tokens as token_repo
from senpai.db.repositories import users as user_repo
from senpai.errors import AuthenticationError, ConflictError, PermissionDeniedError, ValidationFailed
from senpai.services.notification_service import NotificationService
from senpai.services.profile_service import clean_profile_fields
from senpai.utils import token_crypto
from senpai.utils.email_domains import BLOCKED_DOMAIN_ERROR, get_email_domain, is_blocked_free_domain
from senpai.utils.feature_flags import free_email_blocking_enabled
from senpai.utils.runtime import env_int
from senpai.utils.urls import build_password_reset_link

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
FORGOT_PASSWORD_MESSAGE = "If an account exists for that email, a password reset link has been sent."


def session_ttl() -> timedelta:
    return timedelta(hours=env_int("SESSION_TTL_HOURS", 336))


def reset_ttl_minutes() -> int:
    return env_int("PASSWORD_RESET_TTL_MINUTES", 60)


def _check_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")


def signup(db: Session, payload: schemas.SignupRequest) -> models.User:
    email = (payload.email or "").strip()
    name = (payload.name or "").strip()
    if not email or not payload.password or not name or not payload.role:
        raise ValidationFailed("Missing required fields")
    _check_password(payload.password)
    if payload.role not in SIGNUP_ROLES:
        raise ValidationFailed("Invalid role")
    if free_email_blocking_enabled():
        if get_email_domain(email) is None:
            raise ValidationFailed("Invalid email address")
        if is_blocked_free_domain(email):
            raise ValidationFailed(BLOCKED_DOMAIN_ERROR)
    if user_repo.get_user_by_email(db, email) is not None:
        raise ConflictError("An account with this email already exists")

    profile_fields = clean_profile_fields(payload.role, payload.profile)
    try:
        user = user_repo.create_user_with_profile(
            db,
            email=email,
            password_hash=token_crypto.hash_password(payload.password),
            name=name,
            role=payload.role,
            profile_fields=profile_fields,
        )
    except IntegrityError:
        # Lost a race with a concurrent signup for the same address
        raise ConflictError("An account with this email already exists")
    logger.info("user_signed_up user=%s role=%s", user.id, user.role)
    return user


def login(db: Session, email: str, password: str) -> Tuple[models.AuthToken, str, models.User]:
    if not (email or "").strip() or not password:
        raise ValidationFailed("Email and password are required")
    user = user_repo.get_user_by_email(db, email)
    if user is None or not token_crypto.verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")
    if user.is_banned:
        raise PermissionDeniedError("Account suspended")
    token, raw = token_repo.create_session_token(db, user_id=user.id, ttl=session_ttl())
    logger.info("user_logged_in user=%s token=%s", user.id, token.token_id)
    return token, raw, user


def logout(db: Session, raw_token: Optional[str]) -> None:
    parsed = token_crypto.parse_token(raw_token or "")
    if parsed is None:
        return
    token = token_repo.get_by_token_id(db, token_id=parsed.token_id)
    if token is not None and token.purpose == PURPOSE_SESSION:
        token_repo.revoke(db, token=token)


def forgot_password(db: Session, email: str, notifier: Optional[NotificationService] = None) -> str:
    """Issue a reset link when the account exists; the reply never reveals whether it does."""
    user = user_repo.get_user_by_email(db, email or "")
    if user is None:
        return FORGOT_PASSWORD_MESSAGE
    token_repo.revoke_all_for_user(db, user_id=user.id, purpose=PURPOSE_PASSWORD_RESET)
    minutes = reset_ttl_minutes()
    _, raw = token_repo.create_reset_token(db, user_id=user.id, ttl=timedelta(minutes=minutes))
    notifier = notifier or NotificationService(db)
    result = notifier.send_password_reset_email(user, build_password_reset_link(raw), minutes)
    if not result.get('success'):
        logger.warning("password_reset_email_failed user=%s error=%s", user.id, result.get('error'))
    return FORGOT_PASSWORD_MESSAGE


def reset_password(db: Session, raw_token: str, password: str) -> models.User:
    token = token_repo.resolve_active(db, raw_token=raw_token or "", purpose=PURPOSE_PASSWORD_RESET)
    if token is None:
        raise ValidationFailed("Invalid or expired reset token")
    _check_password(password)
    user = user_repo.get_user(db, token.user_id)
    if user is None:
        raise ValidationFailed("Invalid or expired reset token")
    user.password_hash = token_crypto.hash_password(password)
    db.commit()
    token_repo.mark_used(db, token=token)
    revoked = token_repo.revoke_all_for_user(db, user_id=user.id, purpose=PURPOSE_SESSION)
    audit.log_user(db, actor_user_id=user.id, user_id=user.id, action=AuditAction.PASSWORD_RESET, metadata={"sessions_revoked": revoked})
    logger.info("password_reset user=%s sessions_revoked=%d", user.id, revoked)
    return user
