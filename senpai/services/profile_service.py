"""Own-profile editing, public views and the OB/OG and student directories."""

import logging
import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from senpai import audit
from senpai.audit import AuditAction
from senpai.db import models, schemas
from senpai.db.models.users import ROLE_STUDENT, ROLE_OBOG, ROLE_COMPANY, ROLE_CORPORATE_OB
from senpai.db.repositories import users as user_repo
from senpai.errors import NotFoundError, PermissionDeniedError, ValidationFailed

logger = logging.getLogger(__name__)

_FIELD_SCHEMAS = {
    ROLE_STUDENT: schemas.StudentProfileFields,
    ROLE_OBOG: schemas.ObogProfileFields,
    ROLE_COMPANY: schemas.CompanyProfileFields,
}

_OUTPUT_SCHEMAS = {
    ROLE_STUDENT: schemas.StudentProfile,
    ROLE_OBOG: schemas.ObogProfile,
    ROLE_COMPANY: schemas.CompanyProfile,
}

# Never shown to other users
_PRIVATE_STUDENT_FIELDS = {"compliance_status"}


def clean_profile_fields(role: str, raw: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Keep only the keys the role's profile owns; unknown keys are dropped silently."""
    field_schema = _FIELD_SCHEMAS.get(role)
    if field_schema is None or not raw:
        return {}
    try:
        cleaned = field_schema.model_validate(raw)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(p) for p in first.get("loc", ())) or "profile"
        raise ValidationFailed(f"Invalid profile field '{field}': {first.get('msg')}")
    return cleaned.model_dump(exclude_none=True)


def serialize_profile(role: str, profile, *, public: bool = False) -> Optional[Dict[str, Any]]:
    output_schema = _OUTPUT_SCHEMAS.get(role)
    if output_schema is None or profile is None:
        return None
    exclude = _PRIVATE_STUDENT_FIELDS if public and role == ROLE_STUDENT else None
    return output_schema.model_validate(profile).model_dump(exclude=exclude)


def get_me(db: Session, user: models.User) -> Dict[str, Any]:
    return {"user": user, "profile": serialize_profile(user.role, user_repo.get_profile(db, user))}


def update_profile(db: Session, user: models.User, payload: schemas.ProfileUpdateRequest) -> Dict[str, Any]:
    if payload.name is not None:
        if not payload.name.strip():
            raise ValidationFailed("Name cannot be empty")
        user.name = payload.name.strip()
    if payload.profile_photo is not None:
        user.profile_photo = payload.profile_photo or None

    fields = clean_profile_fields(user.role, payload.profile)
    profile = user_repo.get_profile(db, user)
    if fields:
        if profile is None:
            profile = user_repo.PROFILE_MODELS[user.role](user_id=user.id)
            db.add(profile)
        for key, value in fields.items():
            setattr(profile, key, value)
    db.commit()
    db.refresh(user)
    if profile is not None:
        db.refresh(profile)
    return {
        "user": user,
        "profile": serialize_profile(user.role, profile),
        "message": "Profile updated successfully",
    }


def delete_account(db: Session, user: models.User) -> None:
    user_id = user.id
    user_repo.delete_user(db, user)
    audit.log_user(db, actor_user_id=None, user_id=user_id, action=AuditAction.ACCOUNT_DELETE)
    logger.info("account_deleted user=%s", user_id)


def get_public(db: Session, user_id: uuid.UUID) -> Dict[str, Any]:
    user = user_repo.get_user(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return {"user": user, "profile": serialize_profile(user.role, user_repo.get_profile(db, user), public=True)}


def list_obog(db: Session) -> List[Dict[str, Any]]:
    rows = user_repo.list_with_profiles(db, ROLE_OBOG)
    rows.sort(key=lambda pair: (pair[0].name or "").lower())
    return [
        {"user": user, "profile": serialize_profile(ROLE_OBOG, profile, public=True)}
        for user, profile in rows
    ]


def list_students(db: Session, viewer: models.User, is_admin: bool) -> List[Dict[str, Any]]:
    """Completed student profiles, for corporate OBs scouting candidates."""
    if not is_admin and viewer.role != ROLE_CORPORATE_OB:
        raise PermissionDeniedError("Only corporate OB accounts can browse students")
    entries = []
    for user, profile in user_repo.list_with_profiles(db, ROLE_STUDENT):
        if profile is None or not profile.profile_completed:
            continue
        entries.append({
            "id": user.id,
            "name": user.name,
            "profile_photo": user.profile_photo,
            "profile": serialize_profile(ROLE_STUDENT, profile, public=True),
        })
    return entries
