"""
Profile API endpoints.

Own-profile read/update/delete, public user views, the OB/OG directory and
the student list shown to corporate OBs.
"""
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import profile_service

router = APIRouter(tags=["profiles"])


@router.get("/profile", response_model=schemas.ProfileResponse)
def get_profile(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    return profile_service.get_me(db, user)


@router.put("/profile", response_model=schemas.ProfileResponse)
def update_profile(
    payload: schemas.ProfileUpdateRequest,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """Update name, photo and role profile fields.

    Account fields (email, role, credits, strikes, ban state) are not part of
    the request model, so any such keys in the body are ignored.
    """
    user, _ctx = user_context
    return profile_service.update_profile(db, user, payload)


@router.delete("/profile", response_model=schemas.AccountDeletedResponse)
def delete_profile(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    profile_service.delete_account(db, user)
    return {"message": "Account deleted successfully", "deleted_at": datetime.now(timezone.utc)}


@router.get("/users/{user_id}", response_model=schemas.PublicProfileResponse)
def get_public_profile(user_id: uuid.UUID, db: Session = Depends(get_db)):
    return profile_service.get_public(db, user_id)


@router.get("/obog", response_model=schemas.DirectoryResponse)
def list_obog(db: Session = Depends(get_db)):
    return {"users": profile_service.list_obog(db)}


@router.get("/students", response_model=schemas.StudentListResponse)
def list_students(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    return {"students": profile_service.list_students(db, user, current_user.get("is_admin", False))}
