"""
Admin moderation API endpoints.

User moderation (strikes, bans, credit grants), the flagged-meeting review
queue and the audit log. Every route requires an admin caller.
"""
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from senpai.api.deps import require_admin
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.db.repositories import audits as audit_repo
from senpai.db.repositories import users as user_repo
from senpai.services import admin_service, meeting_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=schemas.AdminUserListResponse)
def list_users(
    role: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 200,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    return {"users": user_repo.list_users(db, role=role, search=search, skip=skip, limit=limit)}


@router.post("/users/{user_id}/strikes", response_model=schemas.StrikeResponse)
def update_strikes(
    user_id: uuid.UUID,
    payload: schemas.StrikeRequest,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    admin, _ctx = admin_context
    user, auto_banned = admin_service.apply_strike(db, admin, user_id, payload.action)
    return {"user": user, "auto_banned": auto_banned}


@router.post("/users/{user_id}/ban", response_model=schemas.AdminUserResponse)
def update_ban(
    user_id: uuid.UUID,
    payload: schemas.BanRequest,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    admin, _ctx = admin_context
    return {"user": admin_service.set_ban(db, admin, user_id, payload.action)}


@router.post("/users/{user_id}/credits", response_model=schemas.AdminUserResponse)
def grant_credits(
    user_id: uuid.UUID,
    payload: schemas.CreditGrantRequest,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    admin, _ctx = admin_context
    return {"user": admin_service.grant_credits(db, admin, user_id, payload.amount)}


@router.get("/meetings/flagged", response_model=schemas.FlaggedMeetingsResponse)
def list_flagged_meetings(
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    return {"meetings": meeting_service.list_flagged(db)}


@router.put("/meetings/{meeting_id}/review", response_model=schemas.MeetingEnvelope)
def review_meeting(
    meeting_id: uuid.UUID,
    payload: schemas.MeetingReviewRequest,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    admin, _ctx = admin_context
    return {"meeting": meeting_service.review_meeting(db, meeting_id, admin, payload.admin_notes)}


@router.get("/audits", response_model=List[schemas.AuditLog])
def list_audit_logs(
    actor_user_id: Optional[uuid.UUID] = None,
    action_type: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    return audit_repo.get_audit_logs(db, user_id=actor_user_id, action_type=action_type, skip=skip, limit=limit)
