"""
Report API endpoints.

Users report other users (or the platform itself via ``PLATFORM``); admins
triage the queue.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context, require_admin
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import moderation_service

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_report(
    payload: schemas.ReportCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    report = moderation_service.create_report(db, user, payload)
    return {"report": schemas.Report.model_validate(report)}


@router.get("", response_model=schemas.ReportListResponse)
def list_reports(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    return {"reports": moderation_service.list_reports(db, user, current_user.get("is_admin", False), status=status)}


@router.put("/{report_id}")
def update_report(
    report_id: uuid.UUID,
    payload: schemas.ReportUpdate,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    admin, _ctx = admin_context
    report = moderation_service.update_report(db, report_id, admin, payload)
    return {"report": schemas.Report.model_validate(report)}
