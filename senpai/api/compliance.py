"""
Compliance API endpoints: student submission and admin review.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context, require_admin
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import compliance_service

router = APIRouter(tags=["compliance"])


@router.post("/profile/compliance")
def submit_compliance(
    payload: schemas.ComplianceSubmit,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    return compliance_service.submit(db, user, payload)


@router.get("/profile/compliance", response_model=schemas.ComplianceStatus)
def get_compliance(
    user_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    return compliance_service.get_status(db, user, current_user.get("is_admin", False), user_id=user_id)


@router.get("/admin/compliance", response_model=schemas.ComplianceListResponse)
def list_compliance(
    status: Optional[str] = "submitted",
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    """
    - **status**: filter by compliance status (default `submitted`); empty lists all
    """
    return {"submissions": compliance_service.list_submissions(db, status=status or None)}


@router.put("/admin/compliance", response_model=schemas.ComplianceStatus)
def review_compliance(
    payload: schemas.ComplianceReview,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    admin, _ctx = admin_context
    return compliance_service.review(db, admin, payload)
