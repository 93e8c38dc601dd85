"""
Student applications to internship listings.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import internship_service

router = APIRouter(prefix="/applications", tags=["applications"])


@router.post("", response_model=schemas.ApplicationEnvelope, status_code=status.HTTP_201_CREATED)
def create_application(
    payload: schemas.ApplicationCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    application = internship_service.apply(db, user, payload)
    return {"application": application, "message": "Application submitted successfully"}


@router.get("", response_model=schemas.ApplicationListResponse)
def list_applications(
    internship_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Without **internship_id**, the caller's own applications with their listing.
    With it, the applications to that listing (owning company only).
    """
    user, _ctx = user_context
    return {"applications": internship_service.list_applications(db, user, internship_id)}


@router.put("/{application_id}", response_model=schemas.ApplicationEnvelope)
def update_application(
    application_id: uuid.UUID,
    payload: schemas.ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    application = internship_service.update_application_status(db, user, application_id, payload)
    return {"application": application}
