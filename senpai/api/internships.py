"""
Internship and new-grad listing endpoints for company accounts.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context, get_optional_user_context
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import internship_service

router = APIRouter(prefix="/internships", tags=["internships"])


@router.get("", response_model=schemas.InternshipListResponse)
def list_internships(
    listing_type: Optional[str] = Query(default=None, alias="type"),
    db: Session = Depends(get_db),
    user_context = Depends(get_optional_user_context),
):
    """
    List public listings, newest first.

    - **type**: `internship` or `new-grad`
    """
    user, _ctx = user_context
    return {"internships": internship_service.list_internships(db, user, listing_type)}


@router.post("", response_model=schemas.InternshipEnvelope, status_code=status.HTTP_201_CREATED)
def create_internship(
    payload: schemas.InternshipCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    listing = internship_service.create_internship(db, user, payload)
    return {"internship": listing, "message": "Internship listing created successfully"}


@router.get("/{internship_id}", response_model=schemas.InternshipEnvelope)
def get_internship(
    internship_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_optional_user_context),
):
    user, current_user = user_context
    is_admin = bool(current_user and current_user.get("is_admin"))
    return {"internship": internship_service.get_internship(db, internship_id, user, is_admin)}


@router.put("/{internship_id}", response_model=schemas.InternshipEnvelope)
def update_internship(
    internship_id: uuid.UUID,
    payload: schemas.InternshipUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    listing = internship_service.update_internship(db, user, internship_id, payload)
    return {"internship": listing, "message": "Internship listing updated successfully"}


@router.delete("/{internship_id}", response_model=schemas.MessageResponse)
def delete_internship(
    internship_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    internship_service.delete_internship(db, user, internship_id)
    return {"message": "Internship listing deleted successfully"}
