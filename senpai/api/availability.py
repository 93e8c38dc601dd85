"""
Availability calendar API endpoints.

OB/OGs publish bookable slots over a 21-day window; anyone can read them.
"""
import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context, get_optional_user_context
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import availability as availability_service

router = APIRouter(prefix="/availability", tags=["availability"])


@router.put("", response_model=schemas.AvailabilityView)
def save_availability(
    payload: schemas.AvailabilityUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    return availability_service.save_window(
        db, user, start=payload.start, duration=payload.duration, keys=payload.slots,
    )


@router.get("/{obog_id}", response_model=schemas.AvailabilityView)
def get_availability(
    obog_id: uuid.UUID,
    start: Optional[date] = None,
    duration: int = 60,
    db: Session = Depends(get_db),
    user_context = Depends(get_optional_user_context),
):
    user, _ctx = user_context
    return availability_service.get_view(
        db, obog_id, start=start, duration=duration, viewer_id=user.id if user else None,
    )


@router.get("/{obog_id}/slots", response_model=schemas.BookableSlots)
def get_bookable_slots(obog_id: uuid.UUID, db: Session = Depends(get_db)):
    return availability_service.get_bookable_slots(db, obog_id)
