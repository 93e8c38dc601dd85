"""
Booking API endpoints.

Students book declared OB/OG slots; OB/OGs accept, complete or flag
no-shows; either side can cancel.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import booking_service

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=schemas.BookingCreated, status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: schemas.BookingCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    return booking_service.create_booking(db, user, payload)


@router.get("", response_model=schemas.BookingListResponse)
def list_bookings(
    obog_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    List bookings, oldest slot first.

    - **obog_id**: list one OB/OG's bookings (that OB/OG or an admin only)
    """
    user, current_user = user_context
    bookings = booking_service.list_bookings(db, user, current_user.get("is_admin", False), obog_id=obog_id)
    return {"bookings": bookings}


# Declared before /{booking_id} so "obog" is not parsed as an id
@router.get("/obog/dashboard", response_model=schemas.ObogDashboard)
def obog_dashboard(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    return booking_service.obog_dashboard(db, user)


@router.get("/{booking_id}", response_model=schemas.BookingEnvelope)
def get_booking(
    booking_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    return {"booking": booking_service.get_booking(db, booking_id, user, current_user.get("is_admin", False))}


@router.put("/{booking_id}", response_model=schemas.BookingEnvelope)
def update_booking(
    booking_id: uuid.UUID,
    payload: schemas.BookingAction,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    booking = booking_service.update_booking(db, booking_id, user, current_user.get("is_admin", False), payload)
    return {"booking": booking}
