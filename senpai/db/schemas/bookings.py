import uuid
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, ConfigDict

from .meetings import Meeting
from .users import UserPublic


class BookingCreate(BaseModel):
    obog_id: Optional[uuid.UUID] = None
    booking_date_time: Optional[str] = None
    duration_minutes: Optional[int] = None
    notes: Optional[str] = None


class BookingAction(BaseModel):
    action: str = ""
    cancellation_reason: Optional[str] = None


class Booking(BaseModel):
    id: uuid.UUID
    student_id: uuid.UUID
    obog_id: uuid.UUID
    thread_id: uuid.UUID
    meeting_id: Optional[uuid.UUID] = None
    booking_date_time: str
    duration_minutes: int
    notes: Optional[str] = None
    status: str
    meeting_status: str
    display_status: str
    student_post_status: Optional[str] = None
    student_post_status_at: Optional[datetime] = None
    obog_post_status: Optional[str] = None
    obog_post_status_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[uuid.UUID] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class BookingCreated(BaseModel):
    booking: Booking
    meeting: Optional[Meeting] = None


class BookingEnvelope(BaseModel):
    booking: Booking


class BookingListResponse(BaseModel):
    bookings: List[Booking]


class DashboardBooking(Booking):
    student: Optional[UserPublic] = None


class ObogDashboard(BaseModel):
    bookings: List[DashboardBooking]
    # Count per display status, e.g. {"pending_operation": 2, "completed": 1}
    counts: Dict[str, int]
