import uuid
from sqlalchemy import Column, String, Text, DateTime, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc
from .meetings import display_status_for

BOOKING_PENDING = 'pending'
BOOKING_CONFIRMED = 'confirmed'
BOOKING_CANCELLED = 'cancelled'

# Statuses that hold a slot
ACTIVE_BOOKING_STATUSES = (BOOKING_PENDING, BOOKING_CONFIRMED)


class Booking(Base):
    __tablename__ = 'bookings'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    obog_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    thread_id = Column(UUID(as_uuid=True), ForeignKey('threads.id', ondelete='CASCADE'), nullable=False)
    meeting_id = Column(UUID(as_uuid=True), ForeignKey('meetings.id', ondelete='SET NULL'), nullable=True)

    # Slot string as declared in availability, e.g. '2025-03-04 10:30'
    booking_date_time = Column(String(32), nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=60)
    notes = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=BOOKING_PENDING)
    meeting_status = Column(String(20), nullable=False, default='unconfirmed')
    student_post_status = Column(String(20), nullable=True)
    student_post_status_at = Column(DateTime(timezone=True), nullable=True)
    obog_post_status = Column(String(20), nullable=True)
    obog_post_status_at = Column(DateTime(timezone=True), nullable=True)

    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_bookings_obog_id_date', 'obog_id', 'booking_date_time'),
        Index('idx_bookings_student_id', 'student_id'),
        Index('idx_bookings_status', 'status'),
    )

    @property
    def display_status(self):
        if self.status == BOOKING_CANCELLED:
            return BOOKING_CANCELLED
        return display_status_for(self.meeting_status, self.student_post_status, self.obog_post_status)
