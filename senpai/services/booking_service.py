"""
Bookings against OB/OG availability.

A booking always lives in the student/OB-OG thread and points at that
thread's meeting. Slot strings are the stored availability format
('YYYY-MM-DD HH:MM'), compared verbatim after trimming.
"""

import logging
import uuid
from collections import Counter
from datetime import datetime, timedelta, UTC
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from senpai.db import models, schemas
from senpai.db.models.bookings import ACTIVE_BOOKING_STATUSES, BOOKING_PENDING, BOOKING_CONFIRMED, BOOKING_CANCELLED
from senpai.db.models.meetings import (
    MEETING_UNCONFIRMED,
    MEETING_CONFIRMED,
    MEETING_COMPLETED,
    MEETING_CANCELLED,
    POST_COMPLETED,
    POST_NO_SHOW,
)
from senpai.db.models.users import ROLE_STUDENT, ROLE_OBOG
from senpai.db.repositories import users as user_repo
from senpai.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailed
from senpai.services import availability
from senpai.services.messaging_service import get_or_create_thread
from senpai.services.notification_service import CATEGORY_SYSTEM, NotificationService
from senpai.utils.feature_flags import auto_no_show_enabled
from senpai.utils.runtime import env_int
from senpai.utils.urls import thread_path

logger = logging.getLogger(__name__)

BOOKING_ACTIONS = ('confirm', 'accept', 'complete', 'cancel', 'mark_no_show')


def no_show_grace() -> timedelta:
    return timedelta(hours=env_int("NO_SHOW_GRACE_HOURS", 24))


def _notify(notifier: NotificationService, booking: models.Booking, recipient_id: uuid.UUID, title: str, message: str) -> None:
    notifier.notify_user_id(
        recipient_id,
        CATEGORY_SYSTEM,
        title,
        message,
        action_url=thread_path(booking.thread_id),
        metadata={"booking_id": str(booking.id), "thread_id": str(booking.thread_id)},
    )


def create_booking(
    db: Session,
    student: models.User,
    payload: schemas.BookingCreate,
    notifier: Optional[NotificationService] = None,
) -> Dict[str, Any]:
    if student.role != ROLE_STUDENT:
        raise PermissionDeniedError("Only students can create bookings")
    slot = (payload.booking_date_time or "").strip()
    if payload.obog_id is None or not slot:
        raise ValidationFailed("Missing required fields")

    obog = user_repo.get_user(db, payload.obog_id)
    if obog is None or obog.role != ROLE_OBOG:
        raise ValidationFailed("Invalid OB/OG user")

    declared = availability.get_stored_slots(db, obog.id)
    if not declared:
        raise ValidationFailed("This OB/OG has not set their availability yet")
    if slot not in declared:
        raise ValidationFailed("This time slot is not available in the OB/OG's calendar")

    taken = db.query(models.Booking).filter(
        models.Booking.obog_id == obog.id,
        models.Booking.booking_date_time == slot,
        models.Booking.status.in_(ACTIVE_BOOKING_STATUSES),
    ).first()
    if taken is not None:
        raise ConflictError("This time slot is already booked")

    thread = get_or_create_thread(db, student.id, obog.id)
    meeting = db.query(models.Meeting).filter(models.Meeting.thread_id == thread.id).first()
    if meeting is None:
        meeting = models.Meeting(
            thread_id=thread.id,
            student_id=student.id,
            obog_id=obog.id,
            meeting_date_time=slot,
            status=MEETING_UNCONFIRMED,
        )
        db.add(meeting)
        db.flush()

    booking = models.Booking(
        student_id=student.id,
        obog_id=obog.id,
        thread_id=thread.id,
        meeting_id=meeting.id,
        booking_date_time=slot,
        duration_minutes=payload.duration_minutes or 60,
        notes=payload.notes,
        status=BOOKING_PENDING,
        meeting_status=MEETING_UNCONFIRMED,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    db.refresh(meeting)
    logger.info("booking_created booking=%s student=%s obog=%s slot=%s", booking.id, student.id, obog.id, slot)

    notifier = notifier or NotificationService(db)
    _notify(notifier, booking, obog.id, "New Booking Request", f"A student has requested to book a meeting on {slot}")
    return {"booking": booking, "meeting": meeting}


def detect_no_shows(
    db: Session,
    bookings: Optional[Iterable[models.Booking]] = None,
    *,
    now: Optional[datetime] = None,
    notifier: Optional[NotificationService] = None,
) -> int:
    """Flag confirmed bookings nobody reported on once the grace period has passed.

    Sweeps every confirmed booking when ``bookings`` is None. Each flagged
    student gets the same notice as a manual no-show. Returns the number of
    bookings changed; a second pass over the same rows changes none.
    """
    if not auto_no_show_enabled():
        return 0
    now = now or datetime.now(UTC)
    if bookings is None:
        bookings = db.query(models.Booking).filter(models.Booking.status == BOOKING_CONFIRMED).all()
    cutoff = no_show_grace()
    flagged: List[models.Booking] = []
    for booking in bookings:
        if booking.status != BOOKING_CONFIRMED:
            continue
        if booking.student_post_status or booking.obog_post_status:
            continue
        try:
            starts_at = availability.slot_to_datetime(booking.booking_date_time)
        except ValueError:
            logger.warning("no_show_skip_unparseable booking=%s slot=%r", booking.id, booking.booking_date_time)
            continue
        if now - starts_at <= cutoff:
            continue
        booking.obog_post_status = POST_NO_SHOW
        booking.obog_post_status_at = now
        booking.meeting_status = POST_NO_SHOW
        flagged.append(booking)
    if not flagged:
        return 0
    db.commit()
    logger.info("no_show_sweep flagged=%d", len(flagged))
    notifier = notifier or NotificationService(db)
    for booking in flagged:
        _notify(
            notifier, booking, booking.student_id,
            "Meeting Marked as No-Show", f"Your meeting on {booking.booking_date_time} was marked as a no-show",
        )
    return len(flagged)


def list_bookings(db: Session, user: models.User, is_admin: bool, obog_id: Optional[uuid.UUID] = None) -> List[models.Booking]:
    query = db.query(models.Booking)
    if obog_id is not None:
        if obog_id != user.id and not is_admin:
            raise PermissionDeniedError("You can only list your own bookings")
        query = query.filter(models.Booking.obog_id == obog_id)
    else:
        query = query.filter(or_(models.Booking.student_id == user.id, models.Booking.obog_id == user.id))
    bookings = query.order_by(models.Booking.booking_date_time.asc()).all()
    detect_no_shows(db, bookings)
    return bookings


def _get_booking(db: Session, booking_id: uuid.UUID) -> models.Booking:
    booking = db.query(models.Booking).filter(models.Booking.id == booking_id).first()
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def get_booking(db: Session, booking_id: uuid.UUID, user: models.User, is_admin: bool) -> models.Booking:
    booking = _get_booking(db, booking_id)
    if user.id not in (booking.student_id, booking.obog_id) and not is_admin:
        raise PermissionDeniedError("Unauthorized")
    return booking


def update_booking(
    db: Session,
    booking_id: uuid.UUID,
    user: models.User,
    is_admin: bool,
    payload: schemas.BookingAction,
    notifier: Optional[NotificationService] = None,
) -> models.Booking:
    booking = get_booking(db, booking_id, user, is_admin)
    action = payload.action
    if action not in BOOKING_ACTIONS:
        raise ValidationFailed("Invalid action")
    is_obog = user.id == booking.obog_id
    now = datetime.now(UTC)
    slot = booking.booking_date_time

    if action in ('confirm', 'accept'):
        if not is_obog:
            raise PermissionDeniedError("Only OB/OG can accept bookings")
        if booking.status != BOOKING_PENDING:
            raise ValidationFailed("Booking is not in pending status")
        booking.status = BOOKING_CONFIRMED
        booking.meeting_status = MEETING_CONFIRMED
        recipient, title, message = booking.student_id, "Booking Accepted", f"Your booking for {slot} has been accepted"

    elif action == 'complete':
        if not is_obog:
            raise PermissionDeniedError("Only OB/OG can mark meetings as completed")
        booking.obog_post_status = POST_COMPLETED
        booking.obog_post_status_at = now
        if booking.student_post_status in (None, '', POST_COMPLETED):
            booking.meeting_status = MEETING_COMPLETED
        recipient, title, message = booking.student_id, "Meeting Completed", f"Your meeting on {slot} has been marked as completed"

    elif action == 'cancel':
        if booking.status == BOOKING_CANCELLED:
            raise ValidationFailed("Booking is already cancelled")
        booking.status = BOOKING_CANCELLED
        booking.cancelled_at = now
        booking.cancelled_by = user.id
        booking.cancellation_reason = payload.cancellation_reason
        booking.meeting_status = MEETING_CANCELLED
        if booking.meeting_id is not None:
            meeting = db.query(models.Meeting).filter(models.Meeting.id == booking.meeting_id).first()
            if meeting is not None:
                meeting.status = MEETING_CANCELLED
        recipient = booking.student_id if is_obog else booking.obog_id
        title, message = "Booking Cancelled", f"The booking for {slot} has been cancelled by {user.name}"

    else:  # mark_no_show
        if not is_obog:
            raise PermissionDeniedError("Only OB/OG can mark no-show")
        booking.obog_post_status = POST_NO_SHOW
        booking.obog_post_status_at = now
        booking.meeting_status = POST_NO_SHOW
        recipient, title, message = booking.student_id, "Meeting Marked as No-Show", f"Your meeting on {slot} was marked as a no-show"

    db.commit()
    db.refresh(booking)
    logger.info("booking_updated booking=%s action=%s by=%s", booking.id, action, user.id)

    if recipient != user.id:
        _notify(notifier or NotificationService(db), booking, recipient, title, message)
    return booking


def obog_dashboard(db: Session, obog: models.User) -> Dict[str, Any]:
    if obog.role != ROLE_OBOG:
        raise PermissionDeniedError("Only OB/OG can view the booking dashboard")
    bookings = (
        db.query(models.Booking)
        .filter(models.Booking.obog_id == obog.id, models.Booking.status != BOOKING_CANCELLED)
        .order_by(models.Booking.booking_date_time.desc())
        .all()
    )
    detect_no_shows(db, bookings)
    students = user_repo.get_users_by_ids(db, [b.student_id for b in bookings])
    entries = []
    for booking in bookings:
        entry = schemas.Booking.model_validate(booking).model_dump()
        entry["student"] = students.get(booking.student_id)
        entries.append(entry)
    counts = Counter(booking.display_status for booking in bookings)
    return {"bookings": entries, "counts": dict(counts)}
