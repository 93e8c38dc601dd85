"""Availability calendar: slot grid rules and the OB/OG calendar read/save paths.

Slots are wall-clock strings in ``APP_TIMEZONE``. Two encodings exist:

- key (requests from the calendar grid): ``YYYY-MM-DD_HH:MM``
- stored (CSV column and bookings): ``YYYY-MM-DD HH:MM``

A whole-day slot uses ``all-day`` as its time part.
"""

import logging
import os
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Set, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from senpai.db import models
from senpai.db.models.bookings import ACTIVE_BOOKING_STATUSES
from senpai.db.models.users import ROLE_OBOG
from senpai.errors import NotFoundError, PermissionDeniedError, ValidationFailed

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Tokyo"
VALID_DURATIONS = (15, 30, 60, 1440)
ALL_DAY_MINUTES = 1440
ALL_DAY = "all-day"
FIRST_HOUR = 6
LAST_HOUR = 20
WINDOW_DAYS = 21

_STEPS = {60: (0,), 30: (0, 30), 15: (0, 15, 30, 45)}


# =============================================================================
# Time zone and window
# =============================================================================

def get_app_timezone() -> ZoneInfo:
    """Zone that slot strings are interpreted in; falls back to Asia/Tokyo."""
    name = os.getenv("APP_TIMEZONE", DEFAULT_TIMEZONE)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown APP_TIMEZONE %r, using %s", name, DEFAULT_TIMEZONE)
        return ZoneInfo(DEFAULT_TIMEZONE)


def today_local() -> date:
    return datetime.now(get_app_timezone()).date()


def week_start(reference: date) -> date:
    """Monday of the week containing ``reference`` (Sunday belongs to the week before)."""
    return reference - timedelta(days=reference.weekday())


def calendar_window(reference: date) -> Tuple[date, date]:
    """First and last day (inclusive) of the three-week window around ``reference``."""
    start = week_start(reference)
    return start, start + timedelta(days=WINDOW_DAYS - 1)


def window_dates(start: date) -> List[date]:
    return [start + timedelta(days=i) for i in range(WINDOW_DAYS)]


def validate_duration(duration: int) -> int:
    if duration not in VALID_DURATIONS:
        raise ValidationFailed(f"Invalid duration. Must be one of {', '.join(str(d) for d in VALID_DURATIONS)}")
    return duration


def time_grid(duration: int) -> List[str]:
    """Column values for one day of the calendar at the given slot length."""
    validate_duration(duration)
    if duration == ALL_DAY_MINUTES:
        return [ALL_DAY]
    return [f"{hour:02d}:{minute:02d}" for hour in range(FIRST_HOUR, LAST_HOUR + 1) for minute in _STEPS[duration]]


def grid_values(duration: int) -> Set[str]:
    """Time parts on a duration's grid; whole days also match '00:00' entries."""
    values = set(time_grid(duration))
    if duration == ALL_DAY_MINUTES:
        values.add("00:00")
    return values


# =============================================================================
# Encodings
# =============================================================================

def key_to_slot(key: str) -> str:
    """Convert ``YYYY-MM-DD_HH:MM`` to the stored ``YYYY-MM-DD HH:MM`` form."""
    date_part, sep, time_part = (key or "").strip().partition("_")
    if not sep or not date_part or not time_part:
        raise ValidationFailed(f"Malformed slot key: {key!r}")
    return f"{date_part} {time_part}"


def split_slot(slot: str) -> Optional[Tuple[str, str]]:
    """Split a stored slot into (date part, time part); None when malformed."""
    parts = slot.split(" ")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def slot_date(slot: str) -> Optional[date]:
    parts = split_slot(slot)
    if parts is None:
        return None
    try:
        return date.fromisoformat(parts[0])
    except ValueError:
        return None


def parse_slots_csv(csv: Optional[str]) -> Set[str]:
    """Read the stored CSV into a set, dropping empty and malformed entries."""
    if not csv:
        return set()
    slots = set()
    for raw in csv.split(","):
        entry = raw.strip()
        if entry and split_slot(entry) is not None:
            slots.add(entry)
    return slots


def serialize_slots(slots: Iterable[str]) -> str:
    return ",".join(sorted(set(slots)))


def _in_window(slot: str, start: date, end: date) -> bool:
    day = slot_date(slot)
    return day is not None and start <= day <= end


def filter_window(slots: Iterable[str], start: date, end: date, duration: int) -> List[str]:
    """Slots whose date lies in [start, end] and whose time is on the duration's grid."""
    grid = grid_values(duration)
    kept = []
    for slot in slots:
        day = slot_date(slot)
        if day is None or day < start or day > end:
            continue
        if split_slot(slot)[1] not in grid:
            continue
        kept.append(slot)
    return sorted(kept)


def slot_to_datetime(slot: str) -> datetime:
    """Aware datetime for a stored slot in APP_TIMEZONE; ``all-day`` maps to midnight."""
    parts = split_slot((slot or "").strip())
    if parts is None:
        raise ValueError(f"Malformed slot: {slot!r}")
    day = date.fromisoformat(parts[0])
    if parts[1] == ALL_DAY:
        clock = time(0, 0)
    else:
        clock = time.fromisoformat(parts[1])
    return datetime.combine(day, clock, tzinfo=get_app_timezone())


# =============================================================================
# Labels
# =============================================================================

def format_time(value: str) -> str:
    """'13:30' -> '1:30pm', '00:15' -> '12:15am', 'all-day' -> 'All Day'."""
    if value == ALL_DAY:
        return "All Day"
    hour_str, _, minute_str = value.partition(":")
    hour = int(hour_str)
    suffix = "am" if hour < 12 else "pm"
    hour12 = hour % 12 or 12
    return f"{hour12}:{minute_str}{suffix}"


def format_date(day: date) -> str:
    """'Mon, Jan 5' style label (no zero padding on the day)."""
    return f"{day.strftime('%a, %b')} {day.day}"


# =============================================================================
# Persistence
# =============================================================================

def _get_obog(db: Session, obog_id: UUID) -> models.User:
    user = db.query(models.User).filter(models.User.id == obog_id).first()
    if user is None or user.role != ROLE_OBOG:
        raise NotFoundError("OB/OG not found")
    return user


def _get_row(db: Session, obog_id: UUID) -> Optional[models.Availability]:
    return db.query(models.Availability).filter(models.Availability.obog_id == obog_id).first()


def get_stored_slots(db: Session, obog_id: UUID) -> Set[str]:
    row = _get_row(db, obog_id)
    return parse_slots_csv(row.times_csv if row else "")


def get_booked_slots(db: Session, obog_id: UUID) -> List[str]:
    rows = (
        db.query(models.Booking.booking_date_time)
        .filter(
            models.Booking.obog_id == obog_id,
            models.Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        .all()
    )
    return sorted({r.booking_date_time.strip() for r in rows})


def _display_name(db: Session, user: models.User) -> str:
    profile = db.query(models.ObogProfile).filter(models.ObogProfile.user_id == user.id).first()
    if profile is not None and profile.nickname:
        return profile.nickname
    return user.name


def get_view(db: Session, obog_id: UUID, *, start: Optional[date] = None, duration: int = 60, viewer_id: Optional[UUID] = None) -> dict:
    """Calendar payload for one OB/OG over the window containing ``start``."""
    obog = _get_obog(db, obog_id)
    validate_duration(duration)
    window_start, window_end = calendar_window(start or today_local())
    selected = filter_window(get_stored_slots(db, obog.id), window_start, window_end, duration)
    booked = [s for s in get_booked_slots(db, obog.id) if _in_window(s, window_start, window_end)]
    return {
        "obog_id": obog.id,
        "obog_name": _display_name(db, obog),
        "window_start": window_start,
        "window_end": window_end,
        "duration": duration,
        "dates": [{"date": d, "label": format_date(d)} for d in window_dates(window_start)],
        "time_slots": [{"value": t, "label": format_time(t)} for t in time_grid(duration)],
        "slots": selected,
        "booked_slots": booked,
        "can_configure": viewer_id is not None and viewer_id == obog.id,
    }


def _validate_keys(
    keys: Iterable[str], window_start: date, window_end: date, duration: int, stored: Set[str]
) -> Set[str]:
    """Stored-form slots for the submitted keys.

    Past-day keys are accepted only when already stored, so a client can send
    back the view it was given; they never change the stored set.
    """
    grid = grid_values(duration)
    today = today_local()
    slots = set()
    for key in keys:
        slot = key_to_slot(key)
        day = slot_date(slot)
        if day is None:
            raise ValidationFailed(f"Malformed slot key: {key!r}")
        if day < window_start or day > window_end:
            raise ValidationFailed(f"Slot {key} is outside the selected calendar window")
        if split_slot(slot)[1] not in grid:
            raise ValidationFailed(f"Slot {key} does not match the {duration}-minute grid")
        if day < today:
            if slot in stored:
                continue
            raise ValidationFailed(f"Cannot change availability for past date {day.isoformat()}")
        slots.add(slot)
    return slots


def _replaced_by_save(slot: str, window_start: date, window_end: date, grid: Set[str], today: date) -> bool:
    day = slot_date(slot)
    if day is None or day < today or day < window_start or day > window_end:
        return False
    return split_slot(slot)[1] in grid


def save_window(db: Session, user: models.User, *, start: Optional[date], duration: int, keys: Iterable[str]) -> dict:
    """Replace the caller's editable slots for one window and duration.

    Only slots that the saved view could show are replaced: in-window, not in
    the past, and on the duration's grid. Everything else is kept as stored.
    """
    if user.role != ROLE_OBOG:
        raise PermissionDeniedError("Only alumni can configure availability.")
    validate_duration(duration)
    window_start, window_end = calendar_window(start or today_local())

    row = _get_row(db, user.id)
    existing = parse_slots_csv(row.times_csv if row else "")
    new_slots = _validate_keys(keys, window_start, window_end, duration, existing)

    grid = grid_values(duration)
    today = today_local()
    kept = {s for s in existing if not _replaced_by_save(s, window_start, window_end, grid, today)}
    merged = serialize_slots(kept | new_slots)
    if row is None:
        row = models.Availability(obog_id=user.id, times_csv=merged)
        db.add(row)
    else:
        row.times_csv = merged
    db.commit()
    logger.info(
        "availability_saved obog=%s window=%s..%s duration=%d slots=%d kept=%d",
        user.id, window_start, window_end, duration, len(new_slots), len(kept),
    )
    return get_view(db, user.id, start=window_start, duration=duration, viewer_id=user.id)


def get_bookable_slots(db: Session, obog_id: UUID) -> dict:
    """Full stored slot list plus the slots already held by active bookings."""
    obog = _get_obog(db, obog_id)
    return {
        "obog_id": obog.id,
        "slots": sorted(get_stored_slots(db, obog.id)),
        "booked_slots": get_booked_slots(db, obog.id),
    }
