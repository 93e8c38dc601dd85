import uuid
import datetime as dt
from typing import Optional, List
from pydantic import BaseModel

class CalendarDate(BaseModel):
    date: dt.date
    label: str

class TimeSlotOption(BaseModel):
    value: str
    label: str

class AvailabilityView(BaseModel):
    obog_id: uuid.UUID
    obog_name: Optional[str] = None
    window_start: dt.date
    window_end: dt.date
    duration: int
    dates: List[CalendarDate]
    time_slots: List[TimeSlotOption]
    # Stored-form slots ('YYYY-MM-DD HH:MM') inside the window
    slots: List[str]
    booked_slots: List[str]
    can_configure: bool = False

class AvailabilityUpdate(BaseModel):
    start: Optional[dt.date] = None
    duration: int = 60
    slots: List[str] = []

class BookableSlots(BaseModel):
    obog_id: uuid.UUID
    # Every stored slot string, regardless of window
    slots: List[str]
    booked_slots: List[str]
