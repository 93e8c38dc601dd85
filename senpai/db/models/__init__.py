"""
Domain-split SQLAlchemy models.

Exposes `Base`, the timestamp helpers and all ORM classes so callers can
write `from senpai.db import models` and use `models.User`, `models.Booking`.
"""

from .base import Base, now_utc, as_utc  # re-export

from .users import User
from .profiles import StudentProfile, ObogProfile, CompanyProfile
from .tokens import AuthToken
from .availability import Availability
from .messaging import Thread, Message
from .meetings import Meeting, MeetingOperationLog
from .bookings import Booking
from .notifications import UserNotificationPreference, Notification, EmailNotificationLog
from .moderation import Report, Review
from .companies import Company, CorporateOb
from .internships import Internship, Application
from .audit import AuditLog

__all__ = [
    # base
    "Base",
    "now_utc",
    "as_utc",
    # accounts
    "User",
    "StudentProfile",
    "ObogProfile",
    "CompanyProfile",
    "AuthToken",
    # calendar/bookings
    "Availability",
    "Booking",
    "Meeting",
    "MeetingOperationLog",
    # messaging/notifications
    "Thread",
    "Message",
    "UserNotificationPreference",
    "Notification",
    "EmailNotificationLog",
    # moderation
    "Report",
    "Review",
    "AuditLog",
    # companies
    "Company",
    "CorporateOb",
    # listings
    "Internship",
    "Application",
]
