"""
Domain-split Pydantic schemas with an aggregator.

Routers use `from senpai.db import schemas` and refer to
`schemas.Booking`, `schemas.Meeting` and so on.
"""

# Import order: define base/simple types first to satisfy forward refs
from .users import (
    UserPublic,
    UserPrivate,
    SignupRequest,
    SignupResponse,
    LoginRequest,
    LoginResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
)
from .profiles import (
    StudentProfileFields,
    ObogProfileFields,
    CompanyProfileFields,
    StudentProfile,
    ObogProfile,
    CompanyProfile,
    ProfileUpdateRequest,
    ProfileResponse,
    PublicProfileResponse,
    DirectoryEntry,
    DirectoryResponse,
    StudentListEntry,
    StudentListResponse,
    AccountDeletedResponse,
)
from .availability import (
    CalendarDate,
    TimeSlotOption,
    AvailabilityView,
    AvailabilityUpdate,
    BookableSlots,
)
from .meetings import (
    Meeting,
    MeetingEnvelope,
    MeetingUpsert,
    AdditionalQuestion,
    MeetingAction,
    MeetingOperationLog,
    MeetingLogsResponse,
    FlaggedMeeting,
    FlaggedMeetingsResponse,
    MeetingReviewRequest,
)
from .bookings import (
    BookingCreate,
    BookingAction,
    Booking,
    BookingCreated,
    BookingEnvelope,
    BookingListResponse,
    DashboardBooking,
    ObogDashboard,
)
from .messages import (
    MessageCreate,
    Message,
    MessageSent,
    ThreadSummary,
    ThreadListResponse,
    ThreadMessagesResponse,
    MarkReadResponse,
)
from .notifications import (
    UserNotificationPreferenceUpdate,
    UserNotificationPreference,
    Notification,
    EmailNotificationLog,
    NotificationListResponse,
    NotificationPreferencesResponse,
    NotificationStatsResponse,
)
from .moderation import (
    ReportCreate,
    Report,
    ReportDetail,
    ReportListResponse,
    ReportUpdate,
    ReviewCreate,
    Review,
    ReviewSummary,
)
from .compliance import (
    ComplianceSubmit,
    ComplianceStatus,
    ComplianceRecord,
    ComplianceListResponse,
    ComplianceReview,
)
from .companies import (
    CompanyCreate,
    Company,
    CompanyWithCount,
    CompanyListResponse,
    CompanyDetail,
    CorporateOb,
    CorporateObLinkRequest,
    CorporateObDetail,
    CorporateObListResponse,
)
from .internships import (
    InternshipCreate,
    InternshipUpdate,
    Internship,
    InternshipListing,
    InternshipListResponse,
    InternshipEnvelope,
    ApplicationAnswer,
    ApplicationCreate,
    ApplicationStatusUpdate,
    Application,
    ApplicationDetail,
    ApplicationEnvelope,
    ApplicationListResponse,
)
from .admin import (
    StrikeRequest,
    BanRequest,
    CreditGrantRequest,
    AdminUserListResponse,
    StrikeResponse,
    AdminUserResponse,
)
from .audits import AuditLogBase, AuditLogCreate, AuditLog
