import uuid
from sqlalchemy import Column, String, Text, DateTime, Boolean, Integer, ForeignKey, Index
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc

MEETING_UNCONFIRMED = 'unconfirmed'
MEETING_CONFIRMED = 'confirmed'
MEETING_COMPLETED = 'completed'
MEETING_CANCELLED = 'cancelled'

POST_COMPLETED = 'completed'
POST_NO_SHOW = 'no-show'
DISPLAY_PENDING_OPERATION = 'pending_operation'


def display_status_for(status, student_post_status, obog_post_status):
    """Status shown to users, derived from the lifecycle status and post-meeting reports.

    Only open meetings (unconfirmed/confirmed) are re-derived; terminal
    statuses are shown as stored.
    """
    if status not in (MEETING_CONFIRMED, MEETING_UNCONFIRMED):
        return status
    if student_post_status == POST_COMPLETED and obog_post_status in (None, '', POST_COMPLETED):
        return MEETING_COMPLETED
    if POST_NO_SHOW in (student_post_status, obog_post_status):
        return POST_NO_SHOW
    if not student_post_status and not obog_post_status and status == MEETING_CONFIRMED:
        return DISPLAY_PENDING_OPERATION
    return status


class Meeting(Base):
    __tablename__ = 'meetings'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    thread_id = Column(UUID(as_uuid=True), ForeignKey('threads.id', ondelete='CASCADE'), nullable=False, unique=True)
    student_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    obog_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    meeting_date_time = Column(String(32), nullable=True)
    meeting_url = Column(String(500), nullable=True)
    status = Column(String(20), nullable=False, default=MEETING_UNCONFIRMED)

    student_terms_accepted = Column(Boolean, nullable=False, default=False)
    student_terms_accepted_at = Column(DateTime(timezone=True), nullable=True)
    obog_terms_accepted = Column(Boolean, nullable=False, default=False)
    obog_terms_accepted_at = Column(DateTime(timezone=True), nullable=True)

    student_post_status = Column(String(20), nullable=True)
    student_post_status_at = Column(DateTime(timezone=True), nullable=True)
    obog_post_status = Column(String(20), nullable=True)
    obog_post_status_at = Column(DateTime(timezone=True), nullable=True)

    student_evaluated = Column(Boolean, nullable=False, default=False)
    student_rating = Column(Integer, nullable=True)
    student_evaluation_comment = Column(Text, nullable=True)
    student_evaluated_at = Column(DateTime(timezone=True), nullable=True)
    obog_evaluated = Column(Boolean, nullable=False, default=False)
    obog_rating = Column(Integer, nullable=True)
    obog_evaluation_comment = Column(Text, nullable=True)
    obog_evaluated_at = Column(DateTime(timezone=True), nullable=True)

    student_additional_question_answered = Column(Boolean, nullable=False, default=False)
    student_additional_question_answered_at = Column(DateTime(timezone=True), nullable=True)
    student_offered_opportunity = Column(Boolean, nullable=True)
    student_opportunity_types = Column(JSONB, nullable=False, default=list)
    student_opportunity_other = Column(Text, nullable=True)
    student_evidence_screenshot = Column(String(500), nullable=True)
    student_evidence_description = Column(Text, nullable=True)

    requires_review = Column(Boolean, nullable=False, default=False)
    review_reason = Column(Text, nullable=True)
    admin_reviewed = Column(Boolean, nullable=False, default=False)
    admin_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_meetings_requires_review', 'requires_review'),
        Index('idx_meetings_student_id', 'student_id'),
        Index('idx_meetings_obog_id', 'obog_id'),
    )

    @property
    def display_status(self):
        return display_status_for(self.status, self.student_post_status, self.obog_post_status)

    def role_of(self, user_id):
        """Return 'student', 'obog' or None for the given user id."""
        if user_id == self.student_id:
            return 'student'
        if user_id == self.obog_id:
            return 'obog'
        return None


class MeetingOperationLog(Base):
    __tablename__ = 'meeting_operation_logs'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    meeting_id = Column(UUID(as_uuid=True), ForeignKey('meetings.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    operation_type = Column(String(50), nullable=False)
    old_value = Column(JSONB, nullable=True)
    new_value = Column(JSONB, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_meeting_operation_logs_meeting_id_created_at', 'meeting_id', 'created_at'),
    )
