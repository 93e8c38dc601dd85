import uuid
from sqlalchemy import Column, String, Text, DateTime, Float, ForeignKey, Index, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc

LISTING_TYPES = ('internship', 'new-grad')
LISTING_PUBLIC = 'public'
LISTING_STOPPED = 'stopped'
LISTING_STATUSES = (LISTING_PUBLIC, LISTING_STOPPED)

# Stored compensation kinds; 'monthly' and 'project' requests map onto these
COMPENSATION_TYPES = ('hourly', 'fixed', 'other')

APPLICATION_PENDING = 'pending'
APPLICATION_ACCEPTED = 'accepted'
APPLICATION_REJECTED = 'rejected'
APPLICATION_STATUSES = (APPLICATION_PENDING, APPLICATION_ACCEPTED, APPLICATION_REJECTED)


class Internship(Base):
    __tablename__ = 'internships'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    company_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    title = Column(String(200), nullable=False)
    type = Column(String(20), nullable=False, default='internship')
    industry = Column(String(200), nullable=True)
    compensation_type = Column(String(20), nullable=False, default='hourly')
    other_compensation = Column(Text, nullable=True)
    hourly_wage = Column(Float, nullable=True)
    work_details = Column(Text, nullable=False)
    skills_gained = Column(JSONB, nullable=False, default=list)
    why_this_company = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=LISTING_PUBLIC)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_internships_company_id', 'company_id'),
        Index('idx_internships_status_type', 'status', 'type'),
    )


class Application(Base):
    __tablename__ = 'applications'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    internship_id = Column(UUID(as_uuid=True), ForeignKey('internships.id', ondelete='CASCADE'), nullable=False)
    applicant_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    resume_url = Column(String(500), nullable=True)
    # list of {"question": ..., "answer": ...}
    answers = Column(JSONB, nullable=False, default=list)
    status = Column(String(20), nullable=False, default=APPLICATION_PENDING)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('internship_id', 'applicant_id', name='uq_applications_internship_applicant'),
        Index('idx_applications_applicant_id', 'applicant_id'),
    )
