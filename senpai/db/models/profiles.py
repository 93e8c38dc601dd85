from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class StudentProfile(Base):
    __tablename__ = 'student_profiles'

    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    nickname = Column(String(100), nullable=True)
    university = Column(String(200), nullable=True)
    year = Column(String(50), nullable=True)
    nationality = Column(String(100), nullable=True)
    jlpt_level = Column(String(20), nullable=True)
    languages = Column(JSONB, nullable=False, default=list)
    interests = Column(JSONB, nullable=False, default=list)
    skills = Column(JSONB, nullable=False, default=list)
    desired_industry = Column(String(200), nullable=True)
    profile_completed = Column(Boolean, nullable=False, default=False)

    # Compliance workflow: 'pending'|'submitted'|'approved'|'rejected'
    compliance_agreed = Column(Boolean, nullable=False, default=False)
    compliance_agreed_at = Column(DateTime(timezone=True), nullable=True)
    compliance_documents = Column(JSONB, nullable=False, default=list)
    compliance_status = Column(String(20), nullable=False, default='pending')
    compliance_submitted_at = Column(DateTime(timezone=True), nullable=True)
    compliance_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    compliance_reviewed_by = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)


class ObogProfile(Base):
    __tablename__ = 'obog_profiles'

    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    nickname = Column(String(100), nullable=True)
    # 'working-professional'|'job-offer-holder'
    type = Column(String(50), nullable=False, default='working-professional')
    university = Column(String(200), nullable=True)
    company = Column(String(200), nullable=True)
    nationality = Column(String(100), nullable=True)
    languages = Column(JSONB, nullable=False, default=list)
    topics = Column(JSONB, nullable=False, default=list)
    one_line_message = Column(String(300), nullable=True)
    student_era_summary = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)


class CompanyProfile(Base):
    __tablename__ = 'company_profiles'

    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    company_name = Column(String(200), nullable=True)
    contact_name = Column(String(200), nullable=True)
    overview = Column(Text, nullable=True)
    work_location = Column(String(200), nullable=True)
    hourly_wage = Column(String(100), nullable=True)
    weekly_hours = Column(String(100), nullable=True)
    selling_points = Column(Text, nullable=True)
    ideal_candidate = Column(Text, nullable=True)
    internship_details = Column(Text, nullable=True)
    new_grad_details = Column(Text, nullable=True)
    logo = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)
