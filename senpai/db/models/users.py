import uuid
from sqlalchemy import Column, String, DateTime, Boolean, Integer, Index
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc

# Role values: 'student'|'obog'|'company'|'admin'|'corporate_ob'
ROLE_STUDENT = 'student'
ROLE_OBOG = 'obog'
ROLE_COMPANY = 'company'
ROLE_ADMIN = 'admin'
ROLE_CORPORATE_OB = 'corporate_ob'

SIGNUP_ROLES = (ROLE_STUDENT, ROLE_OBOG, ROLE_COMPANY)
ALL_ROLES = (ROLE_STUDENT, ROLE_OBOG, ROLE_COMPANY, ROLE_ADMIN, ROLE_CORPORATE_OB)


class User(Base):
    __tablename__ = 'users'
    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String(320), nullable=False, unique=True, index=True)
    password_hash = Column(String, nullable=False)
    name = Column(String(200), nullable=False)
    role = Column(String(20), nullable=False)
    profile_photo = Column(String(500), nullable=True)
    credits = Column(Integer, nullable=False, default=0)
    strikes = Column(Integer, nullable=False, default=0)
    is_banned = Column(Boolean, nullable=False, default=False)
    banned_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=now_utc)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    __table_args__ = (
        Index('ix_users_role', 'role'),
    )
