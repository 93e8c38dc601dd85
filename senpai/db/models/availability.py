import uuid
from sqlalchemy import Column, Text, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc


class Availability(Base):
    """OB/OG declared slots, stored as a comma-joined list of 'YYYY-MM-DD HH:MM'."""

    __tablename__ = 'availability'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    obog_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, unique=True)
    times_csv = Column(Text, nullable=False, default='')
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, onupdate=now_utc, nullable=False)
