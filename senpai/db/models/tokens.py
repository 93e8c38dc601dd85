import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Index
from sqlalchemy.dialects.postgresql import UUID
from .base import Base, now_utc

PURPOSE_SESSION = 'session'
PURPOSE_PASSWORD_RESET = 'password_reset'


class AuthToken(Base):
    __tablename__ = 'auth_tokens'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)

    # Token identity and secret hash (never store raw secret)
    token_id = Column(String(64), nullable=False, unique=True)
    token_hash = Column(Text, nullable=False)

    purpose = Column(String(20), nullable=False, default=PURPOSE_SESSION)
    status = Column(String(20), nullable=False, default='active')  # active|revoked|used

    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    revoked_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index('idx_auth_tokens_user_purpose', 'user_id', 'purpose'),
        Index('idx_auth_tokens_status', 'status'),
    )
