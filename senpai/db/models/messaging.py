import uuid
from sqlalchemy import Column, Text, DateTime, ForeignKey, Index, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID, JSONB
from .base import Base, now_utc


class Thread(Base):
    __tablename__ = 'threads'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Participants are stored sorted by their string form
    participant_one_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    participant_two_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        UniqueConstraint('participant_one_id', 'participant_two_id', name='uq_threads_participants'),
        CheckConstraint('participant_one_id <> participant_two_id', name='ck_threads_distinct_participants'),
        Index('idx_threads_participant_two', 'participant_two_id'),
    )

    @property
    def participant_ids(self):
        return [self.participant_one_id, self.participant_two_id]

    def has_participant(self, user_id) -> bool:
        return user_id in (self.participant_one_id, self.participant_two_id)

    def other_participant(self, user_id):
        return self.participant_two_id if user_id == self.participant_one_id else self.participant_one_id


class Message(Base):
    __tablename__ = 'messages'

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    thread_id = Column(UUID(as_uuid=True), ForeignKey('threads.id', ondelete='CASCADE'), nullable=False)
    sender_id = Column(UUID(as_uuid=True), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    content = Column(Text, nullable=False)
    # list of user id strings that have read the message
    read_by = Column(JSONB, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=now_utc, nullable=False)

    __table_args__ = (
        Index('idx_messages_thread_id_created_at', 'thread_id', 'created_at'),
    )
