import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict

from .users import UserPublic


class MessageCreate(BaseModel):
    content: str = ""
    thread_id: Optional[uuid.UUID] = None
    to_user_id: Optional[uuid.UUID] = None


class Message(BaseModel):
    id: uuid.UUID
    thread_id: uuid.UUID
    sender_id: uuid.UUID
    content: str
    read_by: List[str] = []
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class MessageSent(BaseModel):
    message: Message
    thread_id: uuid.UUID
    remaining_credits: int


class ThreadSummary(BaseModel):
    id: uuid.UUID
    participants: List[uuid.UUID]
    other_user: Optional[UserPublic] = None
    last_message: Optional[Message] = None
    unread_count: int = 0
    created_at: datetime
    updated_at: datetime


class ThreadListResponse(BaseModel):
    threads: List[ThreadSummary]


class ThreadMessagesResponse(BaseModel):
    thread_id: uuid.UUID
    messages: List[Message]
    admin_view: bool = False
    participants: Optional[List[UserPublic]] = None


class MarkReadResponse(BaseModel):
    updated: int
