import uuid
from datetime import datetime
from typing import Optional, Dict, Any, List
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class UserNotificationPreferenceUpdate(BaseModel):
    email_enabled: Optional[bool] = None
    in_app_enabled: Optional[bool] = None


class UserNotificationPreference(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    event_type: str
    email_enabled: bool = True
    in_app_enabled: bool = True
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class Notification(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    event_type: str
    title: str
    message: str
    action_url: Optional[str] = None
    # ORM attribute is metadata_json; plain dicts may still say "metadata"
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("metadata_json", "metadata")
    )
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime
    expires_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class EmailNotificationLog(BaseModel):
    id: uuid.UUID
    notification_id: Optional[uuid.UUID] = None
    user_id: uuid.UUID
    email_address: str
    event_type: str
    subject: str
    status: str = 'pending'
    provider_message_id: Optional[str] = None
    error_message: Optional[str] = None
    sent_at: Optional[datetime] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    notifications: List[Notification]
    unread_count: int
    total_count: int


class NotificationPreferencesResponse(BaseModel):
    preferences: Dict[str, Dict[str, bool]]


class NotificationStatsResponse(BaseModel):
    unread_count: int
    total_notifications: int
    recent_notifications: List[Notification]
