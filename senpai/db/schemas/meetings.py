import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict

from .users import UserPublic


class Meeting(BaseModel):
    id: uuid.UUID
    thread_id: uuid.UUID
    student_id: uuid.UUID
    obog_id: uuid.UUID
    meeting_date_time: Optional[str] = None
    meeting_url: Optional[str] = None
    status: str
    display_status: str

    student_terms_accepted: bool = False
    student_terms_accepted_at: Optional[datetime] = None
    obog_terms_accepted: bool = False
    obog_terms_accepted_at: Optional[datetime] = None

    student_post_status: Optional[str] = None
    student_post_status_at: Optional[datetime] = None
    obog_post_status: Optional[str] = None
    obog_post_status_at: Optional[datetime] = None

    student_evaluated: bool = False
    student_rating: Optional[int] = None
    student_evaluation_comment: Optional[str] = None
    student_evaluated_at: Optional[datetime] = None
    obog_evaluated: bool = False
    obog_rating: Optional[int] = None
    obog_evaluation_comment: Optional[str] = None
    obog_evaluated_at: Optional[datetime] = None

    student_additional_question_answered: bool = False
    student_additional_question_answered_at: Optional[datetime] = None
    student_offered_opportunity: Optional[bool] = None
    student_opportunity_types: List[str] = []
    student_opportunity_other: Optional[str] = None
    student_evidence_screenshot: Optional[str] = None
    student_evidence_description: Optional[str] = None

    requires_review: bool = False
    review_reason: Optional[str] = None
    admin_reviewed: bool = False
    admin_reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None

    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class MeetingEnvelope(BaseModel):
    meeting: Optional[Meeting] = None


class MeetingUpsert(BaseModel):
    meeting_date_time: Optional[str] = None
    meeting_url: Optional[str] = None


class AdditionalQuestion(BaseModel):
    offered: Optional[bool] = None
    types: List[str] = []
    other: Optional[str] = None
    evidence_screenshot: Optional[str] = None
    evidence_description: Optional[str] = None


class MeetingAction(BaseModel):
    action: str = ""
    rating: Optional[int] = None
    comment: Optional[str] = None
    additional_question: Optional[AdditionalQuestion] = None


class MeetingOperationLog(BaseModel):
    id: uuid.UUID
    meeting_id: uuid.UUID
    user_id: Optional[uuid.UUID] = None
    operation_type: str
    old_value: Optional[Dict[str, Any]] = None
    new_value: Optional[Dict[str, Any]] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class MeetingLogsResponse(BaseModel):
    logs: List[MeetingOperationLog]


class FlaggedMeeting(Meeting):
    student: Optional[UserPublic] = None
    obog: Optional[UserPublic] = None


class FlaggedMeetingsResponse(BaseModel):
    meetings: List[FlaggedMeeting]


class MeetingReviewRequest(BaseModel):
    admin_notes: Optional[str] = None
