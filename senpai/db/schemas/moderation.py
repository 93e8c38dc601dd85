import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict

from .users import UserPublic


class ReportCreate(BaseModel):
    # A user id, or the literal "PLATFORM" for feedback about the service
    reported_user_id: Optional[str] = None
    reason: str = ""
    description: str = ""
    report_type: Optional[str] = None


class Report(BaseModel):
    id: uuid.UUID
    reporter_id: uuid.UUID
    reported_user_id: Optional[uuid.UUID] = None
    report_type: str
    reason: str
    description: str
    status: str
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    model_config = ConfigDict(from_attributes=True)


class ReportDetail(Report):
    reporter: Optional[UserPublic] = None
    reported_user: Optional[UserPublic] = None


class ReportListResponse(BaseModel):
    reports: List[ReportDetail]


class ReportUpdate(BaseModel):
    status: Optional[str] = None
    admin_notes: Optional[str] = None


class ReviewCreate(BaseModel):
    reviewee_id: Optional[uuid.UUID] = None
    rating: Optional[int] = None
    comment: Optional[str] = None


class Review(BaseModel):
    id: uuid.UUID
    reviewer_id: uuid.UUID
    reviewee_id: uuid.UUID
    rating: int
    comment: Optional[str] = None
    created_at: datetime
    reviewer: Optional[UserPublic] = None
    model_config = ConfigDict(from_attributes=True)


class ReviewSummary(BaseModel):
    reviews: List[Review]
    average_rating: float
    total_reviews: int
