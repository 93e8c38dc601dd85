"""
Role profile schemas.

The ``*Fields`` models double as allow-lists: unknown keys are dropped
(pydantic's default ``extra='ignore'``) so signup and profile updates can
accept a loose ``profile`` dict and keep only what the role owns.
"""
import uuid
from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, ConfigDict

from .users import UserPrivate, UserPublic


class StudentProfileFields(BaseModel):
    nickname: Optional[str] = None
    university: Optional[str] = None
    year: Optional[str] = None
    nationality: Optional[str] = None
    jlpt_level: Optional[str] = None
    languages: Optional[List[str]] = None
    interests: Optional[List[str]] = None
    skills: Optional[List[str]] = None
    desired_industry: Optional[str] = None
    profile_completed: Optional[bool] = None


class ObogProfileFields(BaseModel):
    nickname: Optional[str] = None
    type: Optional[str] = None
    university: Optional[str] = None
    company: Optional[str] = None
    nationality: Optional[str] = None
    languages: Optional[List[str]] = None
    topics: Optional[List[str]] = None
    one_line_message: Optional[str] = None
    student_era_summary: Optional[str] = None


class CompanyProfileFields(BaseModel):
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    overview: Optional[str] = None
    work_location: Optional[str] = None
    hourly_wage: Optional[str] = None
    weekly_hours: Optional[str] = None
    selling_points: Optional[str] = None
    ideal_candidate: Optional[str] = None
    internship_details: Optional[str] = None
    new_grad_details: Optional[str] = None
    logo: Optional[str] = None


class StudentProfile(StudentProfileFields):
    user_id: uuid.UUID
    languages: List[str] = []
    interests: List[str] = []
    skills: List[str] = []
    profile_completed: bool = False
    compliance_status: str = "pending"
    model_config = ConfigDict(from_attributes=True)


class ObogProfile(ObogProfileFields):
    user_id: uuid.UUID
    languages: List[str] = []
    topics: List[str] = []
    model_config = ConfigDict(from_attributes=True)


class CompanyProfile(CompanyProfileFields):
    user_id: uuid.UUID
    model_config = ConfigDict(from_attributes=True)


class ProfileUpdateRequest(BaseModel):
    # id, email, password, role, credits... are not declared and so ignored
    name: Optional[str] = None
    profile_photo: Optional[str] = None
    profile: Optional[Dict[str, Any]] = None


class ProfileResponse(BaseModel):
    user: UserPrivate
    profile: Optional[Dict[str, Any]] = None
    message: Optional[str] = None


class PublicProfileResponse(BaseModel):
    user: UserPublic
    profile: Optional[Dict[str, Any]] = None


class DirectoryEntry(BaseModel):
    user: UserPublic
    profile: Optional[Dict[str, Any]] = None


class DirectoryResponse(BaseModel):
    users: List[DirectoryEntry]


class StudentListEntry(BaseModel):
    id: uuid.UUID
    name: str
    profile_photo: Optional[str] = None
    profile: Dict[str, Any]


class StudentListResponse(BaseModel):
    students: List[StudentListEntry]


class AccountDeletedResponse(BaseModel):
    message: str
    deleted_at: Optional[datetime] = None
