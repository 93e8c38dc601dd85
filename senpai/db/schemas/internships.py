import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict

from .users import UserPublic


class InternshipCreate(BaseModel):
    title: str = ""
    type: str = ""
    compensation_type: str = ""
    other_compensation: Optional[str] = None
    hourly_wage: Optional[float] = None
    work_details: str = ""
    skills_gained: List[str] = []
    why_this_company: Optional[str] = None
    industry: Optional[str] = None


class InternshipUpdate(BaseModel):
    # Unset fields are left untouched
    title: Optional[str] = None
    hourly_wage: Optional[float] = None
    work_details: Optional[str] = None
    skills_gained: Optional[List[str]] = None
    why_this_company: Optional[str] = None
    industry: Optional[str] = None
    status: Optional[str] = None


class Internship(BaseModel):
    id: uuid.UUID
    company_id: uuid.UUID
    title: str
    type: str
    industry: Optional[str] = None
    compensation_type: str
    other_compensation: Optional[str] = None
    hourly_wage: Optional[float] = None
    work_details: str
    skills_gained: List[str] = []
    why_this_company: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class InternshipListing(Internship):
    company_name: str = "Unknown Company"
    company_logo: Optional[str] = None


class InternshipListResponse(BaseModel):
    internships: List[InternshipListing]


class InternshipEnvelope(BaseModel):
    internship: InternshipListing
    message: Optional[str] = None


class ApplicationAnswer(BaseModel):
    question: str = ""
    answer: str = ""


class ApplicationCreate(BaseModel):
    internship_id: Optional[uuid.UUID] = None
    resume_url: Optional[str] = None
    answers: List[ApplicationAnswer] = []


class ApplicationStatusUpdate(BaseModel):
    status: str = ""


class Application(BaseModel):
    id: uuid.UUID
    internship_id: uuid.UUID
    applicant_id: uuid.UUID
    resume_url: Optional[str] = None
    answers: List[ApplicationAnswer] = []
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ApplicationDetail(Application):
    applicant: Optional[UserPublic] = None
    internship: Optional[Internship] = None


class ApplicationEnvelope(BaseModel):
    application: Application
    message: Optional[str] = None


class ApplicationListResponse(BaseModel):
    applications: List[ApplicationDetail]
