import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict


class ComplianceSubmit(BaseModel):
    compliance_agreed: bool = False
    compliance_documents: List[str] = []


class ComplianceStatus(BaseModel):
    user_id: uuid.UUID
    compliance_agreed: bool = False
    compliance_agreed_at: Optional[datetime] = None
    compliance_documents: List[str] = []
    compliance_status: str = "pending"
    compliance_submitted_at: Optional[datetime] = None
    compliance_reviewed_at: Optional[datetime] = None
    compliance_reviewed_by: Optional[uuid.UUID] = None
    model_config = ConfigDict(from_attributes=True)


class ComplianceRecord(ComplianceStatus):
    name: Optional[str] = None
    email: Optional[str] = None
    university: Optional[str] = None


class ComplianceListResponse(BaseModel):
    submissions: List[ComplianceRecord]


class ComplianceReview(BaseModel):
    user_id: Optional[uuid.UUID] = None
    status: Optional[str] = None
