import uuid
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, ConfigDict

from .users import UserPublic, UserPrivate


class CompanyCreate(BaseModel):
    name: str = ""
    logo_url: Optional[str] = None
    industry: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None


class Company(BaseModel):
    id: uuid.UUID
    name: str
    logo_url: Optional[str] = None
    industry: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CompanyWithCount(Company):
    ob_count: int = 0


class CompanyListResponse(BaseModel):
    companies: List[CompanyWithCount]


class CompanyDetail(Company):
    corporate_obs: List[UserPublic] = []


class CorporateOb(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    company_id: uuid.UUID
    is_verified: bool
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class CorporateObLinkRequest(BaseModel):
    user_id: Optional[uuid.UUID] = None
    company_id: Optional[uuid.UUID] = None
    is_verified: bool = True


class CorporateObDetail(BaseModel):
    corporate_ob: CorporateOb
    user: UserPrivate
    company: Company


class CorporateObListResponse(BaseModel):
    corporate_obs: List[CorporateObDetail]
