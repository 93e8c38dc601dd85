"""
Company directory and corporate OB link endpoints.
"""
import uuid

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context, require_admin
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import company_service

router = APIRouter(tags=["companies"])


@router.get("/companies", response_model=schemas.CompanyListResponse)
def list_companies(db: Session = Depends(get_db)):
    return {"companies": company_service.list_companies(db)}


@router.get("/companies/{company_id}", response_model=schemas.CompanyDetail)
def get_company(company_id: uuid.UUID, db: Session = Depends(get_db)):
    return company_service.get_company(db, company_id)


@router.post("/companies", response_model=schemas.Company, status_code=status.HTTP_201_CREATED)
def create_company(
    payload: schemas.CompanyCreate,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    admin, _ctx = admin_context
    return company_service.create_company(db, admin, payload)


@router.get("/corporate-ob/me")
def get_my_corporate_ob(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    link = company_service.get_my_link(db, user)
    return {
        "corporate_ob": schemas.CorporateOb.model_validate(link["corporate_ob"]),
        "company": schemas.Company.model_validate(link["company"]),
    }


@router.get("/admin/corporate-ob", response_model=schemas.CorporateObListResponse)
def list_corporate_obs(
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    return {"corporate_obs": company_service.list_links(db)}


@router.post("/admin/corporate-ob", response_model=schemas.CorporateObDetail)
def link_corporate_ob(
    payload: schemas.CorporateObLinkRequest,
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin),
):
    admin, _ctx = admin_context
    detail, created = company_service.link_corporate_ob(db, admin, payload)
    body = schemas.CorporateObDetail.model_validate(detail, from_attributes=True).model_dump(mode="json")
    return JSONResponse(body, status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK)
