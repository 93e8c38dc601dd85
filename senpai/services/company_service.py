"""Company directory and corporate OB links."""

import logging
import uuid
from typing import Any, Dict, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from senpai import audit
from senpai.audit import AuditAction
from senpai.db import models, schemas
from senpai.db.models.users import ROLE_CORPORATE_OB
from senpai.db.repositories import users as user_repo
from senpai.errors import NotFoundError, PermissionDeniedError, ValidationFailed

logger = logging.getLogger(__name__)


def list_companies(db: Session) -> List[Dict[str, Any]]:
    counts = dict(
        db.query(models.CorporateOb.company_id, func.count(models.CorporateOb.id))
        .group_by(models.CorporateOb.company_id)
        .all()
    )
    companies = []
    for company in db.query(models.Company).all():
        entry = schemas.Company.model_validate(company).model_dump()
        entry["ob_count"] = counts.get(company.id, 0)
        companies.append(entry)
    companies.sort(key=lambda c: (-c["ob_count"], c["name"].lower()))
    return companies


def _get_company(db: Session, company_id: uuid.UUID) -> models.Company:
    company = db.query(models.Company).filter(models.Company.id == company_id).first()
    if company is None:
        raise NotFoundError("Company not found")
    return company


def get_company(db: Session, company_id: uuid.UUID) -> Dict[str, Any]:
    company = _get_company(db, company_id)
    links = db.query(models.CorporateOb).filter(models.CorporateOb.company_id == company.id).all()
    users = user_repo.get_users_by_ids(db, [link.user_id for link in links])
    entry = schemas.Company.model_validate(company).model_dump()
    entry["corporate_obs"] = [users[link.user_id] for link in links if link.user_id in users]
    return entry


def create_company(db: Session, admin: models.User, payload: schemas.CompanyCreate) -> models.Company:
    name = (payload.name or "").strip()
    if not name:
        raise ValidationFailed("Company name is required")
    company = models.Company(
        name=name,
        logo_url=payload.logo_url,
        industry=payload.industry,
        description=payload.description,
        website=payload.website,
    )
    db.add(company)
    db.commit()
    db.refresh(company)
    audit.safe_log(
        db,
        action=AuditAction.COMPANY_CREATE,
        target_type="company",
        target_id=company.id,
        actor_user_id=admin.id,
        metadata={"name": company.name},
    )
    logger.info("company_created company=%s admin=%s", company.id, admin.id)
    return company


def get_my_link(db: Session, user: models.User) -> Dict[str, Any]:
    if user.role != ROLE_CORPORATE_OB:
        raise PermissionDeniedError("Only corporate OB accounts have a company link")
    link = db.query(models.CorporateOb).filter(models.CorporateOb.user_id == user.id).first()
    if link is None:
        raise NotFoundError("Corporate OB link not found")
    return {"corporate_ob": link, "company": _get_company(db, link.company_id)}


def list_links(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(models.CorporateOb, models.User, models.Company)
        .join(models.User, models.User.id == models.CorporateOb.user_id)
        .join(models.Company, models.Company.id == models.CorporateOb.company_id)
        .order_by(models.CorporateOb.created_at.desc())
        .all()
    )
    return [{"corporate_ob": link, "user": user, "company": company} for link, user, company in rows]


def link_corporate_ob(db: Session, admin: models.User, payload: schemas.CorporateObLinkRequest) -> Tuple[Dict[str, Any], bool]:
    """Upsert a user's company link and promote them to corporate_ob. Returns (detail, created)."""
    if payload.user_id is None or payload.company_id is None:
        raise ValidationFailed("user_id and company_id are required")
    user = user_repo.get_user(db, payload.user_id)
    if user is None:
        raise NotFoundError("User not found")
    company = _get_company(db, payload.company_id)

    link = db.query(models.CorporateOb).filter(models.CorporateOb.user_id == user.id).first()
    created = link is None
    if created:
        link = models.CorporateOb(user_id=user.id, company_id=company.id, is_verified=True)
        db.add(link)
    else:
        link.company_id = company.id
        link.is_verified = True
    previous_role = user.role
    user.role = ROLE_CORPORATE_OB
    db.commit()
    db.refresh(link)
    db.refresh(user)
    audit.safe_log(
        db,
        action=AuditAction.CORPORATE_OB_LINK,
        target_type="user",
        target_id=user.id,
        actor_user_id=admin.id,
        metadata={"company_id": str(company.id), "previous_role": previous_role, "created": created},
    )
    logger.info("corporate_ob_linked user=%s company=%s created=%s", user.id, company.id, created)
    return {"corporate_ob": link, "user": user, "company": company}, created
