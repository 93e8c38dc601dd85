"""
Company internship and new-grad listings, and student applications to them.

Stopped listings stay visible to their owning company (and admins) but are
hidden from everyone else and stop accepting applications.
"""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from senpai.db import models, schemas
from senpai.db.models.internships import (
    APPLICATION_PENDING,
    APPLICATION_STATUSES,
    LISTING_PUBLIC,
    LISTING_STATUSES,
    LISTING_STOPPED,
    LISTING_TYPES,
)
from senpai.db.models.users import ROLE_COMPANY, ROLE_STUDENT
from senpai.db.repositories import users as user_repo
from senpai.errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationFailed
from senpai.services.notification_service import (
    APPLICATION_NOTIFICATIONS,
    CATEGORY_APPLICATION,
    CATEGORY_INTERNSHIP,
    NotificationService,
)
from senpai.utils.urls import internship_applications_path, internship_path

logger = logging.getLogger(__name__)

UNKNOWN_COMPANY = "Unknown Company"

# Requested compensation kind -> stored kind
COMPENSATION_ALIASES = {
    'hourly': 'hourly',
    'monthly': 'fixed',
    'fixed': 'fixed',
    'project': 'other',
    'other': 'other',
}


# =============================================================================
# Listings
# =============================================================================

def _company_cards(db: Session, company_ids) -> Dict[uuid.UUID, Dict[str, Optional[str]]]:
    ids = [i for i in set(company_ids) if i is not None]
    if not ids:
        return {}
    rows = db.query(models.CompanyProfile).filter(models.CompanyProfile.user_id.in_(ids)).all()
    return {p.user_id: {"company_name": p.company_name or UNKNOWN_COMPANY, "company_logo": p.logo} for p in rows}


def _as_listing(internship: models.Internship, cards: Dict[uuid.UUID, Dict[str, Optional[str]]]) -> Dict[str, Any]:
    entry = schemas.Internship.model_validate(internship).model_dump()
    entry.update(cards.get(internship.company_id, {"company_name": UNKNOWN_COMPANY, "company_logo": None}))
    return entry


def _get_internship(db: Session, internship_id: uuid.UUID) -> models.Internship:
    internship = db.query(models.Internship).filter(models.Internship.id == internship_id).first()
    if internship is None:
        raise NotFoundError("Internship listing not found")
    return internship


def _require_owner(internship: models.Internship, user: models.User, verb: str) -> None:
    if internship.company_id != user.id:
        raise PermissionDeniedError(f"You can only {verb} your own listings")


def list_internships(db: Session, viewer: Optional[models.User], listing_type: Optional[str] = None) -> List[Dict[str, Any]]:
    """Public listings, newest first; a company also sees its own stopped listings."""
    query = db.query(models.Internship)
    if listing_type:
        if listing_type not in LISTING_TYPES:
            raise ValidationFailed(f"Invalid type. Must be one of: {', '.join(LISTING_TYPES)}")
        query = query.filter(models.Internship.type == listing_type)
    internships = query.order_by(models.Internship.created_at.desc()).all()
    owner_id = viewer.id if viewer is not None and viewer.role == ROLE_COMPANY else None
    visible = [i for i in internships if i.status == LISTING_PUBLIC or i.company_id == owner_id]
    cards = _company_cards(db, [i.company_id for i in visible])
    return [_as_listing(i, cards) for i in visible]


def get_internship(db: Session, internship_id: uuid.UUID, viewer: Optional[models.User], is_admin: bool = False) -> Dict[str, Any]:
    internship = _get_internship(db, internship_id)
    is_owner = viewer is not None and internship.company_id == viewer.id
    if internship.status == LISTING_STOPPED and not (is_owner or is_admin):
        raise NotFoundError("Internship listing not found")
    return _as_listing(internship, _company_cards(db, [internship.company_id]))


def _industry_matches(listing_industry: Optional[str], desired: Optional[str]) -> bool:
    if not listing_industry or not desired:
        return True
    return listing_industry.strip().lower() in desired.lower()


def announce_listing(
    db: Session,
    internship: models.Internship,
    company_name: str,
    notifier: Optional[NotificationService] = None,
) -> int:
    """Tell students whose desired industry fits (or is unset) about a new listing."""
    notifier = notifier or NotificationService(db)
    rows = (
        db.query(models.User, models.StudentProfile.desired_industry)
        .outerjoin(models.StudentProfile, models.StudentProfile.user_id == models.User.id)
        .filter(models.User.role == ROLE_STUDENT, models.User.is_banned.is_(False))
        .all()
    )
    sent = 0
    for student, desired in rows:
        if not _industry_matches(internship.industry, desired):
            continue
        notifier.notify(
            student,
            CATEGORY_INTERNSHIP,
            f"New Internship: {internship.title}",
            f"{company_name} has posted a new internship: {internship.title}",
            action_url=internship_path(internship.id),
            metadata={"internship_id": str(internship.id)},
        )
        sent += 1
    return sent


def create_internship(
    db: Session,
    company: models.User,
    payload: schemas.InternshipCreate,
    notifier: Optional[NotificationService] = None,
) -> Dict[str, Any]:
    if company.role != ROLE_COMPANY:
        raise PermissionDeniedError("Only companies can post listings")
    title = payload.title.strip()
    listing_type = payload.type.strip()
    requested_comp = payload.compensation_type.strip().lower()
    work_details = payload.work_details.strip()
    if not (title and listing_type and requested_comp and work_details):
        raise ValidationFailed(
            "Missing required fields: title, compensation_type, work_details and type are required"
        )
    if listing_type not in LISTING_TYPES:
        raise ValidationFailed(f"Invalid type. Must be one of: {', '.join(LISTING_TYPES)}")
    compensation_type = COMPENSATION_ALIASES.get(requested_comp)
    if compensation_type is None:
        raise ValidationFailed("Invalid compensation_type. Must be one of: hourly, monthly, project, other")
    other_compensation = (payload.other_compensation or "").strip() or None
    if requested_comp == 'other' and not other_compensation:
        raise ValidationFailed("Compensation description is required for other compensation type")

    internship = models.Internship(
        company_id=company.id,
        title=title,
        type=listing_type,
        industry=(payload.industry or "").strip() or None,
        compensation_type=compensation_type,
        other_compensation=other_compensation,
        hourly_wage=payload.hourly_wage,
        work_details=work_details,
        skills_gained=[s.strip() for s in payload.skills_gained if s and s.strip()],
        why_this_company=payload.why_this_company or "",
        status=LISTING_PUBLIC,
    )
    db.add(internship)
    db.commit()
    db.refresh(internship)
    logger.info("internship_created internship=%s company=%s type=%s", internship.id, company.id, listing_type)

    listing = _as_listing(internship, _company_cards(db, [company.id]))
    notified = announce_listing(db, internship, listing["company_name"], notifier)
    logger.info("internship_announced internship=%s students=%d", internship.id, notified)
    return listing


def update_internship(db: Session, user: models.User, internship_id: uuid.UUID, payload: schemas.InternshipUpdate) -> Dict[str, Any]:
    internship = _get_internship(db, internship_id)
    _require_owner(internship, user, "edit")
    changes = payload.model_dump(exclude_unset=True)
    if "title" in changes and not (changes["title"] or "").strip():
        raise ValidationFailed("Title cannot be empty")
    if "work_details" in changes and not (changes["work_details"] or "").strip():
        raise ValidationFailed("Work details cannot be empty")
    if "status" in changes and changes["status"] not in LISTING_STATUSES:
        raise ValidationFailed(f"Invalid status. Must be one of: {', '.join(LISTING_STATUSES)}")
    for field, value in changes.items():
        if isinstance(value, str):
            value = value.strip()
        if field == "skills_gained":
            value = [s.strip() for s in (value or []) if s and s.strip()]
        setattr(internship, field, value)
    db.commit()
    db.refresh(internship)
    logger.info("internship_updated internship=%s fields=%s", internship.id, sorted(changes))
    return _as_listing(internship, _company_cards(db, [internship.company_id]))


def delete_internship(db: Session, user: models.User, internship_id: uuid.UUID) -> None:
    internship = _get_internship(db, internship_id)
    _require_owner(internship, user, "delete")
    removed = (
        db.query(models.Application)
        .filter(models.Application.internship_id == internship.id)
        .delete(synchronize_session=False)
    )
    db.delete(internship)
    db.commit()
    logger.info("internship_deleted internship=%s applications=%d", internship_id, removed)


# =============================================================================
# Applications
# =============================================================================

def apply(
    db: Session,
    student: models.User,
    payload: schemas.ApplicationCreate,
    notifier: Optional[NotificationService] = None,
) -> models.Application:
    if student.role != ROLE_STUDENT:
        raise PermissionDeniedError("Only students can apply to listings")
    if payload.internship_id is None:
        raise ValidationFailed("Missing internship_id")
    internship = db.query(models.Internship).filter(models.Internship.id == payload.internship_id).first()
    if internship is None:
        raise NotFoundError("Listing not found")
    if internship.status != LISTING_PUBLIC:
        raise ValidationFailed("This listing is no longer accepting applications")
    existing = (
        db.query(models.Application)
        .filter(models.Application.internship_id == internship.id, models.Application.applicant_id == student.id)
        .first()
    )
    if existing is not None:
        raise ConflictError("You have already applied to this listing")

    application = models.Application(
        internship_id=internship.id,
        applicant_id=student.id,
        resume_url=payload.resume_url,
        answers=[a.model_dump() for a in payload.answers],
        status=APPLICATION_PENDING,
    )
    db.add(application)
    db.commit()
    db.refresh(application)
    logger.info("application_created application=%s internship=%s student=%s", application.id, internship.id, student.id)

    notifier = notifier or NotificationService(db)
    notifier.notify_user_id(
        internship.company_id,
        CATEGORY_APPLICATION,
        "New Application",
        f'{student.name} applied to "{internship.title}"',
        action_url=internship_applications_path(internship.id),
        metadata={"application_id": str(application.id), "internship_id": str(internship.id)},
    )
    _notify_applicant(notifier, application, internship)
    return application


def _notify_applicant(notifier: NotificationService, application: models.Application, internship: models.Internship) -> None:
    title, template = APPLICATION_NOTIFICATIONS[application.status]
    notifier.notify_user_id(
        application.applicant_id,
        CATEGORY_APPLICATION,
        title,
        template.format(title=internship.title),
        action_url=internship_path(internship.id),
        metadata={"application_id": str(application.id), "status": application.status},
    )


def list_applications(db: Session, user: models.User, internship_id: Optional[uuid.UUID] = None) -> List[Dict[str, Any]]:
    """Applications to one of the caller's listings, or the caller's own applications."""
    if internship_id is not None:
        internship = _get_internship(db, internship_id)
        if user.role != ROLE_COMPANY or internship.company_id != user.id:
            raise PermissionDeniedError("You can only view applications for your own listings")
        applications = (
            db.query(models.Application)
            .filter(models.Application.internship_id == internship.id)
            .order_by(models.Application.created_at.asc())
            .all()
        )
        applicants = user_repo.get_users_by_ids(db, [a.applicant_id for a in applications])
        return [
            {**schemas.Application.model_validate(a).model_dump(), "applicant": applicants.get(a.applicant_id)}
            for a in applications
        ]

    applications = (
        db.query(models.Application)
        .filter(models.Application.applicant_id == user.id)
        .order_by(models.Application.created_at.desc())
        .all()
    )
    listing_ids = {a.internship_id for a in applications}
    listings = {}
    if listing_ids:
        listings = {i.id: i for i in db.query(models.Internship).filter(models.Internship.id.in_(listing_ids)).all()}
    return [
        {**schemas.Application.model_validate(a).model_dump(), "internship": listings.get(a.internship_id)}
        for a in applications
    ]


def update_application_status(
    db: Session,
    user: models.User,
    application_id: uuid.UUID,
    payload: schemas.ApplicationStatusUpdate,
    notifier: Optional[NotificationService] = None,
) -> models.Application:
    application = db.query(models.Application).filter(models.Application.id == application_id).first()
    if application is None:
        raise NotFoundError("Application not found")
    internship = _get_internship(db, application.internship_id)
    if internship.company_id != user.id:
        raise PermissionDeniedError("You can only review applications for your own listings")
    if payload.status not in APPLICATION_STATUSES:
        raise ValidationFailed(f"Invalid status. Must be one of: {', '.join(APPLICATION_STATUSES)}")
    changed = application.status != payload.status
    application.status = payload.status
    db.commit()
    db.refresh(application)
    logger.info("application_status application=%s status=%s changed=%s", application.id, application.status, changed)
    if changed:
        _notify_applicant(notifier or NotificationService(db), application, internship)
    return application
