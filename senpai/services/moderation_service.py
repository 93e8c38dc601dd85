"""User reports and peer reviews."""

import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from senpai import audit
from senpai.audit import AuditAction
from senpai.db import models, schemas
from senpai.db.models.moderation import REPORT_STATUSES
from senpai.db.repositories import users as user_repo
from senpai.errors import ConflictError, NotFoundError, ValidationFailed
from senpai.services.notification_service import CATEGORY_SYSTEM, NotificationService

logger = logging.getLogger(__name__)

PLATFORM_TARGET = "PLATFORM"
REPORT_TYPES = ('user', 'platform')


def _parse_uuid(value: Any) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def create_report(
    db: Session,
    reporter: models.User,
    payload: schemas.ReportCreate,
    notifier: Optional[NotificationService] = None,
) -> models.Report:
    reason = (payload.reason or "").strip()
    description = (payload.description or "").strip()
    if not payload.reported_user_id or not reason or not description:
        raise ValidationFailed("Missing required fields")

    if payload.reported_user_id == PLATFORM_TARGET:
        reported_user_id = None
        report_type = 'platform'
    else:
        target_id = _parse_uuid(payload.reported_user_id)
        target = user_repo.get_user(db, target_id) if target_id else None
        if target is None:
            raise NotFoundError("Reported user not found")
        if target.id == reporter.id:
            raise ValidationFailed("You cannot report yourself")
        reported_user_id = target.id
        report_type = payload.report_type or 'user'
        if report_type not in REPORT_TYPES:
            raise ValidationFailed("Invalid report type")

    report = models.Report(
        reporter_id=reporter.id,
        reported_user_id=reported_user_id,
        report_type=report_type,
        reason=reason,
        description=description,
        status='pending',
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info("report_created report=%s type=%s reporter=%s", report.id, report_type, reporter.id)

    notifier = notifier or NotificationService(db)
    notifier.notify_admins(
        CATEGORY_SYSTEM,
        "New Report Submitted",
        f"{reporter.name} submitted a report: {reason}",
        action_url="/admin/reports",
        metadata={"report_id": str(report.id), "report_type": report_type},
    )
    return report


def list_reports(db: Session, user: models.User, is_admin: bool, status: Optional[str] = None) -> List[Dict[str, Any]]:
    query = db.query(models.Report)
    if not is_admin:
        query = query.filter(models.Report.reporter_id == user.id)
    if status:
        query = query.filter(models.Report.status == status)
    reports = query.order_by(models.Report.created_at.desc()).all()

    ids = [r.reporter_id for r in reports] + [r.reported_user_id for r in reports if r.reported_user_id]
    users = user_repo.get_users_by_ids(db, ids) if is_admin else {}
    result = []
    for report in reports:
        entry = schemas.Report.model_validate(report).model_dump()
        if is_admin:
            entry["reporter"] = users.get(report.reporter_id)
            entry["reported_user"] = users.get(report.reported_user_id)
        result.append(entry)
    return result


def update_report(db: Session, report_id: uuid.UUID, admin: models.User, payload: schemas.ReportUpdate) -> models.Report:
    if payload.status is not None and payload.status not in REPORT_STATUSES:
        raise ValidationFailed("Invalid status")
    report = db.query(models.Report).filter(models.Report.id == report_id).first()
    if report is None:
        raise NotFoundError("Report not found")
    previous = report.status
    if payload.status is not None:
        report.status = payload.status
    if payload.admin_notes is not None:
        report.admin_notes = payload.admin_notes
    db.commit()
    db.refresh(report)
    audit.safe_log(
        db,
        action=AuditAction.REPORT_UPDATE,
        target_type="report",
        target_id=report.id,
        actor_user_id=admin.id,
        metadata={"old_status": previous, "new_status": report.status},
    )
    return report


def list_reviews(db: Session, user_id: Optional[uuid.UUID]) -> Dict[str, Any]:
    if user_id is None:
        raise ValidationFailed("user_id is required")
    reviews = (
        db.query(models.Review)
        .filter(models.Review.reviewee_id == user_id)
        .order_by(models.Review.created_at.desc())
        .all()
    )
    reviewers = user_repo.get_users_by_ids(db, [r.reviewer_id for r in reviews])
    entries = []
    for review in reviews:
        entry = schemas.Review.model_validate(review).model_dump()
        entry["reviewer"] = reviewers.get(review.reviewer_id)
        entries.append(entry)
    total = len(reviews)
    average = round(sum(r.rating for r in reviews) / total, 1) if total else 0
    return {"reviews": entries, "average_rating": average, "total_reviews": total}


def create_review(db: Session, reviewer: models.User, payload: schemas.ReviewCreate) -> models.Review:
    if payload.reviewee_id is None or payload.rating is None:
        raise ValidationFailed("Missing required fields")
    if not 1 <= payload.rating <= 5:
        raise ValidationFailed("Rating must be between 1 and 5")
    if payload.reviewee_id == reviewer.id:
        raise ValidationFailed("You cannot review yourself")
    if user_repo.get_user(db, payload.reviewee_id) is None:
        raise NotFoundError("User not found")

    existing = db.query(models.Review).filter(
        models.Review.reviewer_id == reviewer.id,
        models.Review.reviewee_id == payload.reviewee_id,
    ).first()
    if existing is not None:
        raise ConflictError("You have already reviewed this user")

    review = models.Review(
        reviewer_id=reviewer.id,
        reviewee_id=payload.reviewee_id,
        rating=payload.rating,
        comment=payload.comment,
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("You have already reviewed this user")
    db.refresh(review)
    logger.info("review_created reviewer=%s reviewee=%s rating=%d", reviewer.id, review.reviewee_id, review.rating)
    return review
