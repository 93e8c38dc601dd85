"""
Student compliance submissions and their admin review.

International students must reference two extra documents: the permission
for activities outside their residence qualification and a Japanese
language certificate. Documents are name or URL strings; matching is a
case-insensitive substring test.
"""

import logging
import uuid
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from senpai import audit
from senpai.audit import AuditAction
from senpai.db import models, schemas
from senpai.db.models.users import ROLE_STUDENT
from senpai.errors import NotFoundError, PermissionDeniedError, ValidationFailed
from senpai.services.notification_service import CATEGORY_SYSTEM, NotificationService

logger = logging.getLogger(__name__)

STATUS_PENDING = 'pending'
STATUS_SUBMITTED = 'submitted'
REVIEW_STATUSES = ('approved', 'rejected')

JAPANESE_NATIONALITIES = ('japan', 'japanese')
PERMISSION_KEYWORDS = ('permission', 'activity')
LANGUAGE_KEYWORDS = ('japanese', 'jlpt', 'cert')

SUBMITTED_MESSAGE = "Compliance submitted successfully"


def is_international(nationality: Optional[str]) -> bool:
    value = (nationality or "").strip().lower()
    return bool(value) and value not in JAPANESE_NATIONALITIES


def _has_document(documents: List[str], keywords) -> bool:
    return any(any(k in doc.lower() for k in keywords) for doc in documents)


def _student_profile(db: Session, user_id: uuid.UUID) -> Optional[models.StudentProfile]:
    return db.query(models.StudentProfile).filter(models.StudentProfile.user_id == user_id).first()


def submit(db: Session, user: models.User, payload: schemas.ComplianceSubmit) -> Dict[str, Any]:
    if user.role != ROLE_STUDENT:
        raise PermissionDeniedError("Only students can submit compliance")
    if not payload.compliance_agreed:
        raise ValidationFailed("You must agree to the terms and rules")

    profile = _student_profile(db, user.id)
    if profile is None:
        profile = models.StudentProfile(user_id=user.id)
        db.add(profile)

    documents = [d for d in (payload.compliance_documents or []) if d and d.strip()]
    if is_international(profile.nationality):
        if not _has_document(documents, PERMISSION_KEYWORDS):
            raise ValidationFailed(
                "Permission for Activities Outside Qualification document is required for international students"
            )
        if not _has_document(documents, LANGUAGE_KEYWORDS):
            raise ValidationFailed("Japanese Language Certification document is required for international students")

    now = datetime.now(UTC)
    profile.compliance_agreed = True
    profile.compliance_agreed_at = now
    profile.compliance_documents = documents
    profile.compliance_status = STATUS_SUBMITTED
    profile.compliance_submitted_at = now
    db.commit()
    logger.info("compliance_submitted user=%s documents=%d", user.id, len(documents))
    return {"message": SUBMITTED_MESSAGE, "compliance_status": STATUS_SUBMITTED}


def get_status(db: Session, viewer: models.User, is_admin: bool, user_id: Optional[uuid.UUID] = None) -> Dict[str, Any]:
    target_id = user_id or viewer.id
    if not is_admin:
        if viewer.role != ROLE_STUDENT or target_id != viewer.id:
            raise PermissionDeniedError("You can only view your own compliance status")
    profile = _student_profile(db, target_id)
    if profile is None:
        return {"user_id": target_id, "compliance_status": STATUS_PENDING}
    return schemas.ComplianceStatus.model_validate(profile).model_dump()


def list_submissions(db: Session, status: Optional[str] = STATUS_SUBMITTED) -> List[Dict[str, Any]]:
    query = (
        db.query(models.StudentProfile, models.User)
        .join(models.User, models.User.id == models.StudentProfile.user_id)
        .filter(models.User.role == ROLE_STUDENT)
    )
    if status:
        query = query.filter(models.StudentProfile.compliance_status == status)
    rows = query.order_by(models.StudentProfile.compliance_submitted_at.desc()).all()
    records = []
    for profile, user in rows:
        record = schemas.ComplianceStatus.model_validate(profile).model_dump()
        record.update(name=user.name, email=user.email, university=profile.university)
        records.append(record)
    return records


def review(
    db: Session,
    admin: models.User,
    payload: schemas.ComplianceReview,
    notifier: Optional[NotificationService] = None,
) -> models.StudentProfile:
    if payload.user_id is None or not payload.status:
        raise ValidationFailed("user_id and status are required")
    if payload.status not in REVIEW_STATUSES:
        raise ValidationFailed("Status must be 'approved' or 'rejected'")
    profile = _student_profile(db, payload.user_id)
    if profile is None:
        raise NotFoundError("Student profile not found")

    previous = profile.compliance_status
    profile.compliance_status = payload.status
    profile.compliance_reviewed_at = datetime.now(UTC)
    profile.compliance_reviewed_by = admin.id
    db.commit()
    db.refresh(profile)
    audit.safe_log(
        db,
        action=AuditAction.COMPLIANCE_REVIEW,
        target_type="user",
        target_id=profile.user_id,
        actor_user_id=admin.id,
        metadata={"old_status": previous, "new_status": payload.status},
    )
    logger.info("compliance_reviewed user=%s status=%s admin=%s", profile.user_id, payload.status, admin.id)

    if payload.status == 'approved':
        title, message = "Compliance Approved", "Your compliance submission has been approved."
    else:
        title, message = "Compliance Rejected", "Your compliance submission was rejected. Please review and resubmit."
    notifier = notifier or NotificationService(db)
    notifier.notify_user_id(profile.user_id, CATEGORY_SYSTEM, title, message, action_url="/profile/compliance")
    return profile
