"""
User and role-profile repository functions.
"""
from __future__ import annotations

import uuid
from typing import Optional, List, Dict, Any

from sqlalchemy import or_, func
from sqlalchemy.orm import Session

from senpai.db import models
from senpai.db.models.users import ROLE_STUDENT, ROLE_OBOG, ROLE_COMPANY

PROFILE_MODELS = {
    ROLE_STUDENT: models.StudentProfile,
    ROLE_OBOG: models.ObogProfile,
    ROLE_COMPANY: models.CompanyProfile,
}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def get_user(db: Session, user_id: uuid.UUID) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    return db.query(models.User).filter(models.User.email == normalize_email(email)).first()


def get_users_by_ids(db: Session, ids) -> Dict[uuid.UUID, models.User]:
    ids = [i for i in set(ids) if i is not None]
    if not ids:
        return {}
    rows = db.query(models.User).filter(models.User.id.in_(ids)).all()
    return {u.id: u for u in rows}


def get_profile(db: Session, user: models.User):
    """Return the role profile row for a user, or None for roles without one."""
    model = PROFILE_MODELS.get(user.role)
    if model is None:
        return None
    return db.query(model).filter(model.user_id == user.id).first()


def create_user_with_profile(
    db: Session,
    *,
    email: str,
    password_hash: str,
    name: str,
    role: str,
    profile_fields: Optional[Dict[str, Any]] = None,
) -> models.User:
    """Insert the user and its role profile in one transaction."""
    user = models.User(
        email=normalize_email(email),
        password_hash=password_hash,
        name=name.strip(),
        role=role,
    )
    db.add(user)
    try:
        db.flush()
        model = PROFILE_MODELS.get(role)
        if model is not None:
            db.add(model(user_id=user.id, **(profile_fields or {})))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(user)
    return user


def list_users(db: Session, *, role: Optional[str] = None, search: Optional[str] = None, skip: int = 0, limit: int = 200) -> List[models.User]:
    query = db.query(models.User)
    if role:
        query = query.filter(models.User.role == role)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(func.lower(models.User.name).like(pattern), models.User.email.like(pattern)))
    return query.order_by(models.User.created_at.desc()).offset(skip).limit(limit).all()


def list_with_profiles(db: Session, role: str, *, include_banned: bool = False):
    """Return (user, profile) pairs for a profile-bearing role, newest first."""
    model = PROFILE_MODELS[role]
    query = db.query(models.User, model).outerjoin(model, model.user_id == models.User.id).filter(models.User.role == role)
    if not include_banned:
        query = query.filter(models.User.is_banned.is_(False))
    return query.order_by(models.User.created_at.desc()).all()


def delete_user(db: Session, user: models.User) -> None:
    """Remove a user and everything that belongs to them.

    Rows are deleted explicitly rather than relying on ON DELETE CASCADE so
    the behaviour is identical on SQLite, which does not enforce foreign keys
    by default.
    """
    uid = user.id
    thread_ids = [
        t.id
        for t in db.query(models.Thread.id).filter(
            or_(models.Thread.participant_one_id == uid, models.Thread.participant_two_id == uid)
        ).all()
    ]
    meeting_ids = [
        m.id
        for m in db.query(models.Meeting.id).filter(
            or_(models.Meeting.student_id == uid, models.Meeting.obog_id == uid, models.Meeting.thread_id.in_(thread_ids))
        ).all()
    ]
    notification_ids = [n.id for n in db.query(models.Notification.id).filter(models.Notification.user_id == uid).all()]
    internship_ids = [i.id for i in db.query(models.Internship.id).filter(models.Internship.company_id == uid).all()]
    try:
        db.query(models.EmailNotificationLog).filter(
            or_(models.EmailNotificationLog.user_id == uid, models.EmailNotificationLog.notification_id.in_(notification_ids))
        ).delete(synchronize_session=False)
        db.query(models.Notification).filter(models.Notification.user_id == uid).delete(synchronize_session=False)
        db.query(models.UserNotificationPreference).filter(models.UserNotificationPreference.user_id == uid).delete(synchronize_session=False)
        db.query(models.AuthToken).filter(models.AuthToken.user_id == uid).delete(synchronize_session=False)

        db.query(models.Booking).filter(
            or_(models.Booking.student_id == uid, models.Booking.obog_id == uid, models.Booking.thread_id.in_(thread_ids))
        ).delete(synchronize_session=False)
        db.query(models.MeetingOperationLog).filter(models.MeetingOperationLog.meeting_id.in_(meeting_ids)).delete(synchronize_session=False)
        db.query(models.Meeting).filter(models.Meeting.id.in_(meeting_ids)).delete(synchronize_session=False)
        db.query(models.Message).filter(
            or_(models.Message.sender_id == uid, models.Message.thread_id.in_(thread_ids))
        ).delete(synchronize_session=False)
        db.query(models.Thread).filter(models.Thread.id.in_(thread_ids)).delete(synchronize_session=False)
        db.query(models.Availability).filter(models.Availability.obog_id == uid).delete(synchronize_session=False)

        db.query(models.Report).filter(
            or_(models.Report.reporter_id == uid, models.Report.reported_user_id == uid)
        ).delete(synchronize_session=False)
        db.query(models.Review).filter(
            or_(models.Review.reviewer_id == uid, models.Review.reviewee_id == uid)
        ).delete(synchronize_session=False)
        db.query(models.Application).filter(
            or_(models.Application.applicant_id == uid, models.Application.internship_id.in_(internship_ids))
        ).delete(synchronize_session=False)
        db.query(models.Internship).filter(models.Internship.id.in_(internship_ids)).delete(synchronize_session=False)
        db.query(models.CorporateOb).filter(models.CorporateOb.user_id == uid).delete(synchronize_session=False)
        for model in PROFILE_MODELS.values():
            db.query(model).filter(model.user_id == uid).delete(synchronize_session=False)

        # Nullable references held by other users' rows
        db.query(models.Booking).filter(models.Booking.cancelled_by == uid).update({models.Booking.cancelled_by: None}, synchronize_session=False)
        db.query(models.MeetingOperationLog).filter(models.MeetingOperationLog.user_id == uid).update({models.MeetingOperationLog.user_id: None}, synchronize_session=False)
        db.query(models.StudentProfile).filter(models.StudentProfile.compliance_reviewed_by == uid).update({models.StudentProfile.compliance_reviewed_by: None}, synchronize_session=False)
        db.query(models.AuditLog).filter(models.AuditLog.actor_user_id == uid).update({models.AuditLog.actor_user_id: None}, synchronize_session=False)

        db.delete(user)
        db.commit()
    except Exception:
        db.rollback()
        raise
