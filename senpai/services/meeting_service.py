"""
Meeting lifecycle for a thread: scheduling, terms, post-meeting reports,
evaluations and the admin review queue.

Every mutation appends a MeetingOperationLog with before/after snapshots of
the fields it can touch.
"""

import logging
import uuid
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from senpai import audit
from senpai.audit import AuditAction
from senpai.db import models, schemas
from senpai.db.models.meetings import (
    MEETING_UNCONFIRMED,
    MEETING_CONFIRMED,
    MEETING_COMPLETED,
    MEETING_CANCELLED,
    POST_COMPLETED,
    POST_NO_SHOW,
    display_status_for,
)
from senpai.db.models.users import ROLE_STUDENT, ROLE_OBOG
from senpai.db.repositories import users as user_repo
from senpai.errors import NotFoundError, PermissionDeniedError, ValidationFailed
from senpai.services.messaging_service import get_thread
from senpai.services.notification_service import NotificationService

logger = logging.getLogger(__name__)

MEETING_ACTIONS = (
    'accept_terms',
    'confirm',
    'complete',
    'mark_no_show',
    'cancel',
    'submit_evaluation',
    'submit_additional_question',
)

REVIEW_REASON_CONFLICT = "No-show reported by one party while other marked complete"
REVIEW_REASON_OFFPLATFORM = "Student reported being offered opportunity outside platform"

_SNAPSHOT_FIELDS = (
    'status',
    'meeting_date_time',
    'meeting_url',
    'student_terms_accepted',
    'obog_terms_accepted',
    'student_post_status',
    'obog_post_status',
    'student_evaluated',
    'student_rating',
    'obog_evaluated',
    'obog_rating',
    'student_additional_question_answered',
    'student_offered_opportunity',
    'requires_review',
    'review_reason',
    'admin_reviewed',
    'admin_notes',
)


def meeting_display_status(meeting: models.Meeting) -> str:
    return display_status_for(meeting.status, meeting.student_post_status, meeting.obog_post_status)


def _snapshot(meeting: models.Meeting) -> Dict[str, Any]:
    return {field: getattr(meeting, field) for field in _SNAPSHOT_FIELDS}


def _log_operation(
    db: Session,
    meeting: models.Meeting,
    user_id: Optional[uuid.UUID],
    operation_type: str,
    old_value: Optional[Dict[str, Any]],
    new_value: Optional[Dict[str, Any]],
) -> models.MeetingOperationLog:
    entry = models.MeetingOperationLog(
        meeting_id=meeting.id,
        user_id=user_id,
        operation_type=operation_type,
        old_value=old_value,
        new_value=new_value,
    )
    db.add(entry)
    return entry


def _get_for_thread(db: Session, thread_id: uuid.UUID) -> Optional[models.Meeting]:
    return db.query(models.Meeting).filter(models.Meeting.thread_id == thread_id).first()


def _resolve_roles(db: Session, thread: models.Thread) -> Tuple[uuid.UUID, uuid.UUID]:
    """Return (student_id, obog_id) for a thread's participants."""
    users = user_repo.get_users_by_ids(db, thread.participant_ids)
    first, second = thread.participant_ids
    roles = {uid: getattr(users.get(uid), 'role', None) for uid in (first, second)}
    for uid in (first, second):
        if roles[uid] == ROLE_STUDENT:
            return uid, thread.other_participant(uid)
    for uid in (first, second):
        if roles[uid] == ROLE_OBOG:
            return thread.other_participant(uid), uid
    return first, second


def _check_access(thread: models.Thread, user: models.User, is_admin: bool) -> None:
    if not thread.has_participant(user.id) and not is_admin:
        raise PermissionDeniedError("You are not a participant in this conversation")


def get_meeting(db: Session, thread_id: uuid.UUID, user: models.User, is_admin: bool) -> Optional[models.Meeting]:
    thread = get_thread(db, thread_id)
    _check_access(thread, user, is_admin)
    return _get_for_thread(db, thread.id)


def upsert_meeting(
    db: Session,
    thread_id: uuid.UUID,
    user: models.User,
    payload: schemas.MeetingUpsert,
    notifier: Optional[NotificationService] = None,
) -> models.Meeting:
    """Create the thread's meeting, or update whichever of date/url the caller sent."""
    thread = get_thread(db, thread_id)
    if not thread.has_participant(user.id):
        raise PermissionDeniedError("You are not a participant in this conversation")
    provided = payload.model_fields_set
    meeting = _get_for_thread(db, thread.id)

    if meeting is not None:
        old = _snapshot(meeting)
        if 'meeting_date_time' in provided:
            meeting.meeting_date_time = payload.meeting_date_time
        if 'meeting_url' in provided:
            meeting.meeting_url = payload.meeting_url
        operation = 'update_date' if 'meeting_date_time' in provided else 'update_url'
        created = False
    else:
        student_id, obog_id = _resolve_roles(db, thread)
        meeting = models.Meeting(
            thread_id=thread.id,
            student_id=student_id,
            obog_id=obog_id,
            meeting_date_time=payload.meeting_date_time,
            meeting_url=payload.meeting_url,
            status=MEETING_UNCONFIRMED,
        )
        db.add(meeting)
        db.flush()
        old = None
        operation = 'create'
        created = True

    _log_operation(
        db, meeting, user.id, operation, old,
        {'meeting_date_time': meeting.meeting_date_time, 'meeting_url': meeting.meeting_url},
    )
    db.commit()
    db.refresh(meeting)
    logger.info("meeting_%s meeting=%s thread=%s by=%s", operation, meeting.id, thread.id, user.id)

    if created:
        notifier = notifier or NotificationService(db)
        notifier.notify_meeting(meeting, [thread.other_participant(user.id)], 'request')
    return meeting


def _require_side(meeting: models.Meeting, user: models.User) -> str:
    side = meeting.role_of(user.id)
    if side is None:
        raise PermissionDeniedError("Only meeting participants can perform this action")
    return side


def _other_side_id(meeting: models.Meeting, side: str) -> uuid.UUID:
    return meeting.obog_id if side == 'student' else meeting.student_id


def apply_action(
    db: Session,
    thread_id: uuid.UUID,
    user: models.User,
    is_admin: bool,
    payload: schemas.MeetingAction,
    notifier: Optional[NotificationService] = None,
) -> models.Meeting:
    meeting = _get_for_thread(db, thread_id)
    if meeting is None:
        raise NotFoundError("Meeting not found")
    if meeting.role_of(user.id) is None and not is_admin:
        raise PermissionDeniedError("You are not a participant in this meeting")
    action = payload.action
    if action not in MEETING_ACTIONS:
        raise ValidationFailed("Invalid action")

    old = _snapshot(meeting)
    now = datetime.now(UTC)
    both = [meeting.student_id, meeting.obog_id]
    # (recipients, kind, actor_name) sent after commit
    pending: Optional[Tuple[List[uuid.UUID], str, Optional[str]]] = None

    if action == 'accept_terms':
        side = _require_side(meeting, user)
        setattr(meeting, f'{side}_terms_accepted', True)
        setattr(meeting, f'{side}_terms_accepted_at', now)

    elif action == 'confirm':
        if not (meeting.student_terms_accepted and meeting.obog_terms_accepted):
            raise ValidationFailed("Both parties must accept terms before confirming")
        meeting.status = MEETING_CONFIRMED
        pending = (both, 'confirm', None)

    elif action == 'complete':
        side = _require_side(meeting, user)
        setattr(meeting, f'{side}_post_status', POST_COMPLETED)
        setattr(meeting, f'{side}_post_status_at', now)
        if meeting.student_post_status == POST_COMPLETED and meeting.obog_post_status in (None, '', POST_COMPLETED):
            meeting.status = MEETING_COMPLETED
            pending = (both, 'complete', None)

    elif action == 'mark_no_show':
        side = _require_side(meeting, user)
        setattr(meeting, f'{side}_post_status', POST_NO_SHOW)
        setattr(meeting, f'{side}_post_status_at', now)
        statuses = {meeting.student_post_status, meeting.obog_post_status}
        if statuses == {POST_NO_SHOW, POST_COMPLETED}:
            meeting.requires_review = True
            meeting.review_reason = REVIEW_REASON_CONFLICT
        pending = ([_other_side_id(meeting, side)], 'no-show', None)

    elif action == 'cancel':
        meeting.status = MEETING_CANCELLED
        pending = (both, 'cancel', user.name)

    elif action == 'submit_evaluation':
        side = _require_side(meeting, user)
        rating = payload.rating
        if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
            raise ValidationFailed("Rating must be an integer between 1 and 5")
        setattr(meeting, f'{side}_evaluated', True)
        setattr(meeting, f'{side}_rating', rating)
        setattr(meeting, f'{side}_evaluation_comment', payload.comment)
        setattr(meeting, f'{side}_evaluated_at', now)

    else:  # submit_additional_question
        if meeting.role_of(user.id) != 'student':
            raise PermissionDeniedError("Only students can submit additional questions")
        answer = payload.additional_question
        if answer is None:
            raise ValidationFailed("Additional question answer is required")
        meeting.student_additional_question_answered = True
        meeting.student_additional_question_answered_at = now
        meeting.student_offered_opportunity = answer.offered
        meeting.student_opportunity_types = list(answer.types or [])
        meeting.student_opportunity_other = answer.other
        meeting.student_evidence_screenshot = answer.evidence_screenshot
        meeting.student_evidence_description = answer.evidence_description
        if answer.offered is True:
            meeting.requires_review = True
            meeting.review_reason = REVIEW_REASON_OFFPLATFORM

    _log_operation(db, meeting, user.id, action, old, _snapshot(meeting))
    db.commit()
    db.refresh(meeting)
    logger.info("meeting_action meeting=%s action=%s by=%s status=%s", meeting.id, action, user.id, meeting.status)

    if pending is not None:
        recipients, kind, actor_name = pending
        notifier = notifier or NotificationService(db)
        notifier.notify_meeting(meeting, recipients, kind, actor_name=actor_name)
    return meeting


def get_logs(db: Session, thread_id: uuid.UUID, user: models.User, is_admin: bool) -> List[models.MeetingOperationLog]:
    meeting = _get_for_thread(db, thread_id)
    if meeting is None:
        raise NotFoundError("Meeting not found")
    if meeting.role_of(user.id) is None and not is_admin:
        raise PermissionDeniedError("You are not a participant in this meeting")
    return (
        db.query(models.MeetingOperationLog)
        .filter(models.MeetingOperationLog.meeting_id == meeting.id)
        .order_by(models.MeetingOperationLog.created_at.asc())
        .all()
    )


def list_flagged(db: Session) -> List[Dict[str, Any]]:
    meetings = (
        db.query(models.Meeting)
        .filter(models.Meeting.requires_review.is_(True))
        .order_by(models.Meeting.updated_at.desc())
        .all()
    )
    ids = [m.student_id for m in meetings] + [m.obog_id for m in meetings]
    users = user_repo.get_users_by_ids(db, ids)
    flagged = []
    for meeting in meetings:
        entry = schemas.Meeting.model_validate(meeting).model_dump()
        entry['student'] = users.get(meeting.student_id)
        entry['obog'] = users.get(meeting.obog_id)
        flagged.append(entry)
    return flagged


def review_meeting(db: Session, meeting_id: uuid.UUID, admin: models.User, admin_notes: Optional[str]) -> models.Meeting:
    meeting = db.query(models.Meeting).filter(models.Meeting.id == meeting_id).first()
    if meeting is None:
        raise NotFoundError("Meeting not found")
    old = _snapshot(meeting)
    meeting.admin_reviewed = True
    meeting.admin_reviewed_at = datetime.now(UTC)
    meeting.admin_notes = admin_notes
    meeting.requires_review = False
    _log_operation(db, meeting, admin.id, 'admin_review', old, _snapshot(meeting))
    db.commit()
    db.refresh(meeting)
    audit.safe_log(
        db,
        action=AuditAction.MEETING_REVIEW,
        target_type="meeting",
        target_id=meeting.id,
        actor_user_id=admin.id,
        metadata={"admin_notes": admin_notes, "review_reason": meeting.review_reason},
    )
    logger.info("meeting_reviewed meeting=%s admin=%s", meeting.id, admin.id)
    return meeting
