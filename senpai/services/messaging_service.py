"""Two-party threads, credit-charged messages and read receipts."""

import logging
import uuid
from datetime import datetime, UTC
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from senpai.db import models, schemas
from senpai.db.models.users import ROLE_OBOG
from senpai.db.repositories import users as user_repo
from senpai.errors import InsufficientCreditsError, NotFoundError, PermissionDeniedError, ValidationFailed
from senpai.services.notification_service import CATEGORY_MESSAGE, NotificationService
from senpai.utils.runtime import env_int
from senpai.utils.urls import thread_path

logger = logging.getLogger(__name__)


def message_credit_cost() -> int:
    return env_int("MESSAGE_CREDIT_COST", 10)


def _ordered(a: uuid.UUID, b: uuid.UUID) -> Tuple[uuid.UUID, uuid.UUID]:
    return (a, b) if str(a) <= str(b) else (b, a)


def find_thread(db: Session, a: uuid.UUID, b: uuid.UUID) -> Optional[models.Thread]:
    one, two = _ordered(a, b)
    return db.query(models.Thread).filter(
        models.Thread.participant_one_id == one,
        models.Thread.participant_two_id == two,
    ).first()


def get_or_create_thread(db: Session, a: uuid.UUID, b: uuid.UUID) -> models.Thread:
    """Return the pair's thread, creating it on first contact."""
    if a == b:
        raise ValidationFailed("You cannot message yourself")
    thread = find_thread(db, a, b)
    if thread is not None:
        return thread
    one, two = _ordered(a, b)
    thread = models.Thread(participant_one_id=one, participant_two_id=two)
    db.add(thread)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        thread = find_thread(db, a, b)
        if thread is None:
            raise
    return thread


def get_thread(db: Session, thread_id: uuid.UUID) -> models.Thread:
    thread = db.query(models.Thread).filter(models.Thread.id == thread_id).first()
    if thread is None:
        raise NotFoundError("Thread not found")
    return thread


def send_message(
    db: Session,
    sender: models.User,
    payload: schemas.MessageCreate,
    notifier: Optional[NotificationService] = None,
) -> Tuple[models.Message, models.Thread, int]:
    content = (payload.content or "").strip()
    if not content:
        raise ValidationFailed("Message content is required")
    cost = message_credit_cost()
    if (sender.credits or 0) < cost:
        raise InsufficientCreditsError(required=cost, available=sender.credits or 0)

    if payload.thread_id is not None:
        thread = get_thread(db, payload.thread_id)
        if not thread.has_participant(sender.id):
            raise PermissionDeniedError("You are not a participant in this conversation")
    else:
        if payload.to_user_id is None:
            raise ValidationFailed("Recipient is required to start a conversation")
        recipient = user_repo.get_user(db, payload.to_user_id)
        if recipient is None:
            raise NotFoundError("Recipient not found")
        if recipient.id == sender.id:
            raise ValidationFailed("You cannot message yourself")
        thread = find_thread(db, sender.id, recipient.id)
        if thread is None:
            if sender.role == ROLE_OBOG:
                raise PermissionDeniedError(
                    "Alumni cannot initiate conversations",
                    extra={"code": "ALUMNI_CANNOT_INITIATE"},
                )
            thread = get_or_create_thread(db, sender.id, recipient.id)

    now = datetime.now(UTC)
    message = models.Message(
        thread_id=thread.id,
        sender_id=sender.id,
        content=content,
        read_by=[str(sender.id)],
        created_at=now,
    )
    db.add(message)
    thread.updated_at = now
    sender.credits = (sender.credits or 0) - cost
    db.commit()
    db.refresh(message)
    remaining = sender.credits
    logger.info("message_sent thread=%s sender=%s remaining_credits=%s", thread.id, sender.id, remaining)

    recipient_id = thread.other_participant(sender.id)
    notifier = notifier or NotificationService(db)
    notifier.notify_user_id(
        recipient_id,
        CATEGORY_MESSAGE,
        "New Message",
        f"{sender.name} sent you a message",
        action_url=thread_path(thread.id),
        metadata={"thread_id": str(thread.id), "sender_id": str(sender.id)},
    )
    return message, thread, remaining


def _unread(messages: List[models.Message], user_id: uuid.UUID) -> List[models.Message]:
    uid = str(user_id)
    return [m for m in messages if m.sender_id != user_id and uid not in (m.read_by or [])]


def list_threads(db: Session, user_id: uuid.UUID) -> List[Dict[str, Any]]:
    threads = (
        db.query(models.Thread)
        .filter(or_(models.Thread.participant_one_id == user_id, models.Thread.participant_two_id == user_id))
        .order_by(models.Thread.updated_at.desc())
        .all()
    )
    if not threads:
        return []
    others = user_repo.get_users_by_ids(db, [t.other_participant(user_id) for t in threads])
    summaries = []
    for thread in threads:
        messages = (
            db.query(models.Message)
            .filter(models.Message.thread_id == thread.id)
            .order_by(models.Message.created_at.asc())
            .all()
        )
        summaries.append({
            "id": thread.id,
            "participants": thread.participant_ids,
            "other_user": others.get(thread.other_participant(user_id)),
            "last_message": messages[-1] if messages else None,
            "unread_count": len(_unread(messages, user_id)),
            "created_at": thread.created_at,
            "updated_at": thread.updated_at,
        })
    return summaries


def get_thread_messages(db: Session, thread_id: uuid.UUID, viewer: models.User, is_admin: bool) -> Dict[str, Any]:
    thread = get_thread(db, thread_id)
    participant = thread.has_participant(viewer.id)
    if not participant and not is_admin:
        raise PermissionDeniedError("You are not a participant in this conversation")
    messages = (
        db.query(models.Message)
        .filter(models.Message.thread_id == thread.id)
        .order_by(models.Message.created_at.asc())
        .all()
    )
    result: Dict[str, Any] = {"thread_id": thread.id, "messages": messages}
    if not participant:
        users = user_repo.get_users_by_ids(db, thread.participant_ids)
        result["admin_view"] = True
        result["participants"] = [users[uid] for uid in thread.participant_ids if uid in users]
    return result


def mark_thread_read(db: Session, thread_id: uuid.UUID, user: models.User) -> int:
    thread = get_thread(db, thread_id)
    if not thread.has_participant(user.id):
        raise PermissionDeniedError("You are not a participant in this conversation")
    uid = str(user.id)
    updated = 0
    for message in db.query(models.Message).filter(models.Message.thread_id == thread.id).all():
        readers = list(message.read_by or [])
        if uid not in readers:
            # Reassign so the JSON column is flagged dirty
            message.read_by = readers + [uid]
            updated += 1
    if updated:
        db.commit()
    return updated
