"""
Messaging API endpoints.

Every message costs credits; OB/OGs may only reply in threads a student
opened.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import messaging_service

router = APIRouter(prefix="/messages", tags=["messages"])


@router.post("", response_model=schemas.MessageSent, status_code=status.HTTP_201_CREATED)
def send_message(
    payload: schemas.MessageCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    message, thread, remaining = messaging_service.send_message(db, user, payload)
    return {"message": message, "thread_id": thread.id, "remaining_credits": remaining}


@router.get("", response_model=schemas.ThreadListResponse)
def list_threads(
    user_id: Optional[uuid.UUID] = None,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    List conversations, most recently active first.

    - **user_id**: admins only; list another user's threads
    """
    user, current_user = user_context
    target_id = user.id
    if user_id is not None and user_id != user.id:
        if not current_user.get("is_admin"):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
        target_id = user_id
    return {"threads": messaging_service.list_threads(db, target_id)}


@router.get("/{thread_id}", response_model=schemas.ThreadMessagesResponse)
def get_thread_messages(
    thread_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    return messaging_service.get_thread_messages(db, thread_id, user, current_user.get("is_admin", False))


@router.post("/{thread_id}/read", response_model=schemas.MarkReadResponse)
def mark_thread_read(
    thread_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    return {"updated": messaging_service.mark_thread_read(db, thread_id, user)}
