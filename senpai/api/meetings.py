"""
Meeting API endpoints, addressed by thread id.
"""
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import meeting_service

router = APIRouter(prefix="/meetings", tags=["meetings"])


@router.get("/{thread_id}", response_model=schemas.MeetingEnvelope)
def get_meeting(
    thread_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    return {"meeting": meeting_service.get_meeting(db, thread_id, user, current_user.get("is_admin", False))}


@router.post("/{thread_id}", response_model=schemas.MeetingEnvelope)
def upsert_meeting(
    thread_id: uuid.UUID,
    payload: schemas.MeetingUpsert,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    return {"meeting": meeting_service.upsert_meeting(db, thread_id, user, payload)}


@router.put("/{thread_id}", response_model=schemas.MeetingEnvelope)
def meeting_action(
    thread_id: uuid.UUID,
    payload: schemas.MeetingAction,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    """
    Apply a lifecycle action to the thread's meeting.

    - **action**: accept_terms, confirm, complete, mark_no_show, cancel,
      submit_evaluation (with `rating`, `comment`) or
      submit_additional_question (with `additional_question`)
    """
    user, current_user = user_context
    meeting = meeting_service.apply_action(db, thread_id, user, current_user.get("is_admin", False), payload)
    return {"meeting": meeting}


@router.get("/{thread_id}/logs", response_model=schemas.MeetingLogsResponse)
def get_meeting_logs(
    thread_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, current_user = user_context
    return {"logs": meeting_service.get_logs(db, thread_id, user, current_user.get("is_admin", False))}
