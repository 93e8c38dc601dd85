"""
Review API endpoints: public rating summaries and one review per pair.
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services import moderation_service

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.get("", response_model=schemas.ReviewSummary)
def list_reviews(user_id: Optional[uuid.UUID] = None, db: Session = Depends(get_db)):
    return moderation_service.list_reviews(db, user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_review(
    payload: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context),
):
    user, _ctx = user_context
    review = moderation_service.create_review(db, user, payload)
    return {"review": schemas.Review.model_validate(review)}
