"""
Notification API Endpoints

Provides REST API for the in-app notification inbox and per-category
preferences. Email delivery follows the same preferences.
"""
import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from senpai.api.deps import get_current_user_context, require_admin
from senpai.db import schemas
from senpai.db.database import get_db
from senpai.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=schemas.NotificationListResponse)
def get_notifications(
    unread_only: bool = False,
    limit: int = 50,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Get notifications for the current user.

    - **unread_only**: If true, only return unread notifications
    - **limit**: Maximum number of notifications to return (default 50)
    """
    user, current_user = user_context

    service = NotificationService(db)
    notifications = service.get_user_notifications(
        user_id=user.id,
        unread_only=unread_only,
        limit=limit
    )

    return schemas.NotificationListResponse(
        notifications=notifications,
        unread_count=service.get_unread_count(user.id),
        total_count=service.get_total_count(user.id)
    )


@router.get("/stats", response_model=schemas.NotificationStatsResponse)
def get_notification_stats(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context

    service = NotificationService(db)
    recent_notifications = service.get_user_notifications(
        user_id=user.id,
        unread_only=False,
        limit=5
    )

    return schemas.NotificationStatsResponse(
        unread_count=service.get_unread_count(user.id),
        total_notifications=service.get_total_count(user.id),
        recent_notifications=recent_notifications
    )


@router.post("/read-all", response_model=schemas.MarkReadResponse)
def mark_all_read(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context
    return {"updated": NotificationService(db).mark_all_read(user.id)}


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
def mark_notification_read(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context

    if not NotificationService(db).mark_notification_read(notification_id, user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )


@router.delete("/cleanup/expired", response_model=schemas.MessageResponse)
def cleanup_expired_notifications(
    db: Session = Depends(get_db),
    admin_context = Depends(require_admin)
):
    """
    Purge expired notifications. Maintenance endpoint for admins.
    """
    count = NotificationService(db).cleanup_expired_notifications()
    return {"message": f"Cleaned up {count} expired notifications"}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: uuid.UUID,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    user, current_user = user_context

    if not NotificationService(db).delete_notification(notification_id, user.id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )


@router.get("/preferences", response_model=schemas.NotificationPreferencesResponse)
def get_notification_preferences(
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Effective preferences per category, defaults included.
    """
    user, current_user = user_context
    preferences = NotificationService(db).get_user_preferences(user.id)
    return schemas.NotificationPreferencesResponse(preferences=preferences)


@router.put("/preferences/{event_type}", response_model=schemas.UserNotificationPreference)
def update_notification_preference(
    event_type: str,
    preference_update: schemas.UserNotificationPreferenceUpdate,
    db: Session = Depends(get_db),
    user_context = Depends(get_current_user_context)
):
    """
    Update notification preferences for one category.

    Categories: application, message, meeting, internship, system.
    Omitted flags keep their current effective value.
    """
    user, current_user = user_context
    return NotificationService(db).set_user_preference(
        user_id=user.id,
        event_type=event_type,
        email_enabled=preference_update.email_enabled,
        in_app_enabled=preference_update.in_app_enabled
    )
