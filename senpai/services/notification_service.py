"""
Notification service: in-app notifications, preferences, and email dispatch.

Every user-facing event (bookings, meetings, messages, moderation) goes
through `NotificationService.notify`, which applies the recipient's role
categories and preferences before storing anything or sending mail.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timedelta, UTC
from typing import Optional, List, Dict, Any, Iterable
from sqlalchemy.orm import Session
from sqlalchemy import and_, desc

from senpai.db import models
from senpai.db.models.users import ROLE_STUDENT, ROLE_OBOG, ROLE_COMPANY, ROLE_ADMIN, ROLE_CORPORATE_OB
from senpai.errors import ValidationFailed
from senpai.utils.feature_flags import email_notifications_enabled
from senpai.utils.urls import build_app_link

logger = logging.getLogger(__name__)

# Categories double as the stored event_type
CATEGORY_APPLICATION = 'application'
CATEGORY_MESSAGE = 'message'
CATEGORY_MEETING = 'meeting'
CATEGORY_INTERNSHIP = 'internship'
CATEGORY_SYSTEM = 'system'

ALL_CATEGORIES = (
    CATEGORY_APPLICATION,
    CATEGORY_MESSAGE,
    CATEGORY_MEETING,
    CATEGORY_INTERNSHIP,
    CATEGORY_SYSTEM,
)

ROLE_CATEGORIES = {
    ROLE_STUDENT: ALL_CATEGORIES,
    ROLE_OBOG: (CATEGORY_MEETING, CATEGORY_SYSTEM),
    ROLE_COMPANY: (CATEGORY_APPLICATION, CATEGORY_MESSAGE, CATEGORY_SYSTEM),
    ROLE_CORPORATE_OB: (CATEGORY_MEETING, CATEGORY_SYSTEM, CATEGORY_MESSAGE),
    ROLE_ADMIN: ALL_CATEGORIES,
}

# Email is opt-in for everything else
DEFAULT_EMAIL_CATEGORIES = (CATEGORY_MEETING, CATEGORY_SYSTEM)

TEMPLATE_NOTIFICATION = 'notification'
TEMPLATE_PASSWORD_RESET = 'password_reset'

# Meeting lifecycle notifications: kind -> (title, message template)
MEETING_NOTIFICATIONS = {
    'request': ("New Meeting Request", "You have a new meeting request for {date}"),
    'confirm': ("Meeting Confirmed", "Your meeting on {date} has been confirmed"),
    'cancel': ("Meeting Cancelled", "The meeting on {date} has been cancelled"),
    'no-show': ("No-Show Reported", "A no-show has been reported for the meeting on {date}"),
    'complete': ("Meeting Completed", "The meeting on {date} has been marked as completed"),
}

# Applicant-facing application status notifications: status -> (title, message template)
APPLICATION_NOTIFICATIONS = {
    'pending': ("Application Received", 'Your application for "{title}" has been received.'),
    'accepted': ("Application Accepted", 'Congratulations! Your application for "{title}" has been accepted.'),
    'rejected': ("Application Update", 'Your application for "{title}" has been reviewed.'),
}


def categories_for_role(role: Optional[str]) -> tuple:
    return ROLE_CATEGORIES.get(role or '', ())


class NotificationService:
    """Service class for handling all notification operations."""

    def __init__(self, db: Session, email_service: Optional[Any] = None):
        self.db = db
        if email_service is not None:
            self.email_service = email_service
        else:
            from senpai.services import transactional_email_service
            self.email_service = transactional_email_service.get_transactional_email_service()

    # === User Preference Management ===

    def get_user_preferences(self, user_id: uuid.UUID) -> Dict[str, Dict[str, bool]]:
        """
        Effective preferences per category: defaults overlaid with stored rows.

        Returns:
            Dict with category as key and {'email_enabled': bool, 'in_app_enabled': bool} as value
        """
        preferences = {
            category: {
                'email_enabled': category in DEFAULT_EMAIL_CATEGORIES,
                'in_app_enabled': True,
            }
            for category in ALL_CATEGORIES
        }
        stored = self.db.query(models.UserNotificationPreference).filter(
            models.UserNotificationPreference.user_id == user_id
        ).all()
        for pref in stored:
            if pref.event_type in preferences:
                preferences[pref.event_type] = {
                    'email_enabled': pref.email_enabled,
                    'in_app_enabled': pref.in_app_enabled,
                }
        return preferences

    def set_user_preference(
        self,
        user_id: uuid.UUID,
        event_type: str,
        email_enabled: Optional[bool] = None,
        in_app_enabled: Optional[bool] = None,
    ) -> models.UserNotificationPreference:
        """Upsert one category's preference; omitted flags keep their effective value."""
        if event_type not in ALL_CATEGORIES:
            raise ValidationFailed(f"Unknown notification category: {event_type}")
        current = self.get_user_preferences(user_id)[event_type]
        existing = self.db.query(models.UserNotificationPreference).filter(
            and_(
                models.UserNotificationPreference.user_id == user_id,
                models.UserNotificationPreference.event_type == event_type,
            )
        ).first()
        if existing is None:
            existing = models.UserNotificationPreference(user_id=user_id, event_type=event_type)
            self.db.add(existing)
        existing.email_enabled = current['email_enabled'] if email_enabled is None else email_enabled
        existing.in_app_enabled = current['in_app_enabled'] if in_app_enabled is None else in_app_enabled
        existing.updated_at = datetime.now(UTC)
        self.db.commit()
        self.db.refresh(existing)
        return existing

    # === In-App Notification Management ===

    def create_notification(
        self,
        user_id: uuid.UUID,
        event_type: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        expires_days: int = 30,
    ) -> models.Notification:
        """Store an in-app notification without any role or preference checks."""
        notification = models.Notification(
            user_id=user_id,
            event_type=event_type,
            title=title,
            message=message,
            action_url=action_url,
            metadata_json=metadata or None,
            expires_at=datetime.now(UTC) + timedelta(days=expires_days),
        )
        self.db.add(notification)
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def _visible(self, user_id: uuid.UUID):
        return self.db.query(models.Notification).filter(
            models.Notification.user_id == user_id,
            models.Notification.expires_at > datetime.now(UTC),
        )

    def get_user_notifications(
        self,
        user_id: uuid.UUID,
        unread_only: bool = False,
        limit: int = 50,
    ) -> List[models.Notification]:
        """Non-expired notifications for a user, most recent first."""
        query = self._visible(user_id)
        if unread_only:
            query = query.filter(models.Notification.is_read.is_(False))
        return query.order_by(desc(models.Notification.created_at)).limit(limit).all()

    def get_total_count(self, user_id: uuid.UUID) -> int:
        return self._visible(user_id).count()

    def get_unread_count(self, user_id: uuid.UUID) -> int:
        return self._visible(user_id).filter(models.Notification.is_read.is_(False)).count()

    def _get_owned(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> Optional[models.Notification]:
        return self.db.query(models.Notification).filter(
            and_(
                models.Notification.id == notification_id,
                models.Notification.user_id == user_id,
            )
        ).first()

    def mark_notification_read(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        """
        Mark a notification as read for a specific user.
        Returns False if the notification is not found or not owned by the user.
        """
        notification = self._get_owned(notification_id, user_id)
        if not notification:
            return False
        if not notification.is_read:
            notification.is_read = True
            notification.read_at = datetime.now(UTC)
            self.db.commit()
        return True

    def mark_all_read(self, user_id: uuid.UUID) -> int:
        unread = self._visible(user_id).filter(models.Notification.is_read.is_(False)).all()
        now = datetime.now(UTC)
        for notification in unread:
            notification.is_read = True
            notification.read_at = now
        if unread:
            self.db.commit()
        return len(unread)

    def delete_notification(self, notification_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        notification = self._get_owned(notification_id, user_id)
        if not notification:
            return False
        self.db.delete(notification)
        self.db.commit()
        return True

    # === Email Notification Management ===

    def create_email_notification_log(
        self,
        notification_id: Optional[uuid.UUID],
        user_id: uuid.UUID,
        email_address: str,
        event_type: str,
        subject: str,
        status: str = 'pending',
    ) -> models.EmailNotificationLog:
        email_log = models.EmailNotificationLog(
            notification_id=notification_id,
            user_id=user_id,
            email_address=email_address,
            event_type=event_type,
            subject=subject,
            status=status,
        )
        self.db.add(email_log)
        self.db.commit()
        self.db.refresh(email_log)
        return email_log

    def update_email_status(
        self,
        email_log_id: uuid.UUID,
        status: str,
        provider_message_id: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> bool:
        """
        Update the status of an email notification ('sent' or 'failed').
        Returns False if the log entry does not exist.
        """
        email_log = self.db.query(models.EmailNotificationLog).filter(
            models.EmailNotificationLog.id == email_log_id
        ).first()
        if not email_log:
            return False
        email_log.status = status
        if provider_message_id:
            email_log.provider_message_id = provider_message_id
        if error_message:
            email_log.error_message = error_message
        if status == 'sent':
            email_log.sent_at = datetime.now(UTC)
        self.db.commit()
        return True

    async def send_email_notification(
        self,
        email_log: models.EmailNotificationLog,
        template_name: str,
        template_context: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Render and send one tracked email, recording the outcome on its log row.

        Returns:
            Dict with 'success', 'email_log_id' and either 'message_id' or 'error'
        """
        try:
            html_content, text_content = self.email_service.render_template(template_name, template_context)
            result = await self.email_service.send_email(
                to_email=email_log.email_address,
                subject=email_log.subject,
                html_content=html_content,
                text_content=text_content,
            )
        except Exception as e:
            result = {'success': False, 'error': f"Failed to send email: {e}"}

        if result.get('success'):
            self.update_email_status(email_log.id, 'sent', provider_message_id=result.get('message_id'))
            return {'success': True, 'email_log_id': email_log.id, 'message_id': result.get('message_id')}
        error = result.get('error') or 'Unknown error'
        self.update_email_status(email_log.id, 'failed', error_message=error)
        logger.warning("email_send_failed log=%s error=%s", email_log.id, error)
        return {'success': False, 'email_log_id': email_log.id, 'error': error}

    def _dispatch_email(self, email_log: models.EmailNotificationLog, template_name: str, context: Dict[str, Any]) -> Dict[str, Any]:
        email_log_id = email_log.id
        try:
            return asyncio.run(self.send_email_notification(email_log, template_name, context))
        except Exception as e:
            logger.error("Email dispatch error for log %s: %s", email_log_id, e)
            self.update_email_status(email_log_id, 'failed', error_message=f"Email dispatch error: {e}")
            return {'success': False, 'email_log_id': email_log_id, 'error': str(e)}

    def _email_service_ready(self) -> bool:
        if self.email_service is None:
            return False
        checker = getattr(self.email_service, 'is_configured', None)
        return bool(checker()) if callable(checker) else True

    # === High-Level Notification Methods ===

    def notify(
        self,
        user: models.User,
        category: str,
        title: str,
        message: str,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Deliver one event to one user, honouring role categories and preferences.

        Never raises: delivery problems are logged and reported in the result.

        Returns:
            Dict with 'in_app_notification', 'email_log' and 'email_result' keys when created,
            or {'skipped': reason} when the category is outside the user's role
        """
        if category not in categories_for_role(user.role):
            return {'skipped': 'category_not_allowed_for_role'}
        result: Dict[str, Any] = {}
        try:
            prefs = self.get_user_preferences(user.id)[category]
            if prefs['in_app_enabled']:
                result['in_app_notification'] = self.create_notification(
                    user_id=user.id,
                    event_type=category,
                    title=title,
                    message=message,
                    action_url=action_url,
                    metadata=metadata,
                )
            if prefs['email_enabled'] and email_notifications_enabled() and self._email_service_ready():
                notification = result.get('in_app_notification')
                email_log = self.create_email_notification_log(
                    notification_id=notification.id if notification is not None else None,
                    user_id=user.id,
                    email_address=user.email,
                    event_type=category,
                    subject=title,
                )
                result['email_log'] = email_log
                context = {
                    'user_name': user.name,
                    'title': title,
                    'message': message,
                    'action_link': build_app_link(action_url) if action_url else None,
                    'current_year': datetime.now(UTC).year,
                }
                result['email_result'] = self._dispatch_email(email_log, TEMPLATE_NOTIFICATION, context)
        except Exception as e:
            self.db.rollback()
            logger.error("Failed to notify user %s (%s): %s", user.id, category, e)
            result['error'] = str(e)
        return result

    def notify_user_id(self, user_id: uuid.UUID, category: str, title: str, message: str, **kwargs) -> Dict[str, Any]:
        user = self.db.query(models.User).filter(models.User.id == user_id).first()
        if user is None:
            return {'skipped': 'user_not_found'}
        return self.notify(user, category, title, message, **kwargs)

    def notify_meeting(
        self,
        meeting: models.Meeting,
        recipient_ids: Iterable[uuid.UUID],
        kind: str,
        actor_name: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Send one of the meeting lifecycle notifications (see MEETING_NOTIFICATIONS)."""
        title, template = MEETING_NOTIFICATIONS[kind]
        message = template.format(date=meeting.meeting_date_time or "TBD")
        if kind == 'cancel' and actor_name:
            message = f"{message} by {actor_name}"
        action_url = f"/messages/{meeting.thread_id}"
        metadata = {'meeting_id': str(meeting.id), 'thread_id': str(meeting.thread_id), 'kind': kind}
        return [
            self.notify_user_id(uid, CATEGORY_MEETING, title, message, action_url=action_url, metadata=metadata)
            for uid in recipient_ids
        ]

    def notify_admins(self, category: str, title: str, message: str, **kwargs) -> int:
        admins = self.db.query(models.User).filter(models.User.role == ROLE_ADMIN).all()
        for admin in admins:
            self.notify(admin, category, title, message, **kwargs)
        return len(admins)

    def send_password_reset_email(self, user: models.User, reset_link: str, expires_minutes: int) -> Dict[str, Any]:
        """Password reset mail bypasses preferences; the log records failures when email is unconfigured."""
        subject = "Reset your Senpai Career password"
        email_log = self.create_email_notification_log(
            notification_id=None,
            user_id=user.id,
            email_address=user.email,
            event_type=CATEGORY_SYSTEM,
            subject=subject,
        )
        if not self._email_service_ready():
            self.update_email_status(email_log.id, 'failed', error_message='No email service configured')
            return {'success': False, 'email_log_id': email_log.id, 'error': 'No email service configured'}
        context = {
            'user_name': user.name,
            'reset_link': reset_link,
            'expires_minutes': expires_minutes,
            'current_year': datetime.now(UTC).year,
        }
        return self._dispatch_email(email_log, TEMPLATE_PASSWORD_RESET, context)

    # === Cleanup Methods ===

    def cleanup_expired_notifications(self) -> int:
        """
        Remove notifications that have exceeded their expiration date.
        Returns count of cleaned up notifications.
        """
        expired = self.db.query(models.Notification).filter(
            models.Notification.expires_at <= datetime.now(UTC)
        )
        ids = [n.id for n in expired.with_entities(models.Notification.id).all()]
        if not ids:
            return 0
        self.db.query(models.EmailNotificationLog).filter(
            models.EmailNotificationLog.notification_id.in_(ids)
        ).update({models.EmailNotificationLog.notification_id: None}, synchronize_session=False)
        self.db.query(models.Notification).filter(models.Notification.id.in_(ids)).delete(synchronize_session=False)
        self.db.commit()
        return len(ids)
