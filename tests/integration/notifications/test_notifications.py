import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from senpai.db import models
from senpai.services.notification_service import (
    CATEGORY_APPLICATION,
    CATEGORY_MEETING,
    CATEGORY_MESSAGE,
    CATEGORY_SYSTEM,
    NotificationService,
)
from senpai.services.transactional_email_service import TransactionalEmailConfig, TransactionalEmailService
from senpai.utils.feature_flags import refresh_feature_flag_cache


@pytest.fixture
def fake_email():
    email = MagicMock()
    email.is_configured.return_value = True
    email.render_template.return_value = ("<p>hi</p>", "hi")
    email.send_email = AsyncMock(return_value={"success": True, "message_id": "msg-1"})
    return email


def test_role_filtering(db_session, user_factory):
    service = NotificationService(db_session)
    obog = user_factory("obog")
    result = service.notify(obog, CATEGORY_MESSAGE, "New Message", "hello")
    assert result == {"skipped": "category_not_allowed_for_role"}
    assert service.notify(obog, CATEGORY_MEETING, "Meeting Confirmed", "ok")["in_app_notification"] is not None

    company = user_factory("company")
    assert "in_app_notification" in service.notify(company, CATEGORY_APPLICATION, "Applied", "x")
    assert "skipped" in service.notify(company, CATEGORY_MEETING, "Meeting", "x")


def test_email_sent_for_default_categories(db_session, user_factory, fake_email):
    student = user_factory("student")
    service = NotificationService(db_session, email_service=fake_email)
    result = service.notify(student, CATEGORY_SYSTEM, "Booking Accepted", "Yay", action_url="/messages/abc")
    assert result["email_result"]["success"] is True
    fake_email.send_email.assert_awaited_once()
    context = fake_email.render_template.call_args.args[1]
    assert context["action_link"] == "http://localhost:3000/messages/abc"

    db_session.expire_all()
    log = db_session.query(models.EmailNotificationLog).filter_by(user_id=student.id).one()
    assert log.status == "sent"
    assert log.provider_message_id == "msg-1"
    assert log.notification_id == result["in_app_notification"].id


def test_message_category_email_is_opt_in(db_session, user_factory, fake_email):
    student = user_factory("student")
    service = NotificationService(db_session, email_service=fake_email)
    result = service.notify(student, CATEGORY_MESSAGE, "New Message", "hi")
    assert "email_log" not in result
    fake_email.send_email.assert_not_called()

    service.set_user_preference(student.id, CATEGORY_MESSAGE, email_enabled=True)
    assert "email_log" in service.notify(student, CATEGORY_MESSAGE, "New Message", "again")


def test_preferences_disable_in_app(db_session, user_factory, fake_email):
    student = user_factory("student")
    service = NotificationService(db_session, email_service=fake_email)
    service.set_user_preference(student.id, CATEGORY_SYSTEM, in_app_enabled=False)
    prefs = service.get_user_preferences(student.id)[CATEGORY_SYSTEM]
    assert prefs == {"email_enabled": True, "in_app_enabled": False}

    result = service.notify(student, CATEGORY_SYSTEM, "Heads up", "x")
    assert "in_app_notification" not in result
    assert result["email_log"].notification_id is None


def test_email_flag_off(db_session, user_factory, fake_email, monkeypatch):
    monkeypatch.setenv("EMAIL_NOTIFICATIONS_ENABLED", "false")
    refresh_feature_flag_cache()
    student = user_factory("student")
    result = NotificationService(db_session, email_service=fake_email).notify(student, CATEGORY_SYSTEM, "t", "m")
    assert "in_app_notification" in result
    assert "email_log" not in result


def test_failed_send_recorded(db_session, user_factory, fake_email):
    fake_email.send_email = AsyncMock(return_value={"success": False, "error": "quota exceeded"})
    student = user_factory("student")
    result = NotificationService(db_session, email_service=fake_email).notify(student, CATEGORY_MEETING, "t", "m")
    assert result["email_result"] == {
        "success": False,
        "email_log_id": result["email_log"].id,
        "error": "quota exceeded",
    }
    db_session.expire_all()
    log = db_session.query(models.EmailNotificationLog).one()
    assert log.status == "failed"
    assert log.error_message == "quota exceeded"


def test_unconfigured_email_service_skips_mail(db_session, user_factory):
    student = user_factory("student")
    result = NotificationService(db_session).notify(student, CATEGORY_SYSTEM, "t", "m")
    assert "in_app_notification" in result
    assert "email_log" not in result


def test_meeting_notification_date_fallback(db_session, user_factory):
    student = user_factory("student")
    obog = user_factory("obog")
    meeting = models.Meeting(thread_id=uuid.uuid4(), student_id=student.id, obog_id=obog.id)
    NotificationService(db_session).notify_meeting(meeting, [obog.id], "confirm")
    note = db_session.query(models.Notification).filter_by(user_id=obog.id).one()
    assert note.message == "Your meeting on TBD has been confirmed"
    assert note.action_url == f"/messages/{meeting.thread_id}"


def test_unknown_preference_category(client, user_factory, auth_headers):
    headers = auth_headers(user_factory("student"))
    resp = client.put("/notifications/preferences/newsletter", json={"email_enabled": True}, headers=headers)
    assert resp.status_code == 400


def test_inbox_endpoints(client, user_factory, auth_headers, db_session):
    student = user_factory("student")
    headers = auth_headers(student)
    service = NotificationService(db_session)
    first = service.create_notification(student.id, CATEGORY_SYSTEM, "One", "first")
    service.create_notification(student.id, CATEGORY_SYSTEM, "Two", "second", metadata={"k": "v"})
    expired = service.create_notification(student.id, CATEGORY_SYSTEM, "Old", "gone")
    expired.expires_at = datetime.now(timezone.utc) - timedelta(days=1)
    db_session.commit()

    listing = client.get("/notifications", headers=headers).json()
    assert listing["total_count"] == 2
    assert listing["unread_count"] == 2
    assert {n["title"] for n in listing["notifications"]} == {"One", "Two"}
    assert next(n for n in listing["notifications"] if n["title"] == "Two")["metadata"] == {"k": "v"}

    assert client.post(f"/notifications/{first.id}/read", headers=headers).status_code == 204
    assert client.get("/notifications?unread_only=true", headers=headers).json()["unread_count"] == 1
    assert client.post("/notifications/read-all", headers=headers).json() == {"updated": 1}

    stats = client.get("/notifications/stats", headers=headers).json()
    assert stats["unread_count"] == 0
    assert stats["total_notifications"] == 2

    other = auth_headers(user_factory("student"))
    assert client.post(f"/notifications/{first.id}/read", headers=other).status_code == 404
    assert client.delete(f"/notifications/{first.id}", headers=other).status_code == 404
    assert client.delete(f"/notifications/{first.id}", headers=headers).status_code == 204
    assert client.delete(f"/notifications/{first.id}", headers=headers).status_code == 404

    assert client.delete("/notifications/cleanup/expired", headers=headers).status_code == 403
    admin = auth_headers(user_factory("admin"))
    cleaned = client.delete("/notifications/cleanup/expired", headers=admin)
    assert cleaned.json() == {"message": "Cleaned up 1 expired notifications"}


def test_preferences_endpoints(client, user_factory, auth_headers):
    headers = auth_headers(user_factory("student"))
    prefs = client.get("/notifications/preferences", headers=headers).json()["preferences"]
    assert prefs["meeting"] == {"email_enabled": True, "in_app_enabled": True}
    assert prefs["message"] == {"email_enabled": False, "in_app_enabled": True}

    resp = client.put("/notifications/preferences/message", json={"email_enabled": True}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["email_enabled"] is True
    assert resp.json()["in_app_enabled"] is True


def test_template_rendering():
    service = TransactionalEmailService(TransactionalEmailConfig())
    assert not service.is_configured()
    html, text = service.render_template(
        "notification",
        {"user_name": "Hana", "title": "Meeting Confirmed", "message": "<b>soon</b>", "action_link": None, "current_year": 2030},
    )
    assert "Hana" in html
    assert "&lt;b&gt;soon&lt;/b&gt;" in html
    assert "Meeting Confirmed" in text


def test_email_config_validation(monkeypatch):
    monkeypatch.setenv("EMAIL_PROVIDER", "mailgun")
    monkeypatch.setenv("MAILGUN_API_KEY", "key")
    config = TransactionalEmailConfig()
    assert config.validate() == ["MAILGUN_DOMAIN is required for Mailgun provider"]
    monkeypatch.setenv("EMAIL_PROVIDER", "carrier-pigeon")
    assert TransactionalEmailConfig().validate() == ["RESEND_API_KEY is required for Resend provider"]
