import uuid

import pytest

from senpai.db import models
from senpai.services.messaging_service import get_or_create_thread


@pytest.fixture
def admin_headers(user_factory, auth_headers):
    return auth_headers(user_factory("admin"))


def test_admin_routes_require_admin(client, user_factory, auth_headers):
    headers = auth_headers(user_factory("student"))
    resp = client.get("/admin/users", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Admin access required"
    assert client.get("/admin/audits", headers=headers).status_code == 403


def test_admin_emails_env_grants_admin(client, user_factory, auth_headers, monkeypatch):
    staff = user_factory("obog", email="staff@acme.co.jp")
    monkeypatch.setenv("ADMIN_EMAILS", "other@acme.co.jp, STAFF@acme.co.jp")
    assert client.get("/admin/users", headers=auth_headers(staff)).status_code == 200


def test_list_users_filters(client, user_factory, admin_headers):
    user_factory("student", name="Hanako Sato")
    user_factory("obog", name="Ken Tanaka")
    students = client.get("/admin/users?role=student", headers=admin_headers).json()["users"]
    assert [u["name"] for u in students] == ["Hanako Sato"]
    found = client.get("/admin/users?search=tanaka", headers=admin_headers).json()["users"]
    assert [u["name"] for u in found] == ["Ken Tanaka"]
    assert "password_hash" not in found[0]


def test_strikes_auto_ban_and_revoke_sessions(client, user_factory, auth_headers, admin_headers, db_session):
    student = user_factory("student")
    student_headers = auth_headers(student)
    url = f"/admin/users/{student.id}/strikes"

    first = client.post(url, json={"action": "add"}, headers=admin_headers).json()
    assert first["user"]["strikes"] == 1
    assert first["auto_banned"] is False
    assert client.get("/auth/me", headers=student_headers).status_code == 200

    second = client.post(url, json={"action": "add"}, headers=admin_headers).json()
    assert second["user"]["strikes"] == 2
    assert second["user"]["is_banned"] is True
    assert second["auto_banned"] is True
    assert client.get("/auth/me", headers=student_headers).status_code == 401

    removed = client.post(url, json={"action": "remove"}, headers=admin_headers).json()
    assert removed["user"]["strikes"] == 1
    assert removed["user"]["is_banned"] is True

    db_session.expire_all()
    actions = [
        e.action_type
        for e in db_session.query(models.AuditLog).filter_by(target_id=student.id).order_by(models.AuditLog.created_at)
    ]
    assert actions.count("strike_add") == 2
    assert "user_ban" in actions
    assert "strike_remove" in actions


def test_strike_validation(client, user_factory, admin_headers, monkeypatch):
    obog = user_factory("obog")
    assert client.post(f"/admin/users/{obog.id}/strikes", json={"action": "add"}, headers=admin_headers).status_code == 400
    student = user_factory("student")
    assert client.post(f"/admin/users/{student.id}/strikes", json={"action": "double"}, headers=admin_headers).status_code == 400
    assert client.post(f"/admin/users/{uuid.uuid4()}/strikes", json={"action": "add"}, headers=admin_headers).status_code == 404

    monkeypatch.setenv("AUTO_BAN_STRIKES", "3")
    for _ in range(2):
        resp = client.post(f"/admin/users/{student.id}/strikes", json={"action": "add"}, headers=admin_headers)
    assert resp.json()["auto_banned"] is False


def test_ban_and_unban(client, user_factory, auth_headers, db_session):
    admin = user_factory("admin")
    headers = auth_headers(admin)
    obog = user_factory("obog")
    obog_headers = auth_headers(obog)

    banned = client.post(f"/admin/users/{obog.id}/ban", json={"action": "ban"}, headers=headers)
    assert banned.json()["user"]["is_banned"] is True
    assert banned.json()["user"]["banned_at"] is not None
    assert client.get("/auth/me", headers=obog_headers).status_code == 401
    login = client.post("/auth/login", json={"email": obog.email, "password": "correct-horse-42"})
    assert login.status_code == 403

    unbanned = client.post(f"/admin/users/{obog.id}/ban", json={"action": "unban"}, headers=headers)
    assert unbanned.json()["user"]["is_banned"] is False
    assert unbanned.json()["user"]["banned_at"] is None

    self_ban = client.post(f"/admin/users/{admin.id}/ban", json={"action": "ban"}, headers=headers)
    assert self_ban.status_code == 400
    assert self_ban.json()["detail"] == "You cannot ban yourself"

    db_session.expire_all()
    entry = db_session.query(models.AuditLog).filter_by(action_type="user_ban").one()
    assert entry.metadata_json == {"sessions_revoked": 1}


def test_grant_credits(client, user_factory, admin_headers):
    student = user_factory("student", credits=5)
    url = f"/admin/users/{student.id}/credits"
    assert client.post(url, json={"amount": 100}, headers=admin_headers).json()["user"]["credits"] == 105
    assert client.post(url, json={"amount": -5}, headers=admin_headers).json()["user"]["credits"] == 100
    over = client.post(url, json={"amount": -500}, headers=admin_headers)
    assert over.status_code == 400
    assert over.json()["detail"] == "Credit balance cannot go below zero"
    assert client.post(url, json={"amount": 0}, headers=admin_headers).status_code == 400

    audits = client.get("/admin/audits?action_type=credits_grant", headers=admin_headers).json()
    assert len(audits) == 2
    assert audits[0]["metadata"]["new_credits"] in (100, 105)


def test_flagged_meeting_review(client, user_factory, auth_headers, admin_headers, db_session):
    student = user_factory("student", name="Hana")
    obog = user_factory("obog", name="Ken")
    thread = get_or_create_thread(db_session, student.id, obog.id)
    client.post(f"/meetings/{thread.id}", json={"meeting_date_time": "2030-04-01 10:00"}, headers=auth_headers(student))
    client.put(
        f"/meetings/{thread.id}",
        json={"action": "submit_additional_question", "additional_question": {"offered": True}},
        headers=auth_headers(student),
    )

    flagged = client.get("/admin/meetings/flagged", headers=admin_headers).json()["meetings"]
    assert len(flagged) == 1
    assert flagged[0]["student"]["name"] == "Hana"
    assert flagged[0]["obog"]["name"] == "Ken"

    meeting_id = flagged[0]["id"]
    resp = client.put(f"/admin/meetings/{meeting_id}/review", json={"admin_notes": "Talked to both"}, headers=admin_headers)
    assert resp.status_code == 200
    meeting = resp.json()["meeting"]
    assert meeting["admin_reviewed"] is True
    assert meeting["admin_notes"] == "Talked to both"
    assert client.get("/admin/meetings/flagged", headers=admin_headers).json()["meetings"] == []
    assert client.put(f"/admin/meetings/{uuid.uuid4()}/review", json={}, headers=admin_headers).status_code == 404

    logs = client.get(f"/meetings/{thread.id}/logs", headers=admin_headers).json()["logs"]
    assert logs[-1]["operation_type"] == "admin_review"
    audits = client.get("/admin/audits?action_type=meeting_review", headers=admin_headers).json()
    assert audits[0]["target_id"] == meeting_id
