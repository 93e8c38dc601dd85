import uuid

from senpai.db import models


def _send(client, headers, **body):
    return client.post("/messages", json=body, headers=headers)


def test_first_message_opens_thread_and_charges(client, user_factory, auth_headers, db_session):
    student = user_factory("student", credits=25)
    obog = user_factory("obog")
    resp = _send(client, auth_headers(student), to_user_id=str(obog.id), content="  Hi senpai  ")
    assert resp.status_code == 201, resp.text
    data = resp.json()
    assert data["remaining_credits"] == 15
    assert data["message"]["content"] == "Hi senpai"
    assert data["message"]["read_by"] == [str(student.id)]

    db_session.expire_all()
    assert db_session.get(models.User, student.id).credits == 15
    thread = db_session.query(models.Thread).one()
    assert str(thread.id) == data["thread_id"]


def test_insufficient_credits(client, user_factory, auth_headers, db_session):
    student = user_factory("student", credits=9)
    obog = user_factory("obog")
    resp = _send(client, auth_headers(student), to_user_id=str(obog.id), content="Hello")
    assert resp.status_code == 402
    assert resp.json() == {"detail": "Insufficient credits", "insufficient_credits": True}
    db_session.expire_all()
    assert db_session.query(models.Message).count() == 0
    assert db_session.get(models.User, student.id).credits == 9


def test_credit_cost_configurable(client, user_factory, auth_headers, monkeypatch):
    monkeypatch.setenv("MESSAGE_CREDIT_COST", "3")
    student = user_factory("student", credits=5)
    obog = user_factory("obog")
    resp = _send(client, auth_headers(student), to_user_id=str(obog.id), content="Hello")
    assert resp.json()["remaining_credits"] == 2


def test_alumni_cannot_initiate(client, user_factory, auth_headers):
    student = user_factory("student", credits=50)
    obog = user_factory("obog", credits=50)
    resp = _send(client, auth_headers(obog), to_user_id=str(student.id), content="Hi")
    assert resp.status_code == 403
    assert resp.json()["code"] == "ALUMNI_CANNOT_INITIATE"

    _send(client, auth_headers(student), to_user_id=str(student.id), content="me")
    opened = _send(client, auth_headers(student), to_user_id=str(obog.id), content="Question")
    reply = _send(client, auth_headers(obog), thread_id=opened.json()["thread_id"], content="Answer")
    assert reply.status_code == 201
    by_recipient = _send(client, auth_headers(obog), to_user_id=str(student.id), content="Follow-up")
    assert by_recipient.status_code == 201
    assert by_recipient.json()["thread_id"] == opened.json()["thread_id"]


def test_send_validation(client, user_factory, auth_headers):
    student = user_factory("student", credits=50)
    headers = auth_headers(student)
    assert _send(client, headers, to_user_id=str(uuid.uuid4()), content="   ").status_code == 400
    assert _send(client, headers, content="Hello").status_code == 400
    missing = _send(client, headers, to_user_id=str(uuid.uuid4()), content="Hello")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Recipient not found"
    assert _send(client, headers, to_user_id=str(student.id), content="Hello").status_code == 400
    assert _send(client, headers, thread_id=str(uuid.uuid4()), content="Hello").status_code == 404


def test_outsider_cannot_post_into_thread(client, user_factory, auth_headers):
    student = user_factory("student", credits=50)
    obog = user_factory("obog")
    outsider = user_factory("student", credits=50)
    thread_id = _send(client, auth_headers(student), to_user_id=str(obog.id), content="Hi").json()["thread_id"]
    resp = _send(client, auth_headers(outsider), thread_id=thread_id, content="Intruding")
    assert resp.status_code == 403
    assert client.get(f"/messages/{thread_id}", headers=auth_headers(outsider)).status_code == 403


def test_thread_list_unread_and_mark_read(client, user_factory, auth_headers):
    student = user_factory("student", credits=50)
    obog = user_factory("obog", name="Ken")
    student_headers = auth_headers(student)
    obog_headers = auth_headers(obog)
    thread_id = _send(client, student_headers, to_user_id=str(obog.id), content="One").json()["thread_id"]
    _send(client, student_headers, thread_id=thread_id, content="Two")

    threads = client.get("/messages", headers=obog_headers).json()["threads"]
    assert len(threads) == 1
    assert threads[0]["unread_count"] == 2
    assert threads[0]["last_message"]["content"] == "Two"
    assert threads[0]["other_user"]["id"] == str(student.id)

    mine = client.get("/messages", headers=student_headers).json()["threads"]
    assert mine[0]["unread_count"] == 0
    assert mine[0]["other_user"]["name"] == "Ken"

    marked = client.post(f"/messages/{thread_id}/read", headers=obog_headers)
    assert marked.json() == {"updated": 2}
    assert client.post(f"/messages/{thread_id}/read", headers=obog_headers).json() == {"updated": 0}
    assert client.get("/messages", headers=obog_headers).json()["threads"][0]["unread_count"] == 0

    messages = client.get(f"/messages/{thread_id}", headers=obog_headers).json()
    assert [m["content"] for m in messages["messages"]] == ["One", "Two"]
    assert messages["admin_view"] is False


def test_admin_view_of_thread(client, user_factory, auth_headers):
    student = user_factory("student", credits=50)
    obog = user_factory("obog")
    admin = user_factory("admin")
    thread_id = _send(client, auth_headers(student), to_user_id=str(obog.id), content="Hi").json()["thread_id"]

    admin_headers = auth_headers(admin)
    view = client.get(f"/messages/{thread_id}", headers=admin_headers).json()
    assert view["admin_view"] is True
    assert {p["id"] for p in view["participants"]} == {str(student.id), str(obog.id)}

    listed = client.get(f"/messages?user_id={student.id}", headers=admin_headers)
    assert len(listed.json()["threads"]) == 1
    forbidden = client.get(f"/messages?user_id={obog.id}", headers=auth_headers(student))
    assert forbidden.status_code == 403


def test_message_notifies_recipient_by_role(client, user_factory, auth_headers, db_session):
    student = user_factory("student", credits=50)
    other_student = user_factory("student", credits=50)
    obog = user_factory("obog")
    _send(client, auth_headers(student), to_user_id=str(other_student.id), content="Hey")
    _send(client, auth_headers(student), to_user_id=str(obog.id), content="Hey")

    db_session.expire_all()
    assert db_session.query(models.Notification).filter_by(user_id=other_student.id, event_type="message").count() == 1
    # OB/OGs do not receive the message category
    assert db_session.query(models.Notification).filter_by(user_id=obog.id).count() == 0
