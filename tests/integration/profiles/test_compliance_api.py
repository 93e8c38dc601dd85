import pytest

from senpai.db import models
from senpai.services.compliance_service import is_international


@pytest.mark.parametrize(
    "nationality,expected",
    [("Japan", False), (" japanese ", False), ("", False), (None, False), ("Vietnam", True), ("China", True)],
)
def test_is_international(nationality, expected):
    assert is_international(nationality) is expected


def test_domestic_submission(client, user_factory, auth_headers):
    student = user_factory("student", profile={"nationality": "Japan"})
    headers = auth_headers(student)
    resp = client.post("/profile/compliance", json={"compliance_agreed": True}, headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"message": "Compliance submitted successfully", "compliance_status": "submitted"}

    state = client.get("/profile/compliance", headers=headers).json()
    assert state["compliance_status"] == "submitted"
    assert state["compliance_agreed"] is True
    assert state["compliance_agreed_at"] is not None


def test_agreement_required(client, user_factory, auth_headers):
    student = user_factory("student")
    resp = client.post("/profile/compliance", json={"compliance_agreed": False}, headers=auth_headers(student))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "You must agree to the terms and rules"


def test_international_documents(client, user_factory, auth_headers):
    student = user_factory("student", profile={"nationality": "Vietnam"})
    headers = auth_headers(student)

    def submit(documents):
        return client.post(
            "/profile/compliance",
            json={"compliance_agreed": True, "compliance_documents": documents},
            headers=headers,
        )

    no_permission = submit(["JLPT_N2.pdf"])
    assert no_permission.status_code == 400
    assert "Permission for Activities" in no_permission.json()["detail"]

    no_language = submit(["activity_permission.pdf"])
    assert no_language.status_code == 400
    assert "Japanese Language Certification" in no_language.json()["detail"]

    ok = submit(["https://files.example/Activity-Permission.png", "JLPT-N2.pdf", "  "])
    assert ok.status_code == 200
    state = client.get("/profile/compliance", headers=headers).json()
    assert state["compliance_documents"] == ["https://files.example/Activity-Permission.png", "JLPT-N2.pdf"]


def test_only_students_submit(client, user_factory, auth_headers):
    obog = user_factory("obog")
    resp = client.post("/profile/compliance", json={"compliance_agreed": True}, headers=auth_headers(obog))
    assert resp.status_code == 403


def test_status_visibility(client, user_factory, auth_headers):
    student = user_factory("student")
    other = user_factory("student")
    admin = user_factory("admin")
    peek = client.get(f"/profile/compliance?user_id={student.id}", headers=auth_headers(other))
    assert peek.status_code == 403
    as_admin = client.get(f"/profile/compliance?user_id={student.id}", headers=auth_headers(admin))
    assert as_admin.status_code == 200
    assert as_admin.json()["compliance_status"] == "pending"


def test_admin_review_flow(client, user_factory, auth_headers, db_session):
    student = user_factory("student", name="Hana", profile={"university": "Waseda"})
    admin = user_factory("admin")
    admin_headers = auth_headers(admin)
    client.post("/profile/compliance", json={"compliance_agreed": True}, headers=auth_headers(student))

    assert client.get("/admin/compliance", headers=auth_headers(student)).status_code == 403
    queue = client.get("/admin/compliance", headers=admin_headers).json()["submissions"]
    assert len(queue) == 1
    assert queue[0]["name"] == "Hana"
    assert queue[0]["university"] == "Waseda"
    assert queue[0]["email"] == student.email

    bad = client.put("/admin/compliance", json={"user_id": str(student.id), "status": "maybe"}, headers=admin_headers)
    assert bad.status_code == 400
    missing = client.put("/admin/compliance", json={"status": "approved"}, headers=admin_headers)
    assert missing.status_code == 400
    other = user_factory("obog")
    unknown = client.put("/admin/compliance", json={"user_id": str(other.id), "status": "approved"}, headers=admin_headers)
    assert unknown.status_code == 404
    assert unknown.json()["detail"] == "Student profile not found"

    resp = client.put("/admin/compliance", json={"user_id": str(student.id), "status": "approved"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["compliance_status"] == "approved"
    assert resp.json()["compliance_reviewed_by"] == str(admin.id)
    assert client.get("/admin/compliance", headers=admin_headers).json()["submissions"] == []

    db_session.expire_all()
    note = db_session.query(models.Notification).filter_by(user_id=student.id).one()
    assert note.title == "Compliance Approved"
    entry = db_session.query(models.AuditLog).filter_by(action_type="compliance_review").one()
    assert entry.target_id == student.id
