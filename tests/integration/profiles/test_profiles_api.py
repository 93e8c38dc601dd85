import uuid

from senpai.db import models


def test_get_own_profile(client, user_factory, auth_headers):
    user = user_factory("student", profile={"university": "Keio"})
    resp = client.get("/profile", headers=auth_headers(user))
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"]["email"] == user.email
    assert data["profile"]["university"] == "Keio"
    assert data["profile"]["compliance_status"] == "pending"


def test_update_profile_ignores_account_fields(client, user_factory, auth_headers, db_session):
    user = user_factory("student", credits=5)
    body = {
        "name": "  New Name ",
        "email": "hijack@waseda.jp",
        "role": "admin",
        "credits": 9999,
        "strikes": 0,
        "profile": {"university": "Tohoku", "skills": ["python"], "compliance_status": "approved"},
    }
    resp = client.put("/profile", json=body, headers=auth_headers(user))
    assert resp.status_code == 200, resp.text
    data = resp.json()
    assert data["message"] == "Profile updated successfully"
    assert data["user"]["name"] == "New Name"
    assert data["profile"]["skills"] == ["python"]

    db_session.expire_all()
    fresh = db_session.get(models.User, user.id)
    assert fresh.email == user.email
    assert fresh.role == "student"
    assert fresh.credits == 5
    profile = db_session.query(models.StudentProfile).filter_by(user_id=user.id).one()
    assert profile.compliance_status == "pending"


def test_update_profile_rejects_blank_name(client, user_factory, auth_headers):
    user = user_factory("obog")
    resp = client.put("/profile", json={"name": "   "}, headers=auth_headers(user))
    assert resp.status_code == 400


def test_update_profile_bad_field_type(client, user_factory, auth_headers):
    user = user_factory("obog")
    resp = client.put("/profile", json={"profile": {"topics": "not-a-list"}}, headers=auth_headers(user))
    assert resp.status_code == 400
    assert "topics" in resp.json()["detail"]


def test_public_profile_hides_private_fields(client, user_factory):
    student = user_factory("student", profile={"nickname": "Hana"})
    resp = client.get(f"/users/{student.id}")
    assert resp.status_code == 200
    data = resp.json()
    assert "email" not in data["user"]
    assert "credits" not in data["user"]
    assert "compliance_status" not in data["profile"]
    assert data["profile"]["nickname"] == "Hana"


def test_public_profile_unknown(client):
    resp = client.get(f"/users/{uuid.uuid4()}")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "User not found"


def test_obog_directory_sorted_and_excludes_banned(client, user_factory):
    user_factory("obog", name="zed", profile={"company": "Z"})
    user_factory("obog", name="Alice", profile={"company": "A"})
    user_factory("obog", name="Banned", is_banned=True)
    user_factory("student", name="Not Listed")
    resp = client.get("/obog")
    assert resp.status_code == 200
    names = [entry["user"]["name"] for entry in resp.json()["users"]]
    assert names == ["Alice", "zed"]


def test_students_list_requires_corporate_ob(client, user_factory, auth_headers):
    student = user_factory("student")
    resp = client.get("/students", headers=auth_headers(student))
    assert resp.status_code == 403


def test_students_list_only_completed(client, user_factory, auth_headers):
    user_factory("student", name="Done", profile={"profile_completed": True, "university": "Kyoto"})
    user_factory("student", name="Draft")
    scout = user_factory("corporate_ob")
    resp = client.get("/students", headers=auth_headers(scout))
    assert resp.status_code == 200
    students = resp.json()["students"]
    assert [s["name"] for s in students] == ["Done"]
    assert "compliance_status" not in students[0]["profile"]


def test_delete_account_cascades(client, user_factory, auth_headers, db_session):
    obog = user_factory("obog")
    student = user_factory("student", credits=50)
    headers = auth_headers(student)
    student_id, obog_id = student.id, obog.id
    client.post(
        "/messages",
        json={"to_user_id": str(obog_id), "content": "Hello senpai"},
        headers=headers,
    )
    resp = client.delete("/profile", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Account deleted successfully"

    db_session.expire_all()
    assert db_session.query(models.User).filter_by(id=student_id).count() == 0
    assert db_session.query(models.StudentProfile).filter_by(user_id=student_id).count() == 0
    assert db_session.query(models.Thread).count() == 0
    assert db_session.query(models.Message).count() == 0
    assert db_session.query(models.AuthToken).filter_by(user_id=student_id).count() == 0
    assert db_session.query(models.User).filter_by(id=obog_id).count() == 1
    assert client.get("/profile", headers=headers).status_code == 401
