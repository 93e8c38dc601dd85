import uuid

import pytest

from senpai.db import models
from senpai.services.meeting_service import REVIEW_REASON_CONFLICT, REVIEW_REASON_OFFPLATFORM
from senpai.services.messaging_service import get_or_create_thread


@pytest.fixture
def pair(user_factory, auth_headers, db_session):
    student = user_factory("student", name="Hana")
    obog = user_factory("obog", name="Ken")
    thread = get_or_create_thread(db_session, obog.id, student.id)
    return {
        "student": student,
        "obog": obog,
        "thread_id": thread.id,
        "student_headers": auth_headers(student),
        "obog_headers": auth_headers(obog),
    }


def _act(client, pair, side, action, **extra):
    return client.put(f"/meetings/{pair['thread_id']}", json={"action": action, **extra}, headers=pair[f"{side}_headers"])


def _create(client, pair, **body):
    body.setdefault("meeting_date_time", "2030-04-01 10:00")
    return client.post(f"/meetings/{pair['thread_id']}", json=body, headers=pair["student_headers"])


def test_no_meeting_yet(client, pair):
    resp = client.get(f"/meetings/{pair['thread_id']}", headers=pair["student_headers"])
    assert resp.status_code == 200
    assert resp.json() == {"meeting": None}
    assert _act(client, pair, "student", "confirm").status_code == 404


def test_create_assigns_roles_and_notifies(client, pair, db_session):
    resp = _create(client, pair)
    assert resp.status_code == 200, resp.text
    meeting = resp.json()["meeting"]
    assert meeting["student_id"] == str(pair["student"].id)
    assert meeting["obog_id"] == str(pair["obog"].id)
    assert meeting["status"] == "unconfirmed"

    db_session.expire_all()
    note = db_session.query(models.Notification).filter_by(user_id=pair["obog"].id).one()
    assert note.title == "New Meeting Request"
    assert note.message == "You have a new meeting request for 2030-04-01 10:00"


def test_update_only_sent_fields(client, pair):
    _create(client, pair, meeting_url="https://meet.example/abc")
    resp = client.post(
        f"/meetings/{pair['thread_id']}",
        json={"meeting_url": "https://meet.example/xyz"},
        headers=pair["obog_headers"],
    )
    meeting = resp.json()["meeting"]
    assert meeting["meeting_url"] == "https://meet.example/xyz"
    assert meeting["meeting_date_time"] == "2030-04-01 10:00"

    logs = client.get(f"/meetings/{pair['thread_id']}/logs", headers=pair["student_headers"]).json()["logs"]
    assert [log["operation_type"] for log in logs] == ["create", "update_url"]
    assert logs[1]["old_value"]["meeting_url"] == "https://meet.example/abc"


def test_outsider_rejected(client, pair, user_factory, auth_headers):
    _create(client, pair)
    outsider = auth_headers(user_factory("student"))
    assert client.get(f"/meetings/{pair['thread_id']}", headers=outsider).status_code == 403
    assert client.post(f"/meetings/{pair['thread_id']}", json={}, headers=outsider).status_code == 403
    resp = client.put(f"/meetings/{pair['thread_id']}", json={"action": "complete"}, headers=outsider)
    assert resp.status_code == 403
    assert client.get(f"/meetings/{uuid.uuid4()}", headers=outsider).status_code == 404


def test_confirm_requires_both_terms(client, pair, db_session):
    _create(client, pair)
    early = _act(client, pair, "student", "confirm")
    assert early.status_code == 400
    assert early.json()["detail"] == "Both parties must accept terms before confirming"

    assert _act(client, pair, "student", "accept_terms").json()["meeting"]["student_terms_accepted"] is True
    _act(client, pair, "obog", "accept_terms")
    confirmed = _act(client, pair, "obog", "confirm").json()["meeting"]
    assert confirmed["status"] == "confirmed"
    assert confirmed["display_status"] == "pending_operation"

    db_session.expire_all()
    titles = [n.title for n in db_session.query(models.Notification).filter_by(user_id=pair["student"].id)]
    assert titles == ["Meeting Confirmed"]


def _confirm(client, pair):
    _create(client, pair)
    _act(client, pair, "student", "accept_terms")
    _act(client, pair, "obog", "accept_terms")
    _act(client, pair, "obog", "confirm")


def test_completion_needs_student_report(client, pair, db_session):
    _confirm(client, pair)
    half = _act(client, pair, "obog", "complete").json()["meeting"]
    assert half["status"] == "confirmed"
    assert half["obog_post_status"] == "completed"
    done = _act(client, pair, "student", "complete").json()["meeting"]
    assert done["status"] == "completed"
    db_session.expire_all()
    titles = [n.title for n in db_session.query(models.Notification).filter_by(user_id=pair["obog"].id)]
    assert "Meeting Completed" in titles


def test_conflicting_reports_flag_review(client, pair):
    _confirm(client, pair)
    _act(client, pair, "student", "complete")
    meeting = _act(client, pair, "obog", "mark_no_show").json()["meeting"]
    assert meeting["requires_review"] is True
    assert meeting["review_reason"] == REVIEW_REASON_CONFLICT
    assert meeting["obog_post_status"] == "no-show"


def test_cancel_message_names_actor(client, pair, db_session):
    _create(client, pair)
    meeting = _act(client, pair, "obog", "cancel").json()["meeting"]
    assert meeting["status"] == "cancelled"
    db_session.expire_all()
    note = (
        db_session.query(models.Notification)
        .filter_by(user_id=pair["student"].id, title="Meeting Cancelled")
        .one()
    )
    assert note.message.endswith("by Ken")


@pytest.mark.parametrize("rating", [0, 6, None])
def test_evaluation_rating_validated(client, pair, rating):
    _create(client, pair)
    resp = _act(client, pair, "student", "submit_evaluation", rating=rating)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Rating must be an integer between 1 and 5"


def test_evaluation_recorded_per_side(client, pair):
    _create(client, pair)
    meeting = _act(client, pair, "obog", "submit_evaluation", rating=4, comment="Motivated").json()["meeting"]
    assert meeting["obog_evaluated"] is True
    assert meeting["obog_rating"] == 4
    assert meeting["obog_evaluation_comment"] == "Motivated"
    assert meeting["student_evaluated"] is False


def test_additional_question_offplatform_flag(client, pair):
    _create(client, pair)
    denied = _act(client, pair, "obog", "submit_additional_question", additional_question={"offered": True})
    assert denied.status_code == 403

    resp = _act(
        client, pair, "student", "submit_additional_question",
        additional_question={"offered": True, "types": ["internship"], "evidence_description": "DM on LinkedIn"},
    )
    meeting = resp.json()["meeting"]
    assert meeting["student_additional_question_answered"] is True
    assert meeting["student_opportunity_types"] == ["internship"]
    assert meeting["requires_review"] is True
    assert meeting["review_reason"] == REVIEW_REASON_OFFPLATFORM


def test_invalid_action(client, pair):
    _create(client, pair)
    resp = _act(client, pair, "student", "reschedule")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid action"


def test_admin_can_cancel_but_not_act_for_a_side(client, pair, user_factory, auth_headers):
    _create(client, pair)
    admin = auth_headers(user_factory("admin"))
    side = client.put(f"/meetings/{pair['thread_id']}", json={"action": "accept_terms"}, headers=admin)
    assert side.status_code == 403
    cancel = client.put(f"/meetings/{pair['thread_id']}", json={"action": "cancel"}, headers=admin)
    assert cancel.status_code == 200
    logs = client.get(f"/meetings/{pair['thread_id']}/logs", headers=admin).json()["logs"]
    assert logs[-1]["operation_type"] == "cancel"
    assert logs[-1]["new_value"]["status"] == "cancelled"
