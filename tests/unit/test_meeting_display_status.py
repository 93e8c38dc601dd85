import pytest

from senpai.db import models
from senpai.services.meeting_service import meeting_display_status


@pytest.mark.parametrize(
    "status,student,obog,expected",
    [
        ("confirmed", "completed", None, "completed"),
        ("confirmed", "completed", "completed", "completed"),
        ("unconfirmed", "completed", "", "completed"),
        ("confirmed", "completed", "no-show", "no-show"),
        ("confirmed", None, "no-show", "no-show"),
        ("unconfirmed", "no-show", None, "no-show"),
        ("confirmed", None, None, "pending_operation"),
        ("unconfirmed", None, None, "unconfirmed"),
        ("confirmed", None, "completed", "confirmed"),
        ("cancelled", "completed", "completed", "cancelled"),
        ("completed", None, "no-show", "completed"),
    ],
)
def test_display_status(status, student, obog, expected):
    meeting = models.Meeting(status=status, student_post_status=student, obog_post_status=obog)
    assert meeting_display_status(meeting) == expected
