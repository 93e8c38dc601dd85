from senpai.errors import ConflictError, InsufficientCreditsError, ValidationFailed


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_service_error_payloads():
    assert ValidationFailed("bad").to_payload() == {"detail": "bad"}
    assert ConflictError("taken").status_code == 409
    err = InsufficientCreditsError(required=10, available=3)
    assert err.status_code == 402
    assert err.to_payload() == {"detail": "Insufficient credits", "insufficient_credits": True}


def test_auth_errors_render_detail(client):
    missing = client.get("/auth/me")
    assert missing.status_code == 401
    assert missing.json() == {"detail": "Authentication required"}

    malformed = client.get("/auth/me", headers={"Authorization": "Bearer nope"})
    assert malformed.status_code == 401
    assert malformed.json()["detail"] == "Invalid token format"


def test_no_trailing_slash_redirect(client, user_factory, auth_headers):
    user = user_factory()
    resp = client.get("/bookings/", headers=auth_headers(user), follow_redirects=False)
    assert resp.status_code == 404
