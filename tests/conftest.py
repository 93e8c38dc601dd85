import os
import uuid

os.environ.setdefault("PYTEST_RUNNING", "1")

import pytest
from fastapi.testclient import TestClient

from senpai.db import models
from senpai.db.database import SessionLocal, engine
from senpai.db.repositories import users as user_repo
from senpai.services.transactional_email_service import reset_transactional_email_service_for_tests
from senpai.utils import token_crypto
from senpai.utils.feature_flags import refresh_feature_flag_cache

DEFAULT_PASSWORD = "correct-horse-42"

_EMAIL_ENV = (
    "EMAIL_PROVIDER",
    "RESEND_API_KEY",
    "SENDGRID_API_KEY",
    "MAILGUN_API_KEY",
    "MAILGUN_DOMAIN",
)


@pytest.fixture(scope="session", autouse=True)
def _schema():
    models.Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Known-good env per test: no email provider, no dev mode, default flags."""
    for var in _EMAIL_ENV + ("DEV_MODE", "ADMIN_EMAILS", "AUTO_NO_SHOW_ENABLED",
                             "BLOCK_FREE_EMAIL_DOMAINS", "EMAIL_NOTIFICATIONS_ENABLED"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("APP_BASE_URL", "http://localhost:3000")
    refresh_feature_flag_cache()
    reset_transactional_email_service_for_tests()
    yield
    refresh_feature_flag_cache()
    reset_transactional_email_service_for_tests()


@pytest.fixture(autouse=True)
def _wipe_tables():
    yield
    with engine.begin() as conn:
        for table in reversed(models.Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    from senpai.api.main import app
    return TestClient(app)


@pytest.fixture
def user_factory(db_session):
    """Create a user (and role profile) directly in the database.

    ``user_factory(role="obog", profile={"nickname": "Ken"}, credits=50)``
    """
    def _make(role="student", *, name=None, email=None, password=DEFAULT_PASSWORD, profile=None, credits=0, **fields):
        suffix = uuid.uuid4().hex[:8]
        user = user_repo.create_user_with_profile(
            db_session,
            email=email or f"{role}_{suffix}@waseda.jp",
            password_hash=token_crypto.hash_password(password),
            name=name or f"{role.title()} {suffix}",
            role=role,
            profile_fields=dict(profile or {}),
        )
        user.credits = credits
        for key, value in fields.items():
            setattr(user, key, value)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make


@pytest.fixture
def auth_headers(client):
    """Log a user in through POST /auth/login and return bearer headers."""
    def _headers(user, password=DEFAULT_PASSWORD):
        resp = client.post("/auth/login", json={"email": user.email, "password": password})
        assert resp.status_code == 200, resp.text
        return {"Authorization": f"Bearer {resp.json()['access_token']}"}
    return _headers
