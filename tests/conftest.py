"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.dependencies import get_blob_backend, get_notifier
from app.models.resources import Folder, Image, Note, Pdf  # noqa: F401
from app.models.user import User  # noqa: F401
from app.services.auth import AuthService
from app.storage.local import LocalBlobBackend


class RecordingNotifier:
    """Collects messages instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[dict] = []

    def send(self, to_email: str, subject: str, text_body: str) -> None:
        self.sent.append({"to": to_email, "subject": subject, "body": text_body})


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="blob_backend")
def blob_backend_fixture(tmp_path):
    return LocalBlobBackend(tmp_path / "uploads")


@pytest.fixture(name="notifier")
def notifier_fixture():
    return RecordingNotifier()


@pytest.fixture(name="client")
def client_fixture(db_session: Session, blob_backend: LocalBlobBackend, notifier: RecordingNotifier):
    """Create a test client with overridden collaborators and disabled rate limiting."""
    from app.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_blob_backend] = lambda: blob_backend
    app.dependency_overrides[get_notifier] = lambda: notifier
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


def _make_user(db_session: Session, notifier: RecordingNotifier, name: str, email: str) -> dict:
    from app.services.jwt import get_jwt_service

    auth_service = AuthService(notifier)
    user = auth_service.register(db_session, name, email, "password123", "password123")
    token = get_jwt_service().issue(user.id)
    return {
        "user_id": user.id,
        "email": user.email,
        "name": user.name,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session, notifier: RecordingNotifier):
    """Create a test user and return its data, token and auth headers."""
    return _make_user(db_session, notifier, "Test User", "test@example.com")


@pytest.fixture(name="other_user")
def other_user_fixture(db_session: Session, notifier: RecordingNotifier):
    """A second account, for ownership checks."""
    return _make_user(db_session, notifier, "Other User", "other@example.com")
