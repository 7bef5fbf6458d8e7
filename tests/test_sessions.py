"""Tests for the server-side session store and session authentication."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from app.dependencies import get_auth_strategy
from app.services.sessions import SessionStore
from app.services.strategies import SESSION_COOKIE_NAME, SessionStrategy


class Clock:
    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class TestSessionStore:
    """In-memory store lifecycle."""

    def test_create_and_read(self):
        store = SessionStore()
        session_id = store.create(1, "Ann", "ann@example.com")
        data = store.read(session_id)
        assert data.user_id == 1
        assert data.email == "ann@example.com"
        assert len(store) == 1

    def test_ids_are_opaque_and_unique(self):
        store = SessionStore()
        ids = {store.create(1, "Ann", "ann@example.com") for _ in range(20)}
        assert len(ids) == 20
        assert all(len(session_id) >= 40 for session_id in ids)

    def test_unknown_id(self):
        assert SessionStore().read("nope") is None

    def test_expiry_evicts(self):
        clock = Clock(datetime(2024, 1, 1, 12, 0))
        store = SessionStore(expire_minutes=60, now=clock)
        session_id = store.create(1, "Ann", "ann@example.com")

        clock.advance(minutes=59)
        assert store.read(session_id) is not None
        clock.advance(minutes=1)
        assert store.read(session_id) is None
        assert len(store) == 0

    def test_refresh_updates_projection(self):
        store = SessionStore()
        session_id = store.create(1, "Ann", "ann@example.com")
        store.refresh(session_id, "Annie", "annie@example.com")
        assert store.read(session_id).name == "Annie"
        assert store.read(session_id).email == "annie@example.com"

    def test_destroy_user_removes_all_sessions(self):
        store = SessionStore()
        store.create(1, "Ann", "ann@example.com")
        store.create(1, "Ann", "ann@example.com")
        keep = store.create(2, "Bob", "bob@example.com")

        assert store.destroy_user(1) == 2
        assert len(store) == 1
        assert store.read(keep) is not None


class TestSessionAuthentication:
    """Endpoints behind the session strategy."""

    @pytest.fixture
    def store(self, client: TestClient) -> SessionStore:
        from main import app

        store = SessionStore()
        strategy = SessionStrategy(store, max_age=3600, secure=False)
        app.dependency_overrides[get_auth_strategy] = lambda: strategy
        return store

    def _login(self, client: TestClient):
        return client.post("/api/auth/login", json={"email": "test@example.com", "password": "password123"})

    def test_login_sets_session_cookie(self, client: TestClient, test_user: dict, store: SessionStore):
        response = self._login(client)
        assert response.status_code == 200
        assert response.json().get("token") is None
        assert SESSION_COOKIE_NAME in response.cookies
        assert len(store) == 1

        me = client.get("/api/auth/me")
        assert me.status_code == 200
        assert me.json()["email"] == "test@example.com"

    def test_bearer_token_not_accepted(self, client: TestClient, test_user: dict, store: SessionStore):
        response = client.get("/api/auth/me", headers=test_user["headers"])
        assert response.status_code == 401

    def test_logout_destroys_session(self, client: TestClient, test_user: dict, store: SessionStore):
        self._login(client)
        session_id = client.cookies.get(SESSION_COOKIE_NAME)

        client.post("/api/auth/logout")
        assert store.read(session_id) is None

        response = client.get("/api/auth/me", cookies={SESSION_COOKIE_NAME: session_id})
        assert response.status_code == 401

    def test_update_refreshes_session(self, client: TestClient, test_user: dict, store: SessionStore):
        self._login(client)
        session_id = client.cookies.get(SESSION_COOKIE_NAME)

        client.put("/api/auth/update-account", json={"name": "Renamed"})
        assert store.read(session_id).name == "Renamed"

    def test_delete_account_revokes_sessions(self, client: TestClient, test_user: dict, store: SessionStore):
        self._login(client)
        response = client.request("DELETE", "/api/auth/delete-account", json={"password": "password123"})
        assert response.status_code == 200
        assert len(store) == 0
