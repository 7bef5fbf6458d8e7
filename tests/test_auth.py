"""Tests for authentication endpoints and flows."""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import Session

from app.config import get_settings
from app.errors import AuthError, ConflictError, InvalidTokenError, NotFoundError, ValidationError
from app.models.user import User
from app.services.auth import AuthService
from app.services.jwt import JWTService, get_jwt_service

REGISTER_BODY = {
    "name": "New User",
    "email": "new@example.com",
    "password": "password123",
    "confirmPassword": "password123",
}


class TestRegistration:
    """Tests for user registration."""

    def test_register_api_success(self, client: TestClient):
        """Register a new user via API."""
        response = client.post("/api/auth/register", json=REGISTER_BODY)
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "new@example.com"
        assert data["user"]["name"] == "New User"
        assert "password_hash" not in data["user"]

    def test_register_missing_field(self, client: TestClient):
        """All fields are required."""
        body = {k: v for k, v in REGISTER_BODY.items() if k != "name"}
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "All fields are required"

    @pytest.mark.parametrize("email", ["@", "a@", "@@@", "foo @ bar", "no-at-sign.com"])
    def test_register_invalid_email(self, client: TestClient, db_session: Session, email: str):
        """Malformed addresses are rejected and nothing is stored."""
        response = client.post("/api/auth/register", json={**REGISTER_BODY, "email": email})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid email address"
        assert db_session.query(User).count() == 0

    def test_register_password_mismatch(self, client: TestClient):
        """Confirmation must match the password."""
        response = client.post("/api/auth/register", json={**REGISTER_BODY, "confirmPassword": "different123"})
        assert response.status_code == 400
        assert "do not match" in response.json()["detail"]

    def test_register_short_password(self, client: TestClient):
        response = client.post(
            "/api/auth/register", json={**REGISTER_BODY, "password": "abc", "confirmPassword": "abc"}
        )
        assert response.status_code == 400
        assert "at least" in response.json()["detail"]

    def test_register_duplicate_email(self, client: TestClient, test_user: dict, db_session: Session):
        """Second registration conflicts and leaves the first account untouched."""
        before = db_session.query(User).filter(User.email == "test@example.com").one()
        original_hash = before.password_hash

        response = client.post(
            "/api/auth/register",
            json={**REGISTER_BODY, "email": "TEST@example.com", "name": "Impostor"},
        )
        assert response.status_code == 409
        assert "already exists" in response.json()["detail"]

        db_session.expire_all()
        after = db_session.query(User).filter(User.email == "test@example.com").one()
        assert after.name == "Test User"
        assert after.password_hash == original_hash
        assert db_session.query(User).count() == 1

    def test_password_is_hashed(self, test_user: dict, db_session: Session):
        user = db_session.get(User, test_user["user_id"])
        assert user.password_hash != "password123"
        assert user.password_hash.startswith("$2")


class TestLogin:
    """Tests for user login."""

    def test_login_api_success(self, client: TestClient, test_user: dict):
        """Login with valid credentials sets the token cookie."""
        response = client.post("/api/auth/login", json={"email": "test@example.com", "password": "password123"})
        assert response.status_code == 200
        data = response.json()
        assert data["user"]["email"] == "test@example.com"
        assert data["token"]
        assert "token" in response.cookies

        set_cookie = response.headers["set-cookie"].lower()
        assert "httponly" in set_cookie
        assert "samesite=strict" in set_cookie
        assert "max-age=3600" in set_cookie

    def test_login_case_insensitive(self, client: TestClient, test_user: dict):
        response = client.post("/api/auth/login", json={"email": "TEST@EXAMPLE.COM", "password": "password123"})
        assert response.status_code == 200

    def test_login_failures_are_indistinguishable(self, client: TestClient, test_user: dict):
        """Wrong password and unknown email produce the same response."""
        wrong_password = client.post(
            "/api/auth/login", json={"email": "test@example.com", "password": "wrongpassword"}
        )
        unknown_email = client.post(
            "/api/auth/login", json={"email": "nobody@example.com", "password": "wrongpassword"}
        )
        assert wrong_password.status_code == unknown_email.status_code == 401
        assert wrong_password.json() == unknown_email.json()
        assert "token" not in wrong_password.cookies

    def test_login_missing_fields(self, client: TestClient):
        response = client.post("/api/auth/login", json={"email": "test@example.com"})
        assert response.status_code == 400

    def test_cookie_authenticates_requests(self, client: TestClient, test_user: dict):
        client.post("/api/auth/login", json={"email": "test@example.com", "password": "password123"})
        response = client.get("/api/auth/me")
        assert response.status_code == 200
        assert response.json()["email"] == "test@example.com"

    def test_logout_clears_cookie(self, client: TestClient, test_user: dict):
        client.post("/api/auth/login", json={"email": "test@example.com", "password": "password123"})
        response = client.post("/api/auth/logout")
        assert response.status_code == 200
        assert client.get("/api/auth/me").status_code == 401


class TestTokens:
    """Tests for token issuing and the authorization gate."""

    def test_token_carries_only_user_id(self, test_user: dict):
        payload = jwt.get_unverified_claims(test_user["token"])
        assert set(payload) == {"sub", "exp"}
        assert payload["sub"] == str(test_user["user_id"])

    def test_verify_round_trip(self):
        service = get_jwt_service()
        assert service.verify(service.issue(42)) == 42

    def test_expired_token_is_distinct_from_invalid(self):
        service = JWTService(get_settings())
        service.expire_minutes = -1
        expired = service.issue(7)

        with pytest.raises(AuthError) as expired_exc:
            get_jwt_service().verify(expired)
        assert expired_exc.value.reason == "expired"

        with pytest.raises(AuthError) as invalid_exc:
            get_jwt_service().verify("invalid.token.here")
        assert invalid_exc.value.reason == "invalid"

    def test_token_signed_with_other_secret_rejected(self, client: TestClient, test_user: dict):
        forged = jwt.encode(
            {"sub": str(test_user["user_id"]), "exp": datetime.utcnow() + timedelta(minutes=5)},
            "not-our-secret",
            algorithm="HS256",
        )
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {forged}"})
        assert response.status_code == 401

    def test_protected_route_requires_auth(self, client: TestClient):
        response = client.get("/api/folders/get-all")
        assert response.status_code == 401
        assert response.json()["detail"] == "Not authenticated"

    def test_bearer_header_accepted(self, client: TestClient, test_user: dict):
        response = client.get("/api/auth/me", headers=test_user["headers"])
        assert response.status_code == 200
        assert response.json()["name"] == "Test User"

    def test_token_of_deleted_user_rejected(self, client: TestClient, test_user: dict):
        response = client.request(
            "DELETE", "/api/auth/delete-account", json={"password": "password123"}, headers=test_user["headers"]
        )
        assert response.status_code == 200

        response = client.get("/api/auth/me", headers=test_user["headers"])
        assert response.status_code == 401


class TestForgotPassword:
    """Tests for the reset request endpoint."""

    def test_existing_email_stores_token_and_notifies(
        self, client: TestClient, test_user: dict, db_session: Session, notifier
    ):
        response = client.post("/api/auth/forgot-password", json={"email": "test@example.com"})
        assert response.status_code == 200
        assert "resetToken" not in response.json()

        user = db_session.query(User).filter(User.email == "test@example.com").first()
        assert user.reset_token is not None
        assert len(user.reset_token) == 64
        assert user.reset_token_expires_at is not None

        assert notifier.sent[-1]["to"] == "test@example.com"
        assert user.reset_token in notifier.sent[-1]["body"]

    def test_unknown_email_gets_same_response(self, client: TestClient, test_user: dict):
        """No account enumeration through the reset endpoint."""
        known = client.post("/api/auth/forgot-password", json={"email": "test@example.com"})
        unknown = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

    def test_token_echoed_only_when_enabled(self, client: TestClient, test_user: dict, monkeypatch):
        monkeypatch.setattr(get_settings(), "EXPOSE_RESET_TOKEN", True)
        response = client.post("/api/auth/forgot-password", json={"email": "test@example.com"})
        assert response.status_code == 200
        assert len(response.json()["resetToken"]) == 64

    def test_service_reports_unknown_email(self, db_session: Session, notifier):
        with pytest.raises(NotFoundError):
            AuthService(notifier).request_password_reset(db_session, "nobody@example.com")
        assert notifier.sent == []


class TestResetPassword:
    """Tests for password reset flow."""

    def test_reset_then_login(self, client: TestClient, test_user: dict, db_session: Session, notifier):
        """Old password stops working, new one works."""
        token = AuthService(notifier).request_password_reset(db_session, "test@example.com")

        response = client.post(
            f"/api/auth/reset-password/{token}",
            json={"password": "newpassword456", "confirmPassword": "newpassword456"},
        )
        assert response.status_code == 200
        assert notifier.sent[-1]["subject"] == "Password Reset Successful"

        old_login = client.post("/api/auth/login", json={"email": "test@example.com", "password": "password123"})
        assert old_login.status_code == 401
        new_login = client.post("/api/auth/login", json={"email": "test@example.com", "password": "newpassword456"})
        assert new_login.status_code == 200

        db_session.expire_all()
        user = db_session.get(User, test_user["user_id"])
        assert user.reset_token is None
        assert user.reset_token_expires_at is None

    def test_token_cannot_be_reused(self, client: TestClient, test_user: dict, db_session: Session, notifier):
        token = AuthService(notifier).request_password_reset(db_session, "test@example.com")
        body = {"password": "newpassword456", "confirmPassword": "newpassword456"}

        assert client.post(f"/api/auth/reset-password/{token}", json=body).status_code == 200
        response = client.post(f"/api/auth/reset-password/{token}", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired token"

    def test_token_expires_after_fifteen_minutes(self, test_user: dict, db_session: Session, notifier):
        issued_at = datetime(2024, 3, 5, 12, 0, 0)
        token = AuthService(notifier, now=lambda: issued_at).request_password_reset(db_session, "test@example.com")

        still_valid = AuthService(notifier, now=lambda: issued_at + timedelta(minutes=14))
        expired = AuthService(notifier, now=lambda: issued_at + timedelta(minutes=15, seconds=1))

        with pytest.raises(InvalidTokenError):
            expired.reset_password(db_session, token, "newpassword456", "newpassword456")
        user = still_valid.reset_password(db_session, token, "newpassword456", "newpassword456")
        assert user.reset_token is None

    def test_invalid_token(self, client: TestClient):
        response = client.post(
            "/api/auth/reset-password/totally-bogus-token",
            json={"password": "newpassword456", "confirmPassword": "newpassword456"},
        )
        assert response.status_code == 400

    def test_mismatched_passwords(self, client: TestClient, test_user: dict, db_session: Session, notifier):
        token = AuthService(notifier).request_password_reset(db_session, "test@example.com")
        response = client.post(
            f"/api/auth/reset-password/{token}",
            json={"password": "newpassword456", "confirmPassword": "other456789"},
        )
        assert response.status_code == 400
        assert "do not match" in response.json()["detail"]


class TestUpdateAccount:
    """Tests for account changes."""

    def test_update_name(self, client: TestClient, test_user: dict):
        response = client.put("/api/auth/update-account", json={"name": "Renamed"}, headers=test_user["headers"])
        assert response.status_code == 200
        assert response.json()["user"]["name"] == "Renamed"

    def test_update_email_conflict(self, client: TestClient, test_user: dict, other_user: dict):
        response = client.put(
            "/api/auth/update-account", json={"email": "other@example.com"}, headers=test_user["headers"]
        )
        assert response.status_code == 409

    def test_update_rejects_invalid_email(self, client: TestClient, test_user: dict, db_session: Session):
        response = client.put("/api/auth/update-account", json={"email": "a@"}, headers=test_user["headers"])
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid email address"
        db_session.expire_all()
        assert db_session.get(User, test_user["user_id"]).email == "test@example.com"

    def test_change_password(self, client: TestClient, test_user: dict):
        response = client.put(
            "/api/auth/update-account",
            json={
                "currentPassword": "password123",
                "newPassword": "brandnew789",
                "confirmNewPassword": "brandnew789",
            },
            headers=test_user["headers"],
        )
        assert response.status_code == 200
        login = client.post("/api/auth/login", json={"email": "test@example.com", "password": "brandnew789"})
        assert login.status_code == 200

    def test_change_password_wrong_current(self, client: TestClient, test_user: dict):
        response = client.put(
            "/api/auth/update-account",
            json={"currentPassword": "wrong", "newPassword": "brandnew789", "confirmNewPassword": "brandnew789"},
            headers=test_user["headers"],
        )
        assert response.status_code == 401

    def test_no_updates(self, client: TestClient, test_user: dict):
        response = client.put("/api/auth/update-account", json={}, headers=test_user["headers"])
        assert response.status_code == 400
        assert response.json()["detail"] == "No updates provided"

    def test_failed_update_changes_nothing(self, test_user: dict, other_user: dict, db_session: Session, notifier):
        with pytest.raises(ConflictError):
            AuthService(notifier).update_account(
                db_session, test_user["user_id"], name="Changed", email="other@example.com"
            )
        db_session.expire_all()
        assert db_session.get(User, test_user["user_id"]).name == "Test User"


class TestDeleteAccount:
    """Tests for account deletion."""

    def test_requires_password(self, client: TestClient, test_user: dict):
        response = client.request("DELETE", "/api/auth/delete-account", json={}, headers=test_user["headers"])
        assert response.status_code == 400

    def test_wrong_password(self, client: TestClient, test_user: dict):
        response = client.request(
            "DELETE", "/api/auth/delete-account", json={"password": "nope"}, headers=test_user["headers"]
        )
        assert response.status_code == 401

    def test_service_validation(self, db_session: Session, notifier):
        with pytest.raises(ValidationError):
            AuthService(notifier).delete_account(db_session, 1, None)


class TestHealthCheck:
    """Tests for health check endpoint."""

    def test_health_check(self, client: TestClient):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["app"] == "cloud-locker"
