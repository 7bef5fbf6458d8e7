"""Authentication service: registration, login, account changes and password reset."""

import logging
import secrets
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.database import commit, utcnow
from app.errors import AuthError, ConflictError, InvalidTokenError, NotFoundError, ValidationError
from app.models.user import User
from app.services.mail import Notifier, reset_completed_message, reset_requested_message
from app.services.passwords import hash_password, verify_password

if TYPE_CHECKING:
    from app.services.resources import ResourceService

logger = logging.getLogger("cloud_locker")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_email(email: str) -> str:
    """Return the normalized address, or raise ValidationError if it is not a valid email."""
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        raise ValidationError("Invalid email address") from None
    return normalize_email(email)


class AuthService:
    """Handles user registration, authentication and password recovery."""

    def __init__(
        self,
        notifier: Notifier,
        settings: Settings | None = None,
        now: Callable[[], datetime] = utcnow,
    ) -> None:
        self.notifier = notifier
        self.settings = settings or get_settings()
        self.now = now

    # --- credential store ---

    def find_by_email(self, db: Session, email: str) -> User | None:
        return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()

    def find_by_id(self, db: Session, user_id: int) -> User | None:
        return db.get(User, user_id)

    def _check_new_password(self, password: str, confirm_password: str | None, label: str = "Passwords") -> None:
        if password != confirm_password:
            raise ValidationError(f"{label} do not match")
        if len(password) < self.settings.MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {self.settings.MIN_PASSWORD_LENGTH} characters")

    def register(
        self,
        db: Session,
        name: str | None,
        email: str | None,
        password: str | None,
        confirm_password: str | None,
    ) -> User:
        """Register a new user.

        Raises ValidationError for missing fields or a bad password and
        ConflictError when the email already has an account.
        """
        if not (name and name.strip() and email and email.strip() and password and confirm_password):
            raise ValidationError("All fields are required")
        email = check_email(email)
        self._check_new_password(password, confirm_password)

        if self.find_by_email(db, email):
            raise ConflictError("User already exists")

        user = User(
            name=name.strip(),
            email=email,
            password_hash=hash_password(password),
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration for the same email
            db.rollback()
            raise ConflictError("User already exists") from None
        db.refresh(user)

        logger.info("Registered user %s", user.id)
        return user

    def authenticate(self, db: Session, email: str | None, password: str | None) -> User:
        """Authenticate a user by email and password.

        Unknown emails and wrong passwords fail identically.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self.find_by_email(db, email)
        if not verify_password(password, user.password_hash if user else None) or user is None:
            raise AuthError("Invalid email or password", reason="credentials")

        user.last_login_at = self.now()
        commit(db)
        return user

    def update_account(
        self,
        db: Session,
        user_id: int,
        name: str | None = None,
        email: str | None = None,
        current_password: str | None = None,
        new_password: str | None = None,
        confirm_new_password: str | None = None,
    ) -> User:
        """Apply a partial profile update. Only supplied fields change."""
        user = self.find_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")

        updates: dict[str, str] = {}
        if name and name.strip():
            updates["name"] = name.strip()

        if email and normalize_email(email) != user.email:
            email = check_email(email)
            if self.find_by_email(db, email):
                raise ConflictError("Email already in use")
            updates["email"] = email

        if new_password:
            if not current_password:
                raise ValidationError("Current password is required to set a new password")
            if not confirm_new_password:
                raise ValidationError("Please confirm your new password")
            self._check_new_password(new_password, confirm_new_password, label="New passwords")
            if not verify_password(current_password, user.password_hash):
                raise AuthError("Current password is incorrect", reason="credentials")
            updates["password_hash"] = hash_password(new_password)

        if not updates:
            raise ValidationError("No updates provided")

        for field, value in updates.items():
            setattr(user, field, value)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError("Email already in use") from None
        db.refresh(user)
        return user

    def delete_account(
        self,
        db: Session,
        user_id: int,
        password: str | None,
        resources: Iterable["ResourceService"] = (),
    ) -> None:
        """Delete the account after re-checking the password.

        Owned records in ``resources`` are purged first; their blobs are
        removed best-effort.
        """
        if not password:
            raise ValidationError("Password is required to delete account")

        user = self.find_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found")
        if not verify_password(password, user.password_hash):
            raise AuthError("Password is incorrect", reason="credentials")

        for service in resources:
            service.purge_user(db, user_id)

        db.delete(user)
        commit(db)
        logger.info("Deleted user %s", user_id)

    # --- password reset ---

    def request_password_reset(self, db: Session, email: str | None) -> str:
        """Issue a single-use reset token and send it to the user.

        Raises NotFoundError when no account has this email; callers facing
        the public decide whether to reveal that.
        """
        if not email:
            raise ValidationError("Email is required")

        user = self.find_by_email(db, email)
        if not user:
            raise NotFoundError("User not found")

        token = secrets.token_hex(32)
        user.reset_token = token
        user.reset_token_expires_at = self.now() + timedelta(minutes=self.settings.RESET_TOKEN_EXPIRE_MINUTES)
        commit(db)

        subject, body = reset_requested_message(token, self.settings.RESET_TOKEN_EXPIRE_MINUTES)
        self.notifier.send(user.email, subject, body)
        return token

    def reset_password(
        self,
        db: Session,
        token: str,
        password: str | None,
        confirm_password: str | None,
    ) -> User:
        """Set a new password using a pending reset token."""
        if not password or not confirm_password:
            raise ValidationError("All fields are required")
        self._check_new_password(password, confirm_password)

        user = (
            db.query(User)
            .filter(User.reset_token == token, User.reset_token_expires_at > self.now())
            .first()
        )
        if not token or not user:
            raise InvalidTokenError("Invalid or expired token")

        user.password_hash = hash_password(password)
        user.reset_token = None
        user.reset_token_expires_at = None
        commit(db)

        subject, body = reset_completed_message()
        self.notifier.send(user.email, subject, body)
        return user
