"""Ways a caller proves identity. One strategy is active per process."""

from abc import ABC, abstractmethod

from fastapi import Request, Response

from app.config import Settings
from app.errors import AuthError
from app.models.user import User
from app.services.jwt import JWTService
from app.services.sessions import SessionStore

TOKEN_COOKIE_NAME = "token"
SESSION_COOKIE_NAME = "session_id"


class AuthStrategy(ABC):
    """Issues a credential at login and resolves it back to a user id."""

    cookie_name: str

    def __init__(self, max_age: int, secure: bool) -> None:
        self.max_age = max_age
        self.secure = secure

    def _set_cookie(self, response: Response, value: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=value,
            httponly=True,
            samesite="strict",
            secure=self.secure,
            max_age=self.max_age,
        )

    def _clear_cookie(self, response: Response) -> None:
        response.delete_cookie(key=self.cookie_name, httponly=True, samesite="strict", secure=self.secure)

    @abstractmethod
    def login(self, response: Response, user: User) -> str:
        """Attach a fresh credential to the response and return it."""

    @abstractmethod
    def resolve(self, request: Request) -> int:
        """Return the caller's user id or raise AuthError."""

    @abstractmethod
    def logout(self, request: Request, response: Response) -> None: ...

    def refresh(self, request: Request, user: User) -> None:
        """Propagate profile changes into server-side state, if any."""

    def revoke_user(self, user_id: int) -> None:
        """Drop every server-side credential of a deleted user, if any."""


class TokenStrategy(AuthStrategy):
    """Stateless signed bearer tokens, read from the Authorization header or cookie."""

    cookie_name = TOKEN_COOKIE_NAME

    def __init__(self, jwt_service: JWTService, max_age: int, secure: bool) -> None:
        super().__init__(max_age, secure)
        self.jwt_service = jwt_service

    def login(self, response: Response, user: User) -> str:
        token = self.jwt_service.issue(user.id)
        self._set_cookie(response, token)
        return token

    def resolve(self, request: Request) -> int:
        token: str | None = None

        # Check Authorization header first
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header[7:]

        # Fall back to cookie
        if not token:
            token = request.cookies.get(self.cookie_name)

        if not token:
            raise AuthError("Not authenticated")
        return self.jwt_service.verify(token)

    def logout(self, request: Request, response: Response) -> None:
        self._clear_cookie(response)


class SessionStrategy(AuthStrategy):
    """Server-side sessions keyed by an opaque cookie value."""

    cookie_name = SESSION_COOKIE_NAME

    def __init__(self, store: SessionStore, max_age: int, secure: bool) -> None:
        super().__init__(max_age, secure)
        self.store = store

    def login(self, response: Response, user: User) -> str:
        session_id = self.store.create(user.id, user.name, user.email)
        self._set_cookie(response, session_id)
        return session_id

    def resolve(self, request: Request) -> int:
        session_id = request.cookies.get(self.cookie_name)
        if not session_id:
            raise AuthError("Not authenticated")
        data = self.store.read(session_id)
        if data is None:
            raise AuthError("Session expired or invalid", reason="expired")
        return data.user_id

    def logout(self, request: Request, response: Response) -> None:
        session_id = request.cookies.get(self.cookie_name)
        if session_id:
            self.store.destroy(session_id)
        self._clear_cookie(response)

    def refresh(self, request: Request, user: User) -> None:
        session_id = request.cookies.get(self.cookie_name)
        if session_id:
            self.store.refresh(session_id, user.name, user.email)

    def revoke_user(self, user_id: int) -> None:
        self.store.destroy_user(user_id)


def build_auth_strategy(settings: Settings, jwt_service: JWTService, store: SessionStore) -> AuthStrategy:
    """Select the strategy named by AUTH_STRATEGY (``token`` unless ``session``)."""
    if settings.AUTH_STRATEGY == "session":
        return SessionStrategy(store, max_age=settings.SESSION_EXPIRE_MINUTES * 60, secure=settings.is_production)
    return TokenStrategy(jwt_service, max_age=settings.JWT_EXPIRE_MINUTES * 60, secure=settings.is_production)
