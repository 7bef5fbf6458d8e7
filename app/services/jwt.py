"""JWT Token Service."""

from datetime import datetime, timedelta, timezone

from jose import ExpiredSignatureError, JWTError, jwt

from app.config import Settings, get_settings
from app.errors import AuthError


class JWTService:
    """Issues and verifies short-lived bearer tokens carrying only the user id."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.secret_key = settings.JWT_SECRET_KEY
        self.algorithm = settings.JWT_ALGORITHM
        self.expire_minutes = settings.JWT_EXPIRE_MINUTES

    def issue(self, user_id: int) -> str:
        """Create a signed token for the given user."""
        expire = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        payload = {"sub": str(user_id), "exp": expire}
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> int:
        """Validate a token and return the user id it was issued for.

        Raises AuthError with reason ``expired`` for a correctly signed but
        stale token and ``invalid`` for anything we did not sign.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise AuthError("Token has expired", reason="expired") from None
        except JWTError:
            raise AuthError("Invalid token", reason="invalid") from None

        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError):
            raise AuthError("Invalid token", reason="invalid") from None


_jwt_service: JWTService | None = None


def get_jwt_service() -> JWTService:
    """Get singleton JWT service instance."""
    global _jwt_service
    if _jwt_service is None:
        _jwt_service = JWTService()
    return _jwt_service
