"""Error taxonomy shared by services and routers."""


class CloudLockerError(Exception):
    """Base class for errors rendered to API callers."""

    status_code: int = 500
    default_detail: str = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(CloudLockerError):
    status_code = 400
    default_detail = "Invalid request"


class InvalidTokenError(CloudLockerError):
    """Password reset token is unknown, already used, or expired."""

    status_code = 400
    default_detail = "Invalid or expired token"


class AuthError(CloudLockerError):
    """Caller could not be authenticated.

    ``reason`` is one of ``unauthenticated``, ``invalid``, ``expired`` or
    ``credentials`` so callers can tell a stale token from a forged one.
    """

    status_code = 401
    default_detail = "Not authenticated"

    def __init__(self, detail: str | None = None, reason: str = "unauthenticated") -> None:
        super().__init__(detail)
        self.reason = reason


class ConflictError(CloudLockerError):
    status_code = 409
    default_detail = "Resource already exists"


class NotFoundError(CloudLockerError):
    status_code = 404
    default_detail = "Not found"


class BackendError(CloudLockerError):
    """Database or blob storage failure."""

    status_code = 500
    default_detail = "Storage backend failure"
