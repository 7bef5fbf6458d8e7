"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from app.config import get_settings
from app.database import get_db
from app.dependencies import (
    CurrentUser,
    get_all_resource_services,
    get_auth_service,
    get_auth_strategy,
    get_current_user,
)
from app.errors import NotFoundError
from app.rate_limit import limiter
from app.schemas.auth import (
    AuthResponse,
    DeleteAccountRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UpdateAccountRequest,
    UserResponse,
)
from app.services.auth import AuthService
from app.services.resources import ResourceService
from app.services.strategies import AuthStrategy, TokenStrategy

logger = logging.getLogger("cloud_locker")

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

FORGOT_PASSWORD_MESSAGE = "If an account exists with that email, a password reset token has been sent."


@router.post("/register", response_model=AuthResponse, status_code=201)
@limiter.limit("5/minute")
def register(
    request: Request,
    body: RegisterRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """Register a new user account."""
    user = auth_service.register(db, body.name, body.email, body.password, body.confirm_password)
    return AuthResponse(message="User registered successfully", user=UserResponse.model_validate(user))


@router.post("/login", response_model=AuthResponse)
@limiter.limit("10/minute")
def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    strategy: AuthStrategy = Depends(get_auth_strategy),
) -> AuthResponse:
    """Authenticate and receive a credential cookie (and the bearer token in token mode)."""
    user = auth_service.authenticate(db, body.email, body.password)
    credential = strategy.login(response, user)
    token = credential if isinstance(strategy, TokenStrategy) else None
    return AuthResponse(message="Login successful", user=UserResponse.model_validate(user), token=token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    strategy: AuthStrategy = Depends(get_auth_strategy),
) -> MessageResponse:
    """Clear the credential cookie and any server-side session."""
    strategy.logout(request, response)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
def me(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Return the authenticated user's profile."""
    return UserResponse.model_validate(auth_service.find_by_id(db, user.user_id))


@router.post("/forgot-password", response_model=ForgotPasswordResponse, response_model_exclude_none=True)
@limiter.limit("3/minute")
def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> ForgotPasswordResponse:
    """Request a password reset token. The response never reveals whether the email exists."""
    try:
        token = auth_service.request_password_reset(db, body.email)
    except NotFoundError:
        logger.info("Password reset requested for unknown email")
        token = None

    if not get_settings().EXPOSE_RESET_TOKEN:
        token = None
    return ForgotPasswordResponse(message=FORGOT_PASSWORD_MESSAGE, reset_token=token)


@router.post("/reset-password/{token}", response_model=MessageResponse)
@limiter.limit("5/minute")
def reset_password(
    request: Request,
    token: str,
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Set a new password using a reset token."""
    auth_service.reset_password(db, token, body.password, body.confirm_password)
    return MessageResponse(message="Password reset successful")


@router.put("/update-account", response_model=AuthResponse)
def update_account(
    request: Request,
    body: UpdateAccountRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    strategy: AuthStrategy = Depends(get_auth_strategy),
) -> AuthResponse:
    """Change name, email and/or password of the logged-in user."""
    updated = auth_service.update_account(
        db,
        user.user_id,
        name=body.name,
        email=body.email,
        current_password=body.current_password,
        new_password=body.new_password,
        confirm_new_password=body.confirm_new_password,
    )
    strategy.refresh(request, updated)
    return AuthResponse(message="Account updated successfully", user=UserResponse.model_validate(updated))


@router.delete("/delete-account", response_model=MessageResponse)
def delete_account(
    request: Request,
    response: Response,
    body: DeleteAccountRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    auth_service: AuthService = Depends(get_auth_service),
    strategy: AuthStrategy = Depends(get_auth_strategy),
    resources: list[ResourceService] = Depends(get_all_resource_services),
) -> MessageResponse:
    """Delete the logged-in user's account and everything it owns."""
    auth_service.delete_account(db, user.user_id, body.password, resources=resources)
    strategy.revoke_user(user.user_id)
    strategy.logout(request, response)
    return MessageResponse(message="Account deleted successfully")
