"""Pydantic schemas for authentication endpoints.

Request fields are optional so missing values reach the service and come back
as a 400 with a readable message instead of a schema error.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    confirm_password: str | None = Field(default=None, alias="confirmPassword")

    model_config = {"populate_by_name": True}


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: str | None = None


class ResetPasswordRequest(BaseModel):
    password: str | None = None
    confirm_password: str | None = Field(default=None, alias="confirmPassword")

    model_config = {"populate_by_name": True}


class UpdateAccountRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    current_password: str | None = Field(default=None, alias="currentPassword")
    new_password: str | None = Field(default=None, alias="newPassword")
    confirm_new_password: str | None = Field(default=None, alias="confirmNewPassword")

    model_config = {"populate_by_name": True}


class DeleteAccountRequest(BaseModel):
    password: str | None = None


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    message: str
    user: UserResponse
    token: str | None = None


class ForgotPasswordResponse(BaseModel):
    message: str
    reset_token: str | None = Field(default=None, serialization_alias="resetToken")


class MessageResponse(BaseModel):
    message: str
