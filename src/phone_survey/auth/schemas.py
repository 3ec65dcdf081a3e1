"""
Pydantic schemas for authentication.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TokenPayload(BaseModel):
    """Claims of an access token issued by the auth service."""

    model_config = ConfigDict(extra="allow")

    sub: str = Field(..., description="Auth service user id")
    exp: datetime = Field(..., description="Expiration time")
    iat: datetime | None = Field(None, description="Issued at time")
    email: str | None = Field(None, description="User email")
    role: str | None = Field(None, description="Auth service role, e.g. 'authenticated'")
    session_id: str | None = Field(None, description="Auth service session id")


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class SignUpRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    name: str | None = None


class ResetPasswordRequest(BaseModel):
    email: str | None = None


class PasswordUpdateRequest(BaseModel):
    password: str | None = None


class ProfileUpdateRequest(BaseModel):
    name: str | None = None


class AuthUser(BaseModel):
    """Application view of a signed-in user."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    name: str | None = None
    role: str = "user"
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResult(BaseModel):
    """Sign-in or sign-up outcome as returned by the auth service."""

    user: dict[str, Any] | None = None
    session: dict[str, Any] | None = None
