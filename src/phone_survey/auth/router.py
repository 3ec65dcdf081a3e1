"""
Authentication API router.
"""

from collections.abc import AsyncGenerator
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.auth.client import AuthClient
from phone_survey.auth.context import AuthContext, require_auth_context
from phone_survey.auth.schemas import (
    LoginRequest,
    PasswordUpdateRequest,
    ProfileUpdateRequest,
    ResetPasswordRequest,
    SignUpRequest,
)
from phone_survey.auth.service import AuthService
from phone_survey.shared.database import get_db_session
from phone_survey.shared.exceptions import ValidationError
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


async def get_auth_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> AsyncGenerator[AuthService, None]:
    """Dependency for the auth service; the HTTP client lives for one request."""
    client = AuthClient()
    try:
        yield AuthService(session, client)
    finally:
        await client.close()


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
AuthContextDep = Annotated[AuthContext, Depends(require_auth_context)]


@router.post("/login")
async def login(body: LoginRequest, service: AuthServiceDep) -> dict[str, Any]:
    """Password sign-in.

    Returns:
        ``{user, session}`` from the auth service.

    Raises:
        ValidationError: 400 when email or password is missing.
        AuthenticationError: 401 when the credentials are rejected.
    """
    if not body.email or not body.password:
        raise ValidationError("Email and password are required")
    result = await service.sign_in(body.email, body.password)
    return result.model_dump()


@router.post("/signup")
async def signup(
    body: SignUpRequest,
    service: AuthServiceDep,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    if not body.email or not body.password:
        raise ValidationError("Email and password are required")
    result = await service.sign_up(body.email, body.password, body.name)
    await session.commit()
    return result.model_dump()


@router.post("/logout")
async def logout(context: AuthContextDep, service: AuthServiceDep) -> dict[str, bool]:
    return {"success": await service.sign_out(context)}


@router.get("/me")
async def me(context: AuthContextDep, service: AuthServiceDep) -> dict[str, Any]:
    """Profile and session of the caller."""
    user = await service.get_user(context)
    return {
        "user": user.model_dump(mode="json") if user else None,
        "session": service.get_session(context),
        "isAdmin": bool(user and user.role == "admin"),
    }


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, service: AuthServiceDep) -> dict[str, bool]:
    if not body.email:
        raise ValidationError("Email is required")
    return {"success": await service.reset_password(body.email)}


@router.put("/password")
async def update_password(
    body: PasswordUpdateRequest,
    context: AuthContextDep,
    service: AuthServiceDep,
) -> dict[str, bool]:
    if not body.password:
        raise ValidationError("Password is required")
    return {"success": await service.update_password(context, body.password)}


@router.put("/profile")
async def update_profile(
    body: ProfileUpdateRequest,
    context: AuthContextDep,
    service: AuthServiceDep,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> dict[str, Any]:
    if not body.name or not body.name.strip():
        raise ValidationError("Name is required")
    user = await service.update_profile(context, body.name.strip())
    await session.commit()
    return {"success": True, "user": user.model_dump(mode="json")}
