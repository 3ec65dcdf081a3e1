"""
Per-request authentication context.

Each request resolves its own caller from the ``Authorization`` header;
nothing about the signed-in user is kept between requests.
"""

from dataclasses import dataclass, field
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header

from phone_survey.auth.jwt import JWTService
from phone_survey.auth.schemas import AuthUser, TokenPayload
from phone_survey.shared.exceptions import AuthenticationError, InvalidTokenError


@dataclass
class AuthContext:
    """The caller of one request."""

    access_token: str | None = None
    payload: TokenPayload | None = None
    # Filled by AuthService.get_user for the lifetime of the request
    user: AuthUser | None = field(default=None, compare=False)

    @property
    def is_authenticated(self) -> bool:
        return self.payload is not None

    @property
    def user_id(self) -> UUID | None:
        if self.payload is None:
            return None
        try:
            return UUID(self.payload.sub)
        except ValueError:
            return None


def get_jwt_service() -> JWTService:
    return JWTService()


def bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise InvalidTokenError("Authorization header must be a Bearer token")
    return token.strip()


async def get_auth_context(
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
    authorization: Annotated[str | None, Header()] = None,
) -> AuthContext:
    """Anonymous context without a header; a present but bad token is a 401."""
    token = bearer_token(authorization)
    if token is None:
        return AuthContext()
    return AuthContext(access_token=token, payload=jwt_service.verify_token(token))


async def require_auth_context(
    context: Annotated[AuthContext, Depends(get_auth_context)],
) -> AuthContext:
    if not context.is_authenticated:
        raise AuthenticationError("Not authenticated")
    return context
