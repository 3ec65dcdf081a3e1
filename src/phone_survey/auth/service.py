"""
Authentication service.

Credentials are checked by the hosted auth service; the local ``users``
table carries the display name and application role.
"""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.auth.client import AuthClient, AuthClientProtocol
from phone_survey.auth.context import AuthContext
from phone_survey.auth.models import User, UserRole
from phone_survey.auth.schemas import AuthResult, AuthUser
from phone_survey.shared.exceptions import AuthenticationError
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)

_SESSION_KEYS = ("access_token", "refresh_token", "token_type", "expires_in", "expires_at")


def _split_session(body: dict[str, Any]) -> AuthResult:
    """Token responses embed ``user``; sign-up without confirmation returns the bare user."""
    if "access_token" in body:
        session = {k: body[k] for k in _SESSION_KEYS if k in body}
        return AuthResult(user=body.get("user"), session=session)
    user = body.get("user") if isinstance(body.get("user"), dict) else body or None
    return AuthResult(user=user, session=None)


class AuthService:
    """Service for authentication operations."""

    def __init__(self, session: AsyncSession, client: AuthClientProtocol | None = None) -> None:
        """Initialize authentication service.

        Args:
            session: Database session.
            client: Hosted auth service client.
        """
        self._session = session
        self._client = client or AuthClient()

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Sign in with email and password.

        Raises:
            AuthenticationError: Wrong credentials.
        """
        body = await self._client.sign_in_with_password(email, password)
        result = _split_session(body)
        logger.info(
            "User signed in",
            extra={"user_id": (result.user or {}).get("id")},
        )
        return result

    async def sign_up(self, email: str, password: str, name: str | None = None) -> AuthResult:
        """Create an account and its ``users`` row with role ``user``."""
        body = await self._client.sign_up(email, password, name)
        result = _split_session(body)

        user_id = (result.user or {}).get("id")
        if user_id:
            self._session.add(
                User(
                    id=UUID(str(user_id)),
                    email=(result.user or {}).get("email") or email,
                    name=name or None,
                    role=UserRole.USER.value,
                )
            )
            await self._session.flush()
            logger.info("User signed up", extra={"user_id": str(user_id)})
        return result

    async def sign_out(self, context: AuthContext) -> bool:
        if context.access_token:
            await self._client.sign_out(context.access_token)
        context.user = None
        return True

    def get_session(self, context: AuthContext) -> dict[str, Any] | None:
        """Session details of the caller, None when anonymous."""
        if not context.is_authenticated or context.payload is None:
            return None
        return {
            "access_token": context.access_token,
            "expires_at": int(context.payload.exp.timestamp()),
            "user_id": context.payload.sub,
            "email": context.payload.email,
        }

    async def get_user(self, context: AuthContext) -> AuthUser | None:
        """The caller's profile, resolved once per request.

        The ``users`` row wins; without one the auth service's user is used
        with role ``user``.
        """
        if context.user is not None:
            return context.user
        user_id = context.user_id
        if user_id is None or context.access_token is None:
            return None

        try:
            row = await self._session.get(User, user_id)
        except SQLAlchemyError:
            logger.exception("Failed to load user row", extra={"user_id": str(user_id)})
            row = None

        if row is not None:
            context.user = AuthUser.model_validate(row)
            return context.user

        remote = await self._client.get_user(context.access_token)
        metadata = remote.get("user_metadata") or {}
        context.user = AuthUser(
            id=user_id,
            email=remote.get("email") or (context.payload.email if context.payload else "") or "",
            name=metadata.get("name"),
            role=UserRole.USER.value,
            created_at=remote.get("created_at"),
        )
        return context.user

    async def is_admin(self, context: AuthContext) -> bool:
        user = await self.get_user(context)
        return bool(user and user.role == UserRole.ADMIN.value)

    async def reset_password(self, email: str) -> bool:
        await self._client.recover(email)
        logger.info("Password reset requested")
        return True

    async def update_password(self, context: AuthContext, password: str) -> bool:
        if context.access_token is None:
            raise AuthenticationError("Not authenticated")
        await self._client.update_user(context.access_token, {"password": password})
        return True

    async def update_profile(self, context: AuthContext, name: str) -> AuthUser:
        """Rename the caller in the ``users`` table."""
        user_id = context.user_id
        if user_id is None:
            raise AuthenticationError("No user found")

        row = await self._session.get(User, user_id)
        if row is None:
            raise AuthenticationError("No user found")

        row.name = name
        row.updated_at = datetime.now(timezone.utc)
        await self._session.flush()
        context.user = AuthUser.model_validate(row)
        return context.user
