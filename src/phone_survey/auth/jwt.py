"""
Access token verification.

Tokens are issued by the hosted auth service and signed with its shared
secret; this module only verifies them.
"""

import jwt
from pydantic import ValidationError

from phone_survey.auth.schemas import TokenPayload
from phone_survey.config import Settings, get_settings
from phone_survey.shared.exceptions import InvalidTokenError, TokenExpiredError
from phone_survey.shared.logging import get_logger

logger = get_logger(__name__)


class JWTService:
    """Verifies access tokens of the hosted auth service."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()

    def verify_token(self, token: str) -> TokenPayload:
        """Verify and decode a JWT token.

        Args:
            token: Encoded JWT token.

        Returns:
            Decoded token payload.

        Raises:
            TokenExpiredError: If the token has expired.
            InvalidTokenError: If the token is invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._settings.auth_jwt_secret,
                algorithms=[self._settings.auth_jwt_algorithm],
                options={"verify_aud": False},
            )
            return TokenPayload.model_validate(payload)

        except jwt.ExpiredSignatureError as e:
            logger.warning("Token expired", extra={"error": str(e)})
            raise TokenExpiredError() from e

        except jwt.InvalidTokenError as e:
            logger.warning("Invalid token", extra={"error": str(e)})
            raise InvalidTokenError() from e

        except ValidationError as e:
            logger.warning("Token payload validation failed", extra={"error": str(e)})
            raise InvalidTokenError(message="Token payload validation failed") from e
