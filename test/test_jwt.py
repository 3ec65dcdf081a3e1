"""
Tests for access token verification and the per-request auth context.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
import pytest

from phone_survey.auth.context import AuthContext, bearer_token, get_auth_context, require_auth_context
from phone_survey.auth.jwt import JWTService
from phone_survey.config import Settings
from phone_survey.shared.exceptions import AuthenticationError, InvalidTokenError, TokenExpiredError

SECRET = "test-secret-with-enough-length-for-hs256"


@pytest.fixture
def jwt_service() -> JWTService:
    return JWTService(Settings(auth_jwt_secret=SECRET))


def _token(secret: str = SECRET, expires_in: timedelta = timedelta(hours=1), **claims) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": str(uuid4()), "iat": now, "exp": now + expires_in, "aud": "authenticated"}
    payload.update(claims)
    return jwt.encode(payload, secret, algorithm="HS256")


class TestJWTService:
    def test_verify_valid_token(self, jwt_service: JWTService) -> None:
        user_id = str(uuid4())
        token = _token(sub=user_id, email="nurse@example.com", role="authenticated", session_id="s1")

        payload = jwt_service.verify_token(token)

        assert payload.sub == user_id
        assert payload.email == "nurse@example.com"
        assert payload.role == "authenticated"
        assert payload.session_id == "s1"
        assert payload.exp > datetime.now(timezone.utc)

    def test_verify_expired_token(self, jwt_service: JWTService) -> None:
        with pytest.raises(TokenExpiredError):
            jwt_service.verify_token(_token(expires_in=timedelta(seconds=-5)))

    def test_verify_wrong_secret(self, jwt_service: JWTService) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_service.verify_token(_token(secret="another-secret-with-enough-length-1234"))

    def test_verify_garbage(self, jwt_service: JWTService) -> None:
        with pytest.raises(InvalidTokenError):
            jwt_service.verify_token("not.a.jwt")

    def test_payload_without_subject(self, jwt_service: JWTService) -> None:
        now = datetime.now(timezone.utc)
        token = jwt.encode({"exp": now + timedelta(hours=1)}, SECRET, algorithm="HS256")
        with pytest.raises(InvalidTokenError, match="payload validation"):
            jwt_service.verify_token(token)


class TestBearerToken:
    def test_extracts_token(self) -> None:
        assert bearer_token("Bearer abc.def") == "abc.def"
        assert bearer_token("bearer  abc ") == "abc"

    def test_missing_header(self) -> None:
        assert bearer_token(None) is None
        assert bearer_token("") is None

    def test_other_scheme(self) -> None:
        with pytest.raises(InvalidTokenError):
            bearer_token("Basic dXNlcjpwYXNz")


class TestAuthContext:
    async def test_anonymous_without_header(self, jwt_service: JWTService) -> None:
        context = await get_auth_context(jwt_service, None)
        assert context == AuthContext()
        assert not context.is_authenticated
        assert context.user_id is None

    async def test_authenticated(self, jwt_service: JWTService) -> None:
        user_id = uuid4()
        token = _token(sub=str(user_id))

        context = await get_auth_context(jwt_service, f"Bearer {token}")

        assert context.is_authenticated
        assert context.access_token == token
        assert context.user_id == user_id
        assert await require_auth_context(context) is context

    async def test_non_uuid_subject(self, jwt_service: JWTService) -> None:
        context = await get_auth_context(jwt_service, f"Bearer {_token(sub='service-account')}")
        assert context.user_id is None

    async def test_require_rejects_anonymous(self) -> None:
        with pytest.raises(AuthenticationError, match="Not authenticated"):
            await require_auth_context(AuthContext())
