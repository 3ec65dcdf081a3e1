"""
Tests for the hosted auth client, the auth service and the auth endpoints.
"""

import json
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock
from uuid import uuid4

import httpx
import jwt
import pytest

from phone_survey.auth.client import AuthClient
from phone_survey.auth.context import AuthContext
from phone_survey.auth.models import User
from phone_survey.auth.schemas import TokenPayload
from phone_survey.auth.service import AuthService
from phone_survey.config import Settings, get_settings
from phone_survey.shared.exceptions import AuthenticationError, UpstreamServiceError

AUTH_SETTINGS = Settings(auth_url="http://auth.test/", auth_anon_key="anon-key")


def _client(handler) -> AuthClient:
    return AuthClient(
        settings=AUTH_SETTINGS,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def _context(user_id=None, email: str = "nurse@example.com") -> AuthContext:
    user_id = user_id or uuid4()
    payload = TokenPayload(
        sub=str(user_id),
        exp=datetime.now(timezone.utc) + timedelta(hours=1),
        email=email,
    )
    return AuthContext(access_token="token-123", payload=payload)


class TestAuthClient:
    async def test_password_sign_in(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"access_token": "at", "user": {"id": "u1"}})

        body = await _client(handler).sign_in_with_password("a@b.c", "pw")

        assert body["access_token"] == "at"
        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "http://auth.test/auth/v1/token?grant_type=password"
        assert request.headers["apikey"] == "anon-key"
        assert json.loads(request.content) == {"email": "a@b.c", "password": "pw"}

    async def test_bearer_header(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"id": "u1", "email": "a@b.c"})

        await _client(handler).get_user("token-123")

        assert seen[0].headers["Authorization"] == "Bearer token-123"
        assert seen[0].url.path == "/auth/v1/user"

    async def test_rejection_is_authentication_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={"error": "invalid_grant", "error_description": "Invalid login credentials"},
            )

        with pytest.raises(AuthenticationError, match="Invalid login credentials"):
            await _client(handler).sign_in_with_password("a@b.c", "wrong")

    async def test_server_error_is_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(UpstreamServiceError):
            await _client(handler).recover("a@b.c")

    async def test_transport_error_is_upstream_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(UpstreamServiceError, match="unavailable"):
            await _client(handler).sign_out("token-123")

    async def test_empty_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        assert await _client(handler)._request("POST", "/logout") == {}


@pytest.fixture
def auth_client() -> AsyncMock:
    return AsyncMock(spec=AuthClient)


class TestAuthService:
    async def test_sign_in_splits_session(self, db_session, auth_client) -> None:
        auth_client.sign_in_with_password.return_value = {
            "access_token": "at",
            "refresh_token": "rt",
            "token_type": "bearer",
            "expires_in": 3600,
            "user": {"id": "u1", "email": "a@b.c"},
        }

        result = await AuthService(db_session, auth_client).sign_in("a@b.c", "pw")

        assert result.user == {"id": "u1", "email": "a@b.c"}
        assert result.session == {
            "access_token": "at",
            "refresh_token": "rt",
            "token_type": "bearer",
            "expires_in": 3600,
        }

    async def test_sign_up_creates_user_row(self, db_session, auth_client) -> None:
        user_id = uuid4()
        auth_client.sign_up.return_value = {"id": str(user_id), "email": "new@example.com"}

        result = await AuthService(db_session, auth_client).sign_up("new@example.com", "pw", "Nia")

        assert result.session is None
        assert result.user["id"] == str(user_id)
        row = await db_session.get(User, user_id)
        assert row.name == "Nia"
        assert row.role == "user"

    async def test_get_user_prefers_row(self, db_session, auth_client) -> None:
        user_id = uuid4()
        db_session.add(User(id=user_id, email="admin@example.com", name="Ada", role="admin"))
        await db_session.flush()
        context = _context(user_id)
        service = AuthService(db_session, auth_client)

        user = await service.get_user(context)

        assert user.name == "Ada"
        assert await service.is_admin(context) is True
        auth_client.get_user.assert_not_awaited()
        assert context.user is user

    async def test_get_user_falls_back_to_remote(self, db_session, auth_client) -> None:
        auth_client.get_user.return_value = {
            "email": "remote@example.com",
            "user_metadata": {"name": "Remy"},
        }
        context = _context()
        service = AuthService(db_session, auth_client)

        user = await service.get_user(context)

        assert user.email == "remote@example.com"
        assert user.name == "Remy"
        assert user.role == "user"
        assert await service.is_admin(context) is False
        auth_client.get_user.assert_awaited_once_with("token-123")

    async def test_anonymous_has_no_user(self, db_session, auth_client) -> None:
        service = AuthService(db_session, auth_client)
        assert await service.get_user(AuthContext()) is None
        assert service.get_session(AuthContext()) is None

    async def test_sign_out_clears_cached_user(self, db_session, auth_client) -> None:
        context = _context()
        context.user = object()

        assert await AuthService(db_session, auth_client).sign_out(context) is True

        auth_client.sign_out.assert_awaited_once_with("token-123")
        assert context.user is None

    async def test_update_profile_without_row(self, db_session, auth_client) -> None:
        with pytest.raises(AuthenticationError, match="No user found"):
            await AuthService(db_session, auth_client).update_profile(_context(), "New")

    async def test_update_password(self, db_session, auth_client) -> None:
        await AuthService(db_session, auth_client).update_password(_context(), "s3cret")
        auth_client.update_user.assert_awaited_once_with("token-123", {"password": "s3cret"})


@pytest.fixture
def fake_auth_client(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Replace the hosted auth client used by the auth endpoints."""
    fake = AsyncMock(spec=AuthClient)
    monkeypatch.setattr("phone_survey.auth.router.AuthClient", lambda: fake)
    return fake


def _bearer(user_id, email: str = "nurse@example.com") -> dict[str, str]:
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": str(user_id), "email": email, "exp": now + timedelta(hours=1)},
        get_settings().auth_jwt_secret,
        algorithm=get_settings().auth_jwt_algorithm,
    )
    return {"Authorization": f"Bearer {token}"}


class TestAuthEndpoints:
    async def test_login_requires_credentials(self, async_client, fake_auth_client) -> None:
        response = await async_client.post("/api/auth/login", json={"email": "a@b.c"})
        assert response.status_code == 400
        assert response.json() == {"error": "Email and password are required"}

    async def test_login_rejected(self, async_client, fake_auth_client) -> None:
        fake_auth_client.sign_in_with_password.side_effect = AuthenticationError(
            "Invalid login credentials"
        )

        response = await async_client.post(
            "/api/auth/login", json={"email": "a@b.c", "password": "wrong"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid login credentials"}
        fake_auth_client.close.assert_awaited_once()

    async def test_login_success(self, async_client, fake_auth_client) -> None:
        fake_auth_client.sign_in_with_password.return_value = {
            "access_token": "at",
            "user": {"id": "u1"},
        }

        response = await async_client.post(
            "/api/auth/login", json={"email": "a@b.c", "password": "pw"}
        )

        assert response.status_code == 200
        assert response.json() == {"user": {"id": "u1"}, "session": {"access_token": "at"}}

    async def test_me_requires_token(self, async_client, fake_auth_client) -> None:
        response = await async_client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    async def test_me_rejects_bad_token(self, async_client, fake_auth_client) -> None:
        response = await async_client.get(
            "/api/auth/me", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    async def test_me_with_admin_row(self, async_client, fake_auth_client, session_factory) -> None:
        user_id = uuid4()
        async with session_factory() as session:
            session.add(User(id=user_id, email="admin@example.com", name="Ada", role="admin"))
            await session.commit()

        response = await async_client.get("/api/auth/me", headers=_bearer(user_id))

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["name"] == "Ada"
        assert body["isAdmin"] is True
        assert body["session"]["user_id"] == str(user_id)

    async def test_update_profile(self, async_client, fake_auth_client, session_factory) -> None:
        user_id = uuid4()
        async with session_factory() as session:
            session.add(User(id=user_id, email="n@example.com", name="Old"))
            await session.commit()

        response = await async_client.put(
            "/api/auth/profile", json={"name": "  New Name "}, headers=_bearer(user_id)
        )

        assert response.status_code == 200
        assert response.json()["user"]["name"] == "New Name"
        async with session_factory() as session:
            assert (await session.get(User, user_id)).name == "New Name"

    async def test_reset_password_requires_email(self, async_client, fake_auth_client) -> None:
        response = await async_client.post("/api/auth/reset-password", json={})
        assert response.status_code == 400
        assert response.json() == {"error": "Email is required"}
