"""Tests for session login, lookup and logout."""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from jose import jwt

from leadflow.core.cache import CacheService
from leadflow.core.exceptions import SessionInvalidError
from leadflow.schemas.common import UserRole
from leadflow.services.session_service import SessionManager

SECRET = "test-secret"


def _token(**claims) -> str:
    payload = {"sub": "auth-123", "aud": "authenticated"}
    payload.update(claims)
    return jwt.encode(payload, SECRET, algorithm="HS256")


def _user(**overrides):
    values = dict(
        id=7,
        auth_user_id="auth-123",
        email="emp@leadflow.io",
        name="Eve Employee",
        role="Employee",
        status="active",
    )
    values.update(overrides)
    return SimpleNamespace(**values)


def _user_repo(by_auth=None, by_email=None) -> AsyncMock:
    repo = AsyncMock()
    repo.get_by_auth_id = AsyncMock(return_value=by_auth)
    repo.get_by_email = AsyncMock(return_value=by_email)
    return repo


def _manager(cache) -> SessionManager:
    return SessionManager(
        cache,
        jwt_secret=SECRET,
        jwt_algorithm="HS256",
        jwt_audience="authenticated",
        ttl_seconds=3600,
    )


class TestLogin:
    @pytest.mark.asyncio
    async def test_valid_token_opens_session(self, mock_cache, mock_redis):
        session = await _manager(mock_cache).login(_token(), _user_repo(by_auth=_user()))

        assert session.user_id == 7
        assert session.role is UserRole.employee
        assert not session.is_admin
        assert f"session:{session.token}" in mock_redis.store

    @pytest.mark.asyncio
    async def test_falls_back_to_email_claim(self, mock_cache):
        repo = _user_repo(by_auth=None, by_email=_user(role="Admin"))

        session = await _manager(mock_cache).login(
            _token(sub="other", email="emp@leadflow.io"), repo
        )

        assert session.is_admin
        repo.get_by_email.assert_awaited_once_with("emp@leadflow.io")

    @pytest.mark.asyncio
    async def test_bad_signature_rejected(self, mock_cache):
        forged = jwt.encode({"sub": "auth-123", "aud": "authenticated"}, "wrong", algorithm="HS256")

        with pytest.raises(SessionInvalidError):
            await _manager(mock_cache).login(forged, _user_repo(by_auth=_user()))

    @pytest.mark.asyncio
    async def test_expired_token_rejected(self, mock_cache):
        expired = _token(exp=datetime.now(timezone.utc) - timedelta(minutes=1))

        with pytest.raises(SessionInvalidError):
            await _manager(mock_cache).login(expired, _user_repo(by_auth=_user()))

    @pytest.mark.asyncio
    async def test_unknown_user_rejected(self, mock_cache):
        with pytest.raises(SessionInvalidError):
            await _manager(mock_cache).login(_token(), _user_repo())

    @pytest.mark.asyncio
    async def test_inactive_user_rejected(self, mock_cache):
        with pytest.raises(SessionInvalidError):
            await _manager(mock_cache).login(
                _token(), _user_repo(by_auth=_user(status="inactive"))
            )

    @pytest.mark.asyncio
    async def test_missing_secret_disables_login(self, mock_cache):
        manager = SessionManager(mock_cache, jwt_secret="")

        with pytest.raises(SessionInvalidError):
            await manager.login(_token(), _user_repo(by_auth=_user()))

    @pytest.mark.asyncio
    async def test_unavailable_store_rejects_login(self):
        manager = _manager(CacheService(redis_client=None))

        with pytest.raises(SessionInvalidError):
            await manager.login(_token(), _user_repo(by_auth=_user()))


class TestResolveAndLogout:
    @pytest.mark.asyncio
    async def test_resolve_returns_stored_session(self, mock_cache):
        manager = _manager(mock_cache)
        opened = await manager.login(_token(), _user_repo(by_auth=_user()))

        resolved = await manager.resolve(opened.token)

        assert resolved == opened

    @pytest.mark.asyncio
    async def test_unknown_token_rejected(self, mock_cache):
        with pytest.raises(SessionInvalidError):
            await _manager(mock_cache).resolve("nope")

    @pytest.mark.asyncio
    async def test_missing_token_rejected(self, mock_cache):
        with pytest.raises(SessionInvalidError):
            await _manager(mock_cache).resolve(None)

    @pytest.mark.asyncio
    async def test_logout_removes_session(self, mock_cache):
        manager = _manager(mock_cache)
        opened = await manager.login(_token(), _user_repo(by_auth=_user()))

        await manager.logout(opened)

        with pytest.raises(SessionInvalidError):
            await manager.resolve(opened.token)
