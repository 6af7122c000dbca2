"""
Session lifecycle tests
"""

import pytest
from unittest.mock import AsyncMock, patch

from saas_template.models.auth import (
    AuthCheckResponse, AuthData, AuthErrorResponse, AuthSuccessResponse
)
from saas_template.services.auth_service import AuthService
from saas_template.services.session_service import (
    SessionService, compute_refresh_delay, needs_refresh,
    MIN_REFRESH_DELAY_SECONDS, SESSION_EXPIRED_MESSAGE
)
from saas_template.utils.session_cookies import CookieSession

NOW = 1_700_000_000


class TestRefreshTiming:
    def test_refresh_one_minute_before_expiry(self):
        assert compute_refresh_delay(NOW + 3600, now=NOW) == 3540

    def test_refresh_delay_has_floor(self):
        assert compute_refresh_delay(NOW + 61, now=NOW) == MIN_REFRESH_DELAY_SECONDS
        assert compute_refresh_delay(NOW - 500, now=NOW) == MIN_REFRESH_DELAY_SECONDS

    def test_needs_refresh_inside_margin(self):
        assert needs_refresh(NOW + 30, now=NOW)
        assert needs_refresh(NOW - 10, now=NOW)
        assert not needs_refresh(NOW + 3600, now=NOW)

    def test_unknown_expiry_does_not_force_refresh(self):
        assert not needs_refresh(None, now=NOW)


class TestResolveSession:
    @pytest.mark.asyncio
    async def test_no_cookies(self):
        with patch.object(AuthService, 'check_auth', new_callable=AsyncMock) as check:
            state = await SessionService.resolve_session(CookieSession(None, None, None), now=NOW)
        assert state is None
        check.assert_not_called()

    @pytest.mark.asyncio
    async def test_valid_token_is_checked(self, user):
        cookies = CookieSession("access-token", "refresh-token", NOW + 3600)
        with patch.object(AuthService, 'check_auth', new_callable=AsyncMock,
                          return_value=AuthCheckResponse(error=False, user=user)) as check:
            with patch.object(AuthService, 'refresh', new_callable=AsyncMock) as refresh:
                state = await SessionService.resolve_session(cookies, now=NOW)

        check.assert_awaited_once_with("access-token")
        refresh.assert_not_called()
        assert state.user.id == user.id
        assert not state.refreshed
        assert state.refresh_in(now=NOW) == 3540

    @pytest.mark.asyncio
    async def test_expiring_token_is_refreshed_first(self, user, new_session):
        cookies = CookieSession("access-token", "refresh-token", NOW + 20)
        refreshed = AuthSuccessResponse(data=AuthData(user=user, session=new_session))
        with patch.object(AuthService, 'check_auth', new_callable=AsyncMock) as check:
            with patch.object(AuthService, 'refresh', new_callable=AsyncMock, return_value=refreshed):
                state = await SessionService.resolve_session(cookies, now=NOW)

        check.assert_not_called()
        assert state.refreshed
        assert state.access_token == "new-access-token"
        assert state.refreshed_session.refresh_token == "new-refresh-token"

    @pytest.mark.asyncio
    async def test_missing_access_token_uses_refresh_token(self, user, new_session):
        cookies = CookieSession(None, "refresh-token", None)
        refreshed = AuthSuccessResponse(data=AuthData(user=user, session=new_session))
        with patch.object(AuthService, 'refresh', new_callable=AsyncMock, return_value=refreshed) as refresh:
            state = await SessionService.resolve_session(cookies, now=NOW)

        refresh.assert_awaited_once_with("refresh-token")
        assert state.refreshed

    @pytest.mark.asyncio
    async def test_rejected_token_falls_back_to_refresh(self, user, new_session):
        cookies = CookieSession("stale-token", "refresh-token", None)
        refreshed = AuthSuccessResponse(data=AuthData(user=user, session=new_session))
        with patch.object(AuthService, 'check_auth', new_callable=AsyncMock,
                          return_value=AuthCheckResponse(error=True, message="invalid JWT")):
            with patch.object(AuthService, 'refresh', new_callable=AsyncMock, return_value=refreshed):
                state = await SessionService.resolve_session(cookies, now=NOW)

        assert state is not None
        assert state.refreshed

    @pytest.mark.asyncio
    async def test_rejected_token_without_refresh_token(self):
        cookies = CookieSession("stale-token", None, None)
        with patch.object(AuthService, 'check_auth', new_callable=AsyncMock,
                          return_value=AuthCheckResponse(error=True, message="invalid JWT")):
            state = await SessionService.resolve_session(cookies, now=NOW)

        assert state is None

    @pytest.mark.asyncio
    async def test_failed_refresh_means_signed_out(self):
        cookies = CookieSession(None, "revoked-token", None)
        with patch.object(AuthService, 'refresh', new_callable=AsyncMock,
                          return_value=AuthErrorResponse(message="Invalid Refresh Token")):
            state = await SessionService.resolve_session(cookies, now=NOW)

        assert state is None


class TestRefreshAuth:
    @pytest.mark.asyncio
    async def test_refresh_reports_next_delay(self, user, new_session):
        cookies = CookieSession("access-token", "refresh-token", NOW + 3600)
        refreshed = AuthSuccessResponse(data=AuthData(user=user, session=new_session))
        with patch.object(AuthService, 'refresh', new_callable=AsyncMock, return_value=refreshed):
            result = await SessionService.refresh_auth(cookies, now=NOW)

        assert result.error is False
        assert result.user.id == user.id
        assert result.data.session.access_token == "new-access-token"
        assert result.refresh_in == new_session.expires_at - NOW - 60

    @pytest.mark.asyncio
    async def test_refresh_without_tokens(self):
        result = await SessionService.refresh_auth(CookieSession(None, None, None), now=NOW)

        assert result.error is True
        assert result.message == SESSION_EXPIRED_MESSAGE

    @pytest.mark.asyncio
    async def test_refresh_rejected(self):
        cookies = CookieSession("access-token", "revoked-token", NOW + 3600)
        with patch.object(AuthService, 'refresh', new_callable=AsyncMock,
                          return_value=AuthErrorResponse(message="Invalid Refresh Token")):
            result = await SessionService.refresh_auth(cookies, now=NOW)

        assert result.error is True
        assert result.message == SESSION_EXPIRED_MESSAGE
