"""
Session Service
Resolves the Supabase session carried in cookies and keeps it fresh

Access tokens are refreshed one minute before they expire. Pages arm a
browser timer with compute_refresh_delay() that calls back into
refresh_auth(); requests that arrive inside the refresh margin are
refreshed on the server before the token is validated.
"""

import time
from dataclasses import dataclass
from typing import Optional
import logging

from saas_template.models.auth import (
    SerializableUser, SerializableSession, AuthData, RefreshResponse
)
from saas_template.services.auth_service import AuthService
from saas_template.utils.session_cookies import CookieSession

logger = logging.getLogger(__name__)

REFRESH_MARGIN_SECONDS = 60
MIN_REFRESH_DELAY_SECONDS = 30
SESSION_EXPIRED_MESSAGE = "Session expired"


def compute_refresh_delay(expires_at: float, now: Optional[float] = None) -> float:
    """
    Seconds to wait before refreshing a token that expires at expires_at

    Args:
        expires_at: Token expiry as a unix timestamp
        now: Current unix time, defaults to time.time()

    Returns:
        float: delay in seconds, never below MIN_REFRESH_DELAY_SECONDS
    """
    if now is None:
        now = time.time()
    return max(expires_at - now - REFRESH_MARGIN_SECONDS, MIN_REFRESH_DELAY_SECONDS)


def needs_refresh(expires_at: Optional[float], now: Optional[float] = None) -> bool:
    """True when the token is expired or inside the refresh margin"""
    if expires_at is None:
        return False
    if now is None:
        now = time.time()
    return expires_at - now <= REFRESH_MARGIN_SECONDS


@dataclass
class SessionState:
    """An authenticated session for the current request"""
    user: SerializableUser
    access_token: str
    expires_at: Optional[int] = None
    # Set when the tokens were rotated and the cookies must be rewritten
    refreshed_session: Optional[SerializableSession] = None

    @property
    def refreshed(self) -> bool:
        return self.refreshed_session is not None

    def refresh_in(self, now: Optional[float] = None) -> Optional[float]:
        if self.expires_at is None:
            return None
        return compute_refresh_delay(self.expires_at, now)


class SessionService:
    """Session lifecycle on top of AuthService"""

    @staticmethod
    async def _refreshed_state(refresh_token: str) -> Optional[SessionState]:
        result = await AuthService.refresh(refresh_token)
        if result.error or not result.data.session or not result.data.user:
            logger.info(f"Session refresh rejected: {getattr(result, 'message', 'no session returned')}")
            return None

        session = result.data.session
        return SessionState(
            user=result.data.user,
            access_token=session.access_token,
            expires_at=session.expires_at,
            refreshed_session=session,
        )

    @staticmethod
    async def resolve_session(cookies: CookieSession, now: Optional[float] = None) -> Optional[SessionState]:
        """
        Turn session cookies into an authenticated session

        Args:
            cookies: Tokens read from the request
            now: Current unix time, for tests

        Returns:
            SessionState or None when the visitor is not signed in
        """
        if cookies.is_empty:
            return None

        if cookies.refresh_token and (
            not cookies.access_token or needs_refresh(cookies.expires_at, now)
        ):
            return await SessionService._refreshed_state(cookies.refresh_token)

        check = await AuthService.check_auth(cookies.access_token)
        if not check.error and check.user:
            return SessionState(
                user=check.user,
                access_token=cookies.access_token,
                expires_at=cookies.expires_at,
            )

        # The expiry cookie can be missing or stale; one refresh attempt before giving up
        if cookies.refresh_token:
            return await SessionService._refreshed_state(cookies.refresh_token)

        return None

    @staticmethod
    async def refresh_auth(cookies: CookieSession, now: Optional[float] = None) -> RefreshResponse:
        """
        Target of the browser refresh timer

        Always rotates the tokens when a refresh token is present, then
        reports when the next refresh is due.
        """
        state = None
        if cookies.refresh_token:
            state = await SessionService._refreshed_state(cookies.refresh_token)
        elif cookies.access_token:
            state = await SessionService.resolve_session(cookies, now)

        if state is None:
            return RefreshResponse(error=True, message=SESSION_EXPIRED_MESSAGE)

        session = state.refreshed_session
        return RefreshResponse(
            error=False,
            user=state.user,
            data=AuthData(user=state.user, session=session),
            refresh_in=state.refresh_in(now),
        )
