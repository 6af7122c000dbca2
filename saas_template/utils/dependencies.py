"""
FastAPI Dependencies
Session resolution and route guards
"""

from dataclasses import dataclass
from typing import Optional, Annotated
import logging

from fastapi import Depends, HTTPException, Request, status

from saas_template.models.auth import SerializableUser
from saas_template.services.session_service import SessionService, SessionState
from saas_template.utils.session_cookies import (
    read_session_cookies, remember_session, forget_session
)

logger = logging.getLogger(__name__)


class LoginRequired(Exception):
    """Raised by the page guard; handled by redirecting to /login"""

    def __init__(self, redirect: Optional[str] = None):
        super().__init__("Login required")
        self.redirect = redirect


@dataclass
class AuthContext:
    """What guarded server operations receive about the caller"""
    user: SerializableUser
    access_token: str


async def get_session_state(request: Request) -> Optional[SessionState]:
    """
    Resolve the session once per request

    A refreshed session is parked on request.state so the cookie
    middleware can rewrite the cookies on whatever response is returned.
    """
    if hasattr(request.state, 'auth_session'):
        return request.state.auth_session

    cookies = read_session_cookies(request)
    try:
        state = await SessionService.resolve_session(cookies)
    except Exception as e:
        logger.error(f"Session resolution error: {e}")
        state = None

    request.state.auth_session = state
    if state is not None and state.refreshed:
        remember_session(request, state.refreshed_session.model_dump())
    elif state is None and not cookies.is_empty:
        forget_session(request)

    return state


async def get_optional_user(request: Request) -> Optional[SerializableUser]:
    """
    Get optional user (for pages that work with or without auth)

    Returns:
        SerializableUser or None
    """
    state = await get_session_state(request)
    return state.user if state else None


async def require_user(request: Request) -> SerializableUser:
    """
    Guard for protected pages

    Raises:
        LoginRequired: carrying the requested path for the post-login redirect
    """
    state = await get_session_state(request)
    if state is None:
        raise LoginRequired(redirect=request.url.path)
    return state.user


async def require_page_context(request: Request) -> AuthContext:
    """Page guard for pages that call guarded services"""
    state = await get_session_state(request)
    if state is None:
        raise LoginRequired(redirect=request.url.path)
    return AuthContext(user=state.user, access_token=state.access_token)


async def get_auth_context(request: Request) -> AuthContext:
    """
    Guard for protected API calls

    Raises:
        HTTPException: 401 when there is no valid session
    """
    state = await get_session_state(request)
    if state is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return AuthContext(user=state.user, access_token=state.access_token)


# Type aliases for cleaner dependency injection
OptionalUser = Annotated[Optional[SerializableUser], Depends(get_optional_user)]
CurrentUser = Annotated[SerializableUser, Depends(require_user)]
AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]
PageContext = Annotated[AuthContext, Depends(require_page_context)]
SessionDep = Annotated[Optional[SessionState], Depends(get_session_state)]
