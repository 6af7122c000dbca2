"""
Authentication API Routes
JSON login, signup, logout, auth check and session refresh
"""

from fastapi import APIRouter, Request
import logging

from saas_template.models.auth import (
    AuthResponse, AuthSuccessResponse, AuthCheckResponse, LogoutResponse, RefreshResponse
)
from saas_template.services.auth_service import AuthService
from saas_template.services.session_service import SessionService, SESSION_EXPIRED_MESSAGE
from saas_template.utils.dependencies import SessionDep
from saas_template.utils.session_cookies import (
    read_session_cookies, remember_session, forget_session
)
from saas_template.utils.templating import flash

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=AuthResponse)
async def login(request: Request, credentials: dict):
    """
    Sign in with email and password

    Validation problems come back as {error: true, message} like provider errors.
    """
    result = await AuthService.login(credentials.get('email', ''), credentials.get('password', ''))

    if isinstance(result, AuthSuccessResponse) and result.data.session:
        remember_session(request, result.data.session.model_dump())

    return result


@router.post("/signup", response_model=AuthResponse)
async def signup(credentials: dict):
    """Register a new account; Supabase emails the confirmation link"""
    return await AuthService.signup(credentials.get('email', ''), credentials.get('password', ''))


@router.post("/logout", response_model=LogoutResponse)
async def logout(request: Request):
    """Sign out and clear the session cookies"""
    cookies = read_session_cookies(request)
    result = await AuthService.logout(cookies.access_token, cookies.refresh_token)

    if not result.error:
        forget_session(request)
        logger.info("User logged out")

    return result


@router.get("/check", response_model=AuthCheckResponse)
async def check_auth(session: SessionDep):
    """Current user, refreshing the session first when it is about to expire"""
    if session is None:
        return AuthCheckResponse(error=True, message="Not authenticated")

    return AuthCheckResponse(error=False, user=session.user)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(request: Request):
    """
    Refresh the session

    Called by the page timer shortly before the access token expires.
    On failure the cookies are cleared and the notice is queued for /login,
    where the page sends the user.
    """
    cookies = read_session_cookies(request)
    result = await SessionService.refresh_auth(cookies)

    if result.error:
        forget_session(request)
        flash(request, "Session expired", "Please log in again.", "destructive")
        return RefreshResponse(error=True, message=SESSION_EXPIRED_MESSAGE)

    if result.data and result.data.session:
        remember_session(request, result.data.session.model_dump())

    return result
