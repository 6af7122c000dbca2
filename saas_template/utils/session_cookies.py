"""
Auth Session Cookies
Read, write and clear the Supabase session carried in cookies
"""

from dataclasses import dataclass
from typing import Optional, Dict, Any

from starlette.requests import Request
from starlette.responses import Response

from saas_template.config import get_settings

ACCESS_TOKEN_COOKIE = "sb-access-token"
REFRESH_TOKEN_COOKIE = "sb-refresh-token"
EXPIRES_AT_COOKIE = "sb-expires-at"


@dataclass
class CookieSession:
    """Session tokens as stored in the browser"""
    access_token: Optional[str]
    refresh_token: Optional[str]
    expires_at: Optional[int]

    @property
    def is_empty(self) -> bool:
        return not self.access_token and not self.refresh_token


def read_session_cookies(request: Request) -> CookieSession:
    raw_expires = request.cookies.get(EXPIRES_AT_COOKIE)
    try:
        expires_at = int(raw_expires) if raw_expires else None
    except ValueError:
        expires_at = None

    return CookieSession(
        access_token=request.cookies.get(ACCESS_TOKEN_COOKIE) or None,
        refresh_token=request.cookies.get(REFRESH_TOKEN_COOKIE) or None,
        expires_at=expires_at,
    )


def write_session_cookies(response: Response, session: Dict[str, Any]) -> None:
    """
    Store a serialized Supabase session on the response

    Args:
        response: Outgoing response
        session: dict with access_token, refresh_token and expires_at
    """
    options = get_settings().cookie_options()

    response.set_cookie(ACCESS_TOKEN_COOKIE, session['access_token'], httponly=True, **options)
    response.set_cookie(REFRESH_TOKEN_COOKIE, session['refresh_token'], httponly=True, **options)
    if session.get('expires_at') is not None:
        # Readable by the page so the refresh timer can be armed client side
        response.set_cookie(EXPIRES_AT_COOKIE, str(int(session['expires_at'])), httponly=False, **options)
    else:
        response.delete_cookie(EXPIRES_AT_COOKIE, path=options['path'])


def clear_session_cookies(response: Response) -> None:
    options = get_settings().cookie_options()
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE, EXPIRES_AT_COOKIE):
        response.delete_cookie(
            name,
            path=options['path'],
            secure=options['secure'],
            samesite=options['samesite'],
        )


def remember_session(request: Request, session: Dict[str, Any]) -> None:
    """Ask the cookie middleware to store this session on the response"""
    request.state.session_to_write = session
    request.state.clear_session = False


def forget_session(request: Request) -> None:
    """Ask the cookie middleware to clear the session cookies"""
    request.state.session_to_write = None
    request.state.clear_session = True


def apply_session_changes(request: Request, response: Response) -> None:
    """Write or clear cookies according to what the request decided"""
    session = getattr(request.state, 'session_to_write', None)
    if session:
        write_session_cookies(response, session)
    elif getattr(request.state, 'clear_session', False):
        clear_session_cookies(response)
