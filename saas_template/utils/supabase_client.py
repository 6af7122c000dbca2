"""
Supabase Client
Server-side access to Supabase Auth for sign in, sign up, sign out and token checks
"""

from datetime import datetime
from typing import Optional, Dict, Any
import logging

from supabase import create_client, Client, ClientOptions

from saas_template.config import get_settings

logger = logging.getLogger(__name__)


class SupabaseUnavailable(Exception):
    """Raised when Supabase credentials are not configured"""


def _error_message(error: Exception) -> str:
    return getattr(error, 'message', None) or str(error)


def serialize_user(user) -> Optional[Dict[str, Any]]:
    """Reduce a Supabase user to the fields passed to pages and the browser"""
    if user is None:
        return None
    created_at = user.created_at
    if isinstance(created_at, datetime):
        created_at = created_at.isoformat()
    return {
        'id': str(user.id),
        'email': user.email,
        'created_at': str(created_at or ''),
    }


def serialize_session(session) -> Optional[Dict[str, Any]]:
    if session is None:
        return None
    return {
        'access_token': session.access_token,
        'expires_at': session.expires_at,
        'refresh_token': session.refresh_token,
    }


class SupabaseClient:
    """Supabase client wrapper for authentication services

    Every call builds its own client so a signed-in session never leaks
    between requests served by the same process. Clients never refresh
    tokens on their own; the browser timer owns rotation.
    """

    def __init__(self, url: str = None, key: str = None):
        settings = get_settings()
        self.url: str = url if url is not None else settings.supabase_url
        self.key: str = key if key is not None else settings.supabase_anon_key

        if not self.is_available():
            logger.warning("Supabase credentials not found in environment")

    def is_available(self) -> bool:
        """Check if Supabase is configured"""
        return bool(self.url and self.key)

    def get_client(self) -> Client:
        """Create a Supabase client instance"""
        if not self.is_available():
            raise SupabaseUnavailable("Supabase client not available")
        return create_client(
            self.url,
            self.key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False)
        )

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        """
        Sign in with email and password

        Args:
            email: User email
            password: User password

        Returns:
            dict: success flag, user, session and confirmation state, or error
        """
        client = self.get_client()

        try:
            response = client.auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except Exception as e:
            logger.warning(f"Supabase sign in failed for {email}: {_error_message(e)}")
            return {
                "success": False,
                "error": _error_message(e)
            }

        user = response.user
        return {
            "success": True,
            "user": serialize_user(user),
            "session": serialize_session(response.session),
            "email_confirmed": bool(user and user.email_confirmed_at)
        }

    async def sign_up(self, email: str, password: str, email_redirect_to: str = None) -> Dict[str, Any]:
        """
        Sign up a new user

        Args:
            email: User email
            password: User password
            email_redirect_to: Where the confirmation link lands

        Returns:
            dict: success flag with user and session, or error
        """
        client = self.get_client()

        options = {}
        if email_redirect_to:
            options["email_redirect_to"] = email_redirect_to

        try:
            response = client.auth.sign_up({
                "email": email,
                "password": password,
                "options": options
            })
        except Exception as e:
            logger.error(f"Supabase sign up error: {_error_message(e)}")
            return {
                "success": False,
                "error": _error_message(e)
            }

        return {
            "success": True,
            "user": serialize_user(response.user),
            "session": serialize_session(response.session)
        }

    async def sign_out(self, access_token: Optional[str], refresh_token: Optional[str]) -> Dict[str, Any]:
        """
        Sign out the session identified by the given tokens

        Either token alone is enough to revoke the session.

        Returns:
            dict: success flag or error
        """
        client = self.get_client()

        try:
            if access_token and refresh_token:
                client.auth.set_session(access_token, refresh_token)
                client.auth.sign_out()
            elif refresh_token:
                client.auth.refresh_session(refresh_token)
                client.auth.sign_out()
            else:
                client.auth.admin.sign_out(access_token)
        except Exception as e:
            logger.error(f"Supabase sign out error: {_error_message(e)}")
            return {
                "success": False,
                "error": _error_message(e)
            }

        return {"success": True}

    async def get_user(self, access_token: str) -> Dict[str, Any]:
        """
        Verify an access token and load its user

        Args:
            access_token: JWT access token

        Returns:
            dict: success flag with user (possibly None), or error
        """
        client = self.get_client()

        try:
            response = client.auth.get_user(access_token)
        except Exception as e:
            logger.info(f"Token verification failed: {_error_message(e)}")
            return {
                "success": False,
                "error": _error_message(e)
            }

        return {
            "success": True,
            "user": serialize_user(response.user if response else None)
        }

    async def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        """
        Refresh session using refresh token

        Args:
            refresh_token: Refresh token

        Returns:
            dict: New user and session, or error
        """
        client = self.get_client()

        try:
            response = client.auth.refresh_session(refresh_token)
        except Exception as e:
            logger.info(f"Session refresh error: {_error_message(e)}")
            return {
                "success": False,
                "error": _error_message(e)
            }

        if not response.session:
            return {
                "success": False,
                "error": "Failed to refresh session"
            }

        return {
            "success": True,
            "user": serialize_user(response.user),
            "session": serialize_session(response.session)
        }


_supabase_client: Optional[SupabaseClient] = None


def get_supabase_client() -> SupabaseClient:
    """Get the shared Supabase client wrapper"""
    global _supabase_client
    if _supabase_client is None:
        _supabase_client = SupabaseClient()
    return _supabase_client
