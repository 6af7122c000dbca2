"""
Authentication Service
Login, signup, logout and token checks against Supabase Auth
"""

from typing import Optional
import logging

from pydantic import ValidationError

from saas_template.config import get_settings
from saas_template.models.auth import (
    AuthInputSchema, AuthData, AuthResponse, AuthSuccessResponse, AuthErrorResponse,
    LogoutResponse, AuthCheckResponse, GetCreditsResponse, SerializableUser, SerializableSession
)
from saas_template.services.credits_service import get_credits_service
from saas_template.utils.supabase_client import get_supabase_client, SupabaseUnavailable

logger = logging.getLogger(__name__)

# Supabase messages rewritten for people
LOGIN_ERROR_MESSAGES = {
    'Invalid login credentials': 'Invalid email or password',
    'Email not confirmed': 'Please confirm your email address before logging in',
    'Invalid email or password': 'The email or password you entered is incorrect',
}

FIELD_ERROR_MESSAGES = {
    'email': 'Invalid email address',
    'password': 'Password must be at least 6 characters',
}

UNAVAILABLE_MESSAGE = 'Authentication service unavailable'


def validation_message(exc: ValidationError) -> str:
    """First field error of an auth form, phrased for the user"""
    for error in exc.errors():
        loc = error.get('loc') or ()
        field = loc[0] if loc else None
        if field in FIELD_ERROR_MESSAGES:
            return FIELD_ERROR_MESSAGES[field]
    return 'Invalid input'


def _auth_data(result: dict) -> AuthData:
    user = result.get('user')
    session = result.get('session')
    return AuthData(
        user=SerializableUser(**user) if user else None,
        session=SerializableSession(**session) if session else None,
    )


class AuthService:
    """Supabase-backed authentication service"""

    @staticmethod
    def map_login_error(message: str) -> str:
        return LOGIN_ERROR_MESSAGES.get(message, message)

    @staticmethod
    async def login(email: str, password: str) -> AuthResponse:
        """
        Sign a user in

        Args:
            email: User email
            password: User password

        Returns:
            AuthResponse: user and session, or a user-facing error message
        """
        try:
            credentials = AuthInputSchema(email=email, password=password)
        except ValidationError as e:
            return AuthErrorResponse(message=validation_message(e))

        try:
            result = await get_supabase_client().sign_in_with_password(
                credentials.email, credentials.password
            )
        except SupabaseUnavailable:
            logger.error("Login attempted without Supabase configuration")
            return AuthErrorResponse(message=UNAVAILABLE_MESSAGE)

        if not result['success']:
            return AuthErrorResponse(message=AuthService.map_login_error(result['error']))

        if not result.get('email_confirmed'):
            logger.info(f"Login refused, email not confirmed: {credentials.email}")
            return AuthErrorResponse(message='Email not confirmed')

        logger.info(f"User logged in: {credentials.email}")
        return AuthSuccessResponse(data=_auth_data(result))

    @staticmethod
    async def signup(email: str, password: str) -> AuthResponse:
        """
        Register a user; Supabase sends the confirmation email

        Args:
            email: User email
            password: User password

        Returns:
            AuthResponse: user and (usually empty) session, or the provider error
        """
        try:
            credentials = AuthInputSchema(email=email, password=password)
        except ValidationError as e:
            return AuthErrorResponse(message=validation_message(e))

        email_redirect_to = f"{get_settings().app_url}/login"

        try:
            result = await get_supabase_client().sign_up(
                credentials.email, credentials.password, email_redirect_to=email_redirect_to
            )
        except SupabaseUnavailable:
            logger.error("Signup attempted without Supabase configuration")
            return AuthErrorResponse(message=UNAVAILABLE_MESSAGE)

        if not result['success']:
            logger.error(f"Error signing up {credentials.email}: {result['error']}")
            return AuthErrorResponse(message=result['error'])

        logger.info(f"User signed up: {credentials.email}")
        return AuthSuccessResponse(data=_auth_data(result))

    @staticmethod
    async def logout(access_token: Optional[str], refresh_token: Optional[str]) -> LogoutResponse:
        """
        Sign out the current session

        Without tokens there is nothing to revoke and the call succeeds.
        """
        if not access_token and not refresh_token:
            return LogoutResponse(error=False)

        if not access_token or not refresh_token:
            logger.warning(
                f"Logout with a partial session (access token: {bool(access_token)}, "
                f"refresh token: {bool(refresh_token)})"
            )

        try:
            result = await get_supabase_client().sign_out(access_token, refresh_token)
        except SupabaseUnavailable:
            return LogoutResponse(error=True, message=UNAVAILABLE_MESSAGE)

        if not result['success']:
            return LogoutResponse(error=True, message=result['error'])

        return LogoutResponse(error=False)

    @staticmethod
    async def check_auth(access_token: Optional[str]) -> AuthCheckResponse:
        """
        Validate an access token

        Returns:
            AuthCheckResponse: the user, or why there is none
        """
        if not access_token:
            return AuthCheckResponse(error=True, message='Not authenticated')

        try:
            result = await get_supabase_client().get_user(access_token)
        except SupabaseUnavailable:
            return AuthCheckResponse(error=True, message=UNAVAILABLE_MESSAGE)

        if not result['success']:
            return AuthCheckResponse(error=True, message=result['error'])

        if not result.get('user'):
            return AuthCheckResponse(error=True, message='Not authenticated')

        return AuthCheckResponse(error=False, user=SerializableUser(**result['user']))

    @staticmethod
    async def refresh(refresh_token: Optional[str]) -> AuthResponse:
        """Exchange a refresh token for a new session"""
        if not refresh_token:
            return AuthErrorResponse(message='Not authenticated')

        try:
            result = await get_supabase_client().refresh_session(refresh_token)
        except SupabaseUnavailable:
            return AuthErrorResponse(message=UNAVAILABLE_MESSAGE)

        if not result['success']:
            return AuthErrorResponse(message=result['error'])

        return AuthSuccessResponse(data=_auth_data(result))

    @staticmethod
    async def get_credits(context) -> GetCreditsResponse:
        """
        Credit balance of the signed-in user

        Args:
            context: AuthContext from the API guard
        """
        try:
            credits = await get_credits_service().get_balance(context.user.id)
        except Exception as e:
            logger.error(f"Failed to load credits for {context.user.id}: {e}")
            return GetCreditsResponse(error=True, message="Credits are temporarily unavailable")

        return GetCreditsResponse(error=False, credits=credits)
