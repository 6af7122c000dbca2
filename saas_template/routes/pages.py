"""
Public Pages
Marketing page, login, registration and logout
"""

from typing import Optional
import logging

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from saas_template.models.auth import AuthErrorResponse
from saas_template.services.auth_service import AuthService
from saas_template.utils.dependencies import OptionalUser
from saas_template.utils.session_cookies import (
    read_session_cookies, remember_session, forget_session
)
from saas_template.utils.templating import render, flash, safe_redirect_path

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_LOGIN_REDIRECT = "/alerts"
SIGNED_IN_HOME = "/app"

FEATURES = [
    {
        'title': 'Authentication Ready',
        'description': 'Email and password sign in with Supabase, protected routes and automatic session refresh.',
    },
    {
        'title': 'Modern Stack',
        'description': 'FastAPI, server-rendered Jinja2 pages and Stripe billing wired in from day one.',
    },
    {
        'title': 'Responsive Design',
        'description': 'Layouts that work on phones, tablets and desktops without extra effort.',
    },
]

PRICING = [
    {
        'name': 'Starter',
        'tagline': 'Perfect for getting started',
        'price': '$9',
        'period': '/month',
        'features': ['Up to 1,000 users', 'Basic analytics', '24/7 support'],
        'highlight': False,
    },
    {
        'name': 'Pro',
        'tagline': 'For growing businesses',
        'price': '$29',
        'period': '/month',
        'features': ['Up to 10,000 users', 'Advanced analytics', 'Priority support'],
        'highlight': True,
    },
    {
        'name': 'Enterprise',
        'tagline': 'For large organizations',
        'price': 'Custom',
        'period': '',
        'features': ['Unlimited users', 'Custom analytics', 'Dedicated support'],
        'highlight': False,
    },
]


def _see_other(url: str) -> RedirectResponse:
    return RedirectResponse(url=url, status_code=303)


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, user: OptionalUser):
    """Marketing page with features and pricing"""
    return render(request, "index.html", {'features': FEATURES, 'pricing': PRICING})


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request, user: OptionalUser, redirect: Optional[str] = None):
    if user:
        return _see_other(SIGNED_IN_HOME)
    return render(request, "login.html", {'redirect': redirect or ''})


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    redirect: Optional[str] = Form(None),
):
    """Form login; on success the session is stored in cookies"""
    result = await AuthService.login(email, password)

    if isinstance(result, AuthErrorResponse):
        flash(request, "Error", result.message or "An unexpected error occurred", "destructive")
        return render(
            request, "login.html",
            {'redirect': redirect or '', 'email': email},
            status_code=400
        )

    if result.data.session:
        remember_session(request, result.data.session.model_dump())

    flash(request, "Success", "Successfully logged in")
    return _see_other(safe_redirect_path(redirect, DEFAULT_LOGIN_REDIRECT))


@router.get("/register", response_class=HTMLResponse)
async def register_page(request: Request, user: OptionalUser):
    if user:
        return _see_other(SIGNED_IN_HOME)
    return render(request, "register.html")


@router.post("/register", response_class=HTMLResponse)
async def register_submit(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
):
    result = await AuthService.signup(email, password)

    if isinstance(result, AuthErrorResponse):
        flash(request, "Error", result.message or "An unexpected error occurred", "destructive")
        return render(request, "register.html", {'email': email}, status_code=400)

    flash(
        request,
        "Success",
        "Account created successfully. Please check your email to confirm your account."
    )
    return _see_other("/login")


@router.post("/logout")
async def logout(request: Request, next: Optional[str] = Form(None)):
    """
    Sign out

    Cookies are only cleared once the provider accepted the sign out.
    """
    cookies = read_session_cookies(request)
    result = await AuthService.logout(cookies.access_token, cookies.refresh_token)

    if result.error:
        flash(request, "Logout failed", result.message or "Try again.", "destructive")
        return _see_other(safe_redirect_path(next, SIGNED_IN_HOME))

    forget_session(request)
    flash(request, "Logged out", "You have been signed out.")
    return _see_other("/login")
