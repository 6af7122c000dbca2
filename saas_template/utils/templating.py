"""
Page Rendering
Jinja2 templates, flash toasts and the context every page receives
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from fastapi.templating import Jinja2Templates
from starlette.requests import Request

from saas_template.config import get_settings

TOAST_SESSION_KEY = "_toasts"

templates_dir = Path(__file__).resolve().parent.parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))


def flash(request: Request, title: str, description: str = "", variant: str = "default") -> None:
    """
    Queue a toast for the next rendered page

    Args:
        variant: 'default' or 'destructive'
    """
    toasts = request.session.setdefault(TOAST_SESSION_KEY, [])
    toasts.append({'title': title, 'description': description, 'variant': variant})
    request.session[TOAST_SESSION_KEY] = toasts


def pop_toasts(request: Request) -> List[Dict[str, str]]:
    return request.session.pop(TOAST_SESSION_KEY, [])


def safe_redirect_path(target: Optional[str], default: str) -> str:
    """Only same-site absolute paths are followed after login"""
    if not target:
        return default
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith('/') or target.startswith('//') or '\\' in target:
        return default
    return target


def render(
    request: Request,
    name: str,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 200
):
    """Render a template with toasts, settings and session timing"""
    settings = get_settings()
    state = getattr(request.state, 'auth_session', None)

    page_context = {
        'app_name': settings.app_name,
        'current_year': datetime.now().year,
        'current_path': request.url.path,
        'toasts': pop_toasts(request),
        'user': state.user if state else None,
        'refresh_in': state.refresh_in() if state else None,
    }
    page_context.update(context or {})

    return templates.TemplateResponse(request, name, page_context, status_code=status_code)
