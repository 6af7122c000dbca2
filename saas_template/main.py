"""
SaaS Template - FastAPI Application
Marketing pages, Supabase authentication, protected app area and Stripe billing
"""

import time
from contextlib import asynccontextmanager
from pathlib import Path
from urllib.parse import urlencode
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from saas_template.config import get_settings
from saas_template.routes import auth, billing, credits, dashboard, health, pages, app_pages
from saas_template.utils.dependencies import LoginRequired
from saas_template.utils.logger import setup_logging, get_request_logger
from saas_template.utils.redis_client import close_redis_client
from saas_template.utils.session_cookies import apply_session_changes
from saas_template.utils.templating import render

logger = logging.getLogger(__name__)

settings = get_settings()
setup_logging(settings.logging_config_path, settings.log_level, settings.log_format)

request_logger = get_request_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    # Startup
    logger.info("SaaS Template starting up...")
    settings.log_config()

    yield

    # Shutdown
    logger.info("SaaS Template shutting down...")
    await close_redis_client()


# Create FastAPI application
app = FastAPI(
    title="SaaS Template",
    description="Server-rendered SaaS template with Supabase auth and Stripe billing",
    version=settings.version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)


@app.middleware("http")
async def session_cookie_middleware(request: Request, call_next):
    """Apply session cookie changes decided during the request and log it"""
    start = time.perf_counter()
    response = await call_next(request)
    apply_session_changes(request, response)

    state = getattr(request.state, 'auth_session', None)
    request_logger.log_request(
        request.method,
        request.url.path,
        response.status_code,
        time.perf_counter() - start,
        user_id=state.user.id if state else None,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get('user-agent'),
    )
    return response


# Flash toasts live in a signed cookie
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    same_site="lax",
    https_only=settings.is_production,
)


def _is_api_request(request: Request) -> bool:
    return request.url.path.startswith(("/api/", "/health"))


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    """Send visitors of protected pages to login, then back"""
    query = urlencode({'redirect': exc.redirect}) if exc.redirect else ''
    return RedirectResponse(url=f"/login?{query}" if query else "/login", status_code=303)


# Global exception handler
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Custom HTTP exception handler"""
    if _is_api_request(request):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": True,
                "message": exc.detail,
                "status_code": exc.status_code
            },
            headers=getattr(exc, 'headers', None)
        )

    return render(
        request,
        "error.html",
        {'status_code': exc.status_code, 'message': exc.detail},
        status_code=exc.status_code
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    message = errors[0].get('msg', 'Invalid request') if errors else 'Invalid request'
    return JSONResponse(
        status_code=422,
        content={
            "error": True,
            "message": message,
            "status_code": 422
        }
    )


static_dir = Path(__file__).resolve().parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(billing.router, prefix="/api/billing", tags=["Billing"])
app.include_router(credits.router, prefix="/api/credits", tags=["Credits"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(pages.router, tags=["Pages"])
app.include_router(app_pages.router, tags=["App"])
