"""
Health check and runtime configuration routes
"""

from datetime import datetime, timezone
from fastapi import APIRouter, HTTPException
import logging

from saas_template.config import get_settings
from saas_template.utils.redis_client import check_redis_health
from saas_template.utils.stripe_client import get_stripe_client
from saas_template.utils.supabase_client import get_supabase_client

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check():
    """Service health check"""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": "saas-template",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version
    }


@router.get("/health/detailed")
async def detailed_health_check():
    """Health of the collaborators the app depends on"""
    settings = get_settings()
    redis_ok = await check_redis_health()

    components = {
        "redis": {"status": "healthy" if redis_ok else "unhealthy"},
        "supabase": {"status": "configured" if get_supabase_client().is_available() else "not_configured"},
        "stripe": {"status": "configured" if get_stripe_client().is_available() else "not_configured"},
    }

    if not redis_ok:
        logger.error("Detailed health check failed: redis unavailable")
        raise HTTPException(status_code=503, detail="Service unavailable")

    return {
        "status": "healthy",
        "service": "saas-template",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.version,
        "components": components
    }


@router.get("/api/config")
async def get_config():
    """Runtime configuration for the browser"""
    settings = get_settings()
    return {
        'APP_NAME': settings.app_name,
        'ENVIRONMENT': settings.environment,
        'APP_URL': settings.app_url,
        'VERSION': settings.version,
        'FEATURES': {
            'billing': get_stripe_client().is_available(),
            'credits': True
        }
    }
