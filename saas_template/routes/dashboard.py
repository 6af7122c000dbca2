"""
Dashboard API Routes
"""

from fastapi import APIRouter

from saas_template.models.dashboard import DashboardStats
from saas_template.services.dashboard_service import DashboardService
from saas_template.utils.dependencies import AuthContextDep

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(context: AuthContextDep):
    return await DashboardService.get_dashboard_stats(context)
