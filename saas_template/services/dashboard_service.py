"""
Dashboard Service
"""

import logging

from saas_template.models.dashboard import DashboardStats, MonthlyGrowth
from saas_template.utils.dependencies import AuthContext

logger = logging.getLogger(__name__)


class DashboardService:

    @staticmethod
    async def get_dashboard_stats(context: AuthContext) -> DashboardStats:
        """Headline metrics; fixed figures until an analytics backend exists"""
        logger.debug(f"Dashboard stats requested by {context.user.id} (token length {len(context.access_token)})")

        return DashboardStats(
            total_users=1234,
            active_users=891,
            revenue=12345,
            active_projects=23,
            monthly_growth=MonthlyGrowth(users=12, active=5, revenue=8, projects=2),
        )
