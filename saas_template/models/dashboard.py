"""
Dashboard schemas
"""

from pydantic import BaseModel


class MonthlyGrowth(BaseModel):
    users: int
    active: int
    revenue: int
    projects: int


class DashboardStats(BaseModel):
    total_users: int
    active_users: int
    revenue: int
    active_projects: int
    monthly_growth: MonthlyGrowth
