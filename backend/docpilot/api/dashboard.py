"""Overview endpoints."""

from fastapi import APIRouter, Depends

from docpilot.api.deps import get_dashboard_service
from docpilot.dtos import ActivityItem, DashboardStatsResponse, RecentActivityResponse
from docpilot.services.dashboard_service import DashboardService

router = APIRouter(tags=["Dashboard"])


@router.get("/dashboard/stats", response_model=DashboardStatsResponse)
async def get_dashboard_stats(service: DashboardService = Depends(get_dashboard_service)):
    return DashboardStatsResponse(**await service.stats())


@router.get("/recent-activity", response_model=RecentActivityResponse)
async def get_recent_activity(service: DashboardService = Depends(get_dashboard_service)):
    """Latest commits and suggestions across the most recent repositories."""
    entries = await service.recent_activity()
    return RecentActivityResponse(items=[ActivityItem.from_entry(e) for e in entries])
