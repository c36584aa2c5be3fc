"""
Adherence API Router
Endpoints for medication adherence analytics
"""

from fastapi import APIRouter, Depends, Query

from config import settings
from api.deps import get_adherence_service, get_profile_settings, get_schedule_repository
from api.schemas.adherence import AdherenceDashboard
from tools.schedule_types import ProfileSettings
from services.adherence_service import AdherenceService
from services.stores import SqlScheduleRepository


router = APIRouter(prefix="/adherence", tags=["adherence"])


@router.get("/{profile_id}/dashboard", response_model=AdherenceDashboard)
def get_adherence_dashboard(
    profile_id: int,
    days: int = Query(default=settings.ANALYTICS_WINDOW_DAYS, ge=1, le=365),
    profile_settings: ProfileSettings = Depends(get_profile_settings),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    adherence_service: AdherenceService = Depends(get_adherence_service)
):
    """
    Get complete adherence dashboard data
    Rates, 7x24 heatmap, problem times, streaks and per-medication breakdown
    """
    report = adherence_service.dashboard(
        profile_id=str(profile_id),
        days=days,
        profile_settings=profile_settings,
        item_names=repository.item_names(str(profile_id))
    )
    return report.to_dict()
