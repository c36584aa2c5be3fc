"""
API Module
FastAPI routers for the DoseTrack application
"""

from api.profiles import router as profiles_router
from api.doses import router as doses_router
from api.schedules import router as schedules_router
from api.inventory import router as inventory_router
from api.adherence import router as adherence_router

from api.deps import (
    get_db,
    get_clock,
    get_dose_action_service,
    get_today_service,
    get_adherence_service,
    get_profile_settings,
)

from config import settings


__all__ = [
    # Routers
    "profiles_router",
    "doses_router",
    "schedules_router",
    "inventory_router",
    "adherence_router",
    # Dependencies
    "get_db",
    "get_clock",
    "get_dose_action_service",
    "get_today_service",
    "get_adherence_service",
    "get_profile_settings",
]


def include_routers(app):
    """
    Include all API routers in the FastAPI app

    Usage:
        from api import include_routers
        include_routers(app)
    """
    app.include_router(profiles_router, prefix=settings.API_PREFIX)
    app.include_router(doses_router, prefix=settings.API_PREFIX)
    app.include_router(schedules_router, prefix=settings.API_PREFIX)
    app.include_router(inventory_router, prefix=settings.API_PREFIX)
    app.include_router(adherence_router, prefix=settings.API_PREFIX)
