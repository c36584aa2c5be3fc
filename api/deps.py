"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from database import get_db
from tools.schedule_types import ProfileSettings, ScheduleDefinition
from tools.validation import DoseActionRejected, ScheduleValidationError
from services.stores import (
    SqlDoseLogStore,
    SqlInventoryStore,
    SqlProfileSettingsProvider,
    SqlScheduleRepository,
    system_clock,
)
from services.dose_action_service import DoseActionService
from services.today_service import TodayService
from services.adherence_service import AdherenceService
import models


def get_clock():
    """
    Clock dependency
    Tests override this with a fixed clock
    """
    return system_clock


def get_schedule_repository(db: Session = Depends(get_db)) -> SqlScheduleRepository:
    return SqlScheduleRepository(db)


def get_dose_action_service(
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
) -> DoseActionService:
    return DoseActionService(SqlDoseLogStore(db), SqlInventoryStore(db), clock=clock)


def get_today_service(
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
) -> TodayService:
    return TodayService(SqlDoseLogStore(db), clock=clock)


def get_adherence_service(
    db: Session = Depends(get_db),
    clock=Depends(get_clock)
) -> AdherenceService:
    return AdherenceService(SqlDoseLogStore(db), clock=clock)


def get_profile_settings(
    profile_id: int,
    db: Session = Depends(get_db)
) -> ProfileSettings:
    """
    Validate profile exists and return its routine settings
    """
    if db.get(models.Profile, profile_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Profile {profile_id} not found"
        )
    return SqlProfileSettingsProvider(db).get(str(profile_id))


def load_schedule(repository: SqlScheduleRepository, schedule_id: int) -> ScheduleDefinition:
    """Schedule definition or 404"""
    try:
        schedule = repository.get(str(schedule_id))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    if schedule is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Schedule {schedule_id} not found"
        )
    return schedule


def rejection_response(error: Exception) -> HTTPException:
    """Map engine rejections to 422 with their reason codes"""
    if isinstance(error, DoseActionRejected):
        detail = {"reason": error.reason.value, "message": error.message}
    elif isinstance(error, ScheduleValidationError):
        detail = {
            "reason": error.reasons[0].value,
            "reasons": [r.value for r in error.reasons],
            "message": str(error)
        }
    else:
        detail = {"reason": "invalid", "message": str(error)}
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=detail)
