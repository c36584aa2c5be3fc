"""
Schedules API Router
Endpoints for schedule definitions and as-needed (PRN) intake
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from config import settings
from api.deps import (
    get_db,
    get_dose_action_service,
    get_schedule_repository,
    get_today_service,
    load_schedule,
    rejection_response,
)
from api.doses import entry_response
from api.schemas.dose import DoseLogResponse, PrnDoseRequest, PrnStatusResponse
from api.schemas.schedule import ScheduleCreate, ScheduleResponse
from tools.schedule_types import scheme_from_dict, scheme_to_dict
from tools.validation import DoseActionRejected, ScheduleValidationError, validate_schedule
from services.stores import SqlProfileSettingsProvider, SqlScheduleRepository, schedule_from_row
from services.dose_action_service import DoseActionService
from services.today_service import TodayService
import models


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/schedules", tags=["schedules"])


@router.post("", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_schedule(
    body: ScheduleCreate,
    db: Session = Depends(get_db)
):
    """
    Create a schedule for a medication

    The scheme is validated before anything is stored.
    """
    medication = db.get(models.Medication, body.medication_id)
    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {body.medication_id} not found"
        )

    scheme = scheme_from_dict(body.scheme.model_dump(by_alias=True))
    schedule = models.MedicationSchedule(
        profile_id=medication.profile_id,
        medication_id=medication.id,
        scheme=scheme_to_dict(scheme),
        dose_amount=body.dose_amount,
        anchor_type=body.anchor_type,
        anchor_offset_minutes=body.anchor_offset_minutes,
        start_date=body.start_date,
        end_date=body.end_date,
        grace_window_minutes=(
            settings.DEFAULT_GRACE_WINDOW_MINUTES
            if body.grace_window_minutes is None
            else body.grace_window_minutes
        ),
        time_policy=body.time_policy,
        enabled=body.enabled,
        is_paused=body.is_paused
    )
    try:
        validate_schedule(schedule_from_row(schedule))
    except ScheduleValidationError as e:
        raise rejection_response(e)

    db.add(schedule)
    db.commit()
    db.refresh(schedule)

    logger.info(f"Created {scheme.type} schedule {schedule.id} for medication {medication.id}")
    return schedule


@router.get("/{schedule_id}/prn-status", response_model=PrnStatusResponse)
def get_prn_status(
    schedule_id: int,
    db: Session = Depends(get_db),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    today_service: TodayService = Depends(get_today_service)
):
    """
    Whether another as-needed dose may be taken now
    """
    schedule = load_schedule(repository, schedule_id)
    if not schedule.is_prn:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Schedule {schedule_id} is not an as-needed schedule"
        )

    profile_settings = SqlProfileSettingsProvider(db).get(schedule.profile_id)
    result = today_service.prn_status(schedule, profile_settings)

    return PrnStatusResponse(
        schedule_id=schedule_id,
        can_take=result.can_take,
        doses_today=result.doses_today,
        reason=result.reason.value if result.reason else None,
        message=result.message,
        next_available_time=result.next_available_time
    )


@router.post("/{schedule_id}/prn-dose", response_model=DoseLogResponse, status_code=status.HTTP_201_CREATED)
def take_prn_dose(
    schedule_id: int,
    body: Optional[PrnDoseRequest] = None,
    db: Session = Depends(get_db),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    action_service: DoseActionService = Depends(get_dose_action_service)
):
    """
    Log an as-needed intake, enforcing the daily cap and minimum spacing
    """
    schedule = load_schedule(repository, schedule_id)
    profile_settings = SqlProfileSettingsProvider(db).get(schedule.profile_id)

    try:
        entry = action_service.take_prn(schedule, profile_settings, note=body.note if body else None)
    except DoseActionRejected as e:
        raise rejection_response(e)
    return entry_response(entry)
