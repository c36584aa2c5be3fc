"""
Doses API Router
Endpoints for taken / skip / postpone / undo dose actions
"""

import logging
from dataclasses import asdict
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import (
    get_db,
    get_dose_action_service,
    get_schedule_repository,
    get_today_service,
    load_schedule,
    rejection_response,
)
from api.schemas.dose import (
    DoseRef,
    DoseTakenRequest,
    DoseSkipRequest,
    DosePostponeRequest,
    DoseLogResponse,
    PostponeResponse,
    CollisionResponse,
)
from tools.schedule_types import DoseInstance, DoseLogEntry
from tools.scheduler import ScheduleExpander
from tools.validation import DoseActionRejected
from services.stores import SqlProfileSettingsProvider, SqlScheduleRepository
from services.dose_action_service import DoseActionService
from services.today_service import TodayService


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/doses", tags=["doses"])


def entry_response(entry: DoseLogEntry) -> DoseLogResponse:
    data = asdict(entry)
    data.pop("grace_window_minutes", None)
    data.pop("units_deducted", None)
    return DoseLogResponse(**data)


def resolve_instance(
    dose: DoseRef,
    repository: SqlScheduleRepository,
    db: Session
) -> DoseInstance:
    """Re-expand the schedule for the requested date and pick the slot"""
    schedule = load_schedule(repository, dose.schedule_id)
    profile_settings = SqlProfileSettingsProvider(db).get(schedule.profile_id)

    for instance in ScheduleExpander(profile_settings).expand(schedule, dose.date):
        if instance.original_time == dose.time:
            return instance

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Schedule {dose.schedule_id} has no dose at {dose.time} on {dose.date}"
    )


@router.post("/taken", response_model=DoseLogResponse, status_code=status.HTTP_201_CREATED)
def mark_taken(
    body: DoseTakenRequest,
    db: Session = Depends(get_db),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    action_service: DoseActionService = Depends(get_dose_action_service)
):
    """
    Mark a planned dose as taken
    """
    instance = resolve_instance(body, repository, db)
    return entry_response(action_service.mark_taken(instance, note=body.note))


@router.post("/skip", response_model=DoseLogResponse, status_code=status.HTTP_201_CREATED)
def skip_dose(
    body: DoseSkipRequest,
    db: Session = Depends(get_db),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    action_service: DoseActionService = Depends(get_dose_action_service)
):
    """
    Skip a planned dose with a reason
    """
    instance = resolve_instance(body, repository, db)
    try:
        entry = action_service.skip(instance, body.reason, note=body.note)
    except DoseActionRejected as e:
        raise rejection_response(e)
    return entry_response(entry)


@router.post("/postpone", response_model=PostponeResponse, status_code=status.HTTP_201_CREATED)
def postpone_dose(
    body: DosePostponeRequest,
    db: Session = Depends(get_db),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    action_service: DoseActionService = Depends(get_dose_action_service),
    today_service: TodayService = Depends(get_today_service)
):
    """
    Postpone a planned dose; reports a collision with other doses due that day
    """
    instance = resolve_instance(body, repository, db)
    profile_settings = SqlProfileSettingsProvider(db).get(instance.profile_id)
    other_due = today_service.due_times(
        repository.for_profile(instance.profile_id), body.date, profile_settings
    )

    try:
        result = action_service.postpone(instance, body.minutes, other_due)
    except DoseActionRejected as e:
        raise rejection_response(e)

    colliding = result.collision.colliding_dose
    return PostponeResponse(
        entry=entry_response(result.entry),
        collision=CollisionResponse(
            has_collision=result.collision.has_collision,
            colliding_time=colliding.time if colliding else None,
            colliding_item_id=colliding.item_id if colliding else None,
            colliding_label=colliding.label if colliding else None
        )
    )


@router.post("/undo/{entry_id}", response_model=DoseLogResponse, status_code=status.HTTP_201_CREATED)
def undo_action(
    entry_id: int,
    action_service: DoseActionService = Depends(get_dose_action_service)
):
    """
    Undo a recent taken or skipped entry
    """
    try:
        entry = action_service.undo(str(entry_id))
    except DoseActionRejected as e:
        raise rejection_response(e)
    return entry_response(entry)
