"""
Profiles API Router
Endpoints for profiles, their medications, the daily dose view, alerts and refills
"""

import logging
from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from config import settings
from api.deps import (
    get_clock,
    get_db,
    get_profile_settings,
    get_schedule_repository,
    get_today_service,
)
from api.schemas.dose import (
    DailyDosesResponse,
    DoseViewResponse,
    MissedDoseAlertResponse,
    RefillReminderResponse,
)
from api.schemas.schedule import (
    MedicationCreate,
    MedicationResponse,
    ProfileCreate,
    ProfileResponse,
)
from actions.alert_engine import detect_missed_doses
from actions.reminder_engine import build_refill_reminders
from tools.schedule_types import ProfileSettings
from tools.routine_anchors import resolve_timezone
from services.stores import SqlScheduleRepository
from services.today_service import DoseView, TodayService
import models


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profiles", tags=["profiles"])


def dose_view_response(view: DoseView) -> DoseViewResponse:
    instance = view.instance
    return DoseViewResponse(
        id=instance.instance_id,
        schedule_id=instance.schedule_id,
        item_id=instance.item_id,
        item_name=view.item_name,
        date=instance.date,
        time=view.effective_time.strftime("%H:%M"),
        planned_time=instance.planned_time,
        effective_time=view.effective_time,
        dose_amount=instance.dose_amount,
        status=view.timing.status,
        delay_minutes=view.timing.delay_minutes,
        delay_label=view.delay_label,
        is_within_grace=view.timing.is_within_grace,
        is_taken=view.is_taken,
        is_skipped=view.is_skipped,
        is_snoozed=view.is_snoozed
    )


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
def create_profile(
    body: ProfileCreate,
    db: Session = Depends(get_db)
):
    """
    Create a profile with its routine anchor times
    """
    profile = models.Profile(**body.model_dump())
    db.add(profile)
    db.commit()
    db.refresh(profile)
    logger.info(f"Created profile {profile.id}")
    return profile


@router.post("/{profile_id}/medications", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
def add_medication(
    profile_id: int,
    body: MedicationCreate,
    db: Session = Depends(get_db)
):
    """
    Add a medication, optionally with starting stock
    """
    if db.get(models.Profile, profile_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Profile {profile_id} not found"
        )

    data = body.model_dump()
    remaining = data.pop("remaining_units")
    low_threshold = data.pop("low_threshold")
    unit_label = data.pop("unit_label")

    medication = models.Medication(profile_id=profile_id, **data)
    if remaining is not None:
        medication.inventory = models.InventoryItem(
            remaining_units=remaining,
            low_threshold=low_threshold,
            unit_label=unit_label
        )

    db.add(medication)
    db.commit()
    db.refresh(medication)
    logger.info(f"Added medication {medication.id} to profile {profile_id}")
    return medication


@router.get("/{profile_id}/doses", response_model=DailyDosesResponse)
def get_daily_doses(
    profile_id: int,
    day: Optional[date] = Query(None, description="Local date, defaults to today"),
    profile_settings: ProfileSettings = Depends(get_profile_settings),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    today_service: TodayService = Depends(get_today_service),
    clock=Depends(get_clock)
):
    """
    Daily dose view: every planned dose with its status
    """
    if day is None:
        day = clock().astimezone(resolve_timezone(profile_settings.timezone)).date()

    views = today_service.doses_for(repository.for_profile(str(profile_id)), day, profile_settings)
    return DailyDosesResponse(
        profile_id=profile_id,
        date=day,
        doses=[dose_view_response(v) for v in views],
        total=len(views),
        taken=sum(1 for v in views if v.is_taken),
        skipped=sum(1 for v in views if v.is_skipped)
    )


@router.get("/{profile_id}/alerts/missed", response_model=List[MissedDoseAlertResponse])
def get_missed_dose_alerts(
    profile_id: int,
    db: Session = Depends(get_db),
    profile_settings: ProfileSettings = Depends(get_profile_settings),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    today_service: TodayService = Depends(get_today_service),
    clock=Depends(get_clock)
):
    """
    Today's doses still unresolved after grace plus the guardian follow-up
    """
    profile = db.get(models.Profile, profile_id)
    follow_up = profile.guardian_follow_up_minutes
    if follow_up is None:
        follow_up = settings.GUARDIAN_FOLLOW_UP_MINUTES

    now = clock()
    today = now.astimezone(resolve_timezone(profile_settings.timezone)).date()
    views = today_service.doses_for(repository.for_profile(str(profile_id)), today, profile_settings)

    return [alert.to_dict() for alert in detect_missed_doses(views, now, follow_up)]


@router.get("/{profile_id}/refills", response_model=List[RefillReminderResponse])
def get_refill_reminders(
    profile_id: int,
    threshold_days: int = Query(default=settings.REFILL_THRESHOLD_DAYS, ge=0, le=60),
    profile_settings: ProfileSettings = Depends(get_profile_settings),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    clock=Depends(get_clock)
):
    """
    Items running out within the threshold or below their low-stock level
    """
    today = clock().astimezone(resolve_timezone(profile_settings.timezone)).date()
    schedules_by_item = {}
    for schedule in repository.for_profile(str(profile_id)):
        schedules_by_item.setdefault(schedule.item_id, []).append(schedule)

    reminders = build_refill_reminders(
        repository.inventories_for_profile(str(profile_id)),
        schedules_by_item,
        today,
        threshold_days=threshold_days,
        item_names=repository.item_names(str(profile_id))
    )
    return [reminder.to_dict() for reminder in reminders]
