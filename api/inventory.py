"""
Inventory API Router
Endpoints for stock forecasts
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_clock, get_db, get_schedule_repository
from api.schemas.dose import InventoryForecastResponse
from tools.inventory_forecaster import forecast
from tools.routine_anchors import resolve_timezone
from services.stores import SqlInventoryStore, SqlProfileSettingsProvider, SqlScheduleRepository
import models


router = APIRouter(prefix="/inventory", tags=["inventory"])


@router.get("/{item_id}/forecast", response_model=InventoryForecastResponse)
def get_inventory_forecast(
    item_id: int,
    db: Session = Depends(get_db),
    repository: SqlScheduleRepository = Depends(get_schedule_repository),
    clock=Depends(get_clock)
):
    """
    When the item's stock runs out at its scheduled consumption
    """
    record = SqlInventoryStore(db).get(str(item_id))
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No inventory for item {item_id}"
        )

    medication = db.get(models.Medication, item_id)
    profile_settings = SqlProfileSettingsProvider(db).get(str(medication.profile_id))
    today = clock().astimezone(resolve_timezone(profile_settings.timezone)).date()

    result = forecast(record, repository.for_item(str(item_id)), today)
    return InventoryForecastResponse(
        item_id=result.item_id,
        remaining_units=result.remaining_units,
        daily_consumption=result.daily_consumption,
        enough_until=result.enough_until,
        days_remaining=result.days_remaining,
        urgency=result.urgency.value,
        is_approximate=result.is_approximate
    )
