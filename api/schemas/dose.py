"""
Dose Schemas
Pydantic models for dose actions, the daily view, PRN, alerts and inventory
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, Field

from tools.schedule_types import DoseAction, DoseTimingStatus


# ==================== REQUEST SCHEMAS ====================

class DoseRef(BaseModel):
    """Identifies one planned dose: schedule, date and HH:mm slot"""
    schedule_id: int
    date: date
    time: str = Field(..., description="Original slot in HH:MM format")


class DoseTakenRequest(DoseRef):
    note: Optional[str] = None


class DoseSkipRequest(DoseRef):
    reason: str = Field(..., max_length=100)
    note: Optional[str] = None


class DosePostponeRequest(DoseRef):
    minutes: int


class PrnDoseRequest(BaseModel):
    note: Optional[str] = None


# ==================== RESPONSE SCHEMAS ====================

class DoseLogResponse(BaseModel):
    """A dose log entry"""
    id: str
    item_id: str
    profile_id: Optional[str] = None
    schedule_id: Optional[str] = None
    action: DoseAction
    scheduled_for: Optional[datetime] = None
    logged_at: datetime
    snooze_until: Optional[datetime] = None
    reason: Optional[str] = None
    note: Optional[str] = None
    target_id: Optional[str] = None


class CollisionResponse(BaseModel):
    has_collision: bool
    colliding_time: Optional[datetime] = None
    colliding_item_id: Optional[str] = None
    colliding_label: Optional[str] = None


class PostponeResponse(BaseModel):
    entry: DoseLogResponse
    collision: CollisionResponse


class DoseViewResponse(BaseModel):
    """One dose in the daily view"""
    id: str
    schedule_id: str
    item_id: str
    item_name: Optional[str] = None
    date: date
    time: str
    planned_time: datetime
    effective_time: datetime
    dose_amount: float
    status: DoseTimingStatus
    delay_minutes: int
    delay_label: str
    is_within_grace: bool
    is_taken: bool
    is_skipped: bool
    is_snoozed: bool


class DailyDosesResponse(BaseModel):
    profile_id: int
    date: date
    doses: List[DoseViewResponse]
    total: int
    taken: int
    skipped: int


class PrnStatusResponse(BaseModel):
    schedule_id: int
    can_take: bool
    doses_today: int
    reason: Optional[str] = None
    message: Optional[str] = None
    next_available_time: Optional[datetime] = None


class MissedDoseAlertResponse(BaseModel):
    alert_type: str
    severity: str
    dose_id: str
    schedule_id: str
    item_id: str
    item_name: Optional[str] = None
    planned_time: datetime
    overdue_minutes: int
    message: str


class InventoryForecastResponse(BaseModel):
    item_id: str
    remaining_units: float
    daily_consumption: float
    enough_until: Optional[date] = None
    days_remaining: Optional[int] = None
    urgency: str
    is_approximate: bool


class RefillReminderResponse(BaseModel):
    reminder_type: str
    priority: str
    item_id: str
    item_name: Optional[str] = None
    remaining_units: float
    days_remaining: Optional[int] = None
    enough_until: Optional[date] = None
    urgency: str
    is_approximate: bool
    message: str
