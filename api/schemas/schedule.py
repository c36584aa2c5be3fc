"""
Schedule Schemas
Pydantic models for profiles, medications and schedule definitions
"""

from typing import Annotated, Optional, List, Union, Literal
from datetime import date, datetime
from pydantic import BaseModel, Field, ConfigDict

from tools.schedule_types import AnchorType, TimePolicy


HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ==================== SCHEMES ====================

class _SchemeBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class DailySchemeIn(_SchemeBase):
    type: Literal["daily"]
    times_per_day: int = Field(..., alias="timesPerDay", ge=1, le=24)
    times: List[str] = Field(default_factory=list)


class WeeklySchemeIn(_SchemeBase):
    type: Literal["weekly"]
    weekdays: List[int] = Field(..., min_length=1, description="Sunday=0 .. Saturday=6")
    times: List[str] = Field(default_factory=list)


class IntervalDaysSchemeIn(_SchemeBase):
    type: Literal["intervalDays"]
    interval: int
    times: List[str] = Field(default_factory=list)


class IntervalHoursSchemeIn(_SchemeBase):
    type: Literal["intervalHours"]
    interval: float
    start_time: str = Field(default="00:00", alias="startTime")


class CourseSchemeIn(_SchemeBase):
    type: Literal["course"]
    total_days: int = Field(..., alias="totalDays")
    times: List[str] = Field(default_factory=list)


class PrnSchemeIn(_SchemeBase):
    type: Literal["prn"]
    max_per_day: Optional[int] = Field(None, alias="maxPerDay")
    min_interval_hours: Optional[float] = Field(None, alias="minIntervalHours")


SchemeIn = Annotated[
    Union[
        DailySchemeIn,
        WeeklySchemeIn,
        IntervalDaysSchemeIn,
        IntervalHoursSchemeIn,
        CourseSchemeIn,
        PrnSchemeIn,
    ],
    Field(discriminator="type"),
]


# ==================== REQUEST SCHEMAS ====================

class ProfileCreate(BaseModel):
    """Schema for creating a profile"""
    name: str = Field(..., min_length=1, max_length=100)
    timezone: str = Field(default="UTC", max_length=50)
    wake_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    breakfast_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    lunch_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    dinner_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    bed_time: Optional[str] = Field(None, pattern=HHMM_PATTERN)
    guardian_mode_enabled: bool = False
    guardian_follow_up_minutes: Optional[int] = Field(None, ge=0)


class MedicationCreate(BaseModel):
    """Schema for adding a medication with optional starting stock"""
    name: str = Field(..., min_length=1, max_length=255)
    form: str = Field(default="tablet", max_length=50)
    strength: Optional[str] = Field(None, max_length=50)
    unit: Optional[str] = Field(None, max_length=20)
    notes: Optional[str] = None
    remaining_units: Optional[float] = Field(None, ge=0)
    low_threshold: float = Field(default=0, ge=0)
    unit_label: str = Field(default="units", max_length=20)


class ScheduleCreate(BaseModel):
    """Schema for creating a schedule"""
    medication_id: int
    scheme: SchemeIn
    dose_amount: float = Field(default=1.0, gt=0)
    anchor_type: Optional[AnchorType] = None
    anchor_offset_minutes: int = 0
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    grace_window_minutes: Optional[int] = None
    time_policy: TimePolicy = TimePolicy.LOCAL_TIME
    enabled: bool = True
    is_paused: bool = False


# ==================== RESPONSE SCHEMAS ====================

class ProfileResponse(BaseModel):
    """Schema for profile response"""
    id: int
    name: str
    timezone: str
    wake_time: Optional[str] = None
    breakfast_time: Optional[str] = None
    lunch_time: Optional[str] = None
    dinner_time: Optional[str] = None
    bed_time: Optional[str] = None
    guardian_mode_enabled: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MedicationResponse(BaseModel):
    """Schema for medication response"""
    id: int
    profile_id: int
    name: str
    form: Optional[str] = None
    strength: Optional[str] = None
    unit: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ScheduleResponse(BaseModel):
    """Schema for schedule response"""
    id: int
    profile_id: int
    medication_id: int
    scheme: dict
    dose_amount: float
    anchor_type: Optional[AnchorType] = None
    anchor_offset_minutes: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    grace_window_minutes: int
    time_policy: TimePolicy
    enabled: bool
    is_paused: bool

    model_config = ConfigDict(from_attributes=True)
