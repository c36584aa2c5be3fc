"""
Schedule Domain Types
Schedule definitions, recurrence schemes, dose instances and log entries
"""

from typing import Dict, List, Optional, Any, Union
from dataclasses import dataclass, field
from datetime import datetime, date, time
from enum import Enum


DEFAULT_GRACE_WINDOW_MINUTES = 60


class TimePolicy(str, Enum):
    """How stored HH:mm times are interpreted"""
    LOCAL_TIME = "LOCAL_TIME"       # Wall clock in the profile timezone (DST absorbed)
    ABSOLUTE_UTC = "ABSOLUTE_UTC"   # Fixed UTC instant


class AnchorType(str, Enum):
    """Routine life events a dose can be anchored to"""
    WAKE = "after_wake"
    BREAKFAST = "after_breakfast"
    LUNCH = "after_lunch"
    DINNER = "after_dinner"
    BED = "before_sleep"


class DoseAction(str, Enum):
    """Actions recorded in the dose log"""
    TAKEN = "taken"
    SKIPPED = "skipped"
    POSTPONED = "postponed"
    UNDONE = "undone"


class DoseTimingStatus(str, Enum):
    """Timing status of a due dose"""
    PENDING = "pending"
    ON_TIME = "on_time"
    LATE = "late"
    MISSED = "missed"


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    """Parse an 'HH:mm' string, returning None when it is malformed"""
    if not value or not isinstance(value, str) or ":" not in value:
        return None
    try:
        hours, minutes = (int(part) for part in value.split(":")[:2])
        return time(hours, minutes)
    except ValueError:
        return None


def day_of_week(value) -> int:
    """Weekday number with Sunday=0 .. Saturday=6"""
    return (value.weekday() + 1) % 7


# ==================== SCHEMES ====================

@dataclass(frozen=True)
class DailyScheme:
    times_per_day: int
    times: List[str] = field(default_factory=list)
    type: str = field(default="daily", init=False)


@dataclass(frozen=True)
class WeeklyScheme:
    weekdays: List[int]                 # Sunday=0 .. Saturday=6
    times: List[str] = field(default_factory=list)
    type: str = field(default="weekly", init=False)


@dataclass(frozen=True)
class IntervalDaysScheme:
    interval: int
    times: List[str] = field(default_factory=list)
    type: str = field(default="intervalDays", init=False)


@dataclass(frozen=True)
class IntervalHoursScheme:
    interval: float
    start_time: str = "00:00"
    type: str = field(default="intervalHours", init=False)


@dataclass(frozen=True)
class CourseScheme:
    total_days: int
    times: List[str] = field(default_factory=list)
    type: str = field(default="course", init=False)


@dataclass(frozen=True)
class PrnScheme:
    max_per_day: Optional[int] = None
    min_interval_hours: Optional[float] = None
    type: str = field(default="prn", init=False)


Scheme = Union[
    DailyScheme,
    WeeklyScheme,
    IntervalDaysScheme,
    IntervalHoursScheme,
    CourseScheme,
    PrnScheme,
]

SCHEME_TYPES = {
    "daily": DailyScheme,
    "weekly": WeeklyScheme,
    "intervalDays": IntervalDaysScheme,
    "intervalHours": IntervalHoursScheme,
    "course": CourseScheme,
    "prn": PrnScheme,
}


def scheme_times(scheme: Scheme) -> List[str]:
    """Nominal HH:mm times of a scheme (empty for interval-hours and PRN)"""
    return list(getattr(scheme, "times", None) or [])


def scheme_to_dict(scheme: Scheme) -> Dict[str, Any]:
    """Serialize a scheme to a JSON-friendly dict tagged by `type`"""
    data: Dict[str, Any] = {"type": scheme.type}
    if isinstance(scheme, DailyScheme):
        data.update(timesPerDay=scheme.times_per_day, times=list(scheme.times))
    elif isinstance(scheme, WeeklyScheme):
        data.update(weekdays=list(scheme.weekdays), times=list(scheme.times))
    elif isinstance(scheme, IntervalDaysScheme):
        data.update(interval=scheme.interval, times=list(scheme.times))
    elif isinstance(scheme, IntervalHoursScheme):
        data.update(interval=scheme.interval, startTime=scheme.start_time)
    elif isinstance(scheme, CourseScheme):
        data.update(totalDays=scheme.total_days, times=list(scheme.times))
    elif isinstance(scheme, PrnScheme):
        data.update(maxPerDay=scheme.max_per_day, minIntervalHours=scheme.min_interval_hours)
    return data


def scheme_from_dict(data: Dict[str, Any]) -> Scheme:
    """
    Build a scheme from its tagged dict form

    Raises:
        ValueError: if the `type` tag is unknown
    """
    kind = data.get("type")
    times = list(data.get("times") or [])

    if kind == "daily":
        return DailyScheme(
            times_per_day=int(data.get("timesPerDay", len(times))),
            times=times
        )
    if kind == "weekly":
        return WeeklyScheme(weekdays=[int(d) for d in data.get("weekdays", [])], times=times)
    if kind == "intervalDays":
        return IntervalDaysScheme(interval=int(data["interval"]), times=times)
    if kind == "intervalHours":
        return IntervalHoursScheme(
            interval=float(data["interval"]),
            start_time=data.get("startTime") or "00:00"
        )
    if kind == "course":
        return CourseScheme(total_days=int(data["totalDays"]), times=times)
    if kind == "prn":
        return PrnScheme(
            max_per_day=data.get("maxPerDay"),
            min_interval_hours=data.get("minIntervalHours")
        )

    raise ValueError(f"Unknown schedule scheme type: {kind!r}")


# ==================== DEFINITIONS ====================

@dataclass(frozen=True)
class RoutineAnchor:
    """Per-schedule anchor to a routine event"""
    anchor_type: AnchorType
    offset_minutes: int = 0


@dataclass
class ProfileSettings:
    """Per-profile routine base times, as HH:mm strings"""
    profile_id: str
    timezone: str = "UTC"
    wake_time: Optional[str] = None
    breakfast_time: Optional[str] = None
    lunch_time: Optional[str] = None
    dinner_time: Optional[str] = None
    bed_time: Optional[str] = None

    def anchor_base_time(self, anchor_type: AnchorType) -> Optional[str]:
        return {
            AnchorType.WAKE: self.wake_time,
            AnchorType.BREAKFAST: self.breakfast_time,
            AnchorType.LUNCH: self.lunch_time,
            AnchorType.DINNER: self.dinner_time,
            AnchorType.BED: self.bed_time,
        }.get(anchor_type)


@dataclass
class ScheduleDefinition:
    """A medication schedule owned by an item and a profile"""
    id: str
    item_id: str
    scheme: Scheme
    profile_id: Optional[str] = None
    dose_amount: float = 1.0
    anchor: Optional[RoutineAnchor] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    grace_window_minutes: int = DEFAULT_GRACE_WINDOW_MINUTES
    time_policy: TimePolicy = TimePolicy.LOCAL_TIME
    enabled: bool = True
    is_paused: bool = False
    item_name: Optional[str] = None

    @property
    def is_prn(self) -> bool:
        return isinstance(self.scheme, PrnScheme)

    @property
    def is_active(self) -> bool:
        return self.enabled and not self.is_paused

    def covers(self, day: date) -> bool:
        """Whether `day` falls inside the [start_date, end_date] window"""
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        return True


@dataclass(frozen=True)
class DoseInstance:
    """A concrete planned dose for one date. Derived, never persisted."""
    schedule_id: str
    item_id: str
    date: date
    planned_time: datetime
    original_time: str
    dose_amount: float = 1.0
    grace_window_minutes: int = DEFAULT_GRACE_WINDOW_MINUTES
    profile_id: Optional[str] = None

    @property
    def instance_id(self) -> str:
        return f"{self.schedule_id}-{self.date.isoformat()}-{self.original_time}"


@dataclass
class DoseLogEntry:
    """Append-only dose log record"""
    item_id: str
    action: DoseAction
    logged_at: datetime
    scheduled_for: Optional[datetime] = None
    profile_id: Optional[str] = None
    schedule_id: Optional[str] = None
    reason: Optional[str] = None
    note: Optional[str] = None
    snooze_until: Optional[datetime] = None
    grace_window_minutes: Optional[int] = None
    target_id: Optional[str] = None
    units_deducted: Optional[float] = None  # inventory taken off by this entry
    id: Optional[str] = None


@dataclass
class InventoryRecord:
    """Mutable stock counter for one item"""
    item_id: str
    remaining_units: float
    low_threshold: float = 0
    unit_label: str = "units"
