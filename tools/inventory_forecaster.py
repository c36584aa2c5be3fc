"""
Inventory Forecaster
Projects when an item's stock runs out from its schedule's consumption cadence
"""

import logging
import math
from typing import List, Optional, Iterable
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from tools.schedule_types import (
    ScheduleDefinition,
    InventoryRecord,
    DailyScheme,
    WeeklyScheme,
    IntervalDaysScheme,
    IntervalHoursScheme,
    CourseScheme,
    PrnScheme,
)


logger = logging.getLogger(__name__)

# PRN usage is not deterministic; assume half of the daily maximum
PRN_USAGE_ESTIMATE = 0.5


class InventoryUrgency(str, Enum):
    OK = "ok"
    LOW = "low"
    CRITICAL = "critical"
    EMPTY = "empty"


@dataclass(frozen=True)
class InventoryForecast:
    item_id: str
    remaining_units: float
    daily_consumption: float
    enough_until: Optional[date]
    days_remaining: Optional[int]
    urgency: InventoryUrgency
    is_approximate: bool = False


def doses_per_day(schedule: ScheduleDefinition) -> float:
    """Average doses per day implied by a schedule's scheme"""
    scheme = schedule.scheme

    if isinstance(scheme, DailyScheme):
        return float(scheme.times_per_day)

    if isinstance(scheme, WeeklyScheme):
        return len(scheme.weekdays) * len(scheme.times) / 7

    if isinstance(scheme, IntervalDaysScheme):
        if scheme.interval <= 0:
            return 0.0
        return len(scheme.times) / scheme.interval

    if isinstance(scheme, IntervalHoursScheme):
        if not scheme.interval or scheme.interval <= 0:
            return 0.0
        return 24 / scheme.interval

    if isinstance(scheme, CourseScheme):
        return float(len(scheme.times))

    if isinstance(scheme, PrnScheme):
        if not scheme.max_per_day:
            return 0.0
        return scheme.max_per_day * PRN_USAGE_ESTIMATE

    return 0.0


def daily_consumption(schedule: Optional[ScheduleDefinition]) -> float:
    """Units consumed per day; 0 for missing, paused or disabled schedules"""
    if schedule is None or not schedule.is_active:
        return 0.0
    return doses_per_day(schedule) * (schedule.dose_amount or 1)


def _project(remaining: float, consumption: float, today: date) -> Optional[date]:
    if remaining <= 0 or consumption <= 0:
        return None
    days_supply = math.floor(remaining / consumption)
    return today + timedelta(days=days_supply)


def enough_until(
    inventory: InventoryRecord,
    schedule: Optional[ScheduleDefinition],
    today: date
) -> Optional[date]:
    """
    Date the current stock lasts until

    Returns None when stock is zero or consumption is zero / undeterminable.
    """
    return _project(inventory.remaining_units, daily_consumption(schedule), today)


def enough_until_for_item(
    inventory: InventoryRecord,
    schedules: Iterable[ScheduleDefinition],
    today: date
) -> Optional[date]:
    """Like enough_until, summing every active schedule of the item"""
    total = sum(
        daily_consumption(s) for s in schedules
        if s.item_id == inventory.item_id
    )
    return _project(inventory.remaining_units, total, today)


def urgency(inventory: InventoryRecord) -> InventoryUrgency:
    """Stock urgency relative to the item's low-stock threshold"""
    remaining = inventory.remaining_units
    threshold = inventory.low_threshold or 0

    if remaining <= 0:
        return InventoryUrgency.EMPTY
    if remaining <= threshold / 2:
        return InventoryUrgency.CRITICAL
    if remaining <= threshold:
        return InventoryUrgency.LOW
    return InventoryUrgency.OK


def forecast(
    inventory: InventoryRecord,
    schedules: List[ScheduleDefinition],
    today: date
) -> InventoryForecast:
    """Full forecast for one item across its schedules"""
    relevant = [s for s in schedules if s.item_id == inventory.item_id]
    consumption = sum(daily_consumption(s) for s in relevant)
    until = _project(inventory.remaining_units, consumption, today)

    if until is None and inventory.remaining_units > 0:
        logger.debug(f"No consumption rate for item {inventory.item_id}")

    return InventoryForecast(
        item_id=inventory.item_id,
        remaining_units=inventory.remaining_units,
        daily_consumption=consumption,
        enough_until=until,
        days_remaining=(until - today).days if until else None,
        urgency=urgency(inventory),
        is_approximate=any(s.is_prn and s.is_active for s in relevant)
    )


class InventoryForecaster:
    """Forecaster bound to a clock"""

    def __init__(self, clock):
        self.clock = clock

    def enough_until(
        self,
        inventory: InventoryRecord,
        schedule: Optional[ScheduleDefinition]
    ) -> Optional[date]:
        return enough_until(inventory, schedule, self.clock().date())

    def forecast(
        self,
        inventory: InventoryRecord,
        schedules: List[ScheduleDefinition]
    ) -> InventoryForecast:
        return forecast(inventory, schedules, self.clock().date())
