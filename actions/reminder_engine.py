"""
Reminder Engine
Builds refill reminders from inventory forecasts
"""

import logging
from typing import List, Dict, Any, Optional, Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from tools.schedule_types import InventoryRecord, ScheduleDefinition
from tools.inventory_forecaster import InventoryForecast, InventoryUrgency, forecast


logger = logging.getLogger(__name__)

DEFAULT_REFILL_THRESHOLD_DAYS = 3


class ReminderType(str, Enum):
    """Types of reminders"""
    REFILL_REMINDER = "refill_reminder"


class ReminderPriority(str, Enum):
    """Reminder priority levels"""
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class Reminder:
    """Refill reminder for one item"""
    reminder_type: ReminderType
    priority: ReminderPriority
    item_id: str
    item_name: Optional[str]
    forecast: InventoryForecast
    message: str

    @property
    def days_remaining(self) -> Optional[int]:
        return self.forecast.days_remaining

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reminder_type": self.reminder_type.value,
            "priority": self.priority.value,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "remaining_units": self.forecast.remaining_units,
            "days_remaining": self.forecast.days_remaining,
            "enough_until": self.forecast.enough_until.isoformat() if self.forecast.enough_until else None,
            "urgency": self.forecast.urgency.value,
            "is_approximate": self.forecast.is_approximate,
            "message": self.message
        }


def _priority(item_forecast: InventoryForecast, threshold_days: int) -> Optional[ReminderPriority]:
    days = item_forecast.days_remaining
    if item_forecast.urgency in (InventoryUrgency.EMPTY, InventoryUrgency.CRITICAL):
        return ReminderPriority.URGENT
    if days is not None and days <= threshold_days:
        return ReminderPriority.URGENT if days <= 1 else ReminderPriority.HIGH
    if item_forecast.urgency == InventoryUrgency.LOW:
        return ReminderPriority.NORMAL
    return None


def _message(name: str, item_forecast: InventoryForecast, unit_label: str) -> str:
    if item_forecast.urgency == InventoryUrgency.EMPTY:
        return f"{name} is out of stock"
    days = item_forecast.days_remaining
    if days is None:
        return f"{name} is running low ({item_forecast.remaining_units:g} {unit_label} left)"
    if days == 0:
        return f"{name} runs out today"
    return f"{name} runs out in {days} day{'s' if days != 1 else ''}"


def build_refill_reminders(
    inventories: Iterable[InventoryRecord],
    schedules_by_item: Dict[str, List[ScheduleDefinition]],
    today: date,
    threshold_days: int = DEFAULT_REFILL_THRESHOLD_DAYS,
    item_names: Optional[Dict[str, str]] = None
) -> List[Reminder]:
    """
    Refill reminders for items about to run out or below their low threshold

    Returns:
        Reminders sorted by days remaining ascending, unknown last
    """
    item_names = item_names or {}
    reminders = []

    for record in inventories:
        item_forecast = forecast(record, schedules_by_item.get(record.item_id, []), today)
        priority = _priority(item_forecast, threshold_days)
        if priority is None:
            continue

        name = item_names.get(record.item_id) or record.item_id
        reminders.append(Reminder(
            reminder_type=ReminderType.REFILL_REMINDER,
            priority=priority,
            item_id=record.item_id,
            item_name=item_names.get(record.item_id),
            forecast=item_forecast,
            message=_message(name, item_forecast, record.unit_label)
        ))

    reminders.sort(key=lambda r: (r.days_remaining is None, r.days_remaining or 0))
    logger.debug(f"Built {len(reminders)} refill reminder(s)")
    return reminders
