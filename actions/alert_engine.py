"""
Alert Engine
Detects overdue doses for guardian follow-up
"""

import logging
from typing import List, Dict, Any, Optional, Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from tools.schedule_types import DEFAULT_GRACE_WINDOW_MINUTES


logger = logging.getLogger(__name__)

DEFAULT_FOLLOW_UP_MINUTES = 30


class AlertSeverity(str, Enum):
    """Alert severity levels"""
    MEDIUM = "medium"
    HIGH = "high"


class AlertType(str, Enum):
    """Types of alerts"""
    MISSED_DOSE = "missed_dose"


@dataclass
class Alert:
    """A dose that is still unresolved past grace plus follow-up"""
    alert_type: AlertType
    severity: AlertSeverity
    dose_id: str
    schedule_id: str
    item_id: str
    item_name: Optional[str]
    profile_id: Optional[str]
    planned_time: datetime
    overdue_minutes: int
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "alert_type": self.alert_type.value,
            "severity": self.severity.value,
            "dose_id": self.dose_id,
            "schedule_id": self.schedule_id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "profile_id": self.profile_id,
            "planned_time": self.planned_time.isoformat(),
            "overdue_minutes": self.overdue_minutes,
            "message": self.message
        }


def detect_missed_doses(
    doses: Iterable,
    now: datetime,
    follow_up_minutes: int = DEFAULT_FOLLOW_UP_MINUTES
) -> List[Alert]:
    """
    Alerts for doses neither taken nor skipped once grace and follow-up have passed

    Args:
        doses: DoseView objects from the daily dose view
        now: Current time from the injected clock
        follow_up_minutes: Extra wait after the grace window

    Returns:
        Alerts, most overdue first
    """
    alerts = []
    for dose in doses:
        if dose.is_taken or dose.is_skipped:
            continue

        instance = dose.instance
        grace = instance.grace_window_minutes
        if grace is None:
            grace = DEFAULT_GRACE_WINDOW_MINUTES
        deadline = dose.effective_time + timedelta(minutes=grace + follow_up_minutes)
        if deadline >= now:
            continue

        overdue = int((now - dose.effective_time).total_seconds() // 60)
        name = dose.item_name or instance.item_id
        # HIGH once past grace plus two follow-up windows
        severity = AlertSeverity.HIGH if overdue > grace + 2 * follow_up_minutes else AlertSeverity.MEDIUM

        alerts.append(Alert(
            alert_type=AlertType.MISSED_DOSE,
            severity=severity,
            dose_id=instance.instance_id,
            schedule_id=instance.schedule_id,
            item_id=instance.item_id,
            item_name=dose.item_name,
            profile_id=instance.profile_id,
            planned_time=dose.effective_time,
            overdue_minutes=overdue,
            message=f"{name} due at {instance.original_time} has not been taken"
        ))

    alerts.sort(key=lambda a: a.overdue_minutes, reverse=True)
    if alerts:
        logger.info(f"Detected {len(alerts)} missed dose(s)")
    return alerts
