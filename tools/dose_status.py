"""
Dose Status Classifier
Decides whether a due dose is pending, on time, late or missed
"""

import math
from typing import Optional
from dataclasses import dataclass
from datetime import datetime

from tools.schedule_types import DoseTimingStatus, DEFAULT_GRACE_WINDOW_MINUTES


@dataclass(frozen=True)
class DoseTimingResult:
    status: DoseTimingStatus
    delay_minutes: int
    is_within_grace: bool


def _whole_minutes(later: datetime, earlier: datetime) -> int:
    return math.floor((later - earlier).total_seconds() / 60)


def classify_dose(
    planned_time: datetime,
    actual_time: Optional[datetime],
    grace_window_minutes: Optional[int],
    now: datetime
) -> DoseTimingResult:
    """
    Classify a dose's timing

    Grace is symmetric for logged actions: an action earlier than planned by
    more than the grace window is reported as late.

    Args:
        planned_time: When the dose was due
        actual_time: When it was acted on, None if not yet
        grace_window_minutes: Tolerance in minutes (None -> 60)
        now: Current time from the injected clock

    Returns:
        DoseTimingResult
    """
    grace = DEFAULT_GRACE_WINDOW_MINUTES if grace_window_minutes is None else grace_window_minutes

    if actual_time is None:
        minutes_past_due = _whole_minutes(now, planned_time)

        if minutes_past_due < 0:
            return DoseTimingResult(DoseTimingStatus.PENDING, 0, True)

        if minutes_past_due <= grace:
            return DoseTimingResult(DoseTimingStatus.PENDING, minutes_past_due, True)

        return DoseTimingResult(DoseTimingStatus.MISSED, minutes_past_due, False)

    delay = _whole_minutes(actual_time, planned_time)
    within = abs(delay) <= grace
    status = DoseTimingStatus.ON_TIME if within else DoseTimingStatus.LATE
    return DoseTimingResult(status, delay, within)


class DoseStatusClassifier:
    """Classifier bound to a clock"""

    def __init__(self, clock):
        self.clock = clock

    def classify(
        self,
        planned_time: datetime,
        actual_time: Optional[datetime],
        grace_window_minutes: Optional[int] = DEFAULT_GRACE_WINDOW_MINUTES
    ) -> DoseTimingResult:
        return classify_dose(planned_time, actual_time, grace_window_minutes, self.clock())


def format_delay(minutes: int) -> str:
    """Short signed delay label, e.g. '+25 min', '-1h 30m'"""
    if minutes == 0:
        return ""

    sign = "+" if minutes > 0 else "-"
    total = abs(minutes)
    if total < 60:
        return f"{sign}{total} min"

    hours, mins = divmod(total, 60)
    if mins == 0:
        return f"{sign}{hours} h"
    return f"{sign}{hours}h {mins}m"
