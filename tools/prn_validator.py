"""
PRN Validator
Enforces daily caps and minimum spacing for as-needed doses
"""

import math
from typing import Optional, Union
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from tools.schedule_types import ScheduleDefinition, PrnScheme
from tools.dose_status import format_delay


class PRNRejection(str, Enum):
    DAILY_LIMIT = "daily_limit"
    MIN_INTERVAL = "min_interval"


@dataclass(frozen=True)
class PRNValidationResult:
    can_take: bool
    doses_today: int
    reason: Optional[PRNRejection] = None
    message: Optional[str] = None
    next_available_time: Optional[datetime] = None


def validate_prn_dose(
    schedule: Union[ScheduleDefinition, PrnScheme],
    doses_today: int,
    last_dose_time: Optional[datetime],
    now: datetime
) -> PRNValidationResult:
    """
    Decide whether another PRN dose may be taken at `now`

    Unset limits mean no constraint: no daily cap, no minimum spacing.
    """
    scheme = schedule.scheme if isinstance(schedule, ScheduleDefinition) else schedule
    max_per_day = getattr(scheme, "max_per_day", None)
    min_interval = getattr(scheme, "min_interval_hours", None) or 0

    if max_per_day is not None and doses_today >= max_per_day:
        return PRNValidationResult(
            can_take=False,
            doses_today=doses_today,
            reason=PRNRejection.DAILY_LIMIT,
            message=f"Daily limit of {max_per_day} doses reached"
        )

    if last_dose_time is not None and min_interval > 0:
        hours_since_last = (now - last_dose_time).total_seconds() / 3600
        if hours_since_last < min_interval:
            wait_minutes = math.ceil((min_interval - hours_since_last) * 60)
            return PRNValidationResult(
                can_take=False,
                doses_today=doses_today,
                reason=PRNRejection.MIN_INTERVAL,
                message=f"Next dose available in {format_delay(wait_minutes).lstrip('+')}",
                next_available_time=last_dose_time + timedelta(hours=min_interval)
            )

    return PRNValidationResult(can_take=True, doses_today=doses_today)
