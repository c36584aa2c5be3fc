"""
Input Validation
Typed rejection reasons for user input the engine refuses
"""

import logging
from typing import List, Optional
from enum import Enum

from tools.schedule_types import (
    ScheduleDefinition,
    DailyScheme,
    WeeklyScheme,
    IntervalDaysScheme,
    IntervalHoursScheme,
    CourseScheme,
    PrnScheme,
    scheme_times,
    parse_hhmm,
)


logger = logging.getLogger(__name__)

POSTPONE_MIN_MINUTES = 5
POSTPONE_MAX_MINUTES = 240


class RejectionReason(str, Enum):
    """Why an action or definition was rejected"""
    POSTPONE_OUT_OF_RANGE = "postpone_out_of_range"
    PRN_DAILY_LIMIT = "prn_daily_limit"
    PRN_MIN_INTERVAL = "prn_min_interval"
    NOT_PRN_SCHEDULE = "not_prn_schedule"
    SKIP_REASON_REQUIRED = "skip_reason_required"
    UNDO_TARGET_NOT_FOUND = "undo_target_not_found"
    UNDO_NOT_ALLOWED = "undo_not_allowed"
    UNDO_WINDOW_EXPIRED = "undo_window_expired"
    INVALID_INTERVAL = "invalid_interval"
    INVALID_LIMIT = "invalid_limit"
    INVALID_TIME = "invalid_time"
    INVALID_WEEKDAY = "invalid_weekday"
    INVALID_DATE_RANGE = "invalid_date_range"
    INVALID_GRACE_WINDOW = "invalid_grace_window"


class DoseActionRejected(ValueError):
    """Raised when a dose action is refused; no log mutation has happened"""

    def __init__(self, reason: RejectionReason, message: str):
        super().__init__(message)
        self.reason = reason
        self.message = message


class ScheduleValidationError(ValueError):
    """Raised when a schedule definition is structurally invalid"""

    def __init__(self, problems: List[tuple]):
        self.problems = problems
        super().__init__("; ".join(message for _, message in problems))

    @property
    def reasons(self) -> List[RejectionReason]:
        return [reason for reason, _ in self.problems]


def validate_postpone_minutes(
    minutes: int,
    min_minutes: int = POSTPONE_MIN_MINUTES,
    max_minutes: int = POSTPONE_MAX_MINUTES
) -> None:
    """Reject postpone durations outside [min_minutes, max_minutes]"""
    if minutes is None or minutes < min_minutes or minutes > max_minutes:
        raise DoseActionRejected(
            RejectionReason.POSTPONE_OUT_OF_RANGE,
            f"Postpone duration must be between {min_minutes} and {max_minutes} minutes"
        )


def schedule_problems(schedule: ScheduleDefinition) -> List[tuple]:
    """Collect (reason, message) pairs describing what is wrong with a schedule"""
    problems = []
    scheme = schedule.scheme

    if isinstance(scheme, PrnScheme):
        if scheme.min_interval_hours is not None and scheme.min_interval_hours <= 0:
            problems.append((RejectionReason.INVALID_INTERVAL, "PRN minimum interval must be positive"))
        if scheme.max_per_day is not None and scheme.max_per_day <= 0:
            problems.append((RejectionReason.INVALID_LIMIT, "PRN daily maximum must be positive"))
    elif isinstance(scheme, (IntervalDaysScheme, IntervalHoursScheme)):
        if scheme.interval is None or scheme.interval <= 0:
            problems.append((RejectionReason.INVALID_INTERVAL, "Interval must be positive"))
    elif isinstance(scheme, CourseScheme):
        if scheme.total_days <= 0:
            problems.append((RejectionReason.INVALID_INTERVAL, "Course length must be positive"))
    elif isinstance(scheme, DailyScheme):
        if scheme.times_per_day <= 0:
            problems.append((RejectionReason.INVALID_LIMIT, "Times per day must be positive"))

    if isinstance(scheme, WeeklyScheme):
        if not scheme.weekdays or any(d not in range(7) for d in scheme.weekdays):
            problems.append((RejectionReason.INVALID_WEEKDAY, "Weekdays must be within 0-6"))

    if isinstance(scheme, IntervalHoursScheme) and parse_hhmm(scheme.start_time) is None:
        problems.append((RejectionReason.INVALID_TIME, f"Invalid start time: {scheme.start_time}"))

    for value in scheme_times(scheme):
        if parse_hhmm(value) is None:
            problems.append((RejectionReason.INVALID_TIME, f"Invalid time: {value}"))

    if schedule.start_date and schedule.end_date and schedule.end_date < schedule.start_date:
        problems.append((RejectionReason.INVALID_DATE_RANGE, "End date is before start date"))

    if schedule.grace_window_minutes is not None and schedule.grace_window_minutes < 0:
        problems.append((RejectionReason.INVALID_GRACE_WINDOW, "Grace window cannot be negative"))

    return problems


def validate_schedule(schedule: ScheduleDefinition) -> ScheduleDefinition:
    """
    Validate a schedule definition before it is stored

    Raises:
        ScheduleValidationError: listing every problem found
    """
    problems = schedule_problems(schedule)
    if problems:
        logger.info(f"Rejected schedule {schedule.id}: {len(problems)} problem(s)")
        raise ScheduleValidationError(problems)
    return schedule


def require_skip_reason(reason: Optional[str]) -> str:
    if not reason or not reason.strip():
        raise DoseActionRejected(
            RejectionReason.SKIP_REASON_REQUIRED,
            "A reason is required to skip a dose"
        )
    return reason.strip()
