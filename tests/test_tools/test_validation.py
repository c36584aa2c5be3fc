"""
Tests for input validation and rejection reasons
"""

import pytest
from datetime import date

from tools.validation import (
    DoseActionRejected,
    RejectionReason,
    ScheduleValidationError,
    require_skip_reason,
    validate_postpone_minutes,
    validate_schedule,
)
from tools.schedule_types import (
    DailyScheme,
    IntervalHoursScheme,
    PrnScheme,
    ScheduleDefinition,
    WeeklyScheme,
)


def schedule_for(scheme, **kwargs) -> ScheduleDefinition:
    return ScheduleDefinition(id="s1", item_id="med-1", scheme=scheme, **kwargs)


@pytest.mark.unit
class TestPostponeRange:

    @pytest.mark.parametrize("minutes", [5, 60, 240])
    def test_accepted(self, minutes):
        validate_postpone_minutes(minutes)

    @pytest.mark.parametrize("minutes", [0, 4, 241])
    def test_rejected(self, minutes):
        with pytest.raises(DoseActionRejected) as exc_info:
            validate_postpone_minutes(minutes)
        assert exc_info.value.reason == RejectionReason.POSTPONE_OUT_OF_RANGE


@pytest.mark.unit
class TestScheduleValidation:

    def test_valid_schedule_passes(self, daily_schedule):
        assert validate_schedule(daily_schedule) is daily_schedule

    def test_weekday_out_of_range(self):
        with pytest.raises(ScheduleValidationError) as exc_info:
            validate_schedule(schedule_for(WeeklyScheme(weekdays=[0, 7], times=["08:00"])))
        assert exc_info.value.reasons == [RejectionReason.INVALID_WEEKDAY]

    def test_non_positive_interval(self):
        with pytest.raises(ScheduleValidationError) as exc_info:
            validate_schedule(schedule_for(IntervalHoursScheme(interval=0)))
        assert RejectionReason.INVALID_INTERVAL in exc_info.value.reasons

    def test_prn_limits(self):
        with pytest.raises(ScheduleValidationError) as exc_info:
            validate_schedule(schedule_for(PrnScheme(max_per_day=0, min_interval_hours=-1)))
        assert set(exc_info.value.reasons) == {RejectionReason.INVALID_LIMIT, RejectionReason.INVALID_INTERVAL}

    def test_collects_every_problem(self):
        schedule = schedule_for(
            DailyScheme(times_per_day=1, times=["8:61"]),
            start_date=date(2024, 2, 1),
            end_date=date(2024, 1, 1),
            grace_window_minutes=-5
        )
        with pytest.raises(ScheduleValidationError) as exc_info:
            validate_schedule(schedule)

        assert exc_info.value.reasons == [
            RejectionReason.INVALID_TIME,
            RejectionReason.INVALID_DATE_RANGE,
            RejectionReason.INVALID_GRACE_WINDOW,
        ]


@pytest.mark.unit
class TestSkipReason:

    def test_blank_reason_rejected(self):
        with pytest.raises(DoseActionRejected) as exc_info:
            require_skip_reason("   ")
        assert exc_info.value.reason == RejectionReason.SKIP_REASON_REQUIRED

    def test_reason_is_trimmed(self):
        assert require_skip_reason(" nausea ") == "nausea"
