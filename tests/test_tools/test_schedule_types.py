"""
Tests for schedule domain types and scheme (de)serialization
"""

import pytest
from datetime import date

from tools.schedule_types import (
    CourseScheme,
    DailyScheme,
    IntervalHoursScheme,
    PrnScheme,
    ScheduleDefinition,
    WeeklyScheme,
    parse_hhmm,
    scheme_from_dict,
    scheme_to_dict,
)


@pytest.mark.unit
class TestSchemeDicts:

    def test_weekly_from_dict(self):
        scheme = scheme_from_dict({"type": "weekly", "weekdays": [0, 4], "times": ["09:00"]})
        assert scheme == WeeklyScheme(weekdays=[0, 4], times=["09:00"])

    def test_interval_hours_default_start(self):
        scheme = scheme_from_dict({"type": "intervalHours", "interval": 8})
        assert scheme == IntervalHoursScheme(interval=8, start_time="00:00")

    def test_prn_keys(self):
        scheme = scheme_from_dict({"type": "prn", "maxPerDay": 3, "minIntervalHours": 4})
        assert scheme == PrnScheme(max_per_day=3, min_interval_hours=4)

    def test_to_dict_uses_tag_and_camel_case(self):
        assert scheme_to_dict(CourseScheme(total_days=5, times=["08:00"])) == {
            "type": "course", "totalDays": 5, "times": ["08:00"]
        }

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            scheme_from_dict({"type": "monthly"})


@pytest.mark.unit
class TestScheduleDefinition:

    def test_is_prn(self, prn_schedule, daily_schedule):
        assert prn_schedule.is_prn is True
        assert daily_schedule.is_prn is False

    def test_covers_is_inclusive(self):
        schedule = ScheduleDefinition(
            id="s1", item_id="med-1", scheme=DailyScheme(times_per_day=1),
            start_date=date(2024, 1, 1), end_date=date(2024, 1, 31)
        )
        assert schedule.covers(date(2024, 1, 1))
        assert schedule.covers(date(2024, 1, 31))
        assert not schedule.covers(date(2024, 2, 1))


@pytest.mark.unit
@pytest.mark.parametrize("value,expected", [
    ("08:30", (8, 30)),
    ("23:59", (23, 59)),
    ("24:00", None),
    ("8am", None),
    ("", None),
    (None, None),
])
def test_parse_hhmm(value, expected):
    parsed = parse_hhmm(value)
    if expected is None:
        assert parsed is None
    else:
        assert (parsed.hour, parsed.minute) == expected
