"""
Schedule Expander Tool
Expands declarative recurrence schemes into concrete dose times for a date
"""

import logging
import math
from typing import List, Optional, Iterable
from datetime import datetime, date, time, timedelta, timezone

from tools.schedule_types import (
    ScheduleDefinition,
    DoseInstance,
    ProfileSettings,
    TimePolicy,
    DailyScheme,
    WeeklyScheme,
    IntervalDaysScheme,
    IntervalHoursScheme,
    CourseScheme,
    PrnScheme,
    scheme_times,
    parse_hhmm,
    day_of_week,
)
from tools.routine_anchors import RoutineAnchorResolver


logger = logging.getLogger(__name__)


def _exists_locally(value: datetime) -> bool:
    """False for wall-clock times skipped by a forward clock change"""
    round_trip = value.astimezone(timezone.utc).astimezone(value.tzinfo)
    return round_trip.replace(tzinfo=None) == value.replace(tzinfo=None)


class ScheduleExpander:
    """
    Produces the ordered planned doses of a schedule for one calendar date.

    Every call recomputes from the definition; nothing is cached, so edits
    to a schedule are visible on the next expansion.
    """

    def __init__(self, profile_settings: Optional[ProfileSettings] = None):
        self.profile_settings = profile_settings or ProfileSettings(profile_id="")
        self.anchor_resolver = RoutineAnchorResolver(self.profile_settings)

    @property
    def local_tz(self):
        return self.anchor_resolver.tz

    def expand(self, schedule: ScheduleDefinition, day: date) -> List[DoseInstance]:
        """
        Expand a schedule into dose instances for `day`

        Args:
            schedule: Schedule definition
            day: Calendar date in the profile's local calendar

        Returns:
            Dose instances sorted by planned time (empty when inactive)
        """
        if not schedule.is_active or not schedule.covers(day):
            return []

        scheme = schedule.scheme
        tz = timezone.utc if schedule.time_policy == TimePolicy.ABSOLUTE_UTC else self.local_tz

        if isinstance(scheme, PrnScheme):
            # PRN timing is event driven and validated separately
            return []

        if isinstance(scheme, IntervalHoursScheme):
            planned = [p.replace(tzinfo=tz) for p in self._interval_hour_slots(schedule, scheme, day)]
            existing = [p for p in planned if _exists_locally(p)]
            if len(existing) < len(planned):
                logger.debug(
                    f"Schedule {schedule.id}: dropped {len(planned) - len(existing)} "
                    f"slot(s) skipped by DST on {day}"
                )
            return self._build(schedule, day, existing)

        if not self._scheme_active_on(schedule, day):
            return []

        if schedule.anchor is not None:
            anchored = self.anchor_resolver.planned_time(schedule.anchor, day)
            if anchored is None:
                logger.debug(
                    f"Schedule {schedule.id}: no base time for "
                    f"{schedule.anchor.anchor_type.value}, skipping {day}"
                )
                return []
            return self._build(schedule, day, [anchored])

        planned = []
        for value in scheme_times(scheme):
            t = parse_hhmm(value)
            if t is None:
                logger.warning(f"Schedule {schedule.id}: ignoring malformed time {value!r}")
                continue
            planned.append(datetime.combine(day, t, tzinfo=tz))

        return self._build(schedule, day, planned)

    def expand_many(
        self,
        schedules: Iterable[ScheduleDefinition],
        day: date
    ) -> List[DoseInstance]:
        """Expand several schedules, omitting any that fail unexpectedly"""
        instances: List[DoseInstance] = []
        for schedule in schedules:
            try:
                instances.extend(self.expand(schedule, day))
            except Exception:
                logger.exception(f"Failed to expand schedule {getattr(schedule, 'id', '?')}")
                continue

        instances.sort(key=lambda i: (i.planned_time, i.item_id))
        return instances

    def _scheme_active_on(self, schedule: ScheduleDefinition, day: date) -> bool:
        """Whether a times-based scheme produces doses on `day`"""
        scheme = schedule.scheme

        if isinstance(scheme, DailyScheme):
            return True

        if isinstance(scheme, WeeklyScheme):
            return day_of_week(day) in scheme.weekdays

        if isinstance(scheme, IntervalDaysScheme):
            if schedule.start_date is None or scheme.interval <= 0:
                return False
            days_since = (day - schedule.start_date).days
            return days_since >= 0 and days_since % scheme.interval == 0

        if isinstance(scheme, CourseScheme):
            if schedule.start_date is None:
                return False
            return schedule.start_date <= day <= schedule.start_date + timedelta(days=scheme.total_days)

        raise TypeError(f"Unsupported scheme: {type(scheme).__name__}")

    def _interval_hour_slots(
        self,
        schedule: ScheduleDefinition,
        scheme: IntervalHoursScheme,
        day: date
    ) -> List[datetime]:
        """Naive wall-clock slots of an every-N-hours series that land on `day`"""
        if not scheme.interval or scheme.interval <= 0:
            return []

        first = parse_hhmm(scheme.start_time) or time(0, 0)
        series_start = datetime.combine(schedule.start_date or day, first)
        day_start = datetime.combine(day, time(0, 0))
        day_end = day_start + timedelta(days=1)
        step = timedelta(hours=scheme.interval)

        if series_start >= day_end:
            return []

        k = 0
        if series_start < day_start:
            k = math.ceil((day_start - series_start) / step)

        slots = []
        current = series_start + step * k
        while current < day_end:
            slots.append(current)
            k += 1
            current = series_start + step * k
        return slots

    def _build(
        self,
        schedule: ScheduleDefinition,
        day: date,
        planned: List[datetime]
    ) -> List[DoseInstance]:
        seen = set()
        instances = []
        for planned_time in sorted(planned):
            label = planned_time.strftime("%H:%M")
            if label in seen:
                continue
            seen.add(label)
            instances.append(DoseInstance(
                schedule_id=schedule.id,
                item_id=schedule.item_id,
                profile_id=schedule.profile_id,
                date=day,
                planned_time=planned_time,
                original_time=label,
                dose_amount=schedule.dose_amount,
                grace_window_minutes=schedule.grace_window_minutes
            ))
        return instances


def expand_schedule(
    schedule: ScheduleDefinition,
    day: date,
    profile_settings: Optional[ProfileSettings] = None
) -> List[DoseInstance]:
    """Convenience function to expand one schedule"""
    return ScheduleExpander(profile_settings).expand(schedule, day)
