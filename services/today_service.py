"""
Today Service
Builds the daily dose view: expanded schedules overlaid with the dose log
"""

import logging
from typing import Dict, List, Optional, Iterable
from dataclasses import dataclass, field
from datetime import datetime, date, timedelta

from tools.schedule_types import (
    DoseAction,
    DoseInstance,
    DoseLogEntry,
    ProfileSettings,
    ScheduleDefinition,
)
from tools.scheduler import ScheduleExpander
from tools.dose_status import DoseTimingResult, classify_dose, format_delay
from tools.prn_validator import PRNValidationResult, validate_prn_dose
from tools.collision_detector import DueTime
from services.stores import DoseLogStore, active_entries, system_clock
from services.dose_action_service import prn_usage


logger = logging.getLogger(__name__)


@dataclass
class DoseView:
    """One planned dose with its log state and timing"""
    instance: DoseInstance
    timing: DoseTimingResult
    effective_time: datetime
    is_taken: bool = False
    is_skipped: bool = False
    is_snoozed: bool = False
    item_name: Optional[str] = None
    entry_ids: List[str] = field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        return self.is_taken or self.is_skipped

    @property
    def delay_label(self) -> str:
        return format_delay(self.timing.delay_minutes)


def _match_key(item_id: str, scheduled_for: datetime):
    return item_id, scheduled_for.timestamp()


class TodayService:
    """
    Recomputes the dose view for a day on every call; nothing is cached.
    """

    def __init__(self, log_store: DoseLogStore, clock=system_clock):
        self.log_store = log_store
        self.clock = clock

    def _index_entries(self, entries: Iterable[DoseLogEntry]) -> Dict[tuple, List[DoseLogEntry]]:
        index: Dict[tuple, List[DoseLogEntry]] = {}
        for entry in active_entries(list(entries)):
            if entry.scheduled_for is None:
                continue
            index.setdefault(_match_key(entry.item_id, entry.scheduled_for), []).append(entry)
        return index

    def _view(
        self,
        instance: DoseInstance,
        matched: List[DoseLogEntry],
        now: datetime,
        item_name: Optional[str]
    ) -> DoseView:
        taken = next((e for e in matched if e.action == DoseAction.TAKEN), None)
        skipped = next((e for e in matched if e.action == DoseAction.SKIPPED), None)
        snooze = next(
            (
                e for e in matched
                if e.action == DoseAction.POSTPONED
                and e.snooze_until is not None
                and e.snooze_until > now
            ),
            None
        )

        effective = instance.planned_time
        if snooze is not None:
            effective = snooze.snooze_until.astimezone(instance.planned_time.tzinfo)

        acted = taken or skipped
        timing = classify_dose(
            effective,
            acted.logged_at if acted else None,
            instance.grace_window_minutes,
            now
        )

        return DoseView(
            instance=instance,
            timing=timing,
            effective_time=effective,
            is_taken=taken is not None,
            is_skipped=skipped is not None and taken is None,
            is_snoozed=snooze is not None,
            item_name=item_name,
            entry_ids=[e.id for e in matched if e.id]
        )

    def doses_for(
        self,
        schedules: List[ScheduleDefinition],
        day: date,
        profile_settings: Optional[ProfileSettings] = None
    ) -> List[DoseView]:
        """
        Every planned dose of `day` with its taken / skipped / snoozed state

        Args:
            schedules: Schedules of one profile
            day: Local calendar date
            profile_settings: Timezone and routine anchors for the profile

        Returns:
            DoseView list sorted by effective time, then item name
        """
        now = self.clock()
        expander = ScheduleExpander(profile_settings)
        instances = expander.expand_many(schedules, day)
        names = {s.item_id: s.item_name for s in schedules}

        profile_id = profile_settings.profile_id if profile_settings else None
        index = self._index_entries(self.log_store.list(profile_id or None))

        views = []
        for instance in instances:
            try:
                matched = index.get(_match_key(instance.item_id, instance.planned_time), [])
                views.append(self._view(instance, matched, now, names.get(instance.item_id)))
            except Exception:
                logger.exception(f"Failed to build view for dose {instance.instance_id}")
                continue

        views.sort(key=lambda v: (v.effective_time, v.item_name or ""))
        return views

    def next_dose(
        self,
        schedules: List[ScheduleDefinition],
        profile_settings: Optional[ProfileSettings] = None
    ) -> Optional[DoseView]:
        """First unresolved dose from now on, looking at today and tomorrow"""
        now = self.clock()
        expander = ScheduleExpander(profile_settings)
        today = now.astimezone(expander.local_tz).date()

        for day in (today, today + timedelta(days=1)):
            for view in self.doses_for(schedules, day, profile_settings):
                if view.is_resolved:
                    continue
                if view.effective_time >= now or view.timing.is_within_grace:
                    return view
        return None

    def due_times(
        self,
        schedules: List[ScheduleDefinition],
        day: date,
        profile_settings: Optional[ProfileSettings] = None
    ) -> List[DueTime]:
        """Unresolved dose times of `day`, as collision candidates"""
        return [
            DueTime(
                time=view.effective_time,
                item_id=view.instance.item_id,
                label=view.item_name or view.instance.original_time
            )
            for view in self.doses_for(schedules, day, profile_settings)
            if not view.is_resolved
        ]

    def prn_status(
        self,
        schedule: ScheduleDefinition,
        profile_settings: Optional[ProfileSettings] = None
    ) -> PRNValidationResult:
        """Today's PRN usage run through the validator"""
        now = self.clock()
        tz = ScheduleExpander(profile_settings).local_tz
        doses_today, last = prn_usage(
            self.log_store.list(), schedule, now.astimezone(tz).date(), tz
        )
        return validate_prn_dose(schedule, doses_today, last, now)
