"""
Dose Action Service
Records taken / skipped / postponed / undone actions and PRN intakes
"""

import logging
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass
from datetime import datetime, date, timedelta

from config import settings
from tools.schedule_types import (
    DoseAction,
    DoseInstance,
    DoseLogEntry,
    ProfileSettings,
    ScheduleDefinition,
)
from tools.validation import (
    DoseActionRejected,
    RejectionReason,
    validate_postpone_minutes,
    require_skip_reason,
)
from tools.prn_validator import PRNRejection, PRNValidationResult, validate_prn_dose
from tools.collision_detector import CollisionResult, DueTime, detect_collision
from tools.routine_anchors import resolve_timezone
from services.stores import (
    DoseLogStore,
    InventoryStore,
    active_entries,
    system_clock,
)


logger = logging.getLogger(__name__)

UNDOABLE_ACTIONS = (DoseAction.TAKEN, DoseAction.SKIPPED)


@dataclass
class PostponeResult:
    entry: DoseLogEntry
    collision: CollisionResult


def prn_usage(
    entries: Sequence[DoseLogEntry],
    schedule: ScheduleDefinition,
    day: date,
    tz
) -> Tuple[int, Optional[datetime]]:
    """
    Taken PRN doses of a schedule's item on `day` (local calendar) and the
    most recent intake time overall
    """
    taken = [
        e for e in active_entries(list(entries))
        if e.action == DoseAction.TAKEN
        and e.item_id == schedule.item_id
        and (e.schedule_id is None or e.schedule_id == schedule.id)
    ]
    doses_today = sum(1 for e in taken if e.logged_at.astimezone(tz).date() == day)
    last = max((e.logged_at for e in taken), default=None)
    return doses_today, last


class DoseActionService:
    """
    Applies user dose actions to the event log and the inventory.

    Every rejection raises DoseActionRejected before any store is touched.
    """

    def __init__(
        self,
        log_store: DoseLogStore,
        inventory_store: Optional[InventoryStore] = None,
        clock=system_clock,
        postpone_min_minutes: int = settings.POSTPONE_MIN_MINUTES,
        postpone_max_minutes: int = settings.POSTPONE_MAX_MINUTES,
        undo_window_minutes: int = settings.UNDO_WINDOW_MINUTES,
        collision_window_minutes: int = settings.COLLISION_WINDOW_MINUTES,
        auto_decrement_inventory: bool = settings.AUTO_DECREMENT_INVENTORY
    ):
        self.log_store = log_store
        self.inventory_store = inventory_store
        self.clock = clock
        self.postpone_min_minutes = postpone_min_minutes
        self.postpone_max_minutes = postpone_max_minutes
        self.undo_window_minutes = undo_window_minutes
        self.collision_window_minutes = collision_window_minutes
        self.auto_decrement_inventory = auto_decrement_inventory

    # ==================== TAKEN / SKIP ====================

    def _deduct(self, item_id: str, amount: float) -> Optional[float]:
        """Decrement stock when there is some; returns the units taken off"""
        if not self.auto_decrement_inventory or self.inventory_store is None:
            return None
        record = self.inventory_store.get(item_id)
        if record is None or record.remaining_units <= 0:
            return None
        deducted = min(amount, record.remaining_units)
        self.inventory_store.decrement(item_id, deducted)
        return deducted

    def mark_taken(self, instance: DoseInstance, note: Optional[str] = None) -> DoseLogEntry:
        """Log a planned dose as taken now"""
        now = self.clock()
        entry = self.log_store.append(DoseLogEntry(
            item_id=instance.item_id,
            profile_id=instance.profile_id,
            schedule_id=instance.schedule_id,
            action=DoseAction.TAKEN,
            scheduled_for=instance.planned_time,
            logged_at=now,
            grace_window_minutes=instance.grace_window_minutes,
            note=note,
            units_deducted=self._deduct(instance.item_id, instance.dose_amount)
        ))
        logger.info(f"Dose {instance.instance_id} taken at {now.isoformat()}")
        return entry

    def skip(
        self,
        instance: DoseInstance,
        reason: Optional[str],
        note: Optional[str] = None
    ) -> DoseLogEntry:
        """Log a planned dose as skipped; a reason is mandatory"""
        reason = require_skip_reason(reason)
        entry = self.log_store.append(DoseLogEntry(
            item_id=instance.item_id,
            profile_id=instance.profile_id,
            schedule_id=instance.schedule_id,
            action=DoseAction.SKIPPED,
            scheduled_for=instance.planned_time,
            logged_at=self.clock(),
            grace_window_minutes=instance.grace_window_minutes,
            reason=reason,
            note=note
        ))
        logger.info(f"Dose {instance.instance_id} skipped ({reason})")
        return entry

    # ==================== POSTPONE ====================

    def active_postponement(
        self,
        item_id: str,
        day: date,
        now: datetime,
        tz=None
    ) -> Optional[DoseLogEntry]:
        """The unexpired postponement of `item_id` whose original time is on `day` in `tz`"""
        for entry in self.log_store.list():
            if (
                entry.action != DoseAction.POSTPONED
                or entry.item_id != item_id
                or entry.snooze_until is None
                or entry.scheduled_for is None
            ):
                continue
            original = entry.scheduled_for.astimezone(tz) if tz else entry.scheduled_for
            if original.date() == day and entry.snooze_until > now:
                return entry
        return None

    def postpone(
        self,
        instance: DoseInstance,
        minutes: int,
        other_due_times: Sequence[DueTime] = ()
    ) -> PostponeResult:
        """
        Postpone a dose by `minutes` from its original planned time

        An earlier active postponement of the same item and date is replaced;
        the original scheduled_for carries over so the dose keeps its identity.

        Args:
            instance: Dose being postponed
            minutes: Delay in minutes, within the configured range
            other_due_times: Other doses due that day, for collision checks

        Returns:
            PostponeResult with the new entry and any collision

        Raises:
            DoseActionRejected: if minutes is out of range
        """
        validate_postpone_minutes(minutes, self.postpone_min_minutes, self.postpone_max_minutes)

        now = self.clock()
        original = instance.planned_time
        existing = self.active_postponement(instance.item_id, instance.date, now, original.tzinfo)
        if existing is not None:
            original = existing.scheduled_for

        snooze_until = original + timedelta(minutes=minutes)

        if existing is not None:
            self.log_store.delete(existing.id)
            logger.debug(f"Replaced postponement {existing.id} of item {instance.item_id}")

        entry = self.log_store.append(DoseLogEntry(
            item_id=instance.item_id,
            profile_id=instance.profile_id,
            schedule_id=instance.schedule_id,
            action=DoseAction.POSTPONED,
            scheduled_for=original,
            logged_at=now,
            snooze_until=snooze_until,
            grace_window_minutes=instance.grace_window_minutes
        ))

        candidates = [d for d in other_due_times if d.item_id != instance.item_id]
        collision = detect_collision(snooze_until, candidates, self.collision_window_minutes)
        if collision.has_collision:
            logger.info(
                f"Postponed dose {instance.instance_id} lands within "
                f"{self.collision_window_minutes} min of {collision.colliding_dose.label}"
            )

        logger.info(f"Dose {instance.instance_id} postponed until {snooze_until.isoformat()}")
        return PostponeResult(entry=entry, collision=collision)

    # ==================== PRN ====================

    def prn_check(
        self,
        schedule: ScheduleDefinition,
        profile_settings: Optional[ProfileSettings] = None
    ) -> PRNValidationResult:
        """Whether a PRN dose may be taken now"""
        if not schedule.is_prn:
            raise DoseActionRejected(
                RejectionReason.NOT_PRN_SCHEDULE,
                f"Schedule {schedule.id} is not an as-needed schedule"
            )

        now = self.clock()
        tz = resolve_timezone(profile_settings.timezone if profile_settings else None)
        doses_today, last = prn_usage(
            self.log_store.list(), schedule, now.astimezone(tz).date(), tz
        )
        return validate_prn_dose(schedule, doses_today, last, now)

    def take_prn(
        self,
        schedule: ScheduleDefinition,
        profile_settings: Optional[ProfileSettings] = None,
        note: Optional[str] = None
    ) -> DoseLogEntry:
        """
        Log an as-needed intake

        Raises:
            DoseActionRejected: PRN_DAILY_LIMIT or PRN_MIN_INTERVAL when the
                validator refuses, NOT_PRN_SCHEDULE for scheduled items
        """
        check = self.prn_check(schedule, profile_settings)
        if not check.can_take:
            reason = (
                RejectionReason.PRN_DAILY_LIMIT
                if check.reason == PRNRejection.DAILY_LIMIT
                else RejectionReason.PRN_MIN_INTERVAL
            )
            logger.info(f"PRN dose for schedule {schedule.id} refused: {check.message}")
            raise DoseActionRejected(reason, check.message)

        entry = self.log_store.append(DoseLogEntry(
            item_id=schedule.item_id,
            profile_id=schedule.profile_id,
            schedule_id=schedule.id,
            action=DoseAction.TAKEN,
            logged_at=self.clock(),
            note=note,
            units_deducted=self._deduct(schedule.item_id, schedule.dose_amount)
        ))
        logger.info(f"PRN dose logged for schedule {schedule.id} ({check.doses_today + 1} today)")
        return entry

    # ==================== UNDO ====================

    def undo(self, entry_id: str) -> DoseLogEntry:
        """
        Reverse a recent taken/skipped entry with a compensating `undone` entry

        Raises:
            DoseActionRejected: if the target is missing, not undoable,
                already undone, or older than the undo window
        """
        entries: List[DoseLogEntry] = self.log_store.list()
        target = next((e for e in entries if e.id == entry_id), None)
        if target is None:
            raise DoseActionRejected(
                RejectionReason.UNDO_TARGET_NOT_FOUND, f"Dose log entry {entry_id} not found"
            )

        already_undone = any(
            e.action == DoseAction.UNDONE and e.target_id == entry_id for e in entries
        )
        if target.action not in UNDOABLE_ACTIONS or already_undone:
            raise DoseActionRejected(
                RejectionReason.UNDO_NOT_ALLOWED,
                f"Dose log entry {entry_id} cannot be undone"
            )

        now = self.clock()
        if now - target.logged_at > timedelta(minutes=self.undo_window_minutes):
            raise DoseActionRejected(
                RejectionReason.UNDO_WINDOW_EXPIRED,
                f"Undo is only possible within {self.undo_window_minutes} minutes"
            )

        entry = self.log_store.append(DoseLogEntry(
            item_id=target.item_id,
            profile_id=target.profile_id,
            schedule_id=target.schedule_id,
            action=DoseAction.UNDONE,
            scheduled_for=target.scheduled_for,
            logged_at=now,
            target_id=target.id
        ))

        if target.units_deducted and self.inventory_store is not None:
            self.inventory_store.increment(target.item_id, target.units_deducted)

        logger.info(f"Undid {target.action.value} entry {target.id}")
        return entry
