"""
Stores
Event-log, inventory and profile-settings contracts, with in-memory and
SQLAlchemy implementations
"""

import logging
import itertools
from abc import ABC, abstractmethod
from typing import Dict, List, Optional
from dataclasses import replace
from datetime import datetime, timezone

from sqlalchemy.orm import Session

import models
from config import settings
from tools.schedule_types import (
    DoseAction,
    DoseLogEntry,
    InventoryRecord,
    ProfileSettings,
    RoutineAnchor,
    ScheduleDefinition,
    TimePolicy,
    scheme_from_dict,
    DEFAULT_GRACE_WINDOW_MINUTES,
)


logger = logging.getLogger(__name__)


def system_clock() -> datetime:
    """Default clock: the current aware UTC time"""
    return datetime.now(timezone.utc)


def to_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetime -> naive UTC for DateTime columns"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_storage(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC from a DateTime column -> aware UTC"""
    if value is None:
        return None
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _int_id(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _str_id(value: Optional[int]) -> Optional[str]:
    return None if value is None else str(value)


# ==================== CONTRACTS ====================

class DoseLogStore(ABC):
    """Append-only dose event log"""

    @abstractmethod
    def append(self, entry: DoseLogEntry) -> DoseLogEntry:
        """Persist an entry and return it with its id assigned"""
        pass

    @abstractmethod
    def list(self, profile_id: Optional[str] = None) -> List[DoseLogEntry]:
        """Entries in insertion order, optionally for one profile"""
        pass

    @abstractmethod
    def delete(self, entry_id: str) -> bool:
        pass

    def get(self, entry_id: str) -> Optional[DoseLogEntry]:
        for entry in self.list():
            if entry.id == entry_id:
                return entry
        return None


class InventoryStore(ABC):
    """Per-item stock counters"""

    @abstractmethod
    def get(self, item_id: str) -> Optional[InventoryRecord]:
        pass

    @abstractmethod
    def decrement(self, item_id: str, amount: float) -> Optional[InventoryRecord]:
        pass

    @abstractmethod
    def increment(self, item_id: str, amount: float) -> Optional[InventoryRecord]:
        pass


class ProfileSettingsProvider(ABC):
    """Per-profile routine settings"""

    @abstractmethod
    def get(self, profile_id: str) -> ProfileSettings:
        pass


# ==================== IN-MEMORY ====================

class InMemoryDoseLogStore(DoseLogStore):
    """Dose log kept in a list; ids are sequential strings"""

    def __init__(self, entries: Optional[List[DoseLogEntry]] = None):
        self._entries: List[DoseLogEntry] = []
        self._ids = itertools.count(1)
        for entry in entries or []:
            self.append(entry)

    def append(self, entry: DoseLogEntry) -> DoseLogEntry:
        stored = replace(entry, id=entry.id or str(next(self._ids)))
        self._entries.append(stored)
        return stored

    def list(self, profile_id: Optional[str] = None) -> List[DoseLogEntry]:
        if profile_id is None:
            return list(self._entries)
        return [e for e in self._entries if e.profile_id == profile_id]

    def delete(self, entry_id: str) -> bool:
        before = len(self._entries)
        self._entries = [e for e in self._entries if e.id != entry_id]
        return len(self._entries) < before


class InMemoryInventoryStore(InventoryStore):

    def __init__(self, records: Optional[List[InventoryRecord]] = None):
        self._records: Dict[str, InventoryRecord] = {r.item_id: r for r in records or []}

    def put(self, record: InventoryRecord) -> None:
        self._records[record.item_id] = record

    def get(self, item_id: str) -> Optional[InventoryRecord]:
        return self._records.get(item_id)

    def decrement(self, item_id: str, amount: float) -> Optional[InventoryRecord]:
        record = self._records.get(item_id)
        if record is not None:
            record.remaining_units = max(0, record.remaining_units - amount)
        return record

    def increment(self, item_id: str, amount: float) -> Optional[InventoryRecord]:
        record = self._records.get(item_id)
        if record is not None:
            record.remaining_units += amount
        return record


class InMemoryProfileSettingsProvider(ProfileSettingsProvider):

    def __init__(self, profiles: Optional[List[ProfileSettings]] = None):
        self._profiles = {p.profile_id: p for p in profiles or []}

    def get(self, profile_id: str) -> ProfileSettings:
        return self._profiles.get(profile_id) or ProfileSettings(
            profile_id=profile_id, timezone=settings.DEFAULT_TIMEZONE
        )


# ==================== ROW CONVERTERS ====================

def entry_from_row(row: models.DoseLog) -> DoseLogEntry:
    return DoseLogEntry(
        id=_str_id(row.id),
        item_id=_str_id(row.medication_id),
        profile_id=_str_id(row.profile_id),
        schedule_id=_str_id(row.schedule_id),
        action=DoseAction(row.action),
        logged_at=from_storage(row.logged_at),
        scheduled_for=from_storage(row.scheduled_for),
        snooze_until=from_storage(row.snooze_until),
        grace_window_minutes=row.grace_window_minutes,
        reason=row.reason,
        note=row.note,
        target_id=_str_id(row.target_id),
        units_deducted=row.units_deducted
    )


def schedule_from_row(row: models.MedicationSchedule) -> ScheduleDefinition:
    """
    Build the engine's schedule definition from an ORM row

    Raises:
        ValueError: if the stored scheme JSON has an unknown type
    """
    anchor = None
    if row.anchor_type is not None:
        anchor = RoutineAnchor(
            anchor_type=row.anchor_type,
            offset_minutes=row.anchor_offset_minutes or 0
        )

    grace = row.grace_window_minutes
    return ScheduleDefinition(
        id=str(row.id),
        item_id=str(row.medication_id),
        profile_id=_str_id(row.profile_id),
        scheme=scheme_from_dict(row.scheme or {}),
        dose_amount=row.dose_amount if row.dose_amount is not None else 1.0,
        anchor=anchor,
        start_date=row.start_date,
        end_date=row.end_date,
        grace_window_minutes=DEFAULT_GRACE_WINDOW_MINUTES if grace is None else grace,
        time_policy=row.time_policy or TimePolicy.LOCAL_TIME,
        enabled=row.enabled if row.enabled is not None else True,
        is_paused=bool(row.is_paused),
        item_name=row.medication.name if row.medication else None
    )


def inventory_from_row(row: models.InventoryItem) -> InventoryRecord:
    return InventoryRecord(
        item_id=str(row.medication_id),
        remaining_units=row.remaining_units or 0,
        low_threshold=row.low_threshold or 0,
        unit_label=row.unit_label or "units"
    )


def profile_settings_from_row(row: models.Profile) -> ProfileSettings:
    return ProfileSettings(
        profile_id=str(row.id),
        timezone=row.timezone or settings.DEFAULT_TIMEZONE,
        wake_time=row.wake_time,
        breakfast_time=row.breakfast_time,
        lunch_time=row.lunch_time,
        dinner_time=row.dinner_time,
        bed_time=row.bed_time
    )


# ==================== SQLALCHEMY ====================

class SqlDoseLogStore(DoseLogStore):
    """Dose log backed by the dose_logs table; commits on every mutation"""

    def __init__(self, db: Session):
        self.db = db

    def append(self, entry: DoseLogEntry) -> DoseLogEntry:
        row = models.DoseLog(
            profile_id=_int_id(entry.profile_id),
            medication_id=_int_id(entry.item_id),
            schedule_id=_int_id(entry.schedule_id),
            action=entry.action,
            scheduled_for=to_storage(entry.scheduled_for),
            logged_at=to_storage(entry.logged_at),
            snooze_until=to_storage(entry.snooze_until),
            grace_window_minutes=entry.grace_window_minutes,
            reason=entry.reason,
            note=entry.note,
            target_id=_int_id(entry.target_id),
            units_deducted=entry.units_deducted
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return entry_from_row(row)

    def list(self, profile_id: Optional[str] = None) -> List[DoseLogEntry]:
        query = self.db.query(models.DoseLog)
        if profile_id is not None:
            query = query.filter(models.DoseLog.profile_id == _int_id(profile_id))
        return [entry_from_row(row) for row in query.order_by(models.DoseLog.id).all()]

    def get(self, entry_id: str) -> Optional[DoseLogEntry]:
        row = self.db.get(models.DoseLog, _int_id(entry_id))
        return entry_from_row(row) if row else None

    def delete(self, entry_id: str) -> bool:
        row = self.db.get(models.DoseLog, _int_id(entry_id))
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True


class SqlInventoryStore(InventoryStore):

    def __init__(self, db: Session):
        self.db = db

    def _row(self, item_id: str) -> Optional[models.InventoryItem]:
        return self.db.query(models.InventoryItem).filter(
            models.InventoryItem.medication_id == _int_id(item_id)
        ).first()

    def get(self, item_id: str) -> Optional[InventoryRecord]:
        row = self._row(item_id)
        return inventory_from_row(row) if row else None

    def _adjust(self, item_id: str, delta: float) -> Optional[InventoryRecord]:
        row = self._row(item_id)
        if row is None:
            return None
        row.remaining_units = max(0, (row.remaining_units or 0) + delta)
        self.db.commit()
        self.db.refresh(row)
        return inventory_from_row(row)

    def decrement(self, item_id: str, amount: float) -> Optional[InventoryRecord]:
        return self._adjust(item_id, -amount)

    def increment(self, item_id: str, amount: float) -> Optional[InventoryRecord]:
        return self._adjust(item_id, amount)


class SqlProfileSettingsProvider(ProfileSettingsProvider):

    def __init__(self, db: Session):
        self.db = db

    def get(self, profile_id: str) -> ProfileSettings:
        row = self.db.get(models.Profile, _int_id(profile_id))
        if row is None:
            logger.debug(f"No profile {profile_id}, using default settings")
            return ProfileSettings(profile_id=profile_id, timezone=settings.DEFAULT_TIMEZONE)
        return profile_settings_from_row(row)


class SqlScheduleRepository:
    """Loads schedule definitions for the services"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, schedule_id: str) -> Optional[ScheduleDefinition]:
        row = self.db.get(models.MedicationSchedule, _int_id(schedule_id))
        return schedule_from_row(row) if row else None

    def for_profile(self, profile_id: str) -> List[ScheduleDefinition]:
        rows = self.db.query(models.MedicationSchedule).filter(
            models.MedicationSchedule.profile_id == _int_id(profile_id)
        ).order_by(models.MedicationSchedule.id).all()
        return self._convert(rows)

    def for_item(self, item_id: str) -> List[ScheduleDefinition]:
        rows = self.db.query(models.MedicationSchedule).filter(
            models.MedicationSchedule.medication_id == _int_id(item_id)
        ).order_by(models.MedicationSchedule.id).all()
        return self._convert(rows)

    def _convert(self, rows) -> List[ScheduleDefinition]:
        schedules = []
        for row in rows:
            try:
                schedules.append(schedule_from_row(row))
            except (ValueError, KeyError, TypeError):
                logger.exception(f"Skipping schedule {row.id} with unreadable scheme")
        return schedules

    def item_names(self, profile_id: Optional[str] = None) -> Dict[str, str]:
        query = self.db.query(models.Medication)
        if profile_id is not None:
            query = query.filter(models.Medication.profile_id == _int_id(profile_id))
        return {str(m.id): m.name for m in query.all()}

    def inventories_for_profile(self, profile_id: str) -> List[InventoryRecord]:
        rows = self.db.query(models.InventoryItem).join(models.Medication).filter(
            models.Medication.profile_id == _int_id(profile_id)
        ).all()
        return [inventory_from_row(row) for row in rows]


def active_entries(entries: List[DoseLogEntry]) -> List[DoseLogEntry]:
    """Entries minus `undone` markers and the entries they reverse"""
    undone = {e.target_id for e in entries if e.action == DoseAction.UNDONE and e.target_id}
    return [
        e for e in entries
        if e.action != DoseAction.UNDONE and e.id not in undone
    ]
