"""
Services Module
Business logic layer for the DoseTrack application
"""

from services.stores import (
    DoseLogStore,
    InventoryStore,
    ProfileSettingsProvider,
    InMemoryDoseLogStore,
    InMemoryInventoryStore,
    InMemoryProfileSettingsProvider,
    SqlDoseLogStore,
    SqlInventoryStore,
    SqlProfileSettingsProvider,
    SqlScheduleRepository,
    system_clock,
)
from services.dose_action_service import DoseActionService, PostponeResult
from services.today_service import TodayService, DoseView
from services.adherence_service import AdherenceService


__all__ = [
    # Stores
    "DoseLogStore",
    "InventoryStore",
    "ProfileSettingsProvider",
    "InMemoryDoseLogStore",
    "InMemoryInventoryStore",
    "InMemoryProfileSettingsProvider",
    "SqlDoseLogStore",
    "SqlInventoryStore",
    "SqlProfileSettingsProvider",
    "SqlScheduleRepository",
    "system_clock",
    # Service classes
    "DoseActionService",
    "PostponeResult",
    "TodayService",
    "DoseView",
    "AdherenceService",
]
