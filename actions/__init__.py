"""
Actions Module
Engines for missed-dose alerts, refill reminders, and adherence insights
"""

from .alert_engine import (
    Alert,
    AlertSeverity,
    AlertType,
    detect_missed_doses,
)

from .reminder_engine import (
    Reminder,
    ReminderType,
    ReminderPriority,
    build_refill_reminders,
)

from .insights_engine import (
    AdherenceAggregator,
    AdherenceBreakdown,
    AdherenceReport,
    HeatmapCell,
    ProblemTime,
    StreakInfo,
    MedicationAdherence,
    percent,
)


__all__ = [
    # Alert Engine
    "Alert",
    "AlertSeverity",
    "AlertType",
    "detect_missed_doses",

    # Reminder Engine
    "Reminder",
    "ReminderType",
    "ReminderPriority",
    "build_refill_reminders",

    # Insights Engine
    "AdherenceAggregator",
    "AdherenceBreakdown",
    "AdherenceReport",
    "HeatmapCell",
    "ProblemTime",
    "StreakInfo",
    "MedicationAdherence",
    "percent",
]
