"""
Tools Package
Pure scheduling, timing, PRN, collision and inventory engines for DoseTrack
"""

from .schedule_types import (
    TimePolicy,
    AnchorType,
    DoseAction,
    DoseTimingStatus,
    DailyScheme,
    WeeklyScheme,
    IntervalDaysScheme,
    IntervalHoursScheme,
    CourseScheme,
    PrnScheme,
    RoutineAnchor,
    ProfileSettings,
    ScheduleDefinition,
    DoseInstance,
    DoseLogEntry,
    InventoryRecord,
    scheme_from_dict,
    scheme_to_dict,
)

from .validation import (
    RejectionReason,
    DoseActionRejected,
    ScheduleValidationError,
    validate_schedule,
)

from .routine_anchors import RoutineAnchorResolver, resolve_timezone

from .scheduler import ScheduleExpander, expand_schedule

from .dose_status import DoseTimingResult, DoseStatusClassifier, classify_dose, format_delay

from .prn_validator import PRNRejection, PRNValidationResult, validate_prn_dose

from .collision_detector import DueTime, CollisionResult, detect_collision

from .inventory_forecaster import (
    InventoryForecast,
    InventoryForecaster,
    InventoryUrgency,
    daily_consumption,
    enough_until,
    enough_until_for_item,
)

__all__ = [
    # Domain types
    "TimePolicy",
    "AnchorType",
    "DoseAction",
    "DoseTimingStatus",
    "DailyScheme",
    "WeeklyScheme",
    "IntervalDaysScheme",
    "IntervalHoursScheme",
    "CourseScheme",
    "PrnScheme",
    "RoutineAnchor",
    "ProfileSettings",
    "ScheduleDefinition",
    "DoseInstance",
    "DoseLogEntry",
    "InventoryRecord",
    "scheme_from_dict",
    "scheme_to_dict",

    # Validation
    "RejectionReason",
    "DoseActionRejected",
    "ScheduleValidationError",
    "validate_schedule",

    # Anchors and expansion
    "RoutineAnchorResolver",
    "resolve_timezone",
    "ScheduleExpander",
    "expand_schedule",

    # Timing
    "DoseTimingResult",
    "DoseStatusClassifier",
    "classify_dose",
    "format_delay",

    # PRN
    "PRNRejection",
    "PRNValidationResult",
    "validate_prn_dose",

    # Collisions
    "DueTime",
    "CollisionResult",
    "detect_collision",

    # Inventory
    "InventoryForecast",
    "InventoryForecaster",
    "InventoryUrgency",
    "daily_consumption",
    "enough_until",
    "enough_until_for_item",
]
