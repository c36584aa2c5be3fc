"""
Collision Detector
Flags a rescheduled dose that lands too close to another due dose
"""

from typing import Optional, Sequence
from dataclasses import dataclass
from datetime import datetime


DEFAULT_COLLISION_WINDOW_MINUTES = 30


@dataclass(frozen=True)
class DueTime:
    """Another dose due at `time`"""
    time: datetime
    item_id: Optional[str] = None
    label: Optional[str] = None


@dataclass(frozen=True)
class CollisionResult:
    has_collision: bool
    colliding_dose: Optional[DueTime] = None


def detect_collision(
    proposed_time: datetime,
    other_due_times: Sequence[DueTime],
    window_minutes: int = DEFAULT_COLLISION_WINDOW_MINUTES
) -> CollisionResult:
    """
    Return the first candidate within `window_minutes` of `proposed_time`

    Candidates are checked in the given order; pre-sort them if the earliest
    collision should win.
    """
    for candidate in other_due_times:
        diff = abs((proposed_time - candidate.time).total_seconds()) / 60
        if diff <= window_minutes:
            return CollisionResult(has_collision=True, colliding_dose=candidate)

    return CollisionResult(has_collision=False)
