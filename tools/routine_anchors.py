"""
Routine Anchor Resolver
Maps routine anchors (wake, meals, bed) to concrete times for a date
"""

import logging
from typing import Optional
from datetime import datetime, date, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tools.schedule_types import AnchorType, ProfileSettings, RoutineAnchor, parse_hhmm


logger = logging.getLogger(__name__)


def resolve_timezone(name: Optional[str]):
    """Return a tzinfo for an IANA name, falling back to UTC"""
    if not name or name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using UTC")
        return timezone.utc


class RoutineAnchorResolver:
    """
    Resolves anchor base times against one profile's routine settings.

    The settings are passed in explicitly; nothing is read from global state.
    """

    def __init__(self, profile_settings: ProfileSettings):
        self.profile_settings = profile_settings
        self.tz = resolve_timezone(profile_settings.timezone)

    def resolve(self, anchor_type: AnchorType, day: date) -> Optional[datetime]:
        """
        Wall-clock time of the anchor on `day` in the profile timezone

        Returns None when the profile has no (valid) base time for the anchor.
        """
        raw = self.profile_settings.anchor_base_time(AnchorType(anchor_type))
        base = parse_hhmm(raw)
        if base is None:
            if raw:
                logger.warning(
                    f"Profile {self.profile_settings.profile_id} has malformed "
                    f"{AnchorType(anchor_type).value} time {raw!r}"
                )
            return None
        return datetime.combine(day, base, tzinfo=self.tz)

    def planned_time(self, anchor: RoutineAnchor, day: date) -> Optional[datetime]:
        """Anchor base time plus the anchor's offset"""
        base = self.resolve(anchor.anchor_type, day)
        if base is None:
            return None
        # Offset is applied on the wall clock, then re-attached to the zone
        shifted = base.replace(tzinfo=None) + timedelta(minutes=anchor.offset_minutes)
        return shifted.replace(tzinfo=self.tz)
