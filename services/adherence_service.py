"""
Adherence Service
Business logic for the adherence dashboard
"""

import logging
from typing import Dict, Optional

from config import settings
from actions.insights_engine import AdherenceAggregator, AdherenceReport
from tools.schedule_types import ProfileSettings
from tools.routine_anchors import resolve_timezone
from services.stores import DoseLogStore, system_clock


logger = logging.getLogger(__name__)


class AdherenceService:
    """
    Service for adherence analytics over the dose log
    """

    def __init__(
        self,
        log_store: DoseLogStore,
        clock=system_clock,
        problem_times_limit: int = settings.PROBLEM_TIMES_LIMIT,
        trend_days: int = settings.TREND_DAYS
    ):
        self.log_store = log_store
        self.clock = clock
        self.problem_times_limit = problem_times_limit
        self.trend_days = trend_days

    def dashboard(
        self,
        profile_id: Optional[str] = None,
        days: int = settings.ANALYTICS_WINDOW_DAYS,
        profile_settings: Optional[ProfileSettings] = None,
        item_names: Optional[Dict[str, str]] = None
    ) -> AdherenceReport:
        """
        Full adherence report for a profile

        Args:
            profile_id: Only count this profile's entries (all when None)
            days: Rolling window length
            profile_settings: Supplies the display timezone for day/hour buckets
            item_names: item_id -> display name

        Returns:
            AdherenceReport
        """
        tz = resolve_timezone(profile_settings.timezone if profile_settings else None)
        aggregator = AdherenceAggregator(tz=tz, problem_times_limit=self.problem_times_limit)

        entries = self.log_store.list(profile_id)
        report = aggregator.aggregate(
            entries,
            days=days,
            now=self.clock(),
            profile_id=profile_id,
            item_names=item_names,
            trend_days=self.trend_days
        )

        logger.info(
            f"Adherence dashboard for profile {profile_id}: "
            f"{report.breakdown.total_doses} doses, {report.breakdown.taken_rate}% taken"
        )
        return report
