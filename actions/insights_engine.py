"""
Insights Engine
Aggregates the dose log into adherence analytics: rates, heatmap, streaks
"""

import logging
from typing import List, Dict, Any, Optional, Iterable, Set
from dataclasses import dataclass, field, asdict
from datetime import datetime, date, timedelta, timezone
from collections import defaultdict

from tools.schedule_types import DoseAction, DoseLogEntry, DEFAULT_GRACE_WINDOW_MINUTES, day_of_week


logger = logging.getLogger(__name__)

DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
DEFAULT_PROBLEM_TIMES_LIMIT = 5
COUNTED_ACTIONS = (DoseAction.TAKEN, DoseAction.SKIPPED, DoseAction.POSTPONED)


def percent(part: float, whole: float) -> int:
    """Integer percent rounded half up; 0 when `whole` is 0"""
    if not whole:
        return 0
    return int(part * 100 / whole + 0.5)


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def is_taken_on_time(entry: DoseLogEntry) -> bool:
    """
    Whether a taken entry landed within its grace window after scheduled_for.

    Entries without a recorded scheduled_for count as on time.
    """
    if entry.scheduled_for is None:
        return True
    grace = entry.grace_window_minutes
    if grace is None:
        grace = DEFAULT_GRACE_WINDOW_MINUTES
    diff_minutes = (_aware(entry.logged_at) - _aware(entry.scheduled_for)).total_seconds() / 60
    return diff_minutes <= grace


# ==================== RESULT TYPES ====================

@dataclass
class AdherenceBreakdown:
    total_doses: int
    taken: int
    skipped: int
    postponed: int
    on_time: int
    late: int
    taken_rate: int
    on_time_rate: int
    late_rate: int


@dataclass
class HeatmapCell:
    day: int            # 0-6, Sunday first
    hour: int           # 0-23
    total: int = 0
    missed: int = 0
    late: int = 0
    on_time: int = 0
    score: float = 1.0  # 1.0 when empty: no evidence of problems


@dataclass
class ProblemTime:
    day: int
    hour: int
    day_label: str
    hour_label: str
    missed_count: int
    late_count: int
    total_issues: int


@dataclass
class StreakInfo:
    current_streak: int
    best_streak: int
    streak_start: Optional[date] = None


@dataclass
class MedicationAdherence:
    item_id: str
    item_name: str
    taken: int
    skipped: int
    on_time: int
    late: int
    total: int
    adherence_rate: int
    on_time_rate: int


@dataclass
class SkipReasonCount:
    reason: str
    count: int
    percentage: int


@dataclass
class DailyStats:
    date: date
    taken: int
    skipped: int
    late: int
    on_time: int
    total: int
    adherence_rate: int


@dataclass
class AdherenceReport:
    days: int
    profile_id: Optional[str]
    generated_at: datetime
    breakdown: AdherenceBreakdown
    heatmap: List[HeatmapCell]
    problem_times: List[ProblemTime]
    streaks: StreakInfo
    by_medication: List[MedicationAdherence]
    skip_reasons: List[SkipReasonCount] = field(default_factory=list)
    daily_trends: List[DailyStats] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ==================== AGGREGATOR ====================

class AdherenceAggregator:
    """
    Computes adherence metrics from a rolling window of the dose log.

    Nothing is cached between calls; each method folds the entries it is given.
    Entries reversed by an `undone` entry are left out of every metric.
    """

    def __init__(self, tz=timezone.utc, problem_times_limit: int = DEFAULT_PROBLEM_TIMES_LIMIT):
        self.tz = tz
        self.problem_times_limit = problem_times_limit

    def relevant_entries(
        self,
        entries: Iterable[DoseLogEntry],
        days: int,
        now: datetime,
        profile_id: Optional[str] = None
    ) -> List[DoseLogEntry]:
        """Dose entries inside the window for the profile, minus undone ones"""
        entries = list(entries)
        cutoff = _aware(now) - timedelta(days=days)
        undone: Set[str] = {
            e.target_id for e in entries
            if e.action == DoseAction.UNDONE and e.target_id
        }

        relevant = []
        for entry in entries:
            if entry.action not in COUNTED_ACTIONS:
                continue
            if entry.logged_at is None:
                logger.warning(f"Ignoring dose log entry {entry.id} without a timestamp")
                continue
            if profile_id is not None and entry.profile_id != profile_id:
                continue
            if entry.id is not None and entry.id in undone:
                continue
            if _aware(entry.logged_at) < cutoff:
                continue
            relevant.append(entry)
        return relevant

    def breakdown(self, entries: List[DoseLogEntry]) -> AdherenceBreakdown:
        taken_entries = [e for e in entries if e.action == DoseAction.TAKEN]
        taken = len(taken_entries)
        skipped = sum(1 for e in entries if e.action == DoseAction.SKIPPED)
        postponed = sum(1 for e in entries if e.action == DoseAction.POSTPONED)
        total = taken + skipped + postponed

        on_time = sum(1 for e in taken_entries if is_taken_on_time(e))
        late = taken - on_time

        return AdherenceBreakdown(
            total_doses=total,
            taken=taken,
            skipped=skipped,
            postponed=postponed,
            on_time=on_time,
            late=late,
            taken_rate=percent(taken, total),
            on_time_rate=percent(on_time, taken),
            late_rate=percent(late, taken)
        )

    def heatmap(self, entries: List[DoseLogEntry]) -> List[HeatmapCell]:
        """Fixed 7x24 grid indexed day * 24 + hour"""
        grid = [HeatmapCell(day=d, hour=h) for d in range(7) for h in range(24)]

        for entry in entries:
            if entry.action not in (DoseAction.TAKEN, DoseAction.SKIPPED):
                continue
            local = _aware(entry.logged_at).astimezone(self.tz)
            cell = grid[day_of_week(local) * 24 + local.hour]
            cell.total += 1

            if entry.action == DoseAction.SKIPPED:
                cell.missed += 1
            elif is_taken_on_time(entry):
                cell.on_time += 1
            else:
                cell.late += 1

        for cell in grid:
            if cell.total > 0:
                cell.score = cell.on_time / cell.total

        return grid

    def problem_times(self, heatmap: List[HeatmapCell]) -> List[ProblemTime]:
        problems = [
            ProblemTime(
                day=cell.day,
                hour=cell.hour,
                day_label=DAY_LABELS[cell.day],
                hour_label=f"{cell.hour:02d}:00",
                missed_count=cell.missed,
                late_count=cell.late,
                total_issues=cell.missed + cell.late
            )
            for cell in heatmap
            if cell.missed > 0 or cell.late > 0
        ]
        problems.sort(key=lambda p: p.total_issues, reverse=True)
        return problems[:self.problem_times_limit]

    def _daily_counts(self, entries: List[DoseLogEntry]) -> Dict[date, Dict[str, int]]:
        by_day: Dict[date, Dict[str, int]] = defaultdict(
            lambda: {"taken": 0, "skipped": 0, "late": 0, "on_time": 0}
        )
        for entry in entries:
            if entry.action not in (DoseAction.TAKEN, DoseAction.SKIPPED):
                continue
            day = _aware(entry.logged_at).astimezone(self.tz).date()
            stats = by_day[day]
            if entry.action == DoseAction.SKIPPED:
                stats["skipped"] += 1
            else:
                stats["taken"] += 1
                stats["on_time" if is_taken_on_time(entry) else "late"] += 1
        return by_day

    def streaks(self, entries: List[DoseLogEntry], days: int, today: date) -> StreakInfo:
        """
        Runs of perfect days (at least one dose, all taken), newest first.

        The current streak must end on `today`; the best streak is the longest
        run anywhere in the window.
        """
        by_day = self._daily_counts(entries)

        current = 0
        best = 0
        run = 0
        still_current = True
        streak_start = None

        for offset in range(days):
            day = today - timedelta(days=offset)
            stats = by_day.get(day)
            total = (stats["taken"] + stats["skipped"]) if stats else 0
            perfect = total > 0 and stats["taken"] == total

            if perfect:
                run += 1
                best = max(best, run)
                if still_current:
                    current = run
                    streak_start = day
            else:
                run = 0
                still_current = False

        return StreakInfo(current_streak=current, best_streak=best, streak_start=streak_start)

    def by_medication(
        self,
        entries: List[DoseLogEntry],
        item_names: Optional[Dict[str, str]] = None
    ) -> List[MedicationAdherence]:
        item_names = item_names or {}
        stats: Dict[str, Dict[str, int]] = {}

        for entry in entries:
            if entry.action not in (DoseAction.TAKEN, DoseAction.SKIPPED) or not entry.item_id:
                continue
            med = stats.setdefault(
                entry.item_id, {"taken": 0, "skipped": 0, "on_time": 0, "late": 0}
            )
            if entry.action == DoseAction.SKIPPED:
                med["skipped"] += 1
            else:
                med["taken"] += 1
                med["on_time" if is_taken_on_time(entry) else "late"] += 1

        results = []
        for item_id, med in stats.items():
            total = med["taken"] + med["skipped"]
            results.append(MedicationAdherence(
                item_id=item_id,
                item_name=item_names.get(item_id, "Unknown"),
                taken=med["taken"],
                skipped=med["skipped"],
                on_time=med["on_time"],
                late=med["late"],
                total=total,
                adherence_rate=percent(med["taken"], total),
                on_time_rate=percent(med["on_time"], med["taken"])
            ))

        results.sort(key=lambda m: m.total, reverse=True)
        return results

    def skip_reasons(self, entries: List[DoseLogEntry]) -> List[SkipReasonCount]:
        skipped = [e for e in entries if e.action == DoseAction.SKIPPED]
        counts: Dict[str, int] = defaultdict(int)
        for entry in skipped:
            counts[entry.reason or "unknown"] += 1

        reasons = [
            SkipReasonCount(reason=reason, count=count, percentage=percent(count, len(skipped)))
            for reason, count in counts.items()
        ]
        reasons.sort(key=lambda r: r.count, reverse=True)
        return reasons

    def daily_trends(self, entries: List[DoseLogEntry], days: int, today: date) -> List[DailyStats]:
        """Per-day counts for the last `days` days, oldest first"""
        by_day = self._daily_counts(entries)
        trends = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            stats = by_day.get(day, {"taken": 0, "skipped": 0, "late": 0, "on_time": 0})
            total = stats["taken"] + stats["skipped"]
            trends.append(DailyStats(
                date=day,
                taken=stats["taken"],
                skipped=stats["skipped"],
                late=stats["late"],
                on_time=stats["on_time"],
                total=total,
                adherence_rate=percent(stats["taken"], total)
            ))
        return trends

    def aggregate(
        self,
        entries: Iterable[DoseLogEntry],
        days: int,
        now: datetime,
        profile_id: Optional[str] = None,
        item_names: Optional[Dict[str, str]] = None,
        trend_days: int = 7
    ) -> AdherenceReport:
        """
        Build the full adherence report for a window

        Args:
            entries: Dose log entries (any order)
            days: Window length in days
            now: Current time from the injected clock
            profile_id: Only count this profile's entries when given
            item_names: item_id -> display name for the per-item breakdown
            trend_days: Days covered by the daily trend series

        Returns:
            AdherenceReport
        """
        relevant = self.relevant_entries(entries, days, now, profile_id)
        today = _aware(now).astimezone(self.tz).date()
        heatmap = self.heatmap(relevant)

        logger.debug(f"Aggregating {len(relevant)} dose entries over {days} days")

        return AdherenceReport(
            days=days,
            profile_id=profile_id,
            generated_at=now,
            breakdown=self.breakdown(relevant),
            heatmap=heatmap,
            problem_times=self.problem_times(heatmap),
            streaks=self.streaks(relevant, days, today),
            by_medication=self.by_medication(relevant, item_names),
            skip_reasons=self.skip_reasons(relevant),
            daily_trends=self.daily_trends(relevant, min(trend_days, days), today)
        )
