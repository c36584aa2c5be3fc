"""
Adherence Schemas
Pydantic models for the adherence dashboard
"""

from typing import Optional, List
from datetime import datetime, date
from pydantic import BaseModel, Field, ConfigDict


class AdherenceBreakdown(BaseModel):
    """Dose counts and integer percentage rates"""
    total_doses: int
    taken: int
    skipped: int
    postponed: int
    on_time: int
    late: int
    taken_rate: int = Field(..., ge=0, le=100)
    on_time_rate: int = Field(..., ge=0, le=100)
    late_rate: int = Field(..., ge=0, le=100)

    model_config = ConfigDict(from_attributes=True)


class HeatmapCell(BaseModel):
    """One weekday/hour bucket, Sunday=0"""
    day: int
    hour: int
    total: int
    missed: int
    late: int
    on_time: int
    score: float

    model_config = ConfigDict(from_attributes=True)


class ProblemTime(BaseModel):
    """Weekday/hour slot with missed or late doses"""
    day: int
    hour: int
    day_label: str
    hour_label: str
    missed_count: int
    late_count: int
    total_issues: int

    model_config = ConfigDict(from_attributes=True)


class AdherenceStreak(BaseModel):
    """Adherence streak information"""
    current_streak: int
    best_streak: int
    streak_start: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


class MedicationAdherence(BaseModel):
    """Adherence breakdown by medication"""
    item_id: str
    item_name: str
    taken: int
    skipped: int
    on_time: int
    late: int
    total: int
    adherence_rate: int
    on_time_rate: int

    model_config = ConfigDict(from_attributes=True)


class SkipReasonCount(BaseModel):
    reason: str
    count: int
    percentage: int

    model_config = ConfigDict(from_attributes=True)


class DailySummary(BaseModel):
    """Daily adherence summary"""
    date: date
    taken: int
    skipped: int
    late: int
    on_time: int
    total: int
    adherence_rate: int

    model_config = ConfigDict(from_attributes=True)


class AdherenceDashboard(BaseModel):
    """Complete adherence dashboard data"""
    days: int
    profile_id: Optional[str] = None
    generated_at: datetime
    breakdown: AdherenceBreakdown
    heatmap: List[HeatmapCell]
    problem_times: List[ProblemTime]
    streaks: AdherenceStreak
    by_medication: List[MedicationAdherence]
    skip_reasons: List[SkipReasonCount]
    daily_trends: List[DailySummary]

    model_config = ConfigDict(from_attributes=True)
