"""
Tests for Dose Status Classifier
"""

import pytest
from datetime import datetime, timezone

from tools.dose_status import DoseStatusClassifier, classify_dose, format_delay
from tools.schedule_types import DoseTimingStatus


PLANNED = datetime(2024, 1, 15, 8, 0, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    return datetime(2024, 1, 15, hour, minute, second, tzinfo=timezone.utc)


@pytest.mark.unit
class TestClassifyWithoutAction:
    """Doses with no logged action"""

    def test_missed_after_grace(self):
        """90 minutes past due with a 60 minute grace is missed"""
        result = classify_dose(PLANNED, None, 60, now=at(9, 30))

        assert result.status == DoseTimingStatus.MISSED
        assert result.delay_minutes == 90
        assert result.is_within_grace is False

    def test_pending_before_due(self):
        result = classify_dose(PLANNED, None, 60, now=at(7, 0))

        assert result.status == DoseTimingStatus.PENDING
        assert result.delay_minutes == 0
        assert result.is_within_grace is True

    def test_pending_inside_grace(self):
        result = classify_dose(PLANNED, None, 60, now=at(8, 40))

        assert result.status == DoseTimingStatus.PENDING
        assert result.delay_minutes == 40

    def test_grace_boundary_is_inclusive(self):
        result = classify_dose(PLANNED, None, 60, now=at(9, 0))
        assert result.status == DoseTimingStatus.PENDING

    def test_delay_is_floored(self):
        result = classify_dose(PLANNED, None, 60, now=at(8, 10, 59))
        assert result.delay_minutes == 10


@pytest.mark.unit
class TestClassifyWithAction:
    """Doses with a logged action"""

    def test_on_time(self):
        """Taken 25 minutes late is still on time"""
        result = classify_dose(PLANNED, at(8, 25), 60, now=at(12, 0))

        assert result.status == DoseTimingStatus.ON_TIME
        assert result.delay_minutes == 25
        assert result.is_within_grace is True

    def test_late(self):
        result = classify_dose(PLANNED, at(9, 15), 60, now=at(12, 0))

        assert result.status == DoseTimingStatus.LATE
        assert result.delay_minutes == 75

    def test_early_beyond_grace_is_late(self):
        """Grace is symmetric for logged actions"""
        result = classify_dose(PLANNED, at(6, 30), 60, now=at(12, 0))

        assert result.status == DoseTimingStatus.LATE
        assert result.delay_minutes == -90
        assert result.is_within_grace is False

    def test_none_grace_defaults_to_sixty(self):
        result = classify_dose(PLANNED, at(8, 59), None, now=at(12, 0))
        assert result.status == DoseTimingStatus.ON_TIME

    def test_classifier_uses_clock(self):
        classifier = DoseStatusClassifier(clock=lambda: at(9, 30))
        assert classifier.classify(PLANNED, None).status == DoseTimingStatus.MISSED


@pytest.mark.unit
class TestFormatDelay:

    @pytest.mark.parametrize("minutes,expected", [
        (0, ""),
        (25, "+25 min"),
        (-10, "-10 min"),
        (120, "+2 h"),
        (-90, "-1h 30m"),
    ])
    def test_labels(self, minutes, expected):
        assert format_delay(minutes) == expected
