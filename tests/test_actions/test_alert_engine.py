"""
Tests for Alert Engine
"""

import pytest
from datetime import datetime, timezone

from actions.alert_engine import AlertSeverity, AlertType, detect_missed_doses
from services.today_service import DoseView
from tools.dose_status import classify_dose
from tools.schedule_types import DoseInstance


NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def view(hour: int, minute: int = 0, taken: bool = False, skipped: bool = False, grace: int = 60) -> DoseView:
    planned = datetime(2024, 1, 15, hour, minute, tzinfo=timezone.utc)
    instance = DoseInstance(
        schedule_id="s1",
        item_id="med-1",
        date=planned.date(),
        planned_time=planned,
        original_time=planned.strftime("%H:%M"),
        grace_window_minutes=grace,
        profile_id="1"
    )
    return DoseView(
        instance=instance,
        timing=classify_dose(planned, None, grace, NOW),
        effective_time=planned,
        is_taken=taken,
        is_skipped=skipped,
        item_name="Metformin"
    )


@pytest.mark.unit
class TestMissedDoseAlerts:

    def test_alert_after_grace_and_follow_up(self):
        alerts = detect_missed_doses([view(8)], NOW, follow_up_minutes=30)

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.alert_type == AlertType.MISSED_DOSE
        assert alert.dose_id == "s1-2024-01-15-08:00"
        assert alert.overdue_minutes == 240
        assert alert.severity == AlertSeverity.HIGH
        assert alert.message == "Metformin due at 08:00 has not been taken"

    def test_medium_before_second_follow_up(self):
        """105 minutes overdue with 60 grace and 30 follow-up"""
        alerts = detect_missed_doses([view(10, 15)], NOW, follow_up_minutes=30)
        assert alerts[0].severity == AlertSeverity.MEDIUM

    def test_no_alert_at_deadline(self):
        assert detect_missed_doses([view(10, 30)], NOW, follow_up_minutes=30) == []

    def test_resolved_doses_ignored(self):
        doses = [view(6, taken=True), view(7, skipped=True)]
        assert detect_missed_doses(doses, NOW) == []

    def test_most_overdue_first(self):
        alerts = detect_missed_doses([view(10), view(6), view(8)], NOW)
        assert [a.overdue_minutes for a in alerts] == [360, 240, 120]

    def test_to_dict(self):
        data = detect_missed_doses([view(8)], NOW)[0].to_dict()

        assert data["alert_type"] == "missed_dose"
        assert data["severity"] == "high"
        assert data["planned_time"] == "2024-01-15T08:00:00+00:00"
