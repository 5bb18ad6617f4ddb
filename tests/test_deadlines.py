"""
Tests for deadline resolution and deadline arithmetic
"""
from datetime import datetime, timedelta, timezone

import pytest

from unitrack.errors import ValidationError
from unitrack.models import ApplicationStatus, ApplicationType
from unitrack.services.deadlines import (
    days_until, deadline_key_for, deadline_urgency, resolve_deadline, within_window
)

NOW = datetime(2025, 8, 1, 12, 0, tzinfo=timezone.utc)

DEADLINES = {
    "early_action": "2025-09-01T00:00:00Z",
    "regular_decision": "2025-12-01T00:00:00Z",
}


class TestDeadlineKeys:
    @pytest.mark.parametrize("label,key", [
        ("Early Decision", "early_decision"),
        ("Early Action", "early_action"),
        ("Regular Decision", "regular_decision"),
        ("Rolling Admission", "rolling_admission"),
    ])
    def test_track_label_maps_to_key(self, label, key):
        assert deadline_key_for(label) == key
        assert deadline_key_for(ApplicationType(label)) == key

    def test_unknown_track_is_rejected(self):
        with pytest.raises(ValidationError):
            deadline_key_for("Super Early")


class TestResolveDeadline:
    def test_early_action_resolves_exactly(self):
        deadline = resolve_deadline(DEADLINES, ApplicationType.EARLY_ACTION)
        assert deadline == datetime(2025, 9, 1, tzinfo=timezone.utc)

    def test_missing_track_does_not_fall_back(self):
        """Early Decision has no entry; regular_decision must not be substituted"""
        with pytest.raises(ValidationError) as exc:
            resolve_deadline(DEADLINES, ApplicationType.EARLY_DECISION)
        assert exc.value.status_code == 422
        assert "deadline found" in exc.value.message

    @pytest.mark.parametrize("deadlines", [None, {}, "2025-09-01"])
    def test_missing_deadline_map(self, deadlines):
        with pytest.raises(ValidationError):
            resolve_deadline(deadlines, ApplicationType.REGULAR_DECISION)

    def test_unparseable_date(self):
        with pytest.raises(ValidationError):
            resolve_deadline({"regular_decision": "next tuesday"}, ApplicationType.REGULAR_DECISION)

    def test_offset_is_normalised_to_utc(self):
        deadline = resolve_deadline({"early_action": "2025-09-01T02:00:00+02:00"}, "Early Action")
        assert deadline == datetime(2025, 9, 1, tzinfo=timezone.utc)
        assert deadline.tzinfo is not None


class TestDeadlineArithmetic:
    def test_days_until_rounds_up(self):
        assert days_until(NOW + timedelta(days=10), NOW) == 10
        assert days_until(NOW + timedelta(days=9, hours=1), NOW) == 10
        assert days_until(NOW + timedelta(hours=1), NOW) == 1

    def test_days_until_negative_when_passed(self):
        assert days_until(NOW - timedelta(days=3), NOW) == -3

    def test_naive_datetimes_are_treated_as_utc(self):
        naive = (NOW + timedelta(days=5)).replace(tzinfo=None)
        assert days_until(naive, NOW) == 5

    def test_window_is_inclusive(self):
        assert within_window(NOW, NOW, 30)
        assert within_window(NOW + timedelta(days=30), NOW, 30)
        assert not within_window(NOW + timedelta(days=30, seconds=1), NOW, 30)
        assert not within_window(NOW - timedelta(seconds=1), NOW, 30)


class TestDeadlineUrgency:
    @pytest.mark.parametrize("offset,expected", [
        (timedelta(days=-1), "overdue"),
        (timedelta(days=3), "very_urgent"),
        (timedelta(days=7), "very_urgent"),
        (timedelta(days=8), "urgent"),
        (timedelta(days=30), "urgent"),
        (timedelta(days=31), "normal"),
    ])
    def test_open_application(self, offset, expected):
        assert deadline_urgency(NOW + offset, ApplicationStatus.IN_PROGRESS, NOW) == expected

    @pytest.mark.parametrize("status", [
        ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW, ApplicationStatus.DECIDED,
    ])
    def test_submitted_applications_are_closed(self, status):
        assert deadline_urgency(NOW - timedelta(days=5), status, NOW) == "closed"
