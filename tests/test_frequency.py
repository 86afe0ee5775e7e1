"""Tests for leave frequency tallies."""

import pytest
from datetime import date

from leave_forecast.frequency import leave_frequency, period_key, period_label
from leave_forecast.models import LeaveRequest, Member, ShiftSchedule

from conftest import approved

# Friday 30 January to Tuesday 3 February 2026.
MONTH_EDGE = (date(2026, 1, 30), date(2026, 2, 3))


class TestPeriodKeys:
    def test_month_key(self):
        assert period_key(date(2026, 3, 9), "month") == "2026-03"

    def test_week_key_uses_iso_year(self):
        """1 January 2027 falls in the last ISO week of 2026."""
        assert period_key(date(2027, 1, 1), "week") == "2026-W53"

    def test_labels(self):
        assert period_label("2026-01", "month") == "January 2026"
        assert period_label("2026-W05", "week") == "Week 5, 2026 (Jan 26 - Feb 01)"


class TestLeaveFrequency:
    """Tests for leave_frequency."""

    def test_monthly_split_counts_working_days(self, alice):
        """A request spanning two months adds to both."""
        rows = leave_frequency([approved("alice", *MONTH_EDGE)], [alice], "month")

        assert [(r.period_key, r.working_days_used, r.request_count) for r in rows] == [
            ("2026-01", 1, 1),
            ("2026-02", 2, 1),
        ]
        assert rows[0].label == "January 2026"

    def test_weekly_split(self, alice):
        rows = leave_frequency([approved("alice", *MONTH_EDGE)], [alice], "week")
        assert [(r.period_key, r.working_days_used) for r in rows] == [
            ("2026-W05", 1),
            ("2026-W06", 2),
        ]

    def test_requests_are_counted_per_period(self, alice, bob):
        """Two requests in one month count twice there."""
        requests = [
            approved("alice", date(2026, 3, 2), date(2026, 3, 3)),
            approved("bob", date(2026, 3, 9), date(2026, 3, 9)),
        ]
        rows = leave_frequency(requests, [alice, bob])
        assert len(rows) == 1
        assert rows[0].working_days_used == 3
        assert rows[0].request_count == 2

    def test_uses_member_schedule(self):
        """Weekend workers use weekend days."""
        member = Member(
            member_id="w", shift_schedule=ShiftSchedule(kind="fixed", pattern=[False] * 5 + [True] * 2)
        )
        rows = leave_frequency([approved("w", *MONTH_EDGE)], [member])
        assert [(r.period_key, r.working_days_used) for r in rows] == [
            ("2026-01", 1),
            ("2026-02", 1),
        ]

    def test_ignores_pending_and_parental(self, alice):
        requests = [
            LeaveRequest("alice", date(2026, 3, 2), date(2026, 3, 6), "vacation", "pending"),
            approved("alice", date(2026, 4, 6), date(2026, 4, 10), reason="Paternity leave"),
        ]
        assert leave_frequency(requests, [alice]) == []

    def test_year_filter_drops_neighbouring_iso_week(self, alice):
        """Days that belong to the previous ISO year are left out."""
        requests = [approved("alice", date(2027, 1, 1), date(2027, 1, 5))]
        rows = leave_frequency(requests, [alice], "week", year=2027)
        assert [(r.period_key, r.working_days_used) for r in rows] == [("2027-W01", 2)]

    def test_year_filter_clips_requests(self, alice):
        requests = [approved("alice", date(2025, 12, 29), date(2026, 1, 2))]
        rows = leave_frequency(requests, [alice], "month", year=2026)
        assert [(r.period_key, r.working_days_used) for r in rows] == [("2026-01", 2)]

    def test_unknown_member_skipped(self, alice):
        rows = leave_frequency([approved("zed", *MONTH_EDGE)], [alice])
        assert rows == []

    def test_invalid_period_raises(self, alice):
        with pytest.raises(ValueError, match="Period must be one of"):
            leave_frequency([], [alice], "quarter")
