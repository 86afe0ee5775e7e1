"""Tests for the console reporter."""

import pytest
from datetime import date

from leave_forecast.analytics import LeaveAnalyticsEngine
from leave_forecast.frequency import leave_frequency
from leave_forecast.models import (
    GroupKey,
    Member,
    ParentalLeavePolicy,
    ShiftSchedule,
    TeamPolicy,
)
from leave_forecast.reporter import AnalyticsReporter

from conftest import approved

TODAY = date(2026, 8, 14)


@pytest.fixture
def snapshot(alice, make_snapshot):
    dana = Member(member_id="dana", name="Dana", shift_tag="day", parental_leave_type="maternity")
    policy = TeamPolicy(
        max_leave_per_year=20,
        maternity_leave=ParentalLeavePolicy(enabled=True, max_days=90),
        working_days_group_names={"MTWTF__": "Weekdays"},
    )
    requests = [
        approved("alice", date(2026, 3, 2), date(2026, 3, 6)),
        approved("dana", date(2026, 4, 6), date(2026, 4, 10), reason="Maternity leave"),
    ]
    return make_snapshot([alice, dana], requests, policy)


def reporter_for(snapshot, frequency=None) -> AnalyticsReporter:
    result = LeaveAnalyticsEngine(snapshot, TODAY).team_analytics()
    return AnalyticsReporter(result, snapshot, frequency)


class TestPrintReport:
    """Tests for the full report."""

    def test_sections_present(self, snapshot, capsys):
        reporter_for(snapshot).print_report(quiet=False)
        out = capsys.readouterr().out

        assert "LEAVE BALANCE AND CAPACITY ANALYTICS" in out
        assert "Team: Support" in out
        assert "TEAM SUMMARY" in out
        assert "GROUP SUMMARY" in out
        assert "MEMBER SUMMARY" in out
        assert "PARENTAL LEAVE" in out
        assert "Weekdays / day" in out

    def test_quiet_shows_team_only(self, snapshot, capsys):
        reporter_for(snapshot).print_report(quiet=True)
        out = capsys.readouterr().out

        assert "TEAM SUMMARY" in out
        assert "MEMBER SUMMARY" not in out

    def test_frequency_section(self, snapshot, capsys):
        rows = leave_frequency(snapshot.requests, snapshot.members, "month", 2026)
        reporter_for(snapshot, rows).print_report(quiet=False)
        out = capsys.readouterr().out

        assert "LEAVE FREQUENCY" in out
        assert "March 2026" in out
        # Parental leave is not part of the tally.
        assert "April 2026" not in out

    def test_failures_listed(self, alice, make_snapshot, capsys):
        broken = Member(member_id="broken", shift_schedule=ShiftSchedule(kind="rotating", pattern=[True]))
        reporter_for(make_snapshot([alice, broken])).print_report(quiet=True)
        out = capsys.readouterr().out

        assert "MEMBERS NOT ANALYSED" in out
        assert "broken" in out

    def test_empty_team(self, make_snapshot, capsys):
        reporter_for(make_snapshot([])).print_report(quiet=False)
        out = capsys.readouterr().out
        assert "No members to report" in out
        assert "No groups to report" in out


class TestPrintMember:
    def test_member_details(self, snapshot, capsys):
        engine = LeaveAnalyticsEngine(snapshot, TODAY)
        reporter = AnalyticsReporter(engine.team_analytics(), snapshot)
        reporter.print_member(engine.member_analytics("dana"))
        out = capsys.readouterr().out

        assert "MEMBER: Dana" in out
        assert "Realistic Usable Days" in out
        assert "Maternity Remaining" in out


class TestGroupName:
    def test_configured_name(self, snapshot):
        reporter = reporter_for(snapshot)
        key = GroupKey(fingerprint="MTWTF__", shift_tag="day", subgroup_tag="A")
        assert reporter.group_name(key) == "A / Weekdays / day"

    def test_falls_back_to_fingerprint(self, snapshot):
        reporter = reporter_for(snapshot)
        assert reporter.group_name(GroupKey("_____SS", "night")) == "_____SS / night"
