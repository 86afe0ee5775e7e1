"""Tests for analytics export strategies."""

import csv
import pytest
from datetime import date

from leave_forecast.analytics import LeaveAnalyticsEngine
from leave_forecast.exporters import (
    ExportStrategy,
    GroupCSVExporter,
    MemberCSVExporter,
)
from leave_forecast.models import GroupedTeamAnalytics, Member, TeamPolicy, TeamSnapshot

from conftest import approved, fixed


def read_rows(filepath):
    with open(filepath, newline="") as f:
        return list(csv.DictReader(f))


@pytest.fixture
def snapshot(alice: Member, bob: Member, make_snapshot) -> TeamSnapshot:
    """Two weekday members and one weekend night worker."""
    carol = Member(member_id="carol", name="Carol", shift_tag="night", shift_schedule=fixed(5, 6))
    policy = TeamPolicy(
        max_leave_per_year=20,
        concurrent_leave_limit=1,
        working_days_group_names={"MTWTF__": "Weekdays"},
    )
    requests = [approved("bob", date(2026, 3, 2), date(2026, 3, 13))]
    return make_snapshot([alice, bob, carol], requests, policy)


@pytest.fixture
def result(snapshot: TeamSnapshot) -> GroupedTeamAnalytics:
    return LeaveAnalyticsEngine(snapshot, date(2026, 8, 14)).team_analytics()


class TestExportStrategyBase:
    """Tests for the ExportStrategy base class."""

    def test_cannot_instantiate_abstract_class(self, result, snapshot):
        """ExportStrategy cannot be used directly."""
        with pytest.raises(TypeError):
            ExportStrategy(result, snapshot)

    def test_group_label_uses_configured_name(self, result, snapshot):
        """Configured names replace the generated label."""
        exporter = MemberCSVExporter(result, snapshot)
        labels = {exporter._group_label(key) for key in result.groups}
        assert labels == {"Weekdays", "All_night______SS"}


class TestMemberCSVExporter:
    """Tests for MemberCSVExporter."""

    def test_export_creates_file(self, result, snapshot, tmp_path):
        filepath = tmp_path / "members.csv"
        MemberCSVExporter(result, snapshot).export(str(filepath))
        assert filepath.exists()

    def test_export_has_correct_headers(self, result, snapshot, tmp_path):
        filepath = tmp_path / "members.csv"
        MemberCSVExporter(result, snapshot).export(str(filepath))

        with open(filepath, newline="") as f:
            header = next(csv.reader(f))
        assert header == MemberCSVExporter.FIELDNAMES

    def test_one_row_per_member(self, result, snapshot, tmp_path):
        filepath = tmp_path / "members.csv"
        MemberCSVExporter(result, snapshot).export(str(filepath))

        rows = read_rows(filepath)
        assert sorted(r["Member_ID"] for r in rows) == ["alice", "bob", "carol"]

    def test_row_values(self, result, snapshot, tmp_path):
        filepath = tmp_path / "members.csv"
        MemberCSVExporter(result, snapshot).export(str(filepath))

        bob = next(r for r in read_rows(filepath) if r["Member_ID"] == "bob")
        assert bob["Name"] == "Bob"
        assert bob["Group"] == "Weekdays"
        assert bob["Remaining_Balance"] == "10.00"
        assert bob["Days_Used"] == "10.00"
        assert bob["Members_Sharing"] == "2"
        assert bob["At_Risk"] == "no"

    def test_prints_confirmation(self, result, snapshot, tmp_path, capsys):
        filepath = tmp_path / "members.csv"
        MemberCSVExporter(result, snapshot).export(str(filepath))
        assert "Member analytics exported to" in capsys.readouterr().out

    def test_export_empty_team(self, make_snapshot, tmp_path):
        """An empty team still gets a header row."""
        snapshot = make_snapshot([])
        result = LeaveAnalyticsEngine(snapshot, date(2026, 8, 14)).team_analytics()
        filepath = tmp_path / "empty.csv"
        MemberCSVExporter(result, snapshot).export(str(filepath))

        with open(filepath, newline="") as f:
            lines = list(csv.reader(f))
        assert lines == [MemberCSVExporter.FIELDNAMES]


class TestGroupCSVExporter:
    """Tests for GroupCSVExporter."""

    def test_one_row_per_group(self, result, snapshot, tmp_path):
        filepath = tmp_path / "groups.csv"
        GroupCSVExporter(result, snapshot).export(str(filepath))

        rows = read_rows(filepath)
        assert [r["Fingerprint"] for r in rows] == ["MTWTF__", "_____SS"]

    def test_group_values(self, result, snapshot, tmp_path):
        filepath = tmp_path / "groups.csv"
        GroupCSVExporter(result, snapshot).export(str(filepath))

        weekdays = read_rows(filepath)[0]
        assert weekdays["Group"] == "Weekdays"
        assert weekdays["Shift_Tag"] == "day"
        assert weekdays["Members"] == "2"
        assert weekdays["Usable_Days"] == "100"
        assert weekdays["Total_Remaining_Balance"] == "30.00"
        assert weekdays["Average_Remaining_Balance"] == "15.00"
