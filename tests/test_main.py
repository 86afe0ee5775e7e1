"""Tests for the command-line entry point."""

import sys

import pytest

from leave_forecast.main import main

SNAPSHOT = """
team:
  name: Support
policy:
  max_leave_per_year: 20
  carryover:
    allowed: true
    cap: 5
members:
  - id: alice
    name: Alice
    shift_tag: day
  - id: bob
    name: Bob
    shift_tag: day
requests:
  - member: alice
    start: 2026-03-02
    end: 2026-03-06
    status: approved
"""


@pytest.fixture
def snapshot_path(tmp_path):
    path = tmp_path / "team.yaml"
    path.write_text(SNAPSHOT)
    return path


def run(monkeypatch, *argv) -> int:
    monkeypatch.setattr(sys, "argv", ["leave-forecast", *argv])
    with pytest.raises(SystemExit) as excinfo:
        main()
    return excinfo.value.code


class TestMain:
    def test_report_exits_zero(self, snapshot_path, monkeypatch, capsys):
        code = run(monkeypatch, str(snapshot_path), "--today", "2026-08-14")
        out = capsys.readouterr().out

        assert code == 0
        assert "✓ Configuration loaded successfully" in out
        assert "Running analytics for 2026 as of 2026-08-14" in out
        assert "MEMBER SUMMARY" in out

    def test_member_view(self, snapshot_path, monkeypatch, capsys):
        code = run(monkeypatch, str(snapshot_path), "--today", "2026-08-14", "--member", "bob")
        assert code == 0
        assert "MEMBER: Bob" in capsys.readouterr().out

    def test_unknown_member_fails(self, snapshot_path, monkeypatch, capsys):
        code = run(monkeypatch, str(snapshot_path), "--today", "2026-08-14", "--member", "zed")
        assert code == 1
        assert "zed" in capsys.readouterr().err

    def test_missing_file_fails(self, tmp_path, monkeypatch, capsys):
        code = run(monkeypatch, str(tmp_path / "missing.yaml"))
        assert code == 1
        assert "Configuration file not found" in capsys.readouterr().err

    def test_settle_carryover(self, snapshot_path, monkeypatch, capsys):
        code = run(monkeypatch, str(snapshot_path), "--today", "2026-08-14", "--settle-carryover", "2025")
        out = capsys.readouterr().out

        assert code == 0
        assert "YEAR-END CARRYOVER FROM 2025" in out
        assert "2 of 2 members carry 10.00 days" in out

    def test_exports(self, snapshot_path, tmp_path, monkeypatch):
        members_csv = tmp_path / "members.csv"
        groups_csv = tmp_path / "groups.csv"
        code = run(
            monkeypatch,
            str(snapshot_path),
            "--today",
            "2026-08-14",
            "--quiet",
            "--export-csv",
            str(members_csv),
            "--export-groups-csv",
            str(groups_csv),
        )
        assert code == 0
        assert members_csv.exists()
        assert groups_csv.exists()
