"""Shared fixtures for leave-forecast tests."""

import pytest
from datetime import date
from typing import Callable, List, Optional

from leave_forecast.models import (
    APPROVED,
    FIXED,
    ROTATING,
    LeaveRequest,
    Member,
    ShiftSchedule,
    TeamPolicy,
    TeamSnapshot,
)


def fixed(*working_weekdays: int) -> ShiftSchedule:
    """Fixed schedule working the given weekday indices (Monday=0)."""
    return ShiftSchedule(kind=FIXED, pattern=[i in working_weekdays for i in range(7)])


def approved(
    member_id: str, start: date, end: date, reason: str = "vacation", **kwargs
) -> LeaveRequest:
    """Approved leave request."""
    return LeaveRequest(
        member_id=member_id,
        start_date=start,
        end_date=end,
        reason=reason,
        status=APPROVED,
        **kwargs,
    )


@pytest.fixture
def weekday_schedule() -> ShiftSchedule:
    """Monday to Friday."""
    return ShiftSchedule.weekdays()


@pytest.fixture
def weekend_schedule() -> ShiftSchedule:
    """Saturday and Sunday only."""
    return fixed(5, 6)


@pytest.fixture
def rotating_schedule() -> ShiftSchedule:
    """Two on, two off, starting Monday 2026-01-05."""
    return ShiftSchedule(
        kind=ROTATING, pattern=[True, True, False, False], anchor_date=date(2026, 1, 5)
    )


@pytest.fixture
def basic_policy() -> TeamPolicy:
    """20 days a year, no concurrency limit, no carryover."""
    return TeamPolicy(max_leave_per_year=20)


@pytest.fixture
def alice() -> Member:
    """Weekday day-shift member."""
    return Member(member_id="alice", name="Alice", shift_tag="day")


@pytest.fixture
def bob() -> Member:
    """Weekday day-shift member."""
    return Member(member_id="bob", name="Bob", shift_tag="day")


@pytest.fixture
def make_snapshot() -> Callable[..., TeamSnapshot]:
    """Factory for snapshots with sensible defaults."""

    def _make(
        members: List[Member],
        requests: Optional[List[LeaveRequest]] = None,
        policy: Optional[TeamPolicy] = None,
    ) -> TeamSnapshot:
        return TeamSnapshot(
            team_name="Support",
            policy=policy or TeamPolicy(max_leave_per_year=20),
            members=members,
            requests=requests or [],
        )

    return _make
