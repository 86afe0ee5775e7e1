"""
Balance calculation for the ordinary and parental leave pools.
"""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional, Tuple

from .classifier import category_of, is_parental
from .models import (
    CALENDAR_DAYS,
    WORKING_DAYS,
    BalanceOverride,
    LeaveRequest,
    ParentalLeavePolicy,
)
from .shift_calendar import ScheduleSource, count_calendar_days, count_working_days


@dataclass(frozen=True)
class BalanceResult:
    """Balance figures for one pool."""

    base: float
    used: float
    remaining: float
    surplus: float


def year_bounds(year: int) -> Tuple[date, date]:
    return date(year, 1, 1), date(year, 12, 31)


def days_consumed(
    request: LeaveRequest,
    schedule: ScheduleSource,
    year: int,
    counting_method: str = WORKING_DAYS,
) -> int:
    """
    Days a request draws from a pool within one policy year.

    Only the part of the request inside the year counts. Inverted ranges
    count as zero.
    """
    start, end = year_bounds(year)
    window = request.overlap(start, end)
    if window is None:
        return 0
    if counting_method == CALENDAR_DAYS:
        return count_calendar_days(*window)
    return count_working_days(schedule, *window)


def ordinary_requests(requests: Iterable[LeaveRequest]) -> List[LeaveRequest]:
    """Approved requests that draw from the ordinary pool."""
    return [r for r in requests if r.is_approved and not is_parental(category_of(r))]


def parental_requests(
    requests: Iterable[LeaveRequest], leave_type: str
) -> List[LeaveRequest]:
    """Approved requests of one parental type."""
    return [r for r in requests if r.is_approved and category_of(r) == leave_type]


def calculate_surplus(manual_balance: Optional[float], maximum: float) -> float:
    """Amount a leader-granted balance exceeds the standard entitlement."""
    if manual_balance is None:
        return 0.0
    return max(0.0, manual_balance - maximum)


def _resolve(
    maximum: float, computed_used: float, override: Optional[BalanceOverride]
) -> BalanceResult:
    if override is None:
        override = BalanceOverride()

    used = (
        override.year_to_date_used
        if override.year_to_date_used is not None
        else computed_used
    )
    if override.balance is not None:
        # A manual balance is authoritative: it is the remaining figure.
        base = override.balance
        remaining = override.balance
    else:
        base = maximum
        remaining = maximum - used

    return BalanceResult(
        base=base,
        used=used,
        remaining=remaining,
        surplus=calculate_surplus(override.balance, maximum),
    )


def calculate_balance(
    max_per_year: float,
    approved_requests: Iterable[LeaveRequest],
    schedule: ScheduleSource,
    year: int,
    override: Optional[BalanceOverride] = None,
) -> BalanceResult:
    """
    Calculate the ordinary pool balance.

    Args:
        max_per_year: Team entitlement per year
        approved_requests: The member's requests; non-approved and parental
            requests are ignored
        schedule: Schedule (or member, for shift history) used to count days
        year: Policy year whose days are counted
        override: Manual figures set by a leader

    Returns:
        BalanceResult; ``remaining`` may be negative when over-allocated
    """
    used = sum(
        days_consumed(r, schedule, year) for r in ordinary_requests(approved_requests)
    )
    return _resolve(max_per_year, used, override)


def calculate_parental_balance(
    policy: ParentalLeavePolicy,
    leave_type: str,
    approved_requests: Iterable[LeaveRequest],
    schedule: ScheduleSource,
    year: int,
    override: Optional[BalanceOverride] = None,
) -> BalanceResult:
    """Calculate a parental pool balance, counting days the way the policy says."""
    used = sum(
        days_consumed(r, schedule, year, policy.counting_method)
        for r in parental_requests(approved_requests, leave_type)
    )
    return _resolve(policy.max_days, used, override)
