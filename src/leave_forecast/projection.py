"""
Carryover and forfeiture projection.
"""

import calendar
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

from .balance import calculate_balance
from .models import (
    APPROVED,
    CarryoverPolicy,
    Member,
    MemberFailure,
    TeamPolicy,
    TeamSnapshot,
)
from .shift_calendar import (
    InvalidScheduleError,
    ScheduleSource,
    count_working_days,
    validate_member,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CarryoverProjection:
    """Projected split of a remaining balance at year end."""

    will_carryover: float
    will_lose: float
    realistic_carryover_usable_days: float
    expiry_date: Optional[date] = None


def month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def carryover_expiry(policy: CarryoverPolicy, next_year: int) -> Optional[date]:
    """
    When carried days stop being usable.

    An explicit expiry date wins; otherwise carried days lapse at the end of
    the last eligible month of the following year. No limits means no expiry.
    """
    if policy.expiry_date is not None:
        return policy.expiry_date
    if policy.eligible_months:
        return month_end(next_year, max(policy.eligible_months))
    return None


def carryover_capacity(
    schedule: ScheduleSource, policy: CarryoverPolicy, next_year: int
) -> int:
    """
    Working days next year in which carried days could be taken.

    Only eligible months count (all months when none are listed), and nothing
    after the expiry date.
    """
    months = sorted(set(policy.eligible_months)) or list(range(1, 13))
    total = 0
    for month in months:
        start = date(next_year, month, 1)
        end = month_end(next_year, month)
        if policy.expiry_date is not None:
            end = min(end, policy.expiry_date)
        total += count_working_days(schedule, start, end)
    return total


def project_carryover(
    remaining_balance: float,
    realistic_usable_days: float,
    policy: CarryoverPolicy,
    schedule: ScheduleSource,
    today: date,
    year: int,
) -> CarryoverProjection:
    """
    Project how much of a remaining balance carries over and how much is lost.

    Only days that cannot realistically be taken before year end are at risk.
    Without carryover those days are lost. With carryover the unused balance
    rolls over up to the cap; at-risk days above the cap are lost, and so are
    at-risk carried days that will not fit in next year's eligible window
    before expiry. Days moved to ``will_lose`` are taken out of
    ``will_carryover``, so the two never add up to more than the balance.

    Args:
        remaining_balance: Ordinary pool balance (may be negative)
        realistic_usable_days: Days the member can realistically take this year
        policy: Team carryover policy
        schedule: Member schedule (or member) for next year's capacity
        today: Current date
        year: Policy year being projected

    Returns:
        CarryoverProjection
    """
    unusable = max(0.0, remaining_balance - realistic_usable_days)

    if not policy.allowed:
        return CarryoverProjection(
            will_carryover=0.0,
            will_lose=unusable,
            realistic_carryover_usable_days=0.0,
        )

    candidate = max(0.0, remaining_balance)
    expiry = carryover_expiry(policy, year + 1)

    if policy.expiry_date is not None and policy.expiry_date < today:
        # Expired already: nothing rolls over.
        return CarryoverProjection(
            will_carryover=0.0,
            will_lose=unusable,
            realistic_carryover_usable_days=0.0,
            expiry_date=expiry,
        )

    carried = candidate if policy.cap is None else min(candidate, policy.cap)
    over_cap = max(0.0, unusable - carried)

    # Carried days that can still be taken this year are never short of room.
    must_carry = min(unusable, carried)
    usable_next_year = carryover_capacity(schedule, policy, year + 1)
    shortfall = max(0.0, must_carry - usable_next_year)

    will_carryover = carried - shortfall
    return CarryoverProjection(
        will_carryover=will_carryover,
        will_lose=over_cap + shortfall,
        realistic_carryover_usable_days=min(will_carryover, usable_next_year),
        expiry_date=expiry,
    )


@dataclass(frozen=True)
class YearEndCarryover:
    """Carryover a member takes into the year after ``previous_year``."""

    member_id: str
    expected_carryover: float
    expiry_date: Optional[date] = None


def calculate_year_end_carryover(
    member: Member,
    policy: TeamPolicy,
    member_requests: List,
    previous_year: int,
) -> YearEndCarryover:
    """
    Settle a member's carryover at the end of ``previous_year``.

    Uses computed usage only; manual overrides are year-specific and do not
    describe a closed year.

    Raises:
        InvalidScheduleError: If the member's schedule cannot be evaluated
    """
    validate_member(member)

    if not policy.carryover.allowed:
        return YearEndCarryover(member_id=member.member_id, expected_carryover=0.0)

    balance = calculate_balance(
        policy.max_leave_per_year, member_requests, member, previous_year
    )
    expected = max(0.0, balance.remaining)
    if policy.carryover.cap is not None:
        expected = min(expected, policy.carryover.cap)

    expiry = carryover_expiry(policy.carryover, previous_year + 1) if expected > 0 else None
    return YearEndCarryover(
        member_id=member.member_id, expected_carryover=expected, expiry_date=expiry
    )


@dataclass
class CarryoverSettlement:
    """Year-end carryover for a whole team."""

    team_name: str
    previous_year: int
    results: Dict[str, YearEndCarryover] = field(default_factory=dict)
    errors: List[MemberFailure] = field(default_factory=list)

    @property
    def total_members(self) -> int:
        return len(self.results) + len(self.errors)

    @property
    def members_with_carryover(self) -> int:
        return sum(1 for r in self.results.values() if r.expected_carryover > 0)

    @property
    def total_carryover_days(self) -> float:
        return sum(r.expected_carryover for r in self.results.values())


def settle_team_carryover(snapshot: TeamSnapshot, previous_year: int) -> CarryoverSettlement:
    """Settle carryover for every member; a bad member is reported, not fatal."""
    settlement = CarryoverSettlement(team_name=snapshot.team_name, previous_year=previous_year)

    for member in snapshot.members:
        try:
            settlement.results[member.member_id] = calculate_year_end_carryover(
                member,
                snapshot.policy,
                snapshot.requests_for(member.member_id, APPROVED),
                previous_year,
            )
        except InvalidScheduleError as e:
            logger.warning(
                "Skipping carryover for member %s: %s", member.member_id, e
            )
            settlement.errors.append(MemberFailure(member_id=member.member_id, error=str(e)))

    return settlement
