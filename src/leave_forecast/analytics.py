"""
Leave analytics engine: turns a team snapshot into member and team projections.
"""

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from .aggregator import aggregate_group, aggregate_team
from .balance import (
    BalanceResult,
    calculate_balance,
    calculate_parental_balance,
    year_bounds,
)
from .capacity import (
    OVERLAP_WINDOW_DAYS,
    analyze_group_capacity,
    build_sharing_groups,
    find_partial_overlap_members,
    index_ordinary_leave,
)
from .models import (
    APPROVED,
    NO_PARENTAL_LEAVE,
    GroupAnalytics,
    GroupedTeamAnalytics,
    GroupKey,
    Member,
    MemberAnalytics,
    MemberFailure,
    ParentalAnalytics,
    TeamSnapshot,
)
from .projection import project_carryover
from .shift_calendar import InvalidScheduleError, count_working_days, validate_member

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _MemberState:
    member: Member
    balance: BalanceResult


class LeaveAnalyticsEngine:
    """
    Computes leave analytics for one team as of a given date.

    The engine never reads the clock: ``today`` is passed in, and ``year``
    defaults to ``today.year``. Results are computed once per engine and
    reused, since the snapshot is treated as read-only.
    """

    def __init__(self, snapshot: TeamSnapshot, today: date, year: Optional[int] = None):
        self.snapshot = snapshot
        self.policy = snapshot.policy
        self.today = today
        self.year = year if year is not None else today.year
        self._leave_index = index_ordinary_leave(snapshot.requests)
        self._team: Optional[GroupedTeamAnalytics] = None

    @property
    def is_historical(self) -> bool:
        return self.year < self.today.year

    def theoretical_horizon(self) -> Tuple[date, date]:
        """Dates still to come in the analysed year; the whole year if it is past."""
        year_start, year_end = year_bounds(self.year)
        if self.is_historical:
            return year_start, year_end
        return max(self.today, year_start), year_end

    def usable_horizon(self) -> Tuple[date, date]:
        """
        Dates on which new leave could still be booked.

        Starts after the minimum notice period, unless today falls inside
        the team's notice bypass window.
        """
        start, end = self.theoretical_horizon()
        if self.is_historical:
            return start, end

        bypass = self.policy.notice_bypass
        if bypass is not None and bypass.is_active(self.today):
            return start, end
        earliest = self.today + timedelta(days=self.policy.minimum_notice_days)
        return max(start, earliest), end

    def member_analytics(self, member_id: str) -> MemberAnalytics:
        """
        Analytics for one member, computed in the context of their group.

        Raises:
            KeyError: If the member is not in the snapshot
            InvalidScheduleError: If the member's schedule cannot be evaluated
        """
        member = self.snapshot.get_member(member_id)
        validate_member(member)
        return self.team_analytics().get_member(member_id)

    def parental_analytics(self, member_id: str) -> Optional[ParentalAnalytics]:
        """
        Parental pool figures for a member, or None when they have no parental
        leave type or the team has that pool disabled.

        Raises:
            KeyError: If the member is not in the snapshot
            InvalidScheduleError: If the member's schedule cannot be evaluated
        """
        member = self.snapshot.get_member(member_id)
        return self._parental(member)

    def team_analytics(self) -> GroupedTeamAnalytics:
        """
        Analytics for every member, grouped by who shares leave capacity.

        A member whose schedule cannot be evaluated is left out and listed in
        ``failures``; the rest of the team is still computed.
        """
        if self._team is None:
            self._team = self._compute_team()
        return self._team

    def _member_state(self, member: Member) -> _MemberState:
        validate_member(member)
        balance = calculate_balance(
            self.policy.max_leave_per_year,
            self.snapshot.requests_for(member.member_id, APPROVED),
            member,
            self.year,
            member.ordinary_override(self.year),
        )
        return _MemberState(member=member, balance=balance)

    def _parental(self, member: Member) -> Optional[ParentalAnalytics]:
        validate_member(member)
        if member.parental_leave_type == NO_PARENTAL_LEAVE:
            return None
        policy = self.policy.parental_policy(member.parental_leave_type)
        if not policy.enabled:
            return None

        result = calculate_parental_balance(
            policy,
            member.parental_leave_type,
            self.snapshot.requests_for(member.member_id, APPROVED),
            member,
            self.year,
            member.parental_override(),
        )
        return ParentalAnalytics(
            leave_type=member.parental_leave_type,
            counting_method=policy.counting_method,
            base_balance=result.base,
            remaining_balance=result.remaining,
            surplus_balance=result.surplus,
            days_used=result.used,
        )

    def _compute_team(self) -> GroupedTeamAnalytics:
        states: Dict[str, _MemberState] = {}
        failures: List[MemberFailure] = []

        for member in self.snapshot.members:
            try:
                states[member.member_id] = self._member_state(member)
            except InvalidScheduleError as e:
                logger.warning(
                    "Omitting member %s from analytics: %s", member.member_id, e
                )
                failures.append(MemberFailure(member_id=member.member_id, error=str(e)))

        valid_members = [state.member for state in states.values()]
        groups: Dict[GroupKey, GroupAnalytics] = {}
        for key, group_members in build_sharing_groups(valid_members, self.policy).items():
            groups[key] = self._analyze_group(key, group_members, valid_members, states)

        logger.debug(
            "Team %s: %d members in %d groups, %d omitted",
            self.snapshot.team_name,
            len(valid_members),
            len(groups),
            len(failures),
        )

        return GroupedTeamAnalytics(
            aggregate=aggregate_team(groups.values(), self.policy.max_leave_per_year),
            groups=groups,
            failures=failures,
        )

    def _analyze_group(
        self,
        key: GroupKey,
        group_members: List[Member],
        all_members: List[Member],
        states: Dict[str, _MemberState],
    ) -> GroupAnalytics:
        theoretical_start, theoretical_end = self.theoretical_horizon()
        usable_start, usable_end = self.usable_horizon()
        year_start, year_end = year_bounds(self.year)

        partial = find_partial_overlap_members(
            group_members, all_members, self.policy, usable_start, OVERLAP_WINDOW_DAYS
        )
        capacity = analyze_group_capacity(
            key,
            group_members,
            partial,
            self._leave_index,
            {m.member_id: states[m.member_id].balance.remaining for m in group_members},
            self.policy,
            usable_start,
            usable_end,
        )
        partial_with_balance = sum(
            1 for m in partial if states[m.member_id].balance.remaining > 0
        )

        results = []
        for member in group_members:
            balance = states[member.member_id].balance
            realistic = capacity.allocation.allocations[member.member_id]
            projection = project_carryover(
                balance.remaining,
                realistic,
                self.policy.carryover,
                member,
                self.today,
                self.year,
            )
            results.append(
                MemberAnalytics(
                    member_id=member.member_id,
                    group_key=key,
                    base_balance=balance.base,
                    remaining_balance=balance.remaining,
                    surplus_balance=balance.surplus,
                    working_days_used_this_year=balance.used,
                    working_days_in_year=count_working_days(member, year_start, year_end),
                    theoretical_working_days_remaining=count_working_days(
                        member, theoretical_start, theoretical_end
                    ),
                    usable_days=capacity.usable_days,
                    realistic_usable_days=realistic,
                    members_sharing_same_shift=capacity.size,
                    average_days_per_member=capacity.average_days_per_member,
                    will_carryover=projection.will_carryover,
                    will_lose=projection.will_lose,
                    realistic_carryover_usable_days=projection.realistic_carryover_usable_days,
                    has_partial_competition=capacity.has_partial_competition,
                    partial_overlap_members_count=len(partial),
                    partial_overlap_members_with_balance=partial_with_balance,
                    parental=self._parental(member),
                )
            )

        return GroupAnalytics(
            key=key,
            members=results,
            usable_days=capacity.usable_days,
            remainder_days=capacity.allocation.remainder,
            aggregate=aggregate_group(
                results,
                capacity.usable_days,
                capacity.allocation.remainder,
                self.policy.max_leave_per_year,
            ),
        )
