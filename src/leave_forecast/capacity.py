"""
Shared concurrent-leave capacity for members who compete for the same days.

Members with the same working-days fingerprint, shift tag and (when
subgrouping is on) subgroup form a sharing group. A day is saturated when as
many people as the concurrent-leave limit are already off; the group's
usable days are the working days left that are not saturated, and that pool
is split among the group by water-filling.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .balance import ordinary_requests
from .models import GroupKey, LeaveRequest, Member, TeamPolicy
from .shift_calendar import (
    iter_dates,
    member_works_on,
    schedules_overlap,
)

logger = logging.getLogger(__name__)

OVERLAP_WINDOW_DAYS = 30

# Allocations below this are treated as zero to absorb float noise.
EPSILON = 1e-9


class InvariantViolation(RuntimeError):
    """Raised when an internal invariant of the allocator does not hold."""

    pass


@dataclass(frozen=True)
class FairShareAllocation:
    """Result of splitting a shared pool among a fixed set of members."""

    capacity: float
    allocations: Dict[str, float]
    remainder: float
    rounds: int

    @property
    def total_allocated(self) -> float:
        return sum(self.allocations.values())


@dataclass(frozen=True)
class GroupCapacity:
    """Shared-pool figures for one sharing group."""

    key: GroupKey
    member_ids: List[str]
    usable_days: int
    saturated_days: List[date]
    allocation: FairShareAllocation
    partial_overlap_ids: List[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.member_ids)

    @property
    def average_days_per_member(self) -> float:
        return average_days_per_member(self.usable_days, self.size)

    @property
    def has_partial_competition(self) -> bool:
        return bool(self.partial_overlap_ids)


def average_days_per_member(usable_days: float, members_sharing: int) -> float:
    """
    Fair share of a group's usable days.

    Raises:
        InvariantViolation: If the group is empty; a member always counts itself
    """
    if members_sharing < 1:
        raise InvariantViolation(
            f"Sharing group size must be at least 1, got {members_sharing}"
        )
    return usable_days / members_sharing


def allocate_fair_share(
    capacity: float, demands: Mapping[str, float]
) -> FairShareAllocation:
    """
    Split a pool among members by iterative water-filling.

    Each round gives every member who still wants days an equal share of
    what is left, capped at what they still want. Days a member cannot
    absorb go back into the pool for the next round. The loop stops when
    the pool is empty or nobody can absorb more; every round that does not
    exhaust the pool satisfies at least one member, so it runs at most
    ``len(demands)`` rounds.

    Members are visited in member id order. Equal demands therefore receive
    equal shares and the result does not depend on input ordering.

    Args:
        capacity: Days available to the whole group
        demands: Days each member could still use (remaining balance);
            negative demands count as zero

    Returns:
        FairShareAllocation with per-member allocations and the unclaimed
        remainder
    """
    order = sorted(demands)
    wants = {mid: max(0.0, float(demands[mid])) for mid in order}
    allocations = {mid: 0.0 for mid in order}
    pool = max(0.0, float(capacity))
    active = [mid for mid in order if wants[mid] > EPSILON]
    rounds = 0

    while pool > EPSILON and active:
        rounds += 1
        share = pool / len(active)
        still_wanting = []

        for mid in active:
            grant = min(share, wants[mid] - allocations[mid])
            allocations[mid] += grant
            pool -= grant
            if wants[mid] - allocations[mid] > EPSILON:
                still_wanting.append(mid)

        if len(still_wanting) == len(active):
            # Everyone took a full share, so the pool is spent.
            break
        active = still_wanting

    if pool < EPSILON:
        pool = 0.0

    return FairShareAllocation(
        capacity=max(0.0, float(capacity)),
        allocations=allocations,
        remainder=pool,
        rounds=rounds,
    )


def group_key_for(member: Member, policy: TeamPolicy) -> GroupKey:
    """Sharing-group key for a member."""
    subgroup = member.subgroup_or_default() if policy.enable_subgrouping else None
    return GroupKey(
        fingerprint=member.working_days_fingerprint,
        shift_tag=member.shift_tag,
        subgroup_tag=subgroup,
    )


def build_sharing_groups(
    members: Iterable[Member], policy: TeamPolicy
) -> Dict[GroupKey, List[Member]]:
    """Group members by sharing key, keeping snapshot order."""
    groups: Dict[GroupKey, List[Member]] = {}
    for member in members:
        groups.setdefault(group_key_for(member, policy), []).append(member)
    return groups


def find_partial_overlap_members(
    group_members: Sequence[Member],
    candidates: Iterable[Member],
    policy: TeamPolicy,
    window_start: date,
    window_days: int = OVERLAP_WINDOW_DAYS,
) -> List[Member]:
    """
    Members outside a sharing group who still work some of its days.

    A candidate qualifies when it is not in the group, is in the same
    subgroup (if subgrouping is on), and shares at least one working day
    with a group member inside the window.
    """
    in_group = {m.member_id for m in group_members}
    subgroups = {m.subgroup_or_default() for m in group_members}
    overlapping = []

    for candidate in candidates:
        if candidate.member_id in in_group:
            continue
        if policy.enable_subgrouping and candidate.subgroup_or_default() not in subgroups:
            continue
        if any(
            schedules_overlap(member, candidate, window_start, window_days)
            for member in group_members
        ):
            overlapping.append(candidate)

    return overlapping


def index_ordinary_leave(
    requests: Iterable[LeaveRequest],
) -> Dict[str, List[LeaveRequest]]:
    """Approved ordinary requests keyed by member id."""
    index: Dict[str, List[LeaveRequest]] = defaultdict(list)
    for request in ordinary_requests(requests):
        index[request.member_id].append(request)
    return index


def members_on_leave(
    check_date: date,
    members: Iterable[Member],
    leave_index: Mapping[str, List[LeaveRequest]],
) -> int:
    """Count members on approved ordinary leave on a date they would work."""
    count = 0
    for member in members:
        if not any(r.contains(check_date) for r in leave_index.get(member.member_id, ())):
            continue
        if member_works_on(member, check_date):
            count += 1
    return count


def find_saturated_days(
    group_members: Sequence[Member],
    partial_members: Sequence[Member],
    leave_index: Mapping[str, List[LeaveRequest]],
    limit: Optional[int],
    start: date,
    end: date,
) -> List[date]:
    """
    Days in the horizon where the concurrent-leave limit is already reached.

    Partial-overlap members only occupy a slot on days they work, which the
    counting already requires of every member. A limit of 0 or None means
    no day ever saturates.
    """
    if not limit:
        return []

    competitors = list(group_members) + list(partial_members)
    saturated = []
    for check_date in iter_dates(start, end):
        if not any(member_works_on(m, check_date) for m in group_members):
            continue
        if members_on_leave(check_date, competitors, leave_index) >= limit:
            saturated.append(check_date)
    return saturated


def count_usable_days(
    member: Member, saturated: Iterable[date], start: date, end: date
) -> int:
    """Working days for a member in the horizon that are not saturated."""
    blocked = set(saturated)
    return sum(
        1
        for check_date in iter_dates(start, end)
        if check_date not in blocked and member_works_on(member, check_date)
    )


def analyze_group_capacity(
    key: GroupKey,
    group_members: Sequence[Member],
    partial_members: Sequence[Member],
    leave_index: Mapping[str, List[LeaveRequest]],
    demands: Mapping[str, float],
    policy: TeamPolicy,
    start: date,
    end: date,
) -> GroupCapacity:
    """
    Compute usable days and the fair split for one sharing group.

    The group's usable days are the smallest per-member count of
    non-saturated working days, so the shared pool never exceeds any
    member's own calendar.

    Args:
        key: Sharing-group key
        group_members: Members in the group
        partial_members: Members outside the group who overlap its days
        leave_index: Approved ordinary requests by member id
        demands: Remaining balance per group member
        policy: Team policy (for the concurrent-leave limit)
        start: First day of the usable horizon
        end: Last day of the usable horizon
    """
    if not group_members:
        raise InvariantViolation(f"Sharing group {key.label} has no members")

    saturated = find_saturated_days(
        group_members,
        partial_members,
        leave_index,
        policy.concurrent_leave_limit,
        start,
        end,
    )
    usable = min(count_usable_days(m, saturated, start, end) for m in group_members)
    allocation = allocate_fair_share(
        usable, {m.member_id: demands.get(m.member_id, 0.0) for m in group_members}
    )

    logger.debug(
        "Group %s: %d members, %d saturated days, %d usable, remainder %.2f",
        key.label,
        len(group_members),
        len(saturated),
        usable,
        allocation.remainder,
    )

    return GroupCapacity(
        key=key,
        member_ids=[m.member_id for m in group_members],
        usable_days=usable,
        saturated_days=saturated,
        allocation=allocation,
        partial_overlap_ids=[m.member_id for m in partial_members],
    )


def group_members_by_partial_overlap(
    members: Sequence[Member],
    window_start: date,
    window_days: int = OVERLAP_WINDOW_DAYS,
) -> Dict[str, List[Member]]:
    """
    Cluster members whose working days overlap, transitively.

    If A overlaps B and B overlaps C, all three land in one cluster even when
    A and C never work the same day. Clusters are keyed by the id of their
    first member in snapshot order.
    """
    clusters: Dict[str, List[Member]] = {}
    processed = set()

    for member in members:
        if member.member_id in processed:
            continue
        cluster = [member]
        processed.add(member.member_id)
        to_check = [member]

        while to_check:
            current = to_check.pop()
            for other in members:
                if other.member_id in processed:
                    continue
                if schedules_overlap(current, other, window_start, window_days):
                    cluster.append(other)
                    to_check.append(other)
                    processed.add(other.member_id)

        clusters[member.member_id] = cluster

    return clusters


@dataclass(frozen=True)
class SubgroupSuggestion:
    member_id: str
    suggested_subgroup: str
    overlapping_members: List[str]


@dataclass(frozen=True)
class SubgroupConflict:
    member_id: str
    current_subgroup: str
    suggested_subgroup: str
    reason: str


@dataclass(frozen=True)
class SubgroupSuggestions:
    suggestions: List[SubgroupSuggestion]
    conflicts: List[SubgroupConflict]


def suggest_subgroup_assignments(
    members: Sequence[Member],
    subgroups: Sequence[str],
    window_start: date,
    window_days: int = OVERLAP_WINDOW_DAYS,
) -> SubgroupSuggestions:
    """
    Suggest a subgroup per overlap cluster, cycling through the configured names.

    A member already placed in a different named subgroup is reported as a
    conflict rather than moved.
    """
    if not subgroups:
        return SubgroupSuggestions(suggestions=[], conflicts=[])

    suggestions = []
    conflicts = []
    clusters = group_members_by_partial_overlap(members, window_start, window_days)

    for index, cluster in enumerate(clusters.values()):
        suggested = subgroups[index % len(subgroups)]
        for member in cluster:
            suggestions.append(
                SubgroupSuggestion(
                    member_id=member.member_id,
                    suggested_subgroup=suggested,
                    overlapping_members=[
                        m.member_id for m in cluster if m.member_id != member.member_id
                    ],
                )
            )
            current = member.subgroup_or_default()
            if member.subgroup_tag and current != suggested:
                conflicts.append(
                    SubgroupConflict(
                        member_id=member.member_id,
                        current_subgroup=current,
                        suggested_subgroup=suggested,
                        reason=f"Has partial overlap with members in {suggested}",
                    )
                )

    return SubgroupSuggestions(suggestions=suggestions, conflicts=conflicts)
