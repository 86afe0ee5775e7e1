"""
Roll member analytics up into group and team figures.
"""

from typing import Dict, Iterable, List, Sequence

from .models import GroupAggregate, GroupAnalytics, GroupKey, MemberAnalytics, TeamAggregate

# Members below this share of the yearly entitlement count as at risk.
AT_RISK_BALANCE_RATIO = 0.25


def is_at_risk(analytics: MemberAnalytics, max_per_year: float) -> bool:
    """A member is at risk when days will be lost or the balance runs low."""
    return (
        analytics.will_lose > 0
        or analytics.remaining_balance < AT_RISK_BALANCE_RATIO * max_per_year
    )


def _mean(total: float, count: int) -> float:
    return total / count if count else 0.0


def aggregate_group(
    members: Sequence[MemberAnalytics],
    usable_days: int,
    remainder_days: float,
    max_per_year: float,
) -> GroupAggregate:
    """
    Sum and average one sharing group.

    ``usable_days`` and ``remainder_days`` describe the shared pool and are
    passed through; they are not per-member sums.
    """
    if not members:
        return GroupAggregate()

    count = len(members)
    total_remaining = sum(m.remaining_balance for m in members)
    total_realistic = sum(m.realistic_usable_days for m in members)

    return GroupAggregate(
        total_members=count,
        usable_days=usable_days,
        total_realistic_usable_days=total_realistic,
        remainder_days=remainder_days,
        total_remaining_balance=total_remaining,
        average_remaining_balance=_mean(total_remaining, count),
        average_realistic_usable_days=_mean(total_realistic, count),
        total_will_carryover=sum(m.will_carryover for m in members),
        total_will_lose=sum(m.will_lose for m in members),
        at_risk_count=sum(1 for m in members if is_at_risk(m, max_per_year)),
    )


def aggregate_team(
    groups: Iterable[GroupAnalytics], max_per_year: float
) -> TeamAggregate:
    """Sum and average across every group of a team."""
    groups = list(groups)
    members = [m for group in groups for m in group.members]
    if not members:
        return TeamAggregate()

    count = len(members)
    total_remaining = sum(m.remaining_balance for m in members)

    return TeamAggregate(
        members_count=count,
        total_theoretical_working_days=sum(
            m.theoretical_working_days_remaining for m in members
        ),
        total_usable_days=sum(group.usable_days for group in groups),
        total_realistic_usable_days=sum(m.realistic_usable_days for m in members),
        total_remainder_days=sum(group.remainder_days for group in groups),
        total_remaining_balance=total_remaining,
        total_surplus_balance=sum(m.surplus_balance for m in members),
        total_will_carryover=sum(m.will_carryover for m in members),
        total_will_lose=sum(m.will_lose for m in members),
        average_remaining_balance=_mean(total_remaining, count),
        average_days_per_member_across_team=_mean(
            sum(m.average_days_per_member for m in members), count
        ),
        at_risk_count=sum(1 for m in members if is_at_risk(m, max_per_year)),
    )


def build_groups(
    members: Iterable[MemberAnalytics],
) -> Dict[GroupKey, List[MemberAnalytics]]:
    """Key member analytics by sharing group, keeping input order."""
    groups: Dict[GroupKey, List[MemberAnalytics]] = {}
    for analytics in members:
        groups.setdefault(analytics.group_key, []).append(analytics)
    return groups
