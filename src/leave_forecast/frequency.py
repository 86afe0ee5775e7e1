"""
Leave frequency: working days taken and requests made per month or ISO week.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional

from .balance import ordinary_requests, year_bounds
from .models import LeaveRequest, Member
from .shift_calendar import InvalidScheduleError, iter_dates, member_works_on

logger = logging.getLogger(__name__)

MONTH = "month"
WEEK = "week"
PERIODS = (MONTH, WEEK)


@dataclass(frozen=True)
class PeriodFrequency:
    period_key: str  # "2025-03" or "2025-W09"
    label: str
    working_days_used: int
    request_count: int


def period_key(day: date, period: str) -> str:
    if period == MONTH:
        return f"{day.year}-{day.month:02d}"
    iso_year, iso_week, _ = day.isocalendar()
    return f"{iso_year}-W{iso_week:02d}"


def period_label(key: str, period: str) -> str:
    if period == MONTH:
        return date.fromisoformat(f"{key}-01").strftime("%B %Y")
    year, week = key.split("-W")
    monday = date.fromisocalendar(int(year), int(week), 1)
    sunday = date.fromisocalendar(int(year), int(week), 7)
    return (
        f"Week {int(week)}, {year} "
        f"({monday.strftime('%b %d')} - {sunday.strftime('%b %d')})"
    )


def leave_frequency(
    requests: Iterable[LeaveRequest],
    members: Iterable[Member],
    period: str = MONTH,
    year: Optional[int] = None,
) -> List[PeriodFrequency]:
    """
    Tally approved ordinary leave by period.

    Each day of a request adds a working day to its period when the member
    works that day. A request counts once in every period it touches.
    Parental leave is left out. With ``year`` set, requests are clipped to
    that year and only periods belonging to it are returned.

    Args:
        requests: Leave requests; non-approved ones are ignored
        members: Team members, used to decide which days are working days
        period: ``month`` or ``week``
        year: Optional year to restrict the tally to

    Returns:
        PeriodFrequency rows sorted by period key

    Raises:
        ValueError: If period is not ``month`` or ``week``
    """
    if period not in PERIODS:
        raise ValueError(f"Period must be one of {', '.join(PERIODS)}, got '{period}'")

    by_id = {m.member_id: m for m in members}
    days_used: Dict[str, int] = defaultdict(int)
    request_counts: Dict[str, int] = defaultdict(int)

    for request in ordinary_requests(requests):
        member = by_id.get(request.member_id)
        if member is None:
            logger.warning(
                "Skipping request for unknown member %s in frequency tally",
                request.member_id,
            )
            continue

        start, end = request.start_date, request.end_date
        if year is not None:
            window = request.overlap(*year_bounds(year))
            if window is None:
                continue
            start, end = window

        touched = set()
        try:
            worked = [(day, member_works_on(member, day)) for day in iter_dates(start, end)]
        except InvalidScheduleError as e:
            logger.warning("Skipping request for member %s: %s", request.member_id, e)
            continue

        for day, works in worked:
            key = period_key(day, period)
            touched.add(key)
            if works:
                days_used[key] += 1
        for key in touched:
            request_counts[key] += 1

    keys = set(days_used) | set(request_counts)
    if year is not None:
        # ISO weeks at the year edges can belong to the neighbouring year.
        keys = {k for k in keys if k.startswith(f"{year}-")}

    return [
        PeriodFrequency(
            period_key=key,
            label=period_label(key, period),
            working_days_used=days_used.get(key, 0),
            request_count=request_counts.get(key, 0),
        )
        for key in sorted(keys)
    ]
