"""
Shift calendar: which dates are working days for a schedule or member.
"""

from datetime import date, timedelta
from typing import Iterator, List, Union

from .models import FIXED, ROTATING, Member, ShiftSchedule

DAY_LETTERS = "MTWTFSS"

# Rotating fingerprints are phased to this Monday so they do not drift with "today".
FINGERPRINT_EPOCH = date(2000, 1, 3)

ScheduleSource = Union[ShiftSchedule, Member]


class InvalidScheduleError(ValueError):
    """Raised when a shift schedule cannot be evaluated."""

    pass


def validate_schedule(schedule: ShiftSchedule) -> None:
    """
    Check that a schedule can be evaluated.

    Raises:
        InvalidScheduleError: If the pattern is empty, the kind is unknown, or
            a rotating schedule has no anchor date
    """
    if not schedule.pattern:
        raise InvalidScheduleError("Shift pattern is empty")
    if schedule.kind not in (FIXED, ROTATING):
        raise InvalidScheduleError(f"Unknown schedule kind: '{schedule.kind}'")
    if schedule.kind == ROTATING and schedule.anchor_date is None:
        raise InvalidScheduleError("Rotating schedule has no anchor date")


def validate_member(member: Member) -> None:
    """Validate every schedule a member has worked, current and historical."""
    validate_schedule(member.shift_schedule)
    for period in member.shift_history:
        validate_schedule(period.schedule)


def is_working_day(schedule: ShiftSchedule, check_date: date) -> bool:
    """Check if a date is a working day under a schedule."""
    validate_schedule(schedule)

    if schedule.kind == FIXED:
        index = check_date.weekday()
    else:
        # Python's modulo is non-negative, so dates before the anchor work too.
        index = (check_date - schedule.anchor_date).days % len(schedule.pattern)

    # Short fixed patterns: missing trailing days are off days.
    return index < len(schedule.pattern) and bool(schedule.pattern[index])


def member_works_on(member: Member, check_date: date) -> bool:
    """Check if a member works on a date, honouring their shift history."""
    return is_working_day(member.schedule_on(check_date), check_date)


def _works(source: ScheduleSource, check_date: date) -> bool:
    if isinstance(source, Member):
        return member_works_on(source, check_date)
    return is_working_day(source, check_date)


def iter_dates(start: date, end: date) -> Iterator[date]:
    """Yield every date from start to end inclusive; nothing if end < start."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def working_days_between(source: ScheduleSource, start: date, end: date) -> List[date]:
    """All working dates in an inclusive range."""
    return [d for d in iter_dates(start, end) if _works(source, d)]


def count_working_days(source: ScheduleSource, start: date, end: date) -> int:
    """
    Count working days in an inclusive date range.

    Args:
        source: A schedule, or a member (to use their shift history)
        start: First date of the range
        end: Last date of the range

    Returns:
        Number of working days; 0 when end is before start
    """
    return sum(1 for d in iter_dates(start, end) if _works(source, d))


def count_calendar_days(start: date, end: date) -> int:
    """Inclusive span in days; 0 when end is before start."""
    return max(0, (end - start).days + 1)


def working_days_fingerprint(schedule: ShiftSchedule) -> str:
    """
    Build a stable key for the days a schedule works.

    Fixed schedules map to a weekday mask such as ``MTWTF__``. Rotating
    schedules map to ``R:`` followed by their shortest repeating cycle,
    phased to a fixed epoch, so two rotating schedules share a fingerprint
    exactly when they work the same calendar days.

    Raises:
        InvalidScheduleError: If the schedule cannot be evaluated
    """
    validate_schedule(schedule)

    if schedule.kind == FIXED:
        # FINGERPRINT_EPOCH is a Monday, so offset i is weekday i.
        week = [FINGERPRINT_EPOCH + timedelta(days=i) for i in range(7)]
        return "".join(
            DAY_LETTERS[i] if is_working_day(schedule, day) else "_"
            for i, day in enumerate(week)
        )

    length = len(schedule.pattern)
    bits = [
        is_working_day(schedule, FINGERPRINT_EPOCH + timedelta(days=i))
        for i in range(length)
    ]
    period = _shortest_period(bits)
    return "R:" + "".join("1" if b else "0" for b in bits[:period])


def _shortest_period(bits: List[bool]) -> int:
    length = len(bits)
    for period in range(1, length + 1):
        if length % period == 0 and bits == bits[:period] * (length // period):
            return period
    return length


def schedules_overlap(
    first: ScheduleSource, second: ScheduleSource, start: date, days: int
) -> bool:
    """Check whether two schedules share at least one working day in a window."""
    for offset in range(days):
        check_date = start + timedelta(days=offset)
        if _works(first, check_date) and _works(second, check_date):
            return True
    return False
