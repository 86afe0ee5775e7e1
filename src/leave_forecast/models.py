"""
Data models for the leave analytics engine.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional

FIXED = "fixed"
ROTATING = "rotating"
SCHEDULE_KINDS = (FIXED, ROTATING)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
REQUEST_STATUSES = (PENDING, APPROVED, REJECTED)

SHIFT_TAGS = ("day", "night", "mixed", "unassigned")

MATERNITY = "maternity"
PATERNITY = "paternity"
NO_PARENTAL_LEAVE = "none"
PARENTAL_LEAVE_TYPES = (MATERNITY, PATERNITY, NO_PARENTAL_LEAVE)

WORKING_DAYS = "working"
CALENDAR_DAYS = "calendar"
COUNTING_METHODS = (WORKING_DAYS, CALENDAR_DAYS)

UNGROUPED = "Ungrouped"


@dataclass
class ShiftSchedule:
    """A member's working pattern.

    Fixed schedules hold 7 flags indexed Monday=0 .. Sunday=6. Rotating
    schedules hold a cycle of any length whose offset 0 falls on
    ``anchor_date``. Validation happens when the schedule is evaluated so
    that one bad record cannot stop a snapshot from loading.
    """

    kind: str
    pattern: List[bool]
    anchor_date: Optional[date] = None

    @classmethod
    def weekdays(cls) -> "ShiftSchedule":
        """Monday to Friday, the schedule assumed for members without one."""
        return cls(kind=FIXED, pattern=[True] * 5 + [False] * 2)


@dataclass
class ShiftPeriod:
    """A schedule that was in force between two dates (inclusive)."""

    schedule: ShiftSchedule
    start: date
    end: date

    def contains(self, check_date: date) -> bool:
        return self.start <= check_date <= self.end


@dataclass
class LeaveRequest:
    """A leave request as read from the snapshot.

    ``end_date`` before ``start_date`` is tolerated and treated as a request
    covering no days, since historical records are not always clean.
    """

    member_id: str
    start_date: date
    end_date: date
    reason: str = ""
    status: str = PENDING
    created_at: Optional[datetime] = None
    category: Optional[str] = None  # Explicit tag; wins over the reason text
    request_id: Optional[str] = None

    def __post_init__(self):
        if self.status not in REQUEST_STATUSES:
            raise ValueError(
                f"Status must be one of {', '.join(REQUEST_STATUSES)}, got '{self.status}'"
            )

    @property
    def is_approved(self) -> bool:
        return self.status == APPROVED

    @property
    def duration_days(self) -> int:
        """Calendar days covered, inclusive; 0 for an inverted range."""
        return max(0, (self.end_date - self.start_date).days + 1)

    def contains(self, check_date: date) -> bool:
        """Check if a date falls within this request (inclusive)."""
        return self.start_date <= check_date <= self.end_date

    def overlap(self, start: date, end: date) -> Optional[tuple[date, date]]:
        """Return the part of this request inside ``start``..``end``, if any."""
        lo = max(self.start_date, start)
        hi = min(self.end_date, end)
        if hi < lo:
            return None
        return lo, hi


@dataclass
class Member:
    """A team member and the leader-set overrides that apply to them."""

    member_id: str
    name: str = ""
    shift_schedule: ShiftSchedule = field(default_factory=ShiftSchedule.weekdays)
    shift_history: List[ShiftPeriod] = field(default_factory=list)
    shift_tag: str = "unassigned"
    subgroup_tag: Optional[str] = None
    manual_balance: Optional[float] = None
    manual_year_to_date_used: Optional[float] = None
    manual_year_to_date_used_year: Optional[int] = None
    parental_leave_type: str = NO_PARENTAL_LEAVE
    manual_parental_balance: Optional[float] = None
    manual_parental_year_to_date_used: Optional[float] = None

    def __post_init__(self):
        if self.shift_tag not in SHIFT_TAGS:
            raise ValueError(
                f"Shift tag must be one of {', '.join(SHIFT_TAGS)}, got '{self.shift_tag}'"
            )
        if self.parental_leave_type not in PARENTAL_LEAVE_TYPES:
            raise ValueError(
                f"Parental leave type must be one of {', '.join(PARENTAL_LEAVE_TYPES)}, "
                f"got '{self.parental_leave_type}'"
            )

    @property
    def display_name(self) -> str:
        return self.name or self.member_id

    def schedule_on(self, check_date: date) -> ShiftSchedule:
        """The schedule in force on a date, preferring recorded history."""
        for period in self.shift_history:
            if period.contains(check_date):
                return period.schedule
        return self.shift_schedule

    @property
    def working_days_fingerprint(self) -> str:
        """Key for the days this member currently works; see shift_calendar."""
        from .shift_calendar import working_days_fingerprint

        return working_days_fingerprint(self.shift_schedule)

    def subgroup_or_default(self) -> str:
        return self.subgroup_tag or UNGROUPED

    def ordinary_override(self, year: int) -> Optional["BalanceOverride"]:
        """Overrides for the ordinary pool that apply to ``year``."""
        ytd = self.manual_year_to_date_used
        # Unstamped values predate year tracking and apply to any year.
        if ytd is not None and self.manual_year_to_date_used_year not in (None, year):
            ytd = None
        if self.manual_balance is None and ytd is None:
            return None
        return BalanceOverride(balance=self.manual_balance, year_to_date_used=ytd)

    def parental_override(self) -> Optional["BalanceOverride"]:
        if (
            self.manual_parental_balance is None
            and self.manual_parental_year_to_date_used is None
        ):
            return None
        return BalanceOverride(
            balance=self.manual_parental_balance,
            year_to_date_used=self.manual_parental_year_to_date_used,
        )


@dataclass(frozen=True)
class BalanceOverride:
    """Leader-entered figures that replace computed values for one pool."""

    balance: Optional[float] = None
    year_to_date_used: Optional[float] = None


@dataclass
class CarryoverPolicy:
    """How unused ordinary leave rolls into the following year."""

    allowed: bool = False
    cap: Optional[float] = None
    eligible_months: List[int] = field(default_factory=list)  # 1=Jan .. 12=Dec
    expiry_date: Optional[date] = None

    def __post_init__(self):
        if self.cap is not None and self.cap < 0:
            raise ValueError(f"Carryover cap cannot be negative, got {self.cap}")
        for month in self.eligible_months:
            if not 1 <= month <= 12:
                raise ValueError(
                    f"Eligible months must be between 1 and 12, got {month}"
                )


@dataclass
class ParentalLeavePolicy:
    """Separate pool for maternity or paternity leave."""

    enabled: bool = False
    max_days: float = 90
    counting_method: str = WORKING_DAYS

    def __post_init__(self):
        if self.counting_method not in COUNTING_METHODS:
            raise ValueError(
                f"Counting method must be one of {', '.join(COUNTING_METHODS)}, "
                f"got '{self.counting_method}'"
            )


@dataclass
class NoticeBypass:
    """Window during which the minimum notice period is waived."""

    start: date
    end: date
    enabled: bool = True

    def is_active(self, check_date: date) -> bool:
        return self.enabled and self.start <= check_date <= self.end


@dataclass
class TeamPolicy:
    """Per-team leave configuration."""

    max_leave_per_year: float
    concurrent_leave_limit: Optional[int] = None  # 0 or None: unconstrained
    carryover: CarryoverPolicy = field(default_factory=CarryoverPolicy)
    maternity_leave: ParentalLeavePolicy = field(default_factory=ParentalLeavePolicy)
    paternity_leave: ParentalLeavePolicy = field(default_factory=ParentalLeavePolicy)
    enable_subgrouping: bool = False
    subgroups: List[str] = field(default_factory=list)
    minimum_notice_days: int = 0
    notice_bypass: Optional[NoticeBypass] = None
    working_days_group_names: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if self.max_leave_per_year < 0:
            raise ValueError(
                f"Max leave per year cannot be negative, got {self.max_leave_per_year}"
            )
        if self.concurrent_leave_limit is not None and self.concurrent_leave_limit < 0:
            raise ValueError(
                f"Concurrent leave limit cannot be negative, got {self.concurrent_leave_limit}"
            )
        if self.minimum_notice_days < 0:
            raise ValueError(
                f"Minimum notice days cannot be negative, got {self.minimum_notice_days}"
            )

    @property
    def has_concurrency_limit(self) -> bool:
        return bool(self.concurrent_leave_limit)

    def parental_policy(self, leave_type: str) -> ParentalLeavePolicy:
        if leave_type == MATERNITY:
            return self.maternity_leave
        if leave_type == PATERNITY:
            return self.paternity_leave
        raise ValueError(f"No parental leave policy for type '{leave_type}'")

    @property
    def allow_carryover(self) -> bool:
        return self.carryover.allowed


@dataclass
class TeamSnapshot:
    """Everything the engine reads for one analytics run."""

    team_name: str
    policy: TeamPolicy
    members: List[Member]
    requests: List[LeaveRequest] = field(default_factory=list)

    @property
    def member_ids(self) -> List[str]:
        return [m.member_id for m in self.members]

    def get_member(self, member_id: str) -> Member:
        for member in self.members:
            if member.member_id == member_id:
                return member
        raise KeyError(f"Member '{member_id}' not found")

    def requests_for(
        self, member_id: str, status: Optional[str] = None
    ) -> List[LeaveRequest]:
        return [
            r
            for r in self.requests
            if r.member_id == member_id and (status is None or r.status == status)
        ]


# ---------------------------------------------------------------------------
# Computed results. Built fresh per run and never mutated.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GroupKey:
    """Members who share a key compete for the same concurrent-leave slots."""

    fingerprint: str
    shift_tag: str
    subgroup_tag: Optional[str] = None

    @property
    def label(self) -> str:
        parts = [self.subgroup_tag or "All", self.shift_tag, self.fingerprint]
        return "_".join(parts)


@dataclass(frozen=True)
class ParentalAnalytics:
    leave_type: str
    counting_method: str
    base_balance: float
    remaining_balance: float
    surplus_balance: float
    days_used: float


@dataclass(frozen=True)
class MemberAnalytics:
    """Projection for one member in one analytics run."""

    member_id: str
    group_key: GroupKey
    base_balance: float
    remaining_balance: float
    surplus_balance: float
    working_days_used_this_year: float
    working_days_in_year: int
    theoretical_working_days_remaining: int
    usable_days: int
    realistic_usable_days: float
    members_sharing_same_shift: int
    average_days_per_member: float
    will_carryover: float
    will_lose: float
    realistic_carryover_usable_days: float
    has_partial_competition: bool
    partial_overlap_members_count: int
    partial_overlap_members_with_balance: int
    parental: Optional[ParentalAnalytics] = None


@dataclass(frozen=True)
class GroupAggregate:
    total_members: int = 0
    usable_days: int = 0
    total_realistic_usable_days: float = 0.0
    remainder_days: float = 0.0
    total_remaining_balance: float = 0.0
    average_remaining_balance: float = 0.0
    average_realistic_usable_days: float = 0.0
    total_will_carryover: float = 0.0
    total_will_lose: float = 0.0
    at_risk_count: int = 0


@dataclass(frozen=True)
class TeamAggregate:
    members_count: int = 0
    total_theoretical_working_days: int = 0
    total_usable_days: int = 0
    total_realistic_usable_days: float = 0.0
    total_remainder_days: float = 0.0
    total_remaining_balance: float = 0.0
    total_surplus_balance: float = 0.0
    total_will_carryover: float = 0.0
    total_will_lose: float = 0.0
    average_remaining_balance: float = 0.0
    average_days_per_member_across_team: float = 0.0
    at_risk_count: int = 0


@dataclass(frozen=True)
class GroupAnalytics:
    key: GroupKey
    members: List[MemberAnalytics]
    usable_days: int
    remainder_days: float
    aggregate: GroupAggregate


@dataclass(frozen=True)
class MemberFailure:
    """A member left out of a team run, with the reason."""

    member_id: str
    error: str


@dataclass(frozen=True)
class GroupedTeamAnalytics:
    aggregate: TeamAggregate
    groups: Dict[GroupKey, GroupAnalytics]
    failures: List[MemberFailure] = field(default_factory=list)

    @property
    def members(self) -> List[MemberAnalytics]:
        return [m for group in self.groups.values() for m in group.members]

    def get_member(self, member_id: str) -> MemberAnalytics:
        for analytics in self.members:
            if analytics.member_id == member_id:
                return analytics
        raise KeyError(f"Member '{member_id}' not found in results")

    @property
    def is_complete(self) -> bool:
        return not self.failures
