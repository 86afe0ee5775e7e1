"""
Leave Forecast - Leave balance and shared-capacity analytics for shift teams.
"""

__version__ = "0.1.0"

from .analytics import LeaveAnalyticsEngine
from .capacity import InvariantViolation, allocate_fair_share
from .config import ConfigLoader, ConfigurationError, InvalidDateFormatError
from .models import (
    CarryoverPolicy,
    GroupedTeamAnalytics,
    LeaveRequest,
    Member,
    MemberAnalytics,
    ParentalAnalytics,
    ShiftSchedule,
    TeamPolicy,
    TeamSnapshot,
)
from .reporter import AnalyticsReporter
from .shift_calendar import InvalidScheduleError

__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "InvalidDateFormatError",
    "InvalidScheduleError",
    "InvariantViolation",
    "ShiftSchedule",
    "Member",
    "LeaveRequest",
    "CarryoverPolicy",
    "TeamPolicy",
    "TeamSnapshot",
    "MemberAnalytics",
    "ParentalAnalytics",
    "GroupedTeamAnalytics",
    "LeaveAnalyticsEngine",
    "allocate_fair_share",
    "AnalyticsReporter",
]
