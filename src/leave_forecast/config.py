"""
Configuration loader for parsing a YAML team snapshot.
"""

import logging
import yaml
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple
from datetime import date, datetime, timedelta

from .models import (
    APPROVED,
    FIXED,
    ROTATING,
    CarryoverPolicy,
    LeaveRequest,
    Member,
    NoticeBypass,
    ParentalLeavePolicy,
    ShiftPeriod,
    ShiftSchedule,
    TeamPolicy,
    TeamSnapshot,
)

logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Custom exception for configuration errors."""

    pass


class InvalidDateFormatError(ConfigurationError):
    """Raised when a date is not in ISO 8601 format (YYYY-MM-DD)."""

    pass


class ConfigLoader:
    """Loads and validates a team snapshot from YAML files."""

    # Class-level constants
    DAY_NAME_TO_INDEX = {
        "monday": 0,
        "tuesday": 1,
        "wednesday": 2,
        "thursday": 3,
        "friday": 4,
        "saturday": 5,
        "sunday": 6,
    }

    def __init__(self, config_path: str | Path):
        """
        Initialize the ConfigLoader with a snapshot file path.

        Args:
            config_path: Path to the YAML snapshot file

        Raises:
            FileNotFoundError: If the file doesn't exist
        """
        self.config_path = Path(config_path)

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        self._raw_config: Dict[str, Any] | None = None
        self._config: TeamSnapshot | None = None

    def load(self) -> TeamSnapshot:
        """
        Load and parse the snapshot file.

        Returns:
            TeamSnapshot with policy, members and requests

        Raises:
            InvalidDateFormatError: If dates are not in ISO 8601 format
            ConfigurationError: If the snapshot is invalid
        """
        with open(self.config_path, "r") as f:
            self._raw_config = yaml.safe_load(f) or {}

        if not isinstance(self._raw_config, dict):
            raise ConfigurationError(
                f"Snapshot must be a mapping at the top level, got {type(self._raw_config).__name__}"
            )

        self._config = self._parse_config()
        self._validate()

        return self._config

    def reload(self) -> TeamSnapshot:
        """
        Reload the snapshot from the file.

        Useful if the file has been modified.

        Returns:
            TeamSnapshot with policy, members and requests
        """
        return self.load()

    @property
    def config(self) -> TeamSnapshot:
        """
        Get the loaded snapshot.

        Raises:
            RuntimeError: If load() hasn't been called yet
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    @property
    def raw_config(self) -> Dict[str, Any]:
        """
        Get the raw configuration dictionary.

        Raises:
            RuntimeError: If load() hasn't been called yet
        """
        if self._raw_config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._raw_config

    def _parse_config(self) -> TeamSnapshot:
        """Parse raw YAML data into a TeamSnapshot."""
        raw = self._raw_config

        team = raw.get("team", {}) or {}
        team_name = team.get("name", "Team")

        policy = self._parse_policy(raw.get("policy", {}) or {})
        members = self._parse_members(raw.get("members", []) or [])
        requests = self._parse_requests(raw.get("requests", []) or [])

        return TeamSnapshot(
            team_name=team_name, policy=policy, members=members, requests=requests
        )

    def _parse_date(self, value: Any, field_name: str, required: bool = True) -> Optional[date]:
        """Check that YAML produced a date; PyYAML parses ISO dates natively."""
        if value is None and not required:
            return None
        if isinstance(value, datetime):
            return value.date()
        if not isinstance(value, date):
            raise InvalidDateFormatError(
                f"{field_name} must be in ISO 8601 format (YYYY-MM-DD), got: {value}. "
                f"Example: 2026-01-15"
            )
        return value

    def _parse_policy(self, policy_raw: Dict[str, Any]) -> TeamPolicy:
        """Parse the team policy section."""
        if "max_leave_per_year" not in policy_raw:
            raise ConfigurationError("policy.max_leave_per_year is required")

        carryover = self._parse_carryover(policy_raw.get("carryover", {}) or {})

        subgrouping = policy_raw.get("subgrouping", {}) or {}
        notice = policy_raw.get("notice", {}) or {}

        bypass = None
        bypass_raw = notice.get("bypass")
        if bypass_raw:
            bypass = NoticeBypass(
                start=self._parse_date(bypass_raw.get("start"), "Notice bypass start"),
                end=self._parse_date(bypass_raw.get("end"), "Notice bypass end"),
                enabled=bool(bypass_raw.get("enabled", True)),
            )

        try:
            return TeamPolicy(
                max_leave_per_year=policy_raw["max_leave_per_year"],
                concurrent_leave_limit=policy_raw.get("concurrent_leave_limit"),
                carryover=carryover,
                maternity_leave=self._parse_parental_policy(
                    policy_raw.get("maternity_leave", {}) or {}
                ),
                paternity_leave=self._parse_parental_policy(
                    policy_raw.get("paternity_leave", {}) or {}
                ),
                enable_subgrouping=bool(subgrouping.get("enabled", False)),
                subgroups=list(subgrouping.get("subgroups", []) or []),
                minimum_notice_days=notice.get("minimum_days", 0),
                notice_bypass=bypass,
                working_days_group_names=dict(
                    policy_raw.get("working_days_group_names", {}) or {}
                ),
            )
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid policy: {e}") from e

    def _parse_carryover(self, carryover_raw: Dict[str, Any]) -> CarryoverPolicy:
        """Parse carryover settings; months are 1 (January) to 12 (December)."""
        try:
            return CarryoverPolicy(
                allowed=bool(carryover_raw.get("allowed", False)),
                cap=carryover_raw.get("cap"),
                eligible_months=list(carryover_raw.get("eligible_months", []) or []),
                expiry_date=self._parse_date(
                    carryover_raw.get("expiry_date"), "Carryover expiry_date", required=False
                ),
            )
        except (ValueError, TypeError) as e:
            raise ConfigurationError(f"Invalid carryover policy: {e}") from e

    def _parse_parental_policy(self, parental_raw: Dict[str, Any]) -> ParentalLeavePolicy:
        """Parse a maternity or paternity leave pool."""
        try:
            return ParentalLeavePolicy(
                enabled=bool(parental_raw.get("enabled", False)),
                max_days=parental_raw.get("max_days", 90),
                counting_method=parental_raw.get("counting_method", "working"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid parental leave policy: {e}") from e

    def _parse_schedule(self, schedule_raw: Dict[str, Any], owner: str) -> ShiftSchedule:
        """
        Parse a shift schedule.

        Fixed schedules may list ``working_days`` by name or give a 7-entry
        ``pattern``. Rotating schedules give a ``pattern`` and ``anchor_date``.
        """
        if schedule_raw is None:
            return ShiftSchedule.weekdays()

        kind = schedule_raw.get("kind", FIXED)
        if kind not in (FIXED, ROTATING):
            raise ConfigurationError(
                f"Invalid schedule kind for {owner}: '{kind}'. Valid kinds: {FIXED}, {ROTATING}"
            )

        if "working_days" in schedule_raw:
            if kind != FIXED:
                raise ConfigurationError(
                    f"working_days can only be used with fixed schedules ({owner})"
                )
            pattern = [False] * 7
            for day_name in schedule_raw["working_days"] or []:
                day_index = self.DAY_NAME_TO_INDEX.get(str(day_name).lower())
                if day_index is None:
                    raise ConfigurationError(
                        f"Invalid day name: '{day_name}'. "
                        f"Valid names: {', '.join(self.DAY_NAME_TO_INDEX.keys())}"
                    )
                pattern[day_index] = True
        else:
            pattern = [bool(flag) for flag in schedule_raw.get("pattern", []) or []]

        anchor = self._parse_date(
            schedule_raw.get("anchor_date"), f"Schedule anchor_date for {owner}", required=False
        )
        return ShiftSchedule(kind=kind, pattern=pattern, anchor_date=anchor)

    def _parse_members(self, members_raw: List[Dict[str, Any]]) -> List[Member]:
        """Parse team members."""
        members = []

        for member_data in members_raw:
            member_id = member_data.get("id")
            if member_id is None:
                raise ConfigurationError(f"Member entry has no id: {member_data}")
            member_id = str(member_id)

            schedule = self._parse_schedule(member_data.get("schedule"), member_id)
            history = self._parse_shift_history(
                member_data.get("shift_history", []) or [], member_id
            )

            overrides = member_data.get("overrides", {}) or {}
            parental = member_data.get("parental", {}) or {}

            try:
                members.append(
                    Member(
                        member_id=member_id,
                        name=member_data.get("name", ""),
                        shift_schedule=schedule,
                        shift_history=history,
                        shift_tag=member_data.get("shift_tag", "unassigned"),
                        subgroup_tag=member_data.get("subgroup"),
                        manual_balance=overrides.get("balance"),
                        manual_year_to_date_used=overrides.get("year_to_date_used"),
                        manual_year_to_date_used_year=overrides.get("year_to_date_used_year"),
                        parental_leave_type=parental.get("type", "none"),
                        manual_parental_balance=parental.get("balance"),
                        manual_parental_year_to_date_used=parental.get("year_to_date_used"),
                    )
                )
            except ValueError as e:
                raise ConfigurationError(f"Invalid member '{member_id}': {e}") from e

        return members

    def _parse_shift_history(
        self, history_raw: List[Dict[str, Any]], member_id: str
    ) -> List[ShiftPeriod]:
        """Parse the schedules a member worked in the past."""
        history = []

        for period_data in history_raw:
            history.append(
                ShiftPeriod(
                    schedule=self._parse_schedule(period_data.get("schedule"), member_id),
                    start=self._parse_date(
                        period_data.get("start"), f"Shift history start for {member_id}"
                    ),
                    end=self._parse_date(
                        period_data.get("end"), f"Shift history end for {member_id}"
                    ),
                )
            )

        return history

    def _parse_requests(self, requests_raw: List[Dict[str, Any]]) -> List[LeaveRequest]:
        """Parse leave requests."""
        requests = []

        for request_data in requests_raw:
            member_id = str(request_data.get("member"))
            created_at = request_data.get("created_at")
            if created_at is not None and not isinstance(created_at, (date, datetime)):
                raise InvalidDateFormatError(
                    f"Request created_at for {member_id} must be an ISO 8601 timestamp, "
                    f"got: {created_at}"
                )
            if isinstance(created_at, date) and not isinstance(created_at, datetime):
                created_at = datetime(created_at.year, created_at.month, created_at.day)

            date_range = self._parse_request_range(request_data, member_id)
            if date_range is None:
                continue
            start_date, end_date = date_range

            try:
                requests.append(
                    LeaveRequest(
                        member_id=member_id,
                        start_date=start_date,
                        end_date=end_date,
                        reason=request_data.get("reason", "") or "",
                        status=request_data.get("status", "pending"),
                        created_at=created_at,
                        category=request_data.get("category"),
                        request_id=request_data.get("id"),
                    )
                )
            except ValueError as e:
                raise ConfigurationError(f"Invalid leave request for '{member_id}': {e}") from e

        return requests

    def _parse_request_range(
        self, request_data: Dict[str, Any], member_id: str
    ) -> Optional[Tuple[date, date]]:
        """
        Parse a request's dates, tolerating a missing end point.

        A request with only one date becomes an empty (inverted) range on that
        date so it loads but counts as 0 days. A request with neither date
        cannot be placed and is skipped. Both cases log a warning.
        """
        start = self._parse_date(
            request_data.get("start"), f"Leave start date for {member_id}", required=False
        )
        end = self._parse_date(
            request_data.get("end"), f"Leave end date for {member_id}", required=False
        )

        if start is None and end is None:
            logger.warning("Skipping leave request for %s with no dates", member_id)
            return None
        if start is None or end is None:
            logger.warning(
                "Leave request for %s is missing its %s date; it counts as 0 days",
                member_id,
                "start" if start is None else "end",
            )
            if start is None:
                return end + timedelta(days=1), end
            return start, start - timedelta(days=1)

        return start, end

    def _validate(self) -> None:
        """
        Validate that the snapshot is internally consistent.

        Raises:
            ConfigurationError: If the snapshot has issues
        """
        config = self._config

        # Member ids must be unique
        seen = set()
        for member in config.members:
            if member.member_id in seen:
                raise ConfigurationError(f"Duplicate member id: '{member.member_id}'")
            seen.add(member.member_id)

        # Every request must belong to a known member
        for request in config.requests:
            if request.member_id not in seen:
                raise ConfigurationError(
                    f"Leave request references undefined member '{request.member_id}'. "
                    f"Defined members: {', '.join(config.member_ids)}"
                )

        # Subgroup tags should be ones the policy defines
        if config.policy.enable_subgrouping and config.policy.subgroups:
            for member in config.members:
                if member.subgroup_tag and member.subgroup_tag not in config.policy.subgroups:
                    raise ConfigurationError(
                        f"Member '{member.member_id}' is in undefined subgroup "
                        f"'{member.subgroup_tag}'. "
                        f"Defined subgroups: {', '.join(config.policy.subgroups)}"
                    )

        self._check_request_dates()

    def _check_request_dates(self) -> None:
        """Warn about requests whose end date is before their start date."""
        for request in self._config.requests:
            if request.end_date < request.start_date:
                logger.warning(
                    "Leave request for %s ends (%s) before it starts (%s); it counts as 0 days",
                    request.member_id,
                    request.end_date,
                    request.start_date,
                )

    def get_summary(self) -> str:
        """
        Get a summary of the loaded snapshot.

        Returns:
            Human-readable summary string

        Raises:
            RuntimeError: If load() hasn't been called yet
        """
        config = self.config
        policy = config.policy

        limit = policy.concurrent_leave_limit if policy.has_concurrency_limit else "none"
        carryover = "enabled" if policy.allow_carryover else "disabled"
        if policy.allow_carryover and policy.carryover.cap is not None:
            carryover += f" (cap {policy.carryover.cap:g} days)"

        lines = [
            f"Configuration from: {self.config_path}",
            f"Team: {config.team_name}",
            f"Leave per year: {policy.max_leave_per_year:g} days",
            f"Concurrent leave limit: {limit}",
            f"Carryover: {carryover}",
            f"Members: {len(config.members)}",
        ]

        for member in config.members:
            approved = len(config.requests_for(member.member_id, APPROVED))
            lines.append(
                f"  - {member.display_name} ({member.shift_tag}): {approved} approved requests"
            )

        lines.append(f"Total Requests: {len(config.requests)}")

        return "\n".join(lines)
