"""
Reporting and output formatting for leave analytics.
"""

import pandas as pd
from typing import List, Optional

from .aggregator import is_at_risk
from .frequency import PeriodFrequency
from .models import GroupKey, GroupedTeamAnalytics, MemberAnalytics, TeamSnapshot


class AnalyticsReporter:
    """Formats and displays leave analytics."""

    def __init__(
        self,
        result: GroupedTeamAnalytics,
        snapshot: TeamSnapshot,
        frequency: Optional[List[PeriodFrequency]] = None,
    ):
        self.result = result
        self.snapshot = snapshot
        self.frequency = frequency

    def print_report(self, quiet: bool) -> None:
        """Print complete analytics report."""
        self._print_header()
        self._print_team_summary()

        if not quiet:
            self._print_group_summary()
            self._print_member_summary()
            self._print_parental_summary()
            self._print_frequency()

        self._print_failures()

    def print_member(self, analytics: MemberAnalytics) -> None:
        """Print the analytics of a single member."""
        member = self.snapshot.get_member(analytics.member_id)
        self._print_title(f"MEMBER: {member.display_name}")

        rows = {
            "Group": self.group_name(analytics.group_key),
            "Base Balance": analytics.base_balance,
            "Remaining Balance": analytics.remaining_balance,
            "Surplus Balance": analytics.surplus_balance,
            "Days Used This Year": analytics.working_days_used_this_year,
            "Working Days In Year": analytics.working_days_in_year,
            "Theoretical Days Remaining": analytics.theoretical_working_days_remaining,
            "Usable Days (group)": analytics.usable_days,
            "Realistic Usable Days": analytics.realistic_usable_days,
            "Members Sharing Shift": analytics.members_sharing_same_shift,
            "Average Days Per Member": analytics.average_days_per_member,
            "Will Carry Over": analytics.will_carryover,
            "Will Lose": analytics.will_lose,
            "Usable Carryover Days": analytics.realistic_carryover_usable_days,
            "Partial Overlap Members": analytics.partial_overlap_members_count,
        }
        if analytics.parental is not None:
            rows[f"{analytics.parental.leave_type.title()} Remaining"] = (
                analytics.parental.remaining_balance
            )

        df = pd.DataFrame({"Value": pd.Series(rows, dtype=object)})
        print(df.to_string())
        print()

    def group_name(self, key: GroupKey) -> str:
        """Display name for a group, using the team's names for working-day sets."""
        names = self.snapshot.policy.working_days_group_names
        pattern = names.get(key.fingerprint, key.fingerprint)
        parts = [pattern, key.shift_tag]
        if key.subgroup_tag is not None:
            parts.insert(0, key.subgroup_tag)
        return " / ".join(parts)

    def _print_title(self, title: str) -> None:
        print("=" * 80)
        print(title)
        print("=" * 80)

    def _print_header(self) -> None:
        """Print report header."""
        self._print_title("LEAVE BALANCE AND CAPACITY ANALYTICS")

        policy = self.snapshot.policy
        print(f"\nTeam: {self.snapshot.team_name}")
        print(f"Leave per year: {policy.max_leave_per_year:g} days")
        if policy.has_concurrency_limit:
            print(f"Concurrent leave limit: {policy.concurrent_leave_limit}")
        else:
            print("Concurrent leave limit: none")
        print(f"Carryover: {'enabled' if policy.allow_carryover else 'disabled'}")
        print()

    def _print_team_summary(self) -> None:
        """Print team-wide aggregate."""
        self._print_title("TEAM SUMMARY")

        agg = self.result.aggregate
        data = {
            "Members": agg.members_count,
            "Theoretical Working Days": agg.total_theoretical_working_days,
            "Usable Days": agg.total_usable_days,
            "Realistic Usable Days": agg.total_realistic_usable_days,
            "Unclaimed Days": agg.total_remainder_days,
            "Remaining Balance": agg.total_remaining_balance,
            "Surplus Balance": agg.total_surplus_balance,
            "Will Carry Over": agg.total_will_carryover,
            "Will Lose": agg.total_will_lose,
            "Average Remaining": agg.average_remaining_balance,
            "Average Days Per Member": agg.average_days_per_member_across_team,
            "At Risk": agg.at_risk_count,
        }

        df = pd.DataFrame({"Total": pd.Series(data, dtype=object)})
        pd.options.display.float_format = "{:.2f}".format
        print(df.to_string())
        print()

    def _print_group_summary(self) -> None:
        """Print one row per sharing group."""
        self._print_title("GROUP SUMMARY")

        if not self.result.groups:
            print("\n  No groups to report")
            print()
            return

        data = []
        for key, group in self.result.groups.items():
            agg = group.aggregate
            data.append(
                {
                    "Group": self.group_name(key),
                    "Members": agg.total_members,
                    "Usable Days": group.usable_days,
                    "Realistic Total": agg.total_realistic_usable_days,
                    "Unclaimed": group.remainder_days,
                    "Avg Remaining": agg.average_remaining_balance,
                    "Will Carry Over": agg.total_will_carryover,
                    "Will Lose": agg.total_will_lose,
                    "At Risk": agg.at_risk_count,
                }
            )

        df = pd.DataFrame(data).set_index("Group")
        pd.options.display.float_format = "{:.2f}".format
        print(df.to_string())
        print()

    def _print_member_summary(self) -> None:
        """Print member analytics table."""
        self._print_title("MEMBER SUMMARY")

        if not self.result.members:
            print("\n  No members to report")
            print()
            return

        max_per_year = self.snapshot.policy.max_leave_per_year
        data = []
        for analytics in self.result.members:
            member = self.snapshot.get_member(analytics.member_id)
            data.append(
                {
                    "Member": member.display_name,
                    "Shift": member.shift_tag,
                    "Remaining": analytics.remaining_balance,
                    "Used": analytics.working_days_used_this_year,
                    "Theoretical": analytics.theoretical_working_days_remaining,
                    "Usable": analytics.usable_days,
                    "Realistic": analytics.realistic_usable_days,
                    "Sharing": analytics.members_sharing_same_shift,
                    "Carry Over": analytics.will_carryover,
                    "Will Lose": analytics.will_lose,
                    "Partial": "yes" if analytics.has_partial_competition else "",
                    "At Risk": "yes" if is_at_risk(analytics, max_per_year) else "",
                }
            )

        df = pd.DataFrame(data)
        df = df.set_index("Member")

        # Format the display
        pd.options.display.float_format = "{:.2f}".format
        print(df.to_string())
        print()

    def _print_parental_summary(self) -> None:
        """Print parental leave pools, when any member has one."""
        rows = [
            (analytics, analytics.parental)
            for analytics in self.result.members
            if analytics.parental is not None
        ]
        if not rows:
            return

        self._print_title("PARENTAL LEAVE")

        data = []
        for analytics, parental in rows:
            data.append(
                {
                    "Member": self.snapshot.get_member(analytics.member_id).display_name,
                    "Type": parental.leave_type,
                    "Counting": parental.counting_method,
                    "Base": parental.base_balance,
                    "Used": parental.days_used,
                    "Remaining": parental.remaining_balance,
                    "Surplus": parental.surplus_balance,
                }
            )

        df = pd.DataFrame(data).set_index("Member")
        pd.options.display.float_format = "{:.2f}".format
        print(df.to_string())
        print()

    def _print_frequency(self) -> None:
        """Print leave frequency by period."""
        if self.frequency is None:
            return

        self._print_title("LEAVE FREQUENCY")

        if not self.frequency:
            print("\n  No approved leave in this period")
            print()
            return

        data = [
            {
                "Period": row.label,
                "Working Days Used": row.working_days_used,
                "Requests": row.request_count,
            }
            for row in self.frequency
        ]
        df = pd.DataFrame(data).set_index("Period")
        print(df.to_string())
        print()

    def _print_failures(self) -> None:
        """Print members left out of the run."""
        if self.result.is_complete:
            return

        self._print_title("MEMBERS NOT ANALYSED")
        for failure in self.result.failures:
            print(f"  • {failure.member_id}: {failure.error}")
        print()
