"""
Export strategies for leave analytics.

This module implements the Strategy Pattern for exporting analytics results
to various formats. Each exporter encapsulates a specific output format.
"""

import csv
from abc import ABC, abstractmethod

from .aggregator import is_at_risk
from .models import GroupedTeamAnalytics, TeamSnapshot


class ExportStrategy(ABC):
    """Abstract base class for analytics export strategies.

    Subclasses implement specific export formats.
    Common helper methods for data transformation are provided here.
    """

    def __init__(self, result: GroupedTeamAnalytics, snapshot: TeamSnapshot):
        """Initialize the export strategy.

        Args:
            result: The team analytics to export
            snapshot: The snapshot the analytics were computed from
        """
        self.result = result
        self.snapshot = snapshot

    @abstractmethod
    def export(self, filepath: str) -> None:
        """Export analytics to the specified file.

        Args:
            filepath: Path to the output file
        """
        pass

    def _write_rows(self, filepath: str, fieldnames: list[str], rows: list[dict]) -> None:
        """Write rows with a header; the header is written even with no rows."""
        with open(filepath, "w", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            writer.writerows(rows)

    def _group_label(self, key) -> str:
        names = self.snapshot.policy.working_days_group_names
        return names.get(key.fingerprint, key.label)


class MemberCSVExporter(ExportStrategy):
    """Exports one row per analysed member.

    Members left out of the run are not written; they are reported by the
    reporter instead.
    """

    FIELDNAMES = [
        "Member_ID",
        "Name",
        "Group",
        "Shift_Tag",
        "Subgroup",
        "Base_Balance",
        "Remaining_Balance",
        "Surplus_Balance",
        "Days_Used",
        "Theoretical_Days_Remaining",
        "Usable_Days",
        "Realistic_Usable_Days",
        "Members_Sharing",
        "Average_Days_Per_Member",
        "Will_Carryover",
        "Will_Lose",
        "Carryover_Usable_Days",
        "Partial_Overlap_Members",
        "At_Risk",
    ]

    def export(self, filepath: str) -> None:
        """Export member analytics to a CSV file.

        Args:
            filepath: Path to the output CSV file
        """
        max_per_year = self.snapshot.policy.max_leave_per_year
        rows: list[dict] = []

        for analytics in self.result.members:
            member = self.snapshot.get_member(analytics.member_id)
            rows.append(
                {
                    "Member_ID": analytics.member_id,
                    "Name": member.display_name,
                    "Group": self._group_label(analytics.group_key),
                    "Shift_Tag": analytics.group_key.shift_tag,
                    "Subgroup": analytics.group_key.subgroup_tag or "",
                    "Base_Balance": f"{analytics.base_balance:.2f}",
                    "Remaining_Balance": f"{analytics.remaining_balance:.2f}",
                    "Surplus_Balance": f"{analytics.surplus_balance:.2f}",
                    "Days_Used": f"{analytics.working_days_used_this_year:.2f}",
                    "Theoretical_Days_Remaining": analytics.theoretical_working_days_remaining,
                    "Usable_Days": analytics.usable_days,
                    "Realistic_Usable_Days": f"{analytics.realistic_usable_days:.2f}",
                    "Members_Sharing": analytics.members_sharing_same_shift,
                    "Average_Days_Per_Member": f"{analytics.average_days_per_member:.2f}",
                    "Will_Carryover": f"{analytics.will_carryover:.2f}",
                    "Will_Lose": f"{analytics.will_lose:.2f}",
                    "Carryover_Usable_Days": f"{analytics.realistic_carryover_usable_days:.2f}",
                    "Partial_Overlap_Members": analytics.partial_overlap_members_count,
                    "At_Risk": "yes" if is_at_risk(analytics, max_per_year) else "no",
                }
            )

        self._write_rows(filepath, self.FIELDNAMES, rows)
        print(f"\n✓ Member analytics exported to {filepath}")


class GroupCSVExporter(ExportStrategy):
    """Exports one row per sharing group."""

    FIELDNAMES = [
        "Group",
        "Fingerprint",
        "Shift_Tag",
        "Subgroup",
        "Members",
        "Usable_Days",
        "Realistic_Usable_Days",
        "Unclaimed_Days",
        "Total_Remaining_Balance",
        "Average_Remaining_Balance",
        "Will_Carryover",
        "Will_Lose",
        "At_Risk",
    ]

    def export(self, filepath: str) -> None:
        """Export group aggregates to a CSV file.

        Args:
            filepath: Path to the output CSV file
        """
        rows: list[dict] = []

        for key, group in self.result.groups.items():
            agg = group.aggregate
            rows.append(
                {
                    "Group": self._group_label(key),
                    "Fingerprint": key.fingerprint,
                    "Shift_Tag": key.shift_tag,
                    "Subgroup": key.subgroup_tag or "",
                    "Members": agg.total_members,
                    "Usable_Days": group.usable_days,
                    "Realistic_Usable_Days": f"{agg.total_realistic_usable_days:.2f}",
                    "Unclaimed_Days": f"{group.remainder_days:.2f}",
                    "Total_Remaining_Balance": f"{agg.total_remaining_balance:.2f}",
                    "Average_Remaining_Balance": f"{agg.average_remaining_balance:.2f}",
                    "Will_Carryover": f"{agg.total_will_carryover:.2f}",
                    "Will_Lose": f"{agg.total_will_lose:.2f}",
                    "At_Risk": agg.at_risk_count,
                }
            )

        self._write_rows(filepath, self.FIELDNAMES, rows)
        print(f"\n✓ Group analytics exported to {filepath}")
