"""
Main entry point for the leave analytics application.
"""

import sys
import logging
import argparse
from datetime import date

from .analytics import LeaveAnalyticsEngine
from .config import ConfigLoader, ConfigurationError, InvalidDateFormatError
from .exporters import GroupCSVExporter, MemberCSVExporter
from .frequency import PERIODS, leave_frequency
from .projection import settle_team_carryover
from .reporter import AnalyticsReporter
from .shift_calendar import InvalidScheduleError


def _parse_today(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"--today must be in ISO 8601 format (YYYY-MM-DD), got: {value}"
        )


def main():
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="leave-forecast",
        description="Project leave balances, usable days and carryover for a team",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full report as of today
  leave-forecast config/team.yaml

  # Report as of a fixed date, aggregate only
  leave-forecast config/team.yaml --today 2026-06-01 --quiet

  # One member, with monthly leave frequency
  leave-forecast config/team.yaml --member alice --frequency month

  # Export to CSV
  leave-forecast config/team.yaml --export-csv members.csv --export-groups-csv groups.csv

  # Settle carryover at the end of 2025
  leave-forecast config/team.yaml --settle-carryover 2025
        """,
    )

    parser.add_argument("config", type=str, help="Path to YAML team snapshot")
    parser.add_argument(
        "--today",
        type=_parse_today,
        default=None,
        help="Date to run the analytics as of (default: system date)",
    )
    parser.add_argument("--year", type=int, help="Year to analyse (default: year of --today)")
    parser.add_argument("--member", type=str, help="Show a single member by id")
    parser.add_argument("--export-csv", type=str, help="Export member analytics to CSV file")
    parser.add_argument(
        "--export-groups-csv", type=str, help="Export group analytics to CSV file"
    )
    parser.add_argument(
        "--frequency",
        choices=PERIODS,
        help="Include leave frequency grouped by month or ISO week",
    )
    parser.add_argument(
        "--settle-carryover",
        type=int,
        metavar="YEAR",
        help="Report the carryover each member takes out of YEAR",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress detailed output (only show team summary)",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        # Load snapshot
        print(f"Loading configuration from: {args.config}")
        loader = ConfigLoader(args.config)
        snapshot = loader.load()

        print("✓ Configuration loaded successfully")
        print(loader.get_summary())
        print()

        today = args.today or date.today()
        engine = LeaveAnalyticsEngine(snapshot, today, args.year)
        print(f"Running analytics for {engine.year} as of {today}...")

        if args.settle_carryover is not None:
            settlement = settle_team_carryover(snapshot, args.settle_carryover)
            _print_settlement(settlement)
            sys.exit(0 if not settlement.errors else 1)

        result = engine.team_analytics()
        print("✓ Analytics complete")
        print()

        frequency = None
        if args.frequency:
            frequency = leave_frequency(
                snapshot.requests, snapshot.members, args.frequency, engine.year
            )

        reporter = AnalyticsReporter(result, snapshot, frequency)

        if args.member:
            reporter.print_member(engine.member_analytics(args.member))
        else:
            reporter.print_report(args.quiet)

        if args.export_csv:
            MemberCSVExporter(result, snapshot).export(args.export_csv)
        if args.export_groups_csv:
            GroupCSVExporter(result, snapshot).export(args.export_groups_csv)

        # Exit with appropriate code
        sys.exit(0 if result.is_complete else 1)

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except InvalidDateFormatError as e:
        print(f"Date Format Error: {e}", file=sys.stderr)
        print(
            "\n Tip: Use ISO 8601 format (YYYY-MM-DD) for all dates.", file=sys.stderr
        )
        print("   Example: 2026-01-15", file=sys.stderr)
        sys.exit(1)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        sys.exit(1)

    except InvalidScheduleError as e:
        print(f"Schedule Error: {e}", file=sys.stderr)
        sys.exit(1)

    except KeyError as e:
        print(f"Error: {e.args[0] if e.args else e}", file=sys.stderr)
        sys.exit(1)

    except ValueError as e:
        print(f"Validation Error: {e}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        print(f"Unexpected Error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        sys.exit(1)


def _print_settlement(settlement) -> None:
    print("=" * 80)
    print(f"YEAR-END CARRYOVER FROM {settlement.previous_year}")
    print("=" * 80)
    for member_id, carry in settlement.results.items():
        expiry = f" (expires {carry.expiry_date})" if carry.expiry_date else ""
        print(f"  {member_id:20s} {carry.expected_carryover:6.2f} days{expiry}")
    print(
        f"\n{settlement.members_with_carryover} of {settlement.total_members} members "
        f"carry {settlement.total_carryover_days:.2f} days"
    )
    for failure in settlement.errors:
        print(f"  • {failure.member_id}: {failure.error}", file=sys.stderr)


if __name__ == "__main__":
    main()
