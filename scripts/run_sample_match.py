#!/usr/bin/env python3
"""Sample matching harness for end-to-end validation.

Seeds a SQLite database with a sample congregation, approves every pending
need of its organization, and prints who would be notified. No workflow
triggers are sent.

Usage:
    # Run with the bundled sample congregation
    python scripts/run_sample_match.py

    # Custom fixtures and database path
    python scripts/run_sample_match.py --fixtures my_members.yaml --database /tmp/engage.db
"""

import argparse
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from dotenv import load_dotenv

from engage.approval import NeedApprovalWorkflow
from engage.config.models import AppConfig
from engage.logging.config import configure_logging
from engage.matching.utils import time_preference_display
from engage.persistence import NeedRepository, close_database, get_session, init_database
from tests.helpers import seed_database


def print_header(title: str):
    """Print a formatted section header."""
    width = 80
    print("\n" + "=" * width)
    print(f" {title}")
    print("=" * width + "\n")


def print_match_table(result):
    """Print the ranked matches of one approval."""
    need = result.need
    print(f"Need: {need.title} ({need.id})")
    print(f"  Time preference: {time_preference_display(need.effective_time_preference)}")
    print(f"  Urgency: {need.urgency_class or 'normal'}")
    print(f"  Candidates scored: {result.candidate_count}")

    if not result.matches:
        print("  No matching members\n")
        return

    rows = [
        (
            match.candidate.display_name or match.candidate.id,
            ", ".join(match.matching_tags),
            str(match.availability_score),
            str(match.total_score),
        )
        for match in result.matches
    ]
    headers = ("Member", "Matching gifts", "Avail", "Total")
    widths = [max(len(h), *(len(r[i]) for r in rows)) for i, h in enumerate(headers)]

    print("  ┌" + "┬".join("─" * (w + 2) for w in widths) + "┐")
    print("  │" + "│".join(f" {h:<{w}} " for h, w in zip(headers, widths)) + "│")
    print("  ├" + "┼".join("─" * (w + 2) for w in widths) + "┤")
    for row in rows:
        print("  │" + "│".join(f" {v:<{w}} " for v, w in zip(row, widths)) + "│")
    print("  └" + "┴".join("─" * (w + 2) for w in widths) + "┘\n")


def main():
    """Main entry point for the sample matching harness."""
    parser = argparse.ArgumentParser(
        description="Approve sample needs and show their matches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--fixtures",
        type=Path,
        default=Path("tests/fixtures/sample_members.yaml"),
        help="Path to fixtures YAML file (default: tests/fixtures/sample_members.yaml)",
    )
    parser.add_argument(
        "--database",
        type=Path,
        default=Path("data/sample_match.db"),
        help="Path to SQLite database (default: data/sample_match.db)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (default: WARNING)",
    )

    args = parser.parse_args()

    load_dotenv()

    print_header("Engage Matching - Sample Harness")
    print(f"Fixtures: {args.fixtures}")
    print(f"Database: {args.database}")

    if not args.fixtures.exists():
        print(f"\n❌ Error: Fixture file not found: {args.fixtures}")
        return 1

    app_config = AppConfig()
    configure_logging(
        level=args.log_level,
        format_type=app_config.logging.format,
        environment="validation",
    )

    try:
        database_url = f"sqlite:///{args.database.absolute()}"
        init_database(database_url)

        data = seed_database(args.fixtures)
        org_id = data["organization"]
        print(f"✓ Seeded {len(data['profiles'])} profiles and {len(data['needs'])} needs")

        with get_session() as session:
            pending = NeedRepository(session).list_pending(org_id)

        print_header(f"Approving {len(pending)} pending needs for {org_id}")

        workflow = NeedApprovalWorkflow(app_config)
        failures = 0
        for need in pending:
            result = workflow.approve(need.id, org_id, notify=False)
            if result.success:
                print_match_table(result)
            else:
                failures += 1
                print(f"❌ {need.id}: {result.error_message}\n")

        print("-" * 80)
        print(f"To inspect the database: sqlite3 {args.database.absolute()} '.tables'")
        print(f"To clean up: rm {args.database.absolute()}")
        print("-" * 80 + "\n")

        return 1 if failures else 0

    except Exception as e:
        print(f"\n❌ Fatal error: {e}")
        import traceback
        traceback.print_exc()
        return 1
    finally:
        close_database()


if __name__ == "__main__":
    sys.exit(main())
