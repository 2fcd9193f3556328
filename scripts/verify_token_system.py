#!/usr/bin/env python3
"""
Value Ledger - Token System Verification
Read-only integrity check of the batch rosters and the token ledger.

This script reports:
1. Roster entries with empty names, malformed emails or duplicate names
2. Tokens with an invalid id or no usable recipient information
3. Ledger totals (members, tokens, pending, accepted)

Nothing is modified. Exits with status 1 when errors are found.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from value_ledger.db.database import SessionLocal, create_database_engine  # noqa: E402
from value_ledger.domain.integrity import IntegrityReport, build_integrity_report  # noqa: E402
from value_ledger.repositories.sqlalchemy_impl import (  # noqa: E402
    SQLAlchemyBatchMemberRepository,
    SQLAlchemyTokenRepository,
)


async def collect_report(session) -> IntegrityReport:
    """Load every token and roster entry and build the report."""
    tokens = await SQLAlchemyTokenRepository(session).list_tokens()
    members = await SQLAlchemyBatchMemberRepository(session).list_all()
    return build_integrity_report(
        [token.to_record() for token in tokens], [member.to_record() for member in members]
    )


def print_report(report: IntegrityReport) -> None:
    print("🔍 Value Ledger - Token System Verification")
    print("=" * 50)

    totals = report.totals
    print(f"Members:  {totals.get('members', 0)}")
    print(f"Tokens:   {totals.get('tokens', 0)} "
          f"({totals.get('pending', 0)} pending, {totals.get('accepted', 0)} accepted)")
    print()

    if report.is_healthy:
        print("✅ No issues found")
        return

    status_emoji = {"error": "❌", "warning": "⚠️", "info": "ℹ️"}
    for issue in report.issues:
        severity = issue.severity.value
        print(f"{status_emoji.get(severity, '❓')} [{issue.type}] {issue.description}")

    print()
    print(f"{len(report.errors)} error(s), {len(report.warnings)} warning(s)")


async def main():
    parser = argparse.ArgumentParser(description="Value Ledger token system verification")
    parser.add_argument("--database-url", help="Database to check (defaults to configuration)")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    args = parser.parse_args()

    if args.database_url:
        from sqlalchemy.orm import sessionmaker

        session = sessionmaker(bind=create_database_engine(args.database_url))()
    else:
        session = SessionLocal()

    try:
        report = await collect_report(session)
    finally:
        session.close()

    if args.json:
        print(json.dumps(
            {
                "totals": report.totals,
                "issues": [asdict(issue) for issue in report.issues],
            },
            indent=2,
            default=str,
        ))
    else:
        print_report(report)

    sys.exit(1 if report.errors else 0)


if __name__ == "__main__":
    asyncio.run(main())
