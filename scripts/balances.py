#!/usr/bin/env python3
"""Vacation balance maintenance — bulk assignment and recalculation.

Usage:
    python -m scripts.balances bulk-assign --policy-id <uuid> --year 2026
    python -m scripts.balances bulk-assign --policy-id <uuid> --year 2026 --performed-by <uuid>
    python -m scripts.balances recalculate --year 2026
    python -m scripts.balances recalculate --year 2026 --employee-id <uuid>

Requires in .env (project root):
    DATABASE_URL

Exit codes:
    0 = success
    1 = unknown policy / nothing to do
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# ── Path setup ────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

env_path = PROJECT_ROOT / ".env"
if env_path.exists():
    load_dotenv(env_path)

from timeoff.common.exceptions import NotFoundException  # noqa: E402
from timeoff.common.logging import configure_logging  # noqa: E402
from timeoff.database import unit_of_work  # noqa: E402
from timeoff.vacations.balance import BalanceService  # noqa: E402
from timeoff.vacations.repository import EmployeeRepository  # noqa: E402

logger = logging.getLogger("balances")


# ══════════════════════════════════════════════════════════════════════
# Commands
# ══════════════════════════════════════════════════════════════════════

async def bulk_assign(policy_id: uuid.UUID, year: int, performed_by: Optional[uuid.UUID]) -> int:
    try:
        async with unit_of_work() as db:
            result = await BalanceService.bulk_assign(db, policy_id, year, performed_by)
    except NotFoundException as exc:
        logger.error("%s", exc.detail)
        return 1

    print(f"""
{'=' * 60}
  BULK ASSIGN COMPLETE
  Policy   : {policy_id}
  Year     : {year}
  Created  : {result.created}
  Skipped  : {result.skipped}
  Total    : {result.total}
{'=' * 60}
""")
    return 0


async def recalculate(year: int, employee_id: Optional[uuid.UUID]) -> int:
    updated = 0
    missing = 0
    async with unit_of_work() as db:
        if employee_id is not None:
            employee_ids = [employee_id]
        else:
            employee_ids = await EmployeeRepository.active_ids(db)

        for emp_id in employee_ids:
            balance = await BalanceService.recalculate(db, emp_id, year)
            if balance is None:
                missing += 1
                continue
            updated += 1

    print(f"""
{'=' * 60}
  RECALCULATION COMPLETE
  Year        : {year}
  Updated     : {updated}
  No balance  : {missing}
{'=' * 60}
""")
    return 0 if updated else 1


# ══════════════════════════════════════════════════════════════════════
# Main
# ══════════════════════════════════════════════════════════════════════

def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Vacation balance maintenance",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s bulk-assign --policy-id 6f1c… --year 2026
  %(prog)s recalculate --year 2026
        """,
    )
    parser.add_argument("--log-level", type=str, default=None,
                        help="Override LOG_LEVEL from the environment")
    sub = parser.add_subparsers(dest="command", required=True)

    p_bulk = sub.add_parser("bulk-assign", help="Give every active employee a balance")
    p_bulk.add_argument("--policy-id", type=uuid.UUID, required=True,
                        help="Policy to allocate from")
    p_bulk.add_argument("--year", type=int, required=True,
                        help="Balance year")
    p_bulk.add_argument("--performed-by", type=uuid.UUID, default=None,
                        help="Employee id recorded in the audit trail")

    p_recalc = sub.add_parser("recalculate", help="Recompute used/remaining days")
    p_recalc.add_argument("--year", type=int, required=True,
                          help="Balance year")
    p_recalc.add_argument("--employee-id", type=uuid.UUID, default=None,
                          help="Single employee (default: every active employee)")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "bulk-assign":
        return asyncio.run(bulk_assign(args.policy_id, args.year, args.performed_by))
    return asyncio.run(recalculate(args.year, args.employee_id))


if __name__ == "__main__":
    sys.exit(main())
