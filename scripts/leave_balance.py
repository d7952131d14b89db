#!/usr/bin/env python3
"""Compute a leave balance report from a JSON export of the leave portal.

The input file holds one employee's profile and leave records as returned by
the backend:

    {
      "profile": {"username": "...", "position": "JRF", "joining_date": "2024-07-01"},
      "leaves": [
        {"leave_type": "CL", "from_date": "2025-01-06", "to_date": "2025-01-07",
         "total_days": 2, "approval_status": "approved"}
      ]
    }

Usage:
    python scripts/leave_balance.py export.json                   # summary as of today
    python scripts/leave_balance.py export.json --as-of 2026-03-31
    python scripts/leave_balance.py export.json --raw             # unrounded report
    python scripts/leave_balance.py export.json --pending-half-days apportioned
"""

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

# ── Path setup ────────────────────────────────────────────────────────
SCRIPT_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = SCRIPT_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT))

from leave_portal.common.constants import PendingHalfDayMode
from leave_portal.common.exceptions import ValidationException
from leave_portal.config import settings
from leave_portal.leave.engine import compute_balance, parse_profile
from leave_portal.leave.formatting import format_report

logger = logging.getLogger("leave_balance")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("input", type=Path, help="JSON file with 'profile' and 'leaves'")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Computation date (YYYY-MM-DD); defaults to today",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print the full-precision report instead of the rounded summary",
    )
    parser.add_argument(
        "--pending-half-days",
        choices=[mode.value for mode in PendingHalfDayMode],
        default=None,
        help="How pending half-days are reported (default: PENDING_HALF_DAY_MODE)",
    )
    return parser


def run(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=settings.log_level_value,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
    )

    try:
        payload = json.loads(args.input.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.error("Cannot read %s: %s", args.input, e)
        return 1

    if not isinstance(payload, dict):
        logger.error("%s must contain a JSON object", args.input)
        return 1

    mode = PendingHalfDayMode(args.pending_half_days) if args.pending_half_days else None
    try:
        profile = parse_profile(payload.get("profile") or {})
        result = compute_balance(
            profile,
            payload.get("leaves") or [],
            args.as_of,
            pending_half_day_mode=mode,
        )
    except ValidationException as e:
        logger.error("Invalid input: %s", e.detail)
        print(json.dumps(e.to_problem(str(args.input)), indent=2))
        return 1

    output = result if args.raw else format_report(result, profile)
    print(output.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(run())
