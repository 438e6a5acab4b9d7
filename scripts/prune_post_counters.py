#!/usr/bin/env python3
"""
InternArea - Daily Post Counter Retention

Delete posting counters for past days. Counters are only read for the
current UTC day, so anything older is kept purely for reporting.

Usage:
    python scripts/prune_post_counters.py              # keep the last 30 days
    python scripts/prune_post_counters.py --keep-days 7
"""
import argparse
import sys
import os
from datetime import datetime, timedelta, timezone

# Add project root to path so we can import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from internarea.database import run_maintenance
from internarea.services.posting_limit import get_utc_day_key, prune_daily_counters


def prune(keep_days: int) -> int:
    cutoff = get_utc_day_key(datetime.now(timezone.utc) - timedelta(days=keep_days - 1))
    return run_maintenance(lambda db: prune_daily_counters(db, cutoff))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Prune old daily post counters")
    parser.add_argument("--keep-days", type=int, default=30,
                        help="Days of history to keep, including today (default: 30)")
    args = parser.parse_args()

    if args.keep_days < 1:
        print("Error: --keep-days must be at least 1")
        sys.exit(1)

    deleted = prune(args.keep_days)
    print(f"Deleted {deleted} counter row(s) older than {args.keep_days} day(s).")
