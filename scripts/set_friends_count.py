#!/usr/bin/env python3
"""
InternArea - Friend Count CLI

Set a user's friend count, which decides their daily posting limit
(0 = cannot post, 1-9 = that many posts per day, 10+ = unlimited).

Usage:
    python scripts/set_friends_count.py user@email.com 3
    python scripts/set_friends_count.py +919876543210 12
"""
import sys
import os

# Add project root to path so we can import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from internarea.database import SessionLocal, init_db
from internarea.auth.service import auth_service
from internarea.services.posting_limit import get_daily_limit


def set_friends_count(identifier: str, friends_count: int):
    if friends_count < 0:
        print("Error: friend count cannot be negative")
        sys.exit(1)

    init_db()
    db = SessionLocal()

    try:
        user = auth_service.get_user_by_identifier(identifier, db)
        if not user:
            print(f"Error: No user found for '{identifier}'")
            sys.exit(1)

        user.friends_count = friends_count
        db.commit()

        limit = get_daily_limit(friends_count)
        if limit is None:
            described = "unlimited posts per day"
        elif limit == 0:
            described = "posting disabled"
        else:
            described = f"{limit} post(s) per day"
        print(f"Set friend count for {identifier} to {friends_count} ({described}).")

    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 3 or not sys.argv[2].isdigit():
        print("Usage: python scripts/set_friends_count.py <email-or-phone> <count>")
        print("Example: python scripts/set_friends_count.py user@example.com 3")
        sys.exit(1)

    set_friends_count(sys.argv[1], int(sys.argv[2]))
