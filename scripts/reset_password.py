#!/usr/bin/env python3
"""
InternArea - Password Reset CLI

Issue a new generated password for a user from the command line.
Useful when no email service is configured. Unlike the API, this
ignores the once-per-day limit.

Usage:
    python scripts/reset_password.py user@email.com
"""
import sys
import os
from datetime import datetime

# Add project root to path so we can import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from internarea.database import SessionLocal, init_db
from internarea.auth.service import auth_service
from internarea.auth.passwords import generate_password


def reset_password(identifier: str):
    init_db()
    db = SessionLocal()

    try:
        user = auth_service.get_user_by_identifier(identifier, db)
        if not user:
            print(f"Error: No user found for '{identifier}'")
            sys.exit(1)

        new_password = generate_password()
        user.hashed_password = auth_service.hash_password(new_password)
        user.last_password_reset_at = datetime.utcnow()

        db.commit()
        print(f"Password reset successfully for {identifier}")
        print(f"New password: {new_password}")

    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python scripts/reset_password.py <email-or-phone>")
        print("Example: python scripts/reset_password.py user@example.com")
        sys.exit(1)

    reset_password(sys.argv[1])
