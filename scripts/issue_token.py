#!/usr/bin/env python3
"""
InternArea - Development Identity Token CLI

Sign an identity token with the configured secret, for calling the API
locally without the real identity provider.

Usage:
    python scripts/issue_token.py <uid> [email] [name]

    TOKEN=$(python scripts/issue_token.py dev-user dev@example.com "Dev User")
    curl -H "Authorization: Bearer $TOKEN" -H "X-Friends-Count: 3" \
         -H "Content-Type: application/json" -d '{"caption": "hi"}' \
         http://localhost:8000/api/posts
"""
import sys
import os

# Add project root to path so we can import app modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from internarea.auth.service import auth_service


if __name__ == "__main__":
    if len(sys.argv) < 2 or len(sys.argv) > 4:
        print("Usage: python scripts/issue_token.py <uid> [email] [name]", file=sys.stderr)
        sys.exit(1)

    uid = sys.argv[1]
    email = sys.argv[2] if len(sys.argv) > 2 else ""
    name = sys.argv[3] if len(sys.argv) > 3 else ""

    token, expires = auth_service.create_id_token(uid=uid, email=email, name=name)
    print(f"Token expires at {expires.isoformat()}Z", file=sys.stderr)
    print(token)
