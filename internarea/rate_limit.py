"""
InternArea - Centralized request throttling configuration.

All rate limit decorators should import `limiter` from this module.
The limiter keys on client IP address. This is per-IP burst protection and
is separate from the per-user daily posting quota in services/posting_limit.py.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

# --- Rate limit constants ---

# Auth endpoints (login, password reset): strict
RATE_LIMIT_AUTH = "5/minute"

# General API write operations (post, like, comment): moderate
RATE_LIMIT_GENERAL = "30/minute"

# Read-heavy endpoints (feed, comments): 1/sec sustained
RATE_LIMIT_READ = "60/minute"
