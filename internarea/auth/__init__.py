"""
InternArea - Authentication Module

Identity tokens from the external provider, local user mirroring, and the
forgot-password flow.

Usage:
    from internarea.auth import get_current_active_user, User

    @router.get("/protected")
    def protected_route(current_user: User = Depends(get_current_active_user)):
        return {"user_id": current_user.id}

Configuration (environment variables):
    INTERNAREA_ID_TOKEN_SECRET=<key>       - Identity provider signing key
    INTERNAREA_ID_TOKEN_ALGORITHM=HS256
    INTERNAREA_ID_TOKEN_EXPIRE_MINUTES=60
"""

# Models
from .models import User

# Service
from .service import auth_service, AuthServiceError

# Dependencies (for use in routers)
from .dependencies import (
    get_current_user,
    get_current_active_user,
)

# Router (for mounting in main.py)
from .router import router

__all__ = [
    # Models
    "User",
    # Service
    "auth_service",
    "AuthServiceError",
    # Dependencies
    "get_current_user",
    "get_current_active_user",
    # Router
    "router",
]
