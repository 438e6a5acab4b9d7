"""
InternArea - Authentication Dependencies

FastAPI dependencies for route protection and user injection.

Usage in routers:
    from ..auth.dependencies import get_current_active_user

    @router.post("/protected")
    def protected_route(current_user: User = Depends(get_current_active_user)):
        return {"user_id": current_user.id}

Dependency hierarchy:
    get_current_user          - Base: verifies the identity token and upserts the user
    get_current_active_user   - Adds: user must be active
"""
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from .models import User
from .service import auth_service

logger = logging.getLogger("internarea.auth")

# Bearer token extraction from the Authorization header
# auto_error=False allows us to handle missing tokens ourselves
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """
    Get the current user from an identity token.

    The token is verified, then the matching local user is created or
    refreshed from its claims.

    Raises:
        HTTPException: 401 if not authenticated or token invalid
    """
    if not token:
        logger.debug("No token provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    claims = auth_service.verify_id_token(token)
    if not claims:
        logger.debug("Invalid or expired token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return auth_service.resolve_user(claims, db)


async def get_current_active_user(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Get the current user and verify they are active.

    Use this dependency for most protected routes.

    Raises:
        HTTPException: 403 if user account is deactivated
    """
    if not current_user.is_active:
        logger.warning(f"Inactive user {current_user.id} attempted access")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated"
        )
    return current_user
