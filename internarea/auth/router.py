"""
InternArea - Authentication Router

API endpoints for identity and password recovery.

Endpoints:
    POST /api/auth/forgot-password  - Issue a new password by email or phone
    POST /api/auth/login            - Email/phone + password login -> identity token
    GET  /api/auth/me               - Get current user
"""
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
import logging

from ..database import get_db
from ..config import settings
from ..rate_limit import limiter, RATE_LIMIT_AUTH
from .models import User
from .schemas import (
    UserResponse, Token, LoginRequest, LoginResponse,
    ForgotPasswordRequest, ForgotPasswordResponse, PasswordDelivery,
)
from .service import auth_service, AuthServiceError, is_email, is_phone
from .dependencies import get_current_active_user
from .passwords import generate_password
from ..services.email_service import email_service, MODE_MOCK

logger = logging.getLogger("internarea.auth")
router = APIRouter()


# -----------------------------------------------------------------------------
# Password Reset
# -----------------------------------------------------------------------------

@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
)
@limiter.limit(RATE_LIMIT_AUTH)
async def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    db: Session = Depends(get_db),
):
    """
    Generate a new password and deliver it to the account's email or phone.

    Allowed once per UTC day per account. Email delivery uses the configured
    email backend (or mock mode when none is set); phone delivery is mocked
    and returns the password in the response.
    """
    identifier = (data.identifier or "").strip()
    if not identifier:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email or phone is required",
        )

    email_input = is_email(identifier)
    if not email_input and not is_phone(identifier):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid email or phone number.",
        )

    user = auth_service.get_user_by_identifier(identifier, db)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found.",
        )

    if not auth_service.can_reset_password(user):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="You can use this option only once per day.",
        )

    user_id = user.id
    to_email = user.email or identifier.lower()
    user_name = user.name or ""

    new_password = generate_password()
    try:
        # Committed before delivery; undone below if delivery fails
        claim = auth_service.claim_password_reset(user, new_password, db)
    except AuthServiceError as e:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(e))

    if email_input:
        mode = email_service.delivery_mode()
        if mode != MODE_MOCK:
            delivered = await email_service.send_new_password_email(
                to_email=to_email,
                new_password=new_password,
                user_name=user_name,
            )
            if not delivered:
                auth_service.revert_password_reset(claim, db)
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="Could not deliver the new password. Please try again later.",
                )
        logger.info(f"Password reset for user {user_id} delivered by email ({mode})")
        return ForgotPasswordResponse(delivery=PasswordDelivery(type="email", mode=mode))

    # SMS is not wired up; the password goes back in the response
    logger.info(f"Password reset for user {user_id} delivered by phone (mock)")
    return ForgotPasswordResponse(
        delivery=PasswordDelivery(type="phone", mode=MODE_MOCK),
        password=new_password,
    )


# -----------------------------------------------------------------------------
# Login & Current User
# -----------------------------------------------------------------------------

@router.post("/login", response_model=LoginResponse)
@limiter.limit(RATE_LIMIT_AUTH)
async def login(
    request: Request,
    data: LoginRequest,
    db: Session = Depends(get_db),
):
    """
    Login with an email address or phone number and a password issued
    through the forgot-password flow.

    Returns the user and an identity token for the Authorization header.
    """
    user = auth_service.authenticate_user(data.identifier, data.password, db)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email/phone or password",
            headers={"WWW-Authenticate": "Bearer"}
        )

    access_token, _ = auth_service.create_id_token(
        uid=user.external_uid,
        email=user.email or "",
        name=user.name or "",
        phone_number=user.phone_number or "",
    )

    return LoginResponse(
        user=_user_to_response(user),
        token=Token(
            access_token=access_token,
            expires_in=settings.auth.id_token_expire_minutes * 60
        )
    )


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: User = Depends(get_current_active_user)
):
    """
    Get the current authenticated user's profile.
    """
    return _user_to_response(current_user)


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def _user_to_response(user: User) -> UserResponse:
    """Convert User model to UserResponse schema."""
    return UserResponse(
        id=user.id,
        external_uid=user.external_uid,
        email=user.email,
        name=user.name,
        phone_number=user.phone_number,
        friends_count=user.friends_count or 0,
        is_active=user.is_active,
        created_at=user.created_at,
        has_password=user.hashed_password is not None
    )
