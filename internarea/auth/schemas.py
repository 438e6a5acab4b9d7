"""
InternArea - Authentication Schemas

Pydantic schemas for auth request/response validation.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


# -----------------------------------------------------------------------------
# User Schemas
# -----------------------------------------------------------------------------

class UserResponse(BaseModel):
    """Schema for user response (public user data)."""
    id: int
    external_uid: str
    email: Optional[str] = None
    name: Optional[str] = None
    phone_number: Optional[str] = None
    friends_count: int
    is_active: bool
    created_at: datetime
    has_password: bool  # True once a password has been issued through reset

    class Config:
        from_attributes = True


class AuthorSummary(BaseModel):
    """Compact author info embedded in posts and comments."""
    id: int
    name: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True


# -----------------------------------------------------------------------------
# Token Schemas
# -----------------------------------------------------------------------------

class IdentityClaims(BaseModel):
    """Verified identity token claims (internal use)."""
    uid: str
    email: str = ""
    name: str = ""
    phone_number: str = ""
    exp: Optional[datetime] = None


class Token(BaseModel):
    """Schema for identity token response."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until the token expires


class LoginRequest(BaseModel):
    """Login with email or phone number plus password."""
    identifier: str
    password: str


class LoginResponse(BaseModel):
    """Schema for login response."""
    user: UserResponse
    token: Token


# -----------------------------------------------------------------------------
# Password Reset Schemas
# -----------------------------------------------------------------------------

class ForgotPasswordRequest(BaseModel):
    """Email address or phone number of the account to reset."""
    identifier: Optional[str] = None


class PasswordDelivery(BaseModel):
    type: str  # email, phone
    mode: str  # resend, smtp, mock


class ForgotPasswordResponse(BaseModel):
    success: bool = True
    message: str = "A new password has been sent to your registered email/phone."
    delivery: PasswordDelivery
    password: Optional[str] = None  # Only for mocked phone delivery
