"""
InternArea - Authentication Service

Identity is owned by an external provider that issues signed JWT identity
tokens. This service verifies those tokens, mirrors the identity into the
local `users` table, and manages the locally issued passwords used by the
forgot-password flow.

Features:
- Identity token verification (python-jose)
- Upsert of users keyed by the provider uid
- Bcrypt password hashing (passlib)
- Email / phone identifier lookup
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Tuple
import logging
import re

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from .models import User
from .schemas import IdentityClaims

logger = logging.getLogger("internarea.auth")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# E.164-ish: optional +, country code, 10-15 digits total
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{9,14}$")


def is_email(identifier: str) -> bool:
    return bool(EMAIL_PATTERN.match(identifier))


def is_phone(identifier: str) -> bool:
    return bool(PHONE_PATTERN.match(identifier))


def is_same_utc_day(a: datetime, b: datetime) -> bool:
    """Compare two naive-UTC datetimes by calendar day."""
    return a.date() == b.date()


class AuthServiceError(Exception):
    """Custom exception for authentication errors."""
    pass


@dataclass(frozen=True)
class PasswordResetClaim:
    """A committed password reset and the state it replaced."""
    user_id: int
    new_hash: str
    reset_at: datetime
    previous_hash: Optional[str]
    previous_reset_at: Optional[datetime]


class AuthService:
    """
    Authentication service for identity tokens and local passwords.

    Provides:
    - Identity token creation and verification
    - User upsert from verified claims
    - Password hashing and authentication
    """

    def __init__(self):
        """Initialize auth service with password context."""
        self._pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=12  # Good balance of security and speed
        )

    # -------------------------------------------------------------------------
    # Password Hashing
    # -------------------------------------------------------------------------

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        return self._pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        try:
            return self._pwd_context.verify(plain_password, hashed_password)
        except (ValueError, TypeError) as e:
            logger.error(f"Password verification failed: {e}")
            return False

    # -------------------------------------------------------------------------
    # Identity Tokens
    # -------------------------------------------------------------------------

    def create_id_token(
        self,
        uid: str,
        email: str = "",
        name: str = "",
        phone_number: str = "",
        expires_delta: Optional[timedelta] = None
    ) -> Tuple[str, datetime]:
        """
        Create a signed identity token.

        Used by the login endpoint and developer tooling; production tokens
        normally come straight from the identity provider.

        Returns:
            Tuple of (token_string, expiration_datetime)
        """
        now = datetime.utcnow()
        if expires_delta:
            expire = now + expires_delta
        else:
            expire = now + timedelta(minutes=settings.auth.id_token_expire_minutes)

        payload = {
            "sub": uid,
            "email": email,
            "name": name,
            "phone_number": phone_number,
            "exp": expire,
            "iat": now,
        }
        if settings.auth.id_token_issuer:
            payload["iss"] = settings.auth.id_token_issuer
        if settings.auth.id_token_audience:
            payload["aud"] = settings.auth.id_token_audience

        token = jwt.encode(
            payload,
            settings.auth.id_token_secret,
            algorithm=settings.auth.id_token_algorithm
        )

        logger.debug(f"Created identity token for {uid}")
        return token, expire

    def verify_id_token(self, token: str) -> Optional[IdentityClaims]:
        """
        Verify and decode an identity token.

        Returns:
            IdentityClaims if valid, None if invalid/expired
        """
        try:
            payload = jwt.decode(
                token,
                settings.auth.id_token_secret,
                algorithms=[settings.auth.id_token_algorithm],
                audience=settings.auth.id_token_audience,
                issuer=settings.auth.id_token_issuer,
            )
        except JWTError as e:
            logger.debug(f"Token verification failed: {e}")
            return None

        uid = payload.get("sub")
        if not uid:
            logger.warning("Token missing subject claim")
            return None

        exp = payload.get("exp")
        return IdentityClaims(
            uid=str(uid),
            email=payload.get("email") or "",
            name=payload.get("name") or "",
            phone_number=payload.get("phone_number") or "",
            exp=datetime.utcfromtimestamp(exp) if exp else None,
        )

    # -------------------------------------------------------------------------
    # User Directory
    # -------------------------------------------------------------------------

    def resolve_user(self, claims: IdentityClaims, db: Session) -> User:
        """
        Get or create the local user for verified identity claims.

        Profile fields are refreshed from the token on every call; the
        friend count is only initialised on insert. Two concurrent first
        requests race on the unique uid; the loser re-reads the winner's row.
        """
        user = db.query(User).filter(User.external_uid == claims.uid).first()
        if not user:
            user = User(external_uid=claims.uid, friends_count=0, is_active=True)
            db.add(user)
        self._apply_claims(user, claims)

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            user = db.query(User).filter(User.external_uid == claims.uid).first()
            if not user:
                raise
            self._apply_claims(user, claims)
            db.commit()
            logger.debug(f"Resolved concurrent first login for {claims.uid}")

        db.refresh(user)
        return user

    @staticmethod
    def _apply_claims(user: User, claims: IdentityClaims) -> None:
        user.email = claims.email.strip().lower()
        user.name = claims.name or claims.email
        user.phone_number = claims.phone_number

    def get_user_by_identifier(self, identifier: str, db: Session) -> Optional[User]:
        """
        Look up a user by email address or phone number.

        Returns:
            User if found, None otherwise
        """
        identifier = identifier.strip()
        if is_email(identifier):
            return db.query(User).filter(User.email == identifier.lower()).first()
        if is_phone(identifier):
            return db.query(User).filter(User.phone_number == identifier).first()
        return None

    def authenticate_user(self, identifier: str, password: str, db: Session) -> Optional[User]:
        """
        Authenticate a user by email/phone and password.

        Returns:
            User if credentials valid, None otherwise
        """
        user = self.get_user_by_identifier(identifier, db)

        if not user:
            logger.debug(f"User not found: {identifier}")
            return None

        if not user.hashed_password:
            logger.debug(f"User {user.id} has no local password")
            return None

        if not self.verify_password(password, user.hashed_password):
            logger.debug(f"Invalid password for user: {user.id}")
            return None

        if not user.is_active:
            logger.warning(f"Inactive user attempted login: {user.id}")
            return None

        logger.info(f"User authenticated: {user.id}")
        return user

    # -------------------------------------------------------------------------
    # Password Reset
    # -------------------------------------------------------------------------

    def can_reset_password(self, user: User, now: Optional[datetime] = None) -> bool:
        """A password may be reset once per UTC day."""
        if not user.last_password_reset_at:
            return True
        return not is_same_utc_day(user.last_password_reset_at, now or datetime.utcnow())

    def claim_password_reset(
        self,
        user: User,
        new_password: str,
        db: Session,
        now: Optional[datetime] = None
    ) -> PasswordResetClaim:
        """
        Store the hash of a freshly generated password, once per UTC day.

        The daily check and the write are a single conditional UPDATE that
        is committed immediately, so no write lock is held while the new
        password is being delivered. Concurrent requests for the same
        account cannot both succeed.

        Raises:
            AuthServiceError: if the password was already reset today
        """
        now = now or datetime.utcnow()
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        claim = PasswordResetClaim(
            user_id=user.id,
            new_hash=self.hash_password(new_password),
            reset_at=now,
            previous_hash=user.hashed_password,
            previous_reset_at=user.last_password_reset_at,
        )

        result = db.execute(
            update(User)
            .where(
                User.id == claim.user_id,
                or_(
                    User.last_password_reset_at.is_(None),
                    User.last_password_reset_at < day_start,
                ),
            )
            .values(hashed_password=claim.new_hash, last_password_reset_at=now)
            .execution_options(synchronize_session=False)
        )
        db.commit()

        if result.rowcount != 1:
            logger.info(f"Password reset refused for user {claim.user_id}: already reset today")
            raise AuthServiceError("You can use this option only once per day.")
        return claim

    def revert_password_reset(self, claim: PasswordResetClaim, db: Session) -> bool:
        """
        Restore the previous password after a failed delivery.

        Only applies while the claimed hash is still the stored one.
        """
        result = db.execute(
            update(User)
            .where(User.id == claim.user_id, User.hashed_password == claim.new_hash)
            .values(
                hashed_password=claim.previous_hash,
                last_password_reset_at=claim.previous_reset_at,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount == 1


# Global service instance
auth_service = AuthService()
