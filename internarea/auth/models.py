"""
InternArea - Authentication Models

SQLAlchemy model for actors known through the identity provider.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, CheckConstraint
from datetime import datetime

from ..database import Base


class User(Base):
    """
    A user mirrored from the identity provider.

    Rows are upserted on every authenticated request, keyed by the
    provider's stable uid. `friends_count` drives the daily posting quota
    and is maintained outside this service.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    external_uid = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, index=True, default="")
    name = Column(String, default="")
    phone_number = Column(String, index=True, default="")
    friends_count = Column(Integer, nullable=False, default=0)
    hashed_password = Column(String, nullable=True)
    last_password_reset_at = Column(DateTime, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("friends_count >= 0", name="ck_users_friends_count_non_negative"),
    )
