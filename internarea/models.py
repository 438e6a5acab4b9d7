"""
InternArea - SQLAlchemy ORM models

Database models for the public space: posts, likes, comments, and the
per-day posting counters behind the daily posting quota.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, CheckConstraint, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from .database import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    media_url = Column(String, nullable=False, default="")
    media_type = Column(String, nullable=False, default="")  # image, video, or "" for text-only
    caption = Column(String(500), nullable=False, default="")
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    author = relationship("User")
    likes = relationship("PostLike", back_populates="post", cascade="all, delete-orphan")
    comments = relationship(
        "Comment", back_populates="post", cascade="all, delete-orphan",
        order_by="Comment.created_at"
    )

    __table_args__ = (
        Index("ix_posts_user_id_created_at", "user_id", "created_at"),
    )


class PostLike(Base):
    """One row per (post, user); the unique pair makes double-likes impossible."""
    __tablename__ = "post_likes"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    post = relationship("Post", back_populates="likes")

    __table_args__ = (
        UniqueConstraint("post_id", "user_id", name="uix_post_like_user"),
    )


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    post = relationship("Post", back_populates="comments")
    author = relationship("User")


class DailyPostCounter(Base):
    """
    How many posts a user has made on one UTC day.

    The (user_id, day_key) unique constraint is what makes concurrent
    first-post-of-the-day requests safe: only one insert can win.
    """
    __tablename__ = "daily_post_counters"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    day_key = Column(String(10), nullable=False, index=True)  # UTC date, e.g. 2026-01-08
    count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "day_key", name="uix_daily_post_counter_user_day"),
        CheckConstraint("count >= 0", name="ck_daily_post_counters_count_non_negative"),
    )
