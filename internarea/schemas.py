"""
InternArea - Pydantic schemas for request/response validation.

Defines data models for the public space API: posts, likes, comments,
and the daily posting limit.
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from enum import Enum

from .auth.schemas import AuthorSummary

CAPTION_MAX_LENGTH = 500
COMMENT_MAX_LENGTH = 500


# --- Enums for validated fields ---

class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"


# --- Post Schemas ---

class PostCreate(BaseModel):
    """
    Raw post payload.

    Fields are trimmed and checked in the router so that invalid posts are
    rejected with the same 400 messages the client already displays.
    """
    media_url: Optional[str] = Field(None, alias="mediaUrl")
    media_type: Optional[str] = Field(None, alias="mediaType")
    caption: Optional[str] = None

    class Config:
        populate_by_name = True


class PostResponse(BaseModel):
    id: int
    user_id: int
    author: Optional[AuthorSummary] = None
    media_url: str = ""
    media_type: str = ""
    caption: str = ""
    likes: List[int] = []
    like_count: int = 0
    created_at: datetime


class PostingLimitSnapshot(BaseModel):
    """Quota consumed by a successful post. `limit` is None when unlimited."""
    day_key: Optional[str] = None
    limit: Optional[int] = None
    count: Optional[int] = None
    unlimited: bool = False


class PostCreated(BaseModel):
    post: PostResponse
    posting_limit: PostingLimitSnapshot


class FeedResponse(BaseModel):
    items: List[PostResponse]
    has_more: bool
    page: int
    limit: int


class PostingLimitStatus(BaseModel):
    day_key: str
    friends_count: int
    limit: Optional[int] = None
    used: Optional[int] = None
    remaining: Optional[int] = None
    unlimited: bool = False


# --- Like Schemas ---

class LikeToggleResponse(BaseModel):
    liked: bool
    likes_count: int


# --- Comment Schemas ---

class CommentCreate(BaseModel):
    text: Optional[str] = None


class CommentResponse(BaseModel):
    id: int
    post_id: int
    user_id: int
    author: Optional[AuthorSummary] = None
    text: str
    created_at: datetime

    class Config:
        from_attributes = True


class CommentCreated(BaseModel):
    comment: CommentResponse


class CommentList(BaseModel):
    items: List[CommentResponse]
    has_more: bool
