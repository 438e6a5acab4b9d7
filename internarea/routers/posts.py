"""
InternArea - Public space API.

Feed, quota-gated post creation, likes, and comments. Reading the feed is
public; everything that writes requires an identity token.
"""
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session, joinedload, selectinload
from sqlalchemy.exc import IntegrityError
from sqlalchemy import func
import logging

from ..database import get_db
from ..models import Post, PostLike, Comment
from ..schemas import (
    PostCreate, PostResponse, PostCreated, PostingLimitSnapshot, FeedResponse,
    PostingLimitStatus, LikeToggleResponse,
    CommentCreate, CommentResponse, CommentCreated, CommentList,
    MediaType, CAPTION_MAX_LENGTH, COMMENT_MAX_LENGTH,
)
from ..auth.dependencies import get_current_active_user
from ..auth.models import User
from ..auth.schemas import AuthorSummary
from ..rate_limit import limiter, RATE_LIMIT_GENERAL, RATE_LIMIT_READ
from ..services.posting_limit import (
    check_posting_limit_and_consume,
    get_friends_count_override,
    get_posting_limit_status,
)

logger = logging.getLogger("internarea.posts")

router = APIRouter()

FEED_MAX_PAGE_SIZE = 50
MEDIA_TYPES = {m.value for m in MediaType}


@router.get("", response_model=FeedResponse)
@limiter.limit(RATE_LIMIT_READ)
def list_posts(
    request: Request,
    page: int = 1,
    limit: int = 10,
    db: Session = Depends(get_db),
):
    """
    Newest posts first.

    One extra row is fetched to compute has_more without a count query.
    """
    page = max(page, 1)
    limit = min(max(limit, 1), FEED_MAX_PAGE_SIZE)
    skip = (page - 1) * limit

    posts = (
        db.query(Post)
        .options(joinedload(Post.author), selectinload(Post.likes))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset(skip)
        .limit(limit + 1)
        .all()
    )

    has_more = len(posts) > limit
    items = posts[:limit]

    return FeedResponse(
        items=[_post_to_response(p) for p in items],
        has_more=has_more,
        page=page,
        limit=limit,
    )


@router.post("", response_model=PostCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_GENERAL)
def create_post(
    request: Request,
    payload: PostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """
    Create a post, consuming one unit of today's posting quota.

    The payload is validated before the quota is touched, so rejected
    posts never count against the limit.
    """
    caption = (payload.caption or "").strip()
    media_url = (payload.media_url or "").strip()
    media_type = (payload.media_type or "").strip()

    if len(caption) > CAPTION_MAX_LENGTH:
        raise HTTPException(status_code=400, detail="Caption too long")

    if not caption and not media_url:
        raise HTTPException(status_code=400, detail="Post cannot be empty")

    if media_url and media_type not in MEDIA_TYPES:
        raise HTTPException(status_code=400, detail="Invalid mediaType")

    user_id = current_user.id
    admission = check_posting_limit_and_consume(request, db, current_user)

    post = Post(
        user_id=user_id,
        media_url=media_url,
        media_type=media_type if media_url else "",
        caption=caption,
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    logger.info(f"User {user_id} created post {post.id} (count={admission.count}, limit={admission.limit})")
    return PostCreated(
        post=_post_to_response(post),
        posting_limit=PostingLimitSnapshot(**admission.as_dict()),
    )


@router.get("/limit", response_model=PostingLimitStatus)
@limiter.limit(RATE_LIMIT_READ)
def get_posting_limit(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Today's posting quota for the current user. Does not consume anything."""
    override = get_friends_count_override(request)
    return get_posting_limit_status(db, current_user, friends_count_override=override)


@router.post("/{post_id}/like", response_model=LikeToggleResponse)
@limiter.limit(RATE_LIMIT_GENERAL)
def toggle_like(
    request: Request,
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Like the post, or remove the like if the user already liked it."""
    _get_post_or_404(db, post_id)
    user_id = current_user.id

    existing = db.query(PostLike).filter(
        PostLike.post_id == post_id,
        PostLike.user_id == user_id
    ).first()

    if existing:
        db.delete(existing)
        liked = False
    else:
        db.add(PostLike(post_id=post_id, user_id=user_id))
        liked = True

    try:
        db.commit()
    except IntegrityError:
        # A concurrent request already recorded this like
        db.rollback()
        liked = True

    likes_count = db.query(func.count(PostLike.id)).filter(
        PostLike.post_id == post_id
    ).scalar() or 0

    return LikeToggleResponse(liked=liked, likes_count=likes_count)


@router.post("/{post_id}/comment", response_model=CommentCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit(RATE_LIMIT_GENERAL)
def create_comment(
    request: Request,
    post_id: int,
    payload: CommentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    """Add a comment to a post."""
    text = (payload.text or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Comment text is required")
    if len(text) > COMMENT_MAX_LENGTH:
        raise HTTPException(status_code=400, detail="Comment too long")

    _get_post_or_404(db, post_id)

    comment = Comment(post_id=post_id, user_id=current_user.id, text=text)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return CommentCreated(comment=_comment_to_response(comment))


@router.get("/{post_id}/comments", response_model=CommentList)
@limiter.limit(RATE_LIMIT_READ)
def list_comments(
    request: Request,
    post_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Comments on a post, oldest first."""
    _get_post_or_404(db, post_id)

    comments = (
        db.query(Comment)
        .options(joinedload(Comment.author))
        .filter(Comment.post_id == post_id)
        .order_by(Comment.created_at.asc(), Comment.id.asc())
        .offset(skip)
        .limit(limit + 1)
        .all()
    )

    return CommentList(
        items=[_comment_to_response(c) for c in comments[:limit]],
        has_more=len(comments) > limit,
    )


# --- Helpers ---

def _get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


def _author_summary(user):
    if user is None:
        return None
    return AuthorSummary.model_validate(user)


def _post_to_response(post: Post) -> PostResponse:
    liker_ids = [like.user_id for like in post.likes]
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        author=_author_summary(post.author),
        media_url=post.media_url or "",
        media_type=post.media_type or "",
        caption=post.caption or "",
        likes=liker_ids,
        like_count=len(liker_ids),
        created_at=post.created_at,
    )


def _comment_to_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        post_id=comment.post_id,
        user_id=comment.user_id,
        author=_author_summary(comment.author),
        text=comment.text,
        created_at=comment.created_at,
    )
