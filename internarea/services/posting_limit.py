"""
InternArea - Daily Posting Limit

Admission control for creating posts. Each user may post a number of times
per UTC day that depends on their friend count:

    friends_count          daily limit
    -------------          -----------
    0 / invalid            0 (posting disabled)
    1..9                   friends_count
    10 or more             unlimited (no counter is touched)

Consumption is recorded in `daily_post_counters`, one row per
(user_id, day_key). No process-local lock is used, so the protocol stays
correct across independent workers:

    1. UPDATE ... SET count = count + 1 WHERE count < limit RETURNING count
    2. no row matched -> INSERT count = 1 (guarded by the unique constraint)
    3. insert conflicted -> retry step 1 exactly once, else deny

Every step runs in its own short transaction.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException, Request, status
from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth.models import User
from ..config import settings
from ..models import DailyPostCounter

logger = logging.getLogger("internarea.posting_limit")

UNLIMITED_FRIENDS_THRESHOLD = 10
FRIENDS_COUNT_OVERRIDE_HEADER = "X-Friends-Count"

REASON_NO_QUOTA = "no-quota"
REASON_LIMIT_REACHED = "limit-reached"


@dataclass(frozen=True)
class AdmissionResult:
    """Outcome of one admission attempt."""
    allowed: bool
    reason: Optional[str] = None
    count: Optional[int] = None
    limit: Optional[int] = None
    day_key: Optional[str] = None

    @property
    def unlimited(self) -> bool:
        return self.allowed and self.limit is None

    def as_dict(self) -> dict:
        return {
            "day_key": self.day_key,
            "limit": self.limit,
            "count": self.count,
            "unlimited": self.unlimited,
        }


# -----------------------------------------------------------------------------
# Limit Policy
# -----------------------------------------------------------------------------

def get_utc_day_key(now: Optional[datetime] = None) -> str:
    """
    Return the UTC calendar date of `now` as YYYY-MM-DD.

    Naive datetimes are taken to be UTC already.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%d")


def get_daily_limit(friends_count) -> Optional[int]:
    """
    Map a friend count to a daily post limit.

    Returns 0 when posting is not allowed at all and None for unlimited.
    """
    if isinstance(friends_count, bool):
        return 0
    try:
        value = float(friends_count)
    except (TypeError, ValueError):
        return 0

    if not math.isfinite(value) or value <= 0:
        return 0
    if value >= UNLIMITED_FRIENDS_THRESHOLD:
        return None
    return int(math.floor(value))


def parse_friends_count_override(raw: Optional[str]) -> Optional[int]:
    """
    Parse the evaluation override header.

    Returns None when the value is missing or not a finite number, so the
    stored friend count is used. Valid values are floored and clamped to 0.
    """
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return max(0, int(math.floor(value)))


def resolve_friends_count(user: User, override: Optional[int] = None) -> int:
    """Pick the override when given, otherwise the user's stored count."""
    if override is not None:
        return max(0, int(override))
    return int(user.friends_count or 0)


# -----------------------------------------------------------------------------
# Counter Store
# -----------------------------------------------------------------------------

class DailyCounterStore:
    """Atomic operations on `daily_post_counters`."""

    def conditional_increment(
        self,
        db: Session,
        user_id: int,
        day_key: str,
        limit: int
    ) -> Optional[int]:
        """
        Increment the counter only while it is below `limit`.

        Returns the new count, or None when no row exists or the row is
        already at the limit. The check and the write are one statement.
        """
        stmt = (
            update(DailyPostCounter)
            .where(
                DailyPostCounter.user_id == user_id,
                DailyPostCounter.day_key == day_key,
                DailyPostCounter.count < limit,
            )
            .values(count=DailyPostCounter.count + 1, updated_at=datetime.utcnow())
            .returning(DailyPostCounter.count)
            .execution_options(synchronize_session=False)
        )
        try:
            new_count = db.execute(stmt).scalar_one_or_none()
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        return new_count

    def create_counter(
        self,
        db: Session,
        user_id: int,
        day_key: str,
        initial_count: int = 1
    ) -> bool:
        """
        Insert the first counter row of the day.

        Returns False when another request already created it. Any other
        integrity failure (unknown user, negative count) is raised.
        """
        stmt = insert(DailyPostCounter).values(
            user_id=user_id,
            day_key=day_key,
            count=initial_count,
        )
        try:
            db.execute(stmt)
            db.commit()
        except IntegrityError:
            db.rollback()
            if self._counter_exists(db, user_id, day_key):
                return False
            raise
        except SQLAlchemyError:
            db.rollback()
            raise
        return True

    def _counter_exists(self, db: Session, user_id: int, day_key: str) -> bool:
        return db.execute(
            select(DailyPostCounter.id).where(
                DailyPostCounter.user_id == user_id,
                DailyPostCounter.day_key == day_key,
            )
        ).first() is not None

    def get_count(self, db: Session, user_id: int, day_key: str) -> int:
        """Current count for a user and day, 0 when no row exists."""
        count = db.execute(
            select(DailyPostCounter.count).where(
                DailyPostCounter.user_id == user_id,
                DailyPostCounter.day_key == day_key,
            )
        ).scalar_one_or_none()
        return count or 0

    def prune_before(self, db: Session, day_key: str) -> int:
        """Delete counters older than `day_key`. Returns rows deleted."""
        result = db.execute(
            delete(DailyPostCounter)
            .where(DailyPostCounter.day_key < day_key)
            .execution_options(synchronize_session=False)
        )
        db.commit()
        return result.rowcount or 0


counter_store = DailyCounterStore()


# -----------------------------------------------------------------------------
# Admission
# -----------------------------------------------------------------------------

def admit(
    db: Session,
    user: User,
    friends_count_override: Optional[int] = None,
    now: Optional[datetime] = None,
    store: DailyCounterStore = counter_store,
) -> AdmissionResult:
    """
    Decide whether `user` may create a post now and record it if so.

    Store errors propagate to the caller; the only retry is the single
    conditional increment after losing the counter creation race.
    """
    friends_count = resolve_friends_count(user, friends_count_override)
    limit = get_daily_limit(friends_count)

    if limit == 0:
        logger.info("User %s denied: no posting quota (friends=%s)", user.id, friends_count)
        return AdmissionResult(allowed=False, reason=REASON_NO_QUOTA, limit=0)

    if limit is None:
        return AdmissionResult(allowed=True, limit=None)

    day_key = get_utc_day_key(now)
    user_id = user.id

    count = store.conditional_increment(db, user_id, day_key, limit)
    if count is not None:
        return AdmissionResult(allowed=True, count=count, limit=limit, day_key=day_key)

    if store.create_counter(db, user_id, day_key):
        return AdmissionResult(allowed=True, count=1, limit=limit, day_key=day_key)

    # Lost the creation race (or the row is already full)
    count = store.conditional_increment(db, user_id, day_key, limit)
    if count is not None:
        return AdmissionResult(allowed=True, count=count, limit=limit, day_key=day_key)

    logger.info("User %s denied: daily limit %d reached for %s", user_id, limit, day_key)
    return AdmissionResult(
        allowed=False, reason=REASON_LIMIT_REACHED, limit=limit, day_key=day_key
    )


def get_posting_limit_status(
    db: Session,
    user: User,
    friends_count_override: Optional[int] = None,
    now: Optional[datetime] = None,
    store: DailyCounterStore = counter_store,
) -> dict:
    """Today's usage for `user` without consuming anything."""
    friends_count = resolve_friends_count(user, friends_count_override)
    limit = get_daily_limit(friends_count)
    day_key = get_utc_day_key(now)

    if limit is None:
        return {
            "day_key": day_key,
            "friends_count": friends_count,
            "limit": None,
            "used": None,
            "remaining": None,
            "unlimited": True,
        }

    used = store.get_count(db, user.id, day_key) if limit > 0 else 0
    return {
        "day_key": day_key,
        "friends_count": friends_count,
        "limit": limit,
        "used": used,
        "remaining": max(0, limit - used),
        "unlimited": False,
    }


def prune_daily_counters(db: Session, before_day_key: str, store: DailyCounterStore = counter_store) -> int:
    """Retention helper: drop counters for days before `before_day_key`."""
    deleted = store.prune_before(db, before_day_key)
    logger.info("Pruned %d daily post counters before %s", deleted, before_day_key)
    return deleted


# -----------------------------------------------------------------------------
# HTTP Edge
# -----------------------------------------------------------------------------

def get_friends_count_override(request: Request) -> Optional[int]:
    """Read the X-Friends-Count header when the override is enabled."""
    if not settings.auth.allow_friends_count_override:
        return None
    return parse_friends_count_override(request.headers.get(FRIENDS_COUNT_OVERRIDE_HEADER))


def check_posting_limit_and_consume(request: Request, db: Session, user: User) -> AdmissionResult:
    """
    Run the posting gate for an authenticated request.

    Raises:
        HTTPException: 403 without quota, 429 when today's limit is used up,
            500 when the counter store fails
    """
    override = get_friends_count_override(request)
    user_id = user.id

    try:
        result = admit(db, user, friends_count_override=override)
    except SQLAlchemyError:
        logger.exception("Posting limit check failed for user %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="internal server error"
        )

    if not result.allowed:
        if result.reason == REASON_NO_QUOTA:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You need at least 1 friend to post."
            )
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Daily posting limit reached."
        )

    request.state.posting_limit = result
    return result
