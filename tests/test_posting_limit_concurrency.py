"""Concurrent writers and store faults against a shared file-backed database."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from internarea.auth.models import User
from internarea.auth.service import AuthServiceError, auth_service
from internarea.database import Base, create_app_engine
from internarea.models import DailyPostCounter
from internarea.services.posting_limit import REASON_LIMIT_REACHED, admit, counter_store


NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def shared_sessions(tmp_path):
    """Session factory over a WAL-mode SQLite file, like a real deployment."""
    engine = create_app_engine(f"sqlite:///{tmp_path / 'concurrency.db'}")
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


def _make_user(factory, friends_count):
    session = factory()
    try:
        user = User(external_uid=f"race-{friends_count}", email="race@example.com",
                    name="Racer", friends_count=friends_count)
        session.add(user)
        session.commit()
        return SimpleNamespace(id=user.id, friends_count=friends_count)
    finally:
        session.close()


def _race(factory, user, attempts):
    barrier = threading.Barrier(attempts)

    def attempt():
        session = factory()
        try:
            barrier.wait()
            return admit(session, user, now=NOW)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        return list(pool.map(lambda _: attempt(), range(attempts)))


def _stored_count(factory, user_id):
    session = factory()
    try:
        row = session.query(DailyPostCounter).filter(DailyPostCounter.user_id == user_id).one()
        return row.count
    finally:
        session.close()


def test_simultaneous_first_posts_admit_exactly_limit(shared_sessions):
    user = _make_user(shared_sessions, friends_count=3)

    results = _race(shared_sessions, user, attempts=8)

    allowed = [r for r in results if r.allowed]
    denied = [r for r in results if not r.allowed]
    assert len(allowed) == 3
    assert len(denied) == 5
    assert all(r.reason == REASON_LIMIT_REACHED for r in denied)
    assert sorted(r.count for r in allowed) == [1, 2, 3]
    assert _stored_count(shared_sessions, user.id) == 3


def test_single_post_limit_under_contention(shared_sessions):
    user = _make_user(shared_sessions, friends_count=1)

    results = _race(shared_sessions, user, attempts=6)

    assert sum(1 for r in results if r.allowed) == 1
    assert _stored_count(shared_sessions, user.id) == 1


def test_counter_for_unknown_user_is_a_store_fault(shared_sessions):
    session = shared_sessions()
    try:
        with pytest.raises(IntegrityError):
            counter_store.create_counter(session, 987654, "2026-03-01")
    finally:
        session.close()


def test_simultaneous_password_resets_claim_once(shared_sessions):
    user = _make_user(shared_sessions, friends_count=0)
    account = SimpleNamespace(id=user.id, hashed_password=None, last_password_reset_at=None)
    attempts = 4
    barrier = threading.Barrier(attempts)

    def attempt(n):
        session = shared_sessions()
        try:
            barrier.wait()
            auth_service.claim_password_reset(account, f"Password{chr(65 + n)}x", session)
            return True
        except AuthServiceError:
            return False
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=attempts) as pool:
        outcomes = list(pool.map(attempt, range(attempts)))

    assert outcomes.count(True) == 1
