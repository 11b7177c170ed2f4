"""Pytest configuration and fixtures"""
import os

# Set test environment variables before poscart reads its settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CELERY_BROKER_URL", "memory://")
os.environ.setdefault("CELERY_RESULT_BACKEND", "cache+memory://")

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from poscart.data.database import make_engine, init_db
from poscart.services.cart_store import CartStore


class FakeClock:
    """Callable clock the store reads instead of the wall clock."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)

    def set(self, now: datetime):
        self.now = now


@pytest.fixture
def engine():
    """In-memory SQLite shared by every session of one test"""
    eng = make_engine("sqlite://", poolclass=StaticPool)
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 5, 17, 10, 30, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(db, clock):
    return CartStore(db, clock=clock)


@pytest.fixture
def active_cart(store):
    """Active cart named A"""
    return store.create("A")
