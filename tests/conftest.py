"""Pytest fixtures for review engine tests."""

from collections.abc import Generator
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from vocab_review.db.base import Base
from vocab_review.db.repository import SqlCardRepository
from vocab_review.db.session import create_db_engine, init_db, make_session_factory
from vocab_review.services.card_store import CardStore
from vocab_review.services.engine import ReviewEngine
from vocab_review.utils.exceptions import PersistenceError


class FrozenClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, *, days: int = 0, hours: int = 0) -> None:
        self.now = self.now + timedelta(days=days, hours=hours)


class FlakyPersistence:
    """Delegates to a real repository but can be told to fail writes."""

    def __init__(self, inner: SqlCardRepository) -> None:
        self.inner = inner
        self.fail_writes = False

    def load_all(self):
        return self.inner.load_all()

    def save_all(self, cards) -> None:
        if self.fail_writes:
            raise PersistenceError("disk unavailable")
        self.inner.save_all(cards)

    def save(self, card) -> None:
        if self.fail_writes:
            raise PersistenceError("disk unavailable")
        self.inner.save(card)


@pytest.fixture()
def db_engine() -> Generator[Engine, None, None]:
    engine = create_db_engine("sqlite://")
    init_db(engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def session_factory(db_engine) -> sessionmaker:
    return make_session_factory(db_engine)


@pytest.fixture()
def repository(session_factory) -> SqlCardRepository:
    return SqlCardRepository(session_factory)


@pytest.fixture()
def flaky_persistence(repository) -> FlakyPersistence:
    return FlakyPersistence(repository)


@pytest.fixture()
def card_store(repository) -> CardStore:
    store = CardStore(repository)
    store.load()
    return store


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock(datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc))


@pytest.fixture()
def review_engine(repository, clock) -> ReviewEngine:
    return ReviewEngine.from_persistence(repository, clock=clock)
