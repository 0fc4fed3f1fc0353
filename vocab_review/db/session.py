"""Database session and engine management."""
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from vocab_review.config import Settings, get_settings
from vocab_review.db.base import Base
from vocab_review.db import models  # noqa: F401  # Imported for side effects


def create_db_engine(url: str | None = None, *, echo: bool | None = None) -> Engine:
    """Create an engine for the card store.

    In-memory SQLite URLs share a single connection so every session sees
    the same database.
    """
    settings: Settings = get_settings()
    url = url or settings.DATABASE_URL
    echo = settings.SQL_ECHO if echo is None else echo

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(url, echo=echo, pool_pre_ping=True, pool_recycle=3600)


def init_db(engine: Engine) -> None:
    """Create the card tables if they do not exist yet."""

    Base.metadata.create_all(bind=engine)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
        expire_on_commit=False,  # Keep objects usable after commit
    )


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Yield a session that commits on success and rolls back on error."""
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
