"""Consumer-facing review engine.

The engine ties the card store, the SM-2 scheduler and the query layer
together behind the calls view layers make: registering words when a lesson
is completed, grading reviews and reading due lists and statistics.

Typical usage::

    with ReviewEngine.from_settings() as engine:
        engine.register_lesson(3, ["bonjour", "merci"])
        for card in engine.next_due(20):
            engine.grade_review(card.identity, Quality.GOOD)
"""
from __future__ import annotations

from datetime import date, datetime, timezone, tzinfo
from typing import Any, Callable, Iterable

from loguru import logger
from sqlalchemy.engine import Engine

from vocab_review.config import Settings, get_settings
from vocab_review.core.srs import sm2
from vocab_review.core.srs.sm2 import Card, Quality
from vocab_review.db.repository import CardPersistence, SqlCardRepository
from vocab_review.db.session import create_db_engine, init_db, make_session_factory
from vocab_review.schemas.review import CardSnapshot, ForecastDay, ReviewStats
from vocab_review.services import queries
from vocab_review.services.card_store import CardStore
from vocab_review.services.review_session import ReviewSession


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReviewEngine:
    """Explicitly owned spaced-repetition engine for a single learner."""

    def __init__(
        self,
        store: CardStore,
        *,
        tz: tzinfo = timezone.utc,
        clock: Callable[[], datetime] | None = None,
        window_days: int = queries.DEFAULT_WINDOW_DAYS,
        session_max_cards: int = 20,
        db_engine: Engine | None = None,
    ) -> None:
        self.store = store
        self.tz = tz
        self.clock = clock or _utcnow
        self.window_days = window_days
        self.session_max_cards = session_max_cards
        self._db_engine = db_engine

    @classmethod
    def from_persistence(cls, persistence: CardPersistence, **kwargs: Any) -> "ReviewEngine":
        """Build an engine over ``persistence`` and load its cards."""

        store = CardStore(persistence)
        store.load()
        return cls(store, **kwargs)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> "ReviewEngine":
        """Open the database named in settings and load every card."""

        settings = settings or get_settings()
        db_engine = create_db_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
        try:
            init_db(db_engine)
            repository = SqlCardRepository(make_session_factory(db_engine))
            return cls.from_persistence(
                repository,
                tz=settings.timezone,
                clock=clock,
                window_days=settings.DUE_WINDOW_DAYS,
                session_max_cards=settings.REVIEW_SESSION_MAX_CARDS,
                db_engine=db_engine,
            )
        except Exception:
            db_engine.dispose()
            raise

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def close(self) -> None:
        """Release the database engine.

        Saves are committed as they happen, so closing never writes and
        cannot replace an exception raised inside a ``with`` block.
        """
        if self._db_engine is not None:
            self._db_engine.dispose()
            self._db_engine = None

    def __enter__(self) -> "ReviewEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def flush(self) -> int:
        """Rewrite every card to storage, returning how many were written."""

        return self.store.flush()

    def now(self) -> datetime:
        return self.clock()

    def today(self) -> date:
        """Calendar day in the engine's timezone."""

        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now.astimezone(self.tz).date()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def register_card(self, identity: str, lesson_day: int) -> Card:
        """Introduce a vocabulary item; repeated calls leave progress intact."""

        if not isinstance(identity, str) or not identity.strip():
            raise ValueError("identity must be a non-empty string")
        card, created = self.store.upsert_new(identity, lesson_day, self.today())
        if created:
            logger.info(f"Registered card {identity!r} from lesson {lesson_day}")
        return card

    def register_lesson(self, lesson_day: int, identities: Iterable[str]) -> list[Card]:
        """Register every word taught in a lesson, returning the new cards."""

        created: list[Card] = []
        for identity in identities:
            if identity in self.store:
                continue
            created.append(self.register_card(identity, lesson_day))
        logger.info(f"Lesson {lesson_day} completed with {len(created)} new cards")
        return created

    def grade_review(self, identity: str, quality: Any) -> Card:
        """Apply a review grade and return the updated card."""

        quality = Quality.coerce(quality)
        card = self.store.get(identity)
        updated = sm2.review_card(card, quality, self.now(), self.tz)
        self.store.save(updated)
        logger.info(
            f"Reviewed {identity!r} as {quality.name}: interval {card.interval_days}->"
            f"{updated.interval_days}d, ease {card.ease_factor:.2f}->{updated.ease_factor:.2f}, "
            f"due {updated.next_review_at.isoformat()}"
        )
        return updated

    def reset_card(self, identity: str) -> Card:
        """Forget all progress on a card so it is due again today."""

        card = sm2.reset_card(self.store.get(identity), self.today())
        self.store.save(card)
        logger.info(f"Reset card {identity!r}")
        return card

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_card(self, identity: str) -> Card:
        return self.store.get(identity)

    def snapshot(self, identity: str) -> CardSnapshot:
        return CardSnapshot.from_card(self.store.get(identity))

    def due_now(self, as_of: date | None = None) -> list[Card]:
        return queries.due_now(self.store.all(), as_of or self.today())

    def due_within(
        self,
        days: int,
        as_of: date | None = None,
        *,
        include_overdue: bool = False,
    ) -> list[Card]:
        return queries.due_within(
            self.store.all(), days, as_of or self.today(), include_overdue=include_overdue
        )

    def next_due(self, limit: int, as_of: date | None = None) -> list[Card]:
        """Up to ``limit`` due cards, most overdue first."""

        if limit < 0:
            raise ValueError("limit must be non-negative")
        return self.due_now(as_of)[:limit]

    def stats(self, as_of: date | None = None) -> ReviewStats:
        return queries.stats(self.store.all(), as_of or self.today(), window_days=self.window_days)

    def forecast(self, days: int | None = None, as_of: date | None = None) -> list[ForecastDay]:
        return queries.forecast(
            self.store.all(),
            self.window_days if days is None else days,
            as_of or self.today(),
        )

    def start_session(self, max_cards: int | None = None) -> ReviewSession:
        if max_cards is None:
            max_cards = self.session_max_cards
        return ReviewSession(self, max_cards=max_cards)
