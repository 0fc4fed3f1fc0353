"""Durable storage of review cards."""
from __future__ import annotations

from typing import Mapping, Protocol

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from vocab_review.core.srs.sm2 import Card
from vocab_review.db.models.card import ReviewCardRecord
from vocab_review.db.session import session_scope
from vocab_review.utils.exceptions import PersistenceError


class CardPersistence(Protocol):
    """Load/save contract the card store depends on."""

    def load_all(self) -> dict[str, Card]:
        ...

    def save_all(self, cards: Mapping[str, Card]) -> None:
        ...

    def save(self, card: Card) -> None:
        ...


class SqlCardRepository:
    """Card persistence backed by a SQLAlchemy session factory.

    Every call runs in its own transaction, so a failed write leaves the
    previously stored rows untouched.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self.session_factory = session_factory

    def load_all(self) -> dict[str, Card]:
        """Return every stored card keyed by identity, in insertion order."""

        try:
            with session_scope(self.session_factory) as db:
                stmt = select(ReviewCardRecord).order_by(ReviewCardRecord.position.asc())
                cards = {record.identity: record.to_card() for record in db.scalars(stmt)}
        except SQLAlchemyError as e:
            logger.error(f"Failed to load review cards: {e}")
            raise PersistenceError("Could not load review cards", {"error": str(e)}) from e
        logger.debug(f"Loaded {len(cards)} review cards")
        return cards

    def save_all(self, cards: Mapping[str, Card]) -> None:
        """Upsert all given cards in a single transaction."""

        if not cards:
            return
        try:
            with session_scope(self.session_factory) as db:
                next_position = self._next_position(db)
                for card in cards.values():
                    next_position = self._upsert(db, card, next_position)
        except SQLAlchemyError as e:
            logger.error(f"Failed to save {len(cards)} review cards: {e}")
            raise PersistenceError(
                "Could not save review cards", {"count": len(cards), "error": str(e)}
            ) from e

    def save(self, card: Card) -> None:
        try:
            with session_scope(self.session_factory) as db:
                self._upsert(db, card, self._next_position(db))
        except SQLAlchemyError as e:
            logger.error(f"Failed to save review card {card.identity!r}: {e}")
            raise PersistenceError(
                "Could not save review card", {"identity": card.identity, "error": str(e)}
            ) from e

    @staticmethod
    def _next_position(db: Session) -> int:
        current = db.scalar(select(func.max(ReviewCardRecord.position)))
        return 0 if current is None else current + 1

    @staticmethod
    def _upsert(db: Session, card: Card, next_position: int) -> int:
        record = db.get(ReviewCardRecord, card.identity)
        if record is None:
            db.add(ReviewCardRecord.from_card(card, position=next_position))
            return next_position + 1
        record.apply_card(card)
        return next_position
