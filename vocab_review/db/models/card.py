"""Persisted review card model."""
from __future__ import annotations

from datetime import timezone

from sqlalchemy import Column, Date, DateTime, Float, Integer, String
from sqlalchemy.sql import func

from vocab_review.core.srs.sm2 import DEFAULT_EASE_FACTOR, Card
from vocab_review.db.base import Base

CARD_SCHEMA_VERSION = 1


class ReviewCardRecord(Base):
    """One row per vocabulary item holding its SM-2 scheduling state."""

    __tablename__ = "review_cards"

    identity = Column(String(255), primary_key=True)
    lesson_day = Column(Integer, nullable=False, default=0)

    repetitions = Column(Integer, nullable=False, default=0)
    ease_factor = Column(Float, nullable=False, default=DEFAULT_EASE_FACTOR)
    interval_days = Column(Integer, nullable=False, default=0)

    last_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    next_review_at = Column(Date, nullable=False, index=True)
    created_on = Column(Date, nullable=False)

    # Insertion order, used to break ties between cards due on the same day
    position = Column(Integer, nullable=False, index=True)
    schema_version = Column(Integer, nullable=False, default=CARD_SCHEMA_VERSION)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    @classmethod
    def from_card(cls, card: Card, position: int) -> "ReviewCardRecord":
        record = cls(identity=card.identity, position=position)
        record.apply_card(card)
        return record

    def apply_card(self, card: Card) -> None:
        """Copy scheduling fields from a card onto this row."""

        self.lesson_day = card.lesson_day
        self.repetitions = card.repetitions
        self.ease_factor = card.ease_factor
        self.interval_days = card.interval_days
        self.last_reviewed_at = card.last_reviewed_at
        self.next_review_at = card.next_review_at
        self.created_on = card.created_on
        self.schema_version = CARD_SCHEMA_VERSION

    def to_card(self) -> Card:
        last_reviewed_at = self.last_reviewed_at
        # SQLite drops the offset; values are always written in UTC.
        if last_reviewed_at is not None and last_reviewed_at.tzinfo is None:
            last_reviewed_at = last_reviewed_at.replace(tzinfo=timezone.utc)
        return Card(
            identity=self.identity,
            lesson_day=self.lesson_day,
            repetitions=self.repetitions,
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            last_reviewed_at=last_reviewed_at,
            next_review_at=self.next_review_at,
            created_on=self.created_on,
        )

    def __repr__(self):
        return f"<ReviewCardRecord({self.identity!r}, reps={self.repetitions}, due={self.next_review_at})>"
