"""Pydantic models returned to view layers."""
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

from vocab_review.core.srs.sm2 import Card


class CardSnapshot(BaseModel):
    """Read-only view of a card including its derived lifecycle state."""

    identity: str
    lesson_day: int
    repetitions: int = Field(..., ge=0)
    ease_factor: float = Field(..., ge=1.3)
    interval_days: int = Field(..., ge=0)
    last_reviewed_at: datetime | None = None
    next_review_at: date
    state: str

    @classmethod
    def from_card(cls, card: Card) -> "CardSnapshot":
        return cls(
            identity=card.identity,
            lesson_day=card.lesson_day,
            repetitions=card.repetitions,
            ease_factor=card.ease_factor,
            interval_days=card.interval_days,
            last_reviewed_at=card.last_reviewed_at,
            next_review_at=card.next_review_at,
            state=card.lifecycle_state.value,
        )


class ReviewStats(BaseModel):
    """Aggregate review counts for dashboards."""

    total_cards: int = 0
    due_today: int = 0
    due_this_week: int = 0
    new_cards: int = 0
    learning_cards: int = 0
    mastered_cards: int = 0
    progress_percent: int = Field(0, ge=0, le=100)


class ForecastDay(BaseModel):
    """Number of cards falling due on a given day."""

    day: date
    count: int


class SessionSummary(BaseModel):
    """Per-grade tallies for a finished or running review session."""

    again: int = 0
    hard: int = 0
    good: int = 0
    easy: int = 0
    total_reviewed: int = 0
    remaining: int = 0
    success_rate: int = Field(0, ge=0, le=100)
