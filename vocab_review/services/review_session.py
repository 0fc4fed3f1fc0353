"""Bounded review sessions over the due queue."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from loguru import logger

from vocab_review.core.srs.sm2 import Card, Quality
from vocab_review.schemas.review import SessionSummary
from vocab_review.utils.exceptions import SessionError

if TYPE_CHECKING:
    from vocab_review.services.engine import ReviewEngine


class ReviewSession:
    """A fixed batch of due cards graded one after another.

    The batch is taken when the session starts; cards graded Again are due
    tomorrow and are not re-queued within the session.
    """

    def __init__(self, engine: "ReviewEngine", *, max_cards: int = 20) -> None:
        if max_cards < 1:
            raise ValueError("max_cards must be at least 1")
        self.engine = engine
        self.cards: list[Card] = engine.next_due(max_cards)
        self.position = 0
        self.counts = {quality: 0 for quality in Quality}
        logger.debug(f"Review session started with {len(self.cards)} cards")

    @property
    def current(self) -> Card | None:
        if self.is_complete:
            return None
        return self.cards[self.position]

    @property
    def is_complete(self) -> bool:
        return self.position >= len(self.cards)

    @property
    def remaining(self) -> int:
        return len(self.cards) - self.position

    def grade(self, quality: Any) -> Card:
        """Grade the current card and advance to the next one."""

        if self.is_complete:
            raise SessionError("Review session is already complete", {"reviewed": self.position})
        quality = Quality.coerce(quality)
        updated = self.engine.grade_review(self.cards[self.position].identity, quality)
        self.counts[quality] += 1
        self.position += 1
        if self.is_complete:
            logger.info(f"Review session complete: {self.summary().model_dump()}")
        return updated

    def summary(self) -> SessionSummary:
        total = sum(self.counts.values())
        passed = self.counts[Quality.GOOD] + self.counts[Quality.EASY]
        success_rate = (100 * passed + total // 2) // total if total else 0
        return SessionSummary(
            again=self.counts[Quality.AGAIN],
            hard=self.counts[Quality.HARD],
            good=self.counts[Quality.GOOD],
            easy=self.counts[Quality.EASY],
            total_reviewed=total,
            remaining=self.remaining,
            success_rate=success_rate,
        )
