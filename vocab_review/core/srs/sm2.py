"""SM-2 spaced repetition scheduler adapted to a four-grade review scale."""
from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Any

from vocab_review.utils.exceptions import InvalidQualityError

# SM-2 defaults
MIN_EASE_FACTOR = 1.3
DEFAULT_EASE_FACTOR = 2.5

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
LAPSE_INTERVAL_DAYS = 1

HARD_MAX_MULTIPLIER = 1.2
EASY_BONUS_DAYS = 1

# Review cadence beyond three weeks counts as long-term retention.
MASTERY_INTERVAL_DAYS = 21

TZ = dt.timezone.utc


class Quality(IntEnum):
    """Learner's self-reported recall grade."""

    AGAIN = 0
    HARD = 1
    GOOD = 2
    EASY = 3

    @classmethod
    def coerce(cls, value: Any) -> "Quality":
        """Accept a Quality, its integer value or its name."""

        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise InvalidQualityError(value)
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise InvalidQualityError(value) from None
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise InvalidQualityError(value) from None
        raise InvalidQualityError(value)


# Position of each grade on SM-2's native 0-5 quality axis.
SM2_QUALITY = {
    Quality.AGAIN: 0,
    Quality.HARD: 3,
    Quality.GOOD: 4,
    Quality.EASY: 5,
}


class LifecycleState(str, Enum):
    """Where a card stands in learning, derived from its schedule."""

    NEW = "new"
    LEARNING = "learning"
    MASTERED = "mastered"


@dataclass(frozen=True, slots=True)
class Card:
    """Scheduling record for one vocabulary item."""

    identity: str
    lesson_day: int
    next_review_at: dt.date
    created_on: dt.date
    repetitions: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 0
    last_reviewed_at: dt.datetime | None = None

    @classmethod
    def new(cls, identity: str, lesson_day: int, today: dt.date) -> "Card":
        """Return a never-reviewed card that is due on ``today``."""

        return cls(
            identity=identity,
            lesson_day=lesson_day,
            next_review_at=today,
            created_on=today,
        )

    @property
    def lifecycle_state(self) -> LifecycleState:
        """Current lifecycle state; computed on every access, never stored."""

        return classify(self)

    def is_due(self, as_of: dt.date) -> bool:
        return self.next_review_at <= as_of


def classify(card: Card) -> LifecycleState:
    """Derive the lifecycle state from repetitions and interval."""

    if card.repetitions <= 0:
        return LifecycleState.NEW
    if card.interval_days >= MASTERY_INTERVAL_DAYS:
        return LifecycleState.MASTERED
    return LifecycleState.LEARNING


def update_ease_factor(ease_factor: float, quality: Quality) -> float:
    """Update ease factor based on response quality.

    SM-2 formula: EF = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    Where q is the grade mapped onto the 0-5 SM-2 scale.
    """
    q = SM2_QUALITY[quality]

    new_ef = ease_factor + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    return max(MIN_EASE_FACTOR, new_ef)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def next_interval(repetitions: int, interval_days: int, ease_factor: float, quality: Quality) -> int:
    """Return the interval in days after a passing review.

    ``repetitions`` is the count after this review and ``ease_factor`` the
    already updated value.
    """
    if repetitions == 1:
        interval = FIRST_INTERVAL_DAYS
    elif repetitions == 2:
        interval = SECOND_INTERVAL_DAYS
    else:
        multiplier = ease_factor
        if quality == Quality.HARD:
            multiplier = min(multiplier, HARD_MAX_MULTIPLIER)
        interval = _round_half_up(interval_days * multiplier)

    if quality == Quality.EASY:
        interval += EASY_BONUS_DAYS
    return max(1, interval)


def _ensure_timezone(now: dt.datetime) -> dt.datetime:
    if now.tzinfo is None:
        return now.replace(tzinfo=TZ)
    return now


def review_card(card: Card, quality: Any, now: dt.datetime, tz: dt.tzinfo = TZ) -> Card:
    """Main entry point for reviewing a card.

    Args:
        card: Current scheduling record (left untouched)
        quality: Grade as ``Quality``, its integer value or its name
        now: Review time; naive values are taken as UTC
        tz: Timezone whose calendar day the due date is expressed in

    Returns:
        A new Card with updated repetitions, ease factor, interval and dates.
    """
    quality = Quality.coerce(quality)
    now = _ensure_timezone(now).astimezone(TZ)
    ease_factor = update_ease_factor(card.ease_factor or DEFAULT_EASE_FACTOR, quality)

    if quality == Quality.AGAIN:
        repetitions = 0
        interval_days = LAPSE_INTERVAL_DAYS
    else:
        repetitions = card.repetitions + 1
        interval_days = next_interval(repetitions, card.interval_days, ease_factor, quality)

    review_day = now.astimezone(tz).date()
    return replace(
        card,
        repetitions=repetitions,
        ease_factor=ease_factor,
        interval_days=interval_days,
        last_reviewed_at=now,
        next_review_at=review_day + dt.timedelta(days=interval_days),
    )


def reset_card(card: Card, today: dt.date) -> Card:
    """Return the card as if it had just been introduced on ``today``."""

    return Card.new(card.identity, card.lesson_day, today)
