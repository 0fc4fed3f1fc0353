"""Read-only projections over the card store."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from vocab_review.core.srs.sm2 import Card, LifecycleState, classify
from vocab_review.schemas.review import ForecastDay, ReviewStats

DEFAULT_WINDOW_DAYS = 7


def order_due(cards: Iterable[Card]) -> list[Card]:
    """Most overdue first; cards due the same day keep insertion order."""

    return sorted(cards, key=lambda card: card.next_review_at)


def due_now(cards: Iterable[Card], as_of: date) -> list[Card]:
    """Cards due on ``as_of`` or earlier. Overdue cards carry no penalty."""

    return order_due(card for card in cards if card.next_review_at <= as_of)


def _in_window(card: Card, start: date, end: date, include_overdue: bool) -> bool:
    if card.next_review_at >= end:
        return False
    return include_overdue or card.next_review_at >= start


def due_within(
    cards: Iterable[Card],
    days: int,
    as_of: date,
    *,
    include_overdue: bool = False,
) -> list[Card]:
    """Cards falling due in ``[as_of, as_of + days)``.

    The window includes today, so anything due today is also due this week.
    """
    if days < 0:
        raise ValueError("days must be non-negative")
    end = as_of + timedelta(days=days)
    return order_due(card for card in cards if _in_window(card, as_of, end, include_overdue))


def stats(
    cards: Iterable[Card],
    as_of: date,
    *,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> ReviewStats:
    """Aggregate totals, due counts and lifecycle counts in a single pass."""

    window_end = as_of + timedelta(days=window_days)
    state_counts = {state: 0 for state in LifecycleState}
    total = 0
    due_today = 0
    due_this_week = 0

    for card in cards:
        total += 1
        state_counts[classify(card)] += 1
        if card.next_review_at <= as_of:
            due_today += 1
        if _in_window(card, as_of, window_end, include_overdue=False):
            due_this_week += 1

    active = state_counts[LifecycleState.LEARNING] + state_counts[LifecycleState.MASTERED]
    progress_percent = (100 * active + total // 2) // total if total else 0

    return ReviewStats(
        total_cards=total,
        due_today=due_today,
        due_this_week=due_this_week,
        new_cards=state_counts[LifecycleState.NEW],
        learning_cards=state_counts[LifecycleState.LEARNING],
        mastered_cards=state_counts[LifecycleState.MASTERED],
        progress_percent=progress_percent,
    )


def forecast(cards: Iterable[Card], days: int, as_of: date) -> list[ForecastDay]:
    """Count of cards becoming due on each of the next ``days`` days."""

    if days < 0:
        raise ValueError("days must be non-negative")
    counts = {as_of + timedelta(days=offset): 0 for offset in range(days)}
    for card in cards:
        if card.next_review_at in counts:
            counts[card.next_review_at] += 1
    return [ForecastDay(day=day, count=count) for day, count in counts.items()]
