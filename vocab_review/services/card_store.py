"""In-memory card store with write-through persistence."""
from __future__ import annotations

from datetime import date
from typing import Iterator

from loguru import logger

from vocab_review.core.srs.sm2 import Card
from vocab_review.db.repository import CardPersistence
from vocab_review.utils.exceptions import CardNotFoundError, PersistenceError


class CardStore:
    """Authoritative mapping from vocabulary identity to its card.

    Cards are immutable, so replacing a record is a single reference swap and
    readers never observe a half-written card. Every write reaches the
    persistence collaborator before the swap; when it fails the previous
    record stays in place.
    """

    def __init__(self, persistence: CardPersistence) -> None:
        self.persistence = persistence
        self._cards: dict[str, Card] = {}

    def load(self) -> int:
        """Replace the in-memory contents with the persisted cards."""

        self._cards = dict(self.persistence.load_all())
        logger.info(f"Card store loaded {len(self._cards)} cards")
        return len(self._cards)

    def upsert_new(self, identity: str, lesson_day: int, today: date) -> tuple[Card, bool]:
        """Create a card for ``identity`` unless one already exists.

        Returns the stored card and whether it was created.
        """
        existing = self._cards.get(identity)
        if existing is not None:
            return existing, False

        card = Card.new(identity, lesson_day, today)
        self.save(card)
        return card, True

    def get(self, identity: str) -> Card:
        try:
            return self._cards[identity]
        except KeyError:
            raise CardNotFoundError(identity) from None

    def save(self, card: Card) -> Card:
        """Persist ``card`` and then make it the stored record.

        On :class:`PersistenceError` the previous record (or its absence)
        is left in place, so the caller may simply retry the operation.
        """
        try:
            self.persistence.save(card)
        except PersistenceError:
            logger.warning(f"Card {card.identity!r} not saved; previous record kept")
            raise
        self._cards[card.identity] = card
        return card

    def flush(self) -> int:
        """Write every card in memory back through ``save_all``."""

        if not self._cards:
            return 0
        self.persistence.save_all(dict(self._cards))
        logger.info(f"Flushed {len(self._cards)} cards")
        return len(self._cards)

    def all(self) -> Iterator[Card]:
        """Iterate over a snapshot of all cards in insertion order."""

        return iter(list(self._cards.values()))

    def __len__(self) -> int:
        return len(self._cards)

    def __contains__(self, identity: object) -> bool:
        return identity in self._cards
