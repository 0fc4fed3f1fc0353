"""Service layer package."""

from vocab_review.services.card_store import CardStore
from vocab_review.services.engine import ReviewEngine
from vocab_review.services.review_session import ReviewSession

__all__ = [
    "CardStore",
    "ReviewEngine",
    "ReviewSession",
]
