"""Database models package."""
from vocab_review.db.models.card import CARD_SCHEMA_VERSION, ReviewCardRecord

__all__ = [
    "CARD_SCHEMA_VERSION",
    "ReviewCardRecord",
]
