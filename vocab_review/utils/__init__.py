"""Utility helpers package."""

from vocab_review.utils.exceptions import (
    CardNotFoundError,
    InvalidQualityError,
    PersistenceError,
    SessionError,
    VocabReviewError,
)

__all__ = [
    "CardNotFoundError",
    "InvalidQualityError",
    "PersistenceError",
    "SessionError",
    "VocabReviewError",
]
