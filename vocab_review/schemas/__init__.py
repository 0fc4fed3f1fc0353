"""Pydantic schemas package."""

from vocab_review.schemas.review import (
    CardSnapshot,
    ForecastDay,
    ReviewStats,
    SessionSummary,
)

__all__ = [
    "CardSnapshot",
    "ForecastDay",
    "ReviewStats",
    "SessionSummary",
]
