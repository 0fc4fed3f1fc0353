"""Custom exception classes raised by the review engine."""
from typing import Any, Dict, Optional


class VocabReviewError(Exception):
    """Base exception for the review engine."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class CardNotFoundError(VocabReviewError, LookupError):
    """An operation referenced an identity with no card."""

    def __init__(self, identity: str):
        super().__init__(f"No card registered for {identity!r}", {"identity": identity})
        self.identity = identity


class InvalidQualityError(VocabReviewError, ValueError):
    """A review grade outside Again/Hard/Good/Easy."""

    def __init__(self, value: Any):
        super().__init__(f"Invalid review quality: {value!r}", {"value": value})
        self.value = value


class PersistenceError(VocabReviewError):
    """The durable store could not load or save cards."""
    pass


class SessionError(VocabReviewError):
    """Review session related errors."""
    pass
