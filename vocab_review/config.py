"""Application configuration management."""
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    PROJECT_NAME: str = "Vocabulary Review Engine"

    DATABASE_URL: str = Field(
        "sqlite:///./vocab_review.db",
        description="SQLAlchemy database URL backing the card store",
    )
    SQL_ECHO: bool = Field(False, description="Echo SQL statements to the log")

    SRS_TIMEZONE: str = Field(
        "UTC",
        description="IANA timezone whose calendar day defines 'today' for due dates",
    )
    DUE_WINDOW_DAYS: int = Field(7, ge=1, description="Length of the 'due this week' window")
    REVIEW_SESSION_MAX_CARDS: int = Field(
        20, ge=1, description="Default number of cards pulled into a review session"
    )

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("SRS_TIMEZONE")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.SRS_TIMEZONE)


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()
