"""Tests for the consumer-facing review engine."""
from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest
from pydantic import ValidationError
from sqlalchemy import create_engine, text

from vocab_review.config import Settings
from vocab_review.core.srs.sm2 import MIN_EASE_FACTOR, Quality
from vocab_review.db.session import create_db_engine
from vocab_review.services import engine as engine_module
from vocab_review.services.engine import ReviewEngine
from vocab_review.utils.exceptions import (
    CardNotFoundError,
    InvalidQualityError,
    PersistenceError,
)

TODAY = date(2024, 3, 10)


def test_register_card_is_due_immediately(review_engine):
    card = review_engine.register_card("bonjour", 1)

    assert card.next_review_at == TODAY
    assert card.created_on == TODAY
    assert review_engine.due_now() == [card]


def test_register_card_twice_keeps_progress(review_engine, clock):
    review_engine.register_card("bonjour", 1)
    graded = review_engine.grade_review("bonjour", Quality.GOOD)
    clock.advance(days=3)

    again = review_engine.register_card("bonjour", 4)

    assert again == graded
    assert review_engine.get_card("bonjour").lesson_day == 1


def test_register_card_rejects_blank_identity(review_engine):
    with pytest.raises(ValueError):
        review_engine.register_card("   ", 1)


def test_register_lesson_returns_only_new_cards(review_engine):
    review_engine.register_card("chat", 1)

    created = review_engine.register_lesson(2, ["chat", "chien", "oiseau"])

    assert [card.identity for card in created] == ["chien", "oiseau"]
    assert review_engine.stats().total_cards == 3


def test_grade_unknown_word_fails_fast(review_engine):
    with pytest.raises(CardNotFoundError):
        review_engine.grade_review("inconnu", Quality.GOOD)


def test_invalid_grade_leaves_card_untouched(review_engine):
    card = review_engine.register_card("bonjour", 1)

    with pytest.raises(InvalidQualityError):
        review_engine.grade_review("bonjour", 7)

    assert review_engine.get_card("bonjour") == card


def test_grade_review_persists_result(review_engine, repository):
    review_engine.register_card("bonjour", 1)

    updated = review_engine.grade_review("bonjour", "again")

    assert updated.interval_days == 1
    assert updated.next_review_at == date(2024, 3, 11)
    assert repository.load_all()["bonjour"] == updated
    assert review_engine.due_now() == []
    assert review_engine.due_within(7) == [updated]


def test_full_learning_path_reaches_mastery(review_engine, clock):
    review_engine.register_card("bibliothèque", 3)

    schedule = []
    for _ in range(4):
        card = review_engine.grade_review("bibliothèque", Quality.GOOD)
        schedule.append(card.interval_days)
        clock.now = datetime.combine(card.next_review_at, clock.now.timetz())

    assert schedule == [1, 6, 15, 38]
    assert review_engine.stats().mastered_cards == 1


def test_mastery_flips_on_next_stats_call(review_engine):
    card = review_engine.register_card("fenêtre", 1)
    review_engine.store.save(replace(card, repetitions=3, interval_days=10, ease_factor=2.5))
    assert review_engine.stats().learning_cards == 1

    review_engine.grade_review("fenêtre", Quality.GOOD)

    stats = review_engine.stats()
    assert stats.mastered_cards == 1
    assert stats.learning_cards == 0
    assert review_engine.snapshot("fenêtre").state == "mastered"


def test_ease_factor_invariant_holds_across_reviews(review_engine):
    review_engine.register_card("difficile", 1)

    for _ in range(6):
        card = review_engine.grade_review("difficile", Quality.AGAIN)
        assert card.ease_factor >= MIN_EASE_FACTOR

    assert review_engine.get_card("difficile").ease_factor == MIN_EASE_FACTOR


def test_reset_card_makes_it_new_and_due_today(review_engine, clock):
    review_engine.register_card("oublier", 1)
    review_engine.grade_review("oublier", Quality.EASY)
    clock.advance(days=2)

    card = review_engine.reset_card("oublier")

    assert card.repetitions == 0
    assert card.next_review_at == date(2024, 3, 12)
    assert review_engine.stats(as_of=date(2024, 3, 12)).new_cards == 1


def test_next_due_orders_most_overdue_first(review_engine, clock):
    review_engine.register_lesson(1, ["un", "deux", "trois"])
    clock.advance(days=5)
    review_engine.register_lesson(2, ["quatre"])

    assert [card.identity for card in review_engine.next_due(3)] == ["un", "deux", "trois"]
    assert [card.identity for card in review_engine.next_due(10)] == ["un", "deux", "trois", "quatre"]


def test_forecast_defaults_to_window(review_engine):
    review_engine.register_card("demain", 1)
    review_engine.grade_review("demain", Quality.GOOD)

    forecast = review_engine.forecast()

    assert len(forecast) == 7
    assert forecast[1].count == 1


def test_today_follows_configured_timezone(repository):
    clock_value = datetime(2024, 3, 10, 20, 0, tzinfo=timezone.utc)
    engine = ReviewEngine.from_persistence(
        repository,
        tz=Settings(SRS_TIMEZONE="Asia/Tokyo").timezone,
        clock=lambda: clock_value,
    )

    card = engine.register_card("nuit", 1)

    assert engine.today() == date(2024, 3, 11)
    assert card.next_review_at == date(2024, 3, 11)


def test_failed_grade_leaves_card_unchanged_so_retry_counts_once(flaky_persistence, clock):
    engine = ReviewEngine.from_persistence(flaky_persistence, clock=clock)
    card = engine.register_card("pluie", 1)

    flaky_persistence.fail_writes = True
    with pytest.raises(PersistenceError):
        engine.grade_review("pluie", Quality.GOOD)

    assert engine.get_card("pluie") == card
    assert engine.stats().new_cards == 1

    flaky_persistence.fail_writes = False
    graded = engine.grade_review("pluie", Quality.GOOD)

    assert graded.repetitions == 1
    assert graded.interval_days == 1
    assert flaky_persistence.load_all()["pluie"] == graded


def test_flush_rewrites_cards(review_engine, repository):
    review_engine.register_lesson(1, ["neige", "vent"])

    assert review_engine.flush() == 2
    assert list(repository.load_all()) == ["neige", "vent"]


def test_engine_round_trip_through_database_file(tmp_path, clock):
    settings = Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'cards.db'}")

    with ReviewEngine.from_settings(settings, clock=clock) as engine:
        engine.register_lesson(1, ["soleil", "lune"])
        graded = engine.grade_review("lune", Quality.HARD)

    with ReviewEngine.from_settings(settings, clock=clock) as reopened:
        assert [card.identity for card in reopened.store.all()] == ["soleil", "lune"]
        assert reopened.get_card("lune") == graded


def test_unknown_timezone_is_rejected():
    with pytest.raises(ValidationError):
        Settings(SRS_TIMEZONE="Mars/Olympus_Mons")


def test_error_inside_with_block_propagates_and_closes(tmp_path, clock):
    settings = Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'cards.db'}")

    with pytest.raises(CardNotFoundError):
        with ReviewEngine.from_settings(settings, clock=clock) as engine:
            engine.grade_review("absent", Quality.GOOD)

    assert engine._db_engine is None


def test_failed_load_disposes_database_engine(tmp_path, clock, monkeypatch):
    url = f"sqlite:///{tmp_path / 'broken.db'}"
    broken = create_engine(url)
    with broken.begin() as conn:
        conn.execute(text("CREATE TABLE review_cards (identity VARCHAR PRIMARY KEY)"))
    broken.dispose()

    disposed = []

    def tracking_engine(*args, **kwargs):
        db_engine = create_db_engine(*args, **kwargs)
        dispose = db_engine.dispose

        def record_dispose(*dispose_args, **dispose_kwargs):
            disposed.append(db_engine)
            dispose(*dispose_args, **dispose_kwargs)

        monkeypatch.setattr(db_engine, "dispose", record_dispose)
        return db_engine

    monkeypatch.setattr(engine_module, "create_db_engine", tracking_engine)

    with pytest.raises(PersistenceError):
        ReviewEngine.from_settings(Settings(DATABASE_URL=url), clock=clock)

    assert len(disposed) == 1
