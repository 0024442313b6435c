"""Tests for eventrec.models dataclasses."""

from datetime import datetime, timedelta, timezone

import pytest

from eventrec.models import (
    InteractionRecord,
    MatchReasons,
    ReactionType,
    ScoredCandidate,
    as_utc,
)

from conftest import NOW, make_event


class TestEventRecord:
    def test_basic_creation(self) -> None:
        event = make_event(7, genre="jazz", tags=frozenset({"night", "club"}))
        assert event.event_id == 7
        assert event.genre == "jazz"
        assert event.tags == frozenset({"night", "club"})

    def test_tags_are_normalised_to_frozenset(self) -> None:
        event = make_event(tags=["rock", "live", "rock"])
        assert event.tags == frozenset({"rock", "live"})

    def test_naive_date_is_taken_as_utc(self) -> None:
        event = make_event(date=datetime(2024, 7, 1, 20, 30))
        assert event.date.tzinfo == timezone.utc
        assert event.hour == 20

    def test_hour_is_reported_in_utc(self) -> None:
        plus_two = timezone(timedelta(hours=2))
        event = make_event(date=datetime(2024, 7, 1, 22, 0, tzinfo=plus_two))
        assert event.hour == 20

    @pytest.mark.parametrize("duration", [0, -30])
    def test_non_positive_duration_rejected(self, duration: int) -> None:
        with pytest.raises(ValueError):
            make_event(duration=duration)

    def test_is_immutable(self) -> None:
        event = make_event()
        with pytest.raises(AttributeError):
            event.genre = "jazz"  # type: ignore[misc]

    def test_equality(self) -> None:
        assert make_event(1) == make_event(1)
        assert make_event(1) != make_event(2)


class TestInteractionRecord:
    def test_occurred_at_normalised(self) -> None:
        record = InteractionRecord(1, 1, 1, "love", datetime(2024, 6, 1, 12, 0))
        assert record.occurred_at == NOW

    def test_unknown_reaction_kept_verbatim(self) -> None:
        record = InteractionRecord(1, 1, 1, "sparkle", NOW)
        assert record.reaction_type == "sparkle"


class TestReactionType:
    def test_values(self) -> None:
        assert ReactionType.LOVE == "love"
        assert ReactionType.LIKE == "like"

    def test_is_string(self) -> None:
        assert isinstance(ReactionType.CLAP, str)


class TestScoredCandidate:
    def test_default_match_reasons_all_false(self) -> None:
        candidate = ScoredCandidate(event=make_event(), recommendation_score=1.0)
        assert candidate.match_reasons == MatchReasons()
        assert not any(vars(candidate.match_reasons).values())


def test_as_utc_converts_offsets() -> None:
    minus_five = timezone(timedelta(hours=-5))
    assert as_utc(datetime(2024, 6, 1, 7, 0, tzinfo=minus_five)) == NOW
