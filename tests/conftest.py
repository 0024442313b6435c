"""Shared pytest fixtures for all recommender tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from eventrec.models import EventRecord, HistoryItem, InteractionRecord
from eventrec.ranker import RecommendationRanker
from eventrec.stores.memory import InMemoryStore


NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_event(event_id: int = 1, **overrides) -> EventRecord:
    """Return an upcoming rock concert, with any field overridden."""
    fields = dict(
        event_id=event_id,
        title=f"Event {event_id}",
        genre="rock",
        event_type="concert",
        artist="The Rock Legends",
        environment="arena",
        tags=frozenset(),
        date=NOW + timedelta(days=3),
        duration=120,
        is_live=False,
    )
    fields.update(overrides)
    return EventRecord(**fields)


def make_history_item(
    event: EventRecord | None,
    reaction_type: str = "like",
    days_ago: float = 0.0,
    event_id: int | None = None,
    interaction_id: int = 1,
    user_id: int = 1,
) -> HistoryItem:
    interaction = InteractionRecord(
        interaction_id=interaction_id,
        user_id=user_id,
        event_id=event.event_id if event is not None else event_id,
        reaction_type=reaction_type,
        occurred_at=NOW - timedelta(days=days_ago),
    )
    return HistoryItem(interaction=interaction, event=event)


def make_ranker(store: InMemoryStore, **kwargs) -> RecommendationRanker:
    return RecommendationRanker(
        event_store=store,
        interaction_store=store,
        user_store=store,
        clock=lambda: NOW,
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Event fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def past_rock_concert() -> EventRecord:
    return make_event(
        100,
        title="Rock Night (past)",
        date=NOW - timedelta(days=10),
        tags=frozenset({"rock", "live"}),
    )


@pytest.fixture
def upcoming_events() -> list[EventRecord]:
    """Six upcoming events spanning several genres, types and venues."""
    return [
        make_event(1, title="Rock Legends Reunion", tags=frozenset({"rock", "live"})),
        make_event(
            2,
            title="Jazz in the Virtual Club",
            genre="jazz",
            artist="The Virtual Jazz Quartet",
            environment="club",
            tags=frozenset({"jazz", "night"}),
        ),
        make_event(
            3,
            title="Future Visions",
            genre="digital art",
            event_type="exhibition",
            artist="Various Digital Artists",
            environment="gallery",
            duration=90,
        ),
        make_event(
            4,
            title="Stadium Rock Anthems",
            artist="Arena Kings",
            tags=frozenset({"rock"}),
            duration=150,
        ),
        make_event(
            5,
            title="Classical Symphony",
            genre="classical",
            artist="Virtual Symphony Orchestra",
            environment="outdoor_amphitheater",
        ),
        make_event(
            6,
            title="Neon Dreams",
            genre="electronic",
            artist="Digital Pulse Collective",
            environment="stadium",
            duration=180,
        ),
    ]


# ---------------------------------------------------------------------------
# Store fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store(upcoming_events, past_rock_concert) -> InMemoryStore:
    """Store with three users, six upcoming events and one past event.

    * user 1 ("rocker") loved the past rock concert one day ago.
    * user 2 ("newcomer") has no history.
    * user 3 ("fan") reacted to upcoming events 2 and 3 (popularity signal).
    """
    s = InMemoryStore()
    s.add_user("rocker", user_id=1)
    s.add_user("newcomer", user_id=2)
    s.add_user("fan", user_id=3)
    for event in upcoming_events:
        s.add_event(event)
    s.add_event(past_rock_concert)

    s.add_interaction(1, past_rock_concert.event_id, "love", NOW - timedelta(days=1))
    s.add_interaction(3, 2, "clap", NOW - timedelta(days=2))
    s.add_interaction(3, 3, "like", NOW - timedelta(days=2))
    s.add_interaction(3, 3, "wow", NOW - timedelta(days=1))
    return s


@pytest.fixture
def ranker(store) -> RecommendationRanker:
    return make_ranker(store)
