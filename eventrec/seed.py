"""Load users, events and interactions from a JSON seed document.

Seed documents make local development and demos possible without a
database.  Event and interaction timestamps may be absolute ISO 8601
strings or offsets relative to load time, so a seed file never goes stale::

    {
      "users": [{"id": 1, "username": "ana",
                 "preferences": {"genres": ["jazz"], "favoriteArtists": []}}],
      "events": [{"id": 1, "title": "Rock Legends Reunion", "genre": "rock",
                  "type": "concert", "artist": "The Rock Legends",
                  "environment": "arena", "tags": ["rock", "live"],
                  "daysFromNow": 1, "duration": 150, "isLive": true}],
      "interactions": [{"userId": 1, "eventId": 1, "type": "love",
                        "daysAgo": 3}]
    }
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping, Set
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from eventrec.models import EventRecord, ExplicitPreferences, as_utc
from eventrec.stores.memory import InMemoryStore

logger = logging.getLogger(__name__)


def load_seed(
    store: InMemoryStore,
    source: str | Path | Mapping[str, Any],
    now: datetime | None = None,
) -> None:
    """Populate *store* from a seed file path or an already-parsed mapping.

    Interactions are replayed without existence checks so that a seed can
    reproduce interactions whose event was later removed.

    Args:
        store: The store to populate.
        source: Path to a JSON file, or a mapping with the same shape.
        now: Reference time for relative offsets. Defaults to UTC now.

    Raises:
        ValueError: If a record is missing required fields or is malformed.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    now = as_utc(now)

    if isinstance(source, Mapping):
        document = source
    else:
        with open(source, encoding="utf-8") as fh:
            document = json.load(fh)

    for raw in document.get("users", []):
        prefs = raw.get("preferences")
        with _required_fields("user", raw):
            username = raw["username"]
        store.add_user(
            username=username,
            preferences=_parse_preferences(prefs) if prefs is not None else None,
            user_id=raw.get("id"),
        )

    events = document.get("events", [])
    # Id-less events must not take an id claimed further down the document.
    explicit_ids = {int(raw["id"]) for raw in events if "id" in raw}
    for raw in events:
        store.add_event(_parse_event(raw, store, now, explicit_ids))

    for raw in document.get("interactions", []):
        with _required_fields("interaction", raw):
            user_id = int(raw["userId"])
            event_id = int(raw["eventId"])
        store.add_interaction(
            user_id=user_id,
            event_id=event_id,
            reaction_type=raw.get("type", "view"),
            occurred_at=_parse_instant(raw, now, past_key="daysAgo"),
            validate=False,
        )

    logger.info(
        "Seeded store: %d user(s), %d event(s), %d interaction(s).",
        len(document.get("users", [])),
        len(document.get("events", [])),
        len(document.get("interactions", [])),
    )


def _parse_preferences(raw: Mapping[str, Any]) -> ExplicitPreferences:
    return ExplicitPreferences(
        genres=list(raw.get("genres", [])),
        favorite_artists=list(raw.get("favoriteArtists", [])),
    )


@contextmanager
def _required_fields(kind: str, raw: Mapping[str, Any]) -> Iterator[None]:
    try:
        yield
    except KeyError as exc:
        raise ValueError(f"Seed {kind} is missing field {exc.args[0]!r}: {raw!r}") from exc


def _free_event_id(store: InMemoryStore, taken: Set[int]) -> int:
    event_id = store.next_event_id()
    while event_id in taken:
        event_id = store.next_event_id()
    return event_id


def _parse_event(
    raw: Mapping[str, Any],
    store: InMemoryStore,
    now: datetime,
    taken: Set[int],
) -> EventRecord:
    with _required_fields("event", raw):
        return EventRecord(
            event_id=int(raw["id"]) if "id" in raw else _free_event_id(store, taken),
            title=raw["title"],
            description=raw.get("description", ""),
            genre=raw["genre"],
            event_type=raw["type"],
            artist=raw["artist"],
            environment=raw["environment"],
            tags=frozenset(raw.get("tags") or ()),
            date=_parse_instant(
                raw, now, future_key="daysFromNow", past_key="daysAgo", field="date"
            ),
            duration=int(raw["duration"]),
            is_live=bool(raw.get("isLive", False)),
        )


def _parse_instant(
    raw: Mapping[str, Any],
    now: datetime,
    future_key: str | None = None,
    past_key: str | None = None,
    field: str = "occurredAt",
) -> datetime:
    """Resolve an absolute timestamp or a day offset relative to *now*."""
    if field in raw:
        return as_utc(datetime.fromisoformat(raw[field]))
    if future_key and future_key in raw:
        return now + timedelta(days=float(raw[future_key]))
    if past_key and past_key in raw:
        return now - timedelta(days=float(raw[past_key]))
    if field == "occurredAt":
        return now
    raise ValueError(f"Seed record has no {field!r} or relative offset: {raw!r}")
