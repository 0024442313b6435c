"""Thread-safe in-memory implementation of the event/interaction/user stores."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime, timezone

from eventrec.errors import EventNotFoundError, UserNotFoundError
from eventrec.models import (
    EventRecord,
    ExplicitPreferences,
    HistoryItem,
    InteractionRecord,
    UserRecord,
    as_utc,
)
from eventrec.stores.base import EventStore, InteractionStore, UserStore

logger = logging.getLogger(__name__)

InteractionListener = Callable[[InteractionRecord], None]


class InMemoryStore(EventStore, InteractionStore, UserStore):
    """In-process store holding users, events and the interaction log.

    Identifiers are allocated from monotonic per-entity counters starting at
    1, unless the caller supplies one explicitly (seed data).  All public
    methods are thread-safe and return snapshots, so callers never observe
    a half-applied write.

    Listeners registered with :meth:`add_interaction_listener` are invoked
    after each new interaction has been appended, outside the store lock.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._users: dict[int, UserRecord] = {}
        self._events: dict[int, EventRecord] = {}
        self._interactions: list[InteractionRecord] = []
        self._next_ids = {"user": 1, "event": 1, "interaction": 1}
        self._listeners: list[InteractionListener] = []

    # ------------------------------------------------------------------
    # Read interface
    # ------------------------------------------------------------------

    def get_user(self, user_id: int) -> UserRecord | None:
        with self._lock:
            return self._users.get(user_id)

    def get_event(self, event_id: int) -> EventRecord | None:
        with self._lock:
            return self._events.get(event_id)

    def get_upcoming_events(self, now: datetime) -> list[EventRecord]:
        now = as_utc(now)
        with self._lock:
            return [e for e in self._events.values() if e.date > now]

    def get_history_for_user(self, user_id: int) -> list[HistoryItem]:
        with self._lock:
            interactions = [i for i in self._interactions if i.user_id == user_id]
            history = [
                HistoryItem(interaction=i, event=self._events.get(i.event_id))
                for i in interactions
            ]
        history.sort(key=lambda item: item.interaction.occurred_at, reverse=True)
        return history

    def get_interaction_count(self, event_id: int) -> int:
        with self._lock:
            return sum(1 for i in self._interactions if i.event_id == event_id)

    # ------------------------------------------------------------------
    # Write interface
    # ------------------------------------------------------------------

    def add_user(
        self,
        username: str,
        preferences: ExplicitPreferences | None = None,
        user_id: int | None = None,
    ) -> UserRecord:
        """Create a user, allocating the next free id if none is given.

        Raises:
            ValueError: If *user_id* is already taken.
        """
        with self._lock:
            user_id = self._allocate("user", self._users, user_id)
            user = UserRecord(user_id=user_id, username=username, preferences=preferences)
            self._users[user_id] = user
        return user

    def add_event(self, event: EventRecord) -> EventRecord:
        """Insert *event* under its own ``event_id``.

        Raises:
            ValueError: If an event with that id already exists.
        """
        with self._lock:
            if event.event_id in self._events:
                raise ValueError(f"event id {event.event_id} already exists")
            self._events[event.event_id] = event
            self._reserve("event", event.event_id)
        return event

    def next_event_id(self) -> int:
        with self._lock:
            return self._allocate("event", self._events)

    def remove_event(self, event_id: int) -> None:
        """Delete an event from the catalogue.

        Interactions referencing it are kept, mirroring a catalogue service
        that deletes events independently of the reaction log.
        """
        with self._lock:
            if self._events.pop(event_id, None) is None:
                raise EventNotFoundError(event_id)
        logger.info("Removed event %d from the catalogue.", event_id)

    def add_interaction(
        self,
        user_id: int,
        event_id: int,
        reaction_type: str,
        occurred_at: datetime | None = None,
        validate: bool = True,
    ) -> InteractionRecord:
        """Append an interaction to the log and notify listeners.

        Args:
            user_id: The reacting user.
            event_id: The event reacted to.
            reaction_type: Reaction tag, e.g. ``"love"``.
            occurred_at: When it happened. Defaults to the current UTC time.
            validate: When ``True`` (the default) the user and event must
                exist. Seed loaders pass ``False`` to replay dangling rows.

        Raises:
            UserNotFoundError: If *validate* and the user does not exist.
            EventNotFoundError: If *validate* and the event does not exist.
        """
        if occurred_at is None:
            occurred_at = datetime.now(timezone.utc)
        with self._lock:
            if validate:
                if user_id not in self._users:
                    raise UserNotFoundError(user_id)
                if event_id not in self._events:
                    raise EventNotFoundError(event_id)
            interaction = InteractionRecord(
                interaction_id=self._allocate("interaction", {}),
                user_id=user_id,
                event_id=event_id,
                reaction_type=reaction_type,
                occurred_at=occurred_at,
            )
            self._interactions.append(interaction)
            listeners = list(self._listeners)

        logger.debug(
            "Recorded %r interaction %d: user=%d event=%d",
            reaction_type,
            interaction.interaction_id,
            user_id,
            event_id,
        )

        for listener in listeners:
            listener(interaction)
        return interaction

    def update_preferences(
        self,
        user_id: int,
        genres: Iterable[str] | None = None,
        favorite_artists: Iterable[str] | None = None,
    ) -> ExplicitPreferences:
        """Merge stated preferences into the user's record.

        Fields passed as ``None`` are left unchanged.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise UserNotFoundError(user_id)
            current = user.preferences or ExplicitPreferences()
            updated = ExplicitPreferences(
                genres=list(genres) if genres is not None else list(current.genres),
                favorite_artists=(
                    list(favorite_artists)
                    if favorite_artists is not None
                    else list(current.favorite_artists)
                ),
            )
            self._users[user_id] = UserRecord(
                user_id=user.user_id, username=user.username, preferences=updated
            )
        return updated

    def add_interaction_listener(self, listener: InteractionListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _allocate(
        self, kind: str, existing: dict[int, object], requested: int | None = None
    ) -> int:
        """Return *requested* if free, else the lowest unused counter value."""
        if requested is not None:
            if requested in existing:
                raise ValueError(f"{kind} id {requested} already exists")
            self._reserve(kind, requested)
            return requested
        candidate = self._next_ids[kind]
        while candidate in existing:
            candidate += 1
        self._next_ids[kind] = candidate + 1
        return candidate

    def _reserve(self, kind: str, used_id: int) -> None:
        if used_id >= self._next_ids[kind]:
            self._next_ids[kind] = used_id + 1
