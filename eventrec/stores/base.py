"""Abstract repository interfaces consumed by the recommender."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from eventrec.models import EventRecord, HistoryItem, UserRecord


class EventStore(ABC):
    """Read access to the event catalogue."""

    @abstractmethod
    def get_upcoming_events(self, now: datetime) -> list[EventRecord]:
        """Return every event whose ``date`` is strictly after *now*.

        Events are returned in the store's natural iteration order, which the
        ranker uses as its tiebreak.
        """

    @abstractmethod
    def get_event(self, event_id: int) -> EventRecord | None:
        """Return a single event, or ``None`` if it does not exist."""


class InteractionStore(ABC):
    """Read access to the interaction (reaction/bookmark/attendance) log."""

    @abstractmethod
    def get_history_for_user(self, user_id: int) -> list[HistoryItem]:
        """Return all interactions of *user_id* pre-joined with their events.

        Args:
            user_id: The user whose history is requested.

        Returns:
            List of :class:`~eventrec.models.HistoryItem`, newest first.  An
            item's ``event`` is ``None`` when the referenced event is missing.
        """

    @abstractmethod
    def get_interaction_count(self, event_id: int) -> int:
        """Return the number of interactions (by any user) on *event_id*."""


class UserStore(ABC):
    """Read access to user accounts."""

    @abstractmethod
    def get_user(self, user_id: int) -> UserRecord | None:
        """Return the user, or ``None`` if no such user exists."""
