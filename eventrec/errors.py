"""Exception hierarchy raised by the recommender and its stores."""

from __future__ import annotations


class RecommenderError(Exception):
    """Base class for all errors surfaced to callers of the recommender."""


class InvalidUserIdError(RecommenderError, ValueError):
    """The user identifier is malformed (e.g. non-numeric)."""


class UserNotFoundError(RecommenderError, LookupError):
    """The referenced user does not exist in the user store."""

    def __init__(self, user_id: int) -> None:
        super().__init__(f"User {user_id} not found")
        self.user_id = user_id


class EventNotFoundError(RecommenderError, LookupError):
    """The referenced event does not exist in the event store."""

    def __init__(self, event_id: int) -> None:
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id


class StoreUnavailableError(RecommenderError):
    """The backing event/interaction/user store failed to respond.

    Not retried by the recommender; retry policy belongs to the store client.
    """
