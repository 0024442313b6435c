"""Core domain dataclasses shared across all recommender modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class ReactionType(str, Enum):
    """Reaction tags emitted by the reaction subsystem.

    Only ``LOVE`` and ``LIKE`` carry extra weight; every other tag (including
    strings not listed here) counts as a neutral interaction.
    """

    LOVE = "love"
    LIKE = "like"
    CLAP = "clap"
    WOW = "wow"
    FIRE = "fire"
    BOOKMARK = "bookmark"
    ATTEND = "attend"


def as_utc(value: datetime) -> datetime:
    """Return *value* as a UTC-aware datetime; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class EventRecord:
    """A read-only snapshot of a schedulable event.

    Attributes:
        event_id: Unique, stable identifier.
        title: Human-readable title (output only; never scored).
        genre: Musical or artistic genre, e.g. ``"rock"``.
        event_type: Kind of event, e.g. ``"concert"`` or ``"exhibition"``.
        artist: Performing artist or exhibitor.
        environment: Virtual venue, e.g. ``"stadium"`` or ``"gallery"``.
        tags: Free-form labels. Order is irrelevant.
        date: When the event starts (UTC).
        duration: Length in minutes. Must be positive.
        is_live: Whether the event is streamed live.
        description: Long description (output only).
    """

    event_id: int
    title: str
    genre: str
    event_type: str
    artist: str
    environment: str
    date: datetime
    duration: int
    tags: frozenset[str] = frozenset()
    is_live: bool = False
    description: str = ""

    def __post_init__(self) -> None:
        if self.duration <= 0:
            raise ValueError(f"duration must be positive, got {self.duration!r}")
        object.__setattr__(self, "date", as_utc(self.date))
        object.__setattr__(self, "tags", frozenset(self.tags))

    @property
    def hour(self) -> int:
        """Hour of day (0-23, UTC) at which the event starts."""
        return self.date.hour


@dataclass(frozen=True)
class InteractionRecord:
    """One user's historical touch on one event.

    ``reaction_type`` is kept as a plain string so that tags unknown to
    :class:`ReactionType` still round-trip unchanged.
    """

    interaction_id: int
    user_id: int
    event_id: int
    reaction_type: str
    occurred_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "occurred_at", as_utc(self.occurred_at))


@dataclass(frozen=True)
class HistoryItem:
    """An interaction pre-joined with its event.

    ``event`` is ``None`` when the interaction references an event that no
    longer exists in the catalogue.
    """

    interaction: InteractionRecord
    event: EventRecord | None


@dataclass
class ExplicitPreferences:
    """Preferences the user stated directly in their profile settings."""

    genres: list[str] = field(default_factory=list)
    favorite_artists: list[str] = field(default_factory=list)


@dataclass
class UserRecord:
    user_id: int
    username: str
    preferences: ExplicitPreferences | None = None


@dataclass
class PreferenceProfile:
    """Derived summary of a user's revealed tastes.

    Attributes:
        favorite_genres: Up to 3 genres, most-weighted first.
        favorite_types: Up to 2 event types, most-weighted first.
        favorite_artists: Up to 3 artists, most-weighted first.
        preferred_environments: Up to 2 environments, most-weighted first.
        preferred_duration: Mean duration in minutes, rounded half-up.
        preferred_time_of_day: Mean start hour (0-23), rounded half-up.
    """

    favorite_genres: list[str]
    favorite_types: list[str]
    favorite_artists: list[str]
    preferred_environments: list[str]
    preferred_duration: int
    preferred_time_of_day: int


@dataclass(frozen=True)
class MatchReasons:
    """Boolean explanation flags attached to each ranked candidate."""

    genre: bool = False
    type: bool = False
    artist: bool = False
    environment: bool = False
    duration: bool = False
    time_of_day: bool = False
    live: bool = False


@dataclass(frozen=True)
class ScoredCandidate:
    event: EventRecord
    recommendation_score: float
    match_reasons: MatchReasons = MatchReasons()
