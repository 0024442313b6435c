"""Recommendation ranker: scores upcoming events for a single user."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone

import numpy as np

from eventrec.analyzer import PreferenceAnalyzer, interaction_weight
from eventrec.errors import (
    InvalidUserIdError,
    RecommenderError,
    StoreUnavailableError,
    UserNotFoundError,
)
from eventrec.models import (
    EventRecord,
    ExplicitPreferences,
    HistoryItem,
    MatchReasons,
    PreferenceProfile,
    ScoredCandidate,
    UserRecord,
)
from eventrec.profile_cache import ProfileCache
from eventrec.similarity import SimilarityScorer
from eventrec.stores.base import EventStore, InteractionStore, UserStore

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 6


@dataclass(frozen=True)
class PreferenceBonuses:
    """Additive bonuses applied on top of the history similarity score."""

    genre: float = 2.0
    type: float = 1.5
    artist: float = 2.0
    environment: float = 1.0
    duration: float = 0.5
    time_of_day: float = 0.5
    live: float = 1.0
    explicit_genre: float = 2.0
    explicit_artist: float = 2.0
    duration_window_minutes: int = 30
    hour_window: int = 2
    live_ratio_threshold: float = 0.5


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_user_id(user_id: object) -> int:
    """Validate and normalise a user identifier.

    Accepts positive integers and strings of ASCII digits.

    Raises:
        InvalidUserIdError: For anything else (including booleans).
    """
    if isinstance(user_id, bool):
        raise InvalidUserIdError(f"Invalid user id: {user_id!r}")
    if isinstance(user_id, int):
        parsed = user_id
    elif isinstance(user_id, str) and user_id.isascii() and user_id.isdigit():
        parsed = int(user_id)
    else:
        raise InvalidUserIdError(f"Invalid user id: {user_id!r}")
    if parsed <= 0:
        raise InvalidUserIdError(f"User id must be positive, got {parsed}")
    return parsed


class RecommendationRanker:
    """Ranks upcoming events for a user.

    **Cold start**: a user without any interaction gets the upcoming events
    ordered by how many interactions (from all users) each has received.  The
    analyzer and scorer are not involved.

    **Personalized**: every upcoming event the user has not interacted with
    is scored as

    ``sum(similarity(candidate, h.event) * weight(h) for h in history)``
    ``+ preference bonuses + live bonus + explicit-preference bonuses``

    where ``weight(h)`` is the recency x reaction weight of the history
    item.  Candidates are sorted by score descending; ties keep the event
    store's iteration order.

    The ranker holds no per-request state, so one instance may serve
    concurrent requests.

    Args:
        event_store: Source of upcoming events.
        interaction_store: Source of user histories and popularity counts.
        user_store: Source of user accounts and stated preferences.
        analyzer: Builds the preference profile.
        scorer: Pairwise event similarity.
        profile_cache: Optional cache of derived profiles.
        bonuses: Bonus amounts and thresholds.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        event_store: EventStore,
        interaction_store: InteractionStore,
        user_store: UserStore,
        analyzer: PreferenceAnalyzer | None = None,
        scorer: SimilarityScorer | None = None,
        profile_cache: ProfileCache | None = None,
        bonuses: PreferenceBonuses | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._event_store = event_store
        self._interaction_store = interaction_store
        self._user_store = user_store
        self._analyzer = analyzer or PreferenceAnalyzer()
        self._scorer = scorer or SimilarityScorer()
        self._profile_cache = profile_cache
        self._bonuses = bonuses or PreferenceBonuses()
        self._clock = clock

    def recommend(
        self, user_id: int | str, top_n: int = DEFAULT_TOP_N
    ) -> list[ScoredCandidate]:
        """Return up to *top_n* scored events for *user_id*, best first.

        Args:
            user_id: Positive integer id (or its decimal string form).
            top_n: Maximum number of results. Must be at least 1.

        Returns:
            At most *top_n* :class:`~eventrec.models.ScoredCandidate`.

        Raises:
            InvalidUserIdError: If *user_id* is malformed. No store is called.
            ValueError: If *top_n* is less than 1.
            UserNotFoundError: If the user does not exist.
            StoreUnavailableError: If a store call fails.
        """
        uid = parse_user_id(user_id)
        if top_n < 1:
            raise ValueError(f"top_n must be at least 1, got {top_n!r}")

        now = self._clock()

        with _store_errors("user lookup"):
            user = self._user_store.get_user(uid)
        if user is None:
            raise UserNotFoundError(uid)

        with _store_errors("history lookup"):
            history = self._interaction_store.get_history_for_user(uid)

        known = [item for item in history if item.event is not None]
        if len(known) < len(history):
            logger.warning(
                "User %d has %d interaction(s) referencing missing events; skipping them.",
                uid,
                len(history) - len(known),
            )

        if not known:
            logger.debug("User %d has no usable history; using popularity ranking.", uid)
            return self._popular_events(now, top_n)

        return self._personalized(user, history, known, now, top_n)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _popular_events(self, now: datetime, top_n: int) -> list[ScoredCandidate]:
        with _store_errors("popularity lookup"):
            upcoming = self._event_store.get_upcoming_events(now)
            counts = [
                self._interaction_store.get_interaction_count(event.event_id)
                for event in upcoming
            ]
        ranked = sorted(zip(upcoming, counts), key=lambda pair: pair[1], reverse=True)
        return [
            ScoredCandidate(event=event, recommendation_score=float(count))
            for event, count in ranked[:top_n]
        ]

    def _personalized(
        self,
        user: UserRecord,
        history: Sequence[HistoryItem],
        known: Sequence[HistoryItem],
        now: datetime,
        top_n: int,
    ) -> list[ScoredCandidate]:
        profile = self._profile_for(user, known, now)

        interacted = {item.interaction.event_id for item in history}
        with _store_errors("upcoming events lookup"):
            upcoming = self._event_store.get_upcoming_events(now)
        candidates = [e for e in upcoming if e.event_id not in interacted]

        history_events = [item.event for item in known]
        weights = np.array([interaction_weight(item, now) for item in known], dtype=np.float64)
        live_ratio = sum(1 for e in history_events if e.is_live) / len(history_events)
        prefers_live = live_ratio > self._bonuses.live_ratio_threshold

        scored = []
        for candidate in candidates:
            similarities = np.fromiter(
                (self._scorer.score(candidate, e) for e in history_events),
                dtype=np.float64,
                count=len(history_events),
            )
            base_score = float(np.dot(similarities, weights))
            reasons = self._match_reasons(candidate, profile, prefers_live)
            total = (
                base_score
                + self._bonus_for(reasons)
                + self._explicit_bonus(candidate, user.preferences)
            )
            scored.append(
                ScoredCandidate(
                    event=candidate,
                    recommendation_score=total,
                    match_reasons=reasons,
                )
            )

        scored.sort(key=lambda c: c.recommendation_score, reverse=True)
        logger.debug(
            "Scored %d candidate(s) for user %d against %d history item(s)",
            len(scored),
            user.user_id,
            len(known),
        )
        return scored[:top_n]

    def _profile_for(
        self, user: UserRecord, known: Sequence[HistoryItem], now: datetime
    ) -> PreferenceProfile:
        cache = self._profile_cache
        if cache is not None:
            cached = cache.get(user.user_id)
            if cached is not None:
                return cached
        profile = self._analyzer.analyze(known, user.preferences, now=now)
        if cache is not None:
            cache.put(user.user_id, profile)
        return profile

    def _match_reasons(
        self, event: EventRecord, profile: PreferenceProfile, prefers_live: bool
    ) -> MatchReasons:
        b = self._bonuses
        return MatchReasons(
            genre=event.genre in profile.favorite_genres,
            type=event.event_type in profile.favorite_types,
            artist=event.artist in profile.favorite_artists,
            environment=event.environment in profile.preferred_environments,
            duration=abs(event.duration - profile.preferred_duration)
            <= b.duration_window_minutes,
            time_of_day=abs(event.hour - profile.preferred_time_of_day) <= b.hour_window,
            live=event.is_live and prefers_live,
        )

    def _bonus_for(self, reasons: MatchReasons) -> float:
        b = self._bonuses
        return (
            (b.genre if reasons.genre else 0.0)
            + (b.type if reasons.type else 0.0)
            + (b.artist if reasons.artist else 0.0)
            + (b.environment if reasons.environment else 0.0)
            + (b.duration if reasons.duration else 0.0)
            + (b.time_of_day if reasons.time_of_day else 0.0)
            + (b.live if reasons.live else 0.0)
        )

    def _explicit_bonus(
        self, event: EventRecord, preferences: ExplicitPreferences | None
    ) -> float:
        if preferences is None:
            return 0.0
        bonus = 0.0
        if event.genre in preferences.genres:
            bonus += self._bonuses.explicit_genre
        if event.artist in preferences.favorite_artists:
            bonus += self._bonuses.explicit_artist
        return bonus


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Re-raise unexpected store failures as :class:`StoreUnavailableError`."""
    try:
        yield
    except RecommenderError:
        raise
    except Exception as exc:
        logger.exception("Store failure during %s", operation)
        raise StoreUnavailableError(f"{operation} failed: {exc}") from exc
