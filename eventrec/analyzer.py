"""Preference analysis: turns weighted interaction history into a profile."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from datetime import datetime, timezone

import numpy as np

from eventrec.models import (
    ExplicitPreferences,
    HistoryItem,
    PreferenceProfile,
    ReactionType,
    as_utc,
)

logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60
_RECENCY_TIME_CONSTANT_DAYS = 30.0

# Reaction multipliers; any other tag weighs 1.0
_REACTION_WEIGHTS = {
    ReactionType.LOVE.value: 2.0,
    ReactionType.LIKE.value: 1.5,
}
_DEFAULT_REACTION_WEIGHT = 1.0

# How many keys each profile list keeps
_TOP_GENRES = 3
_TOP_TYPES = 2
_TOP_ARTISTS = 3
_TOP_ENVIRONMENTS = 2


def recency_weight(occurred_at: datetime, now: datetime) -> float:
    """Exponential decay ``exp(-days_ago / 30)`` for an interaction.

    Interactions timestamped after *now* are treated as happening *now*
    (weight 1.0).  The weight is always in ``(0, 1]``.
    """
    days_ago = (as_utc(now) - as_utc(occurred_at)).total_seconds() / _SECONDS_PER_DAY
    return math.exp(-max(days_ago, 0.0) / _RECENCY_TIME_CONSTANT_DAYS)


def reaction_weight(reaction_type: str) -> float:
    """Return 2.0 for ``love``, 1.5 for ``like`` and 1.0 for anything else."""
    return _REACTION_WEIGHTS.get(str(reaction_type).lower(), _DEFAULT_REACTION_WEIGHT)


def interaction_weight(item: HistoryItem, now: datetime) -> float:
    """Combined recency x reaction weight of one history item."""
    interaction = item.interaction
    return recency_weight(interaction.occurred_at, now) * reaction_weight(
        interaction.reaction_type
    )


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class PreferenceAnalyzer:
    """Builds a :class:`~eventrec.models.PreferenceProfile` from history.

    Genre, type, artist and environment preferences are accumulated with
    each interaction's combined weight (see :func:`interaction_weight`) and
    the top keys of each are kept:

    ===========  =====
    Dimension    Top-K
    ===========  =====
    Genre        3
    Type         2
    Artist       3
    Environment  2
    ===========  =====

    Preferred duration and time of day are plain (unweighted) means over the
    history, rounded half-up.  Keys with equal weight keep the order in
    which they were first seen.

    History items whose event is missing from the catalogue are skipped.
    """

    def analyze(
        self,
        history: Sequence[HistoryItem],
        explicit_preferences: ExplicitPreferences | None = None,
        now: datetime | None = None,
    ) -> PreferenceProfile:
        """Return the preference profile for *history*.

        Args:
            history: The user's interactions pre-joined with their events.
            explicit_preferences: Stated preferences.  Accepted for interface
                symmetry; they are scored separately by the ranker and never
                alter the derived profile.
            now: Reference time for recency decay. Defaults to UTC now.

        Returns:
            The derived :class:`~eventrec.models.PreferenceProfile`.

        Raises:
            ValueError: If *history* contains no item with a known event.
        """
        if now is None:
            now = datetime.now(timezone.utc)

        genres: dict[str, float] = {}
        types: dict[str, float] = {}
        artists: dict[str, float] = {}
        environments: dict[str, float] = {}
        durations: list[int] = []
        hours: list[int] = []

        for item in history:
            event = item.event
            if event is None:
                logger.debug(
                    "Skipping interaction %d: event %d no longer exists",
                    item.interaction.interaction_id,
                    item.interaction.event_id,
                )
                continue

            weight = interaction_weight(item, now)
            _accumulate(genres, event.genre, weight)
            _accumulate(types, event.event_type, weight)
            _accumulate(artists, event.artist, weight)
            _accumulate(environments, event.environment, weight)
            durations.append(event.duration)
            hours.append(event.hour)

        if not durations:
            raise ValueError("Cannot analyse preferences of an empty history")

        return PreferenceProfile(
            favorite_genres=_top_keys(genres, _TOP_GENRES),
            favorite_types=_top_keys(types, _TOP_TYPES),
            favorite_artists=_top_keys(artists, _TOP_ARTISTS),
            preferred_environments=_top_keys(environments, _TOP_ENVIRONMENTS),
            preferred_duration=round_half_up(float(np.mean(durations))),
            preferred_time_of_day=round_half_up(float(np.mean(hours))),
        )


def _accumulate(weights: dict[str, float], key: str, weight: float) -> None:
    weights[key] = weights.get(key, 0.0) + weight


def _top_keys(weights: dict[str, float], k: int) -> list[str]:
    # sorted() is stable, so equal weights keep first-seen order
    ranked = sorted(weights.items(), key=lambda kv: kv[1], reverse=True)
    return [key for key, _ in ranked[:k]]
