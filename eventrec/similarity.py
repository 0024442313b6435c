"""Pairwise event similarity used by the ranker."""

from __future__ import annotations

from dataclasses import dataclass

from eventrec.models import EventRecord


@dataclass(frozen=True)
class SimilarityWeights:
    """Per-dimension contributions of :class:`SimilarityScorer`."""

    genre: float = 3.0
    type: float = 2.0
    environment: float = 1.0
    shared_tag: float = 0.5
    live_timing: float = 1.0
    duration: float = 0.5
    live_hour_window: int = 2
    duration_window_minutes: int = 30


class SimilarityScorer:
    """Additive, symmetric similarity between two events.

    Not a distance metric: scores are unbounded and every check contributes
    independently.

    ==============  ==========================================  =========
    Dimension       Condition                                   Default
    ==============  ==========================================  =========
    Genre           exact, case-sensitive match                 +3
    Type            exact match                                 +2
    Environment     exact match                                 +1
    Tags            per tag present on both events              +0.5 each
    Live timing     both live, start hours at most 2 apart      +1
    Duration        durations at most 30 minutes apart          +0.5
    ==============  ==========================================  =========
    """

    def __init__(self, weights: SimilarityWeights | None = None) -> None:
        self._weights = weights or SimilarityWeights()

    @property
    def weights(self) -> SimilarityWeights:
        return self._weights

    def score(self, a: EventRecord, b: EventRecord) -> float:
        w = self._weights
        total = 0.0

        if a.genre == b.genre:
            total += w.genre
        if a.event_type == b.event_type:
            total += w.type
        if a.environment == b.environment:
            total += w.environment

        total += len(a.tags & b.tags) * w.shared_tag

        if a.is_live and b.is_live and abs(a.hour - b.hour) <= w.live_hour_window:
            total += w.live_timing

        if abs(a.duration - b.duration) <= w.duration_window_minutes:
            total += w.duration

        return total
