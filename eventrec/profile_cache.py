"""Short-lived per-user cache of derived preference profiles."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from eventrec.models import InteractionRecord, PreferenceProfile

logger = logging.getLogger(__name__)


class ProfileCache:
    """Thread-safe TTL cache of :class:`~eventrec.models.PreferenceProfile`.

    Entries expire *ttl_seconds* after they were stored and are dropped
    eagerly by :meth:`invalidate` when the user records a new interaction.
    Every :meth:`put` also sweeps out entries that have already expired.
    A non-positive TTL disables the cache entirely: :meth:`get` always
    misses and :meth:`put` is a no-op.

    Args:
        ttl_seconds: Lifetime of an entry.
        clock: Monotonic time source in seconds. Defaults to
            :func:`time.monotonic`; tests pass a fake.
    """

    def __init__(
        self,
        ttl_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[int, tuple[float, PreferenceProfile]] = {}

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def get(self, user_id: int) -> PreferenceProfile | None:
        if not self.enabled:
            return None
        with self._lock:
            entry = self._entries.get(user_id)
            if entry is None:
                return None
            expires_at, profile = entry
            if self._clock() >= expires_at:
                del self._entries[user_id]
                return None
            return profile

    def put(self, user_id: int, profile: PreferenceProfile) -> None:
        if not self.enabled:
            return
        with self._lock:
            now = self._clock()
            expired = [uid for uid, (expires_at, _) in self._entries.items() if now >= expires_at]
            for uid in expired:
                del self._entries[uid]
            self._entries[user_id] = (now + self._ttl, profile)

    def invalidate(self, user_id: int) -> None:
        with self._lock:
            if self._entries.pop(user_id, None) is not None:
                logger.debug("Invalidated cached profile for user %d", user_id)

    def on_interaction(self, interaction: InteractionRecord) -> None:
        """Interaction-listener hook: drop the reacting user's profile."""
        self.invalidate(interaction.user_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
