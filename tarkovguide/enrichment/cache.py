"""
Content-addressed cache for enriched quest guides.

Keys are quest fingerprints (quest id + hash of the objective list), so a
cached guide is automatically bypassed when a quest's objectives change.

Policies:
- TTL: entries expire after ``default_ttl`` seconds (7 days by default).
  Expiry is enforced by a sweep that runs at most once per
  ``check_period`` seconds, triggered by cache traffic or an explicit
  ``sweep()``. An expired entry may therefore be served for up to one
  check period.
- Capacity: at most ``max_entries`` keys. A write for a *new* key when the
  cache is full first sweeps expired entries; if it is still full the write
  is rejected (``set`` returns False). Overwriting an existing key is always
  allowed.
- Failure: the cache is an optimization. ``get``/``set``/``invalidate``
  never raise; errors are logged and reported as a miss / False / 0.
- Concurrency: used from a single asyncio event loop with no awaits inside
  any operation, so operations never interleave. Two concurrent misses for
  the same quest both write; the last write wins.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from tarkovguide.config.logging import get_logger
from tarkovguide.enrichment.base import EnrichmentResult, quest_fingerprint

logger = get_logger(__name__)

DEFAULT_TTL = 604800  # 7 days
DEFAULT_MAX_ENTRIES = 500
DEFAULT_CHECK_PERIOD = 3600.0  # 1 hour


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: EnrichmentResult
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl


class QuestGuideCache:
    """
    Bounded, TTL-based store of EnrichmentResults keyed by quest fingerprint.

    Args:
        default_ttl: Lifetime in seconds for entries written without a ttl
        max_entries: Maximum number of keys held at once
        check_period: Minimum seconds between expired-entry sweeps
        clock: Monotonic time source in seconds (injectable for tests)

    Example:
        >>> cache = QuestGuideCache()
        >>> cache.set(quest.id, quest.objectives, result)
        True
        >>> cache.get(quest.id, quest.objectives) is result
        True
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        check_period: float = DEFAULT_CHECK_PERIOD,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.default_ttl = default_ttl
        self.max_entries = max_entries
        self.check_period = check_period
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0
        self._last_sweep = clock()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, quest_id: str, objectives: Iterable[Any] | None) -> EnrichmentResult | None:
        """Return the cached result for this quest content, or None."""
        try:
            self._maybe_sweep()
            key = quest_fingerprint(quest_id, objectives)
            entry = self._entries.get(key)
        except Exception as e:
            logger.error(f"Error reading quest {quest_id} from cache: {e}")
            return None

        if entry is None:
            self._misses += 1
            logger.info(f"Cache MISS for quest {quest_id}")
            return None

        self._hits += 1
        logger.info(f"Cache HIT for quest {quest_id}")
        return entry.value

    def set(
        self,
        quest_id: str,
        objectives: Iterable[Any] | None,
        result: EnrichmentResult,
        ttl: float | None = None,
    ) -> bool:
        """
        Store ``result`` for this quest content.

        Args:
            quest_id: Quest identifier
            objectives: Objective list the result was generated from
            result: Enrichment to cache
            ttl: Lifetime in seconds (default: ``default_ttl``)

        Returns:
            True if stored, False if rejected (cache full) or on error
        """
        try:
            self._maybe_sweep()
            key = quest_fingerprint(quest_id, objectives)
            effective_ttl = ttl if ttl is not None else self.default_ttl
            if effective_ttl <= 0:
                raise ValueError(f"ttl must be positive, got {effective_ttl}")

            if key not in self._entries and len(self._entries) >= self.max_entries:
                self.sweep()
                if len(self._entries) >= self.max_entries:
                    logger.warning(
                        f"Cache full ({self.max_entries} entries); not caching quest {quest_id}"
                    )
                    return False

            self._entries[key] = CacheEntry(
                key=key,
                value=result,
                created_at=self._clock(),
                ttl=effective_ttl,
            )
        except Exception as e:
            logger.error(f"Error writing quest {quest_id} to cache: {e}")
            return False

        logger.info(f"Cached quest {quest_id} for {effective_ttl / 86400:.1f} day(s)")
        return True

    def invalidate(self, quest_id: str, objectives: Iterable[Any] | None) -> int:
        """Remove the entry for this quest content. Returns the number of entries removed."""
        try:
            key = quest_fingerprint(quest_id, objectives)
            return 1 if self._entries.pop(key, None) is not None else 0
        except Exception as e:
            logger.error(f"Error deleting quest {quest_id} from cache: {e}")
            return 0

    def clear(self) -> None:
        """Drop every entry (hit/miss counters are kept)."""
        self._entries.clear()
        logger.info("Quest cache cleared")

    def sweep(self) -> int:
        """Remove expired entries now. Returns the number removed."""
        now = self._clock()
        self._last_sweep = now
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Swept {len(expired)} expired quest guide(s)")
        return len(expired)

    def stats(self) -> dict[str, int]:
        """Return entry, hit and miss counts."""
        return {
            "entry_count": len(self._entries),
            "hit_count": self._hits,
            "miss_count": self._misses,
        }

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _maybe_sweep(self) -> None:
        if self._clock() - self._last_sweep >= self.check_period:
            self.sweep()
