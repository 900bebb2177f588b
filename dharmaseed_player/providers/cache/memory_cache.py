"""In-process expiring cache backed by a ``cachetools.Cache`` store.

Each entry records its own absolute expiry instant, so different keys can
live for different durations.  Expiry is checked lazily: an entry past its
deadline is deleted by the read that finds it, and nothing sweeps the store
in the background.  The store is unbounded; the key space in practice is
limited to the talk and teacher ids actually requested.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from cachetools import Cache

from dharmaseed_player.interfaces.cache_provider import ICacheProvider
from dharmaseed_player.utils.logging import get_logger

DEFAULT_TTL_SECONDS = 24 * 60 * 60

_logger = get_logger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A stored value and the clock reading after which it is stale."""

    value: Any
    expires_at: float


class ExpiringMemoryCache(ICacheProvider):
    """Per-entry TTL cache with lazy eviction.

    Parameters
    ----------
    default_ttl:
        Time-to-live in seconds applied when ``set`` is called without one.
    clock:
        Monotonic time source; injectable so tests can move time forward.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: Cache[str, CacheEntry] = Cache(maxsize=math.inf)

    def __len__(self) -> int:
        return len(self._entries)

    def _live_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() > entry.expires_at:
            del self._entries[key]
            _logger.debug("cache_expired", key=key)
            return None
        return entry

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        entry = self._live_entry(key)
        if entry is None:
            _logger.debug("cache_miss", key=key)
            return None
        _logger.debug("cache_hit", key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        lifetime = self._default_ttl if ttl is None else ttl
        self._entries[key] = CacheEntry(value=value, expires_at=self._clock() + lifetime)
        _logger.debug("cache_set", key=key, ttl=lifetime)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)
        _logger.debug("cache_delete", key=key)

    async def exists(self, key: str) -> bool:
        return self._live_entry(key) is not None
