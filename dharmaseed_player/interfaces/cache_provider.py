"""Abstract base class for the key-value cache used by the catalog service.

The catalog memoizes two kinds of single-item lookups: assembled talk
details (``talk:<id>``) and individual teacher names (``teacher:<id>``).
Implementations may keep entries in process memory or in a shared store;
callers only rely on the contract below.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for key-value caches with per-entry time-to-live.

    All operations are async so a network-backed store can be dropped in
    without blocking the event loop.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value stored under *key*, or ``None`` on a miss.

        An entry whose expiry has passed counts as a miss.
        """

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key*.

        Parameters
        ----------
        key:
            The cache key.
        value:
            The value to store.  Callers store already-serialized values
            (strings) so a hit never aliases a live object.
        ttl:
            Time-to-live in seconds.  ``None`` uses the provider default.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*; a no-op when it is absent."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
